"""Masterdata models - re-exports all models and Base.metadata."""

from .base import Base, UUIDMixin, CreatedAtMixin, TimestampMixin
from .column import ColumnConfig, COLUMN_TYPES
from .employee import Employee
from .important_date import IMPORTANT_DATE_CATEGORIES, ImportantDate
from .party_data import PartyDataMixin, SodexoData, OmcData, PayrollData, TopluxData, PARTY_TABLES
from .user import User

__all__ = [
    "Base",
    "UUIDMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    "ColumnConfig",
    "COLUMN_TYPES",
    "Employee",
    "ImportantDate",
    "IMPORTANT_DATE_CATEGORIES",
    "PartyDataMixin",
    "SodexoData",
    "OmcData",
    "PayrollData",
    "TopluxData",
    "PARTY_TABLES",
    "User",
]
