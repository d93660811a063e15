"""Per-party custom data documents, one table per external party."""

from __future__ import annotations

import uuid

from sqlalchemy import JSON, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from ..roles import Role
from .base import Base, TimestampMixin, UUIDMixin


class PartyDataMixin(UUIDMixin, TimestampMixin):
    """Flat {column_name: value} document for one employee."""

    @declared_attr
    def employee_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            Uuid,
            ForeignKey("employees.id", ondelete="CASCADE"),
            unique=True,
            index=True,
        )

    data: Mapped[dict] = mapped_column(JSON, default=dict)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} employee={self.employee_id}>"


class SodexoData(PartyDataMixin, Base):
    __tablename__ = "sodexo_data"


class OmcData(PartyDataMixin, Base):
    __tablename__ = "omc_data"


class PayrollData(PartyDataMixin, Base):
    __tablename__ = "payroll_data"


class TopluxData(PartyDataMixin, Base):
    __tablename__ = "toplux_data"


PARTY_TABLES: dict[Role, type[PartyDataMixin]] = {
    Role.SODEXO: SodexoData,
    Role.OMC: OmcData,
    Role.PAYROLL: PayrollData,
    Role.TOPLUX: TopluxData,
}
