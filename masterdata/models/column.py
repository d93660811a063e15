"""Column definitions: built-in masterdata fields and party custom fields."""

from __future__ import annotations

from sqlalchemy import JSON, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..permissions import PermissionMatrix
from .base import Base, CreatedAtMixin, UUIDMixin

COLUMN_TYPES = ("text", "number", "date", "boolean")


class ColumnConfig(UUIDMixin, CreatedAtMixin, Base):
    """One field of information about an employee plus its role matrix."""

    __tablename__ = "column_config"

    column_name: Mapped[str] = mapped_column(String(100), index=True)
    column_type: Mapped[str] = mapped_column(String(20), default="text")
    is_masterdata: Mapped[bool] = mapped_column(Boolean, default=False)
    category: Mapped[str | None] = mapped_column(String(100), default=None)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    # {role: {"view": bool, "edit": bool}}; hr_admin only on custom columns
    role_permissions: Mapped[dict] = mapped_column(JSON, default=dict)

    @property
    def permissions(self) -> PermissionMatrix:
        return PermissionMatrix.from_stored(
            self.role_permissions, allow_hr_admin=not self.is_masterdata
        )

    def __repr__(self) -> str:
        kind = "masterdata" if self.is_masterdata else "custom"
        return f"<ColumnConfig {self.column_name!r} ({kind})>"
