"""Important dates: week-numbered calendar entries shown to every role."""

from __future__ import annotations

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDMixin

IMPORTANT_DATE_CATEGORIES = ("Stena Dates", "ÖMC Dates", "PE3 Dates", "Other")


class ImportantDate(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "important_dates"

    week_number: Mapped[int | None] = mapped_column(Integer, default=None)
    year: Mapped[int] = mapped_column(Integer, index=True)
    category: Mapped[str] = mapped_column(String(50), index=True)
    date_description: Mapped[str] = mapped_column(String(255))
    # free text, e.g. "15/3" or "March 15-17"
    date_value: Mapped[str] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text, default=None)

    @property
    def duplicate_key(self) -> tuple:
        return duplicate_key(self.week_number, self.year, self.category)

    def __repr__(self) -> str:
        return f"<ImportantDate {self.category!r} w{self.week_number} {self.year}>"


def duplicate_key(week_number: int | None, year: int, category: str) -> tuple:
    """Two dates collide on week, year and case-insensitive category."""
    return (week_number, year, (category or "").strip().lower())
