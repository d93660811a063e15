"""Custom column data payloads."""

from __future__ import annotations

from pydantic import RootModel

CustomValue = bool | int | float | str | None


class CustomDataUpdate(RootModel[dict[str, CustomValue]]):
    pass
