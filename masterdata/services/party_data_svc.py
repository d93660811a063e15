"""Per-party custom data documents keyed by employee."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import UnsupportedRole
from ..models.party_data import PARTY_TABLES, PartyDataMixin
from ..roles import PARTY_ROLES, Role, parse_role

log = logging.getLogger(__name__)


def table_for(role: str | Role) -> type[PartyDataMixin]:
    """Resolve the party table for ``role``. HR admin and unknown roles have none."""
    try:
        model = PARTY_TABLES.get(parse_role(role))
    except ValueError:
        model = None
    if model is None:
        raise UnsupportedRole(f"No custom data table found for role: {role}")
    return model


async def _get_record(db: AsyncSession, model, employee_id: uuid.UUID):
    stmt = select(model).where(model.employee_id == employee_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get(db: AsyncSession, employee_id: uuid.UUID, role: str | Role) -> dict:
    model = table_for(role)
    record = await _get_record(db, model, employee_id)
    if record is None:
        return {}
    return dict(record.data or {})


async def get_many(
    db: AsyncSession, employee_ids: Iterable[uuid.UUID], role: str | Role
) -> dict[uuid.UUID, dict]:
    """Returns {employee_id: document} for the ids that have a record."""
    model = table_for(role)
    ids = list(employee_ids)
    if not ids:
        return {}
    stmt = select(model).where(model.employee_id.in_(ids))
    result = await db.execute(stmt)
    return {r.employee_id: dict(r.data or {}) for r in result.scalars().all()}


async def patch(
    db: AsyncSession,
    employee_id: uuid.UUID,
    role: str | Role,
    updates: Mapping,
) -> dict:
    """Shallow-merge ``updates`` into the document, creating it if absent."""
    model = table_for(role)
    record = await _get_record(db, model, employee_id)
    now = datetime.now(timezone.utc)

    if record is None:
        record = model(employee_id=employee_id, data=dict(updates))
        db.add(record)
    else:
        merged = dict(record.data or {})
        merged.update(updates)
        # reassign so the JSON column is flagged dirty
        record.data = merged
    record.updated_at = now

    await db.commit()
    await db.refresh(record)
    return dict(record.data or {})


async def delete_keys(
    db: AsyncSession,
    employee_id: uuid.UUID,
    role: str | Role,
    names: Iterable[str],
) -> None:
    model = table_for(role)
    record = await _get_record(db, model, employee_id)
    if record is None:
        return
    drop = set(names)
    record.data = {k: v for k, v in (record.data or {}).items() if k not in drop}
    record.updated_at = datetime.now(timezone.utc)
    await db.commit()


async def remove_key_everywhere(db: AsyncSession, role: str | Role, name: str) -> int:
    """Drop ``name`` from every document in the role's table. Caller commits."""
    model = table_for(role)
    result = await db.execute(select(model))
    affected = 0
    now = datetime.now(timezone.utc)
    for record in result.scalars().all():
        data = record.data or {}
        if name not in data:
            continue
        record.data = {k: v for k, v in data.items() if k != name}
        record.updated_at = now
        affected += 1
    return affected


async def rename_key_everywhere(
    db: AsyncSession, role: str | Role, old: str, new: str
) -> int:
    """Move values stored under ``old`` to ``new``. Caller commits."""
    model = table_for(role)
    if old == new:
        return 0
    result = await db.execute(select(model))
    affected = 0
    now = datetime.now(timezone.utc)
    for record in result.scalars().all():
        data = record.data or {}
        if old not in data:
            continue
        renamed = {k: v for k, v in data.items() if k != old}
        renamed[new] = data[old]
        record.data = renamed
        record.updated_at = now
        affected += 1
    if affected:
        log.info("renamed key %r -> %r in %d %s records", old, new, affected, model.__tablename__)
    return affected


async def get_many_merged(
    db: AsyncSession, employee_ids: Iterable[uuid.UUID], names: Iterable[str]
) -> dict[uuid.UUID, dict]:
    """Values for ``names`` across every party table, for a granted HR admin.

    Tables are read in party order and the first table holding a key wins.
    """
    ids = list(employee_ids)
    wanted = set(names)
    merged: dict[uuid.UUID, dict] = {}
    if not ids or not wanted:
        return merged
    for role in PARTY_ROLES:
        for employee_id, document in (await get_many(db, ids, role)).items():
            target = merged.setdefault(employee_id, {})
            for key in wanted & document.keys():
                target.setdefault(key, document[key])
    return merged
