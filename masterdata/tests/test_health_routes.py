"""Health route tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from masterdata.services import column_svc


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json() == {"status": "healthy", "service": "masterdata"}


@pytest.mark.asyncio
async def test_ready_waits_for_seeded_columns(client: AsyncClient, db):
    before = await client.get("/ready")
    assert before.status_code == 503
    assert before.json()["status"] == "not_ready"

    await column_svc.seed_masterdata_columns(db)
    after = await client.get("/ready")
    assert after.status_code == 200
    assert after.json() == {
        "status": "ready",
        "service": "masterdata",
        "masterdata_columns": len(column_svc.MASTERDATA_COLUMNS),
    }
