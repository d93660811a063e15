"""Liveness and readiness of the masterdata service."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.column import ColumnConfig

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Process is up and the database answers."""
    await db.execute(text("SELECT 1"))
    return {"status": "healthy", "service": "masterdata"}


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Ready once the built-in masterdata columns have been seeded.

    Without them every role's projection is empty, so the service answers 503
    until ``masterdata seed`` (or app startup) has run.
    """
    seeded = (
        await db.execute(
            select(func.count())
            .select_from(ColumnConfig)
            .where(ColumnConfig.is_masterdata.is_(True))
        )
    ).scalar_one()
    body = {
        "status": "ready" if seeded else "not_ready",
        "service": "masterdata",
        "masterdata_columns": seeded,
    }
    if not seeded:
        return JSONResponse(body, status_code=503)
    return body
