"""FastAPI application for the HR masterdata service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .errors import init_error_handlers

log = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Auto-create tables for SQLite (local dev); PostgreSQL uses Alembic migrations
    if "sqlite" in settings.database_url:
        from .database import create_tables
        await create_tables()

    from .database import async_session_factory
    from .services import column_svc, user_svc

    async with async_session_factory() as db:
        await column_svc.seed_masterdata_columns(db)
        if await user_svc.ensure_bootstrap_admin(db):
            log.info("bootstrap HR admin account is present")
    yield

    from .database import dispose_engine
    await dispose_engine()


app = FastAPI(title=settings.app_title, lifespan=lifespan)
init_error_handlers(app)

# Import and register routers
from .routers import (  # noqa: E402
    admin_columns, admin_users, auth, changes, columns, custom_data, employees, health,
    important_dates,
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(columns.router)
app.include_router(admin_columns.router)
app.include_router(employees.router)
app.include_router(custom_data.router)
app.include_router(admin_users.router)
app.include_router(important_dates.router)
app.include_router(changes.router)
