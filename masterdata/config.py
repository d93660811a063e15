"""Masterdata service configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class MasterdataSettings(BaseSettings):
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///masterdata.db"
    echo_sql: bool = False
    app_title: str = "HR Masterdata"
    log_level: str = "INFO"

    auth_secret: str = "dev-secret-change-me"
    auth_cookie_name: str = "md_session"
    auth_session_ttl_seconds: int = 86400
    auth_bootstrap_email: str = ""
    auth_bootstrap_password: str = ""

    # CSV import limits
    import_max_bytes: int = 5 * 1024 * 1024
    import_max_rows: int = 5000

    model_config = {"env_prefix": "MASTERDATA_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def alembic_ini(self) -> Path:
        return self.base_dir / "alembic.ini"

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = MasterdataSettings()
