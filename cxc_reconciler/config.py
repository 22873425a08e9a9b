"""
Configuration management using Pydantic Settings.
All parameters are loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


import os

APP_BASE_PATH = Path(os.environ.get(
    "CXC_BASE_PATH",
    os.environ.get("APP_BASE_PATH", Path.home() / "Documents" / "cxc")
))
ENV_FILE_PATH = APP_BASE_PATH / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: str = Field(default="development")
    app_debug: bool = Field(default=False)
    app_log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000"]
    )

    # Ledger (entradas contables) service
    ledger_api_url: str = Field(
        default="http://localhost:3001/api/public/entradas-contables"
    )
    ledger_api_key: str = Field(default="")

    # Transactions backend
    transactions_api_url: str = Field(
        default="https://localhost:7238/api/Transacciones"
    )
    transactions_api_key: str = Field(default="")

    # Secondary accounting-entries API
    entries_api_url: str = Field(
        default="http://localhost:3001/api/public/entradas-contables"
    )
    cxc_api_key: Optional[str] = Field(default=None)
    cuenta_cxc: str = Field(default="1101")
    cuenta_contra: str = Field(default="4101")

    # HTTP behaviour
    request_timeout_seconds: float = Field(default=10.0)
    verify_ssl: bool = Field(default=True)

    # Consolidation parameters
    cxc_account_id: int = Field(default=8)
    auxiliary_id: int = Field(default=7)
    auxiliary_name: str = Field(default="COMPRAS")
    include_auxiliary_in_post: bool = Field(default=True)
    amount_tolerance: float = Field(default=0.01)
    reload_delay_seconds: float = Field(default=1.0)
    default_date_from: str = Field(default="2020-01-01")
    default_date_to: str = Field(default="2030-12-31")

    # Storage
    log_dir: Optional[Path] = Field(default=None)
    reports_dir: Path = Field(default=Path("./data/reports"))

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
