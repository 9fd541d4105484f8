"""
Application Settings
Reads from environment variables / .env and decides which record store backs the app
"""
import os
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

# Default location of the local fallback store
DATA_DIR = Path(__file__).parent.parent / "data"


class AppSettings(BaseSettings):
    """Interior Manager configuration - environment variables override defaults."""

    # Direct DATABASE_URL support (for deployment)
    database_url_direct: str = ""

    # Database Configuration
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "postgres"

    # SSL/TLS Configuration
    postgres_sslmode: str = "disable"

    # Connection Pool Configuration
    pool_size: int = 10
    max_overflow: int = 5
    pool_pre_ping: bool = True
    pool_recycle: int = 1800

    # Record store selection: auto | remote | local
    record_store: str = "auto"
    local_data_dir: str = str(DATA_DIR)

    # Authentication
    secret_key: str = "your-secret-key-change-in-production"
    access_token_expire_minutes: int = 60 * 24

    # Inventory
    low_stock_threshold: int = 20

    # Currency
    exchange_rate_api_url: str = "https://open.er-api.com/v6/latest/USD"
    exchange_rate_refresh_hours: int = 24
    fallback_inr_rate: float = 83.0

    cors_origins: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def direct_url(self) -> str:
        return os.environ.get("DATABASE_URL", self.database_url_direct)

    @property
    def database_url(self) -> str:
        """Construct the database URL from DATABASE_URL or the postgres_* variables."""
        direct_url = self.direct_url
        if direct_url:
            if direct_url.startswith("postgres://"):
                direct_url = direct_url.replace("postgres://", "postgresql+asyncpg://", 1)
            elif direct_url.startswith("postgresql://") and "+asyncpg" not in direct_url:
                direct_url = direct_url.replace("postgresql://", "postgresql+asyncpg://", 1)
            direct_url = direct_url.replace("sslmode=require", "ssl=require")
            direct_url = direct_url.replace("sslmode=disable", "ssl=disable")
            return direct_url

        ssl_param = f"?ssl={self.postgres_sslmode}" if self.postgres_sslmode != "disable" else ""
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
            f"{ssl_param}"
        )

    @property
    def remote_configured(self) -> bool:
        return bool(self.direct_url or self.postgres_password)

    @property
    def store_mode(self) -> str:
        """Resolve `auto` to `remote` when a database is configured, otherwise `local`."""
        mode = self.record_store.strip().lower()
        if mode in ("remote", "local"):
            return mode
        return "remote" if self.remote_configured else "local"

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = AppSettings()
