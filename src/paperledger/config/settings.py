"""Application settings and configuration."""

from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory based on platform."""
    return Path.home() / ".paperledger"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PAPERLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Paper Trading Ledger"
    app_version: str = "0.1.0"

    # Data directory (all app data lives here)
    data_dir: Optional[Path] = None

    # Database URL (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None

    # Namespace inside the durable store; one profile per browser/user
    profile_id: str = "default"

    log_level: str = "INFO"
    # Optional log file; relative paths live in the data directory
    log_file: Optional[Path] = None

    # Account defaults
    default_starting_balance: Decimal = Decimal("100000")
    default_goal_target: Decimal = Decimal("20000")
    starter_tickers: list[str] = ["AAPL", "SPY", "GLD"]

    # Seconds an order preview stays executable
    preview_ttl_seconds: int = 60

    # Market data settings
    price_provider: str = "stub"
    market_data_cache_ttl_seconds: int = 60
    quote_fetch_timeout_seconds: float = 10.0

    # Milliseconds a SQLite writer waits for another tab's write lock
    sqlite_busy_timeout_ms: int = 5000

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "paperledger.db"
        return f"sqlite:///{db_path}"

    def get_log_path(self) -> Optional[Path]:
        """Resolve log_file against the data directory; None when unset."""
        if self.log_file is None:
            return None
        if self.log_file.is_absolute():
            return self.log_file
        return self.get_data_dir() / self.log_file


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
