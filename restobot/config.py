"""
Configuration management for the restaurant ordering bot.
Loads settings from environment variables with validation.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Path(__file__).parent.parent / "data"

    # Telegram
    telegram_bot_token: str = Field(..., description="Telegram Bot API token")

    # Database
    database_url: Optional[str] = Field(
        default=None,
        description="Database connection URL",
    )

    @property
    def db_url(self) -> str:
        """Explicit DATABASE_URL, else a SQLite file under data_dir."""
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.data_dir / 'restobot.db'}"

    # Restaurant
    restaurant_name: str = Field(default="Milliy Taomlar", description="Shown in greetings")
    website_url: str = Field(default="https://burger-plus.uz", description="Storefront URL")
    support_phone: str = Field(
        default="+998 90 123-45-67", description="Phone shown when something goes wrong"
    )

    # Manager notification
    manager_chat_id: Optional[int] = Field(
        default=None, description="Telegram chat (user or group) receiving new orders"
    )

    # Catalog
    catalog_page_size: int = Field(
        default=20, ge=1, le=20, description="Products per catalog message"
    )

    # Retries for transient database failures
    retry_attempts: int = Field(default=3, ge=1, description="Attempts per inbound event")
    retry_backoff_seconds: float = Field(
        default=0.5, ge=0, description="Backoff step between attempts"
    )

    # Debug
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def orders_export_dir(self) -> Path:
        """Directory for exported order spreadsheets."""
        return self.data_dir / "orders"


# Global settings instance
settings = Settings()
