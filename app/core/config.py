"""Application configuration using Pydantic BaseSettings."""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_QUERY = "小红书2026春夏流行趋势+热门风格解析+社媒人群画像数据分析+流行单品色彩和面料趋势"


def _load_env_file() -> None:
    """Load .env with fallback encodings to avoid Unicode errors."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    for encoding in ("utf-8", "utf-8-sig", "gbk"):
        try:
            load_dotenv(dotenv_path=env_path, encoding=encoding, override=False)
            return
        except UnicodeDecodeError:
            continue
    logger.warning("Failed to decode .env; using process env vars only.")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "RED Insight Engine"
    app_version: str = "1.0.0"
    app_env: str = "dev"  # Environment: dev, test, prod

    # Gemini settings (the single service credential)
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "google_api_key", "api_key"),
    )
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_text_model: str = "gemini-2.5-flash"
    gemini_image_model: str = "gemini-2.5-flash-image"
    gemini_timeout_seconds: float | None = None  # None: wait indefinitely
    use_mock_gemini: bool = False  # Canned responses, no network (local demos)

    # Dashboard settings
    default_query: str = DEFAULT_QUERY
    persona_image_aspect_ratio: str = "4:3"

    # Logging settings
    log_level: str = "info"  # debug, info, warning, error
    log_dir: str = "logs"
    log_backup_count: int = 14

    # Debug settings
    debug: bool = False  # Enable debug mode (DEBUG=true in .env)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields from .env


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


# Load .env file on module import
_load_env_file()
