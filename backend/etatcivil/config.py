"""
Application configuration using Pydantic Settings.
All config is loaded from environment variables / .env file.
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "etatcivil-calendrier"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    TIMEZONE: str = "Europe/Paris"

    # ── Backend API ──────────────────────────────────────
    API_BASE_URL: str = "http://localhost:3000"
    API_TIMEOUT: int = 15  # HTTP timeout in seconds
    LOGIN_URL: str = "/login.html"

    # ── Credentials ──────────────────────────────────────
    TOKEN_FILE: str = ".etatcivil/token.json"  # persisted bearer token

    # ── Security (reference backend) ─────────────────────
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 1440  # 24 hours

    # ── Calendar ─────────────────────────────────────────
    REFRESH_INTERVAL_MINUTES: int = 5
    SEARCH_DEBOUNCE_MS: int = 300
    NOTIFICATION_TIMEOUT_SECONDS: int = 10  # desktop notification auto-dismiss
    TOAST_TIMEOUT_SECONDS: int = 5

    # ── PDF ──────────────────────────────────────────────
    PDF_DOWNLOAD_DIR: str = "downloads"
    PDF_OFFLOAD: bool = False  # fetch in a worker thread

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance (singleton)."""
    return Settings()
