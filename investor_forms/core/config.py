"""
Application configuration module.

Loads settings from environment variables (or .env file) using pydantic-settings.
Remote endpoints and session limits come from environment so the same build
can point at staging or production backends.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Investor Forms service.

    Environment variables are loaded automatically from .env if present.
    """

    PROJECT_NAME: str = "Investor Forms Service"
    API_V1_STR: str = "/api/v1"

    # ── Remote investor API ──
    INVESTOR_API_BASE_URL: str = "https://backendv3-wmen.onrender.com"
    FILE_UPLOAD_URL: str = "https://backendv3-wmen.onrender.com/api/fileUpload"
    HTTP_TIMEOUT: float = 30.0  # seconds per remote call

    # Where the browser is sent after a successful create.
    LISTING_PATH: str = "/investors"

    # ── Uploads ──
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # ── Form sessions ──
    # Idle sessions are discarded after FORM_SESSION_TTL seconds; the oldest
    # session is evicted once FORM_SESSION_MAX are open.
    FORM_SESSION_TTL: float = 3600.0
    FORM_SESSION_MAX: int = 1000

    # ── CORS ──
    # Comma-separated list of allowed origins. "*" in dev, restrict in prod.
    CORS_ORIGINS: str = "*"

    # ── Logging ──
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    LOG_FILE_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_FILE_BACKUP_COUNT: int = 5

    @field_validator("INVESTOR_API_BASE_URL", "FILE_UPLOAD_URL")
    @classmethod
    def _require_http_url(cls, v: str) -> str:
        """Reject anything that is not an absolute http(s) URL.

        A typo here would otherwise only surface as a network error on the
        first submit.
        """
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"expected an http(s) URL, got {v!r}")
        return v.rstrip("/")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
