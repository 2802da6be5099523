# File: collab_todo/core/config.py | Version: 1.0 | Title: Central App Settings (Pydantic v2)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- Database ---
    DATABASE_URL: str = "sqlite:///./collab_todo.db"

    # --- Security / JWT ---
    SECRET_KEY: str = "CHANGE_ME_FOR_DEV_ONLY"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # --- API behavior toggles ---
    ENABLE_STD_ERRORS: bool = False  # {"error": {"code", "message"}} envelope

    # --- Logging / observability ---
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1
    SENTRY_PROFILES_SAMPLE_RATE: float = 0.0

    # --- Lists ---
    DEFAULT_LIST_COLOR: str = "#6366f1"
    DEFAULT_LIST_ICON: str = "list"
    DEFAULT_LIST_TITLE: str = "My Tasks"

    # --- Presence ---
    # Rows older than this are treated as gone by readers; nothing prunes them here.
    PRESENCE_STALE_SECONDS: int = 60
    PRESENCE_HEARTBEAT_SECONDS: int = 30

    # --- Geolocation ---
    PROXIMITY_RADIUS_METERS: float = 200.0

    # --- Attachments ---
    ATTACHMENTS_DIR: str = "./attachments"
    ATTACHMENTS_BASE_URL: str = "/attachments"
    ATTACHMENT_MAX_BYTES: int = 10 * 1024 * 1024

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
