"""Application configuration management."""
from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    PROJECT_NAME: str = "notify-api"
    API_BASE_PATH: str = Field("", description="Prefix for every notification route")
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )

    AUTH_BACKEND: Literal["firebase", "jwt"] = Field(
        "firebase", description="Identity token verifier used by the access gate"
    )
    SECRET_KEY: Optional[str] = Field(None, description="HS256 secret for the jwt auth backend")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    STORE_BACKEND: Literal["firestore", "sql"] = Field(
        "firestore", description="Document store holding users, registrations and notifications"
    )
    DATABASE_URL: str = Field(
        "sqlite:///./notify.db",
        description="SQLAlchemy database URL for the sql store backend",
    )

    FIREBASE_SERVICE_ACCOUNT_JSON: Optional[str] = Field(
        None, description="Service account JSON; application default credentials when unset"
    )
    FIREBASE_PROJECT_ID: Optional[str] = None
    FCM_ENABLED: bool = True
    PUBLIC_APP_URL: Optional[str] = Field(
        None, description="Web client origin used to build absolute FCM click-through links"
    )

    WEBPUSH_PUBLIC_KEY: Optional[str] = None
    WEBPUSH_PRIVATE_KEY: Optional[str] = None
    WEBPUSH_SUBJECT: str = "mailto:admin@example.com"
    WEBPUSH_TTL_SECONDS: int = Field(24 * 3600, ge=0)
    WEBPUSH_TIMEOUT_SECONDS: float = Field(10.0, gt=0)

    NOTIFICATION_FEED_LIMIT: int = Field(25, ge=1, le=200)

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def webpush_configured(self) -> bool:
        return bool(self.WEBPUSH_PUBLIC_KEY and self.WEBPUSH_PRIVATE_KEY)


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


settings = get_settings()
