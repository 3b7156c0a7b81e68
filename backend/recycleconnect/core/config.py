"""
Application configuration and environment settings.
"""
from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Union
from recycleconnect.models.listing import ReservationPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "RecycleConnect"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Storage
    STORAGE_BACKEND: str = "memory"  # Options: "memory" (lost on restart), "sql"
    DATABASE_URL: str = "sqlite:///./recycleconnect.db"
    DB_ECHO: bool = False

    # Session cookie signing
    SECRET_KEY: str = "recycleconnect-secret-change-in-production"
    ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "recycleconnect.sid"
    SESSION_EXPIRE_HOURS: int = 24
    SESSION_COOKIE_SECURE: bool = False

    # CORS
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000", "http://localhost:5000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Accounts
    PASSWORD_MIN_LENGTH: int = 8

    # Marketplace rules
    LISTING_RESERVATION_POLICY: ReservationPolicy = ReservationPolicy.TRANSPORTER_ONLY
    SINGLE_ACTIVE_TRANSACTION: bool = True  # Reject a second pending transaction on one listing

    @field_validator("STORAGE_BACKEND", "LISTING_RESERVATION_POLICY", mode="before")
    @classmethod
    def normalize_choice(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
