"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./eventreg.db"
    CORS_ORIGINS: str = "http://localhost:5173"
    GDPR_RETENTION_DAYS: int = 28
    CRON_SECRET: str = ""
    APP_TIMEZONE: str = "Europe/Berlin"  # IANA tz for naive event dates
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
