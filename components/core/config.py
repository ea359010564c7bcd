from datetime import date
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database settings
    DB_URL: Optional[str] = None  # Optional full DB URL
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_NAME: str = "plans"

    # API settings
    API_VERSION: str = "v1"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Plan defaults
    DEFAULT_TIME_ZONE: str = "UTC"
    DEFAULT_CURRENCY: str = "USD"
    DEFAULT_LANGUAGE: str = "en"
    DEFAULT_PERIOD_TYPE: str = "MONTHLY"
    DEFAULT_PERIOD_ANCHOR_DATE: date = date(2025, 1, 6)  # a Monday

    # Rollover
    ROLLOVER_MAX_PERIODS: int = 36
    ROLLOVER_SCHEDULE_ENABLED: bool = False
    ROLLOVER_CRON_HOUR: int = 0
    ROLLOVER_CRON_MINUTE: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        validate_default = True

    @property
    def async_db_url(self) -> str:
        """Get asynchronous database URL."""
        if self.DB_URL:
            return self.DB_URL
        return f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"


@lru_cache()
def get_settings() -> Settings:
    """
    Returns cached Settings instance to avoid reloading .env file on every access
    """
    return Settings()
