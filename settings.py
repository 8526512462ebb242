import json
from typing import Any, List

from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_list(v: Any) -> List[str]:
    """Parse a list setting from a JSON array or a comma-separated string"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in v.split(',') if item.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # Application
    APP_NAME: str = "Fire Truck Checklist"
    ENVIRONMENT: str = "development"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "fire_checklist"
    DATABASE_TIMEOUT_MS: int = 5000

    # Sessions
    SESSION_COOKIE_NAME: str = "__session"
    SESSION_MAX_AGE_DAYS: int = 7

    # Printed form
    COMPANY_NAME: str = ""
    FORM_TITLE: str = ""
    VEHICLE_REGISTRATIONS: str = "WR 1838-11"

    CORS_ORIGINS: str = ""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def vehicle_registrations(self) -> List[str]:
        return parse_list(self.VEHICLE_REGISTRATIONS)

    @property
    def cors_origins(self) -> List[str]:
        return parse_list(self.CORS_ORIGINS)

    @property
    def session_max_age_seconds(self) -> int:
        return self.SESSION_MAX_AGE_DAYS * 24 * 60 * 60


settings = Settings()
