"""
Client configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
import os


class ClientSettings(BaseSettings):
    """Client settings, read from QUERYPILOT_* environment variables."""

    BASE_URL: str = "http://localhost:8000/api/v1"
    SESSION_FILE: str = os.path.join(os.path.expanduser("~"), ".querypilot", "session.json")
    TIMEOUT_SECONDS: float = 30.0
    LOGIN_PATH: str = "/login"

    class Config:
        env_prefix = "QUERYPILOT_"
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_client_settings() -> ClientSettings:
    """Get cached client settings instance."""
    return ClientSettings()
