"""
QueryPilot - Configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    APP_NAME: str = "QueryPilot"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"

    # Application database (users, connections, permissions, audit)
    DATABASE_URL: str = "sqlite:///./data/querypilot.db"

    # Security
    SECRET_KEY: str = "your-super-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # Fernet key for stored connection credentials; generated into KEY_FILE when empty
    ENCRYPTION_KEY: str = ""
    ENCRYPTION_KEY_FILE: str = "./data/encryption.key"

    # Seed admin account, created at startup when both are set
    BOOTSTRAP_ADMIN_USERNAME: Optional[str] = None
    BOOTSTRAP_ADMIN_PASSWORD: Optional[str] = None

    # AI/LLM
    OLLAMA_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3"
    AI_ENABLED: bool = True
    AI_TIMEOUT_SECONDS: float = 60.0

    # Target databases
    QUERY_ROW_LIMIT: int = 100
    TARGET_POOL_SIZE: int = 5
    TARGET_CONNECT_TIMEOUT: int = 10

    # CORS
    CORS_ORIGINS: list = ["http://localhost:5173", "http://localhost:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
