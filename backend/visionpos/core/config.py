import secrets
from typing import Literal

from pydantic_settings import BaseSettings


def _generate_secret() -> str:
    """Generate a random secret key if none is provided via env."""
    return secrets.token_urlsafe(64)


class Settings(BaseSettings):
    PROJECT_NAME: str = "VisionPOS"
    VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"
    STORAGE_BACKEND: Literal["memory", "sql"] = "memory"
    DATABASE_URL: str = "sqlite+aiosqlite:///./visionpos.db"
    SECRET_KEY: str = _generate_secret()  # MUST be set via .env in production
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    LOG_LEVEL: str = "INFO"
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"
    DEFAULT_ADMIN_EMAIL: str = "admin@visionpos.app"
    RECOGNIZER_SEED: int | None = None

    class Config:
        env_file = ".env"


settings = Settings()
