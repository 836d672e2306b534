import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./expenses.db"
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@lru_cache
def get_settings() -> Settings:
    """Read settings from the environment (and .env) once per process."""
    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        app_env=os.getenv("APP_ENV", Settings.app_env),
        log_level=os.getenv("LOG_LEVEL", Settings.log_level),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "*")),
    )
