# app/core/config.py
import os
from typing import ClassVar
from pydantic import BaseModel, Field


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}

def _default_database_url() -> str:
    url = os.getenv("DATABASE_URL", "").strip()
    if url:
        return url
    os.makedirs(Settings.DATA_DIR, exist_ok=True)
    return f"sqlite:///{os.path.join(Settings.DATA_DIR, 'learnlite.db')}"

class Settings(BaseModel):
    # Constant, not a pydantic field
    DATA_DIR: ClassVar[str] = os.path.abspath(os.getenv("DATA_DIR", "./data"))

    APP_NAME: str = Field(default_factory=lambda: os.getenv("APP_NAME", "learnlite"))
    VERSION: str = "1.2.0"

    DATABASE_URL: str = Field(default_factory=_default_database_url)
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(default_factory=lambda: _env_bool("RUN_MIGRATIONS_ON_STARTUP", "true"))

    SECRET_KEY: str = Field(default_factory=lambda: os.getenv("SECRET_KEY", "CHANGE_ME_SUPER_SECRET"))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")))

    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    LOG_JSON: bool = Field(default_factory=lambda: _env_bool("LOG_JSON"))

    NOTIFICATIONS_ENABLED: bool = Field(default_factory=lambda: _env_bool("NOTIFICATIONS_ENABLED"))
    CERT_CODE_MAX_ATTEMPTS: int = Field(default_factory=lambda: int(os.getenv("CERT_CODE_MAX_ATTEMPTS", "10")))

settings = Settings()
