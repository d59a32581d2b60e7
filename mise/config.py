from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MISE_", env_file=".env", extra="ignore"
    )

    env: Env = Env.local
    database_url: str = "sqlite:///./mise.db"
    log_level: str = "INFO"

    session_secret: str = "mise-dev-secret-change-me"
    session_https_only: bool = False
    session_max_age: int = 7 * 24 * 60 * 60
    cors_origins: List[str] = ["*"]

    # Created on startup when both are set and the account does not exist yet
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None

    import_timeout: float = 15.0
    import_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )
    import_max_bytes: int = 5 * 1024 * 1024

    haccp_critical_margin: float = 3.0
    default_lang: str = "de"


@lru_cache
def get_settings() -> Settings:
    return Settings()
