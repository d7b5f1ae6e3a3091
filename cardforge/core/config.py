"""Application configuration from environment."""
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "CardForge"
    debug: bool = False
    log_level: str = "INFO"

    # Database (async driver; Alembic converts to a sync url)
    database_url: str = "sqlite+aiosqlite:///./cardforge.db"

    # Identity provider: HS256 shared secret, or a PEM public key for RS256
    auth_jwt_secret: str = "change-me-in-production-use-env"
    auth_public_key: str | None = None
    auth_algorithm: str = "HS256"
    auth_issuer: str | None = None
    auth_audience: str | None = None
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Browser pages keep the bearer token in a cookie
    auth_cookie_name: str = "cf_auth"
    auth_cookie_max_age: int = 60 * 60 * 24 * 7  # 7 days

    # LLM completion API
    groq_api_key: str | None = None
    llm_model: str = "llama-3.3-70b-versatile"
    llm_max_attempts: int = 1

    @property
    def issues_local_tokens(self) -> bool:
        """Local accounts sign with the shared secret, so only HS* without a public key."""
        return not self.auth_public_key and self.auth_algorithm.upper().startswith("HS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()


# Package dir holding templates/ and static/
BASE_DIR = Path(__file__).resolve().parent.parent
