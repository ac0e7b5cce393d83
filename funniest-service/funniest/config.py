from __future__ import annotations

import sys
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings


_DEFAULT_JWT_SECRET = "change-me-in-production-use-long-random-string"


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./funniest.db"
    log_sql: bool = False

    # Server
    environment: str = "development"
    log_level: str = "info"
    log_format: str = "json"
    allow_cors_origins: List[str] = ["*"]

    # Session
    jwt_secret: str = _DEFAULT_JWT_SECRET
    jwt_expire_minutes: int = 10080  # 7 days
    session_cookie_name: str = "funniest_session"

    # Identity provider (hosted auth, PKCE code exchange)
    auth_provider_url: str = "http://localhost:54321"
    auth_provider_anon_key: str = ""
    auth_provider_timeout_seconds: float = 10.0
    allowed_email_domains: List[str] = ["columbia.edu", "barnard.edu"]

    # Rate limiting
    vote_rate_limit: str = "120/minute"
    callback_rate_limit: str = "10/minute"

    # Leaderboard
    leaderboard_top_n: int = 67
    leaderboard_page_size: int = 12
    leaderboard_image_limit: int = 1000
    leaderboard_caption_limit: int = 5000

    # Demo content
    seed_demo_content: bool = False
    seed_path: str = ""  # empty = bundled seed_content.yml

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, v: str, info) -> str:
        """Refuse to start in production with the default JWT secret."""
        env = info.data.get("environment", "development")
        if env != "development" and v == _DEFAULT_JWT_SECRET:
            print(
                "\nFATAL: FUNNIEST_JWT_SECRET is set to the default value.\n"
                "   Set FUNNIEST_JWT_SECRET to a strong random string before "
                "running in production.\n",
                file=sys.stderr,
            )
            raise ValueError(
                "JWT secret must be changed from default in non-development environments. "
                "Set FUNNIEST_JWT_SECRET env var."
            )
        return v

    class Config:
        env_prefix = "FUNNIEST_"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# Module-level singleton for convenience
settings = get_settings()
