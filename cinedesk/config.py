from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


FRONTEND_URLS = [
    "http://d2wjw0tm17zr9g.cloudfront.net",
    "https://d2wjw0tm17zr9g.cloudfront.net",
    "https://cine-desk.vercel.app",
    "https://www.cine-desk.vercel.app",
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:3001",
]


class Settings(BaseSettings):
    # App config
    app_name: str = "CineDesk API"
    environment: str = Field(
        "development",
        validation_alias=AliasChoices("environment", "ENVIRONMENT", "NODE_ENV"),
    )
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Database
    database: str = "sqlite:///./cinedesk.db"

    # Client side API base override (development builds only)
    api_base_url: Optional[str] = None

    # CORS
    cors_origins: list[str] = FRONTEND_URLS
    trusted_origin_suffixes: tuple[str, ...] = (".vercel.app",)

    # Request bodies
    body_limit: int = 10 * 1024 * 1024

    # JWT
    jwt_secret: str = "cinedesk-dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 30
    cookie_name: str = "token"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Settings for the running process, read from the environment once"""
    return Settings()
