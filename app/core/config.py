# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres or SQLite connection string)
      - JWT_SECRET (HS256 signing secret shared with the auth issuer)

    Optional:
      - ENVIRONMENT ("development" exposes exception text on 500 responses)
      - PAYMENT_SUCCESS_RATE / PAYMENT_DELAY_SECONDS (payment simulator)
    """

    PROJECT_NAME: str = "Storefront API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "production"

    # DB config
    DATABASE_URL: str

    # JWT verification (backend-side)
    JWT_SECRET: str
    JWT_ALG: str = "HS256"

    # Payment simulator
    PAYMENT_SUCCESS_RATE: float = 0.8
    PAYMENT_DELAY_SECONDS: float = 2.0

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
