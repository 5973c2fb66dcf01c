from __future__ import annotations

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_SERVICE_ROLE_KEY: str
    APP_ENV: str = "local"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
    )

    # Clerk session tokens are RS256 JWTs; the PEM comes from the Clerk dashboard
    CLERK_JWT_PUBLIC_KEY: str = ""
    CLERK_JWT_ISSUER: str | None = None
    CLERK_WEBHOOK_SECRET: str = ""

    LEMON_SQUEEZY_WEBHOOK_SECRET: str = ""
    LEMON_SQUEEZY_CHECKOUT_URL: str = ""

    FREE_LANGUAGES: list[str] = Field(default_factory=lambda: ["javascript"])

    PISTON_API_URL: str = "https://emkc.org/api/v2/piston"
    PISTON_TIMEOUT_SECONDS: float = 15.0


settings = Settings()
