"""Application configuration."""
from functools import lru_cache
from pydantic_settings import BaseSettings

REQUIRED_VARS = ("DATABASE_URL", "DATABASE_KEY")
OPTIONAL_VARS = ("ANTHROPIC_API_KEY",)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database
    database_url: str
    database_key: str

    # Optional AI features (classification, discovery helpers)
    anthropic_api_key: str | None = None

    # Rate limiting (per client, fixed window)
    rate_limit_requests: int = 60
    rate_limit_window_seconds: int = 60

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    @property
    def has_ai_features(self) -> bool:
        """AI-backed features are only enabled when a key is configured."""
        return bool(self.anthropic_api_key)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


def check_environment(settings: Settings) -> dict:
    """Report missing required values and warnings for optional ones."""
    values = {
        "DATABASE_URL": settings.database_url,
        "DATABASE_KEY": settings.database_key,
        "ANTHROPIC_API_KEY": settings.anthropic_api_key,
    }
    missing = [name for name in REQUIRED_VARS if not values[name]]
    warnings = [
        f"{name} not set - some features may be limited"
        for name in OPTIONAL_VARS
        if not values[name]
    ]
    return {"valid": not missing, "missing": missing, "warnings": warnings}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
