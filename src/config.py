"""Application configuration loaded from environment variables and .env file."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./aetheria.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # AI Provider settings
    AI_PROVIDER: str = "mock"
    AI_API_KEY: Optional[str] = None
    AI_MODEL: Optional[str] = None

    # Narrative token budgets (validated against the provider range)
    NARRATIVE_MAX_TOKENS: int = 2000
    SUMMARY_MAX_TOKENS: int = 500

    # Balance tuning: optional JSON file overriding CombatConfig defaults
    COMBAT_CONFIG_PATH: Optional[str] = None

    # DEV: every encounter spawns a treasure monster
    DEV_FORCE_TREASURE_MONSTER: bool = False


settings = Settings()
