"""Configuration management for Lorebook Graph."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LBG_",
    )

    # Graph defaults
    default_spawn_probability: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Probability given to new spawn edges"
    )
    default_global_spawn_chance: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Spawn chance given to new events"
    )

    # Export settings
    export_indent: int = Field(default=2, description="JSON indent for written lorebooks")
    wrap_entries: bool = Field(default=False, description="Write {schemaVersion, entries} envelope")

    # Logging
    log_level: str = Field(default="WARNING")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
