"""Library and adapter configuration."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


class Settings(BaseSettings):
    """Environment-driven configuration for the mesh cache and the HTTP adapter."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    static_dir: str = Field(str(DEFAULT_STATIC_DIR), validation_alias=AliasChoices("STATIC_DIR", "static_dir"))
    mesh_cache_size: int = Field(32, ge=1, validation_alias=AliasChoices("MESH_CACHE_SIZE", "mesh_cache_size"))
    cache_key_digits: int = Field(
        6, ge=0, validation_alias=AliasChoices("CACHE_KEY_DIGITS", "cache_key_digits")
    )
    enable_mesh_transform: bool = Field(
        True, validation_alias=AliasChoices("ENABLE_MESH_TRANSFORM", "enable_mesh_transform")
    )
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings."""

    return Settings()
