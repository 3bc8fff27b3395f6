"""Configuration settings for the catalog engine."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_base_url: str = "http://localhost:5000/api"
    access_token: str | None = None
    request_timeout: float = 30.0

    # Local storage (favorites)
    database_url: str = "sqlite:///estate_catalog.db"
    favorites_key: str = "favorite_properties"

    # Listings with neither sale nor rent selected:
    # "owner" shows them to their creator/agent/owner, "private" hides them everywhere
    draft_visibility: Literal["owner", "private"] = "owner"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_prefix": "ESTATE_"}


settings = Settings()
