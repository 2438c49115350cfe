"""Runtime configuration.

Values come from the environment (or a local .env file). Names match the
variables the deployed front end and functions already use.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CLUSTER_NAME = "Cluster0"
DEFAULT_DB_NAME = "libretv"
DEFAULT_COLLECTION_NAME = "customer_sites"
DEFAULT_DATABASE_URL = "sqlite:///data/customer_sites.db"
DEFAULT_MONGODB_URI = "mongodb://localhost:27017"

StorageBackend = Literal["sqlite", "data_api", "mongo"]


class Settings(BaseSettings):
    """Service settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="", case_sensitive=False)

    # Auth
    password: SecretStr | None = Field(None, validation_alias="PASSWORD")
    require_timestamp: bool = Field(False, validation_alias="SITES_REQUIRE_TIMESTAMP")
    auth_max_age_seconds: int = Field(600, validation_alias="SITES_AUTH_MAX_AGE")

    # Storage selection
    storage_backend: StorageBackend = Field("sqlite", validation_alias="SITES_STORAGE_BACKEND")

    # Relational store
    database_url: str = Field(DEFAULT_DATABASE_URL, validation_alias="SITES_DATABASE_URL")

    # Document store (managed Data API and direct driver)
    data_api_url: str | None = Field(None, validation_alias="MONGODB_DATA_API_URL")
    data_api_key: SecretStr | None = Field(None, validation_alias="MONGODB_API_KEY")
    cluster_name: str = Field(DEFAULT_CLUSTER_NAME, validation_alias="MONGODB_CLUSTER_NAME")
    mongodb_uri: str = Field(DEFAULT_MONGODB_URI, validation_alias="MONGODB_URI")
    db_name: str = Field(DEFAULT_DB_NAME, validation_alias="MONGODB_DB_NAME")
    collection_name: str = Field(DEFAULT_COLLECTION_NAME, validation_alias="MONGODB_COLLECTION_NAME")

    @field_validator("data_api_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, v):
        if isinstance(v, str):
            v = v.strip().rstrip("/")
            return v or None
        return v

    def password_value(self) -> str | None:
        """Return the shared secret as plain text, or None when unset."""
        if self.password is None:
            return None
        return self.password.get_secret_value() or None

    def data_api_key_value(self) -> str | None:
        if self.data_api_key is None:
            return None
        return self.data_api_key.get_secret_value() or None


@lru_cache
def get_settings() -> Settings:
    """Return process-wide settings (cached)."""
    return Settings()
