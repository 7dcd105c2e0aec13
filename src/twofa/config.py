"""Central configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TWOFA_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Provisioning
    issuer: str = "SalesFlow CRM"

    # Credential material
    secret_bytes: int = Field(default=20, ge=1)
    backup_code_count: int = Field(default=8, ge=1)

    # Encryption of secrets at rest
    master_key: str = ""


settings = Settings()
