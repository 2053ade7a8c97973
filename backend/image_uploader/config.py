"""
Application configuration using Pydantic Settings.
All environment variables are loaded here.

Storage credentials are required: the authorization service cannot issue
URLs without them, so a missing value aborts startup instead of surfacing
later as a runtime error.
"""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Authorization service settings loaded from environment variables."""

    # Cloudflare R2 / S3-compatible storage
    r2_endpoint: str  # e.g., https://<account_id>.r2.cloudflarestorage.com
    r2_access_key: str  # R2 access key ID
    r2_secret_key: str  # R2 secret access key
    r2_bucket: str  # Target bucket name
    r2_region: str = "auto"  # R2 uses "auto" for region
    r2_presign_expiration: int = 3600  # Presigned URL expiration in seconds (1 hour)

    # Environment
    environment: str = "dev"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


class ClientSettings(BaseSettings):
    """Upload client settings, loaded from UPLOADER_* environment variables."""

    api_url: str = "http://localhost:8000/api"
    max_files: int = 50  # Per drop batch
    max_file_size: int = 100 * 1024 * 1024  # 100 MiB per file
    chunk_size: int = 64 * 1024  # Bytes per progress event
    timeout: float = 60.0  # Seconds, per HTTP operation

    model_config = SettingsConfigDict(
        env_prefix="UPLOADER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Build the process-wide settings once.

    Raises:
        pydantic.ValidationError: if required storage configuration is missing
    """
    return Settings()
