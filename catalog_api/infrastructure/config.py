"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://catalog:catalog_dev_password@db:5432/catalog"

    # Authentication
    admin_api_key: str = "dev-admin-key-change-in-production"

    # Blob storage
    blob_storage_url: str = "http://blob-storage:9000"
    blob_storage_token: str = "dev-blob-token-change-in-production"
    blob_storage_timeout: float = 30.0

    # Listing
    default_page_limit: int = 10

    # Uploads
    max_upload_files: int = 10

    # Logging
    log_level: str = "INFO"

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
