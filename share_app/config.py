from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Application
    app_name: str = "Ephemeral Share"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Origin of the front-end that serves the /f/{id} and /t/{id} share pages.
    # Unset means responses carry no shareUrl.
    frontend_url: Optional[str] = None

    # Metadata store
    metadata_backend: str = "sql"  # Options: "sql", "redis", "memory"
    database_url: str = "sqlite:///./share_store.db"
    redis_url: str = "redis://localhost:6379/0"

    # Blob store
    blob_backend: str = "local"  # Options: "local", "memory"
    blob_root: str = "./blobs"

    # Limits
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    max_text_size: int = 1024 * 1024  # 1MB (characters)

    # Identifier generation
    short_code_length: int = 6
    content_id_length: int = 16
    max_retries: int = 10

    # Link analytics
    analytics_retention_days: int = 30

    # Admin
    admin_password: str = "admin-password-change-in-production"
    admin_default_page_limit: int = 50
    admin_max_page_limit: int = 100

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
