"""Configuration management for the mail cache engine.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the MAIL_CACHE_ prefix (e.g., MAIL_CACHE_OLLAMA_HOST).
    """

    model_config = SettingsConfigDict(
        env_prefix="MAIL_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Document store
    store_path: Path = Field(
        default=Path("mail_cache.sqlite3"),
        description="Path to the SQLite file backing the document store",
    )
    messages_collection: str = Field(
        default="mail-cache-messages",
        description="Collection holding one document per cached message",
    )
    index_collection: str = Field(
        default="mail-cache-index",
        description="Collection holding one cache index document per user",
    )
    accounts_collection: str = Field(
        default="mail-cache-users",
        description="Collection holding each user's linked mail accounts",
    )
    context_collection: str = Field(
        default="mail-cache-user-context",
        description="Collection holding each user's known contacts and knowledge notes",
    )

    # Cache behaviour
    inbox_label: str = Field(
        default="INBOX",
        description="Provider label whose messages make up the active inbox",
    )
    enrichment_batch_size: int = Field(
        default=5,
        ge=1,
        description="Number of messages enriched concurrently per batch",
    )
    id_user_prefix_length: int | None = Field(
        default=None,
        ge=1,
        description=(
            "Number of user ID characters embedded in composite message IDs. "
            "None embeds the full user ID; 8 reproduces the legacy key format."
        ),
    )
    default_search_limit: int = Field(
        default=100,
        ge=1,
        description="Default maximum number of results for cache queries",
    )
    body_char_limit: int = Field(
        default=15000,
        description="Maximum number of body characters sent to the language model",
    )

    # Ollama Configuration
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama API host URL",
    )
    ollama_model: str = Field(
        default="llama3.1:8b",
        description="Ollama model used for message enrichment",
    )
    ollama_timeout: int = Field(
        default=120,
        description="Timeout for Ollama API requests in seconds",
    )

    # Gmail Configuration
    gmail_client_id: str | None = Field(
        default=None,
        description="OAuth client ID used together with each account's refresh token",
    )
    gmail_client_secret: str | None = Field(
        default=None,
        description="OAuth client secret used together with each account's refresh token",
    )
    gmail_token_uri: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="OAuth token endpoint",
    )
    gmail_scope: str = Field(
        default="https://www.googleapis.com/auth/gmail.modify",
        description=(
            "OAuth scope used for Gmail access. gmail.modify is needed for "
            "archive, trash and junk actions."
        ),
    )
    gmail_page_size: int = Field(
        default=400,
        description="Page size used when listing message IDs by label",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
