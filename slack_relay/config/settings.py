"""
Application configuration settings using Pydantic Settings.

This module provides centralized configuration management with
environment variable support, validation, and per-account overrides
for the Slack workspaces the relay posts to.
"""

from enum import Enum
from functools import lru_cache
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from slack_relay.config.constants import (
    SLACK_TEXT_LIMIT,
    LINEAR_API_URL,
    WORK_OBJECT_DEFAULT_LIMIT,
    ChunkMode,
    MarkdownTableMode,
)


class Environment(str, Enum):
    """Application environment options."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SlackAccountConfig(BaseModel):
    """Per-account overrides. Unset values fall back to the global settings."""

    bot_token: Optional[str] = None
    text_chunk_limit: Optional[int] = Field(default=None, ge=1)
    chunk_mode: Optional[ChunkMode] = None
    markdown_table_mode: Optional[MarkdownTableMode] = None
    media_max_mb: Optional[float] = Field(default=None, gt=0)


class ResolvedSlackAccount(BaseModel):
    """Effective configuration for one Slack account."""

    account_id: str
    bot_token: Optional[str] = None
    bot_token_source: str = "none"  # config, env, none
    text_chunk_limit: int = SLACK_TEXT_LIMIT
    chunk_mode: ChunkMode = ChunkMode.LENGTH
    markdown_table_mode: MarkdownTableMode = MarkdownTableMode.SLACK_BLOCKS
    media_max_mb: Optional[float] = None

    @property
    def media_max_bytes(self) -> Optional[int]:
        if self.media_max_mb is None:
            return None
        return int(self.media_max_mb * 1024 * 1024)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        validate_assignment=True,
        extra="ignore",
    )

    # Environment Configuration
    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment"
    )

    # Logging Configuration
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level"
    )
    LOG_FORMAT: str = Field(
        default="json",
        pattern=r"^(json|text)$",
        description="Log output format"
    )

    # Slack Configuration
    SLACK_BOT_TOKEN: Optional[str] = Field(
        default=None,
        description="Bot token for the default account"
    )
    SLACK_DEFAULT_ACCOUNT: str = Field(
        default="default",
        min_length=1,
        description="Account used when a send does not name one"
    )
    SLACK_ACCOUNTS: Dict[str, SlackAccountConfig] = Field(
        default_factory=dict,
        description="Per-account overrides keyed by account id"
    )
    SLACK_TEXT_CHUNK_LIMIT: int = Field(
        default=SLACK_TEXT_LIMIT,
        ge=1,
        description="Maximum characters per outgoing text chunk"
    )
    SLACK_CHUNK_MODE: ChunkMode = Field(
        default=ChunkMode.LENGTH,
        description="Pre-split strategy for outgoing text"
    )
    SLACK_MARKDOWN_TABLE_MODE: MarkdownTableMode = Field(
        default=MarkdownTableMode.SLACK_BLOCKS,
        description="Rendering of markdown pipe tables"
    )
    SLACK_MEDIA_MAX_MB: Optional[float] = Field(
        default=None,
        gt=0,
        description="Maximum media size for uploads in MB"
    )
    SLACK_TIMEOUT_SECONDS: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Slack Web API client timeout"
    )

    # Linear Work Objects
    LINEAR_API_KEY: Optional[str] = Field(
        default=None,
        description="Linear API key; enables Work Object enrichment"
    )
    LINEAR_API_URL: str = Field(
        default=LINEAR_API_URL,
        description="Linear GraphQL endpoint"
    )
    LINEAR_CACHE_TTL_SECONDS: float = Field(
        default=60,
        ge=0,
        description="Issue cache TTL in seconds"
    )
    WORK_OBJECT_LIMIT: int = Field(
        default=WORK_OBJECT_DEFAULT_LIMIT,
        ge=1,
        le=50,
        description="Maximum tickets looked up per message"
    )

    @field_validator("SLACK_BOT_TOKEN", "LINEAR_API_KEY")
    @classmethod
    def blank_secret_to_none(cls, v):
        """Treat whitespace-only secrets as unset."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def validate_environment_consistency(self):
        """Validate environment-specific consistency."""
        if self.is_production() and self.LOG_FORMAT != "json":
            raise ValueError("Production logging must use the json format")
        return self

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == Environment.PRODUCTION


def resolve_slack_account(
        settings: Settings,
        account_id: Optional[str] = None
) -> ResolvedSlackAccount:
    """
    Merge global settings with the overrides for one account.

    The env token only backs the default account; named accounts must carry
    their own ``bot_token``.
    """
    resolved_id = (account_id or "").strip() or settings.SLACK_DEFAULT_ACCOUNT
    account = settings.SLACK_ACCOUNTS.get(resolved_id) or SlackAccountConfig()

    config_token = (account.bot_token or "").strip() or None
    if config_token:
        bot_token, source = config_token, "config"
    elif resolved_id == settings.SLACK_DEFAULT_ACCOUNT and settings.SLACK_BOT_TOKEN:
        bot_token, source = settings.SLACK_BOT_TOKEN, "env"
    else:
        bot_token, source = None, "none"

    return ResolvedSlackAccount(
        account_id=resolved_id,
        bot_token=bot_token,
        bot_token_source=source,
        text_chunk_limit=account.text_chunk_limit or settings.SLACK_TEXT_CHUNK_LIMIT,
        chunk_mode=account.chunk_mode or settings.SLACK_CHUNK_MODE,
        markdown_table_mode=account.markdown_table_mode or settings.SLACK_MARKDOWN_TABLE_MODE,
        media_max_mb=account.media_max_mb or settings.SLACK_MEDIA_MAX_MB,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings instance with caching.

    Returns:
        Settings instance loaded from environment
    """
    return Settings()
