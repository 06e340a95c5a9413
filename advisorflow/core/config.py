"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class SelfReviewPolicy(str, Enum):
    """What happens when a reviewer decides on their own submission."""
    DENY = "deny"
    FLAG = "flag"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


class Settings(BaseSettings):
    """
    Application settings with validation.

    Read from environment variables (case-insensitive) and an optional
    ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./advisorflow.db",
        description="Database connection URL"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(default=5, description="Number of persistent database connections")
    db_max_overflow: int = Field(default=10, description="Extra connections allowed during bursts")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds before a connection is recycled")

    # Generation Configuration
    # LiteLLM model strings, e.g. "anthropic/claude-sonnet-4-5", "openai/gpt-4o".
    # Empty generation_model = generation disabled (calls fail with GenerationFailed).
    generation_model: str = Field(
        default="",
        description="LiteLLM model for text generation (empty = disabled)"
    )
    generation_api_key: str = Field(default="", description="API key for the text provider")
    generation_api_base: str = Field(default="", description="Base URL for the text provider (optional)")
    image_model: str = Field(
        default="",
        description="LiteLLM model for image generation (empty = disabled)"
    )
    image_api_key: str = Field(
        default="",
        description="API key for the image provider (falls back to generation_api_key)"
    )
    generation_timeout_seconds: float = Field(default=120.0, description="Per-call provider timeout")
    generation_max_tokens: int = Field(default=16_384, description="Max output tokens per call")
    generation_temperature: float = Field(default=1.0, description="Sampling temperature")
    default_disclaimer: str = Field(
        default="AI-assisted draft. Investment advice is subject to market risk.",
        description="Disclaimer attached to generated drafts"
    )

    # Editor mechanics
    min_selection_chars: int = Field(
        default=5,
        description="Shortest selection accepted by the selection-rewrite engine"
    )
    highlight_seconds: float = Field(
        default=4.5,
        description="How long the 'recently changed' marker stays visible"
    )
    new_block_min_chars: int = Field(
        default=20,
        description="Blocks shorter than this are never highlighted as new after extend"
    )

    # Review policy
    self_review_policy: SelfReviewPolicy = Field(
        default=SelfReviewPolicy.DENY,
        description="'deny' blocks self-review, 'flag' records it and logs a warning"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('min_selection_chars')
    @classmethod
    def validate_min_selection(cls, v: int) -> int:
        if v < 1:
            raise ValueError("min_selection_chars must be at least 1")
        return v

    def validate_production_config(self) -> None:
        """Validate configuration for production environment.

        Raises:
            ConfigurationError: If production config is unusable.
        """
        errors: list[str] = []

        if self.database_url.startswith("sqlite"):
            errors.append("DATABASE_URL points at SQLite; use PostgreSQL in production.")

        if not self.generation_model:
            errors.append("GENERATION_MODEL is empty; content generation is disabled.")

        if errors and self.environment == Environment.PRODUCTION:
            raise ConfigurationError(
                "Production configuration is invalid:\n  - " + "\n  - ".join(errors)
            )


# Global settings instance
settings = Settings()
