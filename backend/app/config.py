"""
Application configuration using Pydantic settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from typing import Optional

# Width of learned_patterns.merchant_token
MERCHANT_TOKEN_COLUMN_LENGTH = 64


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Tallyline"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # AI Provider
    ai_provider: str = "openrouter"  # openrouter, ollama, openai, anthropic
    ai_model: str = "anthropic/claude-3-haiku"
    ai_base_url: Optional[str] = None  # For Ollama: http://localhost:11434

    # API Keys (optional based on provider)
    openrouter_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # AI fallback tier
    ai_auto_categorize: bool = True
    ai_timeout_seconds: float = 5.0
    ai_circuit_failure_threshold: int = 3
    ai_circuit_reset_seconds: float = 60.0

    # Categorization
    review_threshold: float = 0.75
    merchant_token_max_length: int = Field(40, ge=1, le=MERCHANT_TOKEN_COLUMN_LENGTH)
    categorization_rules_path: Optional[str] = None  # Defaults to the bundled rule table
    bulk_batch_size: int = 200
    job_stale_seconds: float = 1800.0  # A running job with no checkpoint for this long is considered dead

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
