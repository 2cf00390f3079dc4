"""
Configuration management for Aether.

Uses Pydantic Settings for type-safe environment variable handling.
All configuration is loaded from environment variables or .env file.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "Aether Health Assistant"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # ==========================================================================
    # Server
    # ==========================================================================
    host: str = "0.0.0.0"
    port: int = 8000

    # ==========================================================================
    # Language Model (Gemini)
    # ==========================================================================
    gemini_api_key: str = ""
    gemini_text_model: str = "gemini-2.0-flash"
    gemini_vision_model: str = "gemini-2.0-flash"
    llm_timeout_seconds: int = 60

    # ==========================================================================
    # Rate Limiting
    # ==========================================================================
    rate_limit_per_minute: int = 30

    # ==========================================================================
    # File Upload
    # ==========================================================================
    max_file_size_mb: int = 10
    allowed_pdf_extensions: str = ".pdf"
    allowed_image_extensions: str = ".png,.jpg,.jpeg,.webp"
    max_image_dimension: int = 2048
    pdf_render_resolution: int = 150

    # ==========================================================================
    # Response Parsing Policy
    # ==========================================================================
    parser_default_confidence: Literal["High", "Medium", "Low"] = "Medium"
    parser_default_urgency: Literal["High", "Medium", "Low"] = "Medium"
    parser_reasoning_min_length: int = 5
    parser_reasoning_plain_min_length: int = 10

    # ==========================================================================
    # Storage
    # ==========================================================================
    history_dir: str = "history"
    enable_history: bool = True

    # ==========================================================================
    # Users
    # ==========================================================================
    default_user_id: str = "anonymous"

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def max_file_size_bytes(self) -> int:
        """Maximum file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def pdf_extensions(self) -> list[str]:
        """List of allowed PDF extensions."""
        return [ext.strip() for ext in self.allowed_pdf_extensions.split(",")]

    @property
    def image_extensions(self) -> list[str]:
        """List of allowed image extensions."""
        return [ext.strip() for ext in self.allowed_image_extensions.split(",")]

    @property
    def history_path(self) -> Path:
        """Path to the session history store."""
        path = Path(self.history_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
