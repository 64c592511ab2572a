"""Configuration management for the statement workbook editor.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
SWB_ prefix, or via a .env file in the project root.

Environment Variables:
    SWB_MAX_FILE_SIZE_MB: Maximum workbook upload size in MB (default: 10)
    SWB_DISPLAY_ROW_LIMIT: Rows shown in the grid view (default: 100)
    SWB_EXPORT_SUFFIX: Suffix appended to exported filenames (default: _modified)
    SWB_OUTPUT_DIR: Directory used by the CLI to save exports (default: exports)
    SWB_EXTRACTION_API_URL: Extraction service endpoint
    SWB_EXTRACTION_API_TOKEN: Bearer token for the extraction service
    SWB_EXTRACTION_TIMEOUT_SECONDS: Extraction request timeout (default: 120)
    SWB_LOG_LEVEL: Logging level (default: INFO)
    SWB_DEBUG: Enable debug mode (default: false)
    SWB_CORS_ORIGINS: Comma-separated CORS origins (default: *)
    SWB_SERVER_HOST: Server bind host (default: 0.0.0.0)
    SWB_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
from typing import Any

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables prefixed with
    SWB_ or via a .env file. The extraction token uses SecretStr to prevent
    accidental logging.

    Example .env file:
        SWB_EXTRACTION_API_URL=https://extract.example.com/api/v1/extract
        SWB_LOG_LEVEL=DEBUG
        SWB_DISPLAY_ROW_LIMIT=200
    """

    model_config = SettingsConfigDict(
        env_prefix="SWB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Workbook Settings
    # =========================================================================

    max_file_size_mb: int = 10
    """Maximum workbook upload size in megabytes."""

    display_row_limit: int = 100
    """Number of grid rows rendered by the view, header row included."""

    export_suffix: str = "_modified"
    """Appended to the source file stem when naming an export."""

    output_dir: str = "exports"
    """Directory the command line entry point saves exports into."""

    # =========================================================================
    # Extraction Service Settings
    # =========================================================================

    extraction_api_url: str = "http://localhost:8000/api/v1/extract"
    """Endpoint accepting a statement PDF and returning a spreadsheet."""

    extraction_api_token: SecretStr = SecretStr("")
    """Optional bearer token sent to the extraction service."""

    extraction_timeout_seconds: float = 120.0
    """Timeout for a single extraction request."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional logging and error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    cors_origins: str = "*"
    """Comma-separated list of allowed CORS origins, or * for all."""

    server_host: str = "0.0.0.0"
    """Host address for the server to bind to."""

    server_port: int = 8000
    """Port for the server to listen on."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        """Validate file size is positive and reasonable."""
        if not 1 <= v <= 500:
            raise ValueError(f"max_file_size_mb must be between 1 and 500, got {v}")
        return v

    @field_validator("display_row_limit")
    @classmethod
    def validate_display_row_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"display_row_limit must be at least 1, got {v}")
        return v

    @field_validator("export_suffix")
    @classmethod
    def validate_export_suffix(cls, v: str) -> str:
        """Validate the export suffix cannot produce the source filename."""
        if not v.strip():
            raise ValueError("export_suffix must be a non-empty string")
        if "/" in v or "\\" in v:
            raise ValueError("export_suffix must not contain path separators")
        return v.strip()

    @field_validator("extraction_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"extraction_timeout_seconds must be positive, got {v}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def get_extraction_api_token(self) -> str:
        """Get the extraction service token value.

        Returns:
            The token string. Returns empty string if not set.
        """
        return self.extraction_api_token.get_secret_value()

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary with the API token masked."""
        return {
            "max_file_size_mb": self.max_file_size_mb,
            "display_row_limit": self.display_row_limit,
            "export_suffix": self.export_suffix,
            "output_dir": self.output_dir,
            "extraction_api_url": self.extraction_api_url,
            "extraction_api_token": (
                "***" if self.get_extraction_api_token() else "(not set)"
            ),
            "extraction_timeout_seconds": self.extraction_timeout_seconds,
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
            "server_host": self.server_host,
            "server_port": self.server_port,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Validate settings on application startup.

    Emits warnings for configuration that works but is unlikely to be
    intended in production.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if not s.get_extraction_api_token():
        logger.warning(
            "SWB_EXTRACTION_API_TOKEN is not configured. Requests to the "
            "extraction service will be sent without authentication."
        )

    if s.cors_origins == "*" and not s.debug:
        logger.warning(
            "CORS is configured to allow all origins (*). "
            "Consider restricting this in production."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"max_file_size_mb={s.max_file_size_mb}, "
        f"display_row_limit={s.display_row_limit}"
    )


settings = Settings()
