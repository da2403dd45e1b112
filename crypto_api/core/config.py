"""
Configuration Management Module

This module handles loading, validating, and providing access to the library
configuration from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.
All variables are read with the ``CRYPTO_API_`` prefix, so ``log_level`` is
set through ``CRYPTO_API_LOG_LEVEL``.

Usage:
    from crypto_api.core.config import settings

    print(settings.request_timeout)
    print(settings.max_retries)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Library Settings

    Attributes:
        log_level: Logging level for the ``cryptoapi`` logger
        debug: Log built requests and sort directives at DEBUG level
        request_timeout: Total timeout for one HTTP request in seconds
        max_retries: Attempts made for rate-limited responses (429, 418, 503)
        retry_backoff: Base delay in seconds, multiplied by the attempt number
        user_agent: User-Agent header sent with every request
    """

    # ============================================
    # Logging
    # ============================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    debug: bool = Field(
        default=False,
        description="Enable verbose request/sort logging"
    )

    # ============================================
    # HTTP Collaborator
    # ============================================

    request_timeout: int = Field(
        default=30,
        description="HTTP request timeout in seconds"
    )

    max_retries: int = Field(
        default=3,
        description="Maximum attempts for rate-limited requests"
    )

    retry_backoff: float = Field(
        default=1.5,
        description="Linear backoff base delay between retries (seconds)"
    )

    user_agent: str = Field(
        default="crypto-api/0.1",
        description="User-Agent header for outbound requests"
    )

    model_config = SettingsConfigDict(
        env_prefix="CRYPTO_API_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )


# Single instance shared by the logging setup and the HTTP collaborator
settings = Settings()


def validate_configuration(config: Settings = None) -> None:
    """
    Validate the settings before the first request is issued.

    Args:
        config: Settings to check (defaults to the global ``settings``)

    Raises:
        ValueError: If a setting is outside its allowed range
    """
    # logging.py imports config.py, so import lazily
    from crypto_api.core.logging import logger

    config = config or settings

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    if config.request_timeout <= 0:
        raise ValueError(f"Invalid request timeout: {config.request_timeout}. Must be positive")

    if config.max_retries < 1:
        raise ValueError(f"Invalid max retries: {config.max_retries}. Must be at least 1")

    if config.retry_backoff < 0:
        raise ValueError(f"Invalid retry backoff: {config.retry_backoff}. Must not be negative")

    logger.info("Configuration validated successfully")
    logger.info(f"Request timeout: {config.request_timeout}s, retries: {config.max_retries}")
    logger.info(f"Log level: {config.log_level.upper()}")
