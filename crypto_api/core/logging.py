"""
Unified Logging Configuration

This module sets up the logging used across the library. All modules import
their logger from here instead of calling ``logging.getLogger`` directly, so
the whole package lives under the ``cryptoapi`` logger namespace.

Usage:
    from crypto_api.core.logging import get_logger

    logger = get_logger(__name__)
    logger.debug("Built payload: ...")

Configuration:
    Log level is controlled by CRYPTO_API_LOG_LEVEL (see core/config.py).
"""

import logging
import sys
from typing import Optional


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the library logger.

    Unlike an application, a library must not reconfigure the root logger
    unless asked to, so the handler is attached to ``cryptoapi`` only.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include logger name in log messages

    Returns:
        logging.Logger: Configured ``cryptoapi`` logger

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Client ready")
        2024-01-01 12:00:00 [INFO] cryptoapi: Client ready
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s:")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    logger = logging.getLogger("cryptoapi")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Replace our own handler on repeated setup calls
    for handler in list(logger.handlers):
        if getattr(handler, "_cryptoapi", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(log_format, datefmt="%Y-%m-%d %H:%M:%S"))
    handler._cryptoapi = True
    logger.addHandler(handler)

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from crypto_api.core.config import settings
    log_level = settings.log_level
except ImportError:
    log_level = "INFO"

logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger of ``cryptoapi``.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: e.g. "cryptoapi.crypto_api.core.api"
    """
    return logging.getLogger(f"cryptoapi.{name}")


def set_log_level(level: str) -> None:
    """Change the library log level at runtime."""
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(exchange: str, method: str, endpoint: str, params: dict = None) -> None:
    """
    Log an outbound API request with consistent formatting.

    Example:
        >>> log_api_request("binance", "GET", "/api/v3/ticker/price", {"symbol": "XRPUSDC"})
        [DEBUG] API Request: binance GET /api/v3/ticker/price | Params: {'symbol': 'XRPUSDC'}
    """
    if params:
        logger.debug(f"API Request: {exchange} {method} {endpoint} | Params: {params}")
    else:
        logger.debug(f"API Request: {exchange} {method} {endpoint}")


def log_api_response(exchange: str, endpoint: str, status: int, response_time: float = None) -> None:
    """
    Log an API response with status and timing information.

    Example:
        >>> log_api_response("binance", "/api/v3/ticker/price", 200, 0.342)
        [DEBUG] API Response: binance /api/v3/ticker/price | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {exchange} {endpoint} | Status: {status}{time_str}")


logger.debug("Logging system initialized")
