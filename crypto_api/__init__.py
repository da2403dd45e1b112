"""
crypto_api - declarative normalization layer for exchange REST APIs.

Usage:
    from crypto_api import CryptoAPI
    from crypto_api.exchanges.kucoin import KucoinAPI

    async with KucoinAPI() as kucoin:
        row = await kucoin.prices(pair="XRP-USDC")
"""

from crypto_api.core.api import CryptoAPI
from crypto_api.core.errors import (
    ConfigurationError,
    CryptoAPIError,
    HttpRequestError,
    MissingArgumentError,
    PathError,
    UnknownActionError,
    ValidationError,
)
from crypto_api.core.http_client import HttpApiClient, PreparedRequest, ResponseSnapshot
from crypto_api.core.utils.signing import hmac_sha256_base64, hmac_sha256_hex

__version__ = "0.1.0"

__all__ = [
    "CryptoAPI",
    "HttpApiClient",
    "PreparedRequest",
    "ResponseSnapshot",
    "CryptoAPIError",
    "ConfigurationError",
    "MissingArgumentError",
    "ValidationError",
    "UnknownActionError",
    "PathError",
    "HttpRequestError",
    "hmac_sha256_hex",
    "hmac_sha256_base64",
]
