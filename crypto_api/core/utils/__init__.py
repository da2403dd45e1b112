"""
Core Utilities Package

Modules:
    - paths: dotted path lookup over nested responses
    - signing: HMAC-SHA256 helpers for private endpoints
"""

from crypto_api.core.utils.paths import get_path, defined_or
from crypto_api.core.utils.signing import hmac_sha256_hex, hmac_sha256_base64

__all__ = ["get_path", "defined_or", "hmac_sha256_hex", "hmac_sha256_base64"]
