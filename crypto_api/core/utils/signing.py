"""
Request Signing Helpers

Most exchanges authenticate private endpoints with an HMAC-SHA256 over a
canonical request string. Binance wants the digest as hex in a query
parameter; KuCoin, OKX and Coinbase want it base64-encoded in a header.
Both helpers are pure: the same (message, secret) always gives the same digest.
"""

import base64
import hashlib
import hmac
from typing import Union

Text = Union[str, bytes]


def _to_bytes(value: Text) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


def hmac_sha256(message: Text, secret: Text) -> bytes:
    """Raw HMAC-SHA256 digest of message keyed by secret."""
    return hmac.new(_to_bytes(secret), _to_bytes(message), hashlib.sha256).digest()


def hmac_sha256_hex(message: Text, secret: Text) -> str:
    """
    HMAC-SHA256 as a lowercase hex string.

    Example:
        signature = hmac_sha256_hex("symbol=XRPUSDC&timestamp=1499827319559", secret_key)
    """
    return hmac_sha256(message, secret).hex()


def hmac_sha256_base64(message: Text, secret: Text) -> str:
    """HMAC-SHA256 as a base64 string without a trailing newline."""
    return base64.b64encode(hmac_sha256(message, secret)).decode("ascii")
