"""
Unit Tests for Signing Helpers

Run with:
    pytest tests/unit/test_signing.py -v
"""

import base64

from crypto_api.core.utils.signing import hmac_sha256_base64, hmac_sha256_hex


class TestHmacSha256:
    """Tests for the HMAC-SHA256 helpers"""

    def test_hex_known_vector(self):
        """Matches the well known RFC-style test vector"""
        digest = hmac_sha256_hex("The quick brown fox jumps over the lazy dog", "key")
        assert digest == "f7bc83f430538424b13298e6aa6fb143ef4d59a14946175997479dbc2d1a3cd8"

    def test_binance_documentation_example(self):
        """Matches the signed request example from the Binance API docs"""
        secret = "NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j"
        query = (
            "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC&quantity=1"
            "&price=0.1&recvWindow=5000&timestamp=1499827319559"
        )
        assert hmac_sha256_hex(query, secret) == "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2b053c4b2838bd6b71"

    def test_deterministic(self):
        """Same input, same digest"""
        assert hmac_sha256_hex("msg", "secret") == hmac_sha256_hex("msg", "secret")
        assert hmac_sha256_base64("msg", "secret") == hmac_sha256_base64("msg", "secret")

    def test_hex_and_base64_share_bytes(self):
        """Both encodings represent the same digest"""
        hex_digest = hmac_sha256_hex("1704110400000GET/api/v1/accounts", "secret")
        b64_digest = hmac_sha256_base64("1704110400000GET/api/v1/accounts", "secret")
        assert base64.b64decode(b64_digest) == bytes.fromhex(hex_digest)

    def test_bytes_and_str_inputs_agree(self):
        assert hmac_sha256_hex(b"msg", b"secret") == hmac_sha256_hex("msg", "secret")

    def test_base64_has_no_newline(self):
        assert not hmac_sha256_base64("msg", "secret").endswith("\n")

    def test_different_secret_changes_digest(self):
        assert hmac_sha256_hex("msg", "a") != hmac_sha256_hex("msg", "b")
