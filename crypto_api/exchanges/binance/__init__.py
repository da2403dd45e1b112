"""
Binance Exchange Connector

Declarative connector for the Binance Spot REST API.

API Documentation:
    https://binance-docs.github.io/apidocs/spot/en/

Actions:
    - prices(pair=None)                 GET /api/v3/ticker/price
    - order_book(pair, limit=100)       GET /api/v3/depth
    - candles(pair, interval, limit)    GET /api/v3/klines
    - balances()                        GET /api/v3/account (signed)

Pairs are passed in the canonical "BASE-QUOTE" form ("XRP-USDC") and sent
as Binance symbols ("XRPUSDC").

Signing:
    Private endpoints declare ``events.keys``. The query string, with those
    fields first, is signed with HMAC-SHA256 (hex) and appended as
    ``signature``; the API key travels in the ``X-MBX-APIKEY`` header.
"""

from urllib.parse import urlencode

from crypto_api.core.api import CryptoAPI
from crypto_api.core.errors import ConfigurationError
from crypto_api.core.http_client import PreparedRequest
from crypto_api.core.schemas import EventHooks
from crypto_api.core.utils.time import current_utc_timestamp, to_utc_datetime

KLINE_INTERVALS = (
    "1s", "1m", "3m", "5m", "15m", "30m", "1h", "2h", "4h",
    "6h", "8h", "12h", "1d", "3d", "1w", "1M",
)

DEPTH_LIMITS = (5, 10, 20, 50, 100, 500, 1000, 5000)


class BinanceAPI(CryptoAPI):
    """
    Binance Spot Connector

    Attributes:
        api_key: API key (only needed for signed actions)
        secret_key: Secret used for HMAC signatures
        recv_window: Milliseconds a signed request stays valid

    Example:
        >>> async with BinanceAPI() as binance:
        ...     row = await binance.prices(pair="XRP-USDC")
        ...     print(row["last_price"])
    """

    base_url = "https://api.binance.com"
    exchange = "binance"

    def __init__(self, api_key: str = "", secret_key: str = "", recv_window: int = 5000, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.secret_key = secret_key
        self.recv_window = recv_window

    # ============================================
    # Market Data
    # ============================================

    def set_prices(self):
        return {
            "request": {
                "method": "get",
                "path": "/api/v3/ticker/price",
                "data": {
                    "pair": "symbol",
                },
            },
            "response": {
                "row": {
                    "pair": "symbol",
                    "last_price": "price",
                },
            },
        }

    def set_order_book(self):
        return {
            "request": {
                "method": "get",
                "path": "/api/v3/depth",
                "data": {
                    "pair": {"field_name": "symbol", "required": True},
                    "limit": {
                        "field_name": "limit",
                        "default": 100,
                        "checker": [
                            {"code": lambda v: v in DEPTH_LIMITS,
                             "err": f"must be one of {', '.join(map(str, DEPTH_LIMITS))}"},
                        ],
                    },
                },
            },
            "response": {
                "row": {
                    "bids": "bids",
                    "asks": "asks",
                    "_others": ["lastUpdateId"],
                },
            },
        }

    def set_candles(self):
        """Klines come back as arrays, so row sources are positions."""
        return {
            "request": {
                "method": "get",
                "path": "/api/v3/klines",
                "data": {
                    "pair": {"field_name": "symbol", "required": True},
                    "interval": {
                        "field_name": "interval",
                        "required": True,
                        "checker": [
                            {"code": lambda v: v in KLINE_INTERVALS, "err": "is not a valid interval"},
                        ],
                    },
                    "limit": {
                        "field_name": "limit",
                        "checker": [
                            {"code": lambda v: v is None or 1 <= v <= 1000, "err": "must be between 1 and 1000"},
                        ],
                    },
                    "start_time": "startTime",
                    "end_time": "endTime",
                },
            },
            "response": {
                "row": {
                    "open_time": "0",
                    "open": "1",
                    "high": "2",
                    "low": "3",
                    "close": "4",
                    "volume": "5",
                    "trades_count": "8",
                },
                # newest first
                "sort_by": [{"ndesc": "open_time"}],
            },
        }

    # ============================================
    # Account
    # ============================================

    def set_balances(self):
        return {
            "request": {
                "method": "get",
                "path": "/api/v3/account",
                "data": {
                    "timestamp": {"field_name": "timestamp", "default": self._timestamp},
                    "recv_window": {"field_name": "recvWindow", "default": self.recv_window},
                },
                "headers": {"X-MBX-APIKEY": self.api_key},
                "events": {"keys": ["timestamp", "recv_window"]},
            },
            "response": {
                "key": "balances",
                "row": {
                    "asset": "asset",
                    "free": "free",
                    "locked": "locked",
                },
                "row_filter": "_skip_empty_balance",
                "array2hash": "asset",
            },
        }

    # ============================================
    # Formatters and Hooks
    # ============================================

    def request_attr_pair(self, value):
        return value.replace("-", "").upper() if value else value

    def response_attr_last_price(self, value, row):
        return float(value) if value is not None else None

    def response_attr_open_time(self, value, row):
        return to_utc_datetime(value) if value is not None else None

    def response_attr_open(self, value, row):
        return float(value) if value is not None else None

    response_attr_high = response_attr_open
    response_attr_low = response_attr_open
    response_attr_close = response_attr_open
    response_attr_volume = response_attr_open
    response_attr_free = response_attr_open
    response_attr_locked = response_attr_open

    def _timestamp(self, alias, rule):
        return current_utc_timestamp(milliseconds=True)

    def _skip_empty_balance(self, row):
        if not row["free"] and not row["locked"]:
            return "next"
        return None

    def sign_request(self, request: PreparedRequest, events: EventHooks) -> None:
        if events.keys is None:
            return
        if not self.secret_key:
            raise ConfigurationError("Binance signed actions need a secret_key")
        query = urlencode(list(request.params.items()))
        request.params["signature"] = self.do_hmac_sha256_hex(query, self.secret_key)
