"""
KuCoin Exchange Connector

Declarative connector for the KuCoin Spot REST API.

API Documentation:
    https://www.kucoin.com/docs/rest/spot-trading/market-data/introduction

Actions:
    - prices(pair)                      GET  /api/v1/market/stats
    - all_prices()                      GET  /api/v1/market/allTickers
    - balances(currency=None, type=...) GET  /api/v1/accounts (signed)
    - place_order(pair, side, order)    POST /api/v1/orders (signed)

KuCoin symbols already use the canonical "BASE-QUOTE" form.

Signing:
    Signed actions declare ``events.keys``. The string
    ``timestamp + METHOD + endpoint + body`` is signed with HMAC-SHA256
    (base64) and sent in ``KC-API-SIGN``; the passphrase is signed the same
    way (key version 2).
"""

import uuid
from urllib.parse import urlencode

from crypto_api.core.api import CryptoAPI
from crypto_api.core.errors import ConfigurationError
from crypto_api.core.http_client import PreparedRequest
from crypto_api.core.schemas import EventHooks
from crypto_api.core.utils.time import current_utc_timestamp


class KucoinAPI(CryptoAPI):
    """
    KuCoin Spot Connector

    Attributes:
        api_key: API key
        secret_key: API secret used for HMAC signatures
        passphrase: API passphrase chosen when the key was created

    Example:
        >>> async with KucoinAPI() as kucoin:
        ...     tickers = await kucoin.all_prices()
        ...     print(tickers["BTC-USDT"]["last_price"])
    """

    base_url = "https://api.kucoin.com"
    exchange = "kucoin"

    def __init__(self, api_key: str = "", secret_key: str = "", passphrase: str = "", **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.secret_key = secret_key
        self.passphrase = passphrase

    # ============================================
    # Market Data
    # ============================================

    def set_prices(self):
        return {
            "request": {
                "method": "get",
                "path": "/api/v1/market/stats",
                "data": {
                    "pair": {"field_name": "symbol", "required": True},
                },
            },
            "response": {
                "key": "data",
                "row": {
                    "pair": "symbol",
                    "last_price": "last",
                    "change_rate": "changeRate",
                    "volume": "vol",
                    "_others": ["high", "low", "averagePrice"],
                },
            },
        }

    def set_all_prices(self):
        return {
            "request": {
                "method": "get",
                "path": "/api/v1/market/allTickers",
            },
            "response": {
                "key": "data.ticker",
                "row": {
                    "pair": "symbol",
                    "last_price": "last",
                    "volume": "vol",
                },
                "row_filter": "_skip_unpriced",
                "array2hash": "pair",
            },
        }

    # ============================================
    # Account and Trading
    # ============================================

    def set_balances(self):
        return {
            "request": {
                "method": "get",
                "path": "/api/v1/accounts",
                "data": {
                    "currency": "currency",
                    "type": {
                        "field_name": "type",
                        "checker": [
                            {"code": lambda v: v in (None, "main", "trade", "margin"),
                             "err": "must be main, trade or margin"},
                        ],
                    },
                },
                "events": {"keys": ["currency", "type"]},
            },
            "response": {
                "key": "data",
                "row": {
                    "currency": "currency",
                    "type": "type",
                    "balance": "balance",
                    "available": "available",
                    "holds": "holds",
                },
                "array2[hash]": "currency",
                "array2[hash.sort]": "_by_balance_desc",
            },
        }

    def set_place_order(self):
        """
        ``order`` is a mapping {"price": ..., "size": ...} fanned out to
        the two body fields.
        """
        return {
            "request": {
                "method": "post",
                "path": "/api/v1/orders",
                "data": {
                    "client_id": {"field_name": "clientOid", "default": self._client_oid},
                    "pair": {"field_name": "symbol", "required": True},
                    "side": {
                        "field_name": "side",
                        "required": True,
                        "checker": [
                            {"code": lambda v: v in ("buy", "sell"), "err": "must be buy or sell"},
                        ],
                    },
                    "order": {"field_name": "price,size", "required": True},
                    "order_type": {"field_name": "type", "default": "limit"},
                },
                "events": {"keys": ["client_id", "pair", "side", "order"]},
            },
            "response": {
                "key": "data",
                "row": {
                    "order_id": "orderId",
                },
            },
        }

    # ============================================
    # Formatters and Hooks
    # ============================================

    def request_attr_side(self, value):
        return value.lower() if value else value

    def response_attr_last_price(self, value, row):
        return float(value) if value is not None else None

    def response_attr_balance(self, value, row):
        return float(value) if value is not None else None

    response_attr_available = response_attr_balance
    response_attr_holds = response_attr_balance

    def _client_oid(self, alias, rule):
        return uuid.uuid4().hex

    def _skip_unpriced(self, row):
        return "next" if row["last_price"] is None else ""

    def _by_balance_desc(self, a, b):
        return (b["balance"] > a["balance"]) - (b["balance"] < a["balance"])

    def sign_request(self, request: PreparedRequest, events: EventHooks) -> None:
        if events.keys is None:
            return
        if not (self.api_key and self.secret_key and self.passphrase):
            raise ConfigurationError("KuCoin signed actions need api_key, secret_key and passphrase")

        timestamp = str(current_utc_timestamp(milliseconds=True))
        endpoint = request.path
        if request.params:
            endpoint += "?" + urlencode(list(request.params.items()))

        payload = timestamp + request.method.upper() + endpoint + (request.body or "")

        request.headers.update({
            "KC-API-KEY": self.api_key,
            "KC-API-SIGN": self.do_hmac_sha256_base64(payload, self.secret_key),
            "KC-API-TIMESTAMP": timestamp,
            "KC-API-PASSPHRASE": self.do_hmac_sha256_base64(self.passphrase, self.secret_key),
            "KC-API-KEY-VERSION": "2",
        })
