"""
Unit Tests for the Binance and KuCoin Connectors

These tests verify that both connectors:
- Build the exchange-specific request from canonical arguments
- Normalize responses to the shared row shape
- Sign private requests the way each exchange expects

HTTP calls are faked or short-circuited with test_request_object.

Run with:
    pytest tests/unit/test_exchanges.py -v
"""

import json
from datetime import datetime, timezone
from urllib.parse import urlencode

import pytest

from crypto_api import PreparedRequest, ResponseSnapshot
from crypto_api.core.errors import ConfigurationError, MissingArgumentError, ValidationError
from crypto_api.core.utils.signing import hmac_sha256_base64, hmac_sha256_hex
from crypto_api.exchanges.binance import BinanceAPI
from crypto_api.exchanges.kucoin import KucoinAPI


def fake_send(api, monkeypatch, body):
    """Replace send with a fake returning body; returns the recorded calls"""
    calls = []

    async def send(method, path, data=None, headers=None, events=None):
        calls.append({"method": method, "path": path, "data": data, "headers": headers, "events": events})
        api._json_response = body
        return ResponseSnapshot(status=200, body=body)

    monkeypatch.setattr(api, "send", send)
    return calls


async def prepared(api, action, args=None):
    """Run an action with test_request_object set and return the PreparedRequest"""
    spec = getattr(api, f"set_{action}")()
    events = spec["request"].setdefault("events", {})
    events["test_request_object"] = True
    return await api.call_action(action, args or {}, spec=spec)


# ============================================
# Binance
# ============================================

class TestBinance:
    """Tests for BinanceAPI"""

    @pytest.mark.asyncio
    async def test_prices_single_pair(self, monkeypatch):
        api = BinanceAPI()
        calls = fake_send(api, monkeypatch, {"symbol": "XRPUSDC", "price": "0.51230000"})

        result = await api.prices(pair="xrp-usdc")

        assert calls[0]["path"] == "/api/v3/ticker/price"
        assert calls[0]["data"] == {"symbol": "XRPUSDC"}
        assert result == {"pair": "XRPUSDC", "last_price": 0.5123}

    @pytest.mark.asyncio
    async def test_prices_all_pairs(self, monkeypatch):
        api = BinanceAPI()
        calls = fake_send(api, monkeypatch, [
            {"symbol": "BTCUSDT", "price": "42000.00"},
            {"symbol": "XRPUSDC", "price": "0.51"},
        ])

        result = await api.prices()

        assert calls[0]["data"] == {}
        assert calls[0]["events"].not_include == {"symbol": True}
        assert [row["pair"] for row in result] == ["BTCUSDT", "XRPUSDC"]

    @pytest.mark.asyncio
    async def test_order_book_limit_checked(self, monkeypatch):
        api = BinanceAPI()
        calls = fake_send(api, monkeypatch, {})

        with pytest.raises(ValidationError, match="limit must be one of"):
            await api.order_book(pair="XRP-USDC", limit=7)
        assert calls == []

    @pytest.mark.asyncio
    async def test_order_book_defaults_and_others(self, monkeypatch):
        api = BinanceAPI()
        calls = fake_send(api, monkeypatch, {
            "lastUpdateId": 1027024,
            "bids": [["4.00000000", "431.00000000"]],
            "asks": [["4.00000200", "12.00000000"]],
        })

        result = await api.order_book(pair="XRP-USDC")

        assert calls[0]["data"] == {"symbol": "XRPUSDC", "limit": 100}
        assert result["bids"] == [["4.00000000", "431.00000000"]]
        assert result["_others"] == {"lastUpdateId": 1027024}

    @pytest.mark.asyncio
    async def test_candles_requires_interval(self, monkeypatch):
        api = BinanceAPI()
        fake_send(api, monkeypatch, [])
        with pytest.raises(MissingArgumentError, match="interval"):
            await api.candles(pair="XRP-USDC")

    @pytest.mark.asyncio
    async def test_candles_newest_first(self, monkeypatch):
        api = BinanceAPI()
        fake_send(api, monkeypatch, [
            [1704110400000, "1.0", "2.0", "0.5", "1.5", "100", 1704113999999, "150", 10],
            [1704114000000, "1.5", "2.5", "1.0", "2.0", "200", 1704117599999, "400", 20],
        ])

        result = await api.candles(pair="XRP-USDC", interval="1h")

        assert [row["close"] for row in result] == [2.0, 1.5]
        assert result[0]["open_time"] == datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc)
        assert result[0]["trades_count"] == 20

    @pytest.mark.asyncio
    async def test_balances_signed_request(self):
        api = BinanceAPI(api_key="key", secret_key="secret")

        request = await prepared(api, "balances")

        assert isinstance(request, PreparedRequest)
        assert request.headers["X-MBX-APIKEY"] == "key"
        params = dict(request.params)
        signature = params.pop("signature")
        assert list(params) == ["timestamp", "recvWindow"]
        assert params["recvWindow"] == "5000"
        assert signature == hmac_sha256_hex(urlencode(list(params.items())), "secret")

    @pytest.mark.asyncio
    async def test_balances_without_secret(self):
        api = BinanceAPI(api_key="key")
        with pytest.raises(ConfigurationError, match="secret_key"):
            await prepared(api, "balances")

    @pytest.mark.asyncio
    async def test_balances_mapping(self, monkeypatch):
        api = BinanceAPI(api_key="key", secret_key="secret")
        fake_send(api, monkeypatch, {
            "balances": [
                {"asset": "BTC", "free": "0.5", "locked": "0.0"},
                {"asset": "LTC", "free": "0.0", "locked": "0.0"},
                {"asset": "XRP", "free": "0.0", "locked": "25.0"},
            ]
        })

        result = await api.balances()

        assert result == {
            "BTC": {"asset": "BTC", "free": 0.5, "locked": 0.0},
            "XRP": {"asset": "XRP", "free": 0.0, "locked": 25.0},
        }


# ============================================
# KuCoin
# ============================================

class TestKucoin:
    """Tests for KucoinAPI"""

    @pytest.mark.asyncio
    async def test_prices_single_object(self, monkeypatch):
        api = KucoinAPI()
        calls = fake_send(api, monkeypatch, {
            "code": "200000",
            "data": {
                "symbol": "XRP-USDC",
                "last": "0.5123",
                "changeRate": "0.0123",
                "vol": "1000",
                "high": "0.53",
                "low": "0.50",
                "averagePrice": "0.51",
            },
        })

        result = await api.prices(pair="XRP-USDC")

        assert calls[0]["data"] == {"symbol": "XRP-USDC"}
        assert result == {
            "pair": "XRP-USDC",
            "last_price": 0.5123,
            "change_rate": "0.0123",
            "volume": "1000",
            "_others": {"high": "0.53", "low": "0.50", "averagePrice": "0.51"},
        }

    @pytest.mark.asyncio
    async def test_prices_requires_pair(self):
        with pytest.raises(MissingArgumentError):
            await KucoinAPI().prices()

    @pytest.mark.asyncio
    async def test_all_prices_keyed_by_pair(self, monkeypatch):
        api = KucoinAPI()
        fake_send(api, monkeypatch, {
            "data": {
                "time": 1704110400000,
                "ticker": [
                    {"symbol": "BTC-USDT", "last": "42000", "vol": "20"},
                    {"symbol": "NEW-USDT", "last": None, "vol": "0"},
                    {"symbol": "XRP-USDC", "last": "0.51", "vol": "100"},
                ],
            }
        })

        result = await api.all_prices()

        assert set(result) == {"BTC-USDT", "XRP-USDC"}
        assert result["XRP-USDC"]["last_price"] == 0.51

    @pytest.mark.asyncio
    async def test_balances_grouped_by_currency(self, monkeypatch):
        api = KucoinAPI(api_key="key", secret_key="secret", passphrase="pass")
        calls = fake_send(api, monkeypatch, {
            "data": [
                {"currency": "USDT", "type": "main", "balance": "10", "available": "10", "holds": "0"},
                {"currency": "BTC", "type": "trade", "balance": "0.1", "available": "0.1", "holds": "0"},
                {"currency": "USDT", "type": "trade", "balance": "250", "available": "200", "holds": "50"},
            ]
        })

        result = await api.balances()

        assert calls[0]["events"].not_include == {"currency": True, "type": True}
        assert list(result) == ["USDT", "BTC"]
        assert [row["type"] for row in result["USDT"]] == ["trade", "main"]
        assert result["USDT"][0]["holds"] == 50.0

    @pytest.mark.asyncio
    async def test_balances_type_checked(self):
        api = KucoinAPI(api_key="key", secret_key="secret", passphrase="pass")
        with pytest.raises(ValidationError, match="type must be main, trade or margin"):
            await api.balances(type="futures")

    @pytest.mark.asyncio
    async def test_place_order_fans_out_and_signs(self):
        api = KucoinAPI(api_key="key", secret_key="secret", passphrase="pass")

        request = await prepared(api, "place_order", {
            "pair": "XRP-USDC",
            "side": "BUY",
            "order": {"price": "0.5", "size": "10"},
            "client_id": "oid-1",
        })

        assert request.method == "post"
        assert json.loads(request.body) == {
            "clientOid": "oid-1",
            "symbol": "XRP-USDC",
            "side": "buy",
            "price": "0.5",
            "size": "10",
            "type": "limit",
        }
        timestamp = request.headers["KC-API-TIMESTAMP"]
        expected = hmac_sha256_base64(timestamp + "POST" + "/api/v1/orders" + request.body, "secret")
        assert request.headers["KC-API-SIGN"] == expected
        assert request.headers["KC-API-PASSPHRASE"] == hmac_sha256_base64("pass", "secret")
        assert request.headers["KC-API-KEY"] == "key"
        assert request.headers["KC-API-KEY-VERSION"] == "2"

    @pytest.mark.asyncio
    async def test_place_order_generates_client_id(self):
        api = KucoinAPI(api_key="key", secret_key="secret", passphrase="pass")
        request = await prepared(api, "place_order", {
            "pair": "XRP-USDC", "side": "sell", "order": {"price": "1", "size": "1"},
        })
        assert len(json.loads(request.body)["clientOid"]) == 32

    @pytest.mark.asyncio
    async def test_signed_get_includes_query(self):
        api = KucoinAPI(api_key="key", secret_key="secret", passphrase="pass")

        request = await prepared(api, "balances", {"currency": "BTC", "type": "trade"})

        assert request.params == {"currency": "BTC", "type": "trade"}
        timestamp = request.headers["KC-API-TIMESTAMP"]
        expected = hmac_sha256_base64(
            timestamp + "GET" + "/api/v1/accounts?currency=BTC&type=trade", "secret"
        )
        assert request.headers["KC-API-SIGN"] == expected

    @pytest.mark.asyncio
    async def test_signed_action_needs_credentials(self):
        with pytest.raises(ConfigurationError, match="passphrase"):
            await prepared(KucoinAPI(api_key="key"), "balances")


class TestSharedShape:
    """Both connectors expose prices with the same row keys"""

    @pytest.mark.asyncio
    async def test_prices_rows_match(self, monkeypatch):
        binance = BinanceAPI()
        kucoin = KucoinAPI()
        fake_send(binance, monkeypatch, {"symbol": "XRPUSDC", "price": "0.5"})
        fake_send(kucoin, monkeypatch, {"data": {"symbol": "XRP-USDC", "last": "0.5"}})

        b = await binance.prices(pair="XRP-USDC")
        k = await kucoin.prices(pair="XRP-USDC")

        assert {"pair", "last_price"} <= set(b) and {"pair", "last_price"} <= set(k)
        assert b["last_price"] == k["last_price"] == 0.5
