"""
CryptoAPI - Declarative Exchange API Base Class

Connector classes inherit from CryptoAPI and describe each action as data.
Any method named ``set_<action>`` makes ``<action>`` callable:

    class Kucoin(CryptoAPI):
        base_url = "https://api.kucoin.com"

        def set_prices(self):
            return {
                "request": {
                    "method": "get",
                    "path": "/api/v1/market/stats",
                    "data": {"pair": "symbol"},
                },
                "response": {
                    "key": "data",
                    "row": {"pair": "symbol", "last_price": "last"},
                },
            }

    async with Kucoin() as kucoin:
        await kucoin.prices(pair="XRP-USDC")
        # {"pair": "XRP-USDC", "last_price": "0.5123"}

The main purpose is to normalise requests and responses across exchanges,
so ``prices`` from Binance and from KuCoin come back in the same shape.

Optional hooks picked up by naming convention when the class is created:
    - request_attr_<alias>(self, value) -> value     formats an outbound value
    - response_attr_<alias>(self, value, row) -> value formats an inbound value

Hooks referenced from a spec (row_filter, sort, post_row, raw_process,
"array2[hash.sort]") may be callables or names of methods on the class.
"""

from functools import cached_property
from typing import Any, Callable, Dict, List, Mapping, Optional

from crypto_api.core.errors import ConfigurationError, UnknownActionError
from crypto_api.core.http_client import HttpApiClient, ResponseSnapshot
from crypto_api.core.request_builder import RequestBuilder
from crypto_api.core.response_mapper import ResponseMapper
from crypto_api.core.schemas import RouteSpec, parse_route_spec
from crypto_api.core.utils.signing import hmac_sha256_base64, hmac_sha256_hex

ACTION_PREFIX = "set_"
REQUEST_ATTR_PREFIX = "request_attr_"
RESPONSE_ATTR_PREFIX = "response_attr_"


def _collect(cls: type, prefix: str) -> Dict[str, str]:
    """suffix → method name for every callable attribute starting with prefix"""
    found = {}
    for name in dir(cls):
        if name.startswith(prefix) and len(name) > len(prefix) and callable(getattr(cls, name, None)):
            found[name[len(prefix):]] = name
    return found


class CryptoAPI(HttpApiClient):
    """
    Base class for declarative exchange connectors.

    Class Attributes (built once per subclass):
        _actions: action name → ``set_<action>`` provider name
        _request_attrs: alias → ``request_attr_<alias>`` method name
        _response_attrs: alias → ``response_attr_<alias>`` method name

    Raises at class creation:
        ConfigurationError: If an action name shadows an existing attribute
                            (e.g. ``set_get`` would hide the ``get`` verb)
    """

    _actions: Dict[str, str] = {}
    _request_attrs: Dict[str, str] = {}
    _response_attrs: Dict[str, str] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        actions = _collect(cls, ACTION_PREFIX)
        for action in actions:
            if hasattr(cls, action):
                raise ConfigurationError(
                    f"{cls.__name__}.set_{action} clashes with existing attribute '{action}'"
                )

        cls._actions = actions
        cls._request_attrs = _collect(cls, REQUEST_ATTR_PREFIX)
        cls._response_attrs = _collect(cls, RESPONSE_ATTR_PREFIX)

    # ============================================
    # Dynamic Dispatch
    # ============================================

    def __getattr__(self, name: str):
        # Only reached when normal lookup fails
        if name.startswith("__"):
            raise AttributeError(name)

        if name not in type(self)._actions:
            raise UnknownActionError(name)

        async def action(**kwargs):
            return await self.call_action(name, kwargs)

        action.__name__ = name
        action.__qualname__ = f"{type(self).__name__}.{name}"
        return action

    @classmethod
    def actions(cls) -> List[str]:
        """Names of every action declared on this class."""
        return sorted(cls._actions)

    def route_spec(self, action: str) -> RouteSpec:
        """
        Validated RouteSpec for an action.

        Raises:
            UnknownActionError: No ``set_<action>`` provider
            ConfigurationError: The provider returned a malformed spec
        """
        provider = type(self)._actions.get(action)
        if provider is None:
            raise UnknownActionError(action)
        return parse_route_spec(getattr(self, provider)(), action)

    async def call_action(
        self,
        action: str,
        args: Optional[Mapping[str, Any]] = None,
        *,
        spec: Any = None
    ) -> Any:
        """
        Run the full pipeline for one action.

        Args:
            action: Action name (``prices`` for ``set_prices``)
            args: Caller arguments keyed by alias
            spec: Optional route spec (dict or RouteSpec) used instead of
                  the ``set_<action>`` provider

        Returns:
            The normalized result: a row, a list of rows or a mapping, or a
            list of those when several response specs are declared. With
            events.test_request_object / test_response_object set, whatever
            the HTTP verb returned.
        """
        route = self.route_spec(action) if spec is None else parse_route_spec(spec, action)

        built = self.request_builder.build(route.request, args or {})

        self.logger.debug(f"{self.exchange} {action}: {built.method.upper()} {built.path}")

        verb = getattr(self, built.method, None)
        if verb is None:
            raise ConfigurationError(f"{type(self).__name__} does not implement '{built.method}'")

        debug = await verb(built.path, built.payload, built.headers, built.events)

        if built.events.test_request_object or built.events.test_response_object:
            return debug

        # json_response is shared by every call on this instance
        body = debug.body if isinstance(debug, ResponseSnapshot) else self.json_response

        return self.response_mapper.map(route.response, body, request=built)

    # ============================================
    # Hook Registries
    # ============================================

    @cached_property
    def request_builder(self) -> RequestBuilder:
        return RequestBuilder({
            alias: getattr(self, name) for alias, name in type(self)._request_attrs.items()
        })

    @cached_property
    def response_mapper(self) -> ResponseMapper:
        return ResponseMapper(
            {alias: getattr(self, name) for alias, name in type(self)._response_attrs.items()},
            self.resolve_hook
        )

    def resolve_hook(self, hook: Any) -> Callable:
        """Turn a hook reference from a spec into a callable."""
        if callable(hook):
            return hook
        if isinstance(hook, str) and callable(getattr(type(self), hook, None)):
            return getattr(self, hook)
        raise ConfigurationError(f"Unknown hook '{hook}' on {type(self).__name__}")

    # ============================================
    # Signing Helpers
    # ============================================

    @staticmethod
    def do_hmac_sha256_hex(message, secret) -> str:
        return hmac_sha256_hex(message, secret)

    @staticmethod
    def do_hmac_sha256_base64(message, secret) -> str:
        return hmac_sha256_base64(message, secret)
