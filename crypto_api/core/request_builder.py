"""
Request Builder

Turns the ``request`` half of a route spec plus the caller's keyword
arguments into the concrete outbound request. Caller aliases are translated
into destination field names:

    spec data:   {"pair": "symbol", "limit": {"field_name": "limit", "default": 100}}
    caller args: {"pair": "XRP-USDC"}
    payload:     {"symbol": "XRP-USDC", "limit": 100}

For each alias the value goes through: requiredness check → default →
``request_attr_<alias>`` formatter → checkers → inclusion policy.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from crypto_api.core.config import settings
from crypto_api.core.errors import ConfigurationError, MissingArgumentError, ValidationError
from crypto_api.core.logging import get_logger
from crypto_api.core.schemas import EventHooks, FieldRule, RequestSpec

logger = get_logger(__name__)


class BuiltRequest(NamedTuple):
    """Everything the HTTP collaborator needs for one call."""

    method: str
    path: str
    payload: Dict[str, Any]
    headers: Dict[str, Any]
    events: EventHooks
    # alias → FieldRule the payload was built from
    rules: Dict[str, FieldRule] = {}


class RequestBuilder:
    """
    Materializes a RequestSpec for one call.

    Attributes:
        formatters: alias → callable(value) applied after defaults. These are
                    the bound ``request_attr_<alias>`` methods of the API class.
    """

    def __init__(self, formatters: Optional[Mapping[str, Callable[[Any], Any]]] = None):
        self.formatters = dict(formatters or {})

    def build(self, spec: RequestSpec, caller_args: Mapping[str, Any]) -> BuiltRequest:
        """
        Build method, path, payload, headers and events for one call.

        Args:
            spec: Validated request spec
            caller_args: Keyword arguments given to the action

        Returns:
            BuiltRequest: Payload keyed by destination field names

        Raises:
            MissingArgumentError: Required alias absent
            ValidationError: A checker rejected a value
            ConfigurationError: Comma field_name with a scalar value, or bad events.keys
        """
        payload: Dict[str, Any] = {}
        rules: Dict[str, FieldRule] = {}
        events = spec.events.fresh() if spec.events else EventHooks()
        headers = dict(spec.headers or {})

        for alias in (spec.data or {}):
            rule = rules[alias] = spec.rule_for(alias)
            value = self._resolve_value(alias, rule, caller_args.get(alias))

            if value is not None or rule.include == "always":
                self._place(payload, alias, rule, value)
            else:
                events.not_include[rule.field_name] = True

        if events.keys is not None:
            mapped_keys = self.resolve_keys(spec, events.keys)
            events.keys = lambda: list(mapped_keys)

        if settings.debug:
            logger.debug(f"Built request: {spec.method.upper()} {spec.path} | Payload: {payload}")

        return BuiltRequest(spec.method, spec.path, payload, headers, events, rules)

    # ============================================
    # Per-field Steps
    # ============================================

    def _resolve_value(self, alias: str, rule: FieldRule, value: Any) -> Any:
        if value is None:
            if rule.required:
                raise MissingArgumentError(alias)
            if rule.default is not None:
                if callable(rule.default):
                    value = rule.default(alias, rule)
                else:
                    value = rule.default

        formatter = self.formatters.get(alias)
        if formatter is not None:
            value = formatter(value)

        for check in rule.checker:
            if not check.code(value):
                raise ValidationError(alias, check.err)

        return value

    @staticmethod
    def _place(payload: Dict[str, Any], alias: str, rule: FieldRule, value: Any) -> None:
        if isinstance(value, Mapping):
            # {"price": 1, "size": 2} with field_name "price,size"
            for key in rule.destination_keys:
                payload[key] = value.get(key)
        elif rule.fans_out:
            if value is not None:
                raise ConfigurationError(
                    f"'{alias}' maps to several fields ({rule.field_name}) and expects a mapping"
                )
            for key in rule.destination_keys:
                payload[key] = None
        else:
            payload[rule.field_name] = value

    @staticmethod
    def resolve_keys(spec: RequestSpec, keys: Any) -> List[str]:
        """
        Translate events.keys aliases into destination field names.

        Args:
            spec: Request spec holding the alias → rule map
            keys: List of aliases, or a zero-argument callable returning one

        Returns:
            Ordered destination names, comma lists flattened. Aliases without
            a rule are used verbatim.
        """
        if callable(keys):
            aliases = keys()
        elif isinstance(keys, (list, tuple)):
            aliases = keys
        else:
            raise ConfigurationError("Expected keys is either a callable or a list")

        mapped: List[str] = []
        for alias in aliases or []:
            rule = spec.rule_for(alias)
            if rule is None:
                mapped.append(alias)
            else:
                mapped.extend(rule.destination_keys)
        return mapped
