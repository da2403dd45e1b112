"""
Route Spec Schemas

This module defines the Pydantic models that a declarative route spec is
validated into. Connector classes declare their specs as plain dicts:

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

and the engine parses them with ``parse_route_spec`` before using them.
Anything malformed (missing method, empty field_name, unknown sort
direction, unexpected key...) is reported as a ConfigurationError before
any request is sent.

Models:
    - Checker: one {code, err} predicate on a request value
    - FieldRule: how one caller alias becomes one or more payload fields
    - EventHooks: per-call signalling object shared with the HTTP collaborator
    - RequestSpec: method, path, field map, headers and events
    - SortDirective: one parsed entry of ``sort_by``
    - ResponseSpec: how to extract and reshape one part of the response
    - RouteSpec: request + one or several response specs
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as SchemaValidationError

from crypto_api.core.errors import ConfigurationError


HTTP_METHODS = ("get", "post", "put", "patch", "delete")

SORT_DIRECTIONS = ("asc", "desc", "nasc", "ndesc")

# A hook is either a callable or the name of a method on the API instance
Hook = Union[str, Callable[..., Any]]


# ============================================
# Request Side
# ============================================

class Checker(BaseModel):
    """A predicate run against a formatted request value."""

    model_config = ConfigDict(extra="forbid")

    code: Callable[[Any], Any]
    err: str = Field(..., min_length=1)


class FieldRule(BaseModel):
    """
    Mapping rule for one caller alias.

    Attributes:
        field_name: Destination field, or comma-joined destinations when the
                    caller passes a mapping ("price,size")
        required: Fail with MissingArgumentError when the alias is absent
        default: Literal value, or callable invoked as default(alias, rule)
        include: "always" keeps the field in the payload even when None
        checker: Predicates applied in order, first failure wins
    """

    model_config = ConfigDict(extra="forbid")

    field_name: str
    required: bool = False
    default: Any = None
    include: Optional[Literal["always"]] = None
    checker: List[Checker] = Field(default_factory=list)

    @field_validator("field_name")
    @classmethod
    def validate_field_name(cls, v: str) -> str:
        """Reject empty names and empty segments in comma lists"""
        if not v or any(not part.strip() for part in v.split(",")):
            raise ValueError(f"Malformed field_name: '{v}'")
        return v

    @property
    def destination_keys(self) -> List[str]:
        return [part.strip() for part in self.field_name.split(",")]

    @property
    def fans_out(self) -> bool:
        return "," in self.field_name


class EventHooks(BaseModel):
    """
    Per-call signalling object passed to the HTTP collaborator.

    ``keys`` names the caller aliases that make up the signed part of the
    request; the engine replaces it with a zero-argument accessor returning
    the destination field names. ``not_include`` is filled by the engine with
    the destination fields left out of the payload. Extra flags are kept for
    connector-specific use.
    """

    model_config = ConfigDict(extra="allow")

    keys: Optional[Union[Callable[[], Any], List[str]]] = None
    not_include: Dict[str, bool] = Field(default_factory=dict)
    test_request_object: bool = False
    test_response_object: bool = False

    def fresh(self) -> "EventHooks":
        """Shallow per-call copy with an empty not_include map."""
        return self.model_copy(update={"not_include": {}})


class RequestSpec(BaseModel):
    """Outbound half of a route spec."""

    model_config = ConfigDict(extra="forbid")

    method: str
    path: str
    data: Optional[Dict[str, Union[str, FieldRule]]] = None
    headers: Optional[Dict[str, Any]] = None
    events: Optional[EventHooks] = None

    @model_validator(mode="before")
    @classmethod
    def require_method_and_path(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            if not data.get("method"):
                raise ValueError("Missing method")
            if not data.get("path"):
                raise ValueError("Missing path or URL")
        return data

    @field_validator("method")
    @classmethod
    def validate_method(cls, v: str) -> str:
        """Normalise to a lowercase verb the collaborator implements"""
        v = v.lower()
        if v not in HTTP_METHODS:
            raise ValueError(f"Unsupported method '{v}'. Must be one of: {', '.join(HTTP_METHODS)}")
        return v

    @field_validator("data")
    @classmethod
    def validate_data(cls, v):
        for alias, rule in (v or {}).items():
            if isinstance(rule, str) and not rule:
                raise ValueError(f"Missing setting: field_name for '{alias}'")
        return v

    def rule_for(self, alias: str) -> Optional[FieldRule]:
        """The FieldRule for an alias, promoting plain strings"""
        rule = (self.data or {}).get(alias)
        if isinstance(rule, str):
            return FieldRule(field_name=rule)
        return rule


# ============================================
# Response Side
# ============================================

class SortDirective(BaseModel):
    """One ``{direction: dotted_path}`` entry of ``sort_by``."""

    direction: Literal["asc", "desc", "nasc", "ndesc"]
    path: str = Field(..., min_length=1)

    @property
    def numeric(self) -> bool:
        return self.direction.startswith("n")

    @property
    def descending(self) -> bool:
        return self.direction.endswith("desc")


class ResponseSpec(BaseModel):
    """
    Inbound half of a route spec.

    The ``array2[hash]`` and ``array2[hash.sort]`` keys are exposed as
    ``array2groups`` and ``group_sort``; both spellings are accepted.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    key: Optional[str] = None
    row: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)
    row_filter: Optional[Hook] = None
    sort: Optional[Hook] = None
    sort_by: List[SortDirective] = Field(default_factory=list)
    array2hash: Optional[str] = None
    array2groups: Optional[str] = Field(default=None, alias="array2[hash]")
    group_sort: Optional[Hook] = Field(default=None, alias="array2[hash.sort]")
    post_row: Optional[Hook] = None
    raw_process: Optional[Hook] = None

    @field_validator("sort_by", mode="before")
    @classmethod
    def parse_sort_by(cls, v: Any) -> Any:
        """Turn [{"ndesc": "price"}, ...] into SortDirective payloads"""
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("sort_by must be a list of {direction: path}")

        directives = []
        for entry in v:
            if isinstance(entry, SortDirective):
                directives.append(entry)
                continue
            if not isinstance(entry, Mapping) or len(entry) != 1:
                raise ValueError(f"Invalid sorting {entry!r}. Expected a single {{direction: path}}")
            direction, path = next(iter(entry.items()))
            if direction not in SORT_DIRECTIONS:
                raise ValueError(
                    f"Invalid sorting {entry!r}. Only accept asc, desc, nasc and ndesc"
                )
            directives.append({"direction": direction, "path": path})
        return directives

    @model_validator(mode="after")
    def validate_row(self) -> "ResponseSpec":
        if not self.row and self.raw_process is None:
            raise ValueError("Missing row spec")
        for alias, source in self.row.items():
            if alias == "_others":
                if not isinstance(source, list):
                    raise ValueError("_others must be a list of field names")
            elif not alias.startswith("_") and not isinstance(source, str):
                raise ValueError(f"Row field '{alias}' must map to a field name")
        return self

    @property
    def fields(self) -> Dict[str, str]:
        """Output alias → source field, underscore keys excluded"""
        return {a: s for a, s in self.row.items() if not a.startswith("_")}

    @property
    def others(self) -> List[str]:
        return list(self.row.get("_others") or [])


class RouteSpec(BaseModel):
    """Complete declarative description of one action."""

    model_config = ConfigDict(extra="forbid")

    request: RequestSpec
    response: Union[ResponseSpec, List[ResponseSpec]]

    @model_validator(mode="before")
    @classmethod
    def require_request_and_response(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            if not data.get("request"):
                raise ValueError("Missing request")
            if not data.get("response"):
                raise ValueError("Missing response")
        return data

    @property
    def response_specs(self) -> List[ResponseSpec]:
        if isinstance(self.response, list):
            return self.response
        return [self.response]

    @property
    def multi(self) -> bool:
        """True when the caller gets one result per declared response spec"""
        return isinstance(self.response, list)


def parse_route_spec(raw: Any, action: str = "") -> RouteSpec:
    """
    Validate a route spec declared as a dict.

    Args:
        raw: Dict returned by a ``set_<action>`` provider, or a RouteSpec
        action: Action name, used in the error message

    Returns:
        RouteSpec: Validated spec

    Raises:
        ConfigurationError: If the spec is malformed
    """
    if isinstance(raw, RouteSpec):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Route spec for '{action}' must be a mapping, got {type(raw).__name__}")
    try:
        return RouteSpec.model_validate(raw)
    except SchemaValidationError as e:
        raise ConfigurationError(f"Invalid route spec for '{action}': {e}") from e
