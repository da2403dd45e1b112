"""
Error Taxonomy

Every failure raised by the route-spec engine derives from CryptoAPIError,
so callers can catch the whole family at once. All of them are fatal to the
current action call; nothing is retried inside the engine.

    CryptoAPIError
    ├── ConfigurationError     malformed route spec or hook
    ├── MissingArgumentError   required alias absent and no default
    ├── ValidationError        a checker predicate rejected a value
    ├── UnknownActionError     no set_<name> provider (also AttributeError)
    ├── PathError              dotted path indexed into a scalar
    └── HttpRequestError       the HTTP collaborator gave up
"""

from typing import Optional


class CryptoAPIError(Exception):
    """Base class for all crypto_api errors."""


class ConfigurationError(CryptoAPIError):
    """A route spec, field rule or hook is malformed."""


class MissingArgumentError(CryptoAPIError):
    """A required caller argument was not supplied."""

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"Missing argument: {alias}")


class ValidationError(CryptoAPIError):
    """
    A checker predicate returned a falsy value.

    Attributes:
        alias: Caller-facing argument name that failed
        message: The ``err`` text declared next to the predicate
    """

    def __init__(self, alias: str, message: str):
        self.alias = alias
        self.message = message
        super().__init__(f"{alias} {message}")


class UnknownActionError(CryptoAPIError, AttributeError):
    """No ``set_<name>`` provider exists for the requested action."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Can't call method '{name}'")


class PathError(CryptoAPIError):
    """A dotted path could not be traversed."""

    def __init__(self, path: str, reason: str = "Path deadend"):
        self.path = path
        super().__init__(f"{reason} {path}")


class HttpRequestError(CryptoAPIError):
    """The HTTP collaborator failed to obtain a usable response."""

    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
        self.status = status
        self.url = url
        super().__init__(message)
