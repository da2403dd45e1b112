"""
Dotted Path Utilities

Exchanges nest the interesting part of a response at different depths
(``{"data": {"ticker": [...]}}``, ``{"result": [...]}``...). Route specs
address that part with a dotted path such as ``"data.ticker"`` or
``"result.0.list"``; these helpers resolve such paths over nested
mappings and sequences.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Optional

from crypto_api.core.errors import PathError
from crypto_api.core.logging import get_logger

logger = get_logger(__name__)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def get_path(data: Any, path: Optional[str]) -> Any:
    """
    Resolve a dotted path inside nested mappings and sequences.

    Args:
        data: Parsed JSON document (dict, list or scalar)
        path: Dotted path, e.g. "data.items.0.price". None or "" returns data

    Returns:
        The value found at the path, or None when a segment is missing

    Raises:
        PathError: If the path has an empty segment, a sequence is indexed
                   with a non-integer segment, or a scalar is indexed

    Notes:
        - A single-segment path on a mapping is a plain key lookup
        - Missing segments are logged as warnings and yield None
    """
    if not path:
        return data

    if "." not in path and isinstance(data, Mapping):
        return data.get(path)

    xpath = ""

    for item in path.split("."):
        if not item:
            raise PathError(path, "Invalid path:")

        xpath += f".{item}"

        if isinstance(data, Mapping):
            if item not in data:
                logger.warning(f"{xpath} is not exists")
                return None
            data = data[item]

        elif _is_sequence(data):
            try:
                index = int(item)
            except ValueError:
                raise PathError(xpath, "Invalid index at") from None
            if not -len(data) <= index < len(data) or data[index] is None:
                logger.warning(f"{xpath} is not exists")
                return None
            data = data[index]

        else:
            raise PathError(xpath)

    return data


def defined_or(value: Any, fallback: Any) -> Any:
    """
    Return value unless it is None or empty, otherwise fallback.

    Used by the sort engine so a missing field and an empty string both
    sort as the type's neutral value. Zero is a real value and is kept.

    Example:
        >>> defined_or("", 0)
        0
        >>> defined_or(0, "")
        0
    """
    if value is None:
        return fallback
    if isinstance(value, (str, bytes)) and len(value) == 0:
        return fallback
    return value
