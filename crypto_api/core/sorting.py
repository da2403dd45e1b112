"""
Row Sort Engine

Folds ``sort_by`` directives into one comparator. Each directive is a
``{direction: dotted_path}`` pair:

    asc / desc     lexicographic on str(value), missing or empty → ""
    nasc / ndesc   numeric, missing, empty or non-numeric → 0
                   (datetimes compare by their timestamp)

Directives are combined left to right: the first one is the primary key and
later ones only break ties. Python's sort is stable, so rows equal on every
key keep their input order.

Example:
    rows = sort_rows(rows, [SortDirective(direction="ndesc", path="price"),
                            SortDirective(direction="asc", path="pair")])
"""

from datetime import datetime
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Sequence

from crypto_api.core.config import settings
from crypto_api.core.logging import get_logger
from crypto_api.core.schemas import SortDirective
from crypto_api.core.utils.paths import defined_or, get_path

logger = get_logger(__name__)

Comparator = Callable[[Any, Any], int]


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _to_number(value: Any) -> float:
    value = defined_or(value, 0)
    if isinstance(value, datetime):
        return value.timestamp()
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_text(value: Any) -> str:
    return str(defined_or(value, ""))


def directive_comparator(directive: SortDirective) -> Comparator:
    """Comparator for a single directive."""
    path = directive.path
    convert = _to_number if directive.numeric else _to_text

    if directive.descending:
        def compare(a, b):
            return _cmp(convert(get_path(b, path)), convert(get_path(a, path)))
    else:
        def compare(a, b):
            return _cmp(convert(get_path(a, path)), convert(get_path(b, path)))

    return compare


def build_comparator(directives: Sequence[SortDirective]) -> Comparator:
    """
    Fold directives into one comparator, first directive first.

    Args:
        directives: Parsed sort_by entries

    Returns:
        A cmp-style function returning -1, 0 or 1
    """
    comparators = [directive_comparator(d) for d in directives]

    def compare(a, b):
        for comparator in comparators:
            result = comparator(a, b)
            if result:
                return result
        return 0

    return compare


def sort_rows(rows: Sequence[Dict[str, Any]], directives: Sequence[SortDirective]) -> List[Dict[str, Any]]:
    """Return a new list of rows ordered by the directives."""
    if not directives:
        return list(rows)

    if settings.debug:
        logger.debug(
            "SORT: " + " || ".join(f"{d.direction} {d.path}" for d in directives)
        )

    return sorted(rows, key=cmp_to_key(build_comparator(directives)))


def sort_with(rows: Sequence[Any], comparator: Comparator) -> List[Any]:
    """Sort with a user supplied pairwise comparator (``sort`` hooks)."""
    return sorted(rows, key=cmp_to_key(comparator))
