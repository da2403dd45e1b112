"""
Response Mapper

Turns the parsed JSON body into normalized rows following the ``response``
half of a route spec. For every ResponseSpec, in declaration order:

    1. extract the sub-document at ``key`` (dotted path)
    2. ``raw_process`` hands the extracted document to a hook and stops there
    3. map each element (or the single object) through ``row``
    4. ``row_filter`` per row: "" / None keep, "next" skip, "last" stop
    5. ``sort`` comparator, then ``sort_by`` directives
    6. reshape: list (default), ``array2hash`` or ``array2[hash]``
    7. ``post_row`` for in-place enrichment

Example:
    spec: {"key": "data", "row": {"pair": "symbol", "last_price": "last"}}
    body: {"data": [{"symbol": "XRP-USDC", "last": 1234}]}
    →     [{"pair": "XRP-USDC", "last_price": 1234}]
"""

from collections.abc import Mapping, Sequence
from typing import Any, Callable, Dict, List, Optional, Union

from crypto_api.core.errors import ConfigurationError
from crypto_api.core.logging import get_logger
from crypto_api.core.request_builder import BuiltRequest
from crypto_api.core.schemas import ResponseSpec
from crypto_api.core.sorting import sort_rows, sort_with
from crypto_api.core.utils.paths import get_path

logger = get_logger(__name__)

MappedRow = Dict[str, Any]

ROW_FILTER_ACTIONS = ("", "next", "last")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _read(row: Any, field: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(field)
    if _is_sequence(row):
        # Array rows such as klines are addressed by position
        try:
            index = int(field)
        except ValueError:
            return None
        return row[index] if -len(row) <= index < len(row) else None
    return None


class ResponseMapper:
    """
    Applies response specs to a parsed body.

    Attributes:
        formatters: alias → callable(value, source_row), the bound
                    ``response_attr_<alias>`` methods of the API class
        resolve_hook: turns a hook reference (callable or method name) into
                      a callable
    """

    def __init__(
        self,
        formatters: Optional[Mapping[str, Callable[[Any, Any], Any]]] = None,
        resolve_hook: Optional[Callable[[Any], Callable]] = None
    ):
        self.formatters = dict(formatters or {})
        self.resolve_hook = resolve_hook or self._callable_only

    @staticmethod
    def _callable_only(hook: Any) -> Callable:
        if not callable(hook):
            raise ConfigurationError(f"Hook {hook!r} is not callable")
        return hook

    def map(
        self,
        specs: Union[ResponseSpec, List[ResponseSpec]],
        body: Any,
        request: Optional[BuiltRequest] = None
    ) -> Any:
        """
        Map a parsed body through one or several response specs.

        Args:
            specs: A single ResponseSpec, or a list of them
            body: Parsed JSON response
            request: The request that produced the body (for raw_process)

        Returns:
            The single result for a single spec, a list of results otherwise
        """
        multi = isinstance(specs, list)
        results = [self.map_one(spec, body, request) for spec in (specs if multi else [specs])]
        return results if multi else results[0]

    def map_one(self, spec: ResponseSpec, body: Any, request: Optional[BuiltRequest] = None) -> Any:
        """Apply one ResponseSpec and return its reshaped result."""
        resp = get_path(body, spec.key)

        if spec.raw_process is not None:
            raw_process = self.resolve_hook(spec.raw_process)
            return raw_process(request=self._request_context(request), response=resp)

        if not _is_sequence(resp):
            mapped_row = self.map_row(spec, resp)
            if spec.post_row is not None:
                self.resolve_hook(spec.post_row)(mapped_row, mapped_row)
            return mapped_row

        rows = self._filter_rows(spec, resp)

        if spec.sort is not None:
            rows = sort_with(rows, self.resolve_hook(spec.sort))

        if spec.sort_by:
            rows = sort_rows(rows, spec.sort_by)

        result = self._reshape(spec, rows)

        if spec.post_row is not None:
            post_row = self.resolve_hook(spec.post_row)
            for row in rows:
                post_row(row, result)

        return result

    # ============================================
    # Row Mapping
    # ============================================

    def map_row(self, spec: ResponseSpec, row: Any) -> MappedRow:
        """
        Map one source object to a MappedRow.

        A missing source object (the key pointed nowhere) maps every alias
        to None so the caller still gets the normalized shape.
        """
        mapped: MappedRow = {}

        for alias, source in spec.fields.items():
            mapped[alias] = self._format(alias, _read(row, source), row)

        others = spec.others
        if others:
            mapped["_others"] = {
                key: self._format(key, _read(row, key), row) for key in others
            }

        return mapped

    def _format(self, alias: str, value: Any, row: Any) -> Any:
        formatter = self.formatters.get(alias)
        if formatter is None:
            return value
        return formatter(value, row)

    def _filter_rows(self, spec: ResponseSpec, source_rows: Sequence[Any]) -> List[MappedRow]:
        row_filter = self.resolve_hook(spec.row_filter) if spec.row_filter is not None else None
        rows: List[MappedRow] = []

        for source in source_rows:
            mapped = self.map_row(spec, source)

            if row_filter is not None:
                action = row_filter(mapped) or ""
                if action not in ROW_FILTER_ACTIONS:
                    raise ConfigurationError(
                        f"Row filter returned {action!r}, expected either 'next' or 'last' or '' or None"
                    )
                if action == "next":
                    continue
                if action == "last":
                    break

            rows.append(mapped)

        return rows

    # ============================================
    # Reshaping
    # ============================================

    def _reshape(self, spec: ResponseSpec, rows: List[MappedRow]) -> Any:
        if spec.array2hash:
            # Duplicate keys: the last row wins
            return {row.get(spec.array2hash): row for row in rows}

        if spec.array2groups:
            groups: Dict[Any, List[MappedRow]] = {}
            for row in rows:
                groups.setdefault(row.get(spec.array2groups), []).append(row)

            if spec.group_sort is not None:
                group_sort = self.resolve_hook(spec.group_sort)
                for key, group in groups.items():
                    groups[key] = sort_with(group, group_sort)

            return groups

        return rows

    @staticmethod
    def _request_context(request: Optional[BuiltRequest]) -> Dict[str, Any]:
        if request is None:
            return {}
        return {
            "method": request.method,
            "path": request.path,
            "data": request.rules,
            "payload": request.payload,
            "headers": request.headers,
            "events": request.events,
        }
