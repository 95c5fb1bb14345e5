"""Query params appended to generated paths.

Wire format: ``?k=v&k2=v2`` with keys and values percent-encoded (spaces as
``+``), repeated keys for multiple values, a bare key when a key has no
values (or a single None value), keys in sorted order unless disabled.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import quote_plus

from urit.errors import QueryParamsError
from urit.values import value_to_str


class QueryParams:
    """Multi-valued query params, kept in insertion order."""

    def __init__(
        self,
        params: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        *,
        sorted: bool = True,
    ):
        """Initialize query params.

        Args:
            params: A mapping (list or tuple values add several values, None
                or an empty list gives a bare key) or an iterable of
                (key, value) pairs
            sorted: Emit keys in sorted order

        Raises:
            QueryParamsError: If a pair is malformed or a key is not a string
        """
        self._params: dict[str, list[Any]] = {}
        self._sorted = sorted
        if params is None:
            return
        if isinstance(params, Mapping):
            for key, value in params.items():
                self._check_key(key)
                if value is None:
                    self._params.setdefault(key, [])
                elif isinstance(value, (list, tuple)):
                    self._params.setdefault(key, []).extend(value)
                else:
                    self._params.setdefault(key, []).append(value)
            return
        for pair in params:
            if not isinstance(pair, tuple) or len(pair) != 2:
                raise QueryParamsError(f"expected a (key, value) pair, got {pair!r}")
            self._check_key(pair[0])
            self._params.setdefault(pair[0], []).append(pair[1])

    @staticmethod
    def _check_key(key: Any) -> None:
        if not isinstance(key, str):
            raise QueryParamsError(f"query param name must be a string: {key!r}")

    def get(self, key: str) -> Any:
        """First value for the key, or None."""
        values = self._params.get(key)
        if values:
            return values[0]
        return None

    def get_index(self, key: str, index: int) -> Any:
        """Value at the index for the key (negative counts from the end), or None."""
        values = self._params.get(key, [])
        if -len(values) <= index < len(values):
            return values[index]
        return None

    def set(self, key: str, value: Any) -> QueryParams:
        """Replace all values of the key with the value."""
        self._check_key(key)
        self._params[key] = [value]
        return self

    def add(self, key: str, value: Any) -> QueryParams:
        """Append a value for the key."""
        self._check_key(key)
        self._params.setdefault(key, []).append(value)
        return self

    def delete(self, key: str) -> QueryParams:
        self._params.pop(key, None)
        return self

    def has(self, key: str) -> bool:
        return key in self._params

    def sorted(self, on: bool) -> QueryParams:
        """Turn key sorting on or off."""
        self._sorted = on
        return self

    def clone(self) -> QueryParams:
        result = QueryParams(sorted=self._sorted)
        result._params = {k: list(v) for k, v in self._params.items()}
        return result

    def to_query(self) -> str:
        """Render the query string, including the leading ``?``.

        Returns:
            The query string, or an empty string when there are no params

        Raises:
            ValueCoercionError: If a value has no string form
        """
        names = list(self._params)
        if self._sorted:
            names.sort()
        pieces = []
        for name in names:
            values = self._params[name]
            key = quote_plus(name)
            if not values or (len(values) == 1 and values[0] is None):
                pieces.append(key)
                continue
            for value in values:
                if value is None:
                    pieces.append(key)
                else:
                    pieces.append(f"{key}={quote_plus(value_to_str(value))}")
        if not pieces:
            return ""
        return "?" + "&".join(pieces)

    def __len__(self) -> int:
        return len(self._params)

    def __contains__(self, key: object) -> bool:
        return key in self._params

    def __repr__(self) -> str:
        return f"QueryParams({self._params!r}, sorted={self._sorted})"
