"""Header values applied to requests built from templates."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from urit.values import value_to_str


class Headers:
    """Header values, coerced to strings when the request is built."""

    def __init__(self, entries: Mapping[str, Any] | None = None):
        self._entries: dict[str, Any] = dict(entries or {})

    def set(self, key: str, value: Any) -> Headers:
        self._entries[key] = value
        return self

    def get(self, key: str) -> Any:
        return self._entries.get(key)

    def has(self, key: str) -> bool:
        return key in self._entries

    def delete(self, key: str) -> Headers:
        self._entries.pop(key, None)
        return self

    def clone(self) -> Headers:
        return Headers(self._entries)

    def resolve(self) -> dict[str, str]:
        """Header values as strings.

        Raises:
            ValueCoercionError: If a value has no string form
        """
        return {key: value_to_str(value) for key, value in self._entries.items()}

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Headers({self._entries!r})"
