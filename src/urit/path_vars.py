"""Path vars: the values extracted from, or supplied to, a template.

A ``PathVars`` container is either positional (``/users/?``) or named
(``/users/{id}``), fixed at construction. Matching a path returns a fresh
container of the template's kind; building a path reads values from a
caller-supplied container.

Containers are cheap, per-call objects. Do not share one across threads
while it is being populated.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from urit.errors import PathVarsError
from urit.values import coerce_value


class VarsType(Enum):
    POSITIONS = "positions"
    NAMES = "names"


class PathVar(BaseModel):
    """
    One realized occurrence of a path variable.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    """
    Variable name; empty for positional vars.
    """

    named_position: int = 0
    """
    Index among the occurrences of the same name.
    """

    position: int = 0
    """
    Index among all vars, in template order.
    """

    value: Any = None
    """
    The raw value as added (coerced to a string when read).
    """


class PathVars:
    """Ordered, positionally or name addressable store of path var values."""

    def __init__(self, kind: VarsType = VarsType.NAMES):
        self._kind = kind
        self._all: list[PathVar] = []
        self._named: dict[str, list[PathVar]] = {}

    @classmethod
    def positional(cls, *values: Any) -> PathVars:
        """Create positional path vars from the values supplied."""
        result = cls(VarsType.POSITIONS)
        for value in values:
            result.add_positional(value)
        return result

    @classmethod
    def named(cls, *pairs: tuple[str, Any], **values: Any) -> PathVars:
        """Create named path vars.

        Pairs come first (and may repeat a name), then keyword values::

            PathVars.named(("id", 1), ("id", 2), kind="user")
        """
        result = cls(VarsType.NAMES)
        for pair in pairs:
            if len(pair) != 2 or not isinstance(pair[0], str):
                raise PathVarsError(f"expected a (name, value) pair, got {pair!r}")
            result.add_named(pair[0], pair[1])
        for name, value in values.items():
            result.add_named(name, value)
        return result

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> PathVars:
        """Create named path vars from a mapping.

        List and tuple values add one occurrence per item.
        """
        result = cls(VarsType.NAMES)
        for name, value in mapping.items():
            if isinstance(value, (list, tuple)):
                for item in value:
                    result.add_named(name, item)
            else:
                result.add_named(name, value)
        return result

    @property
    def kind(self) -> VarsType:
        return self._kind

    def add_named(self, name: str, value: Any) -> None:
        """Append a value for the name.

        Raises:
            PathVarsError: If these are positional vars
        """
        if self._kind is not VarsType.NAMES:
            raise PathVarsError("cannot add named var to positional vars")
        occurrences = self._named.setdefault(name, [])
        var = PathVar(
            name=name,
            named_position=len(occurrences),
            position=len(self._all),
            value=value,
        )
        occurrences.append(var)
        self._all.append(var)

    def add_positional(self, value: Any) -> None:
        """Append a positional value.

        Raises:
            PathVarsError: If these are named vars
        """
        if self._kind is not VarsType.POSITIONS:
            raise PathVarsError("cannot add positional var to named vars")
        self._all.append(PathVar(position=len(self._all), value=value))

    def add(self, name: str, value: Any) -> None:
        """Append a value, by name or positionally depending on the name."""
        if name:
            self.add_named(name, value)
        else:
            self.add_positional(value)

    def get_positional(self, position: int) -> str | None:
        """Value at the position across all vars; negative counts from the end."""
        return _value_at(self._all, position)

    def get_named(self, name: str, position: int = 0) -> str | None:
        """Value of the n-th occurrence of the name; negative counts from the end."""
        return _value_at(self._named.get(name, []), position)

    def get_named_first(self, name: str) -> str | None:
        return self.get_named(name, 0)

    def get_named_last(self, name: str) -> str | None:
        return self.get_named(name, -1)

    def get(self, *idents: int | str) -> str | None:
        """Look up by position, by name, or by name and occurrence.

        ``get(0)``, ``get("id")`` and ``get("id", 1)`` are all valid; anything
        else returns None.
        """
        if len(idents) == 1:
            ident = idents[0]
            if isinstance(ident, bool):
                return None
            if isinstance(ident, int):
                return self.get_positional(ident)
            if isinstance(ident, str):
                return self.get_named_first(ident)
        elif len(idents) == 2:
            name, position = idents
            if isinstance(name, str) and isinstance(position, int):
                return self.get_named(name, position)
        return None

    def all(self) -> list[PathVar]:
        return list(self._all)

    def names(self) -> list[str]:
        """Distinct var names in order of first occurrence."""
        return list(self._named)

    def clear(self) -> None:
        self._all = []
        self._named = {}

    def to_dict(self) -> dict[str | int, Any]:
        """Coerced values keyed by name (or position for positional vars).

        A name with several occurrences maps to the list of its values.
        """
        if self._kind is VarsType.POSITIONS:
            return {var.position: coerce_value(var.value) for var in self._all}
        result: dict[str | int, Any] = {}
        for name, occurrences in self._named.items():
            values = [coerce_value(var.value) for var in occurrences]
            result[name] = values[0] if len(values) == 1 else values
        return result

    def __len__(self) -> int:
        return len(self._all)

    def __iter__(self) -> Iterator[PathVar]:
        return iter(list(self._all))

    def __getitem__(self, key: int | str | tuple[str, int]) -> str:
        if isinstance(key, tuple):
            result = self.get(*key)
        else:
            result = self.get(key)
        if result is None:
            if isinstance(key, int) and not isinstance(key, bool):
                raise IndexError(f"no path var at position {key}")
            raise KeyError(key)
        return result

    def __repr__(self) -> str:
        return f"PathVars({self._kind.value}, {self.to_dict()!r})"


def _value_at(vars: list[PathVar], position: int) -> str | None:
    if -len(vars) <= position < len(vars):
        return coerce_value(vars[position].value)
    return None
