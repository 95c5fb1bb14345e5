"""Match and transform extension points.

Fixed match options decide whether a literal path segment matches the
template's literal; the first option that passes wins. Var match options can
reject or rewrite a variable value, both when matching a path and when
building one; every applicable option runs in order until one rejects.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from urit.path_vars import PathVars

T = TypeVar("T")


@dataclass(frozen=True)
class VarContext:
    """Where a variable value sits within the template and the call."""

    name: str
    """Variable name; empty for positional vars."""

    position: int
    """Index of the variable among all template vars."""

    path_position: int
    """Index of the path part (segment) holding the variable."""

    regex: re.Pattern[str] | None
    pattern: str
    vars: PathVars | None


class FixedMatchOption(ABC):
    """Decides whether a path segment matches a fixed template segment."""

    @abstractmethod
    def match(
        self, value: str, expected: str, path_position: int, vars: PathVars
    ) -> bool:
        """Return True if the segment ``value`` matches the literal ``expected``."""


class VarMatchOption(ABC):
    """Checks, and optionally rewrites, path variable values."""

    @abstractmethod
    def applicable(self, value: str, context: VarContext) -> bool:
        """Return True if this option should check the value."""

    @abstractmethod
    def match(self, value: str, context: VarContext) -> str | None:
        """Return the (possibly rewritten) value, or None to reject it."""


class CaseInsensitiveFixed(FixedMatchOption):
    """Fixed path parts match regardless of case."""

    def match(
        self, value: str, expected: str, path_position: int, vars: PathVars
    ) -> bool:
        return value == expected or value.casefold() == expected.casefold()


class PathRegexCheck(VarMatchOption):
    """Checks values against the variable's regex.

    Mostly useful when building paths, where supplied values are otherwise
    not checked against the template's patterns.
    """

    def applicable(self, value: str, context: VarContext) -> bool:
        return context.regex is not None

    def match(self, value: str, context: VarContext) -> str | None:
        if context.regex is not None and context.regex.match(value) is None:
            return None
        return value


CASE_INSENSITIVE_FIXED = CaseInsensitiveFixed()
PATH_REGEX_CHECK = PathRegexCheck()


@dataclass(frozen=True)
class MatchOptions:
    """Match options registered with a template or supplied per call."""

    fixed: tuple[FixedMatchOption, ...] = field(default=())
    vars: tuple[VarMatchOption, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "fixed", _unique(self.fixed))
        object.__setattr__(self, "vars", _unique(self.vars))

    def merge(self, other: MatchOptions | None) -> MatchOptions:
        """Options of self followed by those of other not already present."""
        if other is None or (not other.fixed and not other.vars):
            return self
        return MatchOptions(
            fixed=self.fixed + other.fixed,
            vars=self.vars + other.vars,
        )

    def __bool__(self) -> bool:
        return bool(self.fixed or self.vars)


def check_fixed(
    options: Sequence[FixedMatchOption],
    value: str,
    expected: str,
    path_position: int,
    vars: PathVars,
) -> bool:
    """Exact equality, or the first option that accepts the value."""
    if value == expected:
        return True
    return any(o.match(value, expected, path_position, vars) for o in options)


def check_var(
    options: Sequence[VarMatchOption], value: str, context: VarContext
) -> str | None:
    """Run every applicable option in turn, stopping at the first rejection."""
    result = value
    for option in options:
        if option.applicable(result, context):
            checked = option.match(result, context)
            if checked is None:
                return None
            result = checked
    return result


def _unique(items: Iterable[T]) -> tuple[T, ...]:
    seen: list[int] = []
    result = []
    for item in items:
        if id(item) not in seen:
            seen.append(id(item))
            result.append(item)
    return tuple(result)
