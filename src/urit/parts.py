"""Path parts: the structural units of a parsed template.

A template is a sequence of path parts, one per ``/`` delimited segment:

- ``Fixed``: a literal segment (``/users``)
- ``Variable``: a whole-segment variable, positional (``/?``) or named
  (``/{id}`` or ``/{id:[0-9]+}``)
- ``Composite``: a segment gluing literals and variables together without a
  separator (``/{name}.{ext}``)

Composites only exist with at least two sub-parts and at least one variable;
the parser collapses anything simpler into ``Fixed`` or ``Variable``.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET = object()

GROUP_PREFIX = "vsp"


class OnceCell(Generic[T]):
    """Write-once cache computed on first access.

    The computation runs exactly once, even when several threads ask for the
    value at the same time.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: object = _UNSET

    def get(self, compute: Callable[[], T]) -> T:
        value = self._value
        if value is _UNSET:
            with self._lock:
                if self._value is _UNSET:
                    self._value = compute()
                value = self._value
        return value  # type: ignore[return-value]

    @property
    def is_set(self) -> bool:
        return self._value is not _UNSET


@dataclass(frozen=True)
class Fixed:
    """A literal path segment (or literal piece of a composite)."""

    value: str


@dataclass(frozen=True)
class Variable:
    """A variable path segment (or variable piece of a composite).

    An empty ``name`` makes the variable positional. ``pattern`` keeps the
    regex as written in the template; ``regex`` is its anchored compiled form.
    """

    name: str = ""
    pattern: str = ""
    regex: re.Pattern[str] | None = field(default=None, compare=False, repr=False)

    @property
    def is_positional(self) -> bool:
        return self.name == ""

    def matches(self, value: str) -> bool:
        return self.regex is None or self.regex.match(value) is not None


@dataclass(frozen=True)
class CompiledComposite:
    """The synthesized regex of a composite and its capture group index."""

    regex: re.Pattern[str]
    group_index: dict[int, int]


@dataclass(frozen=True)
class Composite:
    """A segment made of several literal and variable sub-parts."""

    sub_parts: tuple[Fixed | Variable, ...]
    _compiled: OnceCell[CompiledComposite | None] = field(
        default_factory=OnceCell, init=False, compare=False, repr=False
    )

    @property
    def variables(self) -> list[Variable]:
        return [sp for sp in self.sub_parts if isinstance(sp, Variable)]

    def compiled(self) -> CompiledComposite | None:
        """Whole-segment regex with one named group per variable sub-part.

        Built on first use and shared by every later call. Returns None if
        the combined pattern does not compile.
        """
        return self._compiled.get(self._compile)

    def _compile(self) -> CompiledComposite | None:
        pieces = []
        for i, sp in enumerate(self.sub_parts):
            if isinstance(sp, Fixed):
                pieces.append(f"({re.escape(sp.value)})")
            elif sp.pattern:
                pieces.append(
                    f"(?P<{GROUP_PREFIX}{i}>{strip_regex_anchors(sp.pattern)})"
                )
            else:
                pieces.append(f"(?P<{GROUP_PREFIX}{i}>(?s:.*))")
        source = add_regex_anchors("".join(pieces))
        try:
            regex = re.compile(source)
        except re.error as e:
            logger.warning(f"Composite path part regex {source!r} failed: {e}")
            return None
        group_index = {
            int(name[len(GROUP_PREFIX) :]): number
            for name, number in regex.groupindex.items()
            if name.startswith(GROUP_PREFIX) and name[len(GROUP_PREFIX) :].isdigit()
        }
        return CompiledComposite(regex=regex, group_index=group_index)


PathPart = Fixed | Variable | Composite


def add_regex_anchors(pattern: str) -> str:
    """Anchor a pattern so it only matches a whole value.

    The tail anchor is ``\\Z``: ``$`` would also match before a trailing newline.
    """
    return "^(?:" + strip_regex_anchors(pattern) + r")\Z"


def strip_regex_anchors(pattern: str) -> str:
    if pattern.startswith("^"):
        pattern = pattern[1:]
    if pattern.endswith(r"\Z") and not _is_escaped(pattern, len(pattern) - 2):
        pattern = pattern[:-2]
    elif pattern.endswith("$") and not _is_escaped(pattern, len(pattern) - 1):
        pattern = pattern[:-1]
    return pattern


def _is_escaped(pattern: str, index: int) -> bool:
    backslashes = 0
    while index - backslashes > 0 and pattern[index - backslashes - 1] == "\\":
        backslashes += 1
    return backslashes % 2 == 1


def part_text(part: PathPart, *, with_patterns: bool = True) -> str:
    """Render a path part back to template syntax (without the leading ``/``)."""
    if isinstance(part, Fixed):
        return _fixed_text(part.value)
    if isinstance(part, Variable):
        if part.is_positional:
            return "?"
        name = part.name.replace(":", "\\:")
        if with_patterns and part.pattern:
            return "{" + name + ":" + part.pattern + "}"
        return "{" + name + "}"
    if isinstance(part, Composite):
        return "".join(
            part_text(sp, with_patterns=with_patterns) for sp in part.sub_parts
        )
    raise TypeError(f"Unknown path part: {part!r}")


def part_variables(part: PathPart) -> list[Variable]:
    """The variables of a path part, in template order."""
    if isinstance(part, Variable):
        return [part]
    if isinstance(part, Composite):
        return part.variables
    return []


_SYNTAX_CHARS = frozenset("/{}()[]\"'")


def _fixed_text(value: str) -> str:
    """Literal text, single-quoted when it would otherwise parse as syntax."""
    if (
        not value
        or value.startswith(("?", ":"))
        or any(ch in _SYNTAX_CHARS for ch in value)
    ):
        return "'" + value.replace("'", "\\'") + "'"
    return value
