"""Building paths from path parts, and partially resolving path parts.

Both walk the parts left to right with a ``PositionsTracker`` that maps
supplied values onto template variables:

- positional vars are consumed in order, one per variable (including those
  inside composite segments)
- named vars are consumed per name: the k-th occurrence of ``{id}`` in the
  template takes the k-th ``id`` value supplied
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from urit.errors import PathBuildError, ValueCoercionError
from urit.host import Host
from urit.options import VarContext, VarMatchOption, check_var
from urit.parts import Composite, Fixed, PathPart, Variable
from urit.path_vars import PathVars, VarsType
from urit.query_params import QueryParams

logger = logging.getLogger(__name__)


class PositionsTracker:
    """Cursor over supplied path vars while walking a template."""

    def __init__(
        self,
        vars: PathVars | None,
        var_options: Sequence[VarMatchOption] = (),
    ):
        self.vars = vars if vars is not None else PathVars(VarsType.POSITIONS)
        self.var_options = tuple(var_options)
        self.var_position = 0
        self.path_position = 0
        self.named_positions: dict[str, int] = {}

    def next_value(self, variable: Variable) -> str:
        """Resolve the value for the next template variable.

        Raises:
            PathBuildError: If there is no value, or a var match option
                rejects it
        """
        if self.vars.kind is VarsType.POSITIONS:
            value = self.vars.get_positional(self.var_position)
            if value is None:
                raise PathBuildError(f"no var for position {self.var_position + 1}")
            value = self._check(value, variable)
            self.var_position += 1
            return value

        if variable.is_positional:
            raise PathBuildError(
                f"no var for position {self.var_position + 1} (named vars supplied)"
            )
        occurrence = self.named_positions.get(variable.name, 0)
        value = self.vars.get_named(variable.name, occurrence)
        if value is None:
            if occurrence == 0:
                raise PathBuildError(f"no var for '{variable.name}'")
            raise PathBuildError(
                f"no var for '{variable.name}' (occurrence {occurrence + 1})"
            )
        value = self._check(value, variable)
        self.named_positions[variable.name] = occurrence + 1
        self.var_position += 1
        return value

    def try_next_value(self, variable: Variable) -> str | None:
        """Same as next_value, but None instead of raising."""
        try:
            return self.next_value(variable)
        except PathBuildError:
            return None

    def _check(self, value: str, variable: Variable) -> str:
        if not self.var_options:
            return value
        context = VarContext(
            name=variable.name,
            position=self.var_position,
            path_position=self.path_position,
            regex=variable.regex,
            pattern=variable.pattern,
            vars=self.vars,
        )
        checked = check_var(self.var_options, value, context)
        if checked is None:
            label = f"'{variable.name}'" if variable.name else "var"
            raise PathBuildError(
                f"path {label} rejected at position {self.var_position + 1}: {value!r}"
            )
        return checked


def build_path(
    parts: Sequence[PathPart],
    vars: PathVars | None,
    host: Host | None = None,
    query: QueryParams | None = None,
    var_options: Sequence[VarMatchOption] = (),
) -> str:
    """Generate a path from path parts and the supplied vars.

    Args:
        parts: The template's path parts
        vars: Values for the template variables
        host: Optional host prepended verbatim
        query: Optional query params appended as a query string
        var_options: Var match options checking or rewriting each value

    Returns:
        The generated path (or URL, when a host is given)

    Raises:
        PathBuildError: If a variable has no value, a value is rejected, or a
            query param value cannot be represented
    """
    tracker = PositionsTracker(vars, var_options)
    pieces = [host.address] if host is not None else []
    try:
        for part in parts:
            pieces.append("/" + _part_from(part, tracker))
            tracker.path_position += 1
    except PathBuildError as e:
        logger.debug(f"Path build failed at part {tracker.path_position}: {e}")
        raise
    if not parts:
        pieces.append("/")
    if query is not None:
        try:
            pieces.append(query.to_query())
        except ValueCoercionError as e:
            raise PathBuildError(f"query param problem: {e}") from e
    return "".join(pieces)


def _part_from(part: PathPart, tracker: PositionsTracker) -> str:
    if isinstance(part, Fixed):
        return part.value
    if isinstance(part, Variable):
        return tracker.next_value(part)
    if isinstance(part, Composite):
        return "".join(
            sp.value if isinstance(sp, Fixed) else tracker.next_value(sp)
            for sp in part.sub_parts
        )
    raise TypeError(f"Unknown path part: {part!r}")


def resolve_parts(
    parts: Sequence[PathPart], vars: PathVars | None
) -> list[PathPart]:
    """Rewrite every variable that has a value into a fixed part.

    Variables without a value are carried over unchanged. A composite whose
    variables all resolve collapses into a single fixed part.
    """
    tracker = PositionsTracker(vars)
    result: list[PathPart] = []
    for part in parts:
        result.append(_resolve_part(part, tracker))
        tracker.path_position += 1
    return result


def _resolve_part(part: PathPart, tracker: PositionsTracker) -> PathPart:
    if isinstance(part, Fixed):
        return part
    if isinstance(part, Variable):
        value = tracker.try_next_value(part)
        return part if value is None else Fixed(value)
    if isinstance(part, Composite):
        sub_parts: list[Fixed | Variable] = []
        for sp in part.sub_parts:
            if isinstance(sp, Fixed):
                sub_parts.append(sp)
                continue
            value = tracker.try_next_value(sp)
            sub_parts.append(sp if value is None else Fixed(value))
        if all(isinstance(sp, Fixed) for sp in sub_parts):
            return Fixed("".join(sp.value for sp in sub_parts))
        return Composite(tuple(sub_parts))
    raise TypeError(f"Unknown path part: {part!r}")
