"""Matching live paths against parsed path parts."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from urit.errors import SplitError
from urit.options import MatchOptions, VarContext, check_fixed, check_var
from urit.parts import Composite, Fixed, PathPart, Variable
from urit.path_vars import PathVars, VarsType
from urit.splitter import path_splitter

logger = logging.getLogger(__name__)


def match_parts(
    parts: Sequence[PathPart],
    path: str,
    kind: VarsType,
    options: MatchOptions | None = None,
) -> PathVars | None:
    """Match a path against path parts, extracting the variables.

    Args:
        parts: The template's path parts
        path: The (already decoded) path to match
        kind: The kind of path vars to return
        options: Fixed and var match options to apply

    Returns:
        Path vars in template order on a match, None otherwise
    """
    try:
        segments = path_splitter.split(path)
    except SplitError as e:
        logger.debug(f"Path {path!r} does not split: {e}")
        return None
    if len(segments) != len(parts):
        logger.debug(
            f"Path {path!r} has {len(segments)} segments, template has {len(parts)}"
        )
        return None

    options = options or MatchOptions()
    result = PathVars(kind)
    for path_position, (part, segment) in enumerate(zip(parts, segments)):
        if not _match_part(part, segment.text, path_position, result, options):
            logger.debug(f"Path {path!r} does not match at segment {path_position}")
            return None
    return result


def _match_part(
    part: PathPart,
    value: str,
    path_position: int,
    vars: PathVars,
    options: MatchOptions,
) -> bool:
    if isinstance(part, Fixed):
        return check_fixed(options.fixed, value, part.value, path_position, vars)
    if isinstance(part, Variable):
        if not part.matches(value):
            return False
        return _add_found(part, value, path_position, vars, options)
    if isinstance(part, Composite):
        return _match_composite(part, value, path_position, vars, options)
    raise TypeError(f"Unknown path part: {part!r}")


def _match_composite(
    part: Composite,
    value: str,
    path_position: int,
    vars: PathVars,
    options: MatchOptions,
) -> bool:
    compiled = part.compiled()
    if compiled is None:
        return False
    found = compiled.regex.match(value)
    if found is None:
        return False
    for i, sp in enumerate(part.sub_parts):
        if isinstance(sp, Variable):
            sub_value = found.group(compiled.group_index[i])
            if not _add_found(sp, sub_value, path_position, vars, options):
                return False
    return True


def _add_found(
    variable: Variable,
    value: str,
    path_position: int,
    vars: PathVars,
    options: MatchOptions,
) -> bool:
    if options.vars:
        context = VarContext(
            name=variable.name,
            position=len(vars),
            path_position=path_position,
            regex=variable.regex,
            pattern=variable.pattern,
            vars=vars,
        )
        checked = check_var(options.vars, value, context)
        if checked is None:
            return False
        value = checked
    vars.add(variable.name, value)
    return True
