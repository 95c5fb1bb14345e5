"""Template parsing: template text into path parts.

Each ``/`` delimited segment becomes one path part:

- ``users`` -> Fixed
- ``?`` -> positional Variable; ``?id`` or ``:id`` -> named Variable
- ``{id}`` or ``{id:[0-9]+}`` -> named Variable (pattern anchored, compiled)
- ``{name}.{ext}`` -> Composite of literal and variable sub-parts
- ``'{literal}'`` -> Fixed (quotes protect brackets and slashes)

Positional and named variables cannot be mixed in one template.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from urit.errors import SplitError, TemplateParseError
from urit.parts import Composite, Fixed, PathPart, Variable, add_regex_anchors
from urit.splitter import (
    ESCAPE,
    Segment,
    SplitOption,
    SubPart,
    SubPartKind,
    template_splitter,
)

logger = logging.getLogger(__name__)

MIXED_KINDS_MESSAGE = "template cannot contain both positional and named path variables"


@dataclass(frozen=True)
class ParsedTemplate:
    """Result of parsing: the parts and the variable counts per kind."""

    text: str
    parts: tuple[PathPart, ...]
    positional_count: int
    named_count: int


def slash_prefix(text: str) -> str:
    if text.strip() == "" or text.startswith("/"):
        return text
    return "/" + text


def parse_template(
    text: str, split_options: Iterable[SplitOption] = ()
) -> ParsedTemplate:
    """Parse template text into path parts.

    Args:
        text: The template text; a leading ``/`` is added if missing
        split_options: Options applied to each template segment

    Returns:
        The parsed template

    Raises:
        TemplateParseError: If the template is blank, has unbalanced brackets
            or quotes, empty segments, empty variable names, bad regexes or
            mixes positional and named variables
    """
    text = slash_prefix(text)
    if text.strip() == "":
        raise TemplateParseError("template empty", 0)

    try:
        segments = template_splitter.split(text, split_options)
    except SplitError as e:
        raise TemplateParseError(e.message, e.position, e) from e

    parser = _PartParser()
    parts = tuple(parser.parse_segment(segment) for segment in segments)
    if parser.positional_count and parser.named_count:
        raise TemplateParseError(MIXED_KINDS_MESSAGE, 0)

    logger.debug(
        f"Parsed template {text!r}: {len(parts)} parts, "
        f"{parser.positional_count} positional, {parser.named_count} named vars"
    )
    return ParsedTemplate(
        text=text,
        parts=parts,
        positional_count=parser.positional_count,
        named_count=parser.named_count,
    )


class _PartParser:
    """Turns segments into path parts, counting variables as it goes."""

    def __init__(self) -> None:
        self.positional_count = 0
        self.named_count = 0

    def parse_segment(self, segment: Segment) -> PathPart:
        sub_parts = segment.sub_parts
        if len(sub_parts) == 1 and sub_parts[0].kind is SubPartKind.FIXED:
            value = sub_parts[0].unescaped
            if value.startswith("?") or value.startswith(":"):
                return self._count(Variable(name=value[1:]))
            return Fixed(value)
        return self._parse_sub_parts(sub_parts)

    def _parse_sub_parts(self, sub_parts: tuple[SubPart, ...]) -> PathPart:
        parsed: list[Fixed | Variable] = []
        any_vars = False
        for sp in sub_parts:
            if sp.kind is SubPartKind.BRACKETS and sp.start_char == "{":
                any_vars = True
                parsed.append(self._count(parse_variable(sp.inner, sp.position)))
            else:
                parsed.append(Fixed(sp.unescaped))

        if len(parsed) == 1:
            return parsed[0]
        if not any_vars:
            return Fixed("".join(p.value for p in parsed if isinstance(p, Fixed)))
        return Composite(tuple(parsed))

    def _count(self, variable: Variable) -> Variable:
        if variable.is_positional:
            self.positional_count += 1
        else:
            self.named_count += 1
        return variable


def parse_variable(inner: str, position: int) -> Variable:
    """Parse the inside of a ``{name}`` or ``{name:pattern}`` bracket.

    Args:
        inner: Text between the curly brackets
        position: Offset of the opening bracket in the template text

    Raises:
        TemplateParseError: If the name is blank or the pattern does not compile
    """
    colon = _find_unescaped_colon(inner)
    if colon == -1:
        name = inner.replace(ESCAPE + ":", ":").strip(" ")
        pattern = ""
    else:
        name = inner[:colon].replace(ESCAPE + ":", ":").strip(" ")
        pattern = inner[colon + 1 :].strip(" ")
    if name == "":
        raise TemplateParseError("path var name cannot be empty", position)

    regex = None
    if pattern:
        try:
            regex = re.compile(add_regex_anchors(pattern))
        except re.error as e:
            raise TemplateParseError(
                f"path var regexp problem: {e}", position + 1 + colon, e
            ) from e
    return Variable(name=name, pattern=pattern, regex=regex)


def _find_unescaped_colon(text: str) -> int:
    i = 0
    while i < len(text):
        if text[i] == ESCAPE:
            i += 2
            continue
        if text[i] == ":":
            return i
        i += 1
    return -1
