"""Delimiter splitting with bracket and quote awareness.

Splits text on a delimiter while treating bracket pairs (``{}``, ``()``,
``[]``) and quote pairs as enclosures the delimiter cannot break. Each
resulting segment is also broken down into ordered sub-parts: plain text
runs, bracketed runs and quoted runs.

Used with two configurations:
- Template splitting: all enclosures, outer empty segments ignored and inner
  empty segments rejected (``/foo//bar`` is not a valid template).
- Live path splitting: plain ``/`` splitting with the same empty segment
  rules, no enclosures.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from enum import Enum

from urit.errors import SplitError

ESCAPE = "\\"


class SubPartKind(Enum):
    FIXED = "fixed"
    BRACKETS = "brackets"
    QUOTES = "quotes"


@dataclass(frozen=True)
class Enclosure:
    """An opening/closing character pair the delimiter cannot split."""

    open: str
    close: str
    is_quote: bool = False


CURLY_BRACKETS = Enclosure("{", "}")
PARENTHESIS = Enclosure("(", ")")
SQUARE_BRACKETS = Enclosure("[", "]")
DOUBLE_QUOTES = Enclosure('"', '"', is_quote=True)
SINGLE_QUOTES = Enclosure("'", "'", is_quote=True)


@dataclass(frozen=True)
class SubPart:
    """An ordered piece of a segment.

    ``text`` is the raw text, including enclosing characters and escapes.
    ``position`` is the offset of the first character in the split text.
    """

    kind: SubPartKind
    text: str
    position: int

    @property
    def start_char(self) -> str:
        return self.text[0] if self.text else ""

    @property
    def inner(self) -> str:
        """Text between the enclosing characters (raw text for fixed runs)."""
        if self.kind is SubPartKind.FIXED:
            return self.text
        return self.text[1:-1]

    @property
    def unescaped(self) -> str:
        """Text with escapes removed.

        Quoted runs drop their quotes and unescape the quote character. Fixed
        runs unescape escaped enclosure characters. Bracketed runs are
        returned raw.
        """
        if self.kind is SubPartKind.QUOTES:
            quote = self.text[0]
            return self.inner.replace(ESCAPE + quote, quote)
        if self.kind is SubPartKind.FIXED:
            return _unescape_fixed(self.text)
        return self.text


@dataclass(frozen=True)
class Segment:
    """One delimited segment and its sub-parts."""

    text: str
    position: int
    sub_parts: tuple[SubPart, ...] = ()


class SplitOption(ABC):
    """Hook applied to each captured segment after splitting.

    Options run in order. Returning None drops the segment, raising
    SplitError aborts the split.
    """

    @abstractmethod
    def apply(self, segment: Segment, index: int, is_last: bool) -> Segment | None:
        """Check or adjust a segment.

        Args:
            segment: The segment as produced by the splitter (or previous option)
            index: Index of the segment among captured segments
            is_last: True if this is the final segment

        Returns:
            The (possibly replaced) segment, or None to drop it

        Raises:
            SplitError: If the segment is not acceptable
        """


class StripSpaces(SplitOption):
    """Trims whitespace around each segment, dropping segments left blank."""

    def apply(self, segment: Segment, index: int, is_last: bool) -> Segment | None:
        text = segment.text.strip()
        if not text:
            return None
        if text == segment.text:
            return segment
        sub_parts = list(segment.sub_parts)
        if sub_parts and sub_parts[0].kind is SubPartKind.FIXED:
            first = sub_parts[0]
            stripped = first.text.lstrip()
            offset = len(first.text) - len(stripped)
            if stripped:
                sub_parts[0] = replace(
                    first, text=stripped, position=first.position + offset
                )
            else:
                sub_parts.pop(0)
        if sub_parts and sub_parts[-1].kind is SubPartKind.FIXED:
            last = sub_parts[-1]
            stripped = last.text.rstrip()
            if stripped:
                sub_parts[-1] = replace(last, text=stripped)
            else:
                sub_parts.pop()
        leading = len(segment.text) - len(segment.text.lstrip())
        return Segment(
            text=text, position=segment.position + leading, sub_parts=tuple(sub_parts)
        )


class MaxSegments(SplitOption):
    """Rejects text with more than ``limit`` segments."""

    def __init__(self, limit: int):
        self.limit = limit

    def apply(self, segment: Segment, index: int, is_last: bool) -> Segment | None:
        if index >= self.limit:
            raise SplitError(
                f"too many path parts (maximum {self.limit})", segment.position
            )
        return segment


class Splitter:
    """Splits text on a delimiter, honouring enclosures.

    Inside a bracket enclosure only bracket characters are tracked: nested
    brackets must balance and an escaped bracket character is literal.
    Inside a quote enclosure everything up to the closing (unescaped) quote
    is literal.
    """

    def __init__(
        self,
        delimiter: str,
        enclosures: Sequence[Enclosure] = (),
        *,
        ignore_empty_first: bool = False,
        ignore_empty_last: bool = False,
        not_empty_inners: bool = False,
        empty_inner_message: str = "empty segment",
    ):
        self.delimiter = delimiter
        self.enclosures = tuple(enclosures)
        self.ignore_empty_first = ignore_empty_first
        self.ignore_empty_last = ignore_empty_last
        self.not_empty_inners = not_empty_inners
        self.empty_inner_message = empty_inner_message

        self._openers = {e.open: e for e in self.enclosures}
        self._bracket_openers = {
            e.open: e for e in self.enclosures if not e.is_quote
        }
        self._bracket_closers = {e.close for e in self.enclosures if not e.is_quote}
        self._bracket_chars = set(self._bracket_openers) | self._bracket_closers
        self._escapable = set(self._openers) | {e.close for e in self.enclosures}

    def split(
        self, text: str, options: Iterable[SplitOption] = ()
    ) -> list[Segment]:
        """Split text into segments.

        Args:
            text: The text to split
            options: Split options applied to each captured segment in order

        Returns:
            The captured segments

        Raises:
            SplitError: If enclosures are unbalanced or an inner segment is empty
        """
        segments = self._apply_empty_rules(self._scan(text))
        options = list(options)
        if not options:
            return segments

        result = []
        for index, segment in enumerate(segments):
            is_last = index == len(segments) - 1
            for option in options:
                segment = option.apply(segment, index, is_last)
                if segment is None:
                    break
            if segment is not None:
                result.append(segment)
        return result

    def _scan(self, text: str) -> list[Segment]:
        segments: list[Segment] = []
        sub_parts: list[SubPart] = []
        stack: list[tuple[Enclosure, int]] = []
        segment_start = 0
        fixed_start = 0
        i = 0
        length = len(text)

        def flush_fixed(end: int) -> None:
            if end > fixed_start:
                sub_parts.append(
                    SubPart(SubPartKind.FIXED, text[fixed_start:end], fixed_start)
                )

        while i < length:
            ch = text[i]
            if stack:
                enclosure, opened_at = stack[-1]
                if enclosure.is_quote:
                    if ch == ESCAPE and text[i + 1 : i + 2] == enclosure.close:
                        i += 2
                        continue
                    if ch == enclosure.close:
                        stack.pop()
                        sub_parts.append(
                            SubPart(
                                SubPartKind.QUOTES, text[opened_at : i + 1], opened_at
                            )
                        )
                        fixed_start = i + 1
                    i += 1
                    continue

                if ch == ESCAPE and text[i + 1 : i + 2] in self._bracket_chars:
                    i += 2
                    continue
                if ch in self._bracket_openers:
                    stack.append((self._bracket_openers[ch], i))
                elif ch in self._bracket_closers:
                    if ch != enclosure.close:
                        raise SplitError(
                            f"unexpected closing '{ch}' (expected '{enclosure.close}')",
                            i,
                        )
                    stack.pop()
                    if not stack:
                        sub_parts.append(
                            SubPart(
                                SubPartKind.BRACKETS, text[opened_at : i + 1], opened_at
                            )
                        )
                        fixed_start = i + 1
                i += 1
                continue

            if ch == ESCAPE and text[i + 1 : i + 2] in self._escapable:
                i += 2
                continue
            if ch == self.delimiter:
                flush_fixed(i)
                segments.append(
                    Segment(text[segment_start:i], segment_start, tuple(sub_parts))
                )
                sub_parts = []
                segment_start = i + 1
                fixed_start = i + 1
            elif ch in self._openers:
                flush_fixed(i)
                stack.append((self._openers[ch], i))
            elif ch in self._bracket_closers:
                raise SplitError(f"unopened closing '{ch}'", i)
            i += 1

        if stack:
            enclosure, opened_at = stack[-1]
            raise SplitError(f"unclosed '{enclosure.open}'", opened_at)
        flush_fixed(length)
        segments.append(
            Segment(text[segment_start:], segment_start, tuple(sub_parts))
        )
        return segments

    def _apply_empty_rules(self, segments: list[Segment]) -> list[Segment]:
        if self.ignore_empty_first and segments and segments[0].text == "":
            segments = segments[1:]
        if self.ignore_empty_last and segments and segments[-1].text == "":
            segments = segments[:-1]
        if self.not_empty_inners:
            for segment in segments:
                if segment.text == "":
                    raise SplitError(self.empty_inner_message, segment.position)
        return segments


def _unescape_fixed(text: str) -> str:
    if ESCAPE not in text:
        return text
    chars = []
    i = 0
    while i < len(text):
        if text[i] == ESCAPE and i + 1 < len(text) and text[i + 1] in _ENCLOSURE_CHARS:
            chars.append(text[i + 1])
            i += 2
            continue
        chars.append(text[i])
        i += 1
    return "".join(chars)


_ENCLOSURE_CHARS = frozenset("{}()[]\"'")

template_splitter = Splitter(
    "/",
    (CURLY_BRACKETS, PARENTHESIS, SQUARE_BRACKETS, DOUBLE_QUOTES, SINGLE_QUOTES),
    ignore_empty_first=True,
    ignore_empty_last=True,
    not_empty_inners=True,
    empty_inner_message="path parts cannot be empty",
)

path_splitter = Splitter(
    "/",
    ignore_empty_first=True,
    ignore_empty_last=True,
    not_empty_inners=True,
)
