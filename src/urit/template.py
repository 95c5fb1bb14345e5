"""URI templates: matching paths, generating paths, composing templates.

Define path vars by name::

    template = Template.parse("/foo/{foo-id:[a-z]*}/bar/{bar-id:[0-9]*}")
    template.path_from(PathVars.named(**{"foo-id": "abc", "bar-id": "123"}))
    # -> "/foo/abc/bar/123"

or by position::

    template = Template.parse("/foo/?/bar/?")
    template.path_from(PathVars.positional("abc", "123"))

Extract vars from paths::

    template = Template.parse("/credits/{year:[0-9]{4}}/{month:[0-9]{2}}")
    vars = template.matches("/credits/2022/11")
    vars.get("year")   # -> "2022"

Templates are immutable once parsed and safe to share between threads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

import httpx

from urit.builder import build_path, resolve_parts
from urit.errors import PathBuildError, TemplateParseError, ValueCoercionError
from urit.headers import Headers
from urit.host import Host
from urit.matcher import match_parts
from urit.options import MatchOptions, VarMatchOption
from urit.parser import MIXED_KINDS_MESSAGE, parse_template
from urit.parts import PathPart, part_text, part_variables
from urit.path_vars import PathVar, PathVars, VarsType
from urit.query_params import QueryParams
from urit.splitter import SplitOption

logger = logging.getLogger(__name__)


class _HasUrl(Protocol):
    """Anything with a ``url.path``: httpx and Starlette requests both qualify."""

    @property
    def url(self) -> Any: ...


class Template:
    """A parsed URI template.

    Create with ``Template.parse``. Algebra operations (``sub``,
    ``resolve_to``) return new templates and never change this one.
    """

    def __init__(
        self,
        original_template: str,
        parts: Sequence[PathPart],
        positional_count: int,
        named_count: int,
        options: MatchOptions | None = None,
        split_options: Sequence[SplitOption] = (),
    ):
        if positional_count and named_count:
            raise TemplateParseError(MIXED_KINDS_MESSAGE, 0)
        self._original_template = original_template
        self._parts = tuple(parts)
        self._positional_count = positional_count
        self._named_count = named_count
        self._options = options or MatchOptions()
        self._split_options = tuple(split_options)

    @classmethod
    def parse(
        cls,
        text: str,
        *,
        options: MatchOptions | None = None,
        split_options: Iterable[SplitOption] = (),
    ) -> Template:
        """Parse template text into a template.

        Args:
            text: Template text, e.g. ``/users/{id:[0-9]+}``; a leading ``/``
                is added if missing
            options: Fixed and var match options used whenever this template
                matches a path
            split_options: Options applied to each template segment

        Returns:
            The parsed template

        Raises:
            TemplateParseError: If the template cannot be parsed
        """
        split_options = tuple(split_options)
        parsed = parse_template(text, split_options)
        return cls(
            original_template=parsed.text,
            parts=parsed.parts,
            positional_count=parsed.positional_count,
            named_count=parsed.named_count,
            options=options,
            split_options=split_options,
        )

    # Introspection

    @property
    def parts(self) -> tuple[PathPart, ...]:
        return self._parts

    @property
    def options(self) -> MatchOptions:
        return self._options

    @property
    def positional_count(self) -> int:
        return self._positional_count

    @property
    def named_count(self) -> int:
        return self._named_count

    @property
    def vars_type(self) -> VarsType:
        """Positions if the template uses positional vars, otherwise names."""
        if self._positional_count:
            return VarsType.POSITIONS
        return VarsType.NAMES

    @property
    def original_template(self) -> str:
        """The original (or generated) template text."""
        return self._original_template

    def template(self, remove_patterns: bool = False) -> str:
        """The template text, optionally with var patterns removed."""
        if not remove_patterns:
            return self._original_template
        return _render(self._parts, with_patterns=False)

    def vars(self) -> list[PathVar]:
        """The template's variables, in order, with their positions."""
        result: list[PathVar] = []
        named_positions: dict[str, int] = {}
        for part in self._parts:
            for variable in part_variables(part):
                named_position = 0
                if not variable.is_positional:
                    named_position = named_positions.get(variable.name, 0)
                    named_positions[variable.name] = named_position + 1
                result.append(
                    PathVar(
                        name=variable.name,
                        named_position=named_position,
                        position=len(result),
                    )
                )
        return result

    # Matching

    def matches(
        self, path: str, options: MatchOptions | None = None
    ) -> PathVars | None:
        """Check whether a path (or URL) matches the template.

        The path is parsed as a URL; only its percent-decoded path is matched,
        any query string or fragment is ignored.

        Args:
            path: The path to match, e.g. ``/users/42?expand=true``
            options: Extra match options, applied after the template's own

        Returns:
            The extracted path vars, or None if the path does not match. An
            all-fixed template returns empty (falsy) path vars on a match, so
            test the result with ``is not None``.
        """
        try:
            url = httpx.URL(path)
        except httpx.InvalidURL as e:
            logger.debug(f"Path {path!r} is not a valid URL: {e}")
            return None
        return self._matches(url.path, options)

    def matches_url(
        self, url: httpx.URL, options: MatchOptions | None = None
    ) -> PathVars | None:
        """Check whether the path of a URL matches the template."""
        return self._matches(url.path, options)

    def matches_request(
        self, request: _HasUrl, options: MatchOptions | None = None
    ) -> PathVars | None:
        """Check whether the path of a request matches the template.

        Accepts ``httpx.Request`` and ``starlette.requests.Request``.
        """
        return self._matches(request.url.path, options)

    def _matches(self, path: str, options: MatchOptions | None) -> PathVars | None:
        return match_parts(
            self._parts, path, self.vars_type, self._options.merge(options)
        )

    # Building

    def path_from(
        self,
        vars: PathVars | None,
        *,
        host: Host | str | None = None,
        query: QueryParams | None = None,
        var_options: Sequence[VarMatchOption] = (),
    ) -> str:
        """Generate a path from the template.

        Args:
            vars: Values for the template's variables
            host: Address prepended verbatim to the path
            query: Query params appended to the path
            var_options: Var match options checking or rewriting each value,
                e.g. ``PATH_REGEX_CHECK``

        Returns:
            The generated path

        Raises:
            PathBuildError: If a var is missing or rejected
        """
        return build_path(self._parts, vars, _as_host(host), query, var_options)

    def request_from(
        self,
        method: str,
        vars: PathVars | None,
        content: bytes | str | None = None,
        *,
        host: Host | str | None = None,
        query: QueryParams | None = None,
        headers: Headers | None = None,
        var_options: Sequence[VarMatchOption] = (),
    ) -> httpx.Request:
        """Generate a request for the URL built from the template.

        Args:
            method: HTTP method
            vars: Values for the template's variables
            content: Request body
            host: Address prepended verbatim to the path
            query: Query params appended to the path
            headers: Headers set on the request once the URL is built
            var_options: Var match options checking or rewriting each value

        Returns:
            The request, ready to send with an ``httpx.Client``

        Raises:
            PathBuildError: If a var is missing or rejected, or a header value
                cannot be represented
        """
        url = self.path_from(vars, host=host, query=query, var_options=var_options)
        request = httpx.Request(method, url, content=content)
        if headers is not None:
            try:
                resolved = headers.resolve()
            except ValueCoercionError as e:
                raise PathBuildError(f"header problem: {e}") from e
            for key, value in resolved.items():
                request.headers[key] = value
        return request

    # Algebra

    def sub(
        self,
        text: str,
        *,
        options: MatchOptions | None = None,
        split_options: Iterable[SplitOption] = (),
    ) -> Template:
        """Generate a new template with an added sub-path.

        Args:
            text: Template text of the sub-path, e.g. ``/bar/{id}``
            options: Match options added to this template's options
            split_options: Options added to this template's split options when
                parsing the sub-path

        Raises:
            TemplateParseError: If the sub-path cannot be parsed, or uses a
                different variable kind than this template
        """
        split_options = self._split_options + tuple(
            o for o in split_options if o not in self._split_options
        )
        added = parse_template(text, split_options)
        if (added.positional_count and self._named_count) or (
            added.named_count and self._positional_count
        ):
            raise TemplateParseError(MIXED_KINDS_MESSAGE, 0)

        original = self._original_template
        if original.endswith("/"):
            original = original[:-1]
        return Template(
            original_template=original + added.text,
            parts=self._parts + added.parts,
            positional_count=self._positional_count + added.positional_count,
            named_count=self._named_count + added.named_count,
            options=self._options.merge(options),
            split_options=split_options,
        )

    def resolve_to(self, vars: PathVars | None) -> Template:
        """Generate a new template with every var that has a value filled in.

        Vars without a value stay variables, so they can be supplied later.
        Filled-in values that would read as template syntax (``?``, brackets,
        quotes, ``/``) are single-quoted in the template text, so the text
        parses back to the same parts.
        """
        parts = resolve_parts(self._parts, vars)
        positional_count = 0
        named_count = 0
        for part in parts:
            for variable in part_variables(part):
                if variable.is_positional:
                    positional_count += 1
                else:
                    named_count += 1
        return Template(
            original_template=_render(parts, with_patterns=True),
            parts=parts,
            positional_count=positional_count,
            named_count=named_count,
            options=self._options,
            split_options=self._split_options,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Template):
            return NotImplemented
        return (
            self._original_template == other._original_template
            and self._parts == other._parts
        )

    def __hash__(self) -> int:
        return hash((self._original_template, self._parts))

    def __repr__(self) -> str:
        return f"Template({self._original_template!r})"

    def __str__(self) -> str:
        return self._original_template


def _as_host(host: Host | str | None) -> Host | None:
    if host is None or isinstance(host, Host):
        return host
    return Host(host)


def _render(parts: Sequence[PathPart], *, with_patterns: bool) -> str:
    if not parts:
        return "/"
    return "".join(
        "/" + part_text(part, with_patterns=with_patterns) for part in parts
    )
