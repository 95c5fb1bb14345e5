"""Exception hierarchy for URI template errors.

Provides specific exception types for each failure mode so callers can tell
a malformed template apart from a path that could not be generated.
"""

from __future__ import annotations


class UritError(Exception):
    """Base exception for all URI template errors."""

    pass


class TemplateParseError(UritError):
    """Raised when a template cannot be parsed.

    Carries the character offset in the template text where the problem was
    found, and the underlying error (if any) as ``cause``.
    """

    def __init__(
        self, message: str, position: int = 0, cause: BaseException | None = None
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class SplitError(UritError):
    """Raised when text cannot be split into path segments.

    Unbalanced brackets or quotes and empty inner segments end up here.
    """

    def __init__(self, message: str, position: int = 0):
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        return self.message


class PathBuildError(UritError):
    """Raised when a path cannot be generated from a template.

    Either a variable had no value or a var match option rejected the value.
    """

    pass


class PathVarsError(UritError):
    """Raised when a value is added to path vars of the other kind."""

    pass


class ValueCoercionError(UritError):
    """Raised when a value has no string representation."""

    pass


class QueryParamsError(UritError):
    """Raised when query params are constructed from malformed input."""

    pass
