"""Value coercion for path vars, query params and headers.

Every value that ends up in a generated path, query string or header goes
through ``coerce_value`` to get its canonical string form.
"""

from __future__ import annotations

import inspect
import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError, to_json

from urit.errors import ValueCoercionError

logger = logging.getLogger(__name__)


def coerce_value(value: Any) -> str | None:
    """Convert a value to its canonical string form.

    Args:
        value: Any value supplied as a path var, query param or header.

    Returns:
        The string form, or None if the value cannot be represented.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(value)
    if isinstance(value, Enum):
        return coerce_value(value.value)
    if isinstance(value, datetime):
        return _rfc3339(value)
    if isinstance(value, date):
        return value.isoformat()
    if callable(value) and not isinstance(value, type):
        return _call_value(value)
    if isinstance(value, BaseModel):
        return _json_value(value)
    if type(value).__str__ is not object.__str__:
        return str(value)
    return _json_value(value)


def value_to_str(value: Any) -> str:
    """Same as coerce_value, but raises if the value cannot be represented.

    Raises:
        ValueCoercionError: If the value has no string form
    """
    result = coerce_value(value)
    if result is None:
        raise ValueCoercionError(f"unknown value type: {type(value).__name__}")
    return result


def _rfc3339(value: datetime) -> str:
    result = value.isoformat(timespec="seconds")
    if value.utcoffset() == timedelta(0):
        result = result[: -len("+00:00")] + "Z"
    return result


def _call_value(value: Any) -> str | None:
    try:
        signature = inspect.signature(value)
    except (TypeError, ValueError):
        return None
    for param in signature.parameters.values():
        if param.default is param.empty and param.kind not in (
            param.VAR_POSITIONAL,
            param.VAR_KEYWORD,
        ):
            return None
    result = value()
    if isinstance(result, str):
        return result
    return None


def _json_value(value: Any) -> str | None:
    try:
        data = to_json(value).decode("utf-8")
    except PydanticSerializationError as e:
        logger.debug(f"Cannot serialize {type(value).__name__}: {e}")
        return None
    if len(data) >= 2 and data.startswith('"') and data.endswith('"'):
        return data[1:-1]
    return data
