"""Shared input-validation contract applied by every resource router.

Path ids, numeric query filters and enum query filters are parsed here so
that every resource rejects malformed input the same way, before any
database call.  Field length limits live here too and are referenced by the
Pydantic request schemas.
"""

from __future__ import annotations

import enum
import re
from typing import TypeVar

from src.exceptions import BadRequestError

CODE_MAX_LENGTH = 50
NAME_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 255

# Largest value an INTEGER primary key or foreign key column can hold.
INT_MAX = 2**31 - 1

E = TypeVar("E", bound=enum.Enum)

# ASCII digits only; str.isdigit() also accepts characters int() rejects.
_INTEGER = re.compile(r"-?[0-9]+")


def _to_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if abs(value) <= INT_MAX else None
    if isinstance(value, str):
        stripped = value.strip()
        if _INTEGER.fullmatch(stripped):
            parsed = int(stripped)
            return parsed if abs(parsed) <= INT_MAX else None
    return None


def parse_id(value: object, resource: str) -> int:
    """Parse a path identifier into a positive integer.

    Args:
        value: Raw path segment (usually a string).
        resource: Resource name used in the error message (e.g. ``"class"``).

    Returns:
        The integer id.

    Raises:
        BadRequestError: if *value* is not a positive integer.
    """
    parsed = _to_int(value)
    if parsed is None or parsed < 1:
        raise BadRequestError(f"Invalid {resource} id")
    return parsed


def parse_int_filter(value: str | None, name: str) -> int | None:
    """Parse an optional integer query filter.

    Absent or blank values mean "no filter".  A value that is present but not
    an integer is rejected instead of being silently dropped.

    Raises:
        BadRequestError: if *value* is present and not an integer.
    """
    if value is None or value.strip() == "":
        return None
    parsed = _to_int(value)
    if parsed is None:
        raise BadRequestError(f"Invalid {name}: must be an integer")
    return parsed


def parse_str_filter(value: str | None) -> str | None:
    """Normalise an optional string filter; blank means no filter."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def parse_enum_filter(value: str | None, enum_type: type[E], name: str) -> E | None:
    """Parse an optional enum query filter by value.

    Raises:
        BadRequestError: if *value* is not one of the enum's values.
    """
    value = parse_str_filter(value)
    if value is None:
        return None
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(str(member.value) for member in enum_type)
        raise BadRequestError(f"Invalid {name}: expected one of {allowed}") from None
