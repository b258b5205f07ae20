"""
Field validation primitives.

Every validator returns a (possibly empty) list of FieldError so that callers
can concatenate the results of many checks and report them all at once.
"""

import datetime
from collections.abc import Sized
from typing import Any, List, Mapping

from infrakit_sakuracloud.common.errors import FieldError


def is_empty(value: Any) -> bool:
    """Return True if value is the zero value of its type.

    None, the empty string, False, numeric zero of any type, empty collections
    and the minimum date/datetime (which stands in for an unset time) are
    empty. Everything else is not.
    """
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float, complex)):
        return value == 0
    if isinstance(value, datetime.datetime):
        return value.replace(tzinfo=None) == datetime.datetime.min
    if isinstance(value, datetime.date):
        return value == datetime.date.min
    if isinstance(value, (str, bytes)):
        return len(value) == 0
    if isinstance(value, Sized):
        return len(value) == 0
    return False


def validate_required(field: str, value: Any) -> List[FieldError]:
    if is_empty(value):
        return [FieldError(field, f'"{field}": is required')]
    return []


def validate_prohibited(field: str, value: Any) -> List[FieldError]:
    if not is_empty(value):
        return [FieldError(field, f'"{field}": can\'t set on current context')]
    return []


def validate_conflicts(field: str, value: Any, others: Mapping[str, Any]) -> List[FieldError]:
    """Fail if value is set together with any of the other fields.

    Args:
        field: Name of the field being checked
        value: Its value
        others: Mapping of conflicting field name to value

    Returns:
        A single error naming every field in others, or an empty list
    """
    if is_empty(value):
        return []
    if all(is_empty(v) for v in others.values()):
        return []
    names = " or ".join(f'"{k}"' for k in others)
    return [FieldError(field, f'"{field}"({value!r}): is conflict with {names}')]


def validate_in_values(field: str, value: Any, *allowed: str) -> List[FieldError]:
    # Unset and non-string values are left to validate_required
    if not isinstance(value, str) or value == "":
        return []
    if value not in allowed:
        return [FieldError(field, f'"{field}": must be in [{",".join(allowed)}]')]
    return []


def validate_between(field: str, values: Any, min_len: int, max_len: int) -> List[FieldError]:
    """Check that a collection has between min_len and max_len entries.

    A max_len of zero or less means there is no upper bound. None counts as an
    empty collection.
    """
    if values is None:
        values = []
    if not isinstance(values, Sized) or isinstance(values, (str, bytes)):
        return []

    length = len(values)
    if max_len <= 0:
        if length < min_len:
            return [FieldError(field, f'"{field}": length must be {min_len} or more')]
    elif not min_len <= length <= max_len:
        return [
            FieldError(field, f'"{field}": length must be between {min_len} and {max_len}')
        ]
    return []
