"""Conversion of parsed JSON scalars to values Solr indexes faithfully.

``json.loads`` already yields ``bool``, ``int``, ``float``, ``str`` and
``None``; Python integers are unbounded, so the work here is enforcing the
ranges Solr can store (signed 64-bit ``long``, finite ``double``) instead
of letting an oversized number be truncated on the engine side.
"""

from __future__ import annotations

import logging
import math
from typing import Literal, Union

from solr_ingest.exceptions import ValueOutOfRangeError

logger = logging.getLogger(__name__)

Scalar = Union[bool, int, float, str]
FieldValue = Union[Scalar, list[Scalar]]

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1


def is_scalar(value: object) -> bool:
    """Return ``True`` for JSON scalars (string, number, boolean, null)."""
    return value is None or isinstance(value, (bool, int, float, str))


def numeric_width(value: int | float) -> Literal["int", "long", "double"]:
    """Report the Solr numeric type a converted number maps to."""
    if isinstance(value, bool):
        raise TypeError("booleans have no numeric width")
    if isinstance(value, float):
        return "double"
    if INT32_MIN <= value <= INT32_MAX:
        return "int"
    return "long"


def convert_value(value: object, *, field: str = "") -> Scalar | None:
    """Convert one parsed JSON scalar.

    Parameters
    ----------
    value:
        A value produced by ``json.loads``: ``bool``, ``int``, ``float``,
        ``str`` or ``None``.
    field:
        Field name, used only in error messages.

    Returns
    -------
    Scalar | None
        The value itself, or ``None`` for JSON ``null`` (meaning the field
        is absent).

    Raises
    ------
    ValueOutOfRangeError
        An integer outside the signed 64-bit range, or a float that
        overflowed to infinity.
    TypeError
        *value* is not a JSON scalar.
    """
    if value is None:
        return None
    # bool before int: True is an int in Python.
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueOutOfRangeError(f"Integer {value} in field {field!r} does not fit in 64 bits")
        logger.debug("Field %r -> %s", field, numeric_width(value))
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueOutOfRangeError(f"Number in field {field!r} is outside double range")
        return value
    if isinstance(value, str):
        return value
    raise TypeError(f"Unsupported JSON scalar type {type(value).__name__} in field {field!r}")
