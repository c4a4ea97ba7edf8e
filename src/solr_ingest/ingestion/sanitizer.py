"""Field-name sanitization for schemaless Solr documents."""

from __future__ import annotations

import re

_INVALID_CHARS = re.compile(r"[^a-z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"_{2,}")


def sanitize_field_name(name: str) -> str:
    """Return *name* rewritten as a safe Solr field name.

    The name is lowercased, every character outside ``[a-z0-9_]`` becomes
    ``_``, runs of underscores collapse to one, and leading/trailing
    underscores are stripped.  The function is total and idempotent; a
    name made only of symbols sanitizes to ``""``.

    Examples
    --------
    >>> sanitize_field_name("field-with-hyphens")
    'field_with_hyphens'
    >>> sanitize_field_name("__leading_underscores__")
    'leading_underscores'
    """
    sanitized = _INVALID_CHARS.sub("_", name.lower())
    sanitized = _UNDERSCORE_RUNS.sub("_", sanitized)
    return sanitized.strip("_")
