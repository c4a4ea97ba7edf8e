"""Flatten nested JSON records into schemaless Solr documents.

Each object of a top-level JSON array becomes one flat document.  Nested
objects are folded into the parent with ``_``-joined field names::

    {"id": "1", "details": {"publisher": "ACME", "year": 2023}}
    -> {"id": "1", "details_publisher": "ACME", "details_year": 2023}

Arrays of scalars become multi-valued fields.  Arrays that contain objects
or arrays are dropped, unless ``index_object_arrays`` is enabled, in which
case their elements are flattened with positional suffixes
(``authors_0_name``).  Field names are passed through
:func:`~solr_ingest.ingestion.sanitizer.sanitize_field_name`; when two paths
sanitize to the same name the later value wins.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from solr_ingest.config import settings
from solr_ingest.exceptions import (
    IngestionError,
    JsonParseError,
    NestingDepthError,
    ValueOutOfRangeError,
)
from solr_ingest.ingestion.converter import FieldValue, convert_value, is_scalar
from solr_ingest.ingestion.sanitizer import sanitize_field_name

logger = logging.getLogger(__name__)

FlatDocument = dict[str, FieldValue]

_MAX_INT_DIGITS = 19


def _reject_constant(name: str) -> float:
    raise JsonParseError(f"Invalid JSON constant {name!r}")


def _parse_int(literal: str) -> int:
    # int64 bounds have 19 digits; longer literals are out of range before conversion.
    if len(literal.lstrip("-")) > _MAX_INT_DIGITS:
        raise ValueOutOfRangeError(f"Integer literal {literal[:24]}... does not fit in 64 bits")
    return int(literal)


def parse_json(text: str | bytes) -> Any:
    """Parse *text* strictly.

    Raises :class:`JsonParseError` on malformed input and
    :class:`ValueOutOfRangeError` on integer literals too long to be 64-bit.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant, parse_int=_parse_int)
    except IngestionError:
        raise
    except (json.JSONDecodeError, RecursionError, UnicodeDecodeError) as exc:
        raise JsonParseError(f"Invalid JSON: {exc}") from exc
    except ValueError as exc:
        raise ValueOutOfRangeError(f"Numeric literal out of range: {exc}") from exc


class DocumentFlattener:
    """Convert parsed JSON objects into :data:`FlatDocument` mappings.

    Parameters
    ----------
    max_depth:
        Maximum nesting of objects/arrays below a record.  ``None`` disables
        the guard.
    index_object_arrays:
        Flatten arrays containing objects or arrays with positional
        suffixes instead of dropping them.
    """

    def __init__(
        self,
        *,
        max_depth: int | None = settings.max_nesting_depth,
        index_object_arrays: bool = settings.index_object_arrays,
    ) -> None:
        self.max_depth = max_depth
        self.index_object_arrays = index_object_arrays

    # -- public API -----------------------------------------------------------

    def flatten(self, text: str | bytes) -> list[FlatDocument]:
        """Parse *text* and flatten it.

        Raises
        ------
        JsonParseError
            *text* is not valid JSON.
        NestingDepthError
            A record nests deeper than ``max_depth``.
        ValueOutOfRangeError
            A number does not fit a 64-bit integer or a finite double.
        """
        return self.flatten_records(parse_json(text))

    def flatten_records(self, records: Any) -> list[FlatDocument]:
        """Flatten already-parsed JSON.

        A list yields one document per object element, in order.  Anything
        else yields no documents.
        """
        if not isinstance(records, list):
            logger.info("Top-level JSON is %s, not an array; no documents produced", type(records).__name__)
            return []

        documents: list[FlatDocument] = []
        for position, record in enumerate(records):
            if not isinstance(record, dict):
                logger.warning(
                    "Skipping array element %d: expected object, got %s",
                    position,
                    type(record).__name__,
                )
                continue
            documents.append(self.flatten_object(record))
        return documents

    def flatten_object(self, record: dict[str, Any]) -> FlatDocument:
        """Flatten a single JSON object into one document.

        The walk keeps an explicit stack, so nesting is bounded only by
        ``max_depth``.  Children are visited in key order, depth first.
        """
        document: FlatDocument = {}
        stack: list[tuple[Any, str, int]] = [(record, "", 0)]
        while stack:
            value, path, depth = stack.pop()
            if isinstance(value, dict):
                self._check_depth(depth, path)
                children = [
                    (child, f"{path}_{key}" if path else str(key), depth + 1)
                    for key, child in value.items()
                ]
                stack.extend(reversed(children))
            elif isinstance(value, list):
                stack.extend(reversed(self._expand_array(value, path, document, depth)))
            else:
                name = sanitize_field_name(path)
                converted = convert_value(value, field=name)
                if converted is not None:
                    document[name] = converted
        return document

    # -- internals ------------------------------------------------------------

    def _check_depth(self, depth: int, path: str) -> None:
        if self.max_depth is not None and depth > self.max_depth:
            raise NestingDepthError(self.max_depth, path)

    def _expand_array(
        self, values: list[Any], path: str, document: FlatDocument, depth: int
    ) -> list[tuple[Any, str, int]]:
        """Store a scalar array, or return the elements still to be walked."""
        self._check_depth(depth, path)
        name = sanitize_field_name(path)
        if all(is_scalar(v) for v in values):
            converted = (convert_value(v, field=name) for v in values)
            document[name] = [v for v in converted if v is not None]
            return []

        if not self.index_object_arrays:
            logger.debug("Dropping field %r: array contains objects or arrays", name)
            return []

        return [(value, f"{path}_{index}", depth + 1) for index, value in enumerate(values)]


def flatten(text: str | bytes) -> list[FlatDocument]:
    """Flatten JSON *text* with the configured defaults."""
    return DocumentFlattener().flatten(text)
