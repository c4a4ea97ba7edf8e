"""
Ingestion: JSON flattening and resilient indexing into the search engine.

This module is responsible for the path from raw JSON text to committed
documents: field-name sanitization, value conversion, flattening of nested
records, and the batch → fallback → commit indexing protocol.
"""

from solr_ingest.ingestion.flattener import DocumentFlattener, FlatDocument, flatten
from solr_ingest.ingestion.indexer import IndexState, ResilientBatchIndexer
from solr_ingest.ingestion.sanitizer import sanitize_field_name

__all__ = [
    "DocumentFlattener",
    "FlatDocument",
    "IndexState",
    "ResilientBatchIndexer",
    "flatten",
    "sanitize_field_name",
]
