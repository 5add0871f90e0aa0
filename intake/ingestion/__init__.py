"""Idempotent ingestion of user submissions.

Public API:
    - DedupIngestor: one record per natural key, first submission wins
    - KeyedUpserter: one record per composite key, last submission wins
    - RecordAppender: append-only entity types
    - IngestResult: (record, created) pair returned by DedupIngestor
    - get_entity / ENTITY_TYPES: entity type registry

Exceptions:
    - IngestionError: Base exception
    - RecordValidationError: Missing or malformed key or fields
"""

from .append import RecordAppender
from .dedup import DedupIngestor
from .entities import ENTITY_TYPES, EntityDefinition, get_entity
from .exceptions import IngestionError, RecordValidationError
from .models import IngestResult
from .upsert import KeyedUpserter

__all__ = [
    "DedupIngestor",
    "KeyedUpserter",
    "RecordAppender",
    "IngestResult",
    "EntityDefinition",
    "ENTITY_TYPES",
    "get_entity",
    "IngestionError",
    "RecordValidationError",
]
