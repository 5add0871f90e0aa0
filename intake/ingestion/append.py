"""Append-only ingestion for entity types without a natural key."""

from typing import Any, List, Mapping, Optional

from intake.domain.models import Record
from intake.logging import get_logger
from intake.persistence.store import RecordStore

from .entities import get_entity

logger = get_logger(__name__, component="ingest")


class RecordAppender:
    """Stores every submission as a new row (contact forms, quiz results...)."""

    def __init__(self, store: RecordStore):
        self.store = store

    def append(self, entity_type: str, payload: Mapping[str, Any]) -> Record:
        """Validate and insert one submission.

        Raises:
            RecordValidationError: Required fields missing or malformed
            StoreUnavailableError: The store cannot be reached
        """
        entity = get_entity(entity_type)
        values = entity.validate(payload)
        record = entity.to_record(self.store.insert(entity.table, values))
        logger.info(
            f"Appended {entity_type} record {record.id}",
            extra={"event": "ingest.appended", "entity_type": entity_type, "record_id": record.id},
        )
        return record

    def find(
        self,
        entity_type: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> List[Record]:
        """Return stored records of one type matching ``filters``."""
        entity = get_entity(entity_type)
        rows = self.store.select(entity.table, dict(filters or {}), order_by=order_by)
        return [entity.to_record(row) for row in rows]
