"""At-most-one record per natural key.

The store has no atomic insert-or-ignore, so ingestion is lookup then
insert. Two callers racing on the same key can both miss the lookup; the
unique constraint lets exactly one insert through and the loser recovers
by reading back the winner's row.
"""

from typing import Any, Dict, Mapping, Optional

from intake.domain.models import Record
from intake.logging import get_logger
from intake.logging.context import log_context
from intake.persistence.exceptions import ConstraintViolationError
from intake.persistence.store import RecordStore

from .entities import EntityDefinition, get_entity
from .models import IngestResult

logger = get_logger(__name__, component="ingest")


class DedupIngestor:
    """Creates a record once per natural key; later submissions are no-ops.

    First submission wins: the payload of a duplicate is discarded, not
    merged.
    """

    def __init__(self, store: RecordStore):
        """
        Args:
            store: Store to read and write through
        """
        self.store = store

    def ingest(
        self,
        entity_type: str,
        natural_key: Any,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> IngestResult:
        """Create the record for ``natural_key`` unless it already exists.

        Args:
            entity_type: Registered entity type (``subscription``, ``deal_lead``...)
            natural_key: Mapping of key fields, tuple of key values, or the
                bare value of a single-field key
            payload: Remaining fields of the submission

        Returns:
            IngestResult with the stored record and whether this call created it

        Raises:
            RecordValidationError: Key or required fields missing or malformed
            StoreUnavailableError: The store cannot be reached
            ConstraintViolationError: Insert rejected and no row found for the key
        """
        entity = get_entity(entity_type)
        values = entity.validate(entity.merge(entity.key_from(natural_key), payload))
        key = {field: values[field] for field in entity.key_fields}

        with log_context(entity_type=entity_type):
            existing = self._find(entity, key)
            if existing is not None:
                logger.info(
                    f"Duplicate {entity_type} submission, returning record {existing.id}",
                    extra={"event": "ingest.duplicate", "record_id": existing.id},
                )
                return IngestResult(record=existing, created=False)

            try:
                row = self.store.insert(entity.table, values)
            except ConstraintViolationError:
                existing = self._find(entity, key)
                if existing is None:
                    logger.error(
                        f"Insert into {entity.table} rejected but no row matches the key",
                        extra={"event": "ingest.conflict_unresolved"},
                    )
                    raise
                logger.info(
                    f"Lost insert race for {entity_type}, returning record {existing.id}",
                    extra={"event": "ingest.conflict_recovered", "record_id": existing.id},
                )
                return IngestResult(record=existing, created=False)

            record = entity.to_record(row)
            logger.info(
                f"Created {entity_type} record {record.id}",
                extra={"event": "ingest.created", "record_id": record.id},
            )
            return IngestResult(record=record, created=True)

    def _find(self, entity: EntityDefinition, key: Dict[str, Any]) -> Optional[Record]:
        rows = self.store.select(entity.table, key, order_by="id", limit=1)
        if not rows:
            return None
        return entity.to_record(rows[0])
