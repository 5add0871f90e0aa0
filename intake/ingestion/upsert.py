"""Create-on-first-touch, overwrite-on-every-later-touch for composite keys."""

from typing import Any, Dict, Mapping, Optional

from intake.domain.models import Record
from intake.logging import get_logger
from intake.logging.context import log_context
from intake.persistence.exceptions import ConstraintViolationError
from intake.persistence.store import RecordStore
from intake.utils.timestamps import utc_now

from .entities import EntityDefinition, get_entity

logger = get_logger(__name__, component="ingest")


class KeyedUpserter:
    """Keeps one record per composite key, always holding the latest payload.

    Concurrent writers to the same key resolve as last writer wins.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def upsert(
        self,
        entity_type: str,
        composite_key: Any,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> Record:
        """Insert the record for ``composite_key`` or overwrite its payload.

        Raises:
            RecordValidationError: Key or required fields missing or malformed
            StoreUnavailableError: The store cannot be reached
        """
        entity = get_entity(entity_type)
        values = entity.validate(entity.merge(entity.key_from(composite_key), payload))
        key = {field: values[field] for field in entity.key_fields}
        fields = {k: v for k, v in values.items() if k not in key}

        with log_context(entity_type=entity_type):
            if self.store.select(entity.table, key, limit=1):
                return self._overwrite(entity, key, fields, values)

            try:
                row = self.store.insert(entity.table, values)
            except ConstraintViolationError:
                logger.info(
                    f"Concurrent insert for {entity_type}, updating instead",
                    extra={"event": "upsert.conflict_recovered"},
                )
                return self._overwrite(entity, key, fields, values)

            record = entity.to_record(row)
            logger.info(
                f"Created {entity_type} record {record.id}",
                extra={"event": "upsert.created", "record_id": record.id},
            )
            return record

    def _overwrite(
        self,
        entity: EntityDefinition,
        key: Dict[str, Any],
        fields: Dict[str, Any],
        values: Dict[str, Any],
    ) -> Record:
        if entity.touch_field:
            fields = {**fields, entity.touch_field: utc_now()}

        affected = self.store.update(entity.table, key, fields)
        if affected == 0:
            # Row disappeared between lookup and update
            row = self.store.insert(entity.table, values)
            logger.info(
                f"Created {entity.name} record {row['id']} after empty update",
                extra={"event": "upsert.created", "record_id": row["id"]},
            )
            return entity.to_record(row)

        rows = self.store.select(entity.table, key, limit=1)
        record = entity.to_record(rows[0])
        logger.info(
            f"Updated {entity.name} record {record.id}",
            extra={"event": "upsert.updated", "record_id": record.id},
        )
        return record
