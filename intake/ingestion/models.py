"""Result types returned by the ingestion core."""

from dataclasses import dataclass

from intake.domain.models import Record


@dataclass(frozen=True)
class IngestResult:
    """Outcome of DedupIngestor.ingest.

    Attributes:
        record: The stored record (new, or the one that already existed)
        created: True only when this call inserted the row
    """

    record: Record
    created: bool
