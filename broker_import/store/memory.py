"""In-process broker store, used for dry runs and tests."""

import logging
from typing import Dict, List

from broker_import.models.broker import NormalizedBrokerRecord, slugify
from broker_import.store.base import BrokerStore, ImportResult, count_entities, record_key
from broker_import.store.exceptions import BrokerNotFoundError

logger = logging.getLogger(__name__)


class InMemoryBrokerStore(BrokerStore):
    """Keeps imported records in a dict keyed by slug."""

    def __init__(self):
        self._records: Dict[str, NormalizedBrokerRecord] = {}

    def exists(self, name: str) -> bool:
        target = slugify(name)
        if target in self._records:
            return True
        return any(
            record.broker.name and slugify(record.broker.name) == target
            for record in self._records.values()
        )

    def import_record(self, record: NormalizedBrokerRecord) -> ImportResult:
        key = record_key(record)
        if not key:
            return ImportResult(success=False, errors=["Broker name is required"])

        stored = record.model_copy(deep=True)
        stored.broker.slug = key
        self._records[key] = stored
        logger.debug(f"Stored broker {key} in memory")
        return ImportResult(success=True, stats=count_entities(stored), broker_id=key)

    def get(self, slug: str) -> NormalizedBrokerRecord:
        try:
            return self._records[slug]
        except KeyError:
            raise BrokerNotFoundError(slug) from None

    def list_slugs(self) -> List[str]:
        return sorted(self._records)

    def __len__(self) -> int:
        return len(self._records)
