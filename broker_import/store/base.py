"""Abstract base classes for broker persistence.

This module defines the backend-agnostic interface the import pipeline
writes through. Concrete stores live in sibling modules and are built
by ``broker_import.store.factory``.

NO backend-specific imports should be in this file.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from broker_import.models.broker import NormalizedBrokerRecord, slugify
from broker_import.models.pipeline import STAT_FIELDS, EntityCounts


@dataclass
class ImportResult:
    """Outcome of importing one broker record."""

    success: bool
    errors: List[str] = field(default_factory=list)
    stats: EntityCounts = field(default_factory=EntityCounts)
    broker_id: Optional[str] = None


def count_entities(record: NormalizedBrokerRecord) -> EntityCounts:
    """Count the nested items of a record, collection by collection."""
    return EntityCounts(**{name: len(getattr(record, name)) for name in STAT_FIELDS})


def record_key(record: NormalizedBrokerRecord) -> Optional[str]:
    """Storage key of a record: its slug, or the slug of its name."""
    if record.broker.slug:
        return record.broker.slug
    if record.broker.name:
        return slugify(record.broker.name)
    return None


class BrokerStore(ABC):
    """Abstract broker store.

    Records are keyed by slug; importing a record whose slug is already
    present replaces the stored copy.
    """

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check whether a broker with this name is stored.

        Args:
            name: Broker display name, slugified before comparison

        Returns:
            bool: True if a stored broker has this slug as its key, or a
            name with the same slug (records imported with an explicit slug)

        Raises:
            StoreError: If the lookup itself fails
        """
        pass

    @abstractmethod
    def import_record(self, record: NormalizedBrokerRecord) -> ImportResult:
        """Persist a broker record with all nested collections.

        Failures that concern the record itself are reported through
        ``ImportResult.errors``; backend failures raise StoreError.
        """
        pass

    @abstractmethod
    def get(self, slug: str) -> NormalizedBrokerRecord:
        """Fetch a stored record.

        Raises:
            BrokerNotFoundError: If no broker has this slug
        """
        pass

    @abstractmethod
    def list_slugs(self) -> List[str]:
        """Return the slugs of all stored brokers, sorted."""
        pass

    def stats(self) -> Dict[str, int]:
        """Summarize store contents: broker count plus per-collection totals."""
        totals = EntityCounts()
        slugs = self.list_slugs()
        for slug in slugs:
            totals.add(count_entities(self.get(slug)))
        return {"brokers": len(slugs), **totals.to_dict()}
