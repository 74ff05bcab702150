"""Abstract validator interface used by the import pipeline."""

from abc import ABC, abstractmethod

from broker_import.models.broker import NormalizedBrokerRecord
from broker_import.models.pipeline import ValidationOutcome


class BrokerValidator(ABC):
    """Checks a normalized broker record before it is imported."""

    @abstractmethod
    def validate(self, record: NormalizedBrokerRecord) -> ValidationOutcome:
        """Validate a record.

        Args:
            record: Record produced by a parser (the name may be missing)

        Returns:
            ValidationOutcome; ``is_valid`` is False when any error was found
        """
        pass
