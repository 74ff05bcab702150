"""
Abstract base classes for broker document parsers.

The import pipeline only depends on these interfaces; concrete parsers can be
swapped without touching the pipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

from broker_import.models.broker import NormalizedBrokerRecord, ParsedBrokers


class ParseError(Exception):
    """Raised when a document cannot be parsed at all."""
    pass


@dataclass
class ScriptExtraction:
    """Raw literals found in a script bundle."""

    brokers: List[Dict[str, Any]] = field(default_factory=list)
    config: Dict[str, Any] = field(default_factory=dict)
    api_endpoints: List[Dict[str, str]] = field(default_factory=list)


class HtmlParser(ABC):
    """Extracts a broker record from a review page."""

    @abstractmethod
    def parse(self, html_content: str) -> NormalizedBrokerRecord:
        """Parse HTML markup into a record (the name may be missing).

        Raises:
            ParseError: If the markup cannot be processed
        """
        pass


class ScriptExtractor(ABC):
    """Pulls embedded broker object literals out of script bundles."""

    @abstractmethod
    def extract(self, script_content: str) -> ScriptExtraction:
        """Find raw broker literals in a script bundle."""
        pass

    @abstractmethod
    def to_records(self, extraction: ScriptExtraction) -> ParsedBrokers:
        """Convert raw literals to canonical records.

        Returns:
            ``Single`` for exactly one broker, ``Many`` otherwise (possibly empty)
        """
        pass
