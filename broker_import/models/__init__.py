"""Data models for the broker import pipeline."""

from broker_import.models.broker import (
    BrokerInfo,
    Many,
    NormalizedBrokerRecord,
    ParsedBrokers,
    Single,
    as_records,
    slugify,
)
from broker_import.models.pipeline import (
    CandidateFile,
    DocumentKind,
    EntityCounts,
    ExistenceCheck,
    FileOutcome,
    FileProcessingResult,
    PipelineConfig,
    PipelineResult,
    ValidationOutcome,
)

__all__ = [
    "BrokerInfo",
    "CandidateFile",
    "DocumentKind",
    "EntityCounts",
    "ExistenceCheck",
    "FileOutcome",
    "FileProcessingResult",
    "Many",
    "NormalizedBrokerRecord",
    "ParsedBrokers",
    "PipelineConfig",
    "PipelineResult",
    "Single",
    "ValidationOutcome",
    "as_records",
    "slugify",
]
