"""Pipeline models for the broker import run."""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, List, Tuple


DEFAULT_FILE_PATTERNS: Tuple[str, ...] = ("*.html", "*.js")


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration for one pipeline instance. Immutable once built."""

    source_directory: str = "data/forex-brokers"
    file_patterns: Tuple[str, ...] = DEFAULT_FILE_PATTERNS
    batch_size: int = 10
    max_retries: int = 3
    enable_logging: bool = True
    skip_existing: bool = True
    validation_strict: bool = False
    retry_backoff: float = 0.5  # seconds, multiplied by the attempt number

    @classmethod
    def from_overrides(cls, **overrides: Any) -> "PipelineConfig":
        """
        Build a configuration by merging overrides over the defaults.

        Unknown keys raise TypeError; ``None`` values are ignored so callers
        can pass optional CLI values straight through.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown pipeline option(s): {', '.join(sorted(unknown))}")

        values = {k: v for k, v in overrides.items() if v is not None}
        if "file_patterns" in values:
            values["file_patterns"] = tuple(values["file_patterns"])
        return replace(cls(), **values)


class DocumentKind(str, Enum):
    """Kind of source document, derived from the file extension."""

    HTML = "html"
    SCRIPT = "script"


@dataclass(frozen=True)
class CandidateFile:
    """A discovered file scheduled for processing."""

    path: Path
    kind: DocumentKind


class FileOutcome(str, Enum):
    """Terminal state of a single file."""

    IMPORTED = "imported"
    SKIPPED = "skipped"
    REJECTED = "rejected"
    ERRORED = "errored"


class ExistenceCheck(Enum):
    """Result of looking a broker up in the store before import."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    CHECK_FAILED = "check_failed"


STAT_FIELDS = (
    "regulations",
    "features",
    "trading_conditions",
    "account_types",
    "platforms",
    "payment_methods",
    "support",
    "education",
    "reviews",
    "affiliate_links",
    "promotions",
)


@dataclass
class EntityCounts:
    """Per-collection counters reported by the importer."""

    regulations: int = 0
    features: int = 0
    trading_conditions: int = 0
    account_types: int = 0
    platforms: int = 0
    payment_methods: int = 0
    support: int = 0
    education: int = 0
    reviews: int = 0
    affiliate_links: int = 0
    promotions: int = 0

    def __post_init__(self):
        for name in STAT_FIELDS:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} count cannot be negative")

    def add(self, other: "EntityCounts") -> None:
        """Add another set of counts into this one, field by field."""
        for name in STAT_FIELDS:
            setattr(self, name, getattr(self, name) + getattr(other, name))

    def __add__(self, other: "EntityCounts") -> "EntityCounts":
        total = EntityCounts()
        total.add(self)
        total.add(other)
        return total

    @property
    def total(self) -> int:
        return sum(getattr(self, name) for name in STAT_FIELDS)

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in STAT_FIELDS}


@dataclass
class ValidationOutcome:
    """Validator verdict for one broker record."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class FileProcessingResult:
    """Result of processing a single file. Folded into batch totals."""

    path: str
    outcome: FileOutcome = FileOutcome.ERRORED
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stats: EntityCounts = field(default_factory=EntityCounts)
    imported_brokers: int = 0

    @property
    def success(self) -> bool:
        return self.outcome == FileOutcome.IMPORTED

    @property
    def failed(self) -> bool:
        return self.outcome in (FileOutcome.ERRORED, FileOutcome.REJECTED)


@dataclass
class PipelineResult:
    """Terminal artifact of a run, mutated in place as batches complete."""

    success: bool = False
    processed_files: int = 0
    imported_brokers: int = 0
    failed_files: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stats: EntityCounts = field(default_factory=EntityCounts)
    processing_time: int = 0  # milliseconds

    def to_dict(self) -> dict:
        """Convert the result to a plain dictionary for serialization."""
        return {
            "success": self.success,
            "processed_files": self.processed_files,
            "imported_brokers": self.imported_brokers,
            "failed_files": self.failed_files,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "stats": self.stats.to_dict(),
            "processing_time": self.processing_time,
        }
