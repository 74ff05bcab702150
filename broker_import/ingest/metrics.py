"""
Result aggregation for the import pipeline: file -> batch -> run.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from broker_import.models.pipeline import (
    EntityCounts,
    FileOutcome,
    FileProcessingResult,
    PipelineResult,
)


@dataclass
class BatchResult:
    """
    Totals for one batch of files, folded into the run result when the batch ends.
    """

    processed_files: int = 0
    imported_brokers: int = 0
    failed_files: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stats: EntityCounts = field(default_factory=EntityCounts)
    outcomes: Dict[FileOutcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in FileOutcome}
    )

    def record_file(self, result: FileProcessingResult) -> None:
        """Record a file whose processing returned normally."""
        self.processed_files += 1
        self.outcomes[result.outcome] += 1
        self.imported_brokers += result.imported_brokers
        if result.failed:
            self.failed_files += 1
        self.errors.extend(result.errors)
        self.warnings.extend(result.warnings)
        self.stats.add(result.stats)

    def record_failure(self, file_path: str, error: Exception) -> None:
        """Record a file whose processing raised instead of returning a result."""
        self.failed_files += 1
        self.outcomes[FileOutcome.ERRORED] += 1
        self.errors.append(f"Error processing {file_path}: {error}")

    def __str__(self) -> str:
        """String representation for logging."""
        return (
            f"BatchResult("
            f"processed={self.processed_files}, "
            f"imported={self.imported_brokers}, "
            f"failed={self.failed_files}, "
            f"errors={len(self.errors)}, "
            f"warnings={len(self.warnings)}"
            f")"
        )


def fold_batch(result: PipelineResult, batch: BatchResult) -> None:
    """Add a batch's totals into the run result, preserving message order."""
    result.processed_files += batch.processed_files
    result.imported_brokers += batch.imported_brokers
    result.failed_files += batch.failed_files
    result.errors.extend(batch.errors)
    result.warnings.extend(batch.warnings)
    result.stats.add(batch.stats)
