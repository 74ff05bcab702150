"""
Core import pipeline orchestrating file discovery, parsing, validation and storage.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from broker_import.models.broker import NormalizedBrokerRecord, as_records
from broker_import.models.pipeline import (
    ExistenceCheck,
    FileOutcome,
    FileProcessingResult,
    PipelineConfig,
    PipelineResult,
)
from broker_import.store.base import BrokerStore
from broker_import.validators.base import BrokerValidator
from broker_import.validators.broker_validator import BrokerDataValidator

from .context import RunContext
from .dispatch import ParserDispatch
from .exceptions import NoBrokerDataError
from .filesystem import FileLocator, create_batches
from .log_buffer import LogBuffer
from .metrics import BatchResult, fold_batch


logger = logging.getLogger(__name__)

# Strongest first: a file reports the best outcome among its records.
OUTCOME_PRECEDENCE = (
    FileOutcome.IMPORTED,
    FileOutcome.ERRORED,
    FileOutcome.REJECTED,
    FileOutcome.SKIPPED,
)

# Read failures that will not go away by trying again.
NON_TRANSIENT_READ_ERRORS = (
    FileNotFoundError,
    IsADirectoryError,
    NotADirectoryError,
    PermissionError,
)


class ImportPipeline:
    """
    Batch import pipeline that:
    1. Discovers candidate files under the source directory
    2. Splits them into sequential batches
    3. Parses each file into broker records (HTML page or script bundle)
    4. Skips brokers already present in the store (optional)
    5. Validates and imports each record, collecting errors and warnings

    A single file never aborts the run; ``run()`` never raises.
    """

    def __init__(self,
                 store: BrokerStore,
                 config: Union[PipelineConfig, Dict[str, Any], None] = None,
                 validator: Optional[BrokerValidator] = None,
                 dispatch: Optional[ParserDispatch] = None,
                 log_buffer: Optional[LogBuffer] = None):
        """
        Initialize import pipeline.

        Args:
            store: Destination store, also consulted by the existence check
            config: PipelineConfig, or a dict of overrides merged over defaults
            validator: Record validator (BrokerDataValidator if None)
            dispatch: Parser dispatch (default parsers if None)
            log_buffer: Log buffer shared by all runs of this instance
        """
        if isinstance(config, PipelineConfig):
            self.config = config
        else:
            self.config = PipelineConfig.from_overrides(**(config or {}))

        self.store = store
        self.validator = validator or BrokerDataValidator()
        self.dispatch = dispatch or ParserDispatch()
        if log_buffer is None:
            log_buffer = LogBuffer(enabled=self.config.enable_logging)
        self.log_buffer = log_buffer
        self.locator = FileLocator(Path(self.config.source_directory))

        logger.debug(f"Initialized ImportPipeline: source={self.config.source_directory}, "
                     f"batch_size={self.config.batch_size}, skip_existing={self.config.skip_existing}, "
                     f"validation_strict={self.config.validation_strict}")

    def run(self) -> PipelineResult:
        """
        Execute the complete import.

        Returns:
            PipelineResult with totals, messages and elapsed time. Fatal
            errors are reported as a "Pipeline error: ..." entry with
            ``success`` False instead of being raised.
        """
        ctx = RunContext(config=self.config, log=self.log_buffer)
        log = ctx.log
        result = ctx.result

        try:
            log.log("Starting automated import pipeline...")
            log.log(f"Source directory: {self.config.source_directory}")
            log.log(f"File patterns: {', '.join(self.config.file_patterns)}")

            files = self.locator.locate(self.config.file_patterns, log)
            log.log(f"Found {len(files)} files to process")

            batches = create_batches(files, self.config.batch_size)
            for i, batch in enumerate(batches, 1):
                log.log(f"Processing batch {i} of {len(batches)}...")
                batch_result = self.process_batch(ctx, batch)
                fold_batch(result, batch_result)
                logger.debug(f"Batch {i} done: {batch_result}")

            result.success = result.imported_brokers > 0
            result.processing_time = ctx.elapsed_ms()

            log.log(f"Import pipeline completed in {result.processing_time}ms")
            log.log(f"Imported {result.imported_brokers} brokers from {result.processed_files} files")
            log.log(f"Failed files: {result.failed_files}")

        except Exception as e:
            message = f"Pipeline error: {e}"
            result.errors.append(message)
            result.success = False
            result.processing_time = ctx.elapsed_ms()
            log.log(message, logging.ERROR)

        return result

    def process_batch(self, ctx: RunContext, files: Sequence[Path]) -> BatchResult:
        """Process files of one batch in order and total their results."""
        batch = BatchResult()

        for file_path in files:
            try:
                file_result = self.process_file(ctx, file_path)
            except Exception as e:
                ctx.log.log(f"Error processing {file_path}: {e}", logging.ERROR)
                batch.record_failure(str(file_path), e)
                continue

            batch.record_file(file_result)

        return batch

    def process_file(self, ctx: RunContext, file_path: Path) -> FileProcessingResult:
        """
        Run one file through read, classify, parse, existence check,
        validation and import.

        Returns:
            FileProcessingResult with exactly one terminal outcome
        """
        result = FileProcessingResult(path=str(file_path))

        try:
            ctx.log.log(f"Processing file: {file_path}")

            content = self._read_file(ctx, Path(file_path))
            candidate = self.dispatch.candidate(file_path)
            records = as_records(self.dispatch.parse(candidate, content))
            if not records:
                raise NoBrokerDataError(str(file_path))

            outcomes = [self._process_record(ctx, record, result) for record in records]
            result.outcome = min(outcomes, key=OUTCOME_PRECEDENCE.index)

        except NoBrokerDataError as e:
            result.outcome = FileOutcome.ERRORED
            result.errors.append(str(e))
        except Exception as e:
            result.outcome = FileOutcome.ERRORED
            result.errors.append(f"Error processing {file_path}: {e}")
            ctx.log.log(f"Error processing {file_path}: {e}", logging.ERROR)

        return result

    def _process_record(self,
                        ctx: RunContext,
                        record: NormalizedBrokerRecord,
                        result: FileProcessingResult) -> FileOutcome:
        """Existence check, validation and import of a single record."""
        name = record.name

        if ctx.config.skip_existing and name:
            if self._check_existing(ctx, name) == ExistenceCheck.FOUND:
                result.warnings.append(f"Broker {name} already exists, skipping")
                return FileOutcome.SKIPPED

        if not self._apply_validation(ctx, record, result):
            return FileOutcome.REJECTED

        try:
            import_result = self.store.import_record(record)
        except Exception as e:
            result.errors.append(f"Import failed for {result.path}: {e}")
            return FileOutcome.ERRORED

        if not import_result.success:
            result.errors.append(f"Import failed for {result.path}: {', '.join(import_result.errors)}")
            return FileOutcome.ERRORED

        result.imported_brokers += 1
        result.stats.add(import_result.stats)
        ctx.log.log(f"Successfully imported broker: {name}")
        return FileOutcome.IMPORTED

    def _read_file(self, ctx: RunContext, file_path: Path) -> str:
        """
        Read a file as UTF-8, retrying transient I/O errors.

        Up to ``max_retries`` extra attempts are made, waiting
        ``retry_backoff * attempt`` seconds before each.
        """
        retry_count = 0

        while True:
            try:
                return file_path.read_text(encoding="utf-8")
            except NON_TRANSIENT_READ_ERRORS:
                raise
            except OSError as e:
                retry_count += 1
                if retry_count > ctx.config.max_retries:
                    raise

                wait_time = ctx.config.retry_backoff * retry_count
                ctx.log.warning(
                    f"Read error on attempt {retry_count}/{ctx.config.max_retries + 1} "
                    f"for {file_path}, retrying in {wait_time}s: {e}"
                )
                time.sleep(wait_time)

    def _check_existing(self, ctx: RunContext, name: str) -> ExistenceCheck:
        """Look the broker up in the store; lookup failures fail open."""
        try:
            found = self.store.exists(name)
        except Exception as e:
            ctx.log.warning(f"Could not check existing broker: {e}")
            return ExistenceCheck.CHECK_FAILED

        return ExistenceCheck.FOUND if found else ExistenceCheck.NOT_FOUND

    def _apply_validation(self,
                          ctx: RunContext,
                          record: NormalizedBrokerRecord,
                          result: FileProcessingResult) -> bool:
        """
        Validate a record and route its messages.

        Returns:
            False if the record must not be imported (strict mode only)
        """
        outcome = self.validator.validate(record)

        if not outcome.is_valid:
            joined = ", ".join(outcome.errors)
            if ctx.config.validation_strict:
                result.errors.append(f"Validation failed for {result.path}: {joined}")
                return False
            result.warnings.append(f"Validation warnings for {result.path}: {joined}")

        result.warnings.extend(outcome.warnings)
        return True

    def get_logs(self) -> List[str]:
        """Return the buffered log lines."""
        return self.log_buffer.entries()

    def clear_logs(self) -> None:
        """Drop all buffered log lines."""
        self.log_buffer.clear()

    def export_logs(self, file_path: Union[str, Path]) -> Path:
        """
        Write buffered log lines to a file.

        Raises:
            LogExportError: If the file cannot be written
        """
        return self.log_buffer.export(file_path)
