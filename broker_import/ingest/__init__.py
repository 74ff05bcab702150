"""
Broker import pipeline: file discovery, parsing, validation and storage.
"""

from .context import RunContext
from .dispatch import ParserDispatch
from .exceptions import (
    ImportPipelineError,
    LogExportError,
    NoBrokerDataError,
    UnsupportedFileTypeError,
)
from .filesystem import FileLocator, create_batches, derive_broker_name, match_pattern
from .log_buffer import LogBuffer
from .metrics import BatchResult, fold_batch
from .pipeline import ImportPipeline

__all__ = [
    "BatchResult",
    "FileLocator",
    "ImportPipeline",
    "ImportPipelineError",
    "LogBuffer",
    "LogExportError",
    "NoBrokerDataError",
    "ParserDispatch",
    "RunContext",
    "UnsupportedFileTypeError",
    "create_batches",
    "derive_broker_name",
    "fold_batch",
    "match_pattern",
]
