"""Custom exceptions for the import pipeline."""


class ImportPipelineError(Exception):
    """Base exception for import pipeline errors."""
    pass


class UnsupportedFileTypeError(ImportPipelineError):
    """File extension has no registered parser."""

    def __init__(self, path: str, extension: str):
        self.path = path
        self.extension = extension
        super().__init__(f"Unsupported file type: {extension or '<none>'}")


class NoBrokerDataError(ImportPipelineError):
    """Parser produced no broker records for a file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No broker data found in file: {path}")


class LogExportError(ImportPipelineError):
    """Log buffer could not be written to its destination."""
    pass
