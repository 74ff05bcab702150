"""
Append-only, timestamped log buffer for a pipeline instance.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Union

from .exceptions import LogExportError


logger = logging.getLogger(__name__)


def _timestamp() -> str:
    """UTC timestamp in ISO-8601 with millisecond precision, e.g. 2024-05-01T10:00:00.123Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LogBuffer:
    """
    Ordered sequence of timestamped log lines.

    Every entry is also forwarded to the module logger so that console output
    (configured via ``setup_logging``) shows the same progress. When disabled,
    nothing is buffered but messages still reach the standard logger.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._entries: List[str] = []

    def log(self, message: str, level: int = logging.INFO) -> None:
        """Append a message to the buffer."""
        logger.log(level, message)
        if self.enabled:
            self._entries.append(f"[{_timestamp()}] {message}")

    def warning(self, message: str) -> None:
        """Append a message flagged as a warning."""
        self.log(f"Warning: {message}", logging.WARNING)

    def entries(self) -> List[str]:
        """Return a copy of the buffered lines."""
        return list(self._entries)

    def clear(self) -> None:
        """Drop every buffered line."""
        self._entries = []

    def export(self, file_path: Union[str, Path]) -> Path:
        """
        Write the buffer to a text file, one line per entry.

        Args:
            file_path: Destination file (parent directories are created)

        Returns:
            Path the log was written to

        Raises:
            LogExportError: If the file cannot be written
        """
        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("\n".join(self._entries), encoding="utf-8")
        except OSError as e:
            self.log(f"Failed to export logs: {e}", logging.ERROR)
            raise LogExportError(f"Could not write logs to {path}: {e}") from e

        self.log(f"Logs exported to: {path}")
        return path

    def __len__(self) -> int:
        return len(self._entries)
