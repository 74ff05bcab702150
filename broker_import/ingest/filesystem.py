"""
Filesystem utilities for file discovery, batching and name derivation.
"""

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Set, TypeVar

from .log_buffer import LogBuffer


logger = logging.getLogger(__name__)

T = TypeVar("T")

_NAME_AFFIXES = (
    re.compile(r"-review$", re.IGNORECASE),
    re.compile(r"-broker$", re.IGNORECASE),
    re.compile(r"review-$", re.IGNORECASE),
    re.compile(r"broker-$", re.IGNORECASE),
)


def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """
    Compile a shell-style pattern into a regular expression.

    Only ``*`` (any run of characters) and ``?`` (any single character) are
    special; everything else, including ``[`` and ``.``, matches literally.
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def match_pattern(filename: str, pattern: str) -> bool:
    """
    Check whether a base file name matches a pattern.

    Examples:
        match_pattern("xm-review.html", "*-review.html") -> True
        match_pattern("review.html", "*-review.html") -> False
    """
    return compile_pattern(pattern).fullmatch(filename) is not None


def derive_broker_name(file_path: Path) -> str:
    """
    Derive a broker name from a review page's file name.

    Args:
        file_path: Path to the source file

    Returns:
        Candidate broker name (the bare stem if stripping leaves nothing)

    Example:
        derive_broker_name(Path("/data/ic-markets-review.html")) -> "Ic Markets"
    """
    stem = file_path.stem
    clean = stem
    for affix in _NAME_AFFIXES:
        clean = affix.sub("", clean)

    clean = clean.replace("-", " ").strip()
    clean = re.sub(r"\b\w", lambda m: m.group(0).upper(), clean)

    return clean or stem


def create_batches(items: Sequence[T], batch_size: int) -> List[List[T]]:
    """
    Partition items into contiguous, order-preserving chunks.

    Args:
        items: Ordered items to split
        batch_size: Maximum number of items per chunk

    Returns:
        List of chunks; empty when ``items`` is empty

    Raises:
        ValueError: If batch_size is not a positive integer
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size}")

    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]


class FileLocator:
    """Resolves a source directory and file patterns into candidate files."""

    def __init__(self, source_directory: Path):
        """
        Initialize the locator.

        Args:
            source_directory: Root directory scanned for importable documents.
                It is not required to exist; missing directories only produce
                discovery warnings.
        """
        self.source_directory = Path(source_directory)

    def locate(self, patterns: Sequence[str], log: Optional[LogBuffer] = None) -> List[Path]:
        """
        Find all files matching any of the patterns.

        Args:
            patterns: Shell-style patterns, optionally with a directory prefix
                relative to the source directory (e.g. "reviews/*.html")
            log: Buffer receiving discovery warnings

        Returns:
            Deduplicated, lexicographically sorted absolute paths
        """
        found: Set[Path] = set()

        for pattern in patterns:
            try:
                found.update(self._glob(pattern))
            except OSError as e:
                message = f"Could not find files matching pattern {pattern}: {e}"
                if log is not None:
                    log.warning(message)
                else:
                    logger.warning(message)

        return sorted(found, key=str)

    def _glob(self, pattern: str) -> Iterator[Path]:
        """Yield files in the pattern's directory whose base name matches."""
        relative = Path(pattern)
        directory = (self.source_directory / relative.parent).resolve()
        name_pattern = compile_pattern(relative.name)

        if not directory.is_dir():
            raise FileNotFoundError(f"Directory not found: {directory}")

        for entry in directory.iterdir():
            if entry.is_file() and name_pattern.fullmatch(entry.name):
                yield entry
