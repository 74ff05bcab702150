"""
Per-run state threaded through every pipeline stage.
"""

import time
from dataclasses import dataclass, field

from broker_import.models.pipeline import PipelineConfig, PipelineResult

from .log_buffer import LogBuffer


@dataclass
class RunContext:
    """Configuration, log buffer and running totals for one ``run()`` call."""

    config: PipelineConfig
    log: LogBuffer
    result: PipelineResult = field(default_factory=PipelineResult)
    started_at: float = field(default_factory=time.monotonic)

    def elapsed_ms(self) -> int:
        """Milliseconds since the run started."""
        return max(0, int((time.monotonic() - self.started_at) * 1000))
