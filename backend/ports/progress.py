"""ProgressPort: where the pipeline reports stage and segment transitions."""

from abc import ABC, abstractmethod
from typing import Optional


class ProgressPort(ABC):
    @abstractmethod
    def report(
        self,
        job_id: str,
        stage: str,
        progress: float = 0.0,
        detail: Optional[str] = None,
    ) -> None:
        """Record one transition for ``job_id``.

        ``stage`` is a PipelineStage value (splitting, reassembling, ...) or a
        SegmentState value for per-segment events. ``progress`` is the
        fraction of segments finished, 0.0 when not meaningful.
        """
