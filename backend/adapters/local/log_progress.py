"""LogProgressAdapter: writes pipeline and segment transitions to the log."""

import logging
from typing import Optional

from domain.models import PipelineStage, SegmentState
from ports.progress import ProgressPort

logger = logging.getLogger(__name__)

_WARNING_STAGES = {PipelineStage.failed.value, SegmentState.failed.value}


class LogProgressAdapter(ProgressPort):
    def report(
        self,
        job_id: str,
        stage: str,
        progress: float = 0.0,
        detail: Optional[str] = None,
    ) -> None:
        parts = [f"[{job_id}]", stage]
        if progress > 0:
            parts.append(f"{progress:.0%}")
        if detail:
            parts.append(f"({detail})")
        level = logging.WARNING if stage in _WARNING_STAGES else logging.INFO
        logger.log(level, " ".join(parts))
