"""SegmentOrchestrator: transcribes ordered segments and reassembles the text.

A failed segment never aborts the batch: it is recorded in ``errors`` and
replaced by a visible placeholder so readers can see where the gap is.
Output order always follows ``Segment.index``, whatever the completion order.
"""

import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Optional

from domain.models import (
    AudioBlob, ProcessingResult, Segment, SegmentOutcome, SegmentState,
)
from domain.sizing import format_file_size
from ports.progress import ProgressPort

logger = logging.getLogger(__name__)

SEGMENT_SEPARATOR = "\n\n"

TranscribeOne = Callable[[AudioBlob, int], Awaitable[str]]


def error_placeholder(index: int) -> str:
    return f"[Error processing segment {index + 1}]"


class SegmentOrchestrator:
    def __init__(
        self,
        transcribe_one: TranscribeOne,
        max_concurrency: int = 1,
        progress: Optional[ProgressPort] = None,
        job_id: Optional[str] = None,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._transcribe_one = transcribe_one
        self._max_concurrency = max_concurrency
        self._progress = progress
        self._job_id = job_id or uuid.uuid4().hex[:12]
        self._finished = 0

    async def process(self, segments: list[Segment]) -> ProcessingResult:
        ordered = sorted(segments, key=lambda s: s.index)
        total = len(ordered)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        self._finished = 0

        for segment in ordered:
            self._report(SegmentState.pending, segment, total)

        async def _run(segment: Segment) -> SegmentOutcome:
            async with semaphore:
                return await self._process_one(segment, total)

        # gather cancels the remaining tasks if this coroutine is cancelled;
        # per-segment failures are already caught inside _process_one.
        outcomes = await asyncio.gather(*(_run(s) for s in ordered))
        outcomes = sorted(outcomes, key=lambda o: o.index)

        errors = [
            f"Segment {o.index + 1}: {o.error}" for o in outcomes if o.error is not None
        ]
        return ProcessingResult(
            combined_transcript=SEGMENT_SEPARATOR.join(o.transcript for o in outcomes),
            segments=outcomes,
            total_duration=sum(s.duration for s in ordered),
            errors=errors,
        )

    async def _process_one(self, segment: Segment, total: int) -> SegmentOutcome:
        self._report(SegmentState.in_flight, segment, total)
        logger.info(
            f"Processing segment {segment.index + 1}/{total} ({format_file_size(segment.size)})"
        )
        try:
            transcript = await self._transcribe_one(segment.blob, segment.index)
        except Exception as e:
            message = str(e) or type(e).__name__
            self._finished += 1
            logger.error(f"Error processing segment {segment.index + 1}: {message}")
            self._report(SegmentState.failed, segment, total, detail=message)
            return SegmentOutcome(
                index=segment.index,
                transcript=error_placeholder(segment.index),
                duration=segment.duration,
                error=message,
            )

        self._finished += 1
        self._report(SegmentState.completed, segment, total)
        return SegmentOutcome(
            index=segment.index,
            transcript=transcript or "",
            duration=segment.duration,
        )

    def _report(
        self, state: SegmentState, segment: Segment, total: int, detail: Optional[str] = None
    ) -> None:
        if self._progress is None:
            return
        label = f"segment {segment.index + 1}/{total}"
        self._progress.report(
            self._job_id,
            state.value,
            progress=self._finished / total if state in (SegmentState.completed, SegmentState.failed) else 0.0,
            detail=f"{label}: {detail}" if detail else label,
        )
