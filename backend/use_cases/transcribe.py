"""TranscribeAudioUseCase: decides direct vs. split transcription and runs it.

Accepts all ports via dependency injection; there is no module-level ASR
client. Validation, segmentation and total failures propagate as
exceptions; per-segment failures come back inside the outcome.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from domain.errors import SegmentationError, SegmentTranscriptionError, TotalFailureError, ValidationError
from domain.models import (
    AudioBlob, PipelineStage, RetryPolicy, TranscriptionOptions, TranscriptionOutcome,
)
from domain.sizing import (
    MAX_SEGMENT_BYTES, format_duration, format_file_size, is_file_size_exceeded, is_supported_audio_format,
)
from ports.audio import AudioProcessingPort
from ports.progress import ProgressPort
from ports.transcription import TranscriptionPort
from retry import call_with_retry
from use_cases.process_segments import SegmentOrchestrator
from use_cases.split_audio import DEFAULT_MAX_SPLIT_PASSES, DEFAULT_SIZE_MARGIN, AudioSplitter

logger = logging.getLogger(__name__)


@dataclass
class PipelineSettings:
    """Tunables for one pipeline instance."""
    max_segment_bytes: int = MAX_SEGMENT_BYTES
    size_margin: float = DEFAULT_SIZE_MARGIN
    max_split_passes: int = DEFAULT_MAX_SPLIT_PASSES
    max_concurrency: int = 1
    retry: RetryPolicy = field(default_factory=RetryPolicy)


@dataclass
class TranscribeRequest:
    """All parameters for a transcription request."""
    blob: AudioBlob
    filename: str = "audio"
    options: TranscriptionOptions = field(default_factory=TranscriptionOptions)


class TranscribeAudioUseCase:
    def __init__(
        self,
        transcription: TranscriptionPort,
        audio: AudioProcessingPort,
        progress: ProgressPort,
        settings: Optional[PipelineSettings] = None,
    ):
        self._transcription = transcription
        self._audio = audio
        self._progress = progress
        self._settings = settings or PipelineSettings()

    @property
    def transcription(self) -> TranscriptionPort:
        return self._transcription

    @property
    def settings(self) -> PipelineSettings:
        return self._settings

    async def execute(self, req: TranscribeRequest) -> TranscriptionOutcome:
        job_id = uuid.uuid4().hex[:12]
        blob = req.blob

        # 1. Validate
        if blob.size == 0:
            raise ValidationError("No audio file provided")
        if not is_supported_audio_format(blob.mime_type):
            raise ValidationError(
                f"Unsupported audio format: {blob.mime_type}. "
                "Supported formats: WAV, MP3, MP4, WebM, OGG, FLAC, M4A"
            )

        # 2. Estimate
        needs_splitting = is_file_size_exceeded(blob, self._settings.max_segment_bytes)
        file_size = format_file_size(blob.size)
        logger.info(
            f"Audio file {req.filename}: {file_size} - "
            f"{'needs splitting' if needs_splitting else 'processing directly'}"
        )

        if needs_splitting:
            return await self._transcribe_segmented(job_id, blob, req.options, file_size)
        return await self._transcribe_direct(job_id, blob, req.options, file_size)

    async def _transcribe_direct(
        self, job_id: str, blob: AudioBlob, options: TranscriptionOptions, file_size: str,
    ) -> TranscriptionOutcome:
        self._progress.report(job_id, PipelineStage.transcribing.value)
        try:
            result = await call_with_retry(
                lambda: self._transcription.transcribe(blob, options),
                self._settings.retry,
                description="Transcription",
            )
        except SegmentTranscriptionError as e:
            self._progress.report(job_id, PipelineStage.failed.value, detail=str(e))
            raise TotalFailureError(str(e)) from e

        self._progress.report(job_id, PipelineStage.done.value, progress=1.0)
        return TranscriptionOutcome(
            transcript=result.text,
            duration=result.duration,
            confidence=result.confidence,
            segmented=False,
            file_size=file_size,
            segment_count=1,
        )

    async def _transcribe_segmented(
        self, job_id: str, blob: AudioBlob, options: TranscriptionOptions, file_size: str,
    ) -> TranscriptionOutcome:
        # 1. Split (ffmpeg work happens off the event loop)
        self._progress.report(job_id, PipelineStage.splitting.value, detail=file_size)
        splitter = AudioSplitter(
            self._audio,
            max_segment_bytes=self._settings.max_segment_bytes,
            size_margin=self._settings.size_margin,
            max_split_passes=self._settings.max_split_passes,
        )
        split_result = await asyncio.to_thread(splitter.split, blob)
        if split_result.error:
            self._progress.report(job_id, PipelineStage.failed.value, detail=split_result.error)
            raise SegmentationError(split_result.error)

        segment_count = len(split_result.segments)
        logger.info(
            f"Split into {segment_count} segments, total duration: {format_duration(split_result.total_duration)}"
        )

        # 2. Transcribe each segment
        self._progress.report(
            job_id, PipelineStage.processing_segments.value, detail=f"{segment_count} segments"
        )

        async def transcribe_one(segment_blob: AudioBlob, index: int) -> str:
            result = await call_with_retry(
                lambda: self._transcription.transcribe(segment_blob, options),
                self._settings.retry,
                description=f"Segment {index + 1}/{segment_count}",
            )
            return result.text

        orchestrator = SegmentOrchestrator(
            transcribe_one,
            max_concurrency=self._settings.max_concurrency,
            progress=self._progress,
            job_id=job_id,
        )
        processing = await orchestrator.process(split_result.segments)

        # 3. Reassemble
        self._progress.report(job_id, PipelineStage.reassembling.value)
        if processing.all_failed:
            self._progress.report(job_id, PipelineStage.failed.value, detail="all segments failed")
            raise TotalFailureError(
                f"All {segment_count} segments failed: {'; '.join(processing.errors)}"
            )
        if not any(o.transcript.strip() for o in processing.segments if o.error is None):
            self._progress.report(job_id, PipelineStage.failed.value, detail="empty transcript")
            raise TotalFailureError("Transcription produced no text")

        if processing.errors:
            logger.warning(f"Some segments failed to process: {processing.errors}")

        self._progress.report(job_id, PipelineStage.done.value, progress=1.0)
        logger.info(f"Successfully processed {segment_count} segments")
        return TranscriptionOutcome(
            transcript=processing.combined_transcript,
            duration=processing.total_duration,
            confidence=1.0,
            segmented=True,
            file_size=file_size,
            segment_count=segment_count,
            errors=processing.errors,
        )
