"""AudioSplitter: divides an oversized recording into uploadable segments.

Segment count is the fewest equal-duration slices whose proportional share
of the source fits the ceiling with margin. Cuts go through the injected
AudioProcessingPort; if a cut still comes out too large (variable bitrate)
the plan is redone with one more segment. The recording is staged once
per split and every pass cuts from that copy.
"""

import logging
import math

from domain.errors import AudioDecodeError
from domain.models import AudioBlob, AudioInfo, Segment, SplitResult
from domain.sizing import MAX_SEGMENT_BYTES, format_file_size
from ports.audio import AudioProcessingPort, AudioSource

logger = logging.getLogger(__name__)

DEFAULT_SIZE_MARGIN = 0.9
DEFAULT_MAX_SPLIT_PASSES = 4


def plan_boundaries(total_duration: float, count: int) -> list[tuple[float, float]]:
    """Equal-duration (start, end) pairs covering [0, total_duration] exactly."""
    if count < 1:
        raise ValueError("count must be at least 1")
    edges = [total_duration * i / count for i in range(count)] + [total_duration]
    return [(edges[i], edges[i + 1]) for i in range(count)]


def segment_count_for(size: int, max_bytes: int, margin: float) -> int:
    return max(1, math.ceil(size / (max_bytes * margin)))


def describe_audio(info: AudioInfo) -> str:
    parts = [info.format_name or "unknown format", f"{info.duration:.1f}s"]
    if info.sample_rate:
        parts.append(f"{info.sample_rate} Hz")
    if info.channels:
        parts.append(f"{info.channels} ch")
    if info.bit_rate:
        parts.append(f"{info.bit_rate // 1000} kb/s")
    return ", ".join(parts)


class AudioSplitter:
    def __init__(
        self,
        audio: AudioProcessingPort,
        max_segment_bytes: int = MAX_SEGMENT_BYTES,
        size_margin: float = DEFAULT_SIZE_MARGIN,
        max_split_passes: int = DEFAULT_MAX_SPLIT_PASSES,
    ):
        if not 0 < size_margin <= 1:
            raise ValueError("size_margin must be in (0, 1]")
        self._audio = audio
        self._max_bytes = max_segment_bytes
        self._margin = size_margin
        self._max_passes = max(1, max_split_passes)

    def split(self, blob: AudioBlob) -> SplitResult:
        if blob.size == 0:
            return SplitResult.failed("Audio file is empty")

        with self._audio.open(blob) as source:
            return self._split_source(blob, source)

    def _split_source(self, blob: AudioBlob, source: AudioSource) -> SplitResult:
        try:
            info = source.probe()
        except AudioDecodeError as e:
            logger.error(f"Error probing audio: {e}")
            return SplitResult.failed(f"Could not decode audio: {e}")
        logger.info(f"Probed audio: {describe_audio(info)}")

        total_duration = info.duration
        if not total_duration or total_duration <= 0:
            return SplitResult.failed("Audio has zero duration")

        if blob.size <= self._max_bytes:
            return SplitResult(
                segments=[Segment(index=0, blob=blob, start_time=0.0, end_time=total_duration)],
                total_duration=total_duration,
                total_size=blob.size,
            )

        count = segment_count_for(blob.size, self._max_bytes, self._margin)
        for attempt in range(1, self._max_passes + 1):
            logger.info(
                f"Splitting {format_file_size(blob.size)} / {total_duration:.1f}s "
                f"into {count} segments of {total_duration / count:.1f}s (pass {attempt})"
            )
            try:
                segments = self._cut_all(source, total_duration, count)
            except AudioDecodeError as e:
                logger.error(f"Error splitting audio: {e}")
                return SplitResult.failed(f"Could not split audio: {e}")

            oversized = [s for s in segments if s.size > self._max_bytes]
            if not oversized:
                return SplitResult(
                    segments=segments,
                    total_duration=total_duration,
                    total_size=sum(s.size for s in segments),
                )
            logger.warning(
                f"{len(oversized)} of {count} segments exceed {format_file_size(self._max_bytes)}, "
                f"retrying with {count + 1}"
            )
            count += 1

        return SplitResult.failed(
            f"Segments still exceed {format_file_size(self._max_bytes)} after {self._max_passes} passes"
        )

    def _cut_all(self, source: AudioSource, total_duration: float, count: int) -> list[Segment]:
        segments: list[Segment] = []
        for index, (start, end) in enumerate(plan_boundaries(total_duration, count)):
            piece = source.cut(start, end - start)
            if piece.size == 0:
                raise AudioDecodeError(f"Segment {index + 1} came out empty")
            segments.append(Segment(index=index, blob=piece, start_time=start, end_time=end))
        return segments
