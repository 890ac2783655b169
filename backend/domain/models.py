"""Framework-agnostic domain models for the transcription pipeline.

Plain dataclasses shared by the splitter, the orchestrator and the adapters.
The pydantic DTOs in models.py are the HTTP-facing shapes, with mappers at
the boundary.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping, Optional

from domain.errors import ValidationError

DEFAULT_LANGUAGE = "nl"
DEFAULT_MODEL = "whisper-large-v3-turbo"
RESPONSE_FORMATS = ("json", "text", "srt", "verbose_json", "vtt")


class PipelineStage(str, Enum):
    transcribing = "transcribing"
    splitting = "splitting"
    processing_segments = "processing_segments"
    reassembling = "reassembling"
    done = "done"
    failed = "failed"


class SegmentState(str, Enum):
    pending = "pending"
    in_flight = "in_flight"
    completed = "completed"
    failed = "failed"


@dataclass(frozen=True)
class AudioBlob:
    """Binary audio content plus its declared MIME type."""
    data: bytes
    mime_type: str = "audio/wav"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AudioInfo:
    """What probing an audio blob tells us."""
    duration: float
    format_name: str = ""
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    bit_rate: Optional[int] = None


@dataclass
class Segment:
    """One contiguous slice of the original recording."""
    index: int
    blob: AudioBlob
    start_time: float
    end_time: float

    @property
    def size(self) -> int:
        return self.blob.size

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass
class SplitResult:
    segments: list[Segment] = field(default_factory=list)
    total_duration: float = 0.0
    total_size: int = 0
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "SplitResult":
        return cls(segments=[], total_duration=0.0, total_size=0, error=error)


@dataclass
class SegmentOutcome:
    index: int
    transcript: str
    duration: float
    error: Optional[str] = None


@dataclass
class ProcessingResult:
    combined_transcript: str
    segments: list[SegmentOutcome] = field(default_factory=list)
    total_duration: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return sum(1 for s in self.segments if s.error is not None)

    @property
    def all_failed(self) -> bool:
        return bool(self.segments) and self.failed_count == len(self.segments)


@dataclass(frozen=True)
class TranscriptionOptions:
    """Recognized transcription parameters. Unknown fields are rejected."""
    language: str = DEFAULT_LANGUAGE
    prompt: Optional[str] = None
    temperature: float = 0.0
    response_format: str = "verbose_json"
    model: str = DEFAULT_MODEL

    def __post_init__(self):
        if not 0.0 <= self.temperature <= 1.0:
            raise ValidationError(f"temperature must be between 0 and 1, got {self.temperature}")
        if self.response_format not in RESPONSE_FORMATS:
            raise ValidationError(
                f"Unsupported response_format: {self.response_format!r}. "
                f"Valid options: {', '.join(RESPONSE_FORMATS)}"
            )
        if not self.language:
            raise ValidationError("language must not be empty")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "TranscriptionOptions":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValidationError(f"Unknown transcription option(s): {', '.join(unknown)}")
        # None means "use the default"
        return cls(**{k: v for k, v in values.items() if v is not None})


@dataclass(frozen=True)
class TranscriptionResult:
    """A single ASR call's output."""
    text: str
    duration: float = 0.0
    confidence: float = 1.0


@dataclass(frozen=True)
class RetryPolicy:
    """Attempts, linear backoff (step * attempt, capped) and per-attempt timeout."""
    max_attempts: int = 3
    backoff_seconds: float = 2.0
    max_backoff_seconds: float = 30.0
    timeout_seconds: Optional[float] = 120.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must not be negative")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given 1-based failed attempt."""
        return min(self.backoff_seconds * attempt, self.max_backoff_seconds)


@dataclass
class TranscriptionOutcome:
    """Request-level result handed back to the HTTP layer."""
    transcript: str
    duration: float
    confidence: float
    segmented: bool
    file_size: str
    segment_count: int = 1
    errors: list[str] = field(default_factory=list)
