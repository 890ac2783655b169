"""Error taxonomy for the transcription pipeline.

Only the HTTP layer maps these to status codes; nothing below it knows
about HTTP.
"""


class TranscriptionPipelineError(Exception):
    """Base class for request-level pipeline failures."""


class ValidationError(TranscriptionPipelineError):
    """Missing, empty or unsupported audio input, or bad options."""


class SegmentationError(TranscriptionPipelineError):
    """Audio could not be decoded or split. Fatal for the request."""


class SegmentTranscriptionError(TranscriptionPipelineError):
    """One segment failed after retries. Non-fatal inside the orchestrator."""


class SegmentTimeoutError(SegmentTranscriptionError):
    """Every attempt for a segment ran past its timeout."""


class TotalFailureError(TranscriptionPipelineError):
    """Nothing usable came back: all segments failed or the transcript is blank."""


class ConfigurationError(TranscriptionPipelineError):
    pass


class AudioDecodeError(Exception):
    """Raised by audio adapters when probing or cutting fails."""


class TranscriptionServiceError(Exception):
    """Raised by ASR adapters. ``retryable`` tells the retry policy whether to try again."""

    def __init__(self, message: str, retryable: bool = True, status_code=None):
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code
