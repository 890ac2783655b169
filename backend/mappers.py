"""Domain <-> DTO mappers.

Converts TranscriptionOutcome (domain) to the HTTP response DTOs so the
JSON shape stays independent of the pipeline internals.
"""

from domain.models import TranscriptionOutcome
from models import ErrorResponse, TranscriptionResponse


def outcome_to_response(outcome: TranscriptionOutcome) -> TranscriptionResponse:
    return TranscriptionResponse(
        transcript=outcome.transcript,
        duration=outcome.duration,
        confidence=outcome.confidence,
        segmented=outcome.segmented,
        file_size=outcome.file_size,
        segment_errors=list(outcome.errors) or None,
    )


def error_to_response(message: str, details: str | None = None) -> ErrorResponse:
    return ErrorResponse(error=message, details=details)
