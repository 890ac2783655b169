"""TranscriptionPort: abstract interface for speech-to-text services."""

from abc import ABC, abstractmethod

from domain.models import AudioBlob, TranscriptionOptions, TranscriptionResult


class TranscriptionPort(ABC):
    @abstractmethod
    async def transcribe(
        self,
        blob: AudioBlob,
        options: TranscriptionOptions,
    ) -> TranscriptionResult:
        """Transcribe one upload. Raises TranscriptionServiceError on failure."""

    @abstractmethod
    def model_name(self) -> str:
        """Return the human-readable model name for API responses."""
