"""GroqTranscriptionAdapter: Whisper Large v3 Turbo via Groq's OpenAI-compatible API.

The SDK's own retries are disabled; retries and timeouts are owned by the
RetryPolicy in retry.py. SDK errors are translated into
TranscriptionServiceError carrying a ``retryable`` flag.
"""

import io
import logging
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from domain.errors import ConfigurationError, TranscriptionServiceError
from domain.models import AudioBlob, TranscriptionOptions, TranscriptionResult
from domain.sizing import extension_for_mime_type
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

PROVIDER_NAME = "Groq"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"

# HTTP status codes worth retrying on
_RETRYABLE_STATUS_CODES: set[int] = {408, 409, 429, 500, 502, 503, 504}


def translate_error(exc: Exception) -> TranscriptionServiceError:
    """Map an SDK exception to a TranscriptionServiceError."""
    if isinstance(exc, (openai.APITimeoutError, openai.APIConnectionError)):
        return TranscriptionServiceError(f"Groq connection failed: {exc}", retryable=True)
    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
        return TranscriptionServiceError(
            f"Groq API error ({status}): {exc.message}",
            retryable=status in _RETRYABLE_STATUS_CODES,
            status_code=status,
        )
    return TranscriptionServiceError(f"Groq transcription failed: {exc}", retryable=True)


def parse_transcription(response: Any, response_format: str) -> TranscriptionResult:
    """Pull text and duration out of the SDK response, whatever its shape."""
    if isinstance(response, str):
        return TranscriptionResult(text=response.strip())

    if isinstance(response, dict):
        text = response.get("text") or ""
        duration = response.get("duration")
    else:
        text = getattr(response, "text", None) or ""
        duration = getattr(response, "duration", None)

    if response_format != "verbose_json":
        duration = None
    return TranscriptionResult(text=text.strip(), duration=float(duration or 0.0))


class GroqTranscriptionAdapter(TranscriptionPort):
    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = GROQ_BASE_URL,
        model_id: str = "whisper-large-v3-turbo",
        client: Optional[AsyncOpenAI] = None,
    ):
        if client is None:
            if not api_key:
                raise ConfigurationError("GROQ_API_KEY environment variable is not set")
            client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)
        self._client = client
        self._model_id = model_id

    async def transcribe(
        self,
        blob: AudioBlob,
        options: TranscriptionOptions,
    ) -> TranscriptionResult:
        mime_type = blob.mime_type or "audio/wav"
        audio_file = io.BytesIO(blob.data)
        audio_file.name = f"audio.{extension_for_mime_type(mime_type)}"

        request: dict[str, Any] = {
            "file": audio_file,
            "model": options.model or self._model_id,
            "language": options.language,
            "response_format": options.response_format,
            "temperature": options.temperature,
        }
        if options.prompt:
            request["prompt"] = options.prompt

        logger.debug(f"Groq transcription request: {len(blob.data)} bytes, {mime_type}, model={request['model']}")
        try:
            response = await self._client.audio.transcriptions.create(**request)
        except openai.OpenAIError as e:
            raise translate_error(e) from e

        return parse_transcription(response, options.response_format)

    def model_name(self) -> str:
        return self._model_id
