"""FastAPI application for the transcription service.

The only place where pipeline errors become HTTP status codes.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from adapters.groq.transcription import PROVIDER_NAME
from config import Config, create_use_case, get_config
from domain.errors import (
    AudioDecodeError, ConfigurationError, SegmentationError, TotalFailureError, ValidationError,
)
from domain.models import AudioBlob, TranscriptionOptions
from domain.sizing import format_file_size
from mappers import error_to_response, outcome_to_response
from models import StatusResponse
from use_cases.transcribe import TranscribeAudioUseCase, TranscribeRequest

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_FORMATS = [
    "audio/m4a", "audio/mp4", "audio/wav", "audio/mpeg", "audio/webm", "audio/ogg", "audio/flac",
]
FORM_FIELDS = {"audio", "language", "prompt", "temperature"}


def _error(status_code: int, message: str, details: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_to_response(message, details).to_json())


def get_app_config(request: Request) -> Config:
    return request.app.state.config


def get_use_case(request: Request) -> TranscribeAudioUseCase:
    """Build the use case on first use so a missing API key fails per request, not at import."""
    if request.app.state.use_case is None:
        request.app.state.use_case = create_use_case(request.app.state.config)
    return request.app.state.use_case


def _parse_temperature(raw) -> Optional[float]:
    if raw is None or str(raw).strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(f"temperature must be a number, got {raw!r}") from None


@router.post("/api/transcribe")
async def transcribe(
    request: Request,
    cfg: Config = Depends(get_app_config),  # noqa: B008
):
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type:
        return _error(400, "Request must be multipart/form-data")

    form = await request.form()
    audio = form.get("audio")
    if not isinstance(audio, UploadFile):
        return _error(400, "No audio file provided")

    ignored = sorted(set(form.keys()) - FORM_FIELDS)
    if ignored:
        logger.debug(f"Ignoring unrecognized form fields: {ignored}")

    try:
        use_case = get_use_case(request)
        options = TranscriptionOptions.from_mapping({
            "language": form.get("language") or cfg.default_language,
            "prompt": form.get("prompt") or None,
            "temperature": _parse_temperature(form.get("temperature")),
            "model": use_case.transcription.model_name(),
        })
        data = await audio.read()
        blob = AudioBlob(data=data, mime_type=audio.content_type or "")
        logger.info(
            f"Audio file details: name={audio.filename} type={blob.mime_type} size={format_file_size(blob.size)}"
        )
        outcome = await use_case.execute(
            TranscribeRequest(blob=blob, filename=audio.filename or "audio", options=options)
        )
    except ValidationError as e:
        logger.info(f"Rejected transcription request: {e}")
        return _error(400, str(e))
    except SegmentationError as e:
        return _error(400, f"Audio splitting failed: {e}")
    except TotalFailureError as e:
        logger.error(f"Transcription failed: {e}")
        return _error(400, str(e) or "Transcription failed")
    except ConfigurationError as e:
        logger.error(f"Service misconfigured: {e}")
        return _error(500, "Transcription service is not configured", str(e))
    except Exception as e:
        logger.exception("Transcription API error")
        return _error(500, "Internal server error during transcription", str(e) or type(e).__name__)

    logger.info(
        f"Transcribed {audio.filename}: {outcome.segment_count} segment(s), "
        f"{len(outcome.errors)} failed, {outcome.file_size}"
    )
    return JSONResponse(content=outcome_to_response(outcome).to_json())


@router.get("/api/transcribe")
async def transcribe_status(cfg: Config = Depends(get_app_config)):  # noqa: B008
    status = StatusResponse(
        message="Transcription API is running with automatic splitting",
        model=cfg.model_id,
        provider=PROVIDER_NAME,
        supported_formats=STATUS_FORMATS,
        max_file_size=f"{format_file_size(cfg.max_segment_bytes)} per segment (automatic splitting for larger files)",
        splitting_enabled=True,
        max_recording_time="30 minutes",
        has_groq_key=cfg.groq_api_key is not None,
    )
    return JSONResponse(content=status.to_json())


@router.get("/health")
async def health():
    return {"status": "ok"}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    from adapters.ffmpeg.audio import check_ffmpeg

    try:
        check_ffmpeg()
    except AudioDecodeError as e:
        logger.warning(f"{e}; recordings over {format_file_size(app.state.config.max_segment_bytes)} cannot be split")
    if app.state.config.groq_api_key is None:
        logger.warning("GROQ_API_KEY is not set; transcription requests will fail")
    yield


def create_app(
    use_case: Optional[TranscribeAudioUseCase] = None,
    cfg: Optional[Config] = None,
) -> FastAPI:
    app = FastAPI(title="Hysio Transcribe", lifespan=lifespan)
    app.state.config = cfg or get_config()
    app.state.use_case = use_case
    app.include_router(router)
    return app
