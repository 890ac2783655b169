import os
import logging
from typing import Dict, Any
from pathlib import Path

from dotenv import load_dotenv

from domain.errors import ConfigurationError
from domain.models import DEFAULT_LANGUAGE, DEFAULT_MODEL, RetryPolicy
from domain.sizing import MAX_SEGMENT_BYTES, format_file_size

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8001
DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_TEMP_DIR = "/tmp/hysio-transcribe"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    @classmethod
    def reload(cls) -> "Config":
        """Drop the cached instance and re-read the environment."""
        cls._instance = None
        return cls()

    def _initialize(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = _env_int("PORT", DEFAULT_PORT)
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.groq_api_key = os.environ.get("GROQ_API_KEY") or None
        self.groq_base_url = os.environ.get("GROQ_BASE_URL", DEFAULT_GROQ_BASE_URL)
        self.model_id = os.environ.get("MODEL_ID", "").strip() or DEFAULT_MODEL
        self.default_language = os.environ.get("DEFAULT_LANGUAGE", DEFAULT_LANGUAGE)
        self.max_segment_bytes = _env_int("MAX_SEGMENT_BYTES", MAX_SEGMENT_BYTES)
        self.segment_size_margin = _env_float("SEGMENT_SIZE_MARGIN", 0.9)
        self.max_split_passes = _env_int("MAX_SPLIT_PASSES", 4)
        self.max_concurrency = _env_int("MAX_CONCURRENCY", 1)
        self.transcription_max_attempts = _env_int("TRANSCRIPTION_MAX_ATTEMPTS", 3)
        self.transcription_backoff_seconds = _env_float("TRANSCRIPTION_BACKOFF_SECONDS", 2.0)
        self.transcription_timeout_seconds = _env_float("TRANSCRIPTION_TIMEOUT_SECONDS", 120.0)
        self.ffmpeg_timeout_seconds = _env_float("FFMPEG_TIMEOUT_SECONDS", 300.0)
        self.temp_dir = os.environ.get("TEMP_DIR", DEFAULT_TEMP_DIR)
        self._validate()
        Path(self.temp_dir).mkdir(parents=True, exist_ok=True)

    def _validate(self) -> None:
        if self.max_segment_bytes <= 0:
            raise ConfigurationError("MAX_SEGMENT_BYTES must be positive")
        if not 0 < self.segment_size_margin <= 1:
            raise ConfigurationError("SEGMENT_SIZE_MARGIN must be in (0, 1]")
        if self.max_concurrency < 1:
            raise ConfigurationError("MAX_CONCURRENCY must be at least 1")
        if self.transcription_max_attempts < 1:
            raise ConfigurationError("TRANSCRIPTION_MAX_ATTEMPTS must be at least 1")

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.transcription_max_attempts,
            backoff_seconds=self.transcription_backoff_seconds,
            timeout_seconds=self.transcription_timeout_seconds or None,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "model_id": self.model_id,
            "default_language": self.default_language,
            "max_segment_size": format_file_size(self.max_segment_bytes),
            "segment_size_margin": self.segment_size_margin,
            "max_split_passes": self.max_split_passes,
            "max_concurrency": self.max_concurrency,
            "transcription_max_attempts": self.transcription_max_attempts,
            "transcription_timeout_seconds": self.transcription_timeout_seconds,
            "ffmpeg_timeout_seconds": self.ffmpeg_timeout_seconds,
            "has_groq_key": self.groq_api_key is not None,
        }


def get_config() -> Config:
    return Config()


def create_transcription_adapter(cfg: Config):
    """Create the ASR adapter. Fails fast if the API key is missing."""
    from adapters.groq.transcription import GroqTranscriptionAdapter
    return GroqTranscriptionAdapter(
        api_key=cfg.groq_api_key,
        base_url=cfg.groq_base_url,
        model_id=cfg.model_id,
    )


def create_audio_adapter(cfg: Config):
    """Create the audio processing adapter (always FFmpeg)."""
    from adapters.ffmpeg.audio import FFmpegAudioAdapter
    return FFmpegAudioAdapter(temp_dir=cfg.temp_dir, timeout=cfg.ffmpeg_timeout_seconds or None)


def create_progress_adapter():
    from adapters.local.log_progress import LogProgressAdapter
    return LogProgressAdapter()


def create_use_case(cfg: Config):
    """Wire the transcribe use case from configuration."""
    from use_cases.transcribe import PipelineSettings, TranscribeAudioUseCase

    settings = PipelineSettings(
        max_segment_bytes=cfg.max_segment_bytes,
        size_margin=cfg.segment_size_margin,
        max_split_passes=cfg.max_split_passes,
        max_concurrency=cfg.max_concurrency,
        retry=cfg.retry_policy(),
    )
    use_case = TranscribeAudioUseCase(
        transcription=create_transcription_adapter(cfg),
        audio=create_audio_adapter(cfg),
        progress=create_progress_adapter(),
        settings=settings,
    )
    logger.info(f"Pipeline: {cfg.as_dict()}")
    return use_case
