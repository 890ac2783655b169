"""Shared test fixtures."""

import pytest

from config import Config
from domain.models import AudioBlob, RetryPolicy
from use_cases.transcribe import PipelineSettings

from fakes import FakeAudio, FakeTranscription, RecordingProgress

MiB = 1024 * 1024


@pytest.fixture
def no_wait_retry() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, backoff_seconds=0.0, timeout_seconds=None)


@pytest.fixture
def small_settings(no_wait_retry) -> PipelineSettings:
    """A 1000-byte ceiling keeps segmented test blobs tiny."""
    return PipelineSettings(
        max_segment_bytes=1000,
        size_margin=1.0,
        max_split_passes=4,
        max_concurrency=1,
        retry=no_wait_retry,
    )


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def fake_audio() -> FakeAudio:
    return FakeAudio(duration=600.0)


@pytest.fixture
def fake_transcription() -> FakeTranscription:
    return FakeTranscription()


@pytest.fixture
def large_wav() -> AudioBlob:
    return AudioBlob(data=b"\x00" * (30 * MiB), mime_type="audio/wav")


@pytest.fixture
def config(monkeypatch, tmp_path):
    monkeypatch.setenv("GROQ_API_KEY", "test-api-key")
    monkeypatch.setenv("TEMP_DIR", str(tmp_path / "scratch"))
    for name in (
        "MAX_SEGMENT_BYTES", "SEGMENT_SIZE_MARGIN", "MAX_CONCURRENCY", "MODEL_ID",
        "TRANSCRIPTION_MAX_ATTEMPTS", "TRANSCRIPTION_BACKOFF_SECONDS",
        "TRANSCRIPTION_TIMEOUT_SECONDS", "DEFAULT_LANGUAGE", "PORT", "FFMPEG_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    cfg = Config.reload()
    yield cfg
    Config._instance = None
