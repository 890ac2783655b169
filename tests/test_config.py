"""Config tests: defaults, environment overrides, validation and wiring."""

import pytest

from adapters.groq.transcription import GroqTranscriptionAdapter
from config import Config, create_audio_adapter, create_transcription_adapter, create_use_case
from domain.errors import ConfigurationError
from use_cases.transcribe import TranscribeAudioUseCase


class TestConfig:
    def test_defaults(self, config):
        assert config.port == 8001
        assert config.model_id == "whisper-large-v3-turbo"
        assert config.default_language == "nl"
        assert config.max_segment_bytes == 25 * 1024 * 1024
        assert config.segment_size_margin == 0.9
        assert config.max_concurrency == 1
        assert config.groq_api_key == "test-api-key"

    def test_singleton(self, config):
        assert Config() is config

    def test_env_overrides(self, config, monkeypatch):
        monkeypatch.setenv("MAX_SEGMENT_BYTES", "1048576")
        monkeypatch.setenv("MAX_CONCURRENCY", "3")
        monkeypatch.setenv("MODEL_ID", "whisper-large-v3")
        monkeypatch.setenv("TRANSCRIPTION_TIMEOUT_SECONDS", "45")

        cfg = Config.reload()

        assert cfg.max_segment_bytes == 1048576
        assert cfg.max_concurrency == 3
        assert cfg.model_id == "whisper-large-v3"
        assert cfg.transcription_timeout_seconds == 45.0

    @pytest.mark.parametrize("name, value", [
        ("MAX_SEGMENT_BYTES", "lots"),
        ("MAX_SEGMENT_BYTES", "0"),
        ("SEGMENT_SIZE_MARGIN", "1.5"),
        ("MAX_CONCURRENCY", "0"),
        ("TRANSCRIPTION_MAX_ATTEMPTS", "0"),
        ("TRANSCRIPTION_BACKOFF_SECONDS", "soon"),
    ])
    def test_invalid_values(self, config, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError, match=name):
            Config.reload()

    def test_retry_policy(self, config, monkeypatch):
        monkeypatch.setenv("TRANSCRIPTION_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("TRANSCRIPTION_BACKOFF_SECONDS", "0.5")
        monkeypatch.setenv("TRANSCRIPTION_TIMEOUT_SECONDS", "0")

        policy = Config.reload().retry_policy()

        assert policy.max_attempts == 5
        assert policy.backoff_seconds == 0.5
        assert policy.timeout_seconds is None

    def test_as_dict_hides_key(self, config):
        summary = config.as_dict()
        assert summary["has_groq_key"] is True
        assert "test-api-key" not in repr(summary)

    def test_creates_temp_dir(self, config):
        from pathlib import Path
        assert Path(config.temp_dir).is_dir()


class TestFactories:
    def test_audio_adapter_timeout(self, config, monkeypatch):
        assert config.ffmpeg_timeout_seconds == 300.0
        monkeypatch.setenv("FFMPEG_TIMEOUT_SECONDS", "60")

        adapter = create_audio_adapter(Config.reload())

        assert adapter._timeout == 60.0

    def test_use_case_wiring(self, config):
        use_case = create_use_case(config)
        assert isinstance(use_case, TranscribeAudioUseCase)
        assert isinstance(use_case.transcription, GroqTranscriptionAdapter)
        assert use_case.settings.max_segment_bytes == config.max_segment_bytes
        assert use_case.settings.retry == config.retry_policy()

    def test_missing_key(self, config, monkeypatch):
        monkeypatch.delenv("GROQ_API_KEY")
        cfg = Config.reload()
        assert cfg.groq_api_key is None
        with pytest.raises(ConfigurationError):
            create_transcription_adapter(cfg)
