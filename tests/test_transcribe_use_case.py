"""Tests for TranscribeAudioUseCase: direct vs. split path, failure escalation."""

import pytest

from domain.errors import (
    AudioDecodeError, SegmentationError, TotalFailureError, TranscriptionServiceError, ValidationError,
)
from domain.models import AudioBlob, PipelineStage, TranscriptionOptions
from use_cases.transcribe import PipelineSettings, TranscribeAudioUseCase, TranscribeRequest

from fakes import FakeAudio, FakeTranscription

MiB = 1024 * 1024


def _use_case(transcription, audio, progress, settings):
    return TranscribeAudioUseCase(transcription, audio, progress, settings)


class TestValidation:
    @pytest.mark.asyncio
    async def test_empty_audio(self, fake_transcription, fake_audio, progress, small_settings):
        use_case = _use_case(fake_transcription, fake_audio, progress, small_settings)
        with pytest.raises(ValidationError, match="No audio file provided"):
            await use_case.execute(TranscribeRequest(blob=AudioBlob(b"", "audio/wav")))
        assert fake_transcription.calls == []

    @pytest.mark.asyncio
    async def test_unsupported_format(self, fake_transcription, fake_audio, progress, small_settings):
        use_case = _use_case(fake_transcription, fake_audio, progress, small_settings)
        with pytest.raises(ValidationError, match="Unsupported audio format: video/avi"):
            await use_case.execute(TranscribeRequest(blob=AudioBlob(b"data", "video/avi")))
        assert fake_transcription.calls == []


class TestDirectPath:
    @pytest.mark.asyncio
    async def test_small_file_is_not_split(self, fake_audio, progress, small_settings):
        transcription = FakeTranscription(["Test transcription"], duration=30.5)
        use_case = _use_case(transcription, fake_audio, progress, small_settings)
        blob = AudioBlob(b"\x00" * 800, "audio/wav")

        outcome = await use_case.execute(TranscribeRequest(blob=blob))

        assert outcome.transcript == "Test transcription"
        assert outcome.duration == 30.5
        assert outcome.confidence == 0.95
        assert outcome.segmented is False
        assert outcome.segment_count == 1
        assert outcome.file_size == "800 B"
        assert fake_audio.cuts == []
        assert transcription.calls[0][0] is blob
        assert progress.stages == [PipelineStage.transcribing.value, PipelineStage.done.value]

    @pytest.mark.asyncio
    async def test_options_are_forwarded(self, fake_audio, progress, small_settings):
        transcription = FakeTranscription(["tekst"])
        use_case = _use_case(transcription, fake_audio, progress, small_settings)
        options = TranscriptionOptions(language="en", prompt="fysiotherapie", temperature=0.2)

        await use_case.execute(TranscribeRequest(blob=AudioBlob(b"\x00" * 10, "audio/webm"), options=options))
        assert transcription.calls[0][1] == options

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, fake_audio, progress, small_settings):
        transcription = FakeTranscription([TranscriptionServiceError("503"), "second time lucky"])
        use_case = _use_case(transcription, fake_audio, progress, small_settings)

        outcome = await use_case.execute(TranscribeRequest(blob=AudioBlob(b"\x00" * 10, "audio/wav")))
        assert outcome.transcript == "second time lucky"
        assert len(transcription.calls) == 2

    @pytest.mark.asyncio
    async def test_failure_after_retries_is_total_failure(self, fake_audio, progress, small_settings):
        transcription = FakeTranscription([TranscriptionServiceError("503")] * 3)
        use_case = _use_case(transcription, fake_audio, progress, small_settings)

        with pytest.raises(TotalFailureError, match="503"):
            await use_case.execute(TranscribeRequest(blob=AudioBlob(b"\x00" * 10, "audio/wav")))
        assert progress.stages[-1] == PipelineStage.failed.value


class TestSegmentedPath:
    @pytest.mark.asyncio
    async def test_example_scenario(self, large_wav, progress, no_wait_retry):
        transcription = FakeTranscription(["segment 1 text", "segment 2 text"], duration=999.0)
        use_case = _use_case(
            transcription, FakeAudio(duration=600.0), progress, PipelineSettings(retry=no_wait_retry)
        )

        outcome = await use_case.execute(TranscribeRequest(blob=large_wav, filename="consult.wav"))

        assert outcome.transcript == "segment 1 text\n\nsegment 2 text"
        assert outcome.duration == 600
        assert outcome.confidence == 1.0
        assert outcome.segmented is True
        assert outcome.segment_count == 2
        assert outcome.file_size == "30 MB"
        assert outcome.errors == []
        assert [c[0].size for c in transcription.calls] == [15 * MiB, 15 * MiB]

    @pytest.mark.asyncio
    async def test_partial_failure_is_not_fatal(self, progress, small_settings):
        # retry policy allows 3 attempts; segment 2 fails all of them
        transcription = FakeTranscription(
            ["segment 1 text"] + [TranscriptionServiceError("rate limited")] * 3 + ["segment 3 text"]
        )
        use_case = _use_case(transcription, FakeAudio(duration=90.0), progress, small_settings)

        outcome = await use_case.execute(TranscribeRequest(blob=AudioBlob(b"\x00" * 3000, "audio/mpeg")))

        assert outcome.segmented is True
        assert outcome.segment_count == 3
        assert outcome.errors == ["Segment 2: rate limited"]
        assert outcome.transcript == (
            "segment 1 text\n\n[Error processing segment 2]\n\nsegment 3 text"
        )
        assert outcome.duration == pytest.approx(90.0)
        assert PipelineStage.reassembling.value in progress.stages
        assert progress.stages[-1] == PipelineStage.done.value

    @pytest.mark.asyncio
    async def test_non_retryable_segment_error_is_tried_once(self, progress, small_settings):
        transcription = FakeTranscription(
            [TranscriptionServiceError("bad request", retryable=False), "segment 2 text"]
        )
        use_case = _use_case(transcription, FakeAudio(duration=60.0), progress, small_settings)

        outcome = await use_case.execute(TranscribeRequest(blob=AudioBlob(b"\x00" * 2000, "audio/wav")))
        assert outcome.errors == ["Segment 1: bad request"]
        assert len(transcription.calls) == 2

    @pytest.mark.asyncio
    async def test_all_segments_failing_is_total_failure(self, progress, small_settings):
        transcription = FakeTranscription([TranscriptionServiceError("down")] * 6)
        use_case = _use_case(transcription, FakeAudio(duration=60.0), progress, small_settings)

        with pytest.raises(TotalFailureError, match="All 2 segments failed"):
            await use_case.execute(TranscribeRequest(blob=AudioBlob(b"\x00" * 2000, "audio/wav")))
        assert progress.stages[-1] == PipelineStage.failed.value

    @pytest.mark.asyncio
    async def test_blank_transcript_is_total_failure(self, progress, small_settings):
        transcription = FakeTranscription(["", "   "])
        use_case = _use_case(transcription, FakeAudio(duration=60.0), progress, small_settings)

        with pytest.raises(TotalFailureError, match="no text"):
            await use_case.execute(TranscribeRequest(blob=AudioBlob(b"\x00" * 2000, "audio/wav")))

    @pytest.mark.asyncio
    async def test_segmentation_error(self, fake_transcription, progress, small_settings):
        audio = FakeAudio(probe_error=AudioDecodeError("moov atom not found"))
        use_case = _use_case(fake_transcription, audio, progress, small_settings)

        with pytest.raises(SegmentationError, match="moov atom not found"):
            await use_case.execute(TranscribeRequest(blob=AudioBlob(b"\x00" * 2000, "audio/mp4")))
        assert fake_transcription.calls == []
        assert progress.stages == [PipelineStage.splitting.value, PipelineStage.failed.value]

    @pytest.mark.asyncio
    async def test_concurrent_segments_keep_order(self, progress, no_wait_retry):
        settings = PipelineSettings(
            max_segment_bytes=1000, size_margin=1.0, max_concurrency=3, retry=no_wait_retry
        )
        transcription = FakeTranscription(["a", "b", "c"], delay=0.001)
        use_case = _use_case(transcription, FakeAudio(duration=30.0), progress, settings)

        outcome = await use_case.execute(TranscribeRequest(blob=AudioBlob(b"\x00" * 3000, "audio/wav")))
        assert outcome.transcript == "a\n\nb\n\nc"
