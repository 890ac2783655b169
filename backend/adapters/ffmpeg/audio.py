"""FFmpegAudioAdapter: probes and cuts audio with ffprobe/ffmpeg subprocesses.

Cuts are stream copies in the source container, so every slice stays a
decodable file of the same format and roughly proportional size. ``open``
writes the recording to scratch once; probes and cuts inside the block all
read that single input file.
"""

import json
import logging
import os
import re
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from typing import Iterator, Optional

from domain.errors import AudioDecodeError
from domain.models import AudioBlob, AudioInfo
from domain.sizing import extension_for_mime_type
from ports.audio import AudioProcessingPort, AudioSource

logger = logging.getLogger(__name__)

DEFAULT_FFMPEG_TIMEOUT = 300.0

_TIME_RE = re.compile(r"time=(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


def check_ffmpeg() -> None:
    """Raise AudioDecodeError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise AudioDecodeError(f"{cmd} not found on PATH")


def parse_decoded_duration(stderr: str) -> Optional[float]:
    """Return the last ``time=HH:MM:SS.xx`` progress stamp from ffmpeg stderr."""
    matches = _TIME_RE.findall(stderr)
    if not matches:
        return None
    hours, minutes, seconds = matches[-1]
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def run_tool(cmd: list[str], timeout: Optional[float]) -> subprocess.CompletedProcess:
    """Run ffmpeg/ffprobe detached from our stdin, bounded by ``timeout``."""
    try:
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            stdin=subprocess.DEVNULL,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        logger.error(f"{cmd[0]} timed out after {timeout}s")
        raise AudioDecodeError(f"{cmd[0]} timed out after {timeout}s") from e


class FFmpegAudioSource(AudioSource):
    def __init__(self, blob: AudioBlob, input_path: str, workdir: str, timeout: Optional[float]):
        self._blob = blob
        self._input_path = input_path
        self._workdir = workdir
        self._timeout = timeout
        self._ext = extension_for_mime_type(blob.mime_type)
        self._cut_count = 0

    def probe(self) -> AudioInfo:
        cmd = [
            "ffprobe",
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            self._input_path,
        ]
        result = run_tool(cmd, self._timeout)
        if result.returncode != 0:
            logger.error(f"ffprobe failed: {result.stderr}")
            raise AudioDecodeError(f"Could not read audio ({self._blob.mime_type})")

        try:
            data = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise AudioDecodeError(f"Unreadable ffprobe output: {e}") from e

        audio_stream = next(
            (s for s in data.get("streams", []) if s.get("codec_type") == "audio"), None
        )
        if audio_stream is None:
            raise AudioDecodeError("No audio stream found")

        fmt = data.get("format", {})
        duration = _as_float(fmt.get("duration")) or _as_float(audio_stream.get("duration"))
        if duration is None:
            # MediaRecorder webm/ogg files often carry no duration header
            duration = self._decode_duration()

        return AudioInfo(
            duration=duration,
            format_name=fmt.get("format_name", ""),
            sample_rate=_as_int(audio_stream.get("sample_rate")),
            channels=_as_int(audio_stream.get("channels")),
            bit_rate=_as_int(fmt.get("bit_rate")),
        )

    def cut(self, start: float, duration: float) -> AudioBlob:
        self._cut_count += 1
        output_path = os.path.join(self._workdir, f"segment_{self._cut_count}.{self._ext}")

        cmd = [
            "ffmpeg", "-nostdin", "-y",
            "-v", "error",
            "-ss", f"{start:.3f}",
            "-i", self._input_path,
            "-t", f"{duration:.3f}",
            "-map", "0:a",
            "-c", "copy",
            output_path,
        ]
        result = run_tool(cmd, self._timeout)
        if result.returncode != 0:
            logger.error(f"Error cutting {start:.1f}s+{duration:.1f}s: {result.stderr}")
            raise AudioDecodeError(f"Failed to cut audio at {start:.1f}s: {result.stderr.strip()}")

        try:
            with open(output_path, "rb") as f:
                return AudioBlob(data=f.read(), mime_type=self._blob.mime_type)
        finally:
            os.remove(output_path)

    def _decode_duration(self) -> float:
        cmd = ["ffmpeg", "-nostdin", "-i", self._input_path, "-f", "null", "-"]
        result = run_tool(cmd, self._timeout)
        duration = parse_decoded_duration(result.stderr)
        if result.returncode != 0 or duration is None:
            raise AudioDecodeError("Could not determine audio duration")
        return duration


class FFmpegAudioAdapter(AudioProcessingPort):
    def __init__(self, temp_dir: Optional[str] = None, timeout: Optional[float] = DEFAULT_FFMPEG_TIMEOUT):
        self._temp_dir = temp_dir
        self._timeout = timeout

    @contextmanager
    def open(self, blob: AudioBlob) -> Iterator[FFmpegAudioSource]:
        with tempfile.TemporaryDirectory(dir=self._temp_dir) as tmpdir:
            input_path = self._write_input(blob, tmpdir)
            yield FFmpegAudioSource(blob, input_path, tmpdir, self._timeout)

    @staticmethod
    def _write_input(blob: AudioBlob, tmpdir: str) -> str:
        path = os.path.join(tmpdir, f"input.{extension_for_mime_type(blob.mime_type)}")
        with open(path, "wb") as f:
            f.write(blob.data)
        return path


def _as_float(value) -> Optional[float]:
    try:
        return float(value) if value not in (None, "N/A") else None
    except (TypeError, ValueError):
        return None


def _as_int(value) -> Optional[int]:
    try:
        return int(value) if value not in (None, "N/A") else None
    except (TypeError, ValueError):
        return None
