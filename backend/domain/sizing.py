"""Size and duration helpers: split decision, display formatting, format checks.

All pure functions over in-memory metadata.
"""

from domain.models import AudioBlob

# Upload ceiling of the Groq Whisper endpoint. Callers pass the configured value.
MAX_SEGMENT_BYTES = 25 * 1024 * 1024

_SIZE_UNITS = ["B", "KB", "MB", "GB"]

SUPPORTED_AUDIO_FORMATS = [
    "audio/m4a",
    "audio/x-m4a",
    "audio/mp4",
    "audio/wav",
    "audio/wave",
    "audio/mpeg",
    "audio/mp3",
    "audio/webm",
    "audio/ogg",
    "audio/flac",
    "audio/aac",
]

# Checked in order: "x-m4a" before "mp4", "mpeg" before anything generic.
_EXTENSIONS = [
    (("m4a", "x-m4a"), "m4a"),
    (("mp4",), "mp4"),
    (("mpeg", "mp3"), "mp3"),
    (("webm",), "webm"),
    (("ogg",), "ogg"),
    (("flac",), "flac"),
    (("wav", "wave"), "wav"),
    (("aac",), "aac"),
]


def is_file_size_exceeded(blob: AudioBlob, max_bytes: int = MAX_SEGMENT_BYTES) -> bool:
    return blob.size > max_bytes


def format_file_size(num_bytes: int) -> str:
    """Render a byte count as B/KB/MB/GB with at most one decimal."""
    if num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    value = round(value, 1)
    if value.is_integer():
        return f"{int(value)} {_SIZE_UNITS[unit]}"
    return f"{value} {_SIZE_UNITS[unit]}"


def format_duration(seconds: float) -> str:
    minutes = int(seconds // 60)
    remaining = int(seconds % 60)
    return f"{minutes}:{remaining:02d}"


def is_supported_audio_format(mime_type: str) -> bool:
    """Substring match so 'audio/webm;codecs=opus' is accepted."""
    if not mime_type:
        return False
    lowered = mime_type.lower()
    return any(fmt in lowered for fmt in SUPPORTED_AUDIO_FORMATS)


def extension_for_mime_type(mime_type: str) -> str:
    lowered = (mime_type or "").lower()
    for needles, ext in _EXTENSIONS:
        if any(n in lowered for n in needles):
            return ext
    return "m4a"
