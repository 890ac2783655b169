"""AudioProcessingPort: abstract interface for probing and cutting audio."""

from abc import ABC, abstractmethod
from typing import ContextManager

from domain.models import AudioBlob, AudioInfo


class AudioSource(ABC):
    """One recording staged for repeated probing and cutting."""

    @abstractmethod
    def probe(self) -> AudioInfo:
        """Decode container metadata. Raises AudioDecodeError if unreadable."""

    @abstractmethod
    def cut(self, start: float, duration: float) -> AudioBlob:
        """Return an independently decodable slice [start, start + duration).

        Raises AudioDecodeError if the slice cannot be produced.
        """


class AudioProcessingPort(ABC):
    @abstractmethod
    def open(self, blob: AudioBlob) -> ContextManager[AudioSource]:
        """Stage ``blob`` once; every probe and cut inside the block reuses it."""

    def probe(self, blob: AudioBlob) -> AudioInfo:
        with self.open(blob) as source:
            return source.probe()

    def cut(self, blob: AudioBlob, start: float, duration: float) -> AudioBlob:
        with self.open(blob) as source:
            return source.cut(start, duration)
