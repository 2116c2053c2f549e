"""Audio stream basics: sample formats, address parsing and PCM decoding."""

from __future__ import annotations

import abc
import enum
import struct
from typing import Iterable

_FILE_EXTENSIONS = (".wav", ".mp3", ".flac", ".WAV", ".MP3", ".FLAC")

_BACKEND_ALIASES = {
    "pipewire": "pipewire",
    "pw": "pipewire",
    "pwpipe": "pwpipe",
    "alsa": "alsa",
    "file": "file",
}


class AudioStreamError(Exception):
    """Raised when an audio stream cannot be created, started or read."""


class SampleFormat(enum.Enum):
    """Signed little-endian integer sample formats."""

    S16 = "s16"
    S32 = "s32"

    @staticmethod
    def from_str(s: str) -> "SampleFormat":
        """Parse a format name such as ``s16`` or ``S32``."""
        try:
            return SampleFormat(s.strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported sample format: {s}") from None

    def bytes_per_sample(self) -> int:
        """Size of one sample in bytes."""
        return 2 if self is SampleFormat.S16 else 4

    def as_str(self) -> str:
        """Lower-case name as understood by capture tools."""
        return self.value

    @property
    def struct_code(self) -> str:
        return "<h" if self is SampleFormat.S16 else "<i"


def parse_audio_address(address: str) -> tuple[str, str]:
    """Split an address like ``alsa:hw:0,0`` into ``(backend, device)``.

    Without a recognised backend prefix the backend is guessed: ALSA-style
    names go to ``alsa``, paths and audio file names to ``file`` and
    everything else to ``pipewire``.
    """
    if address.startswith(("hw:", "plughw:")) or address == "default":
        return "alsa", address

    backend, sep, device = address.partition(":")
    if sep:
        known = _BACKEND_ALIASES.get(backend.lower())
        if known is None:
            return "pipewire", address
        return known, device

    if "/" in address or address.endswith(_FILE_EXTENSIONS):
        return "file", address
    return "pipewire", address


def decode_interleaved(data: bytes, channels: int, format: SampleFormat) -> list[list[int]]:
    """Decode interleaved little-endian PCM bytes into per-channel sample lists.

    Trailing bytes that do not form a whole sample are ignored.
    """
    if channels < 1:
        raise ValueError("channels must be at least 1")
    width = format.bytes_per_sample()
    usable = len(data) - len(data) % width
    samples = [value for (value,) in struct.iter_unpack(format.struct_code, bytes(data[:usable]))]
    return [samples[ch::channels] for ch in range(channels)]


def normalize_pcm(samples: Iterable[int], sample_width: int) -> list[int]:
    """Scale integer PCM samples of the given byte width to the 32-bit range.

    One-byte samples are unsigned (as in WAV files); wider ones are signed.
    """
    if sample_width == 1:
        return [(s - 128) << 24 for s in samples]
    if sample_width == 2:
        return [s << 16 for s in samples]
    if sample_width == 3:
        return [s << 8 for s in samples]
    if sample_width == 4:
        return list(samples)
    raise ValueError(f"Unsupported sample width: {sample_width}")


class AudioInputStream(abc.ABC):
    """An audio source delivering chunks of samples, one list per channel."""

    def __init__(self, rate: int, channels: int, format: SampleFormat) -> None:
        self._rate = rate
        self._channels = channels
        self._format = format

    def sample_rate(self) -> int:
        """Sample rate in Hz."""
        return self._rate

    def channels(self) -> int:
        """Number of channels."""
        return self._channels

    def sample_format(self) -> SampleFormat:
        """Sample format of the stream."""
        return self._format

    def bytes_per_sample(self) -> int:
        """Bytes in one sample of one channel."""
        return self._format.bytes_per_sample()

    def bytes_per_frame(self) -> int:
        """Bytes in one frame covering all channels."""
        return self._channels * self.bytes_per_sample()

    @abc.abstractmethod
    def read_chunk(self, frames: int) -> list[list[int]] | None:
        """Read ``frames`` frames; ``None`` when no more data can be read."""

    @abc.abstractmethod
    def start(self) -> None:
        """Start delivering audio; raises AudioStreamError on failure."""

    @abc.abstractmethod
    def stop(self) -> None:
        """Stop delivering audio and release resources."""

    @abc.abstractmethod
    def is_active(self) -> bool:
        """Whether the stream is running."""

    def __enter__(self) -> "AudioInputStream":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()