"""Reading PCM WAV files chunk by chunk, and formatting time stamps."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterator

from autorec.audio_stream import SampleFormat, decode_interleaved

_HEADER_SIZE = 44
_FIRST_CHUNK_OFFSET = 36


@dataclass(frozen=True)
class WavHeader:
    """The format fields of a WAV file and the size of its data chunk."""

    sample_rate: int
    num_channels: int
    bits_per_sample: int
    data_size: int

    def duration_seconds(self) -> float:
        """Length of the audio data in seconds."""
        bytes_per_second = (
            self.sample_rate * self.num_channels * (self.bits_per_sample // 8)
        )
        if bytes_per_second == 0:
            return math.inf if self.data_size else math.nan
        return self.data_size / bytes_per_second

    @property
    def sample_format(self) -> SampleFormat:
        """The sample format matching the bit depth; only 16 and 32 bits."""
        if self.bits_per_sample == 16:
            return SampleFormat.S16
        if self.bits_per_sample == 32:
            return SampleFormat.S32
        raise ValueError(
            f"Unsupported bit depth: {self.bits_per_sample}. "
            "Only 16 and 32 bit supported."
        )


def read_wav_header(stream: BinaryIO) -> WavHeader:
    """Parse the header of a WAV file and leave ``stream`` at its audio data.

    Raises ValueError when the header is malformed or has no data chunk.
    """
    head = stream.read(_HEADER_SIZE)
    if len(head) < _HEADER_SIZE:
        raise ValueError("Failed to read WAV header: file too short")
    if head[0:4] != b"RIFF":
        raise ValueError("Not a valid WAV file (missing RIFF header)")
    if head[8:12] != b"WAVE":
        raise ValueError("Not a valid WAV file (missing WAVE marker)")
    if head[12:16] != b"fmt ":
        raise ValueError("Invalid WAV format chunk")

    (num_channels,) = struct.unpack_from("<H", head, 22)
    (sample_rate,) = struct.unpack_from("<I", head, 24)
    (bits_per_sample,) = struct.unpack_from("<H", head, 34)

    stream.seek(_FIRST_CHUNK_OFFSET)
    while True:
        chunk_header = stream.read(8)
        if len(chunk_header) < 8:
            raise ValueError("Could not find data chunk")
        chunk_id = chunk_header[0:4]
        (chunk_size,) = struct.unpack_from("<I", chunk_header, 4)
        if chunk_id == b"data":
            return WavHeader(sample_rate, num_channels, bits_per_sample, chunk_size)
        stream.seek(chunk_size, 1)


def iter_wav_chunks(
    stream: BinaryIO, header: WavHeader, chunk_ms: int
) -> Iterator[list[list[int]]]:
    """Yield the audio after the header in chunks of ``chunk_ms`` milliseconds.

    Each chunk is a list of samples per channel. Reading continues until the
    stream ends; bytes that do not make a whole frame are dropped.
    """
    format = header.sample_format
    channels = header.num_channels
    if channels < 1:
        raise ValueError("WAV file has no channels")
    frame_bytes = channels * format.bytes_per_sample()
    chunk_frames = int(header.sample_rate * chunk_ms / 1000.0)
    chunk_bytes = chunk_frames * frame_bytes

    def chunks() -> Iterator[list[list[int]]]:
        while True:
            data = stream.read(chunk_bytes)
            if not data:
                return
            whole = len(data) // frame_bytes * frame_bytes
            yield decode_interleaved(data[:whole], channels, format)

    return chunks()


def format_timestamp(seconds: float) -> str:
    """Format seconds as ``MM:SS.ss``."""
    minutes = max(int(seconds / 60.0), 0)
    rest = math.fmod(seconds, 60.0)
    return f"{minutes:02d}:{rest:05.2f}"