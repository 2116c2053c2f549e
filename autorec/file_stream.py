"""Audio input from WAV files, delivered at real-time speed and looped."""

from __future__ import annotations

import struct
import time
import wave
from pathlib import Path
from typing import BinaryIO

from autorec.audio_stream import (
    AudioInputStream,
    AudioStreamError,
    SampleFormat,
    normalize_pcm,
)

_PACKET_FRAMES = 1152


class FileInputStream(AudioInputStream):
    """Plays an audio file as if it were a live source.

    Samples are scaled to the 32-bit range. Reads are paced so that audio
    arrives no faster than the requested sample rate, and the file starts
    over from the beginning when its end is reached. A file with fewer
    channels than requested has its last channel repeated; extra channels
    in the file are dropped.
    """

    def __init__(self, file_path: str, rate: int, channels: int, format: SampleFormat) -> None:
        super().__init__(rate, channels, format)
        self._path = Path(file_path)
        if not self._path.exists():
            raise AudioStreamError(f"File not found: {file_path}")
        self._file: BinaryIO | None = None
        self._reader: wave.Wave_read | None = None
        self._active = False
        self._start_time: float | None = None
        self._frames_read = 0
        self._buffer: list[list[int]] = [[] for _ in range(channels)]

    @property
    def file_path(self) -> str:
        return str(self._path)

    def start(self) -> None:
        if self._active:
            return
        try:
            handle = open(self._path, "rb")
        except OSError as e:
            raise AudioStreamError(f"Failed to open file: {e}") from e
        try:
            reader = wave.open(handle, "rb")
        except (wave.Error, EOFError, struct.error) as e:
            handle.close()
            raise AudioStreamError(f"Failed to probe file: {e}") from e

        if reader.getnchannels() < 1:
            reader.close()
            handle.close()
            raise AudioStreamError("No audio tracks found")
        if reader.getframerate() <= 0:
            reader.close()
            handle.close()
            raise AudioStreamError("Sample rate not specified in file")
        if reader.getsampwidth() not in (1, 2, 3, 4):
            reader.close()
            handle.close()
            raise AudioStreamError(
                f"Failed to create decoder: unsupported sample width {reader.getsampwidth()}"
            )

        self._file = handle
        self._reader = reader
        self._active = True
        self._start_time = time.monotonic()
        self._frames_read = 0
        self._buffer = [[] for _ in range(self._channels)]

    def stop(self) -> None:
        self._active = False
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if self._file is not None:
            self._file.close()
            self._file = None
        self._start_time = None
        self._frames_read = 0
        self._buffer = [[] for _ in range(self._channels)]

    def is_active(self) -> bool:
        return self._active

    def read_chunk(self, frames: int) -> list[list[int]] | None:
        if not self._active:
            return None

        while self._channels and len(self._buffer[0]) < frames:
            try:
                self._refill()
            except AudioStreamError:
                return None

        if self._start_time is not None:
            expected = self._frames_read / self._rate
            elapsed = time.monotonic() - self._start_time
            if elapsed < expected:
                time.sleep(expected - elapsed)

        result = [buf[:frames] for buf in self._buffer]
        for buf in self._buffer:
            del buf[:frames]
        self._frames_read += frames
        return result

    def _refill(self) -> None:
        reader = self._reader
        if reader is None:
            raise AudioStreamError("Format reader not initialized")
        data = reader.readframes(_PACKET_FRAMES)
        if not data:
            if reader.getnframes() == 0:
                raise AudioStreamError("No audio data in file")
            reader.rewind()
            data = reader.readframes(_PACKET_FRAMES)
            if not data:
                raise AudioStreamError("No audio data in file")

        decoded = self._decode(data, reader.getnchannels(), reader.getsampwidth())
        last = len(decoded) - 1
        for ch, buf in enumerate(self._buffer):
            buf.extend(decoded[min(ch, last)])

    @staticmethod
    def _decode(data: bytes, source_channels: int, width: int) -> list[list[int]]:
        frame_bytes = width * source_channels
        usable = len(data) - len(data) % frame_bytes
        count = usable // width
        if width == 1:
            raw: list[int] = list(data[:usable])
        elif width == 2:
            raw = list(struct.unpack(f"<{count}h", data[:usable]))
        elif width == 3:
            raw = [
                int.from_bytes(data[i : i + 3], "little", signed=True)
                for i in range(0, usable, 3)
            ]
        else:
            raw = list(struct.unpack(f"<{count}i", data[:usable]))
        samples = normalize_pcm(raw, width)
        return [samples[ch::source_channels] for ch in range(source_channels)]

    def __del__(self) -> None:
        try:
            self.stop()
        except Exception:
            pass