"""Live capture streams backed by PipeWire and ALSA recording tools."""

from __future__ import annotations

import subprocess
import sys
import threading
import time
from typing import IO

from autorec.audio_stream import (
    AudioInputStream,
    AudioStreamError,
    SampleFormat,
    decode_interleaved,
    parse_audio_address,
)
from autorec.file_stream import FileInputStream

_WAIT_STEPS = 50
_WAIT_STEP_SECONDS = 0.01
_STARTUP_SECONDS = 0.2
_READ_BLOCK_FRAMES = 1024


def _read_exact(stream: IO[bytes], size: int) -> bytes | None:
    """Read exactly ``size`` bytes, or return None if the stream ends first."""
    parts: list[bytes] = []
    remaining = size
    while remaining > 0:
        block = stream.read(remaining)
        if not block:
            return None
        parts.append(block)
        remaining -= len(block)
    return b"".join(parts)


def _terminate(process: subprocess.Popen) -> None:
    try:
        process.kill()
    except OSError:
        pass
    try:
        process.wait()
    except OSError:
        pass


class PipeWireInputStream(AudioInputStream):
    """PipeWire capture fed into an internal buffer by a background thread.

    Reads wait up to half a second for enough audio to arrive.
    """

    def __init__(self, target: str, rate: int, channels: int, format: SampleFormat) -> None:
        super().__init__(rate, channels, format)
        self._target = target
        self._active = False
        self._lock = threading.Lock()
        self._buffer: list[list[int]] = [[] for _ in range(channels)]
        self._thread: threading.Thread | None = None
        self._quit = threading.Event()
        self._process: subprocess.Popen | None = None

    @property
    def target(self) -> str:
        return self._target

    def _command(self) -> list[str]:
        return [
            "pw-record",
            "--target",
            self._target,
            "--rate",
            str(self._rate),
            "--channels",
            str(self._channels),
            "--format",
            self._format.as_str(),
            "-",
        ]

    def _pump(self, stdout: IO[bytes]) -> None:
        frame_bytes = self.bytes_per_frame()
        read = getattr(stdout, "read1", stdout.read)
        pending = b""
        while not self._quit.is_set():
            try:
                block = read(_READ_BLOCK_FRAMES * frame_bytes)
            except (OSError, ValueError):
                break
            if not block:
                break
            pending += block
            usable = len(pending) - len(pending) % frame_bytes
            if not usable:
                continue
            decoded = decode_interleaved(pending[:usable], self._channels, self._format)
            pending = pending[usable:]
            with self._lock:
                for buf, samples in zip(self._buffer, decoded):
                    buf.extend(samples)

    def start(self) -> None:
        if self._active:
            return
        self._quit.clear()
        try:
            process = subprocess.Popen(
                self._command(),
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise AudioStreamError(f"Failed to connect to PipeWire: {e}") from e
        if process.stdout is None:
            _terminate(process)
            raise AudioStreamError("Failed to create stream: no output pipe")
        self._process = process
        self._thread = threading.Thread(
            target=self._pump, args=(process.stdout,), name="autorec-capture", daemon=True
        )
        self._thread.start()
        self._active = True
        time.sleep(_STARTUP_SECONDS)

    def _available(self) -> int:
        with self._lock:
            return len(self._buffer[0]) if self._buffer else 0

    def read_chunk(self, frames: int) -> list[list[int]] | None:
        if not self._active:
            return None
        for _ in range(_WAIT_STEPS):
            if self._available() >= frames:
                break
            time.sleep(_WAIT_STEP_SECONDS)
        with self._lock:
            if not self._buffer or len(self._buffer[0]) < frames:
                return None
            result = [buf[:frames] for buf in self._buffer]
            for buf in self._buffer:
                del buf[:frames]
        return result

    def stop(self) -> None:
        self._active = False
        self._quit.set()
        if self._process is not None:
            _terminate(self._process)
            self._process = None
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        with self._lock:
            self._buffer = [[] for _ in range(self._channels)]

    def is_active(self) -> bool:
        return self._active

    def __del__(self) -> None:
        try:
            self.stop()
        except Exception as e:  # pragma: no cover - interpreter shutdown
            print(f"Failed to stop capture: {e}", file=sys.stderr)


class _PipedCaptureStream(AudioInputStream):
    """Capture through an external recorder writing raw PCM to its stdout."""

    _tool = ""

    def __init__(self, device: str, rate: int, channels: int, format: SampleFormat) -> None:
        super().__init__(rate, channels, format)
        self._device = device
        self._process: subprocess.Popen | None = None

    @property
    def device(self) -> str:
        return self._device

    def _command(self) -> list[str]:
        raise NotImplementedError

    def _start_process(self) -> None:
        try:
            self._process = subprocess.Popen(
                self._command(),
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise AudioStreamError(f"Failed to start {self._tool}: {e}") from e

    def _read_frames(self, frames: int) -> list[list[int]] | None:
        if self._process is None or self._process.stdout is None:
            return None
        try:
            data = _read_exact(self._process.stdout, frames * self.bytes_per_frame())
        except (OSError, ValueError):
            return None
        if data is None:
            return None
        return decode_interleaved(data, self._channels, self._format)

    def _stop_process(self) -> None:
        process, self._process = self._process, None
        if process is not None:
            _terminate(process)

    def _has_process(self) -> bool:
        return self._process is not None

    def start(self) -> None:
        self._start_process()

    def read_chunk(self, frames: int) -> list[list[int]] | None:
        return self._read_frames(frames)

    def stop(self) -> None:
        self._stop_process()

    def is_active(self) -> bool:
        return self._has_process()

    def __del__(self) -> None:
        try:
            self._stop_process()
        except Exception as e:  # pragma: no cover - interpreter shutdown
            print(f"Failed to stop {self._tool}: {e}", file=sys.stderr)


class PwPipeInputStream(_PipedCaptureStream):
    """PipeWire capture through a ``pw-record`` subprocess."""

    _tool = "pw-record"

    def _command(self) -> list[str]:
        return [
            "pw-record",
            "--target",
            self._device,
            "--rate",
            str(self._rate),
            "--channels",
            str(self._channels),
            "--format",
            self._format.as_str(),
            "-",
        ]

    def start(self) -> None:
        """Launch ``pw-record`` writing raw PCM to a pipe."""
        self._start_process()

    def read_chunk(self, frames: int) -> list[list[int]] | None:
        """Read ``frames`` frames, or None once the recorder's output ends."""
        return self._read_frames(frames)

    def stop(self) -> None:
        """Kill the recorder process if it is running."""
        self._stop_process()

    def is_active(self) -> bool:
        return self._has_process()


class AlsaInputStream(_PipedCaptureStream):
    """ALSA capture through an ``arecord`` subprocess."""

    _tool = "arecord"

    def _command(self) -> list[str]:
        alsa_format = "S16_LE" if self._format is SampleFormat.S16 else "S32_LE"
        return [
            "arecord",
            "-D",
            self._device,
            "-r",
            str(self._rate),
            "-c",
            str(self._channels),
            "-f",
            alsa_format,
            "-t",
            "raw",
            "--",
        ]

    def start(self) -> None:
        """Launch ``arecord`` writing raw PCM to a pipe."""
        self._start_process()

    def read_chunk(self, frames: int) -> list[list[int]] | None:
        """Read ``frames`` frames, or None once the recorder's output ends."""
        return self._read_frames(frames)

    def stop(self) -> None:
        """Kill the recorder process if it is running."""
        self._stop_process()

    def is_active(self) -> bool:
        return self._has_process()


def create_input_stream(
    address: str, rate: int, channels: int, format: SampleFormat
) -> AudioInputStream:
    """Create the input stream that serves the given source address."""
    backend, device = parse_audio_address(address)
    if backend == "pipewire":
        return PipeWireInputStream(device, rate, channels, format)
    if backend == "pwpipe":
        return PwPipeInputStream(device, rate, channels, format)
    if backend == "alsa":
        return AlsaInputStream(device, rate, channels, format)
    if backend == "file":
        return FileInputStream(device, rate, channels, format)
    raise AudioStreamError(f"Unsupported backend: {backend}")