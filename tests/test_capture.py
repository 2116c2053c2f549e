import io
import struct
import wave
from unittest.mock import patch

import pytest

from autorec.audio_stream import AudioStreamError, SampleFormat
from autorec.capture import (
    AlsaInputStream,
    PipeWireInputStream,
    PwPipeInputStream,
    create_input_stream,
)
from autorec.file_stream import FileInputStream


def _write_wav(path, rate=48000, frames=2400):
    with wave.open(str(path), "wb") as w:
        w.setnchannels(2)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(b"".join(struct.pack("<hh", i, -i) for i in range(frames)))


def test_pipewire_stream_creation():
    stream = PipeWireInputStream("test_target", 48000, 2, SampleFormat.S32)
    assert stream.sample_rate() == 48000
    assert stream.channels() == 2
    assert stream.bytes_per_sample() == 4
    assert stream.bytes_per_frame() == 8
    assert stream.is_active() is False


def test_stream_properties():
    stream = PipeWireInputStream("test", 96000, 4, SampleFormat.S16)
    assert stream.sample_rate() == 96000
    assert stream.channels() == 4
    assert stream.bytes_per_sample() == 2
    assert stream.bytes_per_frame() == 8


def test_sample_format_consistency():
    s16 = PipeWireInputStream("test", 44100, 2, SampleFormat.S16)
    assert s16.sample_format() is SampleFormat.S16
    s32 = PipeWireInputStream("test", 44100, 2, SampleFormat.S32)
    assert s32.sample_format() is SampleFormat.S32


def test_alsa_stream_creation():
    stream = AlsaInputStream("hw:0,0", 48000, 2, SampleFormat.S32)
    assert stream.sample_rate() == 48000
    assert stream.channels() == 2
    assert stream.bytes_per_sample() == 4
    assert stream.bytes_per_frame() == 8
    assert stream.is_active() is False


def test_create_input_stream():
    stream = create_input_stream("pipewire:test", 48000, 2, SampleFormat.S32)
    assert isinstance(stream, PipeWireInputStream)
    assert stream.sample_rate() == 48000
    assert stream.channels() == 2

    stream = create_input_stream("alsa:hw:0,0", 44100, 2, SampleFormat.S16)
    assert isinstance(stream, AlsaInputStream)
    assert stream.sample_rate() == 44100
    assert stream.channels() == 2

    stream = create_input_stream("hw:0,0", 48000, 2, SampleFormat.S32)
    assert isinstance(stream, AlsaInputStream)
    assert stream.sample_rate() == 48000


def test_create_pwpipe_stream():
    stream = create_input_stream("pwpipe:input1", 48000, 2, SampleFormat.S16)
    assert isinstance(stream, PwPipeInputStream)
    assert stream.device == "input1"


def test_file_input_stream_create_via_address(tmp_path):
    path = tmp_path / "address.wav"
    _write_wav(path)
    stream = create_input_stream(str(path), 48000, 2, SampleFormat.S32)
    assert isinstance(stream, FileInputStream)
    assert stream.sample_rate() == 48000
    assert stream.channels() == 2

    stream = create_input_stream(f"file:{path}", 48000, 2, SampleFormat.S32)
    assert isinstance(stream, FileInputStream)
    assert stream.sample_rate() == 48000


def test_create_file_stream_missing():
    with pytest.raises(AudioStreamError, match="File not found"):
        create_input_stream("/nonexistent/file.wav", 48000, 2, SampleFormat.S32)


def test_read_without_start_returns_none():
    assert PwPipeInputStream("x", 48000, 2, SampleFormat.S16).read_chunk(4) is None
    assert AlsaInputStream("hw:0,0", 48000, 2, SampleFormat.S16).read_chunk(4) is None
    assert PipeWireInputStream("x", 48000, 2, SampleFormat.S16).read_chunk(4) is None


def test_pwpipe_reads_and_deinterleaves():
    data = struct.pack("<8h", 1, -1, 2, -2, 3, -3, 4, -4)
    with patch("autorec.capture.subprocess.Popen") as popen:
        popen.return_value.stdout = io.BytesIO(data)
        stream = PwPipeInputStream("riaa", 48000, 2, SampleFormat.S16)
        stream.start()
        assert stream.is_active() is True
        assert stream.read_chunk(2) == [[1, 2], [-1, -2]]
        assert stream.read_chunk(2) == [[3, 4], [-3, -4]]
        assert stream.read_chunk(1) is None
        stream.stop()
    assert stream.is_active() is False
    cmd = popen.call_args.args[0]
    assert cmd == [
        "pw-record", "--target", "riaa", "--rate", "48000",
        "--channels", "2", "--format", "s16", "-",
    ]


def test_alsa_command_and_s32_decoding():
    data = struct.pack("<4i", 100000, -100000, 7, -7)
    with patch("autorec.capture.subprocess.Popen") as popen:
        popen.return_value.stdout = io.BytesIO(data)
        stream = AlsaInputStream("hw:1,0", 44100, 2, SampleFormat.S32)
        stream.start()
        assert stream.read_chunk(2) == [[100000, 7], [-100000, -7]]
        stream.stop()
    cmd = popen.call_args.args[0]
    assert cmd == [
        "arecord", "-D", "hw:1,0", "-r", "44100", "-c", "2",
        "-f", "S32_LE", "-t", "raw", "--",
    ]


def test_start_failure_raises():
    with patch("autorec.capture.subprocess.Popen", side_effect=FileNotFoundError("missing")):
        stream = AlsaInputStream("hw:0,0", 48000, 2, SampleFormat.S16)
        with pytest.raises(AudioStreamError, match="Failed to start arecord"):
            stream.start()
    assert stream.is_active() is False


def test_pipewire_buffers_background_audio():
    data = struct.pack("<8h", 1, -1, 2, -2, 3, -3, 4, -4)
    with patch("autorec.capture.subprocess.Popen") as popen:
        popen.return_value.stdout = io.BytesIO(data)
        stream = PipeWireInputStream("riaa", 48000, 2, SampleFormat.S16)
        stream.start()
        assert stream.is_active() is True
        assert stream.read_chunk(3) == [[1, 2, 3], [-1, -2, -3]]
        assert stream.read_chunk(2) is None
        assert stream.read_chunk(1) == [[4], [-4]]
        stream.stop()
    assert stream.is_active() is False
    assert stream.read_chunk(1) is None
    assert popen.call_args.args[0][:3] == ["pw-record", "--target", "riaa"]