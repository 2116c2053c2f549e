import io
import struct
import wave

import pytest

from autorec.audio_stream import SampleFormat
from autorec.wav_reader import (
    WavHeader,
    format_timestamp,
    iter_wav_chunks,
    read_wav_header,
)


def make_wav(samples, channels, rate, width):
    buf = io.BytesIO()
    code = {1: "B", 2: "h", 4: "i"}[width]
    with wave.open(buf, "wb") as w:
        w.setnchannels(channels)
        w.setsampwidth(width)
        w.setframerate(rate)
        w.writeframes(struct.pack(f"<{len(samples)}{code}", *samples))
    buf.seek(0)
    return buf


def make_wav_with_extra_chunk(samples, channels, rate):
    data = struct.pack(f"<{len(samples)}h", *samples)
    fmt = struct.pack("<HHIIHH", 1, channels, rate, rate * channels * 2, channels * 2, 16)
    extra = b"LIST" + struct.pack("<I", 4) + b"INFO"
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt + extra
    body += b"data" + struct.pack("<I", len(data)) + data
    return io.BytesIO(b"RIFF" + struct.pack("<I", len(body)) + body)


def test_header_round_trip_16bit():
    samples = [1, -1, 2, -2, 3, -3]
    stream = make_wav(samples, 2, 8000, 2)
    header = read_wav_header(stream)
    assert header == WavHeader(8000, 2, 16, len(samples) * 2)
    assert header.sample_format is SampleFormat.S16


def test_duration_matches_frames_over_rate():
    rate = 1000
    frames = 450
    stream = make_wav([0] * frames * 2, 2, rate, 2)
    header = read_wav_header(stream)
    assert header.duration_seconds() == pytest.approx(frames / rate)


def test_chunks_round_trip_and_sizes():
    rate = 1000
    frames = 450
    left = list(range(frames))
    right = [-v for v in left]
    interleaved = [v for pair in zip(left, right) for v in pair]
    stream = make_wav(interleaved, 2, rate, 2)
    header = read_wav_header(stream)
    chunks = list(iter_wav_chunks(stream, header, 200))
    assert [len(c[0]) for c in chunks] == [200, 200, 50]
    assert all(len(c) == 2 for c in chunks)
    assert [s for c in chunks for s in c[0]] == left
    assert [s for c in chunks for s in c[1]] == right


def test_chunks_32bit_values_preserved():
    samples = [2**31 - 1, -(2**31), 123456789, -987654321]
    stream = make_wav(samples, 1, 1000, 4)
    header = read_wav_header(stream)
    assert header.sample_format is SampleFormat.S32
    chunks = list(iter_wav_chunks(stream, header, 100))
    assert [s for c in chunks for s in c[0]] == samples


def test_extra_chunk_before_data_is_skipped():
    samples = [10, 20, 30, 40]
    stream = make_wav_with_extra_chunk(samples, 1, 4000)
    header = read_wav_header(stream)
    assert header.data_size == len(samples) * 2
    chunks = list(iter_wav_chunks(stream, header, 1000))
    assert [s for c in chunks for s in c[0]] == samples


def test_unsupported_bit_depth_rejected():
    stream = make_wav([128, 129], 1, 8000, 1)
    header = read_wav_header(stream)
    with pytest.raises(ValueError, match="Unsupported bit depth"):
        iter_wav_chunks(stream, header, 200)


def test_missing_riff_rejected():
    data = make_wav([0] * 10, 1, 8000, 2).getvalue()
    with pytest.raises(ValueError, match="missing RIFF header"):
        read_wav_header(io.BytesIO(b"RIFX" + data[4:]))


def test_missing_wave_rejected():
    data = make_wav([0] * 10, 1, 8000, 2).getvalue()
    with pytest.raises(ValueError, match="missing WAVE marker"):
        read_wav_header(io.BytesIO(data[:8] + b"AVI " + data[12:]))


def test_short_file_rejected():
    with pytest.raises(ValueError, match="Failed to read WAV header"):
        read_wav_header(io.BytesIO(b"RIFF"))


def test_missing_data_chunk_rejected():
    data = make_wav([0] * 10, 1, 8000, 2).getvalue()
    with pytest.raises(ValueError, match="Could not find data chunk"):
        read_wav_header(io.BytesIO(data[:36] + b"JUNK" + struct.pack("<I", 0)))


def test_format_timestamp_values():
    assert format_timestamp(0.0) == "00:00.00"
    assert format_timestamp(75.5) == "01:15.50"


def test_format_timestamp_minutes_prefix():
    for minutes in (0, 3, 12, 59):
        text = format_timestamp(minutes * 60 + 7.25)
        assert text.startswith(f"{minutes:02d}:")
        assert text.endswith("07.25")