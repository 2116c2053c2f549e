# autorec

Building blocks for recording audio from PipeWire, ALSA or a WAV file:

- one way to name an audio source (`pipewire:…`, `pwpipe:…`, `alsa:…`,
  `file:…`) and to open an input stream for it;
- input streams that return audio in chunks, one list of integer samples
  per channel;
- discovery of ALSA devices and audio files, with a `show_sources` command;
- a small WAV reader for offline analysis of recordings.

Live capture needs `pw-record` (for the `pipewire` and `pwpipe` backends) or
`arecord` (for `alsa`) on the `PATH`. The package starts these programs and
reads raw audio from their output. File input and WAV analysis need only
Python.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Listing audio sources

```
show_sources            # every source found, grouped by backend
show_sources alsa       # only ALSA devices
show_sources file       # only audio files in the current directory
show_sources --help
```

ALSA devices are read from the output of `arecord -l`; `alsa:default` is
always listed first. The file backend lists `.wav`, `.mp3` and `.flac` files
in the current directory, sorted by name. Asking for a backend with no
sources prints a message and exits with status 1.

The same lists are available from `autorec.discovery`:
`discover_alsa_sources()`, `discover_file_sources(directory=".")`,
`discover_all_sources()` and `parse_arecord_listing(text)`, each returning
`AudioSource` records with `backend`, `url` and `description`.

## Source addresses

`autorec.audio_stream.parse_audio_address` splits an address into a backend
and a device:

```python
from autorec.audio_stream import parse_audio_address

parse_audio_address("pipewire:input1")    # ("pipewire", "input1")
parse_audio_address("pw:test.monitor")    # ("pipewire", "test.monitor")
parse_audio_address("alsa:hw:0,0")        # ("alsa", "hw:0,0")
parse_audio_address("hw:1,0")             # ("alsa", "hw:1,0")
parse_audio_address("default")            # ("alsa", "default")
parse_audio_address("/tmp/music.flac")    # ("file", "/tmp/music.flac")
parse_audio_address("file:/tmp/a.wav")    # ("file", "/tmp/a.wav")
parse_audio_address("input.monitor")      # ("pipewire", "input.monitor")
```

An address with an unknown prefix goes to PipeWire unchanged.

## Reading audio

```python
from autorec.audio_stream import SampleFormat
from autorec.capture import create_input_stream

stream = create_input_stream("alsa:hw:1,0", 48000, 2, SampleFormat.from_str("s16"))
with stream:                       # start() on entry, stop() on exit
    chunk = stream.read_chunk(4800)   # 0.1 s: [left_samples, right_samples]
    if chunk is not None:
        left, right = chunk
```

`autorec.capture` provides `PipeWireInputStream` (a background thread
buffers the output of `pw-record`; reads wait up to half a second for
data), `PwPipeInputStream` (reads `pw-record` output directly) and
`AlsaInputStream` (reads `arecord` output). `autorec.file_stream` provides
`FileInputStream`.

Every stream reports `sample_rate()`, `channels()`, `sample_format()`,
`bytes_per_sample()` and `bytes_per_frame()`, and has `start()`, `stop()`,
`is_active()` and `read_chunk(frames)`. `read_chunk` returns `None` when the
stream has ended or is not running. Failures to start raise
`AudioStreamError`.

`FileInputStream` plays a WAV file (8, 16, 24 or 32 bit PCM) at the
requested sample rate's real-time pace, scales samples to the 32-bit range,
and starts over at the end, so it can stand in for a live source. Missing
channels repeat the file's last channel. A file that does not exist raises
`AudioStreamError` when the stream is created.

`SampleFormat` has the members `S16` and `S32`. `decode_interleaved` turns
raw little-endian PCM bytes into per-channel lists, and `normalize_pcm`
scales samples of a given byte width to the 32-bit range.

## Analysing a WAV file

```python
from autorec.wav_reader import read_wav_header, iter_wav_chunks, format_timestamp

with open("side_a.wav", "rb") as f:
    header = read_wav_header(f)
    print(format_timestamp(header.duration_seconds()))   # e.g. "03:25.40"
    for chunk in iter_wav_chunks(f, header, 200):
        ...  # one list of samples per channel, 200 ms at a time
```

`read_wav_header` skips chunks that come before the `data` chunk and raises
`ValueError` for files that are not RIFF/WAVE or have no data chunk.
`iter_wav_chunks` handles 16 and 32 bit files only.

## What this package does not do

- It does not record to files, show a level meter or decide when to start
  and stop recording; it supplies the input side only.
- It does not detect pauses or song boundaries, and does not identify songs.
- Source discovery does not query PipeWire; only ALSA devices and audio
  files are listed.
- `FileInputStream` decodes WAV only. MP3 and FLAC files are listed by the
  discovery functions but cannot be opened for reading.