"""Audio input streams from PipeWire, ALSA and WAV files, source discovery and WAV reading helpers."""

__version__ = "0.1.4"