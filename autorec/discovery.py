"""Discovery of audio sources available to the capture backends."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass

_AUDIO_SUFFIXES = (".wav", ".mp3", ".flac")
_NUMBER = re.compile(r"\+?\d+")
_DEFAULT_ALSA_URL = "alsa:default"


@dataclass(frozen=True)
class AudioSource:
    """One audio source: its backend, address and an optional description."""

    backend: str
    url: str
    description: str | None = None


def _parse_number(text: str) -> int | None:
    return int(text) if _NUMBER.fullmatch(text) else None


def _parse_card_line(line: str) -> AudioSource | None:
    card_start = line.find("card ")
    if card_start < 0:
        return None
    colon = line.find(":", card_start)
    if colon < 0:
        return None
    card = _parse_number(line[card_start + 5 : colon])
    if card is None:
        return None

    device_pos = line.find("device ")
    if device_pos < 0:
        return None
    device_colon = line.find(":", device_pos)
    if device_colon < 0:
        return None
    device = _parse_number(line[device_pos + 7 : device_colon])
    if device is None:
        return None

    description = None
    desc_start = line.rfind("[")
    if desc_start >= 0:
        desc_end = line.find("]", desc_start)
        if desc_end >= 0:
            description = line[desc_start + 1 : desc_end]

    return AudioSource("alsa", f"alsa:hw:{card},{device}", description)


def parse_arecord_listing(text: str) -> list[AudioSource]:
    """Extract capture devices from the output of ``arecord -l``."""
    sources = []
    for line in text.splitlines():
        if not line.startswith("card"):
            continue
        source = _parse_card_line(line)
        if source is not None:
            sources.append(source)
    return sources


def discover_alsa_sources() -> list[AudioSource]:
    """List ALSA capture devices; the default device always comes first."""
    sources: list[AudioSource] = []
    try:
        result = subprocess.run(["arecord", "-l"], capture_output=True)
    except OSError:
        result = None
    if result is not None and result.returncode == 0:
        text = result.stdout.decode("utf-8", errors="replace")
        sources = parse_arecord_listing(text)

    if not any(source.url == _DEFAULT_ALSA_URL for source in sources):
        sources.insert(0, AudioSource("alsa", _DEFAULT_ALSA_URL, "Default ALSA device"))
    return sources


def discover_file_sources(directory: str = ".") -> list[AudioSource]:
    """List WAV, MP3 and FLAC files in a directory, sorted by address."""
    sources = []
    try:
        entries = list(os.scandir(directory))
    except OSError:
        return []
    for entry in entries:
        try:
            if not entry.is_file(follow_symlinks=False):
                continue
        except OSError:
            continue
        path = os.path.join(directory, entry.name)
        if path.lower().endswith(_AUDIO_SUFFIXES):
            sources.append(
                AudioSource("file", f"file:{path}", f"Audio file: {entry.name}")
            )
    sources.sort(key=lambda source: source.url)
    return sources


def discover_all_sources() -> list[AudioSource]:
    """List sources from every backend that can be discovered here."""
    return [*discover_alsa_sources(), *discover_file_sources()]