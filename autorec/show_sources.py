"""Command that lists the available audio input sources."""

from __future__ import annotations

import sys
from typing import Iterable, Mapping, Sequence

from autorec.discovery import AudioSource, discover_all_sources

BACKEND_ORDER = ("pipewire", "pwpipe", "alsa", "file")

_HELP = """\
show_sources - List available audio input sources

USAGE:
    show_sources [BACKEND]

BACKENDS:
    pipewire    Native PipeWire audio sources
    pwpipe      PipeWire sources (subprocess mode)
    alsa        ALSA audio devices
    file        Audio files in current directory

EXAMPLES:
    show_sources              List all available sources
    show_sources pipewire     List only PipeWire sources
    show_sources file         List only audio files"""

_NOTHING_FOUND = """\
No audio sources found.

Make sure:
  - PipeWire is running for pipewire sources
  - ALSA devices are available
  - Audio files (.wav, .mp3, .flac) exist in current directory"""


def group_by_backend(sources: Iterable[AudioSource]) -> dict[str, list[AudioSource]]:
    """Group sources by backend, keeping their order within each group."""
    groups: dict[str, list[AudioSource]] = {}
    for source in sources:
        groups.setdefault(source.backend, []).append(source)
    return groups


def format_sources(
    by_backend: Mapping[str, Sequence[AudioSource]], filter_backend: str | None
) -> str:
    """Render grouped sources, optionally for one backend only."""
    lines: list[str] = []
    for backend in BACKEND_ORDER:
        sources = by_backend.get(backend)
        if sources is None:
            continue
        if filter_backend is not None and filter_backend != backend:
            continue
        lines.append(f"{backend.upper()}:")
        for source in sources:
            lines.append(f"  {source.url}")
            if source.description is not None:
                lines.append(f"    └─ {source.description}")
        lines.append("")
    return "".join(line + "\n" for line in lines)


def main(argv: Sequence[str] | None = None) -> int:
    """List audio sources; returns the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if args and args[0] in ("-h", "--help"):
        print(_HELP)
        return 0

    filter_backend = args[0].lower() if args else None

    print("Available audio sources:\n")
    sources = discover_all_sources()
    if not sources:
        print(_NOTHING_FOUND)
        return 1

    by_backend = group_by_backend(sources)
    sys.stdout.write(format_sources(by_backend, filter_backend))

    if filter_backend is not None and filter_backend not in by_backend:
        print(f"No sources found for backend: {filter_backend}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())