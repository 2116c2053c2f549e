[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "autorec"
version = "0.1.4"
description = "Audio capture streams, source discovery and WAV analysis helpers for automatic recording"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "audio",
    "recording",
    "pipewire",
    "alsa",
    "arecord",
    "pw-record",
    "wav",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Capture/Recording",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
show_sources = "autorec.show_sources:main"

[tool.hatch.build.targets.wheel]
packages = ["autorec"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
