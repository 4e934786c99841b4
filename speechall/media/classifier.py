"""Decide whether an input file needs audio extraction before upload.

WHY: Video containers carry picture data the service does not need. Sending
only the audio track shrinks uploads by an order of magnitude, but extraction
costs a transcode, so it must only run for actual video containers.

HOW: Pure extension lookup against the tables in speechall.config. No file
is opened and nothing is decoded.

RULES:
- Comparison is case-insensitive (".MP4" is video)
- Unknown extensions are NOT video: they are uploaded directly and the
  service performs the final format validation
"""

from __future__ import annotations

import os
from pathlib import Path

from speechall.config import AUDIO_EXTENSIONS, VIDEO_EXTENSIONS


def is_video(path: str | os.PathLike[str]) -> bool:
    """Return True if the file's extension names a known video container."""
    return Path(path).suffix.lower() in VIDEO_EXTENSIONS


def is_audio(path: str | os.PathLike[str]) -> bool:
    """Return True if the file's extension names a known audio format."""
    return Path(path).suffix.lower() in AUDIO_EXTENSIONS
