"""Configuration constants, media extension tables, and .env loading.

WHY: Base URL, timeouts, the response size cap, and ffmpeg locations are
needed by several modules. Centralizing them here makes the defaults easy
to find and override, and gives the client a single explicit configuration
object instead of literals in its initializer.

HOW: python-dotenv loads the .env file on import. Defaults are module-level
constants, each overridable by an environment variable. ClientConfig bundles
the values a SpeechallClient needs; load_api_key() provides a clear error
when the key is missing.

RULES:
- API key is loaded from .env via python-dotenv, never hardcoded
- All defaults can be overridden via environment variables
- VIDEO_EXTENSIONS / AUDIO_EXTENSIONS are lowercase, with leading dot
- Missing API key fails at client construction, not on the first request
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Media extensions
# ---------------------------------------------------------------------------

VIDEO_EXTENSIONS: set[str] = {
    ".mp4", ".m4v", ".mov", ".mkv", ".avi", ".webm", ".wmv",
    ".flv", ".mpg", ".mpeg", ".3gp", ".ts", ".mts", ".m2ts",
}
"""Container extensions whose audio is extracted before upload."""

AUDIO_EXTENSIONS: set[str] = {
    ".wav", ".mp3", ".m4a", ".aac", ".flac", ".ogg", ".oga",
    ".opus", ".aiff", ".aif", ".amr", ".wma", ".caf",
}
"""Extensions uploaded as-is. Anything not in VIDEO_EXTENSIONS is too."""

# ---------------------------------------------------------------------------
# API configuration defaults
# ---------------------------------------------------------------------------

SPEECHALL_BASE_URL = os.getenv("SPEECHALL_BASE_URL", "https://api.speechall.com/v1")
SPEECHALL_TIMEOUT_S = float(os.getenv("SPEECHALL_TIMEOUT_S", "1200"))
SPEECHALL_CONNECT_TIMEOUT_S = float(os.getenv("SPEECHALL_CONNECT_TIMEOUT_S", "30"))
SPEECHALL_MAX_RESPONSE_BYTES = int(
    os.getenv("SPEECHALL_MAX_RESPONSE_BYTES", str(100 * 1024 * 1024))
)

UPLOAD_CHUNK_SIZE = 64 * 1024

# ---------------------------------------------------------------------------
# Audio extraction
# ---------------------------------------------------------------------------

FFMPEG_BINARY = os.getenv("SPEECHALL_FFMPEG", "ffmpeg")
FFPROBE_BINARY = os.getenv("SPEECHALL_FFPROBE", "ffprobe")
EXTRACT_AUDIO_BITRATE = os.getenv("SPEECHALL_EXTRACT_BITRATE", "128k")


@dataclass(frozen=True)
class ClientConfig:
    """Connection and limit settings for a SpeechallClient.

    WHY: The client needs a base URL, a generous timeout for long audio,
    and a cap on buffered response size. Passing them as one object keeps
    construction explicit and testable.

    HOW: Every field defaults to the module-level constant above, so
    ClientConfig() reflects the environment at import time.

    RULES:
    - timeout_s defaults to 20 minutes to accommodate long recordings
    - max_response_bytes defaults to 100 MiB; larger responses are fatal
    - tmp_dir None means the platform temp directory
    """

    base_url: str = SPEECHALL_BASE_URL
    timeout_s: float = SPEECHALL_TIMEOUT_S
    connect_timeout_s: float = SPEECHALL_CONNECT_TIMEOUT_S
    max_response_bytes: int = SPEECHALL_MAX_RESPONSE_BYTES
    chunk_size: int = UPLOAD_CHUNK_SIZE
    tmp_dir: Path | None = None


def load_api_key() -> str:
    """Load the Speechall API key from the environment.

    RULES:
    - Reads SPEECHALL_API_KEY from os.environ (populated by python-dotenv)
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("SPEECHALL_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "Speechall API key not configured. "
            "Set SPEECHALL_API_KEY in the environment or in a .env file."
        )
    return key
