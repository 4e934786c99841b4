"""Speechall API package — async HTTP interface to the Speechall STT service.

WHY: Callers need to upload audio (or video) and get back text, subtitles,
or word-timed transcripts. This package encapsulates body preparation,
the HTTP exchange, and response decoding behind one client class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. SpeechallClient exposes
one method per result shape; body.py streams the upload from disk and
models.py holds the typed response variants.

RULES:
- All HTTP calls go through SpeechallClient (no direct httpx usage elsewhere)
- Authentication is via Bearer token from config
- Upload bodies are single-use
"""

from speechall.api.body import UploadBody, prepare_body
from speechall.api.client import SpeechallClient
from speechall.api.models import (
    OutputFormat,
    SubtitleFormat,
    TranscriptionDetailed,
    TranscriptionOnlyText,
    TranscriptionSegment,
    TranscriptionWord,
)

__all__ = [
    "OutputFormat",
    "SpeechallClient",
    "SubtitleFormat",
    "TranscriptionDetailed",
    "TranscriptionOnlyText",
    "TranscriptionSegment",
    "TranscriptionWord",
    "UploadBody",
    "prepare_body",
]
