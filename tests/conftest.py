"""Shared test fixtures for the speechall test suite.

WHY: Client, body, and model tests all need the same sample responses and
small on-disk audio files. Centralizing them keeps every test module
working from one definition of "what the service sends back".

HOW: Pytest fixtures provide sample JSON payloads (detailed and text-only)
and tiny audio files under tmp_path. make_client() builds a SpeechallClient
wired to an httpx.MockTransport so no test ever touches the network.

RULES:
- No test performs real network I/O or runs ffmpeg
- One sample word omits confidence to exercise the optional field
- API keys are passed explicitly; tests never depend on .env contents
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx
import pytest

from speechall.api.client import SpeechallClient
from speechall.config import ClientConfig

TEST_API_KEY = "test-key-123"
TEST_BASE_URL = "https://api.speechall.test/v1"


# ---------------------------------------------------------------------------
# Sample service payloads
# ---------------------------------------------------------------------------

SAMPLE_WORDS: List[Dict[str, Any]] = [
    {"word": "How",   "start": 0.12, "end": 0.25, "confidence": 0.97},
    {"word": "are",   "start": 0.26, "end": 0.38, "confidence": 0.95},
    {"word": "you",   "start": 0.39, "end": 0.51},
    {"word": "doing", "start": 0.52, "end": 0.72, "confidence": 0.93},
    {"word": "today?", "start": 0.73, "end": 0.94, "confidence": 0.99},
]


@pytest.fixture
def detailed_payload() -> Dict[str, Any]:
    """A detailed JSON transcription response with word timestamps."""
    return {
        "id": "73d4357d-cad2-4338-a60d-ec6f2044f721",
        "text": "How are you doing today?",
        "language": "en",
        "duration": 0.94,
        "segments": [
            {"start": 0.12, "end": 0.94, "text": "How are you doing today?", "speaker": "A"},
        ],
        "words": [dict(w) for w in SAMPLE_WORDS],
    }


@pytest.fixture
def text_only_payload() -> Dict[str, Any]:
    """A text-only JSON transcription response."""
    return {
        "id": "0f0c9a6e-1111-4000-8000-000000000001",
        "text": "How are you doing today?",
    }


# ---------------------------------------------------------------------------
# Sample files
# ---------------------------------------------------------------------------


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    """A small fake .wav file with distinctive content."""
    path = tmp_path / "sample.wav"
    path.write_bytes(b"RIFF" + bytes(range(256)) * 3)
    return path


@pytest.fixture
def video_file(tmp_path: Path) -> Path:
    """A fake .mp4 file (content never decoded; extraction is stubbed)."""
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42 fake video bytes")
    return path


# ---------------------------------------------------------------------------
# Client helpers
# ---------------------------------------------------------------------------


def _make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    **config_overrides: Any,
) -> SpeechallClient:
    """Build a SpeechallClient whose HTTP traffic goes to `handler`."""
    config = ClientConfig(base_url=TEST_BASE_URL, **config_overrides)
    return SpeechallClient(
        api_key=TEST_API_KEY,
        config=config,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def make_client():
    """Factory: make_client(handler, **config_overrides) -> SpeechallClient."""
    return _make_client


@pytest.fixture
def recording_handler():
    """Factory: recording_handler(response_factory) -> RecordingHandler."""
    return RecordingHandler


class RecordingHandler:
    """MockTransport handler that records requests and returns a canned response."""

    def __init__(self, response_factory: Callable[[httpx.Request], httpx.Response]) -> None:
        self._response_factory = response_factory
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._response_factory(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]
