"""Async HTTP client for the Speechall speech-to-text API.

WHY: Callers want "file in, transcript out" in one of three shapes (plain
text, subtitle markup, word-timed JSON) without caring whether the input
is audio or video, how it gets streamed, or how the service encodes its
answer. This module owns the request, the response-shape dispatch, and the
mapping of every failure onto the speechall.errors taxonomy.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. SpeechallClient is an
async context manager: enter it to get an authenticated client, exit to
close the connection pool. All three public operations go through
_post_audio(), which prepares a streamed body (see api/body.py), POSTs it
to /transcribe, and collects the response up to a byte cap.

RULES:
- Always use the async context manager (async with SpeechallClient() as client:)
- Exactly one output_format per request, matching the operation called
- punctuation defaults to True on every operation
- Response bodies above ClientConfig.max_response_bytes raise
  ResponseTooLargeError; truncated data is never returned
- Non-2xx bodies are read only up to ERROR_BODY_PREFIX_BYTES for the
  ApiError message, so the status code always survives
- httpx.TransportError → NetworkError, non-2xx → ApiError,
  wrong/malformed shape → InvalidResponseError
- No retries here; a retry must call the operation again so the body is
  prepared from scratch
- Status callback (on_status) is optional; when provided, called with status strings
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx

from speechall.api.body import prepare_body
from speechall.api.models import (
    DEFAULT_LANGUAGE,
    OutputFormat,
    SubtitleFormat,
    TranscriptionDetailed,
    TranscriptionOnlyText,
    parse_transcription_response,
)
from speechall.config import ClientConfig, load_api_key
from speechall.errors import (
    ApiError,
    InvalidFileError,
    InvalidResponseError,
    NetworkError,
    ResponseTooLargeError,
)
from speechall.media.classifier import is_video

logger = logging.getLogger(__name__)

TRANSCRIBE_PATH = "/transcribe"
ERROR_BODY_PREFIX_BYTES = 64 * 1024

StatusCallback = Callable[[str], None]
FilePath = str | os.PathLike[str]


class SpeechallClient:
    """Async client for the Speechall /transcribe endpoint.

    WHY: Provides a typed interface for the three transcription shapes
    while hiding body preparation, auth, and error mapping.

    HOW: Wraps httpx.AsyncClient with Bearer token auth, the configured
    base URL, and a long read timeout. `transport` lets tests (or callers
    with special networking needs) substitute an httpx transport.

    RULES:
    - Use as: async with SpeechallClient() as client: ...
    - api_key defaults to load_api_key(); a missing key fails here,
      at construction, not on the first request
    - config defaults to ClientConfig() (environment-derived defaults)
    """

    def __init__(
        self,
        api_key: str | None = None,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._config = config or ClientConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> SpeechallClient:
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=httpx.Timeout(
                self._config.timeout_s, connect=self._config.connect_timeout_s
            ),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "SpeechallClient must be used as an async context manager: "
                "async with SpeechallClient() as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def transcribe(
        self,
        file_path: FilePath,
        model: str,
        language: str = DEFAULT_LANGUAGE,
        initial_prompt: str | None = None,
        punctuation: bool = True,
        on_status: StatusCallback | None = None,
    ) -> str:
        """Transcribe an audio or video file to plain text.

        Args:
            file_path: Audio or video file. Video is reduced to its audio first.
            model: Model identifier, e.g. "openai.whisper-1".
            language: Language code, or "auto" for detection.
            initial_prompt: Optional hint text (names, jargon) to bias recognition.
            punctuation: Ask the service to punctuate the transcript.
            on_status: Optional callback for status updates.

        Returns:
            The transcript text exactly as the service returned it.
        """
        params = _query(model, language, OutputFormat.TEXT, punctuation)
        if initial_prompt is not None:
            params["initial_prompt"] = initial_prompt

        raw = await self._post_audio(file_path, params, on_status)
        return _decode_text(raw)

    async def subtitles(
        self,
        file_path: FilePath,
        format: SubtitleFormat | str,
        model: str,
        language: str = DEFAULT_LANGUAGE,
        punctuation: bool = True,
        on_status: StatusCallback | None = None,
    ) -> str:
        """Transcribe a file to SRT or VTT subtitle markup.

        The markup is returned unmodified; its validity is the service's
        responsibility.
        """
        subtitle_format = SubtitleFormat(format)
        params = _query(model, language, subtitle_format.output_format, punctuation)

        raw = await self._post_audio(file_path, params, on_status)
        return _decode_text(raw)

    async def detailed_transcription(
        self,
        file_path: FilePath,
        model: str,
        language: str = DEFAULT_LANGUAGE,
        punctuation: bool = True,
        on_status: StatusCallback | None = None,
    ) -> TranscriptionDetailed:
        """Transcribe a file to a structured result with word timestamps.

        Raises:
            InvalidResponseError: The body is not JSON, or the service sent
                the text-only variant instead of the detailed one.
        """
        params = _query(model, language, OutputFormat.JSON, punctuation)

        raw = await self._post_audio(file_path, params, on_status)
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidResponseError("Transcription response is not valid JSON") from exc

        result = parse_transcription_response(data)
        if isinstance(result, TranscriptionOnlyText):
            raise InvalidResponseError(
                "Requested a detailed transcription but the service returned text only"
            )
        return result

    # ------------------------------------------------------------------
    # Shared upload path
    # ------------------------------------------------------------------

    async def _post_audio(
        self,
        file_path: FilePath,
        params: dict[str, Any],
        on_status: StatusCallback | None,
    ) -> bytes:
        """Upload the file's audio to /transcribe and return the raw body."""
        client = self._ensure_client()
        path = Path(file_path)
        if not path.is_file():
            raise InvalidFileError(f"File not found or not a regular file: {path}")

        if on_status and is_video(path):
            on_status("Extracting audio...")

        logger.info(
            "Transcribing %s (model=%s, output_format=%s)",
            path.name, params["model"], params["output_format"],
        )

        async with prepare_body(
            path,
            tmp_dir=self._config.tmp_dir,
            chunk_size=self._config.chunk_size,
        ) as body:
            if on_status:
                on_status(f"Uploading {path.name}...")

            try:
                async with client.stream(
                    "POST",
                    TRANSCRIBE_PATH,
                    params=params,
                    content=body,
                    headers=body.headers(),
                ) as resp:
                    if not resp.is_success:
                        prefix = await _read_prefix(resp, ERROR_BODY_PREFIX_BYTES)
                        raise ApiError(_error_message(resp, prefix), resp.status_code)
                    raw = await self._collect(resp)
            except httpx.TransportError as exc:
                raise NetworkError(f"Request to Speechall failed: {exc}") from exc
            except httpx.DecodingError as exc:
                raise InvalidResponseError(f"Could not decode response body: {exc}") from exc

        if on_status:
            on_status("Transcription received.")
        return raw

    async def _collect(self, resp: httpx.Response) -> bytes:
        """Read the response body, refusing to buffer past the size cap."""
        limit = self._config.max_response_bytes

        declared = resp.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > limit:
            raise ResponseTooLargeError(limit)

        buffer = bytearray()
        async for chunk in resp.aiter_bytes():
            buffer.extend(chunk)
            if len(buffer) > limit:
                raise ResponseTooLargeError(limit)
        return bytes(buffer)


# ---------------------------------------------------------------------------
# Request / response helpers (module-private)
# ---------------------------------------------------------------------------


def _query(
    model: str,
    language: str,
    output_format: OutputFormat,
    punctuation: bool,
) -> dict[str, Any]:
    """Build the query parameters shared by every /transcribe request."""
    return {
        "model": model,
        "language": language,
        "output_format": output_format.value,
        "punctuation": punctuation,
    }


def _decode_text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _error_message(resp: httpx.Response, raw: bytes) -> str:
    """Pick the most useful error text out of a failed response.

    JSON bodies are searched for a "message", "error" or "detail" string;
    anything else falls back to the body text, then the reason phrase.
    """
    text = _decode_text(raw).strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None

    if isinstance(data, dict):
        for key in ("message", "error", "detail"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value

    return text or resp.reason_phrase or f"HTTP {resp.status_code}"


async def _read_prefix(resp: httpx.Response, limit: int) -> bytes:
    """Read at most `limit` bytes of the body; the rest is discarded."""
    buffer = bytearray()
    async for chunk in resp.aiter_bytes():
        buffer.extend(chunk)
        if len(buffer) >= limit:
            break
    return bytes(buffer[:limit])
