"""Speechall request enums and response dataclasses.

WHY: The /transcribe endpoint answers in one of several encodings depending
on the requested output_format. For output_format=json the body is one of
two shapes (text-only or detailed with word timestamps). Typed dataclasses
and an explicit decoder make that union visible and force the text-only
case to be handled rather than assumed away.

HOW: OutputFormat and SubtitleFormat are str enums so they drop straight
into query parameters. Each response dataclass has a from_dict factory.
parse_transcription_response() decides which variant a JSON document is.

RULES:
- A JSON document carrying any detailed-only field (language, duration,
  segments, words, provider_metadata) is TranscriptionDetailed; one with
  only id/text is TranscriptionOnlyText
- Word and segment order is preserved exactly as the server sent it
- Times are float seconds, copied unchanged
- Missing required fields raise InvalidResponseError, never KeyError
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Union

from speechall.errors import InvalidResponseError

DEFAULT_LANGUAGE = "auto"


class OutputFormat(str, enum.Enum):
    """Encodings the service can be asked to return."""

    TEXT = "text"
    SRT = "srt"
    VTT = "vtt"
    JSON = "json"


class SubtitleFormat(str, enum.Enum):
    """Subtitle markup flavours accepted by SpeechallClient.subtitles()."""

    SRT = "srt"
    VTT = "vtt"

    @property
    def output_format(self) -> OutputFormat:
        return OutputFormat(self.value)


@dataclass
class TranscriptionWord:
    """A single recognized word with its time span.

    RULES:
    - start/end: float seconds from the start of the audio
    - confidence: 0.0–1.0 when the model reports it, else None
    - speaker: provider-specific label when diarization ran, else None
    """

    word: str
    start: float
    end: float
    confidence: float | None = None
    speaker: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> TranscriptionWord:
        return cls(
            word=data["word"],
            start=data["start"],
            end=data["end"],
            confidence=data.get("confidence"),
            speaker=data.get("speaker"),
        )


@dataclass
class TranscriptionSegment:
    """A span of text (usually a sentence or speaker turn) with timing."""

    start: float
    end: float
    text: str
    speaker: str | None = None
    confidence: float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> TranscriptionSegment:
        return cls(
            start=data["start"],
            end=data["end"],
            text=data["text"],
            speaker=data.get("speaker"),
            confidence=data.get("confidence"),
        )


@dataclass
class TranscriptionOnlyText:
    """JSON response variant carrying only the transcript text."""

    id: str
    text: str

    @classmethod
    def from_dict(cls, data: dict) -> TranscriptionOnlyText:
        return cls(id=str(data["id"]), text=data["text"])


@dataclass
class TranscriptionDetailed:
    """JSON response variant with word-level (and segment-level) timing.

    WHY: Callers building captions, search indexes or editors need to
    know when each word was spoken, not just what was said.

    HOW: Parsed by from_dict; words and segments become typed lists in
    server order. provider_metadata is passed through untouched.

    RULES:
    - id and text are always present
    - words / segments are [] when the provider did not return them
    - language / duration are None when not reported
    """

    id: str
    text: str
    language: str | None = None
    duration: float | None = None
    segments: list[TranscriptionSegment] = field(default_factory=list)
    words: list[TranscriptionWord] = field(default_factory=list)
    provider_metadata: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict) -> TranscriptionDetailed:
        return cls(
            id=str(data["id"]),
            text=data["text"],
            language=data.get("language"),
            duration=data.get("duration"),
            segments=[TranscriptionSegment.from_dict(s) for s in data.get("segments") or []],
            words=[TranscriptionWord.from_dict(w) for w in data.get("words") or []],
            provider_metadata=data.get("provider_metadata"),
        )


TranscriptionResponse = Union[TranscriptionOnlyText, TranscriptionDetailed]

_DETAILED_KEYS = ("language", "duration", "segments", "words", "provider_metadata")


def parse_transcription_response(data: Any) -> TranscriptionResponse:
    """Decode a JSON transcription response into its variant.

    Raises:
        InvalidResponseError: `data` is not an object or lacks required fields.
    """
    if not isinstance(data, dict):
        raise InvalidResponseError(
            f"Expected a JSON object, got {type(data).__name__}"
        )

    try:
        if any(key in data for key in _DETAILED_KEYS):
            return TranscriptionDetailed.from_dict(data)
        return TranscriptionOnlyText.from_dict(data)
    except (KeyError, TypeError) as exc:
        raise InvalidResponseError(
            f"Transcription response is missing or has malformed field: {exc}"
        ) from exc
