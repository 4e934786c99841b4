"""Exception hierarchy for the Speechall client.

WHY: Callers need to tell an unreadable input file apart from a video with
no audio, a transport failure, or a service rejection. One typed exception
per failure class makes that a matter of `except` clauses.

HOW: Every exception derives from SpeechallError. Wrapping exceptions are
raised with `raise ... from exc`, so the underlying cause stays available
as __cause__.

RULES:
- FileAccessError is an InvalidFileError (both mean "input not readable")
- ApiError always carries status_code and message
- ResponseTooLargeError carries the limit that was exceeded
- BodyConsumedError is also a RuntimeError: reusing a body is a programming error
"""

from __future__ import annotations


class SpeechallError(Exception):
    """Base class for all errors raised by this package."""


class InvalidFileError(SpeechallError):
    """The input file could not be read or is not a supported format."""


class FileAccessError(InvalidFileError):
    """Opening or inspecting the resolved upload file failed."""


class NoAudioTrackError(SpeechallError):
    """The video container holds no audio stream."""


class ExtractionFailedError(SpeechallError):
    """Probing or transcoding the video's audio track failed."""


class NetworkError(SpeechallError):
    """The request never produced an HTTP response (connect, timeout, reset)."""


class ApiError(SpeechallError):
    """Raised when the Speechall API returns a non-success response.

    RULES:
    - Always include status_code and message
    - message is the error field of a JSON body, or the raw body text
    """

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(f"Speechall API error {status_code}: {message}")


class InvalidResponseError(SpeechallError):
    """The response body does not match the requested output format."""


class ResponseTooLargeError(SpeechallError):
    """The response body exceeded the configured in-memory cap."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Response body exceeded the {limit:,} byte limit")


class BodyConsumedError(SpeechallError, RuntimeError):
    """An UploadBody was iterated a second time."""
