"""Speechall client — speech-to-text for audio and video files.

WHY: Turning a recording into text, subtitles, or word-timed transcripts
should be one awaitable call, whether the input is an .m4a voice memo or a
two-hour .mov. The hard parts (pulling audio out of video, streaming large
files without buffering them, decoding the service's response shapes) live
behind that call.

HOW: Three layers: media (classify, extract, WAV framing), api (body
preparation, HTTP client, response models), and errors. Each is
independently testable.

RULES:
- Public entry point is SpeechallClient, used as an async context manager
- Every failure surfaces as a subclass of SpeechallError
"""

from speechall.api.client import SpeechallClient
from speechall.api.models import (
    OutputFormat,
    SubtitleFormat,
    TranscriptionDetailed,
    TranscriptionWord,
)
from speechall.config import ClientConfig
from speechall.errors import (
    ApiError,
    BodyConsumedError,
    ExtractionFailedError,
    FileAccessError,
    InvalidFileError,
    InvalidResponseError,
    NetworkError,
    NoAudioTrackError,
    ResponseTooLargeError,
    SpeechallError,
)
from speechall.media.wav import build_wav_header, pcm_to_wav

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "BodyConsumedError",
    "ClientConfig",
    "ExtractionFailedError",
    "FileAccessError",
    "InvalidFileError",
    "InvalidResponseError",
    "NetworkError",
    "NoAudioTrackError",
    "OutputFormat",
    "ResponseTooLargeError",
    "SpeechallClient",
    "SpeechallError",
    "SubtitleFormat",
    "TranscriptionDetailed",
    "TranscriptionWord",
    "build_wav_header",
    "pcm_to_wav",
]
