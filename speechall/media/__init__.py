"""Local media handling: classification, audio extraction, WAV framing.

WHY: Everything that touches media files before upload lives here, apart
from the HTTP layer, so it can be tested without a network.

RULES:
- Nothing in this package performs network I/O
- Only extractor.py spawns subprocesses (ffprobe / ffmpeg)
"""

from speechall.media.classifier import is_audio, is_video
from speechall.media.extractor import extract_audio
from speechall.media.wav import build_wav_header, pcm_to_wav

__all__ = ["build_wav_header", "extract_audio", "is_audio", "is_video", "pcm_to_wav"]
