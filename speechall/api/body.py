"""Upload body preparation: classify, extract if needed, stream from disk.

WHY: Every transcription call uploads the same kind of body: the audio of
the caller's file, streamed chunk by chunk so multi-gigabyte inputs never
sit in memory. Video inputs first go through audio extraction, which
creates a temp file somebody has to delete. Putting classification,
extraction, streaming, and deletion in one scoped operation gives that temp
file exactly one owner.

HOW: prepare_body() is an async context manager. On entry it resolves the
file to upload (the original, or freshly extracted audio), opens it, and
yields an UploadBody. On exit, whether by success, error, or cancellation,
it closes the handle and deletes the extracted temp file.

RULES:
- An UploadBody can be iterated once; a second iteration raises
  BodyConsumedError. Retries must re-enter prepare_body()
- length, when not None, equals the exact number of bytes produced
- File reads run in a worker thread so the event loop is never blocked
- OSError opening the resolved file → FileAccessError chained to the cause
- The caller's original file is never modified or deleted
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import os
import stat
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Optional

from speechall.config import UPLOAD_CHUNK_SIZE
from speechall.errors import BodyConsumedError, FileAccessError
from speechall.media.classifier import is_video
from speechall.media.extractor import discard_file, extract_audio

logger = logging.getLogger(__name__)

GENERIC_AUDIO_TYPE = "audio/*"


class UploadBody:
    """A single-pass async stream of byte chunks read from an open file.

    WHY: httpx can send an async iterable as a request body without
    buffering it. The underlying file handle can only be walked once, so
    the body refuses a second walk instead of silently sending nothing.

    HOW: __aiter__ flips a consumed flag and hands out a generator that
    reads `chunk_size` bytes per step via asyncio.to_thread.

    RULES:
    - length is the file size from fstat for regular files, else None
    - content_type is what the Content-Type header should say
    """

    def __init__(
        self,
        handle: BinaryIO,
        length: Optional[int],
        content_type: str = GENERIC_AUDIO_TYPE,
        chunk_size: int = UPLOAD_CHUNK_SIZE,
    ) -> None:
        self._handle = handle
        self.length = length
        self.content_type = content_type
        self._chunk_size = chunk_size
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def headers(self) -> dict[str, str]:
        """Request headers describing this body."""
        headers = {"Content-Type": self.content_type}
        if self.length is not None:
            headers["Content-Length"] = str(self.length)
        return headers

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise BodyConsumedError(
                "Upload body has already been consumed; prepare a new one to retry"
            )
        self._consumed = True
        return self._chunks()

    async def _chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await asyncio.to_thread(self._handle.read, self._chunk_size)
            if not chunk:
                return
            yield chunk


@asynccontextmanager
async def prepare_body(
    source_path: str | os.PathLike[str],
    tmp_dir: Optional[Path] = None,
    chunk_size: int = UPLOAD_CHUNK_SIZE,
) -> AsyncIterator[UploadBody]:
    """Yield an UploadBody for `source_path`, extracting audio from video.

    Args:
        source_path: The caller's audio or video file.
        tmp_dir: Where extracted audio is written (platform temp dir if None).
        chunk_size: Bytes per chunk handed to the transport.

    Raises:
        NoAudioTrackError / ExtractionFailedError: From extraction.
        FileAccessError: The resolved file could not be opened.
    """
    source_path = Path(source_path)
    extracted: Optional[Path] = None
    try:
        if is_video(source_path):
            extracted = await extract_audio(source_path, tmp_dir=tmp_dir)
        upload_path = extracted or source_path

        try:
            handle = open(upload_path, "rb")
        except OSError as exc:
            raise FileAccessError(f"Cannot open {upload_path}: {exc}") from exc

        with handle:
            body = UploadBody(
                handle,
                length=_file_length(handle),
                content_type=_content_type(upload_path),
                chunk_size=chunk_size,
            )
            logger.debug(
                "Prepared upload body for %s (%s bytes, %s)",
                upload_path, body.length, body.content_type,
            )
            yield body
    finally:
        if extracted is not None:
            discard_file(extracted)


def _file_length(handle: BinaryIO) -> Optional[int]:
    """Size of a regular file from its metadata, None when unknowable."""
    try:
        info = os.fstat(handle.fileno())
    except OSError:
        return None
    if not stat.S_ISREG(info.st_mode):
        return None
    return info.st_size


def _content_type(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    if guessed and guessed.startswith("audio/"):
        return guessed
    return GENERIC_AUDIO_TYPE
