"""Extract the first audio track of a video into a temporary .m4a file.

WHY: The service only needs sound. Re-encoding a video's audio track into a
compact AAC file before upload avoids shipping gigabytes of picture data,
and the result only has to survive one upload, not archival playback.

HOW: Two ffmpeg-suite subprocesses, run with asyncio so the event loop is
never blocked:
  1. ffprobe lists the container's streams as JSON
  2. ffmpeg maps the first audio stream into a new single-track AAC file
     with the moov atom moved to the front (+faststart) for streaming

RULES:
- No audio stream → NoAudioTrackError, and no output file is ever created
- Output is <tmp_dir>/<uuid4>.m4a, unique per call
- Export failure → partial output deleted (best-effort), then
  ExtractionFailedError chained to the cause
- Cancellation kills the child process and deletes the partial output
- On success the file is returned, not deleted; the caller owns it
- Zero-duration sources are not special-cased; ffmpeg's verdict stands
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from speechall.config import EXTRACT_AUDIO_BITRATE, FFMPEG_BINARY, FFPROBE_BINARY
from speechall.errors import ExtractionFailedError, NoAudioTrackError

logger = logging.getLogger(__name__)

EXTRACTED_AUDIO_SUFFIX = ".m4a"


async def extract_audio(
    source_path: str | os.PathLike[str],
    tmp_dir: Optional[Path] = None,
) -> Path:
    """Transcode the first audio track of a video into a fresh temp file.

    Args:
        source_path: Path to the video container.
        tmp_dir: Directory for the output file. Defaults to the platform
            temp directory.

    Returns:
        Path to the newly written .m4a file. The caller must delete it.

    Raises:
        NoAudioTrackError: The container has no audio stream.
        ExtractionFailedError: Probing or exporting failed.
    """
    source_path = Path(source_path)
    streams = await _probe_streams(source_path)

    audio_streams = [s for s in streams if s.get("codec_type") == "audio"]
    if not audio_streams:
        raise NoAudioTrackError(f"No audio track found in {source_path.name}")

    output_dir = Path(tmp_dir) if tmp_dir is not None else Path(tempfile.gettempdir())
    output_path = output_dir / f"{uuid.uuid4()}{EXTRACTED_AUDIO_SUFFIX}"

    cmd = [
        FFMPEG_BINARY,
        "-nostdin",
        "-y",
        "-i",
        str(source_path),
        "-map",
        "0:a:0",
        "-vn",
        "-c:a",
        "aac",
        "-b:a",
        EXTRACT_AUDIO_BITRATE,
        "-movflags",
        "+faststart",
        str(output_path),
    ]

    logger.info("Extracting audio from %s to %s", source_path, output_path)
    try:
        returncode, _, stderr = await _run_command(cmd)
        if returncode != 0:
            raise ExtractionFailedError(
                f"ffmpeg audio export failed for {source_path.name} "
                f"(exit {returncode}): {_tail(stderr)}"
            )
    except ExtractionFailedError:
        discard_file(output_path)
        raise
    except asyncio.CancelledError:
        discard_file(output_path)
        raise
    except OSError as exc:
        discard_file(output_path)
        raise ExtractionFailedError(f"Could not run {FFMPEG_BINARY}: {exc}") from exc

    return output_path


def discard_file(path: Path) -> None:
    """Delete `path` if it exists. Failures are logged, never raised."""
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Failed to delete temporary file: %s", path, exc_info=True)


async def _probe_streams(source_path: Path) -> List[Dict[str, Any]]:
    """Return ffprobe's stream list for `source_path`."""
    cmd = [
        FFPROBE_BINARY,
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_streams",
        str(source_path),
    ]
    try:
        returncode, stdout, stderr = await _run_command(cmd)
    except OSError as exc:
        raise ExtractionFailedError(f"Could not run {FFPROBE_BINARY}: {exc}") from exc

    if returncode != 0:
        raise ExtractionFailedError(
            f"ffprobe failed for {source_path.name}: {_tail(stderr)}"
        )

    try:
        data = json.loads(stdout or b"{}")
    except json.JSONDecodeError as exc:
        raise ExtractionFailedError(
            f"ffprobe returned unreadable output for {source_path.name}"
        ) from exc

    return list(data.get("streams", []))


async def _run_command(cmd: List[str]) -> Tuple[int, bytes, bytes]:
    """Run `cmd` to completion and return (returncode, stdout, stderr)."""
    logger.debug("Running %s", " ".join(cmd))
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise
    return proc.returncode, stdout, stderr


def _tail(stderr: bytes, limit: int = 500) -> str:
    text = stderr.decode("utf-8", errors="replace").strip()
    return text[-limit:]
