"""Tests for upload body preparation (prepare_body / UploadBody).

WHY: The body is streamed straight into the HTTP request. If its declared
length disagrees with the bytes it yields, the request is corrupt; if it
can be iterated twice, a retry sends an empty body; if the extracted temp
file outlives the call, disks fill up. These tests pin all three down.

HOW: Real files under tmp_path, consumed with `async for` inside
asyncio.run(). Extraction is stubbed via monkeypatch on the body module.

RULES:
- Bytes yielded must be byte-identical to the resolved file
- Temp files from extraction must not exist after the context exits
- The caller's original file is never touched
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from speechall.api import body as body_module
from speechall.api.body import GENERIC_AUDIO_TYPE, UploadBody, prepare_body
from speechall.errors import BodyConsumedError, FileAccessError, InvalidFileError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _collect(body: UploadBody) -> list:
    return [chunk async for chunk in body]


def _prepare_and_read(path: Path, **kwargs):
    """Return (length, content_type, chunks) for prepare_body(path)."""

    async def _go():
        async with prepare_body(path, **kwargs) as body:
            chunks = await _collect(body)
            return body.length, body.content_type, chunks

    return asyncio.run(_go())


@pytest.fixture
def stub_extract(monkeypatch, tmp_path: Path):
    """Stub extract_audio; returns the list of files it created."""
    created = []

    async def _fake_extract(source_path, tmp_dir=None):
        out = Path(tmp_dir or tmp_path) / "audio-{}.m4a".format(len(created))
        out.write_bytes(b"AAC" * 10)
        created.append(out)
        return out

    monkeypatch.setattr(body_module, "extract_audio", _fake_extract)
    return created


@pytest.fixture
def forbid_extract(monkeypatch):
    """Fail the test if extraction is attempted."""

    async def _fail(source_path, tmp_dir=None):
        raise AssertionError("extract_audio must not be called for {}".format(source_path))

    monkeypatch.setattr(body_module, "extract_audio", _fail)


# ---------------------------------------------------------------------------
# Audio input
# ---------------------------------------------------------------------------


class TestAudioBody:
    """Non-video files are streamed directly from disk."""

    def test_length_and_bytes_match_file(self, audio_file, forbid_extract):
        length, _, chunks = _prepare_and_read(audio_file)

        data = audio_file.read_bytes()
        assert length == len(data)
        assert b"".join(chunks) == data

    def test_content_type_is_audio(self, audio_file, forbid_extract):
        _, content_type, _ = _prepare_and_read(audio_file)
        assert content_type.startswith("audio/")

    def test_chunked_reads(self, tmp_path, forbid_extract):
        path = tmp_path / "ten.wav"
        path.write_bytes(b"0123456789")

        _, _, chunks = _prepare_and_read(path, chunk_size=4)
        assert chunks == [b"0123", b"4567", b"89"]

    def test_empty_file(self, tmp_path, forbid_extract):
        path = tmp_path / "empty.wav"
        path.write_bytes(b"")

        length, _, chunks = _prepare_and_read(path)
        assert length == 0
        assert chunks == []

    def test_unknown_extension_uploaded_directly(self, tmp_path, forbid_extract):
        path = tmp_path / "recording.xyz"
        path.write_bytes(b"mystery bytes")

        length, content_type, chunks = _prepare_and_read(path)
        assert b"".join(chunks) == b"mystery bytes"
        assert length == len(b"mystery bytes")
        assert content_type == GENERIC_AUDIO_TYPE

    def test_headers_include_length(self, audio_file, forbid_extract):
        async def _go():
            async with prepare_body(audio_file) as body:
                return body.headers()

        headers = asyncio.run(_go())
        assert headers["Content-Length"] == str(audio_file.stat().st_size)
        assert headers["Content-Type"].startswith("audio/")

    def test_missing_file_raises_file_access_error(self, tmp_path, forbid_extract):
        with pytest.raises(FileAccessError) as exc_info:
            _prepare_and_read(tmp_path / "gone.wav")

        assert isinstance(exc_info.value, InvalidFileError)
        assert isinstance(exc_info.value.__cause__, OSError)


# ---------------------------------------------------------------------------
# Single-use contract
# ---------------------------------------------------------------------------


class TestSingleUse:
    """An UploadBody can only be iterated once."""

    def test_second_iteration_raises(self, audio_file, forbid_extract):
        async def _go():
            async with prepare_body(audio_file) as body:
                assert not body.consumed
                await _collect(body)
                assert body.consumed
                with pytest.raises(BodyConsumedError):
                    await _collect(body)

        asyncio.run(_go())

    def test_consumed_error_is_runtime_error(self):
        assert issubclass(BodyConsumedError, RuntimeError)

    def test_unknown_length_has_no_content_length_header(self, tmp_path):
        path = tmp_path / "x.wav"
        path.write_bytes(b"abc")
        with open(path, "rb") as handle:
            body = UploadBody(handle, length=None)
            assert "Content-Length" not in body.headers()
            assert body.headers()["Content-Type"] == GENERIC_AUDIO_TYPE


# ---------------------------------------------------------------------------
# Video input and temp-file ownership
# ---------------------------------------------------------------------------


class TestVideoBody:
    """Video files are replaced by extracted audio, deleted on exit."""

    def test_streams_extracted_audio(self, video_file, stub_extract):
        length, content_type, chunks = _prepare_and_read(video_file)

        assert b"".join(chunks) == b"AAC" * 10
        assert length == 30
        assert content_type.startswith("audio/")

    def test_temp_file_deleted_after_exit(self, video_file, stub_extract):
        _prepare_and_read(video_file)

        assert len(stub_extract) == 1
        assert not stub_extract[0].exists()
        assert video_file.exists()

    def test_temp_file_deleted_on_error(self, video_file, stub_extract):
        async def _go():
            async with prepare_body(video_file) as body:
                await _collect(body)
                raise RuntimeError("upload failed")

        with pytest.raises(RuntimeError, match="upload failed"):
            asyncio.run(_go())
        assert not stub_extract[0].exists()

    def test_temp_file_deleted_on_cancellation(self, video_file, stub_extract):
        async def _go():
            async with prepare_body(video_file):
                raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(_go())
        assert not stub_extract[0].exists()

    def test_tmp_dir_forwarded(self, video_file, stub_extract, tmp_path):
        scratch = tmp_path / "scratch"
        scratch.mkdir()

        async def _go():
            async with prepare_body(video_file, tmp_dir=scratch):
                return stub_extract[0].parent

        assert asyncio.run(_go()) == scratch

    def test_each_preparation_extracts_fresh_file(self, video_file, stub_extract):
        _prepare_and_read(video_file)
        _prepare_and_read(video_file)

        assert len(stub_extract) == 2
        assert stub_extract[0] != stub_extract[1]
