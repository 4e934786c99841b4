"""WAV framing for raw IEEE-float PCM samples.

WHY: Callers that capture audio themselves (microphone buffers, synthesized
speech) hold bare interleaved float samples. The service needs a
containerized file, and a 44-byte RIFF header is all that is missing.

HOW: struct.pack with a little-endian format string lays out the RIFF
chunk, the 16-byte "fmt " sub-chunk and the "data" sub-chunk header.

RULES:
- Output of build_wav_header is always exactly 44 bytes
- Every multi-byte integer is little-endian
- Format code is 3 (IEEE float), not 1 (integer PCM)
- RIFF chunk size = 36 + data_size
- byte_rate = sample_rate * channel_count * bits_per_sample / 8
- block_align = channel_count * bits_per_sample / 8
"""

from __future__ import annotations

import struct

WAV_HEADER_SIZE = 44
WAVE_FORMAT_IEEE_FLOAT = 3

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def build_wav_header(
    sample_rate: int,
    channel_count: int,
    bits_per_sample: int,
    data_size: int,
) -> bytes:
    """Build the 44-byte header preceding `data_size` bytes of float samples.

    Args:
        sample_rate: Samples per second per channel (e.g. 44100).
        channel_count: Number of interleaved channels.
        bits_per_sample: Bits per single-channel sample (32 for float32).
        data_size: Length in bytes of the sample payload that follows.

    Returns:
        The header bytes, to be prepended verbatim to the samples.
    """
    byte_rate = sample_rate * channel_count * bits_per_sample // 8
    block_align = channel_count * bits_per_sample // 8

    return _HEADER.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        WAVE_FORMAT_IEEE_FLOAT,
        channel_count,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )


def pcm_to_wav(
    samples: bytes,
    sample_rate: int,
    channel_count: int,
    bits_per_sample: int = 32,
) -> bytes:
    """Return a complete WAV file: header followed by `samples` unchanged."""
    return build_wav_header(sample_rate, channel_count, bits_per_sample, len(samples)) + samples
