"""WAV container builder and audio output-format table.

WHY: The streaming TTS endpoint can return raw 16-bit PCM with no
container. Most consumers need a playable file, so raw PCM is wrapped in a
canonical 44-byte RIFF/WAVE header before it is handed to the caller.

HOW: build_wav_header packs the header with struct in little-endian order
(PCM format tag 1). wrap_pcm prepends it to the payload. AUDIO_FORMATS maps
each requested output format to the MIME type and extension of the bytes
the caller finally receives.

RULES:
- Header is always exactly 44 bytes
- fileSize = 36 + data_length, byteRate = rate * channels * bits / 8
- Only wrap when the requested format is raw PCM (PCM_FORMAT)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from camb_connector.config import DEFAULT_SAMPLE_RATE

WAV_HEADER_SIZE = 44
PCM_FORMAT = "pcm_s16le"

_WAV_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass(frozen=True)
class AudioFormat:
    """Delivered MIME type and file extension for an output format."""

    mime_type: str
    extension: str


AUDIO_FORMATS: dict[str, AudioFormat] = {
    "wav": AudioFormat("audio/wav", "wav"),
    "flac": AudioFormat("audio/flac", "flac"),
    "adts": AudioFormat("audio/aac", "aac"),
    # Delivered as WAV once the header is added
    PCM_FORMAT: AudioFormat("audio/wav", "wav"),
}

_FALLBACK_FORMAT = AUDIO_FORMATS["wav"]


def audio_format(output_format: str) -> AudioFormat:
    """Look up an output format, falling back to WAV for unknown values."""
    return AUDIO_FORMATS.get(output_format, _FALLBACK_FORMAT)


def sniff_audio_format(data: bytes) -> AudioFormat:
    """Guess the container of a downloaded artifact from its magic bytes."""
    if data[:4] == b"fLaC":
        return AUDIO_FORMATS["flac"]
    if data[:3] == b"ID3" or data[:2] in (b"\xff\xfb", b"\xff\xf3", b"\xff\xf2"):
        return AudioFormat("audio/mpeg", "mp3")
    if data[:2] in (b"\xff\xf1", b"\xff\xf9"):
        return AUDIO_FORMATS["adts"]
    if data[:4] == b"OggS":
        return AudioFormat("audio/ogg", "ogg")
    return _FALLBACK_FORMAT


def build_wav_header(
    data_length: int,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    channels: int = 1,
    bits_per_sample: int = 16,
) -> bytes:
    """Build a 44-byte PCM WAV header.

    Args:
        data_length: Size of the raw audio payload in bytes.
        sample_rate: Samples per second.
        channels: Channel count (1 = mono).
        bits_per_sample: Bits per sample (8, 16, 24...).

    Returns:
        The header bytes. The caller concatenates the payload after it.
    """
    block_align = channels * bits_per_sample // 8
    byte_rate = sample_rate * block_align
    return _WAV_HEADER.pack(
        b"RIFF",
        36 + data_length,
        b"WAVE",
        b"fmt ",
        16,  # fmt chunk size
        1,  # PCM
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        data_length,
    )


def wrap_pcm(
    payload: bytes,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    channels: int = 1,
    bits_per_sample: int = 16,
) -> bytes:
    """Return payload prefixed with a matching WAV header."""
    header = build_wav_header(len(payload), sample_rate, channels, bits_per_sample)
    return header + payload
