# kemetic_mirror/mirror_engine/capture/codecs.py
"""Container/codec negotiation for recordings.

Options are checked in priority order every time a session starts, since the
available FFmpeg encoders depend on how PyAV was built on this machine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence

import av
from av.error import FFmpegError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodecOption:
    container: str
    video_codec: str
    audio_codec: Optional[str]
    pix_fmt: str = "yuv420p"
    container_options: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    @property
    def extension(self) -> str:
        return "mp4" if self.container == "mp4" else "webm"

    @property
    def label(self) -> str:
        audio = f",{self.audio_codec}" if self.audio_codec else ""
        return f"{self.container};codecs={self.video_codec}{audio}"


# Fragmented MP4 so the muxer never seeks back into already-emitted chunks.
_STREAMABLE_MP4 = {"movflags": "frag_keyframe+empty_moov+default_base_moof"}

CODEC_PRIORITY: tuple[CodecOption, ...] = (
    CodecOption("webm", "libvpx-vp9", "libopus"),
    CodecOption("webm", "libvpx", "libopus"),
    CodecOption("webm", "libvpx", "libvorbis"),
    CodecOption("mp4", "libx264", "aac", container_options=_STREAMABLE_MP4),
)
"""Highest quality first; the first option whose encoders exist wins."""

DEFAULT_CODEC = CodecOption("mp4", "mpeg4", "aac", container_options=_STREAMABLE_MP4)
"""FFmpeg's builtin encoders, used when nothing in CODEC_PRIORITY is supported."""

CodecCheck = Callable[[CodecOption], bool]


def _encoder_available(name: str) -> bool:
    try:
        av.Codec(name, "w")
    except (ValueError, FFmpegError):
        return False
    return True


def codec_supported(option: CodecOption) -> bool:
    """True when PyAV can encode both streams of ``option``."""
    if not _encoder_available(option.video_codec):
        return False
    return option.audio_codec is None or _encoder_available(option.audio_codec)


PREFERRED_AUDIO_RATE = 48000
AUDIO_LAYOUT = "stereo"


def encoder_sample_rate(codec, source_rate: int) -> int:
    """Keeps the microphone rate when the encoder accepts it, else picks one it does (Opus has no 44.1 kHz)."""
    rates = getattr(codec, "audio_rates", None)
    if not rates or source_rate in rates:
        return source_rate
    return PREFERRED_AUDIO_RATE if PREFERRED_AUDIO_RATE in rates else max(rates)


def negotiate_codec(
    codec_check: CodecCheck = codec_supported,
    priority: Sequence[CodecOption] = CODEC_PRIORITY,
    default: CodecOption = DEFAULT_CODEC,
) -> CodecOption:
    for option in priority:
        if codec_check(option):
            logger.info("Negotiated recording codec %s", option.label)
            return option
        logger.debug("Recording codec %s not supported; trying next...", option.label)
    logger.info("No preferred recording codec supported; falling back to %s", default.label)
    return default
