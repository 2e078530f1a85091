# kemetic_mirror/mirror_engine/capture/encoder.py
import logging
from abc import ABC, abstractmethod
from fractions import Fraction
from typing import Callable, Optional

import av
import numpy as np
from av.error import FFmpegError

from ..common.errors import NoSupportedCodec, RecordingError
from .codecs import AUDIO_LAYOUT, CodecOption, encoder_sample_rate

logger = logging.getLogger(__name__)

ChunkSink = Callable[[bytes], int]


class StreamEncoder(ABC):
    """Encodes video (and optionally audio) into a container, emitting bytes to a sink."""

    @abstractmethod
    def open(self, option: CodecOption, size: tuple, fps: int, sink: ChunkSink, audio_rate: Optional[int] = None):
        ...

    @abstractmethod
    def encode_video(self, frame_bgr: np.ndarray, pts: int):
        ...

    @abstractmethod
    def encode_audio(self, frame):
        ...

    @abstractmethod
    def close(self):
        """Flushes every pending packet into the sink and closes the container."""
        ...


class _SinkWriter:
    """Minimal write-only file object; PyAV treats it as a non-seekable output."""

    def __init__(self, sink: ChunkSink):
        self._sink = sink

    def write(self, data) -> int:
        return self._sink(bytes(data))


class PyAVStreamEncoder(StreamEncoder):
    """FFmpeg encoding through PyAV into an in-memory chunk sink."""

    def __init__(self):
        self._container = None
        self._video = None
        self._audio = None
        self._resampler = None
        self._audio_samples = 0

    def open(self, option: CodecOption, size: tuple, fps: int, sink: ChunkSink, audio_rate: Optional[int] = None):
        width, height = size
        try:
            self._container = av.open(
                _SinkWriter(sink), mode="w", format=option.container, options=dict(option.container_options)
            )
            self._video = self._container.add_stream(option.video_codec, rate=fps)
            self._video.width = width
            self._video.height = height
            self._video.pix_fmt = option.pix_fmt
            self._video.codec_context.time_base = Fraction(1, fps)
            if audio_rate and option.audio_codec:
                self._open_audio(option.audio_codec, audio_rate)
        except (FFmpegError, ValueError, OSError) as e:
            self._abort()
            raise NoSupportedCodec(f"Could not open {option.label} encoder: {e}") from e
        logger.info(
            "Opened %s encoder size=%s fps=%d audio=%s", option.label, size, fps, self._audio is not None
        )

    def _open_audio(self, codec_name: str, source_rate: int):
        codec = av.Codec(codec_name, "w")
        rate = encoder_sample_rate(codec, source_rate)
        self._audio = self._container.add_stream(codec_name, rate=rate)
        context = self._audio.codec_context
        context.layout = AUDIO_LAYOUT
        context.time_base = Fraction(1, rate)
        # Microphone frames arrive in the device's format, layout and rate.
        sample_format = context.format.name if context.format is not None else codec.audio_formats[0].name
        self._resampler = av.AudioResampler(format=sample_format, layout=AUDIO_LAYOUT, rate=rate)
        self._audio_samples = 0
        if rate != source_rate:
            logger.info("Resampling microphone audio from %d Hz to %d Hz for %s", source_rate, rate, codec_name)

    def encode_video(self, frame_bgr: np.ndarray, pts: int):
        frame = av.VideoFrame.from_ndarray(frame_bgr, format="bgr24")
        frame.pts = pts
        try:
            for packet in self._video.encode(frame):
                self._container.mux(packet)
        except (FFmpegError, ValueError) as e:
            raise RecordingError(f"Video encoding failed: {e}") from e

    def encode_audio(self, frame):
        if self._audio is None:
            return
        frame.pts = None
        try:
            self._encode_resampled(self._resampler.resample(frame))
        except (FFmpegError, ValueError) as e:
            raise RecordingError(f"Audio encoding failed: {e}") from e

    def _encode_resampled(self, frames):
        for frame in frames:
            frame.pts = self._audio_samples
            frame.time_base = Fraction(1, frame.sample_rate)
            self._audio_samples += frame.samples
            for packet in self._audio.encode(frame):
                self._container.mux(packet)

    def close(self):
        try:
            if self._resampler is not None:
                self._encode_resampled(self._resampler.resample(None))
            for stream in (self._video, self._audio):
                if stream is not None:
                    for packet in stream.encode(None):
                        self._container.mux(packet)
        except (FFmpegError, ValueError) as e:
            raise RecordingError(f"Failed to flush recording: {e}") from e
        finally:
            self._abort()

    def _abort(self):
        if self._container is not None:
            self._container.close()
        self._container = self._video = self._audio = self._resampler = None
