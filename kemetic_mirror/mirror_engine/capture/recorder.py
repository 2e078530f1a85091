# kemetic_mirror/mirror_engine/capture/recorder.py
import logging
import time
from pathlib import Path
from typing import Callable, Optional, Sequence

import cv2

from ..common.errors import RecordingAlreadyActive, RecordingError
from ..rendering.surface import FrameSurface
from .artifacts import VIDEO_PREFIX, artifact_name, export_artifact
from .codecs import CodecCheck, negotiate_codec, codec_supported
from .encoder import PyAVStreamEncoder, StreamEncoder
from .session import CaptureSession

logger = logging.getLogger(__name__)


class Recorder:
    """Records the compositor's surface, plus the first microphone track, into one video file.

    The recorder only reads the surface. Frames are sampled on a fixed-rate
    timeline, so ticks arriving faster than ``record_fps`` are skipped.
    """

    def __init__(
        self,
        config: dict,
        encoder_factory: Callable[[], StreamEncoder] = PyAVStreamEncoder,
        codec_check: CodecCheck = codec_supported,
    ):
        self.config = config
        self.output_dir = config.get('output_dir', 'captures')
        self.fps = int(config.get('record_fps', 30))
        self._encoder_factory = encoder_factory
        self._codec_check = codec_check
        self.session: Optional[CaptureSession] = None
        self._encoder: Optional[StreamEncoder] = None
        self._audio_track = None

    @property
    def is_recording(self) -> bool:
        return self.session is not None

    @property
    def elapsed(self) -> float:
        return self.session.elapsed if self.session is not None else 0.0

    def start(self, surface: FrameSurface, audio_tracks: Sequence = ()) -> CaptureSession:
        """Opens a capture session and encodes the current surface as its first frame."""
        if self.session is not None:
            raise RecordingAlreadyActive("A recording is already in progress.")
        if surface.is_empty:
            raise RecordingError("There is no video to record yet.")

        option = negotiate_codec(self._codec_check)
        # yuv420p needs even dimensions.
        size = (surface.width - surface.width % 2, surface.height - surface.height % 2)
        audio_track = audio_tracks[0] if audio_tracks else None
        session = CaptureSession(codec=option, frame_size=size, fps=self.fps)

        encoder = self._encoder_factory()
        encoder.open(
            option,
            size,
            self.fps,
            session.append_chunk,
            audio_rate=audio_track.sample_rate if audio_track is not None else None,
        )
        if audio_track is not None:
            audio_track.drain()

        self.session = session
        self._encoder = encoder
        self._audio_track = audio_track
        logger.info("Recording started (%s, %dx%d @ %d fps).", option.label, size[0], size[1], self.fps)
        self.capture_frame(surface, now=session.started_at)
        return session

    def capture_frame(self, surface: FrameSurface, now: Optional[float] = None) -> bool:
        """Encodes the surface if a new slot on the session timeline has started."""
        session = self.session
        if session is None or surface.is_empty:
            return False
        pts = session.pts_for(time.monotonic() if now is None else now)
        if session.last_pts is not None and pts <= session.last_pts:
            return False

        width, height = session.frame_size
        frame = surface.snapshot()
        if (frame.shape[1], frame.shape[0]) != (width, height):
            if frame.shape[1] >= width and frame.shape[0] >= height:
                frame = frame[:height, :width].copy()
            else:
                frame = cv2.resize(frame, (width, height), interpolation=cv2.INTER_AREA)

        try:
            self._encoder.encode_video(frame, pts)
            if self._audio_track is not None:
                for audio_frame in self._audio_track.drain():
                    self._encoder.encode_audio(audio_frame)
        except RecordingError:
            self._discard()
            raise
        session.last_pts = pts
        session.frames_written += 1
        return True

    def stop(self) -> Path:
        """Finalizes the session into ``kemetic-video-<timestamp>.<ext>`` and discards it."""
        session = self.session
        if session is None:
            raise RecordingError("No recording is in progress.")
        try:
            self._encoder.close()
        finally:
            self.session = None
            self._encoder = None
            self._audio_track = None

        data = session.finalize()
        if not data:
            raise RecordingError("The recording produced no data.")
        try:
            path = export_artifact(data, self.output_dir, artifact_name(VIDEO_PREFIX, session.codec.extension))
        except OSError as e:
            raise RecordingError(f"Could not save recording: {e}") from e
        logger.info(
            "Recording stopped after %.1fs: %d frames, %d chunks.",
            session.elapsed, session.frames_written, len(session.chunks),
        )
        return path

    def _discard(self):
        encoder = self._encoder
        self.session = None
        self._encoder = None
        self._audio_track = None
        if encoder is not None:
            try:
                encoder.close()
            except RecordingError as e:
                logger.debug("Ignoring flush error while discarding recording: %s", e)
        logger.warning("Recording discarded after an encoding failure.")
