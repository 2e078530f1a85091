# kemetic_mirror/mirror_engine/camera/camera_manager.py
import cv2
import logging
import time
import threading
import numpy as np
from collections import deque
from typing import List, Optional, Tuple
from ..common.errors import CameraAcquisitionError
from ..common.models import FrameMetadata
from .audio_track import AudioTrack

logger = logging.getLogger(__name__)

ACQUISITION_ERROR = "Could not access camera. Please check permissions."

class CameraManager:
    """Manages non-blocking camera I/O in a separate thread, plus an optional microphone."""

    def __init__(self, config: dict):
        self.config = config
        self._source = config['source']
        self._resolution = tuple(config['resolution'])
        self._target_fps = config['target_fps']
        self._max_failures = config.get('max_consecutive_failures', 50)
        self._cap = cv2.VideoCapture(self._source)
        if not self._cap.isOpened():
            self._cap.release()
            raise CameraAcquisitionError(f"{ACQUISITION_ERROR} (source: {self._source})")

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._resolution[0])
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._resolution[1])
        self._cap.set(cv2.CAP_PROP_FPS, self._target_fps)

        self._audio: Optional[AudioTrack] = None
        audio_config = config.get('audio') or {}
        if audio_config.get('enabled'):
            try:
                self._audio = AudioTrack(audio_config)
            except CameraAcquisitionError:
                self._cap.release()
                raise

        self._buffer = deque(maxlen=config.get('buffer_size', 5))
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._update, daemon=True)
        self._running = False
        self._lost = False
        self._frame_id = 0
        self._dropped_frames = 0

    def _update(self):
        """The frame-grabbing loop running in a dedicated thread."""
        consecutive_failures = 0
        while self._running:
            grabbed = self._cap.grab()
            if not grabbed:
                self._dropped_frames += 1
                consecutive_failures += 1
                if consecutive_failures >= self._max_failures:
                    logger.error("Camera stopped delivering frames after %d failed grabs.", consecutive_failures)
                    self._lost = True
                    self._running = False
                    break
                time.sleep(0.01)
                continue

            ret, frame = self._cap.retrieve()
            if ret:
                consecutive_failures = 0
                timestamp = time.perf_counter()
                self._frame_id += 1
                with self._lock:
                    self._buffer.append((frame, self._frame_id, timestamp))
            else:
                self._dropped_frames += 1

    def get_frame(self) -> Tuple[Optional[np.ndarray], Optional[FrameMetadata]]:
        """Returns the latest frame and its metadata from the buffer."""
        with self._lock:
            if not self._buffer:
                return None, None
            frame, frame_id, timestamp = self._buffer[-1]

        metadata = FrameMetadata(
            frame_id=frame_id,
            timestamp=timestamp,
            source_resolution=(frame.shape[1], frame.shape[0])
        )
        return frame.copy(), metadata

    def audio_tracks(self) -> List[AudioTrack]:
        return [self._audio] if self._audio is not None else []

    def get_stats(self) -> dict:
        """Returns camera health and performance statistics."""
        return {
            "is_running": self.is_running(),
            "lost": self._lost,
            "buffer_size": len(self._buffer),
            "dropped_frames": self._dropped_frames,
            "target_fps": self._target_fps,
            "has_audio": self._audio is not None,
            "actual_resolution": (self._cap.get(cv2.CAP_PROP_FRAME_WIDTH), self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        }

    def is_running(self) -> bool:
        return self._running

    @property
    def lost(self) -> bool:
        return self._lost

    def start(self):
        self._running = True
        self._thread.start()
        if self._audio is not None:
            self._audio.start()
        logger.info("CameraManager started (source=%s, resolution=%s).", self._source, self._resolution)
        return self

    def stop(self):
        self._running = False
        if self._thread.is_alive():
            self._thread.join()
        if self._audio is not None:
            self._audio.stop()
        self._cap.release()
        logger.info("CameraManager stopped and resources released.")

    def __enter__(self):
        """Context manager entry to start the camera thread."""
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit to gracefully stop and release resources."""
        self.stop()
