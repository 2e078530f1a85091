# kemetic_mirror/mirror_engine/camera/audio_track.py
import logging
import sys
import threading
from collections import deque
from typing import List

import av
from av.error import FFmpegError

from ..common.errors import CameraAcquisitionError

logger = logging.getLogger(__name__)

DEFAULT_INPUT_FORMATS = {
    "linux": ("pulse", "default"),
    "darwin": ("avfoundation", ":0"),
    "win32": ("dshow", "audio=default"),
}


class AudioTrack:
    """Microphone capture through FFmpeg's device demuxers, decoded on a reader thread.

    Decoded ``av.AudioFrame`` objects queue up until the recorder drains them.
    """

    def __init__(self, config: dict):
        default_format, default_device = DEFAULT_INPUT_FORMATS.get(sys.platform, ("pulse", "default"))
        self._format = config.get('format') or default_format
        self._device = config.get('device') or default_device
        try:
            self._container = av.open(self._device, format=self._format, options=config.get('options') or {})
            self._stream = self._container.streams.audio[0]
        except (FFmpegError, OSError, ValueError, IndexError) as e:
            raise CameraAcquisitionError(
                f"Could not access microphone '{self._device}' ({self._format}). Please check permissions."
            ) from e

        self._frames = deque(maxlen=config.get('buffer_frames', 500))
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._update, daemon=True)
        self._running = False

    @property
    def sample_rate(self) -> int:
        return self._stream.rate

    @property
    def layout(self) -> str:
        return self._stream.layout.name

    def _update(self):
        try:
            for frame in self._container.decode(self._stream):
                if not self._running:
                    break
                with self._lock:
                    self._frames.append(frame)
        except FFmpegError as e:
            if self._running:
                logger.warning("Microphone capture ended: %s", e)

    def drain(self) -> List[av.AudioFrame]:
        """Returns and forgets every frame decoded since the previous call."""
        with self._lock:
            frames = list(self._frames)
            self._frames.clear()
        return frames

    def start(self):
        self._running = True
        self._thread.start()
        logger.info("Microphone capture started (%s %s, %d Hz).", self._format, self._device, self.sample_rate)

    def stop(self):
        self._running = False
        if self._thread.is_alive():
            self._thread.join(timeout=1.0)
        self._container.close()
