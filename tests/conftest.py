# tests/conftest.py
"""Shared fixtures and fakes for the test suite."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "kemetic_mirror"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from mirror_engine.common.models import FrameMetadata, LandmarkSet  # noqa: E402
from mirror_engine.landmarks import indices as idx  # noqa: E402
from mirror_engine.landmarks.provider import LandmarkProvider  # noqa: E402

FRAME_WIDTH = 640
FRAME_HEIGHT = 480


def make_face(width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT, count: int = idx.FACE_MESH_POINTS) -> LandmarkSet:
    """A plausible frontal face in the middle of the frame, in unmirrored pixels."""
    cx, cy = width / 2, height / 2
    points = np.zeros((count, 3), dtype=np.float64)
    points[:, 0] = cx
    points[:, 1] = cy
    anchors = {
        idx.FOREHEAD_TOP: (cx, cy - 90),
        idx.CHIN: (cx, cy + 90),
        idx.LEFT_CHEEK: (cx - 70, cy),
        idx.RIGHT_CHEEK: (cx + 70, cy),
        idx.LEFT_TEMPLE: (cx - 65, cy - 50),
        idx.RIGHT_TEMPLE: (cx + 65, cy - 50),
    }
    for index, (x, y) in anchors.items():
        if index < count:
            points[index, :2] = (x, y)
    for contour, eye_x in ((idx.LEFT_EYE_CONTOUR, cx - 35), (idx.RIGHT_EYE_CONTOUR, cx + 35)):
        for position, index in enumerate(contour):
            angle = 2 * np.pi * position / len(contour)
            if index < count:
                points[index, :2] = (eye_x + 15 * np.cos(angle), cy - 25 + 6 * np.sin(angle))
    return LandmarkSet.from_points(points)


def make_frame(width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT) -> np.ndarray:
    """A horizontal ramp so mirroring is observable."""
    ramp = np.linspace(0, 255, width, dtype=np.float64).astype(np.uint8)
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :, 0] = ramp
    frame[:, :, 1] = 60
    frame[:, :, 2] = 255 - ramp
    return frame


class FakeProvider(LandmarkProvider):
    """Returns a fixed face, or raises on the calls listed in ``fail_on``."""

    def __init__(self, faces: Optional[List] = None, fail_on=()):
        self.faces = [make_face()] if faces is None else faces
        self.fail_on = set(fail_on)
        self.calls = 0
        self.closed = False

    async def detect(self, frame):
        self.calls += 1
        if self.calls in self.fail_on:
            raise RuntimeError(f"detector hiccup on call {self.calls}")
        return list(self.faces)

    def close(self):
        self.closed = True


class FakeCamera:
    """Stands in for CameraManager: every read yields a new frame id."""

    def __init__(self, frame: Optional[np.ndarray] = None, frames_before_loss: Optional[int] = None, deliver=True):
        self.frame = make_frame() if frame is None else frame
        self.frames_before_loss = frames_before_loss
        self.deliver = deliver
        self.frame_id = 0
        self.running = False
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True
        self.running = True
        return self

    def stop(self):
        self.running = False
        self.stopped = True

    def is_running(self) -> bool:
        return self.running

    def get_frame(self):
        if not self.deliver:
            return None, None
        if self.frames_before_loss is not None and self.frame_id >= self.frames_before_loss:
            self.running = False
            return None, None
        self.frame_id += 1
        metadata = FrameMetadata(
            frame_id=self.frame_id,
            timestamp=float(self.frame_id),
            source_resolution=(self.frame.shape[1], self.frame.shape[0]),
        )
        return self.frame.copy(), metadata

    def audio_tracks(self):
        return []


@pytest.fixture
def face() -> LandmarkSet:
    return make_face()


@pytest.fixture
def frame() -> np.ndarray:
    return make_frame()
