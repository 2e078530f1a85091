# kemetic_mirror/mirror_engine/landmarks/mediapipe_provider.py
import asyncio
import logging
from typing import List

import cv2
import mediapipe as mp
import numpy as np

from ..common.errors import InvalidLandmarkSet
from ..common.models import LandmarkSet
from .indices import FACE_MESH_POINTS, FACE_MESH_REFINED_POINTS
from .provider import LandmarkProvider

logger = logging.getLogger(__name__)


def landmarks_to_pixels(landmarks, width: int, height: int) -> np.ndarray:
    """Scales MediaPipe's normalized landmarks to frame pixels (z shares x's scale)."""
    return np.array([[lm.x * width, lm.y * height, lm.z * width] for lm in landmarks], dtype=np.float64)


class MediaPipeFaceMeshProvider(LandmarkProvider):
    """Single-face MediaPipe FaceMesh wrapped as an asynchronous LandmarkProvider."""

    def __init__(self, config: dict):
        self.config = config
        self.refine_landmarks = bool(config.get('refine_landmarks', False))
        self.expected_points = FACE_MESH_REFINED_POINTS if self.refine_landmarks else FACE_MESH_POINTS

        self.mp_face_mesh = mp.solutions.face_mesh
        self.face_mesh = self.mp_face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=self.refine_landmarks,
            min_detection_confidence=config['min_detection_confidence'],
            min_tracking_confidence=config['min_tracking_confidence'],
        )

    async def detect(self, frame: np.ndarray) -> List[LandmarkSet]:
        return await asyncio.to_thread(self._process, frame)

    def _process(self, frame: np.ndarray) -> List[LandmarkSet]:
        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        frame_rgb.flags.writeable = False
        results = self.face_mesh.process(frame_rgb)
        return self.to_landmark_sets(results, frame.shape[1], frame.shape[0])

    def to_landmark_sets(self, results, width: int, height: int) -> List[LandmarkSet]:
        """Converts FaceMesh results, dropping anything that is not one complete mesh."""
        faces = getattr(results, 'multi_face_landmarks', None)
        if not faces:
            return []

        landmarks = faces[0].landmark
        if len(landmarks) != self.expected_points:
            logger.debug("Discarding partial mesh with %d of %d points", len(landmarks), self.expected_points)
            return []

        try:
            return [LandmarkSet.from_points(landmarks_to_pixels(landmarks, width, height))]
        except InvalidLandmarkSet as e:
            logger.debug("Discarding malformed mesh: %s", e)
            return []

    def close(self):
        self.face_mesh.close()
