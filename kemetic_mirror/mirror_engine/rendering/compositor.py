# kemetic_mirror/mirror_engine/rendering/compositor.py
import logging
import time
from typing import Callable, Optional

import cv2
import numpy as np

from ..common.enums import OverlayStatus
from ..common.models import FrameMetadata, LandmarkSet, TickResult
from ..landmarks.provider import LandmarkProvider
from ..overlay.geometry import build_geometry
from ..overlay.variants import OverlayVariant
from .overlay_renderer import draw_shapes
from .surface import FrameSurface

logger = logging.getLogger(__name__)


class Compositor:
    """Draws one mirrored frame plus the selected overlay per tick.

    Keeps no state between ticks apart from the provider reference, which is
    assigned once the landmark model finishes loading.
    """

    def __init__(self, provider: Optional[LandmarkProvider] = None):
        self.provider = provider

    async def render_tick(
        self,
        frame: np.ndarray,
        surface: FrameSurface,
        variant: OverlayVariant,
        metadata: Optional[FrameMetadata] = None,
        is_live: Optional[Callable[[], bool]] = None,
    ) -> TickResult:
        """Mirrors ``frame`` into ``surface`` and draws the overlay on top.

        Detection and drawing failures are contained here: the frame is left
        without an overlay and the outcome is reported in the TickResult.
        """
        variant = OverlayVariant(variant)
        frame_id = metadata.frame_id if metadata is not None else 0
        height, width = frame.shape[:2]
        surface.ensure_size(width, height)
        np.copyto(surface.pixels, cv2.flip(frame, 1))

        if variant is OverlayVariant.NONE:
            return TickResult(frame_id=frame_id, status=OverlayStatus.NO_OVERLAY)
        if self.provider is None:
            return TickResult(frame_id=frame_id, status=OverlayStatus.MODEL_LOADING)

        start_time = time.perf_counter()
        try:
            faces = await self.provider.detect(frame)
        except Exception as e:
            logger.debug("Landmark detection failed on frame %d: %s", frame_id, e)
            return TickResult(frame_id=frame_id, status=OverlayStatus.DETECTION_ERROR, error=str(e))
        detection_ms = (time.perf_counter() - start_time) * 1000

        if is_live is not None and not is_live():
            return TickResult(frame_id=frame_id, status=OverlayStatus.STALE, detection_ms=detection_ms)
        if faces is None:
            faces = []
        if not isinstance(faces, (list, tuple)):
            logger.debug("Provider returned %s instead of a list of faces", type(faces).__name__)
            return TickResult(frame_id=frame_id, status=OverlayStatus.SKIPPED, detection_ms=detection_ms)
        if not faces:
            return TickResult(frame_id=frame_id, status=OverlayStatus.SEARCHING, detection_ms=detection_ms)

        face = faces[0]
        if not isinstance(face, LandmarkSet):
            logger.debug("Provider returned %s instead of a LandmarkSet", type(face).__name__)
            return TickResult(frame_id=frame_id, status=OverlayStatus.SKIPPED, detection_ms=detection_ms)

        # Draw on a scratch copy so a failure never leaves half an overlay behind.
        canvas = surface.snapshot()
        try:
            description = build_geometry(variant, face, surface.width)
            if description.is_empty:
                return TickResult(frame_id=frame_id, status=OverlayStatus.SKIPPED, detection_ms=detection_ms)
            draw_shapes(canvas, description)
        except Exception as e:
            logger.debug("Overlay drawing failed on frame %d: %s", frame_id, e)
            return TickResult(frame_id=frame_id, status=OverlayStatus.SKIPPED, detection_ms=detection_ms, error=str(e))
        np.copyto(surface.pixels, canvas)

        return TickResult(
            frame_id=frame_id,
            status=OverlayStatus.TRACKING,
            detection_ms=detection_ms,
            overlay_drawn=True,
        )
