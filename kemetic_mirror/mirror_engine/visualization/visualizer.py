# kemetic_mirror/mirror_engine/visualization/visualizer.py
import cv2
import numpy as np
from pydantic import BaseModel
from typing import Optional, Tuple
from ..capture.session import format_elapsed
from ..common.enums import OverlayStatus
from ..common.models import TickResult
from ..overlay.catalog import Accessory

STATUS_LABELS = {
    OverlayStatus.NO_OVERLAY: "No artifact",
    OverlayStatus.MODEL_LOADING: "Loading AR Models...",
    OverlayStatus.SEARCHING: "Searching for a face",
    OverlayStatus.TRACKING: "Tracking",
    OverlayStatus.SKIPPED: "Tracking (frame skipped)",
    OverlayStatus.DETECTION_ERROR: "Tracking (detector hiccup)",
    OverlayStatus.STALE: "Stopping",
}

class HudState(BaseModel):
    """Everything besides the frame that the HUD shows."""
    fps: float = 0.0
    accessory: Optional[Accessory] = None
    recording_elapsed: Optional[float] = None
    status_message: Optional[str] = None
    transmuting: bool = False

class Visualizer:
    """Draws the heads-up display on a copy of the composited surface and shows the window."""

    def __init__(self, config: dict):
        self.config = config
        self.window_title = config.get('window_title', 'Kemetic Mirror')
        self.font = cv2.FONT_HERSHEY_SIMPLEX

    def render(self, surface_pixels: np.ndarray, result: Optional[TickResult], hud: HudState) -> np.ndarray:
        """Returns the display frame; ``surface_pixels`` itself is never modified."""
        output_frame = surface_pixels.copy()
        if self.config.get('draw_hud', True):
            self._draw_hud(output_frame, result, hud)
        return output_frame

    def render_message(self, message: str, size: Tuple[int, int] = (1280, 720), hint: Optional[str] = None) -> np.ndarray:
        """A dark screen with a centred message, used before the first frame and after fatal errors."""
        width, height = size
        frame = np.full((height, width, 3), 20, dtype=np.uint8)
        lines = [message] + ([hint] if hint else [])
        for i, text in enumerate(lines):
            (text_w, _), _ = cv2.getTextSize(text, self.font, 0.8, 2)
            origin = (max(10, (width - text_w) // 2), height // 2 + i * 40)
            color = (80, 80, 240) if i == 0 else (200, 200, 200)
            cv2.putText(frame, text, origin, self.font, 0.8, color, 2, cv2.LINE_AA)
        return frame

    def show(self, frame: np.ndarray) -> Optional[str]:
        """Displays ``frame`` and returns the pressed key, if any."""
        cv2.imshow(self.window_title, frame)
        key = cv2.waitKey(1) & 0xFF
        if key == 0xFF:
            return None
        return chr(key)

    def close(self):
        cv2.destroyAllWindows()

    def _draw_hud(self, frame: np.ndarray, result: Optional[TickResult], hud: HudState):
        hud_elements = [f"FPS: {hud.fps:.1f}"]
        if hud.accessory is not None:
            hud_elements.append(f"Artifact: {hud.accessory.name}")
            if result is not None:
                hud_elements.append(STATUS_LABELS.get(result.status, result.status.value))
                if result.detection_ms:
                    hud_elements.append(f"Detection: {result.detection_ms:.1f} ms")
        if hud.transmuting:
            hud_elements.append("Transmuting...")

        for i, text in enumerate(hud_elements):
            cv2.putText(frame, text, (10, 30 + i * 30), self.font, 0.7, (240, 240, 240), 2, cv2.LINE_AA)

        if hud.recording_elapsed is not None:
            self._draw_recording_indicator(frame, hud.recording_elapsed)

        footer = hud.status_message or (hud.accessory.historical_snippet if hud.accessory else None)
        if footer:
            self._draw_footer(frame, footer)

    def _draw_recording_indicator(self, frame: np.ndarray, elapsed: float):
        x = frame.shape[1] - 170
        cv2.circle(frame, (x, 28), 8, (40, 40, 230), -1, cv2.LINE_AA)
        cv2.putText(frame, f"REC {format_elapsed(elapsed)}", (x + 16, 36), self.font, 0.7, (220, 220, 255), 2, cv2.LINE_AA)

    def _draw_footer(self, frame: np.ndarray, text: str):
        height, width = frame.shape[:2]
        max_chars = max(20, width // 11)
        lines = [text[i:i + max_chars] for i in range(0, len(text), max_chars)][:3]
        top = height - 20 - 26 * len(lines)
        band = frame[max(0, top - 10):height]
        band[:] = (band * 0.4).astype(np.uint8)
        for i, line in enumerate(lines):
            cv2.putText(frame, line, (10, top + 16 + i * 26), self.font, 0.6, (200, 230, 250), 1, cv2.LINE_AA)
