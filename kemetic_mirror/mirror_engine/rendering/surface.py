# kemetic_mirror/mirror_engine/rendering/surface.py
import numpy as np


class FrameSurface:
    """The BGR raster the compositor draws into every tick.

    Only the compositor writes to ``pixels``; capture and display work on
    copies taken with ``snapshot``.
    """

    def __init__(self, width: int = 0, height: int = 0):
        self.pixels = np.zeros((height, width, 3), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def is_empty(self) -> bool:
        return self.pixels.size == 0

    def ensure_size(self, width: int, height: int) -> bool:
        """Reallocates the raster when the source dimensions change. Returns True if it did."""
        if self.width == width and self.height == height:
            return False
        self.pixels = np.zeros((height, width, 3), dtype=np.uint8)
        return True

    def snapshot(self) -> np.ndarray:
        return self.pixels.copy()
