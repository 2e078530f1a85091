# kemetic_mirror/mirror_engine/common/models.py
import numpy as np
from pydantic import BaseModel, ValidationError, field_validator
from typing import Iterable, Optional, Tuple
from .enums import OverlayStatus
from .errors import InvalidLandmarkSet

class FrameMetadata(BaseModel):
    """Metadata associated with a single camera frame."""
    frame_id: int
    timestamp: float
    source_resolution: Tuple[int, int]

class LandmarkSet(BaseModel):
    """All keypoints of one detected face, in source-frame pixel coordinates.

    ``points`` is an (N, 3) float array indexed by the provider's canonical
    indices. Anything else is rejected so that a set is either complete or
    absent.
    """
    points: np.ndarray

    class Config:
        arbitrary_types_allowed = True

    @field_validator("points", mode="before")
    @classmethod
    def _validate_points(cls, value):
        try:
            points = np.array(value, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ValueError(f"landmarks are not numeric: {e}") from e
        if points.ndim != 2 or points.shape[1] != 3 or points.shape[0] == 0:
            raise ValueError(f"expected an (N, 3) landmark array, got shape {points.shape}")
        if not np.all(np.isfinite(points)):
            raise ValueError("landmark array contains non-finite values")
        points.flags.writeable = False
        return points

    @classmethod
    def from_points(cls, points) -> "LandmarkSet":
        """Builds a set from any array-like, raising InvalidLandmarkSet on bad input."""
        try:
            return cls(points=points)
        except ValidationError as e:
            raise InvalidLandmarkSet(str(e)) from e

    def __len__(self) -> int:
        return self.points.shape[0]

    def has(self, indices: Iterable[int]) -> bool:
        """True when every canonical index is present in this set."""
        count = len(self)
        return all(0 <= i < count for i in indices)

    def xy(self, index: int) -> Tuple[float, float]:
        x, y, _ = self.points[index]
        return float(x), float(y)

class TickResult(BaseModel):
    """Summary of one compositor tick, consumed by the HUD."""
    frame_id: int = 0
    status: OverlayStatus
    detection_ms: float = 0.0
    overlay_drawn: bool = False
    error: Optional[str] = None
