# kemetic_mirror/mirror_engine/overlay/variants.py
import threading
from enum import Enum


class OverlayVariant(str, Enum):
    """The selectable regalia. Values double as CLI and config names."""
    NONE = "none"
    HEADDRESS_STRIPED = "headdress_striped"
    HEADDRESS_CROWN = "headdress_crown"
    COLLAR = "collar"
    FACIAL_PAINT = "facial_paint"
    FULL_MASK = "full_mask"


class OverlaySelection:
    """Holds the currently selected variant for a long-running render loop.

    The loop reads ``current`` at the top of every tick, so changing the
    selection never requires restarting it.
    """

    def __init__(self, variant: OverlayVariant = OverlayVariant.NONE):
        self._lock = threading.Lock()
        self._variant = OverlayVariant(variant)

    @property
    def current(self) -> OverlayVariant:
        with self._lock:
            return self._variant

    def select(self, variant) -> OverlayVariant:
        variant = OverlayVariant(variant)
        with self._lock:
            self._variant = variant
        return variant
