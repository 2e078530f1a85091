# kemetic_mirror/mirror_engine/common/enums.py
from enum import Enum

class LoopState(str, Enum):
    """Lifecycle of the RenderLoop."""
    IDLE = "IDLE"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"

class OverlayStatus(str, Enum):
    """Outcome of the overlay stage of a single compositor tick."""
    NO_OVERLAY = "NO_OVERLAY"
    MODEL_LOADING = "MODEL_LOADING"
    SEARCHING = "SEARCHING"
    TRACKING = "TRACKING"
    SKIPPED = "SKIPPED"
    DETECTION_ERROR = "DETECTION_ERROR"
    STALE = "STALE"

class LogLevel(str, Enum):
    """Defines logging levels accepted by the configuration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
