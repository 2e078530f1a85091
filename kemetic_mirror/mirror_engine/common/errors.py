# kemetic_mirror/mirror_engine/common/errors.py
"""Domain-specific exceptions for the mirror engine."""


class MirrorError(Exception):
    """Base exception for every failure raised by the engine."""


class ConfigError(MirrorError):
    """Raised when the YAML configuration is missing or malformed."""


class CameraAcquisitionError(MirrorError, IOError):
    """Raised when the camera (or its paired microphone) cannot be opened."""


class InvalidLandmarkSet(MirrorError, ValueError):
    """Raised when a landmark array is not a complete N x 3 point set."""


class CaptureError(MirrorError):
    """Base exception for snapshot and recording failures."""


class SnapshotError(CaptureError):
    """Raised when the surface cannot be encoded or written as a still image."""


class RecordingError(CaptureError):
    """Raised when a recording session cannot be started or finalized."""


class NoSupportedCodec(RecordingError):
    """Raised when no container/codec pair can be opened for writing."""


class RecordingAlreadyActive(RecordingError):
    """Raised when a second session is requested while one is active."""


class GenerationError(MirrorError):
    """Raised when the generative service returns no usable result."""
