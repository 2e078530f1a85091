# kemetic_mirror/mirror_engine/capture/snapshot.py
from pathlib import Path

import cv2

from ..common.errors import SnapshotError
from ..rendering.surface import FrameSurface
from .artifacts import SNAPSHOT_PREFIX, artifact_name, export_artifact


def encode_jpeg(pixels, quality: int = 90) -> bytes:
    ok, buffer = cv2.imencode(".jpg", pixels, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise SnapshotError("Could not encode the frame as JPEG.")
    return buffer.tobytes()


def take_snapshot(surface: FrameSurface, output_dir, quality: int = 90) -> Path:
    """Exports what is currently on the surface, overlay included, as a JPEG."""
    if surface.is_empty:
        raise SnapshotError("There is no frame to capture yet.")
    data = encode_jpeg(surface.snapshot(), quality)
    try:
        return export_artifact(data, output_dir, artifact_name(SNAPSHOT_PREFIX, "jpg"))
    except OSError as e:
        raise SnapshotError(f"Could not save snapshot: {e}") from e
