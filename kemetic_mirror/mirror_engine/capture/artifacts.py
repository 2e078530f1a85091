# kemetic_mirror/mirror_engine/capture/artifacts.py
import logging
import time
from pathlib import Path

logger = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "kemetic-snap"
VIDEO_PREFIX = "kemetic-video"
TRANSMUTE_PREFIX = "kemetic-transmute"


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def artifact_name(prefix: str, extension: str, timestamp: int = None) -> str:
    return f"{prefix}-{timestamp if timestamp is not None else timestamp_ms()}.{extension}"


def export_artifact(data: bytes, output_dir, filename: str) -> Path:
    """Writes ``data`` into ``output_dir`` (created on demand) and returns the file path."""
    directory = Path(output_dir).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_bytes(data)
    logger.info("Exported %s (%d bytes)", path, len(data))
    return path
