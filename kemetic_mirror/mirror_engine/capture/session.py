# kemetic_mirror/mirror_engine/capture/session.py
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .codecs import CodecOption


@dataclass
class CaptureSession:
    """State of one recording: encoded chunks in arrival order plus timing."""

    codec: CodecOption
    frame_size: tuple
    fps: int
    started_at: float = field(default_factory=time.monotonic)
    chunks: List[bytes] = field(default_factory=list)
    frames_written: int = 0
    last_pts: Optional[int] = None

    def append_chunk(self, data) -> int:
        """Sink for encoder output; empty writes are dropped."""
        if data:
            self.chunks.append(bytes(data))
        return len(data)

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started_at

    @property
    def byte_size(self) -> int:
        return sum(len(chunk) for chunk in self.chunks)

    def pts_for(self, now: float) -> int:
        """Frame index on the session's fixed-rate timeline for a monotonic timestamp."""
        return int((now - self.started_at) * self.fps)

    def finalize(self) -> bytes:
        return b"".join(self.chunks)


def format_elapsed(seconds: float) -> str:
    """Formats a duration the way the REC indicator shows it, e.g. ``1:05``."""
    whole = int(max(0, seconds))
    return f"{whole // 60}:{whole % 60:02d}"
