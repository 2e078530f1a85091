# kemetic_mirror/mirror_engine/controls.py
import asyncio
import logging
from typing import Optional

from .capture.artifacts import TRANSMUTE_PREFIX, artifact_name, export_artifact, timestamp_ms
from .capture.recorder import Recorder
from .capture.snapshot import encode_jpeg, take_snapshot
from .common.enums import LoopState
from .common.errors import CaptureError, GenerationError, RecordingError
from .overlay.catalog import accessory_for, variant_for_hotkey
from .overlay.variants import OverlaySelection, OverlayVariant
from .oracle.archetypes import Archetype
from .oracle.gemini_client import OracleClient
from .rendering.render_loop import RenderLoop
from .rendering.surface import FrameSurface

logger = logging.getLogger(__name__)

RECORDING_FAILED = "Video recording failed. Your system may not support this feature."
SPELL_FIZZLED = "The spell fizzled. Please try again."


class ControlPanel:
    """Keyboard commands for the mirror, disabled where the action is not allowed right now."""

    def __init__(
        self,
        render_loop: RenderLoop,
        selection: OverlaySelection,
        recorder: Recorder,
        capture_config: dict,
        oracle: Optional[OracleClient] = None,
        archetype: Optional[Archetype] = None,
    ):
        self.render_loop = render_loop
        self.selection = selection
        self.recorder = recorder
        self.output_dir = capture_config.get('output_dir', 'captures')
        self.snapshot_quality = int(capture_config.get('snapshot_quality', 90))
        self.oracle = oracle
        self.archetype = archetype
        self.status: Optional[str] = None
        self.quit_requested = False
        self._transmute_task: Optional[asyncio.Task] = None

    @property
    def stream_active(self) -> bool:
        return self.render_loop.state is LoopState.RUNNING

    @property
    def is_transmuting(self) -> bool:
        return self._transmute_task is not None and not self._transmute_task.done()

    def can_snapshot(self) -> bool:
        return self.stream_active and not self.recorder.is_recording and not self.is_transmuting

    def can_toggle_recording(self) -> bool:
        return self.stream_active and not self.is_transmuting

    def can_transmute(self) -> bool:
        return (
            self.oracle is not None
            and self.archetype is not None
            and self.stream_active
            and not self.recorder.is_recording
            and not self.is_transmuting
        )

    def handle_key(self, key: Optional[str]) -> None:
        if not key:
            return
        if key in ("q", "\x1b"):
            self.quit()
            return
        variant = variant_for_hotkey(key)
        if variant is not None:
            self.select(variant)
        elif key == "s":
            self.snapshot()
        elif key == "r":
            self.toggle_recording()
        elif key == "t":
            self.transmute()

    def select(self, variant: OverlayVariant) -> None:
        variant = self.selection.select(variant)
        accessory = accessory_for(variant)
        logger.info("Overlay selected: %s", accessory.name if accessory else "none")

    def quit(self) -> None:
        self.quit_requested = True
        if self.recorder.is_recording:
            self.toggle_recording()
        self.render_loop.stop()

    def on_frame(self, surface: FrameSurface) -> None:
        """Feeds a finished surface to the recorder, if a recording is running."""
        if not self.recorder.is_recording:
            return
        try:
            self.recorder.capture_frame(surface)
        except RecordingError as e:
            logger.error("Recording aborted: %s", e)
            self.status = RECORDING_FAILED

    def snapshot(self):
        if not self.can_snapshot():
            return None
        try:
            path = take_snapshot(self.render_loop.surface, self.output_dir, self.snapshot_quality)
        except CaptureError as e:
            logger.error("Snapshot failed: %s", e)
            self.status = str(e)
            return None
        self.status = f"Snapshot saved: {path.name}"
        return path

    def toggle_recording(self):
        if self.recorder.is_recording:
            try:
                path = self.recorder.stop()
            except RecordingError as e:
                logger.error("Recording could not be saved: %s", e)
                self.status = RECORDING_FAILED
                return None
            self.status = f"Video saved: {path.name}"
            return path

        if not self.can_toggle_recording():
            return None
        camera = self.render_loop.camera
        audio_tracks = camera.audio_tracks() if camera is not None else []
        try:
            self.recorder.start(self.render_loop.surface, audio_tracks)
        except RecordingError as e:
            logger.error("Recording failed to start: %s", e)
            self.status = RECORDING_FAILED
            return None
        self.status = None
        return self.recorder.session

    def transmute(self) -> Optional[asyncio.Task]:
        if not self.can_transmute():
            return None
        camera = self.render_loop.camera
        frame, _ = camera.get_frame() if camera is not None else (None, None)
        if frame is None:
            return None
        # The service edits the plain camera frame: unmirrored, no overlay.
        jpeg = encode_jpeg(frame, quality=80)
        self.status = "Transmuting..."
        self._transmute_task = asyncio.get_running_loop().create_task(self._transmute(jpeg))
        return self._transmute_task

    async def _transmute(self, jpeg: bytes):
        try:
            result = await self.oracle.transmute(jpeg, self.archetype)
        except GenerationError as e:
            logger.error("Transmutation failed: %s", e)
            self.status = SPELL_FIZZLED
            return None

        stamp = timestamp_ms()
        extension = "jpg" if result.mime_type == "image/jpeg" else "png"
        try:
            image_path = export_artifact(result.image, self.output_dir, artifact_name(TRANSMUTE_PREFIX, extension, stamp))
            export_artifact(
                result.oracle_text.encode("utf-8"), self.output_dir, artifact_name(TRANSMUTE_PREFIX, "txt", stamp)
            )
        except OSError as e:
            logger.error("Could not save transmutation: %s", e)
            self.status = SPELL_FIZZLED
            return None
        self.status = result.oracle_text
        return image_path
