# kemetic_mirror/mirror_engine/rendering/render_loop.py
import asyncio
import logging
import time
from typing import Callable, Optional

from ..camera.camera_manager import ACQUISITION_ERROR
from ..common.enums import LoopState, OverlayStatus
from ..common.errors import CameraAcquisitionError
from ..common.models import FrameMetadata, TickResult
from ..overlay.variants import OverlaySelection
from .compositor import Compositor
from .surface import FrameSurface

logger = logging.getLogger(__name__)

FrameCallback = Callable[[FrameSurface, FrameMetadata, TickResult], None]


class RenderLoop:
    """Drives compositor ticks at the display cadence and owns the camera lifecycle.

    Ticks are strictly sequential: the landmark detection awaited inside a
    tick finishes before the next one is scheduled, so a slow detector lowers
    the frame rate instead of drawing an overlay from a different frame.
    """

    def __init__(
        self,
        camera_factory: Callable[[], object],
        compositor: Compositor,
        selection: OverlaySelection,
        config: dict,
        on_frame: Optional[FrameCallback] = None,
    ):
        self.config = config
        self._camera_factory = camera_factory
        self._compositor = compositor
        self._selection = selection
        self._on_frame = on_frame
        self._refresh_period = 1.0 / float(config.get('refresh_hz', 60))
        self._first_frame_timeout = float(config.get('first_frame_timeout_s', 5.0))

        self.surface = FrameSurface()
        self.state = LoopState.IDLE
        self.error: Optional[str] = None
        self.camera = None
        self.ticks = 0
        self.last_result: Optional[TickResult] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._stop_requested = False

    def is_live(self) -> bool:
        return self.state is LoopState.RUNNING and not self._stop_requested

    def stop(self):
        """Requests teardown; the pending scheduled wait is woken immediately."""
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()

    def _transition(self, state: LoopState):
        logger.info("Render loop %s -> %s", self.state.value, state.value)
        self.state = state

    def _fail(self, message: str):
        self.error = message
        logger.error("Render loop stopped: %s", message)
        self._transition(LoopState.STOPPED)

    async def run(self):
        """Acquires the camera, ticks until stopped, then releases the camera."""
        if self.state is not LoopState.IDLE:
            raise RuntimeError(f"RenderLoop cannot run from state {self.state.value}")
        self._stop_event = asyncio.Event()
        if self._stop_requested:
            self._stop_event.set()
        self._transition(LoopState.STARTING)

        try:
            self.camera = self._camera_factory()
            self.camera.start()
        except CameraAcquisitionError as e:
            self.camera = None
            self._fail(str(e) or ACQUISITION_ERROR)
            return

        try:
            if not await self._wait_for_first_frame():
                if self._stop_requested:
                    self._transition(LoopState.STOPPED)
                else:
                    self._fail("The camera did not deliver any frames.")
                return
            self._transition(LoopState.RUNNING)
            await self._tick_forever()
        finally:
            self._release()
            if self.state is not LoopState.STOPPED:
                self._transition(LoopState.STOPPED)

    async def _wait_for_first_frame(self) -> bool:
        deadline = time.perf_counter() + self._first_frame_timeout
        while not self._stop_requested:
            frame, _ = self.camera.get_frame()
            if frame is not None:
                return True
            if time.perf_counter() >= deadline or not self.camera.is_running():
                return False
            await self._sleep(0.01)
        return False

    async def _tick_forever(self):
        loop = asyncio.get_running_loop()
        last_frame_id = 0
        next_deadline = loop.time()
        while not self._stop_requested:
            if not self.camera.is_running():
                self._fail("Camera stream was lost.")
                return

            frame, metadata = self.camera.get_frame()
            if frame is not None and metadata.frame_id > last_frame_id:
                last_frame_id = metadata.frame_id
                await self._tick(frame, metadata)

            next_deadline += self._refresh_period
            delay = next_deadline - loop.time()
            if delay < 0:
                # Fell behind (slow detector); resume the cadence from now.
                next_deadline = loop.time()
                delay = 0.0
            await self._sleep(delay)

        self._transition(LoopState.STOPPED)

    async def _tick(self, frame, metadata: FrameMetadata):
        variant = self._selection.current
        try:
            result = await self._compositor.render_tick(
                frame, self.surface, variant, metadata=metadata, is_live=self.is_live
            )
        except Exception as e:
            logger.debug("Compositor tick failed on frame %d: %s", metadata.frame_id, e)
            result = TickResult(frame_id=metadata.frame_id, status=OverlayStatus.SKIPPED, error=str(e))
        self.ticks += 1
        self.last_result = result
        if self._on_frame is not None and self.is_live():
            self._on_frame(self.surface, metadata, result)

    async def _sleep(self, delay: float):
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    def _release(self):
        if self.camera is not None:
            self.camera.stop()
            self.camera = None
