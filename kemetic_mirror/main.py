# kemetic_mirror/main.py
import argparse
import asyncio
import logging
import os
import time
from collections import deque

from mirror_engine.camera.camera_manager import CameraManager
from mirror_engine.capture.recorder import Recorder
from mirror_engine.common.config import configure_logging, load_config
from mirror_engine.common.errors import ConfigError, GenerationError
from mirror_engine.controls import ControlPanel
from mirror_engine.landmarks.mediapipe_provider import MediaPipeFaceMeshProvider
from mirror_engine.landmarks.provider import load_landmark_provider
from mirror_engine.oracle.archetypes import ARCHETYPES, ArchetypeId
from mirror_engine.oracle.gemini_client import OracleClient
from mirror_engine.overlay.catalog import ACCESSORIES, accessory_for
from mirror_engine.overlay.variants import OverlaySelection, OverlayVariant
from mirror_engine.rendering.compositor import Compositor
from mirror_engine.rendering.render_loop import RenderLoop
from mirror_engine.visualization.visualizer import HudState, Visualizer

logger = logging.getLogger("kemetic_mirror")

DEFAULT_CONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.yaml')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Kemetic Mirror: live regalia overlays for your webcam.")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Path to the YAML configuration file.")
    parser.add_argument("--overlay", choices=[v.value for v in OverlayVariant], help="Overlay selected at start.")
    parser.add_argument("--log-level", help="Overrides logging.level from the configuration.")
    parser.add_argument("--list-overlays", action="store_true", help="Print the available overlays and exit.")
    return parser.parse_args(argv)


def print_overlays():
    print("0  none")
    for accessory in ACCESSORIES.values():
        print(f"{accessory.hotkey}  {accessory.variant.value:<18} {accessory.name} ({accessory.kind}): {accessory.description}")


def build_oracle(config: dict):
    try:
        oracle = OracleClient(config)
    except GenerationError as e:
        logger.warning("Transmutation disabled: %s", e)
        return None, None
    archetype = ARCHETYPES[ArchetypeId(config.get('archetype', ArchetypeId.PHARAOH.value))]
    return oracle, archetype


async def run_session(config: dict, selection: OverlaySelection, compositor: Compositor, visualizer: Visualizer) -> RenderLoop:
    """Runs the mirror until the user quits or the camera fails; returns the finished loop."""
    recorder = Recorder(config['capture'])
    oracle, archetype = build_oracle(config['oracle'])
    frame_times = deque(maxlen=100)
    panel = None

    def on_frame(surface, metadata, result):
        frame_times.append(time.perf_counter())
        span = frame_times[-1] - frame_times[0]
        fps = (len(frame_times) - 1) / span if span > 0 else 0.0

        panel.on_frame(surface)
        hud = HudState(
            fps=fps,
            accessory=accessory_for(selection.current),
            recording_elapsed=recorder.elapsed if recorder.is_recording else None,
            status_message=panel.status,
            transmuting=panel.is_transmuting,
        )
        key = visualizer.show(visualizer.render(surface.pixels, result, hud))
        panel.handle_key(key)

    render_loop = RenderLoop(
        lambda: CameraManager(config['camera']),
        compositor,
        selection,
        {**config['render'], 'first_frame_timeout_s': config['camera'].get('first_frame_timeout_s', 5.0)},
        on_frame=on_frame,
    )
    panel = ControlPanel(render_loop, selection, recorder, config['capture'], oracle=oracle, archetype=archetype)

    visualizer.show(visualizer.render_message("Summoning the reflection..."))
    await render_loop.run()
    if recorder.is_recording:
        panel.toggle_recording()
    return render_loop


async def run(config: dict, selection: OverlaySelection):
    landmarks_config = config['landmarks']
    compositor = Compositor()
    visualizer = Visualizer(config['render'])

    async def attach_provider():
        compositor.provider = await load_landmark_provider(
            lambda: MediaPipeFaceMeshProvider(landmarks_config),
            attempts=landmarks_config.get('load_attempts', 10),
            retry_delay_s=landmarks_config.get('load_retry_delay_s', 0.5),
        )

    loader = asyncio.create_task(attach_provider())
    try:
        while True:
            render_loop = await run_session(config, selection, compositor, visualizer)
            if not render_loop.error:
                break
            # Acquisition failures are terminal for the session; retrying reacquires everything.
            key = None
            while key not in ('r', 'q', '\x1b'):
                key = visualizer.show(visualizer.render_message(render_loop.error, hint="Press R to retry or Q to quit."))
                await asyncio.sleep(0.05)
            if key != 'r':
                break
    finally:
        loader.cancel()
        if compositor.provider is not None:
            compositor.provider.close()
        visualizer.close()


def main(argv=None):
    """
    The main application loop.
    Loads configuration, runs the mirror and shuts down gracefully.
    """
    args = parse_args(argv)
    if args.list_overlays:
        print_overlays()
        return 0

    try:
        config = load_config(args.config)
        configure_logging(args.log_level or config['logging'].get('level', 'INFO'))
        selection = OverlaySelection(args.overlay or config['render'].get('initial_overlay', OverlayVariant.NONE.value))
    except (ConfigError, ValueError) as e:
        print(f"ERROR: Failed to initialize. {e}")
        return 1

    try:
        asyncio.run(run(config, selection))
    except KeyboardInterrupt:
        logger.info("Shutdown signal received.")
    except Exception:
        logger.exception("An unexpected critical error occurred.")
        return 1
    finally:
        logger.info("Application terminated.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
