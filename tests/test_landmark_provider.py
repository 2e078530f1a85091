from __future__ import annotations

import asyncio
import threading
from types import SimpleNamespace

import pytest

from conftest import FakeProvider
from mirror_engine.landmarks import indices as idx
from mirror_engine.landmarks.provider import load_landmark_provider


def test_provider_loads_after_transient_failures() -> None:
    attempts = []

    def factory():
        attempts.append(1)
        if len(attempts) < 3:
            raise RuntimeError("runtime not ready")
        return FakeProvider()

    provider = asyncio.run(load_landmark_provider(factory, attempts=5, retry_delay_s=0))
    assert isinstance(provider, FakeProvider)
    assert len(attempts) == 3


def test_provider_gives_up_after_attempts() -> None:
    attempts = []

    def factory():
        attempts.append(1)
        raise ImportError("no model")

    assert asyncio.run(load_landmark_provider(factory, attempts=4, retry_delay_s=0)) is None
    assert len(attempts) == 4


def test_at_least_one_attempt_is_made() -> None:
    assert asyncio.run(load_landmark_provider(FakeProvider, attempts=0, retry_delay_s=0)) is not None


def test_unexpected_errors_propagate() -> None:
    def factory():
        raise KeyError("min_detection_confidence")

    with pytest.raises(KeyError):
        asyncio.run(load_landmark_provider(factory, attempts=3, retry_delay_s=0))


def _results(count):
    landmark = SimpleNamespace(x=0.5, y=0.25, z=-0.01)
    return SimpleNamespace(multi_face_landmarks=[SimpleNamespace(landmark=[landmark] * count)])


@pytest.fixture
def mesh_provider():
    pytest.importorskip("mediapipe")
    from mirror_engine.landmarks.mediapipe_provider import MediaPipeFaceMeshProvider

    # Conversion only; skip building the FaceMesh graph.
    provider = MediaPipeFaceMeshProvider.__new__(MediaPipeFaceMeshProvider)
    provider.expected_points = idx.FACE_MESH_POINTS
    return provider


def test_complete_mesh_is_scaled_to_pixels(mesh_provider) -> None:
    faces = mesh_provider.to_landmark_sets(_results(idx.FACE_MESH_POINTS), 640, 480)
    assert len(faces) == 1
    assert len(faces[0]) == idx.FACE_MESH_POINTS
    x, y, z = faces[0].points[0]
    assert (x, y) == pytest.approx((320.0, 120.0))
    assert z == pytest.approx(-6.4)


def test_partial_mesh_is_rejected(mesh_provider) -> None:
    assert mesh_provider.to_landmark_sets(_results(100), 640, 480) == []


def test_no_face_gives_empty_list(mesh_provider) -> None:
    assert mesh_provider.to_landmark_sets(SimpleNamespace(multi_face_landmarks=None), 640, 480) == []


def test_model_is_built_off_the_event_loop_thread() -> None:
    built_on = []

    def factory():
        built_on.append(threading.get_ident())
        return FakeProvider()

    asyncio.run(load_landmark_provider(factory, attempts=1, retry_delay_s=0))
    assert built_on and built_on[0] != threading.get_ident()
