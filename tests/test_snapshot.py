from __future__ import annotations

import re

import cv2
import numpy as np
import pytest

from conftest import make_frame
from mirror_engine.capture.artifacts import artifact_name, export_artifact
from mirror_engine.capture.snapshot import encode_jpeg, take_snapshot
from mirror_engine.common.errors import SnapshotError
from mirror_engine.rendering.surface import FrameSurface


def test_snapshot_exports_surface_as_jpeg(tmp_path) -> None:
    surface = FrameSurface(640, 480)
    np.copyto(surface.pixels, make_frame())

    path = take_snapshot(surface, tmp_path / "captures")

    assert re.fullmatch(r"kemetic-snap-\d+\.jpg", path.name)
    decoded = cv2.imread(str(path))
    assert decoded.shape == (480, 640, 3)


def test_snapshot_of_empty_surface_fails(tmp_path) -> None:
    with pytest.raises(SnapshotError):
        take_snapshot(FrameSurface(), tmp_path)


def test_snapshot_does_not_modify_surface(tmp_path) -> None:
    surface = FrameSurface(64, 48)
    surface.pixels[:] = 42
    take_snapshot(surface, tmp_path)
    assert np.all(surface.pixels == 42)


def test_jpeg_quality_affects_size() -> None:
    frame = np.random.default_rng(0).integers(0, 255, (120, 160, 3), dtype=np.uint8)
    assert len(encode_jpeg(frame, quality=30)) < len(encode_jpeg(frame, quality=95))


def test_artifact_name_uses_given_timestamp() -> None:
    assert artifact_name("kemetic-video", "webm", 1700000000000) == "kemetic-video-1700000000000.webm"


def test_export_creates_directory(tmp_path) -> None:
    path = export_artifact(b"abc", tmp_path / "a" / "b", "x.bin")
    assert path.read_bytes() == b"abc"
