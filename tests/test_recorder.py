from __future__ import annotations

import re
from types import SimpleNamespace

import av
import numpy as np
import pytest

from conftest import make_frame
from mirror_engine.capture.codecs import CODEC_PRIORITY, DEFAULT_CODEC, encoder_sample_rate, codec_supported
from mirror_engine.capture.encoder import StreamEncoder
from mirror_engine.capture.recorder import Recorder
from mirror_engine.capture.session import format_elapsed
from mirror_engine.common.errors import RecordingAlreadyActive, RecordingError
from mirror_engine.rendering.surface import FrameSurface

MP4 = CODEC_PRIORITY[3]


class FakeEncoder(StreamEncoder):
    """Emits one chunk per video frame and a trailer on close."""

    def __init__(self, fail_open=False, fail_on_frame=None, trailer=b"trailer"):
        self.fail_open = fail_open
        self.fail_on_frame = fail_on_frame
        self.trailer = trailer
        self.sink = None
        self.option = None
        self.size = None
        self.audio_rate = None
        self.video_pts = []
        self.audio_frames = []
        self.closed = False

    def open(self, option, size, fps, sink, audio_rate=None):
        if self.fail_open:
            raise RecordingError("encoder unavailable")
        self.option, self.size, self.sink, self.audio_rate = option, size, sink, audio_rate

    def encode_video(self, frame_bgr, pts):
        if self.fail_on_frame is not None and len(self.video_pts) == self.fail_on_frame:
            raise RecordingError("encoder crashed")
        assert (frame_bgr.shape[1], frame_bgr.shape[0]) == self.size
        self.video_pts.append(pts)
        self.sink(f"frame-{pts};".encode())

    def encode_audio(self, frame):
        self.audio_frames.append(frame)

    def close(self):
        self.closed = True
        if self.trailer:
            self.sink(self.trailer)


class FakeAudioTrack:
    sample_rate = 48000

    def __init__(self):
        self.pending = []

    def drain(self):
        frames, self.pending = self.pending, []
        return frames


def _surface(width=640, height=480) -> FrameSurface:
    surface = FrameSurface(width, height)
    np.copyto(surface.pixels, make_frame(width, height))
    return surface


def _recorder(tmp_path, encoder, codec_check=lambda option: option == MP4) -> Recorder:
    return Recorder({"output_dir": str(tmp_path), "record_fps": 30}, encoder_factory=lambda: encoder, codec_check=codec_check)


def test_recording_concatenates_chunks_in_order(tmp_path) -> None:
    encoder = FakeEncoder()
    recorder = _recorder(tmp_path, encoder)
    surface = _surface()

    session = recorder.start(surface)
    for k in range(1, 5):
        assert recorder.capture_frame(surface, now=session.started_at + k / 30 + 0.001)
    expected = b"".join(session.chunks) + b"trailer"
    path = recorder.stop()

    assert re.fullmatch(r"kemetic-video-\d+\.mp4", path.name)
    assert path.read_bytes() == expected
    assert path.stat().st_size == len(expected)
    assert encoder.video_pts == [0, 1, 2, 3, 4]
    assert encoder.closed
    assert not recorder.is_recording


def test_webm_codec_gives_webm_file(tmp_path) -> None:
    recorder = _recorder(tmp_path, FakeEncoder(), codec_check=lambda option: option.container == "webm")
    recorder.start(_surface())
    assert recorder.stop().suffix == ".webm"


def test_frames_faster_than_record_rate_are_skipped(tmp_path) -> None:
    encoder = FakeEncoder()
    recorder = _recorder(tmp_path, encoder)
    session = recorder.start(_surface())
    assert not recorder.capture_frame(_surface(), now=session.started_at + 0.01)
    assert recorder.capture_frame(_surface(), now=session.started_at + 0.04)
    assert session.frames_written == 2


def test_second_start_is_rejected_without_touching_session(tmp_path) -> None:
    recorder = _recorder(tmp_path, FakeEncoder())
    session = recorder.start(_surface())
    chunks_before = list(session.chunks)

    with pytest.raises(RecordingAlreadyActive):
        recorder.start(_surface())
    assert recorder.session is session
    assert session.chunks == chunks_before


def test_failed_open_leaves_no_session(tmp_path) -> None:
    recorder = _recorder(tmp_path, FakeEncoder(fail_open=True))
    with pytest.raises(RecordingError):
        recorder.start(_surface())
    assert not recorder.is_recording
    assert list(tmp_path.iterdir()) == []


def test_empty_surface_cannot_be_recorded(tmp_path) -> None:
    recorder = _recorder(tmp_path, FakeEncoder())
    with pytest.raises(RecordingError):
        recorder.start(FrameSurface())
    assert not recorder.is_recording


def test_encoding_failure_discards_session(tmp_path) -> None:
    encoder = FakeEncoder(fail_on_frame=1)
    recorder = _recorder(tmp_path, encoder)
    session = recorder.start(_surface())
    with pytest.raises(RecordingError):
        recorder.capture_frame(_surface(), now=session.started_at + 0.1)
    assert not recorder.is_recording
    assert encoder.closed


def test_stop_without_session_raises(tmp_path) -> None:
    with pytest.raises(RecordingError):
        _recorder(tmp_path, FakeEncoder()).stop()


def test_session_without_data_is_not_exported(tmp_path) -> None:
    class SilentEncoder(FakeEncoder):
        def encode_video(self, frame_bgr, pts):
            self.video_pts.append(pts)

    recorder = _recorder(tmp_path, SilentEncoder(trailer=b""))
    recorder.start(_surface())
    with pytest.raises(RecordingError):
        recorder.stop()
    assert not recorder.is_recording
    assert list(tmp_path.iterdir()) == []


def test_odd_surface_is_cropped_to_even_size(tmp_path) -> None:
    encoder = FakeEncoder()
    recorder = _recorder(tmp_path, encoder)
    recorder.start(_surface(641, 481))
    assert encoder.size == (640, 480)


def test_audio_is_muxed_when_a_track_is_available(tmp_path) -> None:
    encoder = FakeEncoder()
    track = FakeAudioTrack()
    track.pending = ["stale"]
    recorder = _recorder(tmp_path, encoder)

    session = recorder.start(_surface(), audio_tracks=[track])
    assert encoder.audio_rate == 48000
    track.pending = ["a1", "a2"]
    recorder.capture_frame(_surface(), now=session.started_at + 0.05)
    assert encoder.audio_frames == ["a1", "a2"]


def test_format_elapsed() -> None:
    assert format_elapsed(0) == "0:00"
    assert format_elapsed(65.7) == "1:05"
    assert format_elapsed(-3) == "0:00"


class MicrophoneTrack:
    """44.1 kHz stereo s16 frames, the usual PulseAudio/DirectShow default."""

    sample_rate = 44100

    def __init__(self):
        self.pending = []
        self.phase = 0

    def feed(self, count=2, samples=1024):
        for _ in range(count):
            t = (np.arange(samples) + self.phase) / self.sample_rate
            tone = (np.sin(2 * np.pi * 440 * t) * 8000).astype(np.int16)
            interleaved = np.repeat(tone, 2).reshape(1, -1)
            frame = av.AudioFrame.from_ndarray(interleaved, format="s16", layout="stereo")
            frame.sample_rate = self.sample_rate
            self.pending.append(frame)
            self.phase += samples

    def drain(self):
        frames, self.pending = self.pending, []
        return frames


def _record_for_real(tmp_path, frames, audio_track=None):
    recorder = Recorder({"output_dir": str(tmp_path), "record_fps": 30})
    surface = _surface(320, 240)
    session = recorder.start(surface, audio_tracks=[audio_track] if audio_track else [])
    for k in range(1, frames):
        if audio_track is not None:
            audio_track.feed()
        surface.pixels[:] = (k * 20) % 255
        recorder.capture_frame(surface, now=session.started_at + k / 30 + 0.001)
    assert session.frames_written == frames
    return recorder.stop(), session


def test_pyav_recording_decodes_back(tmp_path) -> None:
    path, session = _record_for_real(tmp_path, frames=10)
    assert path.suffix == f".{session.codec.extension}"

    with av.open(str(path)) as container:
        stream = container.streams.video[0]
        decoded = list(container.decode(stream))
    assert len(decoded) == 10
    assert (decoded[0].width, decoded[0].height) == (320, 240)


def test_pyav_recording_muxes_44k_microphone(tmp_path) -> None:
    path, session = _record_for_real(tmp_path, frames=10, audio_track=MicrophoneTrack())

    with av.open(str(path)) as container:
        assert len(container.streams.video) == 1
        audio = container.streams.audio[0]
        expected_rate = encoder_sample_rate(av.Codec(session.codec.audio_codec, "w"), 44100)
        assert audio.codec_context.sample_rate == expected_rate
        samples = sum(frame.samples for frame in container.decode(audio))
    assert samples > 0


def test_encoder_sample_rate_prefers_48k_when_source_rate_is_unsupported() -> None:
    opus = SimpleNamespace(audio_rates=[48000, 24000, 16000, 12000, 8000])
    assert encoder_sample_rate(opus, 44100) == 48000
    assert encoder_sample_rate(opus, 16000) == 16000
    assert encoder_sample_rate(SimpleNamespace(audio_rates=None), 44100) == 44100
    assert encoder_sample_rate(SimpleNamespace(audio_rates=[22050, 11025]), 44100) == 22050


def test_builtin_encoders_are_supported() -> None:
    assert codec_supported(DEFAULT_CODEC)
