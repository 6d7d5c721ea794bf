import io
import wave

import numpy as np
import pytest

from sessionscribe.audio_utils import wav_duration_seconds
from sessionscribe.errors import DeviceError, RecordingStateError
from sessionscribe.recorder import select_preferred_device


def _block(value, frames=160, channels=1):
    return np.full((frames, channels), value, dtype=np.int16)


def test_stop_releases_stream_once_and_returns_wav(make_capture, stream_factory):
    capture = make_capture(sample_rate_hz=8000)
    capture.start()
    stream = stream_factory.last
    stream.feed(_block(1))
    stream.feed(_block(2))
    capture.tick()
    capture.tick()

    result = capture.stop()

    assert stream.started == 1
    assert stream.stopped == 1
    assert stream.closed == 1
    assert result.duration_seconds == 2
    with wave.open(io.BytesIO(result.audio), "rb") as handle:
        assert handle.getframerate() == 8000
        assert handle.getnchannels() == 1
        assert handle.getnframes() == 320
    assert wav_duration_seconds(result.audio) == pytest.approx(0.04)
    assert not capture.is_recording


def test_stream_opened_with_capture_settings(make_capture, stream_factory):
    capture = make_capture(sample_rate_hz=16000, channels=2)
    capture.start()
    kwargs = stream_factory.last.kwargs
    assert kwargs["samplerate"] == 16000
    assert kwargs["channels"] == 2
    assert kwargs["dtype"] == "int16"
    capture.stop()


def test_each_start_gets_exactly_one_release(make_capture, stream_factory):
    capture = make_capture()
    for _ in range(3):
        capture.start()
        capture.stop()
    assert len(stream_factory.streams) == 3
    assert all(s.stopped == 1 and s.closed == 1 for s in stream_factory.streams)


def test_elapsed_seconds_only_while_recording(make_capture):
    capture = make_capture()
    assert capture.elapsed_seconds() is None
    capture.start()
    assert capture.elapsed_seconds() == 0
    capture.tick()
    assert capture.elapsed_seconds() == 1
    capture.stop()
    assert capture.elapsed_seconds() is None


def test_start_failure_releases_partial_stream(make_capture, stream_factory):
    stream_factory.fail_on_start = True
    capture = make_capture()

    with pytest.raises(DeviceError):
        capture.start()

    stream = stream_factory.last
    assert stream.closed == 1
    assert not capture.is_recording


def test_open_failure_surfaces_device_error(make_capture, stream_factory):
    stream_factory.fail_on_open = True
    capture = make_capture()
    with pytest.raises(DeviceError):
        capture.start()
    assert stream_factory.streams == []
    assert not capture.is_recording


def test_double_start_and_idle_stop_are_rejected(make_capture):
    capture = make_capture()
    with pytest.raises(RecordingStateError):
        capture.stop()
    capture.start()
    with pytest.raises(RecordingStateError):
        capture.start()
    capture.stop()


def test_close_while_recording_releases_device(make_capture, stream_factory):
    with make_capture() as capture:
        capture.start()
        stream = stream_factory.last
    assert stream.stopped == 1
    assert stream.closed == 1
    assert not capture.is_recording
    capture.close()
    assert stream.closed == 1


def test_stop_with_no_audio_still_returns_valid_wav(make_capture):
    capture = make_capture()
    capture.start()
    result = capture.stop()
    with wave.open(io.BytesIO(result.audio), "rb") as handle:
        assert handle.getnframes() == 0


def test_select_preferred_device_prefers_name():
    candidates = [
        {"name": "Built-in Mic", "index": 1},
        {"name": "USB Headset Microphone", "index": 2},
    ]
    result = select_preferred_device(candidates, prefer_name="headset")
    assert result["index"] == 2


def test_select_preferred_device_defaults_to_first():
    candidates = [{"name": "Built-in Mic", "index": 1}, {"name": "USB Mic", "index": 2}]
    assert select_preferred_device(candidates)["index"] == 1


def test_select_preferred_device_errors():
    with pytest.raises(DeviceError):
        select_preferred_device([])
    with pytest.raises(DeviceError):
        select_preferred_device([{"name": "Built-in Mic", "index": 1}], prefer_name="zoom")
