"""Microphone capture for recorded sessions."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .audio_utils import chunks_to_array, encode_wav
from .errors import DeviceError, RecordingStateError

logger = logging.getLogger("sessionscribe")


@dataclass
class RecordingSession:
    started_at: float
    elapsed_seconds: int = 0
    audio_chunks: List[Any] = field(default_factory=list)


@dataclass
class RecordingResult:
    audio: bytes
    duration_seconds: int
    sample_rate_hz: int
    channels: int


def list_input_devices() -> List[Dict[str, Any]]:
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for device detection.") from exc

    devices = sd.query_devices()
    return [dict(d) for d in devices if d.get("max_input_channels", 0) > 0]


def select_preferred_device(
    candidates: List[Dict[str, Any]],
    prefer_name: Optional[str] = None,
) -> Dict[str, Any]:
    if not candidates:
        raise DeviceError("No input devices found.")
    if prefer_name:
        preferred = [
            d for d in candidates if prefer_name.lower() in d.get("name", "").lower()
        ]
        if preferred:
            return preferred[0]
        raise DeviceError(f"No input device matches '{prefer_name}'.")
    return candidates[0]


def find_input_device(prefer_name: Optional[str] = None) -> Optional[int]:
    """Resolve a device name substring to a PortAudio index.

    ``None`` leaves the choice to the host's default input device.
    """
    if not prefer_name:
        return None
    device = select_preferred_device(list_input_devices(), prefer_name=prefer_name)
    return device.get("index")


def _sounddevice_stream(**kwargs):
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for recording.") from exc
    return sd.InputStream(**kwargs)


class AudioCapture:
    """Owns the capture device for at most one active recording.

    ``start`` opens an input stream and buffers int16 blocks from the
    hardware callback while a ticker thread advances the elapsed-seconds
    counter. ``stop`` releases the stream and returns the audio as WAV bytes.
    """

    def __init__(
        self,
        sample_rate_hz: int = 16000,
        channels: int = 1,
        device_name: Optional[str] = None,
        stream_factory: Optional[Callable[..., Any]] = None,
        device_resolver: Optional[Callable[[Optional[str]], Optional[int]]] = None,
        tick_seconds: Optional[float] = 1.0,
    ) -> None:
        self.sample_rate_hz = sample_rate_hz
        self.channels = channels
        self.device_name = device_name
        self._stream_factory = stream_factory or _sounddevice_stream
        self._device_resolver = device_resolver or find_input_device
        self._tick_seconds = tick_seconds
        self._session: Optional[RecordingSession] = None
        self._stream = None
        self._ticker: Optional[threading.Thread] = None
        self._ticker_stop = threading.Event()

    @property
    def is_recording(self) -> bool:
        return self._session is not None

    def elapsed_seconds(self) -> Optional[int]:
        session = self._session
        if session is None:
            return None
        return session.elapsed_seconds

    def start(self) -> RecordingSession:
        if self._session is not None:
            raise RecordingStateError("A recording is already in progress.")

        session = RecordingSession(started_at=time.monotonic())

        def _callback(indata, _frames, _time, status):
            if status:
                logger.debug("Input stream status: %s", status)
            session.audio_chunks.append(indata.copy())

        stream = None
        try:
            device_index = self._device_resolver(self.device_name)
            stream = self._stream_factory(
                samplerate=self.sample_rate_hz,
                channels=self.channels,
                dtype="int16",
                device=device_index,
                callback=_callback,
            )
            stream.start()
        except Exception as exc:
            if stream is not None:
                self._release(stream)
            logger.error("Unable to open microphone: %s", exc)
            if isinstance(exc, DeviceError):
                raise
            raise DeviceError(
                "Unable to access microphone. Check the device and its permissions."
            ) from exc

        self._session = session
        self._stream = stream
        self._start_ticker(session)
        logger.info(
            "Recording started (rate=%s channels=%s device=%s)",
            self.sample_rate_hz,
            self.channels,
            self.device_name or "default",
        )
        return session

    def tick(self) -> None:
        """Advance the elapsed counter by one second."""
        session = self._session
        if session is not None:
            session.elapsed_seconds += 1

    def stop(self) -> RecordingResult:
        if self._session is None:
            raise RecordingStateError("No recording in progress.")
        session, stream = self._session, self._stream
        self._session = None
        self._stream = None
        self._stop_ticker()
        self._release(stream)

        data = chunks_to_array(session.audio_chunks, self.channels)
        logger.info(
            "Recording stopped after %ss (%s frames)",
            session.elapsed_seconds,
            data.shape[0],
        )
        return RecordingResult(
            audio=encode_wav(data, self.sample_rate_hz),
            duration_seconds=session.elapsed_seconds,
            sample_rate_hz=self.sample_rate_hz,
            channels=self.channels,
        )

    def close(self) -> None:
        if self._session is None:
            return
        logger.info("Capture closed while recording; discarding audio.")
        session, stream = self._session, self._stream
        self._session = None
        self._stream = None
        self._stop_ticker()
        self._release(stream)
        session.audio_chunks.clear()

    def __enter__(self) -> "AudioCapture":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    def _start_ticker(self, session: RecordingSession) -> None:
        if not self._tick_seconds:
            return
        self._ticker_stop = threading.Event()
        stop_event = self._ticker_stop
        interval = self._tick_seconds

        def _run() -> None:
            while not stop_event.wait(interval):
                session.elapsed_seconds += 1

        self._ticker = threading.Thread(target=_run, daemon=True)
        self._ticker.start()

    def _stop_ticker(self) -> None:
        self._ticker_stop.set()
        if self._ticker is not None and self._ticker is not threading.current_thread():
            self._ticker.join(timeout=2)
        self._ticker = None

    @staticmethod
    def _release(stream) -> None:
        try:
            stream.stop()
        except Exception:
            logger.exception("Failed to stop input stream")
        finally:
            stream.close()
