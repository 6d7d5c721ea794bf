"""Audio helpers."""

from __future__ import annotations

import io
import wave
from typing import Sequence

import numpy as np


def chunks_to_array(chunks: Sequence, channels: int) -> np.ndarray:
    """Concatenate captured int16 blocks into one (frames, channels) array."""
    if not chunks:
        return np.zeros((0, channels), dtype=np.int16)
    blocks = []
    for chunk in chunks:
        data = np.asarray(chunk)
        if data.dtype != np.int16:
            data = data.astype(np.int16)
        blocks.append(data.reshape(-1, channels))
    return np.concatenate(blocks, axis=0)


def encode_wav(data: np.ndarray, sample_rate_hz: int) -> bytes:
    if data.ndim == 1:
        data = data.reshape(-1, 1)
    if data.dtype != np.int16:
        raise ValueError("Only 16-bit PCM is supported for WAV encoding.")

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as out:
        out.setnchannels(data.shape[1])
        out.setsampwidth(2)
        out.setframerate(sample_rate_hz)
        out.writeframes(data.tobytes())
    return buffer.getvalue()


def wav_duration_seconds(audio: bytes) -> float:
    with wave.open(io.BytesIO(audio), "rb") as handle:
        frames = handle.getnframes()
        rate = handle.getframerate()
    if rate <= 0:
        return 0.0
    return frames / rate
