"""Speech-to-text adapters.

Every adapter turns failures into a ``TranscriptionResult`` instead of
raising; deciding what to do with a failed transcription is up to the caller.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import Any, Optional, Protocol

from .config import Config
from .models import FailureKind, TranscriptionResult

logger = logging.getLogger("sessionscribe")


class Transcriber(Protocol):
    def transcribe(self, audio: bytes, filename: str = "recording.wav") -> TranscriptionResult:
        ...


class OpenAITranscriber:
    def __init__(self, client: Any, model: str = "whisper-1") -> None:
        self.client = client
        self.model = model

    def transcribe(self, audio: bytes, filename: str = "recording.wav") -> TranscriptionResult:
        if not audio:
            return TranscriptionResult.failed(FailureKind.EMPTY_INPUT, "No audio captured.")
        try:
            response = self.client.audio.transcriptions.create(
                model=self.model,
                file=(filename, audio),
            )
        except Exception as exc:
            logger.exception("Transcription request failed")
            return TranscriptionResult.failed(FailureKind.SERVICE_ERROR, str(exc))

        text = response if isinstance(response, str) else getattr(response, "text", None)
        if not text or not text.strip():
            return TranscriptionResult.failed(
                FailureKind.EMPTY_RESPONSE, "Transcription service returned no text."
            )
        logger.info("Transcribed %s bytes into %s words", len(audio), len(text.split()))
        return TranscriptionResult.ok(text.strip())


class LocalWhisperTranscriber:
    """Offline transcription with faster-whisper."""

    def __init__(
        self,
        model_name: str = "small",
        language: Optional[str] = None,
        device: Optional[str] = None,
        compute_type: Optional[str] = None,
    ) -> None:
        self.model_name = model_name
        self.language = language
        self.device = device
        self.compute_type = compute_type
        self._model = None

    def _load_model(self):
        if self._model is None:
            try:
                from faster_whisper import WhisperModel
            except Exception as exc:  # pragma: no cover - optional dependency
                raise RuntimeError(
                    "faster-whisper is required for local transcription."
                ) from exc
            kwargs = {}
            if self.device:
                kwargs["device"] = self.device
            if self.compute_type:
                kwargs["compute_type"] = self.compute_type
            self._model = WhisperModel(self.model_name, **kwargs)
        return self._model

    def transcribe(self, audio: bytes, filename: str = "recording.wav") -> TranscriptionResult:
        if not audio:
            return TranscriptionResult.failed(FailureKind.EMPTY_INPUT, "No audio captured.")
        suffix = os.path.splitext(filename)[1] or ".wav"
        handle = tempfile.NamedTemporaryFile(suffix=suffix, delete=False)
        try:
            with handle:
                handle.write(audio)
            model = self._load_model()
            segments, _info = model.transcribe(handle.name, language=self.language)
            text = " ".join(seg.text.strip() for seg in segments).strip()
        except Exception as exc:
            logger.exception("Local transcription failed")
            return TranscriptionResult.failed(FailureKind.SERVICE_ERROR, str(exc))
        finally:
            os.remove(handle.name)

        if not text:
            return TranscriptionResult.failed(
                FailureKind.EMPTY_RESPONSE, "No speech recognised in the recording."
            )
        return TranscriptionResult.ok(text)


def build_transcriber(config: Config, openai_client: Any = None) -> Transcriber:
    settings = config.transcription
    if settings.backend == "local":
        return LocalWhisperTranscriber(
            model_name=settings.local_model, language=settings.language
        )
    if openai_client is None:
        raise ValueError("An OpenAI client is required for the 'openai' backend.")
    return OpenAITranscriber(openai_client, model=settings.model)
