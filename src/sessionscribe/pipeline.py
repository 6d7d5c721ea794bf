"""Recorded-session workflow: capture, mark, transcribe, segment, format, save."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set

from .audio_utils import wav_duration_seconds
from .errors import OperationInProgress, PersistenceError, RecordingStateError
from .formatter import NoteFormatter, fallback_note
from .markers import SectionMarkerRecorder
from .models import (
    ClientContext,
    FormatResult,
    FormattedNote,
    Marker,
    PolishResult,
    SavedNote,
    SectionDefinition,
    TranscriptionResult,
)
from .recorder import AudioCapture
from .segmentation import WORDS_PER_SECOND, sectionize
from .store import NoteStore
from .transcriber import Transcriber

logger = logging.getLogger("sessionscribe")

PLACEHOLDER_PREFIX = "[PLACEHOLDER TRANSCRIPT]"


def placeholder_transcript(client: ClientContext) -> str:
    focus = ", ".join(client.focus_areas) or "general wellbeing"
    return (
        f"{PLACEHOLDER_PREFIX} Transcription was unavailable for this recording. "
        f"This placeholder stands in for a {client.therapy_type or 'therapy'} session "
        f"with {client.name or 'the client'} focused on {focus}. "
        "Replace it with the actual session content before saving."
    )


@dataclass
class RecordingOutcome:
    transcription: TranscriptionResult
    transcript: str
    sectioned_text: str
    duration_seconds: int
    markers: List[Marker] = field(default_factory=list)

    @property
    def used_placeholder(self) -> bool:
        return not self.transcription.success


@dataclass
class NoteOutcome:
    note: FormattedNote
    result: FormatResult

    @property
    def used_fallback(self) -> bool:
        return not self.result.success


class NoteSession:
    """One client's note-taking session.

    Owns the capture device and the marker recorder; the service adapters
    are passed in by the entry point. Each long-running operation may only
    run once at a time.
    """

    def __init__(
        self,
        client: ClientContext,
        capture: AudioCapture,
        transcriber: Transcriber,
        formatter: NoteFormatter,
        store: NoteStore,
        user_id: str,
        sections: Optional[List[SectionDefinition]] = None,
        words_per_second: float = WORDS_PER_SECOND,
    ) -> None:
        self.client = client
        self.capture = capture
        self.transcriber = transcriber
        self.formatter = formatter
        self.store = store
        self.user_id = user_id
        self.words_per_second = words_per_second
        self.markers = SectionMarkerRecorder(sections, clock=capture.elapsed_seconds)
        self.transcript = ""
        self.sectioned_text = ""
        self.note: Optional[FormattedNote] = None
        self.last_audio: Optional[bytes] = None
        self.last_error: Optional[str] = None
        self._busy: Set[str] = set()
        self._lock = threading.Lock()
        self._closed = False

    @contextmanager
    def _exclusive(self, operation: str) -> Iterator[None]:
        with self._lock:
            if operation in self._busy:
                raise OperationInProgress(operation)
            self._busy.add(operation)
        try:
            yield
        finally:
            with self._lock:
                self._busy.discard(operation)

    def is_busy(self, operation: str) -> bool:
        with self._lock:
            return operation in self._busy

    @property
    def is_recording(self) -> bool:
        return self.capture.is_recording

    def add_section(self, title: str) -> Optional[SectionDefinition]:
        return self.markers.add_section(title)

    def remove_section(self, section_id: str) -> bool:
        return self.markers.remove_section(section_id)

    def mark(self, section_id: str) -> Optional[Marker]:
        return self.markers.mark(section_id)

    def start_recording(self) -> None:
        if self._closed:
            raise RecordingStateError("Session is closed.")
        if self.is_busy("stop_recording"):
            raise OperationInProgress("stop_recording")
        self.capture.start()
        self.markers.reset()
        self.transcript = ""
        self.sectioned_text = ""
        self.note = None
        self.last_error = None

    def stop_recording(self) -> RecordingOutcome:
        with self._exclusive("stop_recording"):
            markers = self.markers.active_markers()
            sections = self.markers.sections
            recording = self.capture.stop()
            self.last_audio = recording.audio
            return self._transcribe(
                recording.audio, recording.duration_seconds, markers, sections
            )

    def retry_transcription(self) -> RecordingOutcome:
        """Send the last captured audio again without touching the device."""
        if self.last_audio is None:
            raise RecordingStateError("Nothing has been recorded yet.")
        with self._exclusive("stop_recording"):
            duration = int(wav_duration_seconds(self.last_audio))
            return self._transcribe(
                self.last_audio,
                duration,
                self.markers.active_markers(),
                self.markers.sections,
            )

    def _transcribe(
        self,
        audio: bytes,
        duration: int,
        markers: List[Marker],
        sections: List[SectionDefinition],
    ) -> RecordingOutcome:
        result = self.transcriber.transcribe(audio)
        if result.success:
            transcript = result.text
        else:
            logger.warning("Transcription failed (%s); using placeholder", result.error)
            self.last_error = f"Transcription failed: {result.error or 'Unknown error'}"
            transcript = placeholder_transcript(self.client)

        sectioned = sectionize(transcript, markers, sections, self.words_per_second)
        outcome = RecordingOutcome(
            transcription=result,
            transcript=transcript,
            sectioned_text=sectioned,
            duration_seconds=duration,
            markers=markers,
        )
        if self._closed:
            logger.info("Session closed before transcription finished; result dropped")
            return outcome
        self.transcript = transcript
        self.sectioned_text = sectioned
        return outcome

    def format_notes(self, text: Optional[str] = None) -> NoteOutcome:
        with self._exclusive("format_notes"):
            source = text if text is not None else self.sectioned_text
            result = self.formatter.format(source, self.client)
            if result.success and result.note is not None:
                note = result.note
            else:
                self.last_error = f"Note formatting failed: {result.error}"
                note = fallback_note(result.error)
            if not self._closed:
                self.note = note
            return NoteOutcome(note=note, result=result)

    def polish_notes(self) -> PolishResult:
        with self._exclusive("polish_notes"):
            result = self.formatter.polish(
                self.transcript,
                self.markers.active_markers(),
                self.markers.sections,
                self.client,
            )
            if result.success and not self._closed:
                self.sectioned_text = result.text
                self.note = None
            elif not result.success:
                self.last_error = "Failed to format notes. Please try again."
            return result

    def save(self, session_date: Optional[str] = None) -> SavedNote:
        """Persist the current note, formatting it first if needed.

        A failed save leaves ``self.note`` in place so it can be retried.
        """
        if self.note is None:
            if not self.sectioned_text.strip():
                raise RecordingStateError("There is no transcript to save.")
            self.format_notes()
        if self.note is None:
            raise RecordingStateError("There is no note to save.")
        with self._exclusive("save"):
            try:
                saved = self.store.save(self.note, self.client, self.user_id, session_date)
            except PersistenceError as exc:
                self.last_error = str(exc)
                raise
            self.last_error = None
            return saved

    def close(self) -> None:
        self._closed = True
        self.capture.close()
