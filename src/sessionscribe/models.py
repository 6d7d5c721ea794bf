"""Data models for SessionScribe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass
class SectionDefinition:
    id: str
    title: str


@dataclass(frozen=True)
class Marker:
    time: int
    section: str


@dataclass
class TranscriptSegment:
    section_title: Optional[str]
    text: str
    section_id: Optional[str] = None
    start_word: int = 0
    end_word: int = 0


@dataclass
class NoteSection:
    title: str
    content: str


@dataclass
class ClientContext:
    client_id: str
    name: str
    therapy_type: str = ""
    focus_areas: List[str] = field(default_factory=list)


@dataclass
class FormattedNote:
    overview: str
    summary: str
    key_topics: List[str]
    emotional_state: str
    interventions: List[str]
    progress: str
    plan: str
    homework: List[str]
    section_markers: List[NoteSection] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase shape the formatting prompt asks for."""
        return {
            "overview": self.overview,
            "summary": self.summary,
            "keyTopics": list(self.key_topics),
            "emotionalState": self.emotional_state,
            "interventions": list(self.interventions),
            "progress": self.progress,
            "plan": self.plan,
            "homework": list(self.homework),
            "sectionMarkers": [
                {"title": s.title, "content": s.content} for s in self.section_markers
            ],
        }


class FailureKind(str, Enum):
    SERVICE_ERROR = "service_error"
    EMPTY_RESPONSE = "empty_response"
    UNPARSABLE = "unparsable"
    EMPTY_INPUT = "empty_input"


@dataclass
class TranscriptionResult:
    success: bool
    text: str = ""
    error: Optional[str] = None
    failure: Optional[FailureKind] = None

    @classmethod
    def ok(cls, text: str) -> "TranscriptionResult":
        return cls(success=True, text=text)

    @classmethod
    def failed(cls, kind: FailureKind, error: str) -> "TranscriptionResult":
        return cls(success=False, error=error, failure=kind)


@dataclass
class FormatResult:
    success: bool
    note: Optional[FormattedNote] = None
    error: Optional[str] = None
    failure: Optional[FailureKind] = None

    @classmethod
    def ok(cls, note: FormattedNote) -> "FormatResult":
        return cls(success=True, note=note)

    @classmethod
    def failed(cls, kind: FailureKind, error: str) -> "FormatResult":
        return cls(success=False, error=error, failure=kind)


@dataclass
class PolishResult:
    success: bool
    text: str = ""
    error: Optional[str] = None
    failure: Optional[FailureKind] = None


@dataclass
class SavedNote:
    note_id: Optional[str]
    client_id: str
    user_id: str
    session_date: str
    note: FormattedNote
    template_type: str = "ai_structured"
