"""Turn session transcripts into structured clinical notes with an LLM."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Optional

from .models import (
    ClientContext,
    FailureKind,
    FormatResult,
    FormattedNote,
    Marker,
    NoteSection,
    PolishResult,
    SectionDefinition,
)

logger = logging.getLogger("sessionscribe")

NOTE_SYSTEM_PROMPT = (
    "You are a professional therapy note assistant that helps format session "
    "transcriptions into structured clinical notes."
)

POLISH_SYSTEM_PROMPT = (
    "You are an expert clinical therapist with extensive experience in writing "
    "professional therapy notes. Format the provided transcription into clear, "
    "professional clinical notes."
)

NOTE_TEMPLATE = """You are an expert therapist assistant. Format the following therapy session transcription into structured clinical notes.

Client Information:
- Name: {name}
- Therapy Type: {therapy_type}
- Focus Areas: {focus_areas}

Transcription:
{transcript}

Format the notes into the following JSON structure:
{{
  "overview": "A concise summary of the session (2-3 sentences)",
  "summary": "A brief one-line summary for quick preview",
  "keyTopics": ["List of 3-5 main topics discussed"],
  "emotionalState": "Assessment of client's emotional presentation during session",
  "interventions": ["List of therapeutic techniques or interventions used"],
  "progress": "Assessment of client's progress and engagement",
  "plan": "Plan for next session",
  "homework": ["List of assignments for client to complete before next session"],
  "sectionMarkers": [
    {{"title": "Section title", "content": "Content for this section"}}
  ]
}}

Ensure the notes are:
1. Professional and clinically appropriate
2. Concise and well-structured
3. Based only on information from the transcription
4. Organized into clear, logical sections
5. Include a brief summary for quick reference
"""

POLISH_TEMPLATE = """Format the following therapy session transcription into professional clinical notes.

Client Information:
- Name: {name}
- Therapy Type: {therapy_type}
- Focus Areas: {focus_areas}

The transcription is divided into sections with markers. Format each section professionally, using appropriate clinical language and maintaining a professional therapeutic tone.

Original Transcription:
{transcript}

Section Markers:
{markers}

Guidelines:
1. Use appropriate clinical terminology while maintaining clarity
2. Focus on objective observations and clinical assessments
3. Maintain a professional, therapeutic tone
4. Include relevant therapeutic interventions and client responses
5. Structure the content clearly using the provided section markers

Keep the section headers and add professional clinical content under each.
"""

_STRING_FIELDS = {
    "overview": "overview",
    "summary": "summary",
    "emotionalState": "emotional_state",
    "progress": "progress",
    "plan": "plan",
}
_LIST_FIELDS = {
    "keyTopics": "key_topics",
    "interventions": "interventions",
    "homework": "homework",
}


class NoteParseError(ValueError):
    pass


def fallback_note(reason: Optional[str] = None) -> FormattedNote:
    """Placeholder note returned when no structured note could be produced."""
    overview = (
        "Session notes could not be generated automatically. "
        "Please try again or format manually."
    )
    if reason:
        overview = f"{overview} ({reason})"
    return FormattedNote(
        overview=overview,
        summary="Automatic note generation unavailable.",
        key_topics=["Unable to identify key topics."],
        emotional_state="Unable to assess emotional state.",
        interventions=["Unable to identify interventions."],
        progress="Unable to assess progress.",
        plan="Please review the transcription and create a plan manually.",
        homework=["Please assign homework manually."],
        section_markers=[
            NoteSection(
                title="Transcript",
                content="Review the transcript to complete this note.",
            )
        ],
    )


def format_timestamp(seconds: int) -> str:
    mins, secs = divmod(max(int(seconds), 0), 60)
    return f"{mins}:{secs:02d}"


def parse_note(payload: str) -> FormattedNote:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise NoteParseError(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise NoteParseError("Response JSON is not an object.")

    values: dict = {}
    for key, attr in _STRING_FIELDS.items():
        value = data.get(key, "")
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise NoteParseError(f"'{key}' must be a string.")
        values[attr] = value.strip()
    for key, attr in _LIST_FIELDS.items():
        value = data.get(key) or []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise NoteParseError(f"'{key}' must be a list of strings.")
        values[attr] = [v.strip() for v in value if v.strip()]

    sections: List[NoteSection] = []
    raw_sections = data.get("sectionMarkers") or []
    if not isinstance(raw_sections, list):
        raise NoteParseError("'sectionMarkers' must be a list.")
    for item in raw_sections:
        if not isinstance(item, dict):
            raise NoteParseError("Each section marker must be an object.")
        sections.append(
            NoteSection(
                title=str(item.get("title", "")).strip(),
                content=str(item.get("content", "")).strip(),
            )
        )
    return FormattedNote(section_markers=sections, **values)


class NoteFormatter:
    def __init__(
        self,
        client: Any,
        model: str = "gpt-4o",
        polish_model: str = "gpt-4",
    ) -> None:
        self.client = client
        self.model = model
        self.polish_model = polish_model

    @staticmethod
    def build_prompt(transcript: str, context: ClientContext) -> str:
        return NOTE_TEMPLATE.format(
            name=context.name,
            therapy_type=context.therapy_type,
            focus_areas=", ".join(context.focus_areas),
            transcript=transcript,
        )

    def _complete(self, model: str, system: str, prompt: str, **kwargs) -> Optional[str]:
        completion = self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            **kwargs,
        )
        return completion.choices[0].message.content

    def format(self, transcript: str, context: ClientContext) -> FormatResult:
        if not transcript or not transcript.strip():
            return FormatResult.failed(FailureKind.EMPTY_INPUT, "Transcript is empty.")
        try:
            content = self._complete(
                self.model,
                NOTE_SYSTEM_PROMPT,
                self.build_prompt(transcript, context),
                response_format={"type": "json_object"},
            )
        except Exception as exc:
            logger.exception("Note formatting request failed")
            return FormatResult.failed(FailureKind.SERVICE_ERROR, str(exc))

        if not content:
            return FormatResult.failed(
                FailureKind.EMPTY_RESPONSE, "Formatting service returned no content."
            )
        try:
            note = parse_note(content)
        except NoteParseError as exc:
            logger.warning("Unparsable note from %s: %s", self.model, exc)
            return FormatResult.failed(FailureKind.UNPARSABLE, str(exc))
        return FormatResult.ok(note)

    def polish(
        self,
        transcript: str,
        markers: Iterable[Marker],
        sections: Iterable[SectionDefinition],
        context: ClientContext,
    ) -> PolishResult:
        if not transcript or not transcript.strip():
            return PolishResult(
                success=False, error="Transcript is empty.", failure=FailureKind.EMPTY_INPUT
            )
        titles = {s.id: s.title for s in sections}
        marker_lines = "\n".join(
            f"- {titles[m.section]} (at {format_timestamp(m.time)})"
            for m in markers
            if m.section in titles
        )
        prompt = POLISH_TEMPLATE.format(
            name=context.name,
            therapy_type=context.therapy_type,
            focus_areas=", ".join(context.focus_areas),
            transcript=transcript,
            markers=marker_lines or "- (none)",
        )
        try:
            content = self._complete(self.polish_model, POLISH_SYSTEM_PROMPT, prompt)
        except Exception as exc:
            logger.exception("Note polishing request failed")
            return PolishResult(
                success=False, error=str(exc), failure=FailureKind.SERVICE_ERROR
            )
        if not content or not content.strip():
            return PolishResult(
                success=False,
                error="Formatting service returned no content.",
                failure=FailureKind.EMPTY_RESPONSE,
            )
        return PolishResult(success=True, text=content.strip())
