"""Markdown rendering of formatted session notes."""

from __future__ import annotations

from typing import List, Optional

from .models import ClientContext, FormattedNote, Marker, SectionDefinition
from .formatter import format_timestamp


def _yaml_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f"\"{escaped}\""


def _clean_text(value: str) -> str:
    return " ".join(value.split())


def _bullets(items: List[str]) -> List[str]:
    if not items:
        return ["- (none)"]
    return [f"- {_clean_text(item)}" for item in items]


def render_marker_timeline(
    markers: List[Marker], sections: List[SectionDefinition]
) -> List[str]:
    titles = {s.id: s.title for s in sections}
    lines = []
    for marker in sorted(markers, key=lambda m: m.time):
        title = titles.get(marker.section)
        if title is None:
            continue
        lines.append(f"- [{format_timestamp(marker.time)}] {_clean_text(title)}")
    return lines


def render_note(
    note: FormattedNote,
    client: ClientContext,
    session_date: str,
    duration_seconds: Optional[int] = None,
    markers: Optional[List[Marker]] = None,
    sections: Optional[List[SectionDefinition]] = None,
    transcript: Optional[str] = None,
) -> str:
    lines: List[str] = []
    lines.append("---")
    lines.append("schema: 1")
    lines.append(f"client: {_yaml_quote(client.name)}")
    lines.append(f"client_id: {_yaml_quote(client.client_id)}")
    lines.append(f"session_date: {_yaml_quote(session_date)}")
    if client.therapy_type:
        lines.append(f"therapy_type: {_yaml_quote(client.therapy_type)}")
    if client.focus_areas:
        lines.append("focus_areas:")
        for area in client.focus_areas:
            lines.append(f"  - {_yaml_quote(area)}")
    if duration_seconds is not None:
        lines.append(f"duration_seconds: {duration_seconds}")
    if note.summary:
        lines.append(f"summary: {_yaml_quote(_clean_text(note.summary))}")
    lines.append("template_type: \"ai_structured\"")
    lines.append("---")
    lines.append("")
    lines.append(f"# Session Notes: {_clean_text(client.name)}")
    lines.append("")
    lines.append("## Overview")
    lines.append("")
    lines.append(note.overview)
    lines.append("")
    lines.append("## Key Topics")
    lines.append("")
    lines.extend(_bullets(note.key_topics))
    lines.append("")
    lines.append("## Emotional State")
    lines.append("")
    lines.append(note.emotional_state)
    lines.append("")
    lines.append("## Interventions")
    lines.append("")
    lines.extend(_bullets(note.interventions))
    lines.append("")
    lines.append("## Progress")
    lines.append("")
    lines.append(note.progress)
    lines.append("")
    lines.append("## Plan")
    lines.append("")
    lines.append(note.plan)
    lines.append("")
    lines.append("## Homework")
    lines.append("")
    lines.extend(_bullets(note.homework))
    lines.append("")

    for section in note.section_markers:
        lines.append(f"### {_clean_text(section.title) or 'Section'}")
        lines.append("")
        lines.append(section.content)
        lines.append("")

    if markers and sections:
        timeline = render_marker_timeline(markers, sections)
        if timeline:
            lines.append("## Section Markers")
            lines.append("")
            lines.extend(timeline)
            lines.append("")
    if transcript:
        lines.append("## Transcript")
        lines.append("")
        lines.append(transcript)
        lines.append("")
    return "\n".join(lines)
