"""Split a flat transcript into section blocks using marker timestamps.

This is an estimator, not an alignment: the transcript carries no timing,
so the words between two markers are approximated as
``ceil((next.time - time) * words_per_second)``. Speech rate varies, so
block boundaries drift; what is guaranteed is that every word lands in
exactly one block, in order, and that counts are clamped to the words that
are actually left.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional

from .models import Marker, SectionDefinition, TranscriptSegment

WORDS_PER_SECOND = 3.0


def approx_word_count(delta_seconds: float, words_per_second: float = WORDS_PER_SECOND) -> int:
    """Words expected in ``delta_seconds`` of speech, never negative."""
    estimate = round(delta_seconds * words_per_second, 9)
    return max(math.ceil(estimate), 0)


def segment_transcript(
    transcript: str,
    markers: Iterable[Marker],
    sections: Iterable[SectionDefinition],
    words_per_second: float = WORDS_PER_SECOND,
) -> List[TranscriptSegment]:
    titles: Dict[str, str] = {}
    for section in sections:
        titles.setdefault(section.id, section.title)

    # orphans first, then a stable sort so equal times keep tagging order
    ordered = sorted(
        (m for m in markers if m.section in titles), key=lambda m: m.time
    )
    if not ordered:
        return [TranscriptSegment(section_title=None, text=transcript)]

    words = transcript.split()
    total = len(words)
    cursor = 0
    segments: List[TranscriptSegment] = []
    for index, marker in enumerate(ordered):
        if index < len(ordered) - 1:
            delta = ordered[index + 1].time - marker.time
            count = min(approx_word_count(delta, words_per_second), total - cursor)
        else:
            count = total - cursor
        end = cursor + count
        segments.append(
            TranscriptSegment(
                section_title=titles[marker.section],
                text=" ".join(words[cursor:end]),
                section_id=marker.section,
                start_word=cursor,
                end_word=end,
            )
        )
        cursor = end
    return segments


def _render_block(segment: TranscriptSegment) -> str:
    if segment.section_title is None:
        return segment.text
    heading = f"### {segment.section_title}"
    if not segment.text:
        return heading
    return f"{heading}\n\n{segment.text}"


def render_segments(segments: List[TranscriptSegment]) -> str:
    if len(segments) == 1 and segments[0].section_title is None:
        return segments[0].text
    return "\n\n".join(_render_block(s) for s in segments)


def sectionize(
    transcript: str,
    markers: Iterable[Marker],
    sections: Iterable[SectionDefinition],
    words_per_second: Optional[float] = None,
) -> str:
    segments = segment_transcript(
        transcript,
        markers,
        sections,
        words_per_second=WORDS_PER_SECOND if words_per_second is None else words_per_second,
    )
    return render_segments(segments)
