"""Section definitions and the markers tagged against them during a recording."""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, List, Optional

from .config import DEFAULT_SECTIONS
from .models import Marker, SectionDefinition

logger = logging.getLogger("sessionscribe")

_WHITESPACE = re.compile(r"\s+")


def section_id_for(title: str) -> str:
    return _WHITESPACE.sub("_", title.strip().lower())


def default_sections() -> List[SectionDefinition]:
    return [SectionDefinition(id=s["id"], title=s["title"]) for s in DEFAULT_SECTIONS]


class SectionMarkerRecorder:
    """Keeps the editable section set and the markers placed while recording.

    ``clock`` returns the elapsed seconds of the active recording, or None
    when nothing is being recorded; markers can only be placed while it
    returns a number.
    """

    def __init__(
        self,
        sections: Optional[Iterable[SectionDefinition]] = None,
        clock: Optional[Callable[[], Optional[int]]] = None,
    ) -> None:
        self._sections: List[SectionDefinition] = []
        for section in sections if sections is not None else default_sections():
            existing = self.get_section(section.id)
            if existing is not None:
                logger.warning(
                    "Duplicate section id '%s'; keeping '%s'", section.id, existing.title
                )
                continue
            self._sections.append(section)
        self._markers: List[Marker] = []
        self._clock = clock or (lambda: None)
        self.current_section: Optional[str] = None

    @property
    def sections(self) -> List[SectionDefinition]:
        return list(self._sections)

    @property
    def markers(self) -> List[Marker]:
        return list(self._markers)

    def get_section(self, section_id: str) -> Optional[SectionDefinition]:
        for section in self._sections:
            if section.id == section_id:
                return section
        return None

    def resolve_title(self, section_id: str) -> Optional[str]:
        section = self.get_section(section_id)
        return section.title if section else None

    def add_section(self, title: str) -> Optional[SectionDefinition]:
        """Add a section; an id collision returns the existing definition."""
        if not title or not title.strip():
            logger.debug("Rejected empty section title")
            return None
        section_id = section_id_for(title)
        existing = self.get_section(section_id)
        if existing is not None:
            logger.info("Section '%s' already exists; keeping '%s'", section_id, existing.title)
            return existing
        section = SectionDefinition(id=section_id, title=title.strip())
        self._sections.append(section)
        return section

    def remove_section(self, section_id: str) -> bool:
        before = len(self._sections)
        self._sections = [s for s in self._sections if s.id != section_id]
        if len(self._sections) == before:
            return False
        self._markers = [m for m in self._markers if m.section != section_id]
        if self.current_section == section_id:
            self.current_section = None
        return True

    def mark(self, section_id: str) -> Optional[Marker]:
        elapsed = self._clock()
        if elapsed is None:
            return None
        if self.get_section(section_id) is None:
            logger.warning("Ignoring marker for unknown section '%s'", section_id)
            return None
        marker = Marker(time=max(int(elapsed), 0), section=section_id)
        self._markers.append(marker)
        self.current_section = section_id
        return marker

    def active_markers(self) -> List[Marker]:
        known = {s.id for s in self._sections}
        return [m for m in self._markers if m.section in known]

    def reset(self) -> None:
        self._markers = []
        self.current_section = None
