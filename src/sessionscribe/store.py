"""Persistence for formatted session notes."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from .errors import PersistenceError
from .models import ClientContext, FormattedNote, NoteSection, SavedNote
from .storage import build_session_basename, ensure_structure

logger = logging.getLogger("sessionscribe")

TEMPLATE_TYPE = "ai_structured"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def note_row(
    note: FormattedNote,
    client_id: str,
    user_id: str,
    session_date: str,
) -> Dict[str, Any]:
    """Column mapping for the ``session_notes`` table."""
    return {
        "client_id": client_id,
        "user_id": user_id,
        "session_date": session_date,
        "overview": note.overview,
        "summary": note.summary,
        "key_topics": list(note.key_topics),
        "emotional_state": note.emotional_state,
        "interventions": list(note.interventions),
        "progress_notes": note.progress,
        "plan": note.plan,
        "homework": list(note.homework),
        "section_markers": [
            {"title": s.title, "content": s.content} for s in note.section_markers
        ],
        "formatted_content": note.to_dict(),
        "template_type": TEMPLATE_TYPE,
    }


def note_from_row(row: Dict[str, Any]) -> FormattedNote:
    return FormattedNote(
        overview=row.get("overview") or "",
        summary=row.get("summary") or "",
        key_topics=list(row.get("key_topics") or []),
        emotional_state=row.get("emotional_state") or "",
        interventions=list(row.get("interventions") or []),
        progress=row.get("progress_notes") or "",
        plan=row.get("plan") or "",
        homework=list(row.get("homework") or []),
        section_markers=[
            NoteSection(title=s.get("title", ""), content=s.get("content", ""))
            for s in row.get("section_markers") or []
        ],
    )


class NoteStore(Protocol):
    def save(
        self,
        note: FormattedNote,
        client: ClientContext,
        user_id: str,
        session_date: Optional[str] = None,
    ) -> SavedNote:
        ...


class SupabaseNoteStore:
    """Writes notes to the ``session_notes`` table and stamps the client row."""

    def __init__(self, client: Any, notes_table: str = "session_notes", clients_table: str = "clients") -> None:
        self.client = client
        self.notes_table = notes_table
        self.clients_table = clients_table

    def save(
        self,
        note: FormattedNote,
        client: ClientContext,
        user_id: str,
        session_date: Optional[str] = None,
    ) -> SavedNote:
        if not user_id:
            raise PersistenceError("User profile not found.")
        session_date = session_date or _now_iso()
        row = note_row(note, client.client_id, user_id, session_date)
        try:
            response = self.client.table(self.notes_table).insert(row).execute()
            self.client.table(self.clients_table).update(
                {"last_session_date": session_date}
            ).eq("id", client.client_id).execute()
        except Exception as exc:
            logger.exception("Saving session note for client %s failed", client.client_id)
            raise PersistenceError(
                "Failed to save session notes. Please try again."
            ) from exc

        data = getattr(response, "data", None) or []
        note_id = data[0].get("id") if data and isinstance(data[0], dict) else None
        logger.info("Saved session note %s for client %s", note_id, client.client_id)
        return SavedNote(
            note_id=note_id,
            client_id=client.client_id,
            user_id=user_id,
            session_date=session_date,
            note=note,
            template_type=TEMPLATE_TYPE,
        )


class LocalNoteStore:
    """JSON files under ``<base_dir>/Sessions`` for offline use."""

    def __init__(self, base_dir: str) -> None:
        self.paths = ensure_structure(base_dir)
        self.clients_index = os.path.join(self.paths["sessions"], "clients.json")

    def _read_index(self) -> Dict[str, Any]:
        if not os.path.exists(self.clients_index):
            return {}
        with open(self.clients_index, "r", encoding="utf-8") as handle:
            return json.load(handle)

    def save(
        self,
        note: FormattedNote,
        client: ClientContext,
        user_id: str,
        session_date: Optional[str] = None,
    ) -> SavedNote:
        session_date = session_date or _now_iso()
        basename = build_session_basename(client.name or client.client_id)
        path = os.path.join(self.paths["sessions"], f"{basename}.note.json")
        row = note_row(note, client.client_id, user_id, session_date)
        row["id"] = basename
        try:
            with open(path, "w", encoding="utf-8") as handle:
                json.dump(row, handle, indent=2)
            index = self._read_index()
            entry = index.setdefault(client.client_id, {"name": client.name})
            entry["last_session_date"] = session_date
            with open(self.clients_index, "w", encoding="utf-8") as handle:
                json.dump(index, handle, indent=2)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not write {path}: {exc}") from exc

        logger.info("Saved session note to %s", path)
        return SavedNote(
            note_id=basename,
            client_id=client.client_id,
            user_id=user_id,
            session_date=session_date,
            note=note,
            template_type=TEMPLATE_TYPE,
        )

    def last_session_date(self, client_id: str) -> Optional[str]:
        return self._read_index().get(client_id, {}).get("last_session_date")


def load_note(path: str) -> SavedNote:
    with open(path, "r", encoding="utf-8") as handle:
        row = json.load(handle)
    return SavedNote(
        note_id=row.get("id"),
        client_id=row.get("client_id", ""),
        user_id=row.get("user_id", ""),
        session_date=row.get("session_date", ""),
        note=note_from_row(row),
        template_type=row.get("template_type", TEMPLATE_TYPE),
    )
