import json
import os

import pytest

from conftest import FakeSupabase
from sessionscribe.errors import PersistenceError
from sessionscribe.formatter import fallback_note
from sessionscribe.models import ClientContext
from sessionscribe.store import LocalNoteStore, SupabaseNoteStore, load_note, note_row

CLIENT = ClientContext(client_id="c-42", name="Sam Rivera", therapy_type="DBT")


def test_note_row_maps_columns():
    note = fallback_note()
    row = note_row(note, "c-42", "u-1", "2026-10-19T10:00:00+00:00")
    assert row["client_id"] == "c-42"
    assert row["user_id"] == "u-1"
    assert row["progress_notes"] == note.progress
    assert row["key_topics"] == note.key_topics
    assert row["template_type"] == "ai_structured"
    assert row["formatted_content"]["emotionalState"] == note.emotional_state


def test_supabase_store_inserts_note_and_stamps_client():
    db = FakeSupabase()
    saved = SupabaseNoteStore(db).save(
        fallback_note(), CLIENT, "u-1", session_date="2026-10-19T10:00:00+00:00"
    )

    insert, update = db.executed
    assert insert.table == "session_notes"
    assert insert.operation == "insert"
    assert insert.payload["client_id"] == "c-42"
    assert update.table == "clients"
    assert update.payload == {"last_session_date": "2026-10-19T10:00:00+00:00"}
    assert update.filters == [("id", "c-42")]
    assert saved.note_id == "note-1"
    assert saved.session_date == "2026-10-19T10:00:00+00:00"


def test_supabase_failure_raises_single_error():
    db = FakeSupabase(fail_on="session_notes")
    with pytest.raises(PersistenceError):
        SupabaseNoteStore(db).save(fallback_note(), CLIENT, "u-1")
    assert db.executed == []


def test_supabase_requires_user():
    with pytest.raises(PersistenceError):
        SupabaseNoteStore(FakeSupabase()).save(fallback_note(), CLIENT, "")


def test_local_store_writes_note_and_client_index(tmp_path):
    store = LocalNoteStore(str(tmp_path))
    saved = store.save(fallback_note(), CLIENT, "u-1", session_date="2026-10-19")

    files = [f for f in os.listdir(tmp_path / "Sessions") if f.endswith(".note.json")]
    assert len(files) == 1
    assert "Sam-Rivera" in files[0]
    assert store.last_session_date("c-42") == "2026-10-19"

    loaded = load_note(str(tmp_path / "Sessions" / files[0]))
    assert loaded.note_id == saved.note_id
    assert loaded.client_id == "c-42"
    assert loaded.note == saved.note

    with open(tmp_path / "Sessions" / "clients.json", encoding="utf-8") as handle:
        assert json.load(handle)["c-42"]["name"] == "Sam Rivera"
