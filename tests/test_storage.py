import os
from datetime import datetime

from sessionscribe.storage import build_session_basename, ensure_structure, slugify, timestamp_slug


def test_timestamp_slug_format():
    slug = timestamp_slug()
    assert len(slug) == 10
    assert slug.count("-") == 2


def test_build_session_basename():
    name = build_session_basename("Client Interview", datetime(2026, 10, 19, 9, 5, 0))
    assert name == "2026-10-19_090500--Client-Interview"


def test_slugify_strips_unsafe_characters():
    assert slugify("Sam / Rivera?") == "Sam-Rivera"
    assert slugify("   ") == "Session"


def test_ensure_structure_creates_folders(tmp_path):
    paths = ensure_structure(str(tmp_path))
    for key in ("recordings", "notes", "sessions", "logs"):
        assert os.path.isdir(paths[key])
