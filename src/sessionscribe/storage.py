"""Local folder layout and naming utilities."""

from __future__ import annotations

import os
import re
from datetime import datetime


def timestamp_slug(dt: datetime | None = None) -> str:
    now = dt or datetime.now()
    return now.strftime("%Y-%m-%d")


def slugify(value: str, fallback: str = "Session") -> str:
    cleaned = re.sub(r"[^\w\s-]", "", value or "").strip()
    if not cleaned:
        return fallback
    return re.sub(r"\s+", "-", cleaned)


def build_session_basename(name: str, dt: datetime | None = None) -> str:
    stamp = (dt or datetime.now()).strftime("%Y-%m-%d_%H%M%S")
    return f"{stamp}--{slugify(name)}"


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def ensure_structure(base_dir: str) -> dict:
    root = base_dir or os.getcwd()
    paths = {
        "root": root,
        "recordings": os.path.join(root, "Recordings"),
        "notes": os.path.join(root, "Notes"),
        "sessions": os.path.join(root, "Sessions"),
        "logs": os.path.join(root, "Logs"),
    }
    for path in paths.values():
        ensure_dir(path)
    return paths
