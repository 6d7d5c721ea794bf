"""Construction of the external service clients.

The entry points build these once and hand them to the components that
need them.
"""

from __future__ import annotations

from typing import Any, Optional

from .config import Config
from .errors import ConfigError
from .formatter import NoteFormatter
from .markers import section_id_for
from .models import ClientContext, SectionDefinition
from .pipeline import NoteSession
from .recorder import AudioCapture
from .store import LocalNoteStore, NoteStore, SupabaseNoteStore
from .transcriber import build_transcriber


def create_openai_client(config: Config) -> Any:
    if not config.openai.api_key:
        raise ConfigError("OpenAI API key missing (set openai.api_key or OPENAI_API_KEY).")
    try:
        from openai import OpenAI
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("openai is required for transcription and formatting.") from exc

    kwargs = {"api_key": config.openai.api_key}
    if config.openai.base_url:
        kwargs["base_url"] = config.openai.base_url
    return OpenAI(**kwargs)


def create_supabase_client(config: Config) -> Any:
    if not config.supabase.url or not config.supabase.key:
        raise ConfigError("Supabase url/key missing (set supabase.* or SUPABASE_URL/SUPABASE_KEY).")
    try:
        from supabase import create_client
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("supabase is required for the supabase store.") from exc
    return create_client(config.supabase.url, config.supabase.key)


def create_note_store(config: Config) -> NoteStore:
    if config.store == "local":
        return LocalNoteStore(config.base_dir)
    return SupabaseNoteStore(create_supabase_client(config))


def create_note_session(
    config: Config,
    client: ClientContext,
    openai_client: Any = None,
    store: Optional[NoteStore] = None,
) -> NoteSession:
    """Wire a ``NoteSession`` from config; missing clients are created here."""
    if openai_client is None:
        openai_client = create_openai_client(config)
    sections = [
        SectionDefinition(id=s.get("id") or section_id_for(s["title"]), title=s["title"])
        for s in config.sections
    ]
    capture = AudioCapture(
        sample_rate_hz=config.audio.sample_rate_hz,
        channels=config.audio.channels,
        device_name=config.device_name,
    )
    return NoteSession(
        client=client,
        capture=capture,
        transcriber=build_transcriber(config, openai_client),
        formatter=NoteFormatter(
            openai_client,
            model=config.formatting.model,
            polish_model=config.formatting.polish_model,
        ),
        store=store or create_note_store(config),
        user_id=config.user_id or "",
        sections=sections,
        words_per_second=config.segmentation.words_per_second,
    )
