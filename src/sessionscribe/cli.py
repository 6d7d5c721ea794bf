"""CLI entry point."""

from __future__ import annotations

import argparse
import json
import logging
import os
from typing import List, Optional

from .clients import create_note_session, create_openai_client
from .config import DEFAULT_CONFIG_PATH, load_config
from .errors import SessionScribeError
from .formatter import NoteFormatter, fallback_note
from .logging_utils import setup_logging
from .markers import section_id_for
from .models import ClientContext, Marker, SectionDefinition
from .recorder import list_input_devices
from .renderer import render_note
from .segmentation import sectionize
from .storage import build_session_basename, ensure_structure, timestamp_slug
from .store import load_note
from .transcriber import build_transcriber

RECORD_HELP = (
    "While recording: type a section id and Enter to mark it, '+Title' to add "
    "a section, '-id' to remove one, '?' to list sections, empty line to stop."
)


def _client_from_args(args) -> ClientContext:
    focus = [f.strip() for f in (args.focus or "").split(",") if f.strip()]
    return ClientContext(
        client_id=args.client_id or section_id_for(args.client_name),
        name=args.client_name,
        therapy_type=args.therapy_type or "",
        focus_areas=focus,
    )


def _add_client_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--client-name", required=True, help="Client display name.")
    cmd.add_argument("--client-id", help="Client record id.")
    cmd.add_argument("--therapy-type", help="Therapy modality, e.g. CBT.")
    cmd.add_argument("--focus", help="Comma-separated focus areas.")


def _load_markers(path: str) -> List[Marker]:
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return [Marker(time=int(item["time"]), section=str(item["section"])) for item in payload]


def _record(args, config, logger) -> int:
    client = _client_from_args(args)
    session = create_note_session(config, client)
    sections_line = ", ".join(s.id for s in session.markers.sections)
    try:
        session.start_recording()
    except SessionScribeError as exc:
        print(f"Error: {exc}")
        return 1

    print(f"Recording for {client.name}. Sections: {sections_line}")
    print(RECORD_HELP)
    try:
        while True:
            line = input("> ").strip()
            if not line or line.lower() == "stop":
                break
            if line == "?":
                for section in session.markers.sections:
                    print(f"  {section.id}: {section.title}")
            elif line.startswith("+"):
                section = session.add_section(line[1:])
                print(f"Section: {section.id}" if section else "Section title required.")
            elif line.startswith("-"):
                removed = session.remove_section(line[1:].strip())
                print("Removed." if removed else "No such section.")
            else:
                marker = session.mark(line)
                if marker:
                    print(f"[{marker.time}s] {session.markers.resolve_title(marker.section)}")
                else:
                    print(f"Unknown section '{line}'.")
    except (KeyboardInterrupt, EOFError):
        pass

    print("Transcribing...")
    outcome = session.stop_recording()
    if outcome.used_placeholder:
        print(f"Warning: {session.last_error}. A placeholder transcript was used.")
    print(outcome.sectioned_text)

    paths = ensure_structure(config.base_dir)
    if args.keep_audio and session.last_audio:
        audio_path = os.path.join(
            paths["recordings"],
            f"{build_session_basename(client.name)}.wav",
        )
        with open(audio_path, "wb") as handle:
            handle.write(session.last_audio)
        print(f"Audio written: {audio_path}")

    if args.no_format:
        return 0
    print("Formatting notes...")
    note_outcome = session.format_notes()
    if note_outcome.used_fallback:
        print(f"Warning: {session.last_error}")

    session_date = timestamp_slug()
    markdown = render_note(
        note_outcome.note,
        client,
        session_date,
        duration_seconds=outcome.duration_seconds,
        markers=outcome.markers,
        sections=session.markers.sections,
        transcript=outcome.sectioned_text,
    )
    note_path = os.path.join(
        paths["notes"], f"{build_session_basename(client.name)}.md"
    )
    with open(note_path, "w", encoding="utf-8") as handle:
        handle.write(markdown)
    print(f"Note written: {note_path}")

    if args.no_save:
        return 0
    try:
        saved = session.save()
    except SessionScribeError as exc:
        logger.error("Save failed: %s", exc)
        print(f"Error: {exc}")
        return 1
    print(f"Saved note {saved.note_id or ''} for {client.name}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="sessionscribe")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Config file.")
    parser.add_argument("--debug", action="store_true", help="Verbose logging.")
    sub = parser.add_subparsers(dest="command")

    devices_cmd = sub.add_parser("devices")
    devices_cmd.add_argument("--match", help="Filter device names by substring.")

    record_cmd = sub.add_parser("record")
    _add_client_args(record_cmd)
    record_cmd.add_argument("--no-format", action="store_true", help="Stop after transcription.")
    record_cmd.add_argument("--no-save", action="store_true", help="Do not persist the note.")
    record_cmd.add_argument("--keep-audio", action="store_true", help="Write the WAV to Recordings.")

    transcribe_cmd = sub.add_parser("transcribe")
    transcribe_cmd.add_argument("audio_path", help="Path to audio file.")
    transcribe_cmd.add_argument("--out", help="Write the transcript to a file.")

    segment_cmd = sub.add_parser("segment")
    segment_cmd.add_argument("transcript_path", help="Plain-text transcript.")
    segment_cmd.add_argument("markers_path", help="JSON list of {time, section}.")
    segment_cmd.add_argument(
        "--words-per-second", type=float, help="Override the speech-rate estimate."
    )

    format_cmd = sub.add_parser("format")
    format_cmd.add_argument("text_path", help="Transcript or sectioned text file.")
    _add_client_args(format_cmd)
    format_cmd.add_argument("--out", help="Write the note JSON to a file.")

    show_cmd = sub.add_parser("show")
    show_cmd.add_argument("path", help="Path to a .note.json file")
    sub.add_parser("gui")

    args = parser.parse_args(argv)
    try:
        config = load_config(args.config)
    except SessionScribeError as exc:
        print(f"Error: {exc}")
        return 1
    paths = ensure_structure(config.base_dir) if args.command in ("record", "gui") else None
    logger, _log_path = setup_logging(
        log_dir=paths["logs"] if paths else "logs",
        level=logging.DEBUG if args.debug else logging.INFO,
        console=True,
    )

    if args.command is None:
        parser.print_help()
        return 0
    try:
        return _dispatch(args, config, logger)
    except SessionScribeError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}")
        return 1


def _dispatch(args, config, logger) -> int:
    if args.command == "devices":
        devices = list_input_devices()
        if args.match:
            devices = [
                d for d in devices if args.match.lower() in d.get("name", "").lower()
            ]
        for device in devices:
            name = device.get("name", "Unknown")
            index = device.get("index", "?")
            channels = device.get("max_input_channels", 0)
            print(f"[{index}] {name} (inputs: {channels})")
        return 0

    if args.command == "record":
        return _record(args, config, logger)

    if args.command == "transcribe":
        openai_client = None
        if config.transcription.backend == "openai":
            openai_client = create_openai_client(config)
        transcriber = build_transcriber(config, openai_client)
        with open(args.audio_path, "rb") as handle:
            audio = handle.read()
        result = transcriber.transcribe(audio, filename=os.path.basename(args.audio_path))
        if not result.success:
            print(f"Transcription failed: {result.error}")
            return 1
        if args.out:
            with open(args.out, "w", encoding="utf-8") as handle:
                handle.write(result.text)
        print(result.text)
        return 0

    if args.command == "segment":
        with open(args.transcript_path, "r", encoding="utf-8") as handle:
            transcript = handle.read()
        markers = _load_markers(args.markers_path)
        sections = [
            SectionDefinition(id=s.get("id") or section_id_for(s["title"]), title=s["title"])
            for s in config.sections
        ]
        wps = args.words_per_second or config.segmentation.words_per_second
        print(sectionize(transcript, markers, sections, wps))
        return 0

    if args.command == "format":
        with open(args.text_path, "r", encoding="utf-8") as handle:
            text = handle.read()
        formatter = NoteFormatter(
            create_openai_client(config),
            model=config.formatting.model,
            polish_model=config.formatting.polish_model,
        )
        result = formatter.format(text, _client_from_args(args))
        note = result.note if result.success else fallback_note(result.error)
        if not result.success:
            print(f"Warning: formatting failed ({result.error}); placeholder note used.")
        payload = json.dumps(note.to_dict(), indent=2)
        if args.out:
            with open(args.out, "w", encoding="utf-8") as handle:
                handle.write(payload)
        print(payload)
        return 0

    if args.command == "show":
        saved = load_note(args.path)
        print(f"Client: {saved.client_id}")
        print(f"Date: {saved.session_date}")
        print(f"Overview: {saved.note.overview}")
        print(f"Key topics: {', '.join(saved.note.key_topics)}")
        print(f"Plan: {saved.note.plan}")
        return 0

    if args.command == "gui":
        from .gui import launch_gui

        launch_gui(args.config)
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
