"""Tkinter front end for recording and formatting session notes."""

from __future__ import annotations

import logging
import queue
import threading
from datetime import datetime

from .clients import create_note_session
from .config import DEFAULT_CONFIG_PATH, Config, load_config
from .errors import SessionScribeError
from .logging_utils import setup_logging
from .markers import section_id_for
from .models import ClientContext
from .storage import ensure_structure


def launch_gui(config_path: str = DEFAULT_CONFIG_PATH) -> None:
    import tkinter as tk
    from tkinter import ttk

    root = tk.Tk()
    root.title("SessionScribe")
    root.resizable(False, False)

    style = ttk.Style(root)
    try:
        style.theme_use("clam")
    except tk.TclError:
        pass
    style.configure("Error.TLabel", foreground="#b42318")
    style.configure("Active.TButton", foreground="#0b5394")

    try:
        config = load_config(config_path)
    except SessionScribeError:
        config = Config()

    base_paths = ensure_structure(config.base_dir)
    logger, _log_path = setup_logging(log_dir=base_paths["logs"], level=logging.INFO)

    def _thread_excepthook(args) -> None:
        logger.exception(
            "Thread exception",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    threading.excepthook = _thread_excepthook

    results: "queue.Queue[tuple[str, object]]" = queue.Queue()
    state = {"session": None, "closed": False, "stopping": False}

    main = ttk.Frame(root, padding=10)
    main.grid(row=0, column=0, sticky="nsew")

    client_frame = ttk.LabelFrame(main, text="Client")
    client_frame.grid(row=0, column=0, sticky="ew")
    name_var = tk.StringVar()
    client_id_var = tk.StringVar()
    therapy_var = tk.StringVar()
    focus_var = tk.StringVar()
    for row, (label, var) in enumerate(
        [
            ("Name", name_var),
            ("Client ID", client_id_var),
            ("Therapy type", therapy_var),
            ("Focus areas", focus_var),
        ]
    ):
        ttk.Label(client_frame, text=label).grid(row=row, column=0, sticky="w", padx=4, pady=2)
        ttk.Entry(client_frame, textvariable=var, width=40).grid(
            row=row, column=1, sticky="ew", padx=4, pady=2
        )

    sections_frame = ttk.LabelFrame(main, text="Sections")
    sections_frame.grid(row=1, column=0, sticky="ew", pady=(8, 0))
    buttons_frame = ttk.Frame(sections_frame)
    buttons_frame.grid(row=0, column=0, columnspan=2, sticky="ew")
    new_section_var = tk.StringVar()
    new_section_entry = ttk.Entry(sections_frame, textvariable=new_section_var, width=30)
    new_section_entry.grid(row=1, column=0, sticky="w", padx=4, pady=4)
    add_section_btn = ttk.Button(sections_frame, text="Add section")
    add_section_btn.grid(row=1, column=1, sticky="w", padx=4, pady=4)

    controls = ttk.Frame(main)
    controls.grid(row=2, column=0, sticky="ew", pady=(8, 0))
    record_btn = ttk.Button(controls, text="Start recording")
    record_btn.grid(row=0, column=0, sticky="w")
    timer_var = tk.StringVar(value="0:00")
    ttk.Label(controls, textvariable=timer_var).grid(row=0, column=1, padx=(12, 0))
    status_var = tk.StringVar(value="Idle")
    ttk.Label(controls, textvariable=status_var).grid(row=0, column=2, padx=(12, 0))

    transcript_box = tk.Text(main, width=72, height=16, wrap="word")
    transcript_box.grid(row=3, column=0, sticky="ew", pady=(8, 0))

    actions = ttk.Frame(main)
    actions.grid(row=4, column=0, sticky="ew", pady=(8, 0))
    polish_btn = ttk.Button(actions, text="Format notes")
    polish_btn.grid(row=0, column=0, sticky="w")
    save_btn = ttk.Button(actions, text="Save notes")
    save_btn.grid(row=0, column=1, sticky="w", padx=(8, 0))

    error_var = tk.StringVar(value="")
    ttk.Label(main, textvariable=error_var, style="Error.TLabel", wraplength=520).grid(
        row=5, column=0, sticky="w", pady=(6, 0)
    )

    def _client_from_fields() -> ClientContext:
        name = name_var.get().strip()
        return ClientContext(
            client_id=client_id_var.get().strip() or section_id_for(name),
            name=name,
            therapy_type=therapy_var.get().strip(),
            focus_areas=[f.strip() for f in focus_var.get().split(",") if f.strip()],
        )

    def _session():
        if state["session"] is None:
            state["session"] = create_note_session(config, _client_from_fields())
        return state["session"]

    def _set_error(message: str) -> None:
        error_var.set(message)
        if message:
            logger.warning("GUI error: %s", message)

    def _set_transcript(text: str) -> None:
        transcript_box.delete("1.0", "end")
        transcript_box.insert("end", text)

    def _refresh_sections() -> None:
        for child in buttons_frame.winfo_children():
            child.destroy()
        session = state["session"]
        sections = session.markers.sections if session else []
        current = session.markers.current_section if session else None
        recording = bool(session and session.is_recording)
        for idx, section in enumerate(sections):
            mark_btn = ttk.Button(
                buttons_frame,
                text=section.title,
                style="Active.TButton" if section.id == current else "TButton",
                command=lambda sid=section.id: _mark(sid),
            )
            mark_btn.grid(row=idx // 3, column=(idx % 3) * 2, sticky="ew", padx=2, pady=2)
            if not recording:
                mark_btn.state(["disabled"])
            ttk.Button(
                buttons_frame,
                text="x",
                width=2,
                command=lambda sid=section.id: _remove_section(sid),
            ).grid(row=idx // 3, column=(idx % 3) * 2 + 1, padx=(0, 6))

    def _update_controls() -> None:
        session = state["session"]
        busy = state["stopping"] or bool(
            session
            and (
                session.is_busy("stop_recording")
                or session.is_busy("polish_notes")
                or session.is_busy("save")
                or session.is_busy("format_notes")
            )
        )
        recording = bool(session and session.is_recording)
        record_btn.configure(text="Stop recording" if recording else "Start recording")
        record_btn.state(["disabled"] if busy else ["!disabled"])
        has_text = bool(transcript_box.get("1.0", "end").strip())
        for btn in (polish_btn, save_btn):
            btn.state(["disabled"] if busy or recording or not has_text else ["!disabled"])

    def _mark(section_id: str) -> None:
        session = state["session"]
        if session is None:
            return
        marker = session.mark(section_id)
        if marker:
            status_var.set(f"Marked {session.markers.resolve_title(section_id)} at {marker.time}s")
            _refresh_sections()

    def _add_section(_event=None) -> None:
        try:
            session = _session()
        except SessionScribeError as exc:
            _set_error(str(exc))
            return
        if session.add_section(new_section_var.get()):
            new_section_var.set("")
            _refresh_sections()

    def _remove_section(section_id: str) -> None:
        session = state["session"]
        if session and session.remove_section(section_id):
            _refresh_sections()

    def _run_worker(kind: str, func) -> None:
        def _worker() -> None:
            try:
                results.put((kind, func()))
            except Exception as exc:
                logger.exception("%s failed", kind)
                results.put(("error", exc))

        threading.Thread(target=_worker, daemon=True).start()

    def _toggle_recording() -> None:
        if not name_var.get().strip():
            _set_error("Select a client before recording.")
            return
        try:
            session = _session()
        except SessionScribeError as exc:
            _set_error(str(exc))
            return
        if session.is_recording:
            state["stopping"] = True
            record_btn.state(["disabled"])
            status_var.set("Transcribing...")
            _run_worker("transcribed", session.stop_recording)
        else:
            session.client = _client_from_fields()
            try:
                session.start_recording()
            except SessionScribeError as exc:
                _set_error(str(exc))
                return
            _set_error("")
            _set_transcript("")
            status_var.set("Recording...")
        _refresh_sections()
        root.after(50, _update_controls)

    def _polish() -> None:
        session = state["session"]
        if session is None:
            return
        session.transcript = transcript_box.get("1.0", "end").strip()
        status_var.set("Formatting notes...")
        _run_worker("polished", session.polish_notes)
        root.after(50, _update_controls)

    def _save() -> None:
        session = state["session"]
        if session is None:
            return
        text = transcript_box.get("1.0", "end").strip()
        if text != session.sectioned_text:
            session.sectioned_text = text
            session.note = None
        status_var.set("Saving...")
        _run_worker("saved", session.save)
        root.after(50, _update_controls)

    def _poll_results() -> None:
        while True:
            try:
                kind, payload = results.get_nowait()
            except queue.Empty:
                break
            if state["closed"]:
                continue
            session = state["session"]
            if kind in ("transcribed", "error"):
                state["stopping"] = False
            if kind == "transcribed":
                _set_transcript(payload.sectioned_text)
                if payload.used_placeholder and session is not None:
                    _set_error(f"{session.last_error}. A placeholder transcript was used.")
                status_var.set("Transcription complete")
            elif kind == "polished":
                if payload.success:
                    _set_transcript(payload.text)
                    status_var.set("Notes formatted")
                else:
                    _set_error("Failed to format notes. Please try again.")
                    status_var.set("Idle")
            elif kind == "saved":
                status_var.set(f"Saved {datetime.now():%H:%M}")
                _set_error("")
            elif kind == "error":
                _set_error(str(payload))
                status_var.set("Idle")
            _refresh_sections()
            _update_controls()
        root.after(200, _poll_results)

    def _update_timer() -> None:
        session = state["session"]
        elapsed = session.capture.elapsed_seconds() if session else None
        if elapsed is not None:
            mins, secs = divmod(elapsed, 60)
            timer_var.set(f"{mins}:{secs:02d}")
        root.after(500, _update_timer)

    def _on_close() -> None:
        logger.info("GUI closing")
        state["closed"] = True
        if state["session"] is not None:
            state["session"].close()
        root.destroy()

    record_btn.configure(command=_toggle_recording)
    polish_btn.configure(command=_polish)
    save_btn.configure(command=_save)
    add_section_btn.configure(command=_add_section)
    new_section_entry.bind("<Return>", _add_section)
    transcript_box.bind("<KeyRelease>", lambda _e: _update_controls())

    try:
        _session()
    except SessionScribeError as exc:
        _set_error(str(exc))
    _refresh_sections()
    _update_controls()
    _update_timer()
    _poll_results()
    root.protocol("WM_DELETE_WINDOW", _on_close)
    root.mainloop()
