import json

from sessionscribe.cli import main


def test_segment_command_prints_sectioned_text(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    transcript = tmp_path / "transcript.txt"
    transcript.write_text("hello world this is a test of markers", encoding="utf-8")
    markers = tmp_path / "markers.json"
    markers.write_text(
        json.dumps([{"time": 2, "section": "plan"}, {"time": 0, "section": "overview"}]),
        encoding="utf-8",
    )

    code = main(["segment", str(transcript), str(markers)])

    out = capsys.readouterr().out
    assert code == 0
    assert "### Session Overview\n\nhello world this is a test" in out
    assert "### Treatment Plan\n\nof markers" in out


def test_show_command_reads_local_note(tmp_path, monkeypatch, capsys):
    from sessionscribe.formatter import fallback_note
    from sessionscribe.models import ClientContext
    from sessionscribe.store import LocalNoteStore

    monkeypatch.chdir(tmp_path)
    store = LocalNoteStore(str(tmp_path))
    saved = store.save(fallback_note(), ClientContext(client_id="c-1", name="Ana"), "u-1")
    path = tmp_path / "Sessions" / f"{saved.note_id}.note.json"

    assert main(["show", str(path)]) == 0
    assert "Client: c-1" in capsys.readouterr().out


def test_missing_api_key_is_reported_not_raised(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    text = tmp_path / "session.txt"
    text.write_text("Client discussed sleep.", encoding="utf-8")

    code = main(["format", str(text), "--client-name", "Ana"])

    assert code == 1
    assert "Error: OpenAI API key missing" in capsys.readouterr().out


def test_invalid_config_is_reported(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    config = tmp_path / "bad.yml"
    config.write_text("store: carrier-pigeon\n", encoding="utf-8")

    assert main(["--config", str(config), "devices"]) == 1
    assert "Error: Unknown store" in capsys.readouterr().out
