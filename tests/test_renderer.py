from sessionscribe.formatter import fallback_note
from sessionscribe.markers import default_sections
from sessionscribe.models import ClientContext, Marker
from sessionscribe.renderer import render_note


def test_render_note_includes_frontmatter_and_sections():
    client = ClientContext(
        client_id="c-1", name="Jordan Lee", therapy_type="CBT", focus_areas=["sleep"]
    )
    note = render_note(
        fallback_note(),
        client,
        "2026-10-19",
        duration_seconds=1200,
        markers=[Marker(time=95, section="plan"), Marker(time=0, section="overview")],
        sections=default_sections(),
        transcript="### Session Overview\n\nhello",
    )
    assert note.startswith("---\nschema: 1")
    assert 'client: "Jordan Lee"' in note
    assert "duration_seconds: 1200" in note
    assert "focus_areas:" in note
    assert "## Key Topics" in note
    assert "## Homework" in note
    assert "- [0:00] Session Overview\n- [1:35] Treatment Plan" in note
    assert "## Transcript" in note
