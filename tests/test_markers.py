from sessionscribe.markers import SectionMarkerRecorder, section_id_for
from sessionscribe.models import Marker, SectionDefinition


class _Clock:
    def __init__(self, value=None):
        self.value = value

    def __call__(self):
        return self.value


def test_default_sections_are_seeded():
    recorder = SectionMarkerRecorder()
    assert [s.id for s in recorder.sections] == [
        "overview",
        "content",
        "observations",
        "plan",
        "homework",
    ]


def test_add_section_rejects_blank_titles():
    recorder = SectionMarkerRecorder()
    assert recorder.add_section("") is None
    assert recorder.add_section("   ") is None
    assert len(recorder.sections) == 5


def test_add_section_derives_slug():
    recorder = SectionMarkerRecorder()
    section = recorder.add_section("Intro Notes")
    assert section.id == "intro_notes"
    assert section.title == "Intro Notes"
    assert recorder.sections[-1] is section


def test_section_id_collapses_whitespace():
    assert section_id_for("  Risk   Assessment ") == "risk_assessment"


def test_add_section_collision_keeps_existing():
    recorder = SectionMarkerRecorder()
    first = recorder.add_section("Intro Notes")
    second = recorder.add_section("intro  notes")
    assert second is first
    assert [s.id for s in recorder.sections].count("intro_notes") == 1
    assert recorder.resolve_title("intro_notes") == "Intro Notes"


def test_mark_is_noop_when_not_recording():
    recorder = SectionMarkerRecorder(clock=_Clock(None))
    assert recorder.mark("overview") is None
    assert recorder.markers == []


def test_mark_uses_elapsed_clock():
    clock = _Clock(0)
    recorder = SectionMarkerRecorder(clock=clock)
    recorder.mark("overview")
    clock.value = 7
    recorder.mark("plan")
    recorder.mark("plan")
    assert recorder.markers == [
        Marker(time=0, section="overview"),
        Marker(time=7, section="plan"),
        Marker(time=7, section="plan"),
    ]
    assert recorder.current_section == "plan"


def test_mark_ignores_unknown_section():
    recorder = SectionMarkerRecorder(clock=_Clock(3))
    assert recorder.mark("nope") is None
    assert recorder.markers == []


def test_remove_section_discards_its_markers():
    clock = _Clock(1)
    recorder = SectionMarkerRecorder(clock=clock)
    recorder.mark("overview")
    recorder.mark("plan")
    assert recorder.remove_section("plan") is True
    assert recorder.markers == [Marker(time=1, section="overview")]
    assert recorder.current_section is None
    assert recorder.remove_section("plan") is False


def test_active_markers_filter_orphans_and_reset_clears():
    recorder = SectionMarkerRecorder(clock=_Clock(2))
    recorder.mark("overview")
    recorder.mark("content")
    recorder._sections = [s for s in recorder.sections if s.id != "content"]
    assert recorder.active_markers() == [Marker(time=2, section="overview")]
    recorder.reset()
    assert recorder.markers == []


def test_initial_sections_with_duplicate_ids_keep_first():
    recorder = SectionMarkerRecorder(
        [
            SectionDefinition(id="plan", title="Plan"),
            SectionDefinition(id="plan", title="Plan B"),
            SectionDefinition(id="homework", title="Homework"),
        ]
    )
    assert [s.id for s in recorder.sections] == ["plan", "homework"]
    assert recorder.resolve_title("plan") == "Plan"
    assert recorder.remove_section("plan")
    assert [s.id for s in recorder.sections] == ["homework"]
