"""Tests für "Woche fortsetzen" (RecurrenceEngine und Wochenauswahl)."""

from datetime import date, timedelta

from config.defaults import default_engine_config
from engine import RecurrenceEngine, week_sessions_for
from engine.recurrence import week_bounds
from models import Holiday, HolidayCalendar, Session, SessionKind, SessionStatus, Subject

CONFIG = default_engine_config()
MONDAY = date(2024, 1, 8)

LAW = Subject(id="LAW", name="Pháp luật", total_periods=30)
SHORT = Subject(id="SHORT", name="Thuế", total_periods=6)
CODE = Subject(id="CODE", name="Lập trình", total_periods=60, major_id="it")
SUBJECTS = {s.id: s for s in (LAW, SHORT, CODE)}


def make_session(**overrides) -> Session:
    values = dict(
        teacher_id="T1", subject_id="LAW", class_id="C1", room_id="R1",
        date=MONDAY, start_period=1, period_count=2,
    )
    values.update(overrides)
    return Session(**values)


def propagate(week, all_sessions=None, holidays=None, class_names=None):
    engine = RecurrenceEngine(CONFIG)
    return engine.propagate(
        week,
        week if all_sessions is None else all_sessions,
        SUBJECTS,
        HolidayCalendar(holidays or []),
        class_names,
    )


# ─── WOCHENAUSWAHL ────────────────────────────────────────────────────────────

class TestWeekSelection:
    def test_week_bounds(self):
        """Montag und Sonntag der Woche eines beliebigen Tages."""
        assert week_bounds(date(2024, 1, 10)) == (MONDAY, date(2024, 1, 14))
        assert week_bounds(MONDAY) == (MONDAY, date(2024, 1, 14))

    def test_monday_to_saturday(self):
        """Samstag gehört zur Woche, Sonntag und Folgemontag nicht."""
        sessions = [make_session(date=MONDAY + timedelta(days=i)) for i in range(8)]
        selected = week_sessions_for("C1", date(2024, 1, 11), sessions)
        assert [s.date.weekday() for s in selected] == [0, 1, 2, 3, 4, 5]

    def test_only_requested_class(self):
        """Sitzungen anderer Klassen werden nicht ausgewählt."""
        sessions = [make_session(class_id="C1"), make_session(class_id="C2", room_id="R2")]
        assert [s.class_id for s in week_sessions_for("C1", MONDAY, sessions)] == ["C1"]


# ─── FORTSCHREIBUNG ───────────────────────────────────────────────────────────

class TestRecurrenceEngine:
    def test_copies_week_forward(self):
        """Jede Sitzung erscheint eine Woche später, neu geplant mit neuer ID."""
        week = [
            make_session(status=SessionStatus.COMPLETED, note="Kapitel 1"),
            make_session(date=MONDAY + timedelta(days=2), start_period=6, period_count=3),
        ]
        result = propagate(week)
        assert result.created_count == 2
        first, second = result.created
        assert first.date == date(2024, 1, 15)
        assert first.status == SessionStatus.PENDING
        assert first.id != week[0].id
        assert first.note == "Kapitel 1"
        assert (second.date, second.start_period, second.period_count) == (date(2024, 1, 17), 6, 3)
        assert result.report_lines() == ["2 Sitzungen in die Folgewoche übernommen."]

    def test_idempotent(self):
        """Ein zweiter Lauf erzeugt nichts mehr."""
        week = [make_session(), make_session(date=MONDAY + timedelta(days=1))]
        first = propagate(week)
        second = propagate(week, week + first.created)
        assert first.created_count == 2
        assert second.created_count == 0
        assert second.warnings == []

    def test_exams_not_copied(self):
        """Prüfungen werden nie fortgeschrieben."""
        week = [make_session(kind=SessionKind.EXAM)]
        assert propagate(week).created_count == 0

    def test_holiday_warning(self):
        """Zieltag in den Ferien: keine Sitzung, eine Warnung je Klasse und Fach."""
        holidays = [Holiday(start_date=date(2024, 1, 1), end_date=date(2024, 1, 3),
                            name="Tết Dương lịch")]
        week = [
            make_session(date=date(2023, 12, 25)),
            make_session(date=date(2023, 12, 27)),
            make_session(date=date(2023, 12, 28)),
        ]
        result = propagate(week, holidays=holidays, class_names={"C1": "CNTT K1"})
        assert [s.date for s in result.created] == [date(2024, 1, 4)]
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.kind == "holiday"
        assert warning.message == (
            "Klasse CNTT K1: Kein Unterricht am 01.01.2024 wegen Ferien: Tết Dương lịch"
        )
        assert result.report_lines() == [warning.message]

    def test_clamped_to_remaining(self):
        """Die Kopie wird auf die Reststunden gekürzt."""
        history = [make_session(subject_id="SHORT", date=date(2024, 1, 1), period_count=5)]
        week = [make_session(subject_id="SHORT", period_count=3)]
        result = propagate(week, history + week)
        assert result.created_count == 0

        history = [make_session(subject_id="SHORT", date=date(2024, 1, 1), period_count=2)]
        week = [make_session(subject_id="SHORT", period_count=3)]
        result = propagate(week, history + week)
        assert [s.period_count for s in result.created] == [1]

    def test_no_double_counting_within_run(self):
        """Stunden aus demselben Lauf zählen für spätere Sitzungen mit."""
        week = [
            make_session(subject_id="SHORT"),
            make_session(subject_id="SHORT", date=MONDAY + timedelta(days=2)),
        ]
        # 4 von 6 Stunden unterrichtet → nur noch 2 Stunden für die Folgewoche
        result = propagate(week)
        assert result.created_count == 1
        assert result.created[0].date == date(2024, 1, 15)
        assert result.warnings == []

    def test_near_completion_warning(self):
        """Bleiben höchstens 4 Stunden übrig, erscheint eine Warnung."""
        week = [make_session(subject_id="SHORT", period_count=1)]
        result = propagate(week)
        assert result.created_count == 1
        assert len(result.warnings) == 1
        assert result.warnings[0].kind == "near_completion"
        assert result.warnings[0].message == "Klasse C1: Fach Thuế endet bald (noch 4 Stunden)"

    def test_near_completion_names_group(self):
        """Die Warnung nennt die Teilgruppe."""
        week = [make_session(subject_id="SHORT", period_count=1, group="Lab A")]
        result = propagate(week)
        assert result.warnings[0].group == "Lab A"
        assert "(Lab A)" in result.warnings[0].message

    def test_existing_slot_skipped_silently(self):
        """Ist der Zielslot der Klasse schon belegt, wird still übersprungen."""
        week = [make_session()]
        occupied = make_session(date=date(2024, 1, 15), subject_id="CODE", room_id="R7",
                                teacher_id="T7")
        result = propagate(week, week + [occupied])
        assert result.created_count == 0
        assert result.warnings == []

    def test_conflict_skipped_silently(self):
        """Belegter Raum in der Folgewoche: Sitzung wird ohne Warnung ausgelassen."""
        week = [make_session()]
        blocker = make_session(class_id="C9", teacher_id="T9", date=date(2024, 1, 15))
        result = propagate(week, week + [blocker])
        assert result.created_count == 0
        assert result.warnings == []

    def test_joint_group_copied_together(self):
        """Gemeinsamer Unterricht wird für alle Klassen der Gruppe fortgeschrieben."""
        c1 = make_session(subject_id="CODE", class_id="C1")
        c2 = make_session(subject_id="CODE", class_id="C2")
        week = week_sessions_for("C1", MONDAY, [c1, c2])
        result = propagate(week, [c1, c2])
        assert sorted(s.class_id for s in result.created) == ["C1", "C2"]
        assert len({s.signature for s in result.created}) == 1

    def test_unknown_subject_skipped(self):
        """Sitzungen mit unbekanntem Fach werden übersprungen."""
        result = propagate([make_session(subject_id="XYZ")])
        assert result.created_count == 0
