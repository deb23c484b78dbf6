"""Tests für ScheduleService und das In-Memory-Repository."""

from datetime import date

import pytest

from config.defaults import default_engine_config
from data.repository import InMemorySessionRepository
from engine import (
    CapacityExceeded,
    ConflictError,
    HolidayBlocked,
    ScheduleService,
    SessionDraft,
    ValidationError,
)
from models import (
    CompletionOverride,
    Holiday,
    HolidayCalendar,
    OverrideTable,
    SchoolClass,
    Session,
    SessionKind,
    SessionStatus,
    Subject,
)

CONFIG = default_engine_config()
MONDAY = date(2024, 1, 8)

LAW = Subject(id="LAW", name="Pháp luật", total_periods=30)
SHORT = Subject(id="SHORT", name="Thuế", total_periods=4)
CODE = Subject(id="CODE", name="Lập trình", total_periods=60, major_id="it")
PE = Subject(id="PE", name="Giáo dục thể chất", total_periods=30, is_shared=True)
SUBJECTS = [LAW, SHORT, CODE, PE]

CLASSES = [
    SchoolClass(id="C1", name="CNTT K1", major_id="it"),
    SchoolClass(id="C2", name="CNTT K2", major_id="it"),
    SchoolClass(id="C3", name="KT K1", major_id="acc"),
]

NEW_YEAR = Holiday(start_date=date(2024, 1, 1), end_date=date(2024, 1, 3), name="Tết Dương lịch")


def make_draft(**overrides) -> SessionDraft:
    values = dict(
        teacher_id="T1", subject_id="LAW", class_id="C1", room_id="R1",
        date=MONDAY, start_period=1, period_count=2,
    )
    values.update(overrides)
    return SessionDraft(**values)


def make_session(**overrides) -> Session:
    values = dict(
        teacher_id="T1", subject_id="LAW", class_id="C1", room_id="R1",
        date=MONDAY, start_period=1, period_count=2,
    )
    values.update(overrides)
    return Session(**values)


def make_service(sessions=(), repository=None, overrides=None) -> ScheduleService:
    repo = repository if repository is not None else InMemorySessionRepository(list(sessions))
    return ScheduleService(
        repo, SUBJECTS, CLASSES, CONFIG,
        holidays=HolidayCalendar([NEW_YEAR]),
        overrides=overrides,
    )


class FailingRepository(InMemorySessionRepository):
    """Bricht beim n-ten Anlegen ab, um Teilschreibungen zu provozieren."""

    def __init__(self, fail_on: int) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.calls = 0

    def create(self, session: Session) -> str:
        self.calls += 1
        if self.calls == self.fail_on:
            raise RuntimeError("Speicher nicht erreichbar")
        return super().create(session)


# ─── REPOSITORY ───────────────────────────────────────────────────────────────

class TestInMemoryRepository:
    def test_create_get_update_delete(self):
        """Grundoperationen auf einer Sitzung."""
        repo = InMemorySessionRepository()
        s = make_session()
        assert repo.create(s) == s.id
        repo.update(s.id, {"teacher_id": "T2"})
        assert repo.get(s.id).teacher_id == "T2"
        repo.delete(s.id)
        assert repo.get(s.id) is None
        assert len(repo) == 0

    def test_duplicate_id_raises(self):
        """Doppelte ID → ValueError."""
        s = make_session()
        repo = InMemorySessionRepository([s])
        with pytest.raises(ValueError):
            repo.create(s)

    def test_missing_raises_key_error(self):
        """Ändern oder Löschen unbekannter Sitzungen → KeyError."""
        repo = InMemorySessionRepository()
        with pytest.raises(KeyError):
            repo.update("fehlt", {"teacher_id": "T2"})
        with pytest.raises(KeyError):
            repo.delete("fehlt")

    def test_update_revalidates(self):
        """Ungültige Änderung wird abgelehnt."""
        s = make_session()
        repo = InMemorySessionRepository([s])
        with pytest.raises(ValueError):
            repo.update(s.id, {"period_count": 0})
        assert repo.get(s.id).period_count == 2

    def test_transaction_rollback(self):
        """Ausnahme in der Transaktion stellt den vorherigen Stand wieder her."""
        s = make_session()
        repo = InMemorySessionRepository([s])
        with pytest.raises(RuntimeError):
            with repo.transaction():
                repo.create(make_session(class_id="C2"))
                repo.delete(s.id)
                raise RuntimeError("Abbruch")
        assert [x.id for x in repo.list_sessions()] == [s.id]


# ─── ANLEGEN ──────────────────────────────────────────────────────────────────

class TestCreate:
    def test_create_single(self):
        """Einfache Sitzung wird unverändert angelegt."""
        service = make_service()
        result = service.create(make_draft())
        assert not result.was_clamped
        assert len(result.sessions) == 1
        assert service.repository.get(result.sessions[0].id).room_id == "R1"

    def test_missing_fields(self):
        """Fehlende Pflichtfelder → ValidationError, nichts gespeichert."""
        service = make_service()
        with pytest.raises(ValidationError) as exc:
            service.create(make_draft(teacher_id="", room_id="  "))
        assert exc.value.missing == ["teacher_id", "room_id"]
        assert service.repository.list_sessions() == []

    def test_unknown_subject(self):
        """Unbekanntes Fach → ValidationError."""
        with pytest.raises(ValidationError):
            make_service().create(make_draft(subject_id="XYZ"))

    def test_holiday_blocked(self):
        """Datum in den Ferien → HolidayBlocked."""
        service = make_service()
        with pytest.raises(HolidayBlocked) as exc:
            service.create(make_draft(date=date(2024, 1, 2)))
        assert exc.value.holiday_name == "Tết Dương lịch"
        assert service.repository.list_sessions() == []

    def test_clamped_to_half_day(self):
        """Stunde 4 mit 5 Stunden wird auf 2 Stunden gekürzt."""
        result = make_service().create(make_draft(start_period=4, period_count=5))
        assert result.sessions[0].period_count == 2
        assert result.clamped_from == 5

    def test_clamped_to_remaining(self):
        """Bei 3 von 4 unterrichteten Stunden bleibt nur noch eine."""
        history = [make_session(subject_id="SHORT", date=date(2024, 1, 5), period_count=3)]
        result = make_service(history).create(make_draft(subject_id="SHORT", period_count=3))
        assert result.sessions[0].period_count == 1

    def test_draft_rejects_invalid_periods(self):
        """Stunde außerhalb 1–10 oder Stundenzahl < 1 → ValueError beim Formular."""
        with pytest.raises(ValueError):
            make_draft(start_period=11)
        with pytest.raises(ValueError):
            make_draft(period_count=0)

    def test_capacity_exceeded_when_nothing_fits(self):
        """Fach vollständig unterrichtet → CapacityExceeded."""
        history = [make_session(subject_id="SHORT", date=date(2024, 1, 5), period_count=4)]
        with pytest.raises(CapacityExceeded):
            make_service(history).create(make_draft(subject_id="SHORT"))

    def test_exam_not_clamped_by_remaining(self):
        """Prüfungen werden nur auf den Halbtag gekürzt."""
        history = [make_session(subject_id="SHORT", date=date(2024, 1, 5), period_count=4)]
        result = make_service(history).create(
            make_draft(subject_id="SHORT", kind=SessionKind.EXAM, period_count=3)
        )
        assert result.sessions[0].period_count == 3

    def test_conflict_rejected(self):
        """Raumkonflikt → ConflictError, nichts gespeichert."""
        existing = make_session(class_id="C2")
        service = make_service([existing])
        with pytest.raises(ConflictError) as exc:
            service.create(make_draft(start_period=2))
        assert exc.value.resource == "room"
        assert len(service.repository.list_sessions()) == 1

    def test_joint_fan_out(self):
        """Fachbereichsfach für zwei Klassen: zwei Sitzungen mit gleicher Signatur."""
        service = make_service()
        result = service.create(make_draft(subject_id="CODE"), ["C1", "C2"])
        assert [s.class_id for s in result.sessions] == ["C1", "C2"]
        assert len({s.signature for s in result.sessions}) == 1
        assert len(service.siblings(result.sessions[0].id)) == 2

    def test_fan_out_ignores_ineligible_class(self):
        """Klasse eines anderen Fachbereichs wird nicht mitgeplant."""
        result = make_service().create(make_draft(subject_id="CODE"), ["C1", "C3"])
        assert [s.class_id for s in result.sessions] == ["C1"]

    def test_fan_out_ignored_for_non_shared_subject(self):
        """Allgemeines Fach ohne is_shared wird nur für die eigene Klasse angelegt."""
        result = make_service().create(make_draft(), ["C1", "C2"])
        assert len(result.sessions) == 1

    def test_fan_out_atomic_on_conflict(self):
        """Ist eine Zielklasse belegt, wird für keine Klasse angelegt."""
        busy = make_session(class_id="C2", subject_id="LAW", teacher_id="T9", room_id="R9")
        service = make_service([busy])
        with pytest.raises(ConflictError) as exc:
            service.create(make_draft(subject_id="PE"), ["C1", "C2", "C3"])
        assert exc.value.class_id == "C2"
        assert service.repository.list_sessions() == [busy]

    def test_fan_out_atomic_on_storage_error(self):
        """Schreibfehler beim zweiten Mitglied → Transaktion zurückgerollt."""
        service = make_service(repository=FailingRepository(fail_on=2))
        with pytest.raises(RuntimeError):
            service.create(make_draft(subject_id="CODE"), ["C1", "C2"])
        assert service.repository.list_sessions() == []


# ─── ÄNDERN / STATUS / LÖSCHEN ────────────────────────────────────────────────

class TestUpdateAndDelete:
    def _joint(self):
        service = make_service()
        created = service.create(make_draft(subject_id="CODE"), ["C1", "C2"]).sessions
        return service, created

    def test_teacher_change_updates_group(self):
        """Lehrkraftwechsel in C1 ändert auch die Sitzung in C2."""
        service, (c1, c2) = self._joint()
        service.update(c1.id, {"teacher_id": "T2"})
        assert service.repository.get(c1.id).teacher_id == "T2"
        assert service.repository.get(c2.id).teacher_id == "T2"
        assert len(service.siblings(c2.id)) == 2

    def test_class_change_rejected(self):
        """Die Klasse einer Sitzung ist nicht änderbar."""
        service, (c1, _) = self._joint()
        with pytest.raises(ValueError):
            service.update(c1.id, {"class_id": "C3"})

    def test_update_conflict_leaves_group_unchanged(self):
        """Konflikt für ein Mitglied → keine Änderung an der Gruppe."""
        service, (c1, c2) = self._joint()
        service.repository.create(make_session(class_id="C2", teacher_id="T9",
                                               room_id="R9", start_period=6))
        with pytest.raises(ConflictError):
            service.update(c1.id, {"start_period": 6})
        assert service.repository.get(c1.id).start_period == 1
        assert service.repository.get(c2.id).start_period == 1

    def test_update_into_holiday_blocked(self):
        """Verschieben in die Ferien → HolidayBlocked."""
        service, (c1, _) = self._joint()
        with pytest.raises(HolidayBlocked):
            service.update(c1.id, {"date": date(2024, 1, 3)})

    def test_update_missing_field(self):
        """Leeren eines Pflichtfelds → ValidationError."""
        service, (c1, _) = self._joint()
        with pytest.raises(ValidationError):
            service.update(c1.id, {"room_id": ""})

    def test_update_period_count_excludes_itself(self):
        """Beim Verlängern zählt die eigene Sitzung nicht als schon unterrichtet."""
        service = make_service()
        s = service.create(make_draft(subject_id="SHORT", period_count=2)).sessions[0]
        result = service.update(s.id, {"period_count": 4})
        assert result.sessions[0].period_count == 4
        assert not result.was_clamped

    def test_subject_change_checks_capacity(self):
        """Fachwechsel zählt gegen die Reststunden des neuen Fachs."""
        service = make_service()
        service.create(make_draft(subject_id="SHORT", period_count=2))
        moved = service.create(make_draft(date=date(2024, 1, 9), period_count=3)).sessions[0]
        result = service.update(moved.id, {"subject_id": "SHORT"})
        assert result.sessions[0].period_count == 2
        assert result.clamped_from == 3

        extra = service.create(make_draft(date=date(2024, 1, 10), period_count=3)).sessions[0]
        with pytest.raises(CapacityExceeded):
            service.update(extra.id, {"subject_id": "SHORT"})
        assert service.repository.get(extra.id).subject_id == "LAW"
        assert service.progress_for("SHORT", "C1").learned == 4

    def test_group_change_checks_capacity(self):
        """Wechsel der Teilgruppe zählt gegen die Reststunden der neuen Gruppe."""
        service = make_service()
        service.create(make_draft(subject_id="SHORT", period_count=4, group="Lab A"))
        other = service.create(make_draft(subject_id="SHORT", date=date(2024, 1, 9),
                                          period_count=2, group="Lab B")).sessions[0]
        with pytest.raises(CapacityExceeded):
            service.update(other.id, {"group": "Lab A"})
        assert service.progress_for("SHORT", "C1", "Lab A").learned == 4

    def test_split_group_checked_against_itself(self):
        """Zerfällt die Gruppe durch Fachwechsel, kollidieren die Mitglieder."""
        service, (c1, c2) = self._joint()
        with pytest.raises(ConflictError):
            service.update(c1.id, {"subject_id": "LAW"})
        assert service.repository.get(c1.id).subject_id == "CODE"
        assert service.repository.get(c2.id).subject_id == "CODE"

    def test_update_unknown_session(self):
        """Unbekannte Sitzung → KeyError."""
        with pytest.raises(KeyError):
            make_service().update("fehlt", {"teacher_id": "T2"})

    def test_set_status_group(self):
        """Statuswechsel gilt für alle Klassen der Gruppe."""
        service, (c1, c2) = self._joint()
        service.set_status(c2.id, SessionStatus.OFF)
        assert service.repository.get(c1.id).status == SessionStatus.OFF
        assert service.repository.get(c2.id).status == SessionStatus.OFF

    def test_delete_group(self):
        """Löschen entfernt alle Klassen der Gruppe."""
        service, (c1, c2) = self._joint()
        deleted = service.delete(c1.id)
        assert sorted(deleted) == sorted([c1.id, c2.id])
        assert service.repository.list_sessions() == []


# ─── KOPIEREN / WOCHE FORTSETZEN ──────────────────────────────────────────────

class TestCopyAndContinue:
    def test_copy_group(self):
        """Kopie einer Gruppe landet für alle Klassen im Zielslot."""
        service = make_service()
        c1 = service.create(make_draft(subject_id="CODE"), ["C1", "C2"]).sessions[0]
        result = service.copy_to(c1.id, date(2024, 1, 9), 6)
        assert result.total == 2
        assert result.skipped_class_ids == []
        assert all(s.status == SessionStatus.PENDING for s in result.created)
        assert len(service.repository.list_sessions()) == 4

    def test_copy_skips_busy_class(self):
        """Belegte Klasse wird übersprungen, die übrigen werden kopiert."""
        service = make_service()
        c1 = service.create(make_draft(subject_id="CODE"), ["C1", "C2"]).sessions[0]
        service.repository.create(make_session(class_id="C2", teacher_id="T9", room_id="R9",
                                               date=date(2024, 1, 9), start_period=6))
        result = service.copy_to(c1.id, date(2024, 1, 9), 6)
        assert [s.class_id for s in result.created] == ["C1"]
        assert result.skipped_class_ids == ["C2"]

    def test_copy_clamped_to_remaining(self):
        """Die Kopie wird auf die Reststunden gekürzt."""
        service = make_service()
        s = service.create(make_draft(subject_id="SHORT", period_count=3)).sessions[0]
        result = service.copy_to(s.id, date(2024, 1, 9), 1)
        assert [c.period_count for c in result.created] == [1]
        assert service.progress_for("SHORT", "C1").learned == 4

    def test_copy_of_finished_subject_skipped(self):
        """Ist das Fach ausgeschöpft, wird die Klasse übersprungen."""
        service = make_service()
        s = service.create(make_draft(subject_id="SHORT", period_count=4)).sessions[0]
        result = service.copy_to(s.id, date(2024, 1, 9), 1)
        assert result.created == []
        assert result.skipped_class_ids == ["C1"]
        progress = service.progress_for("SHORT", "C1")
        assert (progress.learned, progress.total) == (4, 4)

    def test_copy_clamped_to_half_day(self):
        """Ab Stunde 5 passt nur noch eine Stunde in den Vormittag."""
        service = make_service()
        s = service.create(make_draft(period_count=3)).sessions[0]
        result = service.copy_to(s.id, date(2024, 1, 9), 5)
        assert [c.period_count for c in result.created] == [1]

    def test_copy_to_same_slot_noop(self):
        """Kopieren auf den eigenen Slot ändert nichts."""
        service = make_service()
        s = service.create(make_draft()).sessions[0]
        assert service.copy_to(s.id, MONDAY, 1).total == 0

    def test_copy_into_holiday_blocked(self):
        """Kopieren in die Ferien → HolidayBlocked."""
        service = make_service()
        s = service.create(make_draft()).sessions[0]
        with pytest.raises(HolidayBlocked):
            service.copy_to(s.id, date(2024, 1, 2), 1)

    def test_continue_next_week_writes_sessions(self):
        """Woche fortsetzen speichert die erzeugten Sitzungen."""
        service = make_service()
        service.create(make_draft())
        result = service.continue_next_week("C1", date(2024, 1, 10))
        assert result.created_count == 1
        dates = sorted(s.date for s in service.repository.list_sessions())
        assert dates == [MONDAY, date(2024, 1, 15)]


# ─── LESENDE OPERATIONEN ──────────────────────────────────────────────────────

class TestQueries:
    def test_progress_for(self):
        """Fortschritt über den aktuellen Bestand."""
        service = make_service([make_session(), make_session(date=date(2024, 1, 9))])
        p = service.progress_for("LAW", "C1")
        assert (p.learned, p.remaining) == (4, 26)

    def test_available_subjects_respects_overrides(self):
        """Markierte Fächer verschwinden aus der Unterrichtsauswahl."""
        overrides = OverrideTable([
            CompletionOverride(subject_id="LAW", class_id="C1", paid_completed=True)
        ])
        service = make_service(overrides=overrides)
        ids = [s.id for s in service.available_subjects(SessionKind.CLASS, "C1")]
        assert ids == ["SHORT", "CODE", "PE"]

    def test_available_subjects_unknown_class(self):
        """Unbekannte Klasse → KeyError."""
        with pytest.raises(KeyError):
            make_service().available_subjects(SessionKind.CLASS, "C9")

    def test_is_shared(self):
        """Fachbereichsfach mit zwei Klassen ist gemeinsam, allgemeines Fach nicht."""
        service = make_service()
        assert service.is_shared("CODE", "C1") is True
        assert service.is_shared("LAW", "C1") is False
        assert service.is_shared("XYZ", "C1") is False
