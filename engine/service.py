"""ScheduleService: Anlegen, Ändern, Löschen und Kopieren von Sitzungen.

Reihenfolge jeder schreibenden Operation:
  1. Pflichtfelder prüfen (ValidationError)
  2. Ferien prüfen (HolidayBlocked)
  3. Stundenzahl an Halbtag und Fachumfang anpassen (CapacityExceeded nur, wenn nichts passt)
  4. Konflikte für ALLE betroffenen Sitzungen prüfen (ConflictError)
  5. Erst dann schreiben – bei gemeinsamem Unterricht in einer Transaktion
"""

import logging
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from config.schema import EngineConfig
from data.repository import SessionRepository
from engine.conflict import ConflictChecker
from engine.eligibility import EligibilityPolicy
from engine.errors import CapacityExceeded, HolidayBlocked, ValidationError
from engine.progress import Progress, ProgressTracker
from engine.recurrence import PropagationResult, RecurrenceEngine, week_sessions_for
from engine.shared import SharingPolicy
from models.holiday import HolidayCalendar
from models.overrides import OverrideTable
from models.school_class import SchoolClass
from models.session import Session, SessionKind, SessionStatus
from models.subject import Subject

logger = logging.getLogger(__name__)

_REQUIRED = ("teacher_id", "subject_id", "room_id", "class_id")
_IMMUTABLE = {"id", "class_id"}
_CAPACITY_FIELDS = {"period_count", "start_period", "subject_id", "group", "kind"}


class SessionDraft(BaseModel):
    """Formulardaten für eine neue Sitzung (Pflichtfelder dürfen noch leer sein)."""

    kind: SessionKind = SessionKind.CLASS
    teacher_id: str = ""
    subject_id: str = ""
    class_id: str = ""
    room_id: str = ""
    group: Optional[str] = None
    date: date
    start_period: int = Field(ge=1, le=10)
    period_count: int = Field(ge=1)
    status: SessionStatus = SessionStatus.PENDING
    note: str = ""


class SaveResult(BaseModel):
    """Geschriebene Sitzungen; clamped_from ist gesetzt, wenn gekürzt wurde."""

    sessions: list[Session]
    clamped_from: Optional[int] = None

    @property
    def was_clamped(self) -> bool:
        return self.clamped_from is not None


class CopyResult(BaseModel):
    """Ergebnis eines Kopiervorgangs (Einfügen / Ziehen) einer Sitzungsgruppe."""

    created: list[Session] = []
    skipped_class_ids: list[str] = []

    @property
    def total(self) -> int:
        return len(self.created) + len(self.skipped_class_ids)


def _missing_fields(values: Mapping[str, Any]) -> list[str]:
    return [f for f in _REQUIRED if not str(values.get(f) or "").strip()]


class ScheduleService:
    """Fassade, über die Oberflächen-Komponenten die Engine ansprechen."""

    def __init__(
        self,
        repository: SessionRepository,
        subjects: Sequence[Subject],
        classes: Sequence[SchoolClass],
        config: EngineConfig,
        holidays: Optional[HolidayCalendar] = None,
        overrides: Optional[OverrideTable] = None,
    ) -> None:
        self.repository = repository
        self.subjects: dict[str, Subject] = {s.id: s for s in subjects}
        self.classes: list[SchoolClass] = list(classes)
        self.config = config
        self.holidays = holidays if holidays is not None else HolidayCalendar()
        self.overrides = overrides if overrides is not None else OverrideTable()

        self.sharing = SharingPolicy(config.sharing)
        self.tracker = ProgressTracker()
        self.checker = ConflictChecker(config.time_grid, self.sharing)
        self.eligibility = EligibilityPolicy(self.sharing, self.tracker)
        self.recurrence = RecurrenceEngine(config, self.checker, self.sharing, self.tracker)

    # ── Lesen ─────────────────────────────────────────────────────────────────

    def siblings(self, session_id: str) -> list[Session]:
        session = self._require(session_id)
        return self.sharing.siblings_of(session, self.repository.list_sessions(), self.subjects)

    def progress_for(self, subject_id: str, class_id: str,
                     group: Optional[str] = None) -> Progress:
        subject = self._subject(subject_id)
        return self.tracker.progress(
            subject_id, class_id, subject.total_periods,
            self.repository.list_sessions(), group,
        )

    def available_subjects(self, kind: SessionKind, class_id: str,
                           editing_id: Optional[str] = None) -> list[Subject]:
        school_class = next((c for c in self.classes if c.id == class_id), None)
        if school_class is None:
            raise KeyError(f"Klasse {class_id} nicht gefunden")
        editing = self.repository.get(editing_id) if editing_id else None
        return self.eligibility.available_subjects(
            kind, school_class, list(self.subjects.values()),
            self.repository.list_sessions(), self.overrides, editing,
        )

    def is_shared(self, subject_id: str, class_id: str) -> bool:
        return self.sharing.is_shared(self.subjects.get(subject_id), self.classes, class_id)

    # ── Stundenzahl anpassen ──────────────────────────────────────────────────

    def clamp_period_count(
        self,
        kind: SessionKind,
        subject: Subject,
        class_id: str,
        group: Optional[str],
        start_period: int,
        requested: int,
        sessions: Sequence[Session],
        exclude_ids: Sequence[str] = (),
    ) -> int:
        """Kürzt auf den Halbtag und – bei Unterricht – auf die Reststunden."""
        allowed = min(requested, self.config.time_grid.max_period_count(start_period))
        if kind == SessionKind.CLASS:
            remaining = self.tracker.progress(
                subject.id, class_id, subject.total_periods, sessions, group, exclude_ids
            ).remaining
            allowed = min(allowed, remaining)
        return allowed

    # ── Anlegen ───────────────────────────────────────────────────────────────

    def create(self, draft: SessionDraft,
               selected_class_ids: Optional[Sequence[str]] = None) -> SaveResult:
        """Legt eine Sitzung an, bei gemeinsamen Fächern für alle gewählten Klassen."""
        missing = _missing_fields(draft.model_dump())
        if missing:
            raise ValidationError(missing)
        self._check_holiday(draft.date)
        subject = self._subject(draft.subject_id)

        targets = self._fan_out_targets(subject, draft.class_id, selected_class_ids)
        sessions = self.repository.list_sessions()

        candidates: list[Session] = []
        clamped_from: Optional[int] = None
        for class_id in targets:
            count = self.clamp_period_count(
                draft.kind, subject, class_id, draft.group,
                draft.start_period, draft.period_count, sessions,
            )
            if count < 1:
                raise CapacityExceeded(subject.id, class_id, draft.period_count, 0)
            if count != draft.period_count:
                clamped_from = draft.period_count
            candidate = Session(
                **draft.model_dump(exclude={"class_id", "period_count"}),
                class_id=class_id,
                period_count=count,
            )
            self.checker.check(
                candidate, sessions + candidates, self.subjects
            ).raise_if_conflict(class_id)
            candidates.append(candidate)

        with self.repository.transaction():
            for c in candidates:
                self.repository.create(c)

        logger.info(
            f"{len(candidates)} Sitzung(en) angelegt: Fach {subject.id} am {draft.date} "
            f"Std. {draft.start_period} ({', '.join(targets)})"
        )
        return SaveResult(sessions=candidates, clamped_from=clamped_from)

    def _fan_out_targets(self, subject: Subject, class_id: str,
                         selected: Optional[Sequence[str]]) -> list[str]:
        if not selected or not self.sharing.is_shared(subject, self.classes, class_id):
            return [class_id]
        allowed = {
            c.id for c in self.sharing.eligible_partner_classes(subject, self.classes, class_id)
        }
        targets = [class_id]
        for cid in selected:
            if cid in allowed and cid not in targets:
                targets.append(cid)
            elif cid not in allowed:
                logger.warning(f"Klasse {cid} darf Fach {subject.id} nicht belegen – ignoriert")
        return targets

    # ── Ändern ────────────────────────────────────────────────────────────────

    def update(self, session_id: str, changes: Mapping[str, Any]) -> SaveResult:
        """Ändert eine Sitzung und alle Geschwister des gemeinsamen Unterrichts."""
        blocked = _IMMUTABLE & set(changes)
        if blocked:
            raise ValueError(f"Nicht änderbar: {', '.join(sorted(blocked))}")

        original = self._require(session_id)
        sessions = self.repository.list_sessions()
        group = self.sharing.siblings_of(original, sessions, self.subjects)
        group_ids = [s.id for s in group]

        merged = {**original.model_dump(), **changes}
        missing = _missing_fields(merged)
        if missing:
            raise ValidationError(missing)
        probe = Session.model_validate(merged)
        self._check_holiday(probe.date)
        subject = self._subject(probe.subject_id)

        # Mitglieder werden gegeneinander geprüft, falls die Gruppe zerfällt
        others = [s for s in sessions if s.id not in group_ids]
        updated: list[Session] = []
        clamped_from: Optional[int] = None
        for member in group:
            data = {**member.model_dump(), **changes}
            candidate = Session.model_validate(data)
            if _CAPACITY_FIELDS & set(changes):
                count = self.clamp_period_count(
                    candidate.kind, subject, member.class_id, candidate.group,
                    candidate.start_period, candidate.period_count, sessions,
                    exclude_ids=[member.id],
                )
                if count < 1:
                    raise CapacityExceeded(subject.id, member.class_id,
                                           candidate.period_count, 0)
                if count != candidate.period_count:
                    clamped_from = candidate.period_count
                    candidate = candidate.model_copy(update={"period_count": count})
            self.checker.check(
                candidate, others + updated, self.subjects
            ).raise_if_conflict(member.class_id)
            updated.append(candidate)

        with self.repository.transaction():
            for c in updated:
                self.repository.update(c.id, c.model_dump(exclude={"id"}))

        logger.info(f"Gruppe von {len(updated)} Sitzung(en) geändert ({', '.join(sorted(changes))})")
        return SaveResult(sessions=updated, clamped_from=clamped_from)

    def set_status(self, session_id: str, status: SessionStatus) -> list[Session]:
        """Setzt den Status für die ganze Gruppe."""
        group = self.siblings(session_id)
        with self.repository.transaction():
            for s in group:
                self.repository.update(s.id, {"status": status})
        return [s.model_copy(update={"status": status}) for s in group]

    # ── Löschen ───────────────────────────────────────────────────────────────

    def delete(self, session_id: str) -> list[str]:
        """Löscht die Sitzung samt allen Geschwistern. Gibt die gelöschten IDs zurück."""
        group = self.siblings(session_id)
        with self.repository.transaction():
            for s in group:
                self.repository.delete(s.id)
        logger.info(f"{len(group)} Sitzung(en) gelöscht")
        return [s.id for s in group]

    # ── Kopieren ──────────────────────────────────────────────────────────────

    def copy_to(self, session_id: str, target_date: date,
                target_period: int) -> CopyResult:
        """Kopiert eine Sitzung (bzw. ihre Gruppe) in einen anderen Slot.

        Jede Klasse wird einzeln geprüft und auf Halbtag und Reststunden gekürzt;
        belegte oder bereits fertige Klassen werden übersprungen.
        """
        source = self._require(session_id)
        self._check_holiday(target_date)
        if source.date == target_date and source.start_period == target_period:
            return CopyResult()

        sessions = self.repository.list_sessions()
        group = self.sharing.siblings_of(source, sessions, self.subjects)
        result = CopyResult()
        for src in group:
            subject = self.subjects.get(src.subject_id)
            if subject is None:
                logger.debug(f"Kopie für {src.class_id} übersprungen: Fach {src.subject_id} unbekannt")
                result.skipped_class_ids.append(src.class_id)
                continue
            count = self.clamp_period_count(
                src.kind, subject, src.class_id, src.group, target_period,
                src.period_count, sessions + result.created,
            )
            if count < 1:
                logger.debug(f"Kopie für {src.class_id} übersprungen: keine Reststunden")
                result.skipped_class_ids.append(src.class_id)
                continue
            candidate = Session(
                **src.model_dump(exclude={"id", "date", "start_period", "period_count", "status"}),
                date=target_date,
                start_period=target_period,
                period_count=count,
                status=SessionStatus.PENDING,
            )
            check = self.checker.check(candidate, sessions + result.created, self.subjects)
            if check.ok:
                self.repository.create(candidate)
                result.created.append(candidate)
            else:
                logger.debug(f"Kopie für {src.class_id} übersprungen: {check.reason}")
                result.skipped_class_ids.append(src.class_id)
        return result

    # ── Woche fortsetzen ──────────────────────────────────────────────────────

    def continue_next_week(self, class_id: str, any_date: date) -> PropagationResult:
        """Überträgt die Woche der Klasse in die Folgewoche; jede Sitzung einzeln."""
        sessions = self.repository.list_sessions()
        week = week_sessions_for(class_id, any_date, sessions)
        result = self.recurrence.propagate(
            week, sessions, self.subjects, self.holidays,
            class_names={c.id: c.name for c in self.classes},
        )
        for s in result.created:
            self.repository.create(s)
        return result

    # ── Hilfen ────────────────────────────────────────────────────────────────

    def _require(self, session_id: str) -> Session:
        session = self.repository.get(session_id)
        if session is None:
            raise KeyError(f"Sitzung {session_id} nicht gefunden")
        return session

    def _subject(self, subject_id: str) -> Subject:
        subject = self.subjects.get(subject_id)
        if subject is None:
            raise ValidationError([f"subject_id ({subject_id} unbekannt)"])
        return subject

    def _check_holiday(self, day: date) -> None:
        holiday = self.holidays.holiday_for(day)
        if holiday is not None:
            raise HolidayBlocked(day, holiday.name)
