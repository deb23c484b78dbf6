"""Woche fortsetzen: überträgt die Sitzungen einer Woche in die Folgewoche.

Jede neue Sitzung wird einzeln geprüft und angelegt. Einzelne Ausfälle
(Ferien, bereits belegt, Konflikt) brechen den Lauf nie ab; Ferien und fast
abgeschlossene Fächer erscheinen als Warnung im Ergebnis.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Literal, Mapping, Optional, Sequence

from pydantic import BaseModel

from config.schema import EngineConfig
from engine.conflict import ConflictChecker
from engine.progress import ProgressTracker
from engine.shared import SharingPolicy
from models.holiday import HolidayCalendar
from models.session import Session, SessionKind, SessionStatus, generate_id
from models.subject import Subject

logger = logging.getLogger(__name__)


class PropagationWarning(BaseModel):
    """Hinweis aus einem Fortschreibungslauf."""

    kind: Literal["holiday", "near_completion"]
    class_id: str
    subject_id: str
    group: Optional[str] = None
    message: str

    @property
    def key(self) -> tuple:
        return (self.kind, self.class_id, self.subject_id, self.group)


class PropagationResult(BaseModel):
    """Neu erzeugte Sitzungen und geordnete, eindeutige Warnungen."""

    created: list[Session] = []
    warnings: list[PropagationWarning] = []

    @property
    def created_count(self) -> int:
        return len(self.created)

    def report_lines(self) -> list[str]:
        """Ohne Warnungen nur die Anzahl, sonst die Warnungsliste."""
        if not self.warnings:
            return [f"{self.created_count} Sitzungen in die Folgewoche übernommen."]
        return [w.message for w in self.warnings]


def week_bounds(any_date: date) -> tuple[date, date]:
    """Montag und Sonntag der Woche, die `any_date` enthält (beide inklusive)."""
    monday = any_date - timedelta(days=any_date.weekday())
    return monday, monday + timedelta(days=6)


def week_sessions_for(
    class_id: str,
    any_date: date,
    all_sessions: Sequence[Session],
) -> list[Session]:
    """Sitzungen einer Klasse von Montag bis Samstag der angegebenen Woche."""
    monday, sunday = week_bounds(any_date)
    return [
        s for s in all_sessions
        if s.class_id == class_id and monday <= s.date < sunday
    ]


class RecurrenceEngine:
    """Projiziert eine Woche um `offset_days` Tage nach vorn."""

    def __init__(
        self,
        config: EngineConfig,
        checker: Optional[ConflictChecker] = None,
        sharing: Optional[SharingPolicy] = None,
        tracker: Optional[ProgressTracker] = None,
    ) -> None:
        self.config = config
        self.sharing = sharing or SharingPolicy(config.sharing)
        self.checker = checker or ConflictChecker(config.time_grid, self.sharing)
        self.tracker = tracker or ProgressTracker()

    def propagate(
        self,
        week_sessions: Sequence[Session],
        all_sessions: Sequence[Session],
        subjects: Mapping[str, Subject],
        holiday_calendar: HolidayCalendar,
        class_names: Optional[Mapping[str, str]] = None,
    ) -> PropagationResult:
        offset = timedelta(days=self.config.propagation.offset_days)
        threshold = self.config.propagation.near_completion_threshold
        class_names = class_names or {}

        source = sorted(
            (s for s in week_sessions if s.kind != SessionKind.EXAM),
            key=lambda s: (s.date, s.start_period),
        )

        # Stand vor dem Lauf; neu erzeugte Sitzungen zählen nur über das Ledger
        snapshot = list(all_sessions)
        working = list(all_sessions)
        ledger: dict[tuple, int] = defaultdict(int)
        processed_slots: set[tuple] = set()

        created: list[Session] = []
        warnings: list[PropagationWarning] = []
        warning_keys: set[tuple] = set()

        def warn(w: PropagationWarning) -> None:
            if w.key not in warning_keys:
                warning_keys.add(w.key)
                warnings.append(w)

        for item in source:
            subject = subjects.get(item.subject_id)
            if subject is None:
                logger.warning(f"Fach {item.subject_id} unbekannt – Sitzung {item.id} übersprungen")
                continue

            members = [item]
            if self.sharing.is_joint_capable(subject):
                slot_key = (item.date, item.start_period, item.teacher_id, item.subject_id)
                if slot_key in processed_slots:
                    continue
                processed_slots.add(slot_key)
                members = self.sharing.siblings_of(item, snapshot, subjects)

            for src in members:
                if src.kind == SessionKind.EXAM:
                    continue
                key = src.progress_key
                label = class_names.get(src.class_id, src.class_id)
                progress = self.tracker.progress(
                    src.subject_id, src.class_id, subject.total_periods, snapshot, src.group
                )
                remaining = progress.remaining - ledger[key]

                if remaining > 0:
                    target = src.date + offset
                    holiday = holiday_calendar.holiday_for(target)
                    if holiday is not None:
                        warn(PropagationWarning(
                            kind="holiday",
                            class_id=src.class_id,
                            subject_id=src.subject_id,
                            group=src.group,
                            message=(
                                f"Klasse {label}: Kein Unterricht am "
                                f"{target.strftime('%d.%m.%Y')} wegen Ferien: {holiday.name}"
                            ),
                        ))
                        continue

                    exists = any(
                        s.class_id == src.class_id and s.date == target
                        and s.start_period == src.start_period
                        for s in working
                    )
                    if exists:
                        logger.debug(f"{label} {target} Std. {src.start_period}: bereits belegt")
                    else:
                        clone = src.model_copy(update={
                            "id": generate_id(),
                            "date": target,
                            "period_count": min(src.period_count, remaining),
                            "status": SessionStatus.PENDING,
                        })
                        result = self.checker.check(clone, working, subjects)
                        if result.ok:
                            working.append(clone)
                            created.append(clone)
                            ledger[key] += clone.period_count
                        else:
                            logger.debug(f"{label} {target}: übersprungen – {result.reason}")

                final_remaining = progress.remaining - ledger[key]
                if 0 < final_remaining <= threshold:
                    group_label = f" ({src.group})" if src.group else ""
                    warn(PropagationWarning(
                        kind="near_completion",
                        class_id=src.class_id,
                        subject_id=src.subject_id,
                        group=src.group,
                        message=(
                            f"Klasse {label}{group_label}: Fach {subject.name} "
                            f"endet bald (noch {final_remaining} Stunden)"
                        ),
                    ))

        logger.info(
            f"Fortschreibung: {len(created)} Sitzungen erzeugt, "
            f"{len(warnings)} Warnungen ({len(source)} Quell-Sitzungen)"
        )
        return PropagationResult(created=created, warnings=warnings)
