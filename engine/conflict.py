"""Konfliktprüfung für eine geplante Sitzung.

Reine Entscheidungsfunktion: prüft eine Kandidat-Sitzung gegen den kompletten
Sitzungsbestand und meldet den ersten gefundenen Konflikt.
"""

import logging
from typing import Iterable, Literal, Mapping, Optional, Sequence

from pydantic import BaseModel

from config.schema import TimeGridConfig
from engine.errors import ConflictError
from engine.shared import SharingPolicy
from models.session import Session
from models.subject import Subject

logger = logging.getLogger(__name__)

Resource = Literal["class", "teacher", "room", "window"]


class ConflictResult(BaseModel):
    """Ergebnis einer Konfliktprüfung."""

    ok: bool
    resource: Optional[Resource] = None
    reason: str = ""
    conflicting_id: Optional[str] = None

    @property
    def has_conflict(self) -> bool:
        return not self.ok

    def raise_if_conflict(self, class_id: Optional[str] = None) -> None:
        if not self.ok:
            raise ConflictError(self.resource or "unknown", self.reason, class_id)


OK = ConflictResult(ok=True)


def _periods(s: Session) -> str:
    if s.period_count == 1:
        return f"Stunde {s.start_period}"
    return f"Stunde {s.start_period}–{s.end_period - 1}"


class ConflictChecker:
    """Prüft Klassen-, Lehrer- und Raumüberschneidungen.

    Reihenfolge je überlappender Sitzung: Klasse, Raum, Lehrkraft.
    Raum und Lehrkraft dürfen sich nur innerhalb eines gemeinsamen
    Unterrichts (gleiche Signatur) überschneiden, die Klasse nie.
    """

    def __init__(
        self,
        time_grid: TimeGridConfig,
        sharing: Optional[SharingPolicy] = None,
    ) -> None:
        self.time_grid = time_grid
        self.sharing = sharing or SharingPolicy()

    def check_window(self, candidate: Session) -> ConflictResult:
        """Fenster darf die Halbtagsgrenze und das Tagesende nicht überschreiten."""
        limit = self.time_grid.half_day_end(candidate.start_period)
        if candidate.start_period > self.time_grid.periods_per_day or candidate.end_period > limit:
            return ConflictResult(
                ok=False,
                resource="window",
                reason=(
                    f"{_periods(candidate)} überschreitet die Halbtagsgrenze "
                    f"(höchstens {self.time_grid.max_period_count(candidate.start_period)} "
                    f"Stunden ab Stunde {candidate.start_period})"
                ),
            )
        return OK

    def check(
        self,
        candidate: Session,
        all_sessions: Sequence[Session],
        subjects: Mapping[str, Subject],
        exclude_ids: Iterable[str] = (),
    ) -> ConflictResult:
        """Gibt OK oder den ersten Konflikt samt lesbarer Begründung zurück."""
        window = self.check_window(candidate)
        if not window.ok:
            return window

        excluded = set(exclude_ids)
        excluded.add(candidate.id)

        for other in all_sessions:
            if other.id in excluded or other.date != candidate.date:
                continue
            if not candidate.overlaps(other):
                continue

            if other.class_id == candidate.class_id:
                return self._conflict("class", candidate, other,
                    f"Klasse {other.class_id} ist {_periods(other)} bereits belegt "
                    f"(Fach {other.subject_id})")

            joint = self.sharing.in_same_group(candidate, other, subjects)

            if other.room_id == candidate.room_id and not joint:
                return self._conflict("room", candidate, other,
                    f"Raum {other.room_id} ist {_periods(other)} bereits belegt "
                    f"(Klasse {other.class_id})")

            if other.teacher_id == candidate.teacher_id and not joint:
                return self._conflict("teacher", candidate, other,
                    f"Lehrkraft {other.teacher_id} unterrichtet {_periods(other)} "
                    f"bereits Klasse {other.class_id}")

        return OK

    def _conflict(self, resource: Resource, candidate: Session,
                  other: Session, reason: str) -> ConflictResult:
        logger.debug(
            f"Konflikt ({resource}) {candidate.class_id} {candidate.date} "
            f"mit Sitzung {other.id}: {reason}"
        )
        return ConflictResult(ok=False, resource=resource, reason=reason,
                              conflicting_id=other.id)
