"""Lernfortschritt: unterrichtete und verbleibende Stunden je Fach/Klasse/Gruppe."""

from typing import Iterable, Optional, Sequence

from pydantic import BaseModel

from models.session import Session, SessionKind, SessionStatus


class Progress(BaseModel):
    """Stand eines Fachs für eine Klasse (bzw. Teilgruppe)."""

    learned: int
    remaining: int
    total: int

    @property
    def is_finished(self) -> bool:
        return self.remaining == 0


class SequenceInfo(BaseModel):
    """Position einer Sitzung in der Stundenfolge ihres Fachs (z.B. "Std. 6/30")."""

    cumulative: int
    is_first: bool
    is_last: bool


def _counts(s: Session, subject_id: str, class_id: str, group: Optional[str]) -> bool:
    return (
        s.kind == SessionKind.CLASS
        and s.status != SessionStatus.OFF
        and s.subject_id == subject_id
        and s.class_id == class_id
        and s.group == group
    )


class ProgressTracker:
    """Reine Stundenarithmetik, ohne manuelle Abschluss-Markierungen.

    Gezählt werden Unterrichts-Sitzungen (keine Prüfungen) mit Status ≠ off.
    Die Teilgruppe muss exakt übereinstimmen; None steht für die ganze Klasse.
    """

    def learned(
        self,
        subject_id: str,
        class_id: str,
        all_sessions: Iterable[Session],
        group: Optional[str] = None,
        exclude_ids: Iterable[str] = (),
    ) -> int:
        excluded = set(exclude_ids)
        return sum(
            s.period_count for s in all_sessions
            if s.id not in excluded and _counts(s, subject_id, class_id, group)
        )

    def progress(
        self,
        subject_id: str,
        class_id: str,
        total_periods: int,
        all_sessions: Iterable[Session],
        group: Optional[str] = None,
        exclude_ids: Iterable[str] = (),
    ) -> Progress:
        """Unterrichtete Stunden und Reststunden (nie negativ)."""
        learned = self.learned(subject_id, class_id, all_sessions, group, exclude_ids)
        return Progress(
            learned=learned,
            remaining=max(0, total_periods - learned),
            total=total_periods,
        )

    def sequence_info(
        self,
        session: Session,
        all_sessions: Sequence[Session],
        total_periods: int,
    ) -> SequenceInfo:
        """Kumulierte Stunden bis einschließlich `session`, plus Erst-/Letztmarkierung.

        Prüfungen und ausgefallene Sitzungen zählen nicht mit; sie erhalten den
        Stand der vorangehenden Sitzungen und sind weder erste noch letzte.
        """
        counted = [
            s for s in all_sessions
            if _counts(s, session.subject_id, session.class_id, session.group)
        ]
        position = (session.date, session.start_period)
        before = [s for s in counted if (s.date, s.start_period) < position]
        included = _counts(session, session.subject_id, session.class_id, session.group)

        cumulative = sum(s.period_count for s in before)
        if included:
            cumulative += session.period_count

        return SequenceInfo(
            cumulative=cumulative,
            is_first=included and not before,
            is_last=included and total_periods > 0 and cumulative >= total_periods,
        )
