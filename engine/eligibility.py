"""Welche Fächer dürfen für eine Klasse neu eingeplant werden?

Zentrale Stelle, an der die Stundenarithmetik und die manuellen
Abschluss-Markierungen zusammengeführt werden.
"""

from typing import Optional, Sequence

from engine.progress import ProgressTracker
from engine.shared import SharingPolicy
from models.overrides import OverrideTable
from models.school_class import SchoolClass
from models.session import Session, SessionKind, SessionStatus
from models.subject import Subject


class EligibilityPolicy:
    """Sichtbarkeit von Fächern beim Anlegen von Unterricht bzw. Prüfungen.

    - Unterricht: abgeschlossene Fächer werden ausgeblendet.
    - Prüfung: nur abgeschlossene Fächer, und nur solange für (Fach, Klasse)
      noch keine Prüfung existiert.
    - Beim Bearbeiten einer Sitzung bleibt deren eigenes Fach immer wählbar.
    """

    def __init__(
        self,
        sharing: Optional[SharingPolicy] = None,
        tracker: Optional[ProgressTracker] = None,
    ) -> None:
        self.sharing = sharing or SharingPolicy()
        self.tracker = tracker or ProgressTracker()

    def is_finished(
        self,
        subject: Subject,
        class_id: str,
        sessions: Sequence[Session],
        overrides: Optional[OverrideTable] = None,
        group: Optional[str] = None,
    ) -> bool:
        """Abgeschlossen laut Markierung oder laut Reststunden.

        Ohne Gruppe gilt das Fach als abgeschlossen, wenn jede Teilgruppe
        (inkl. ganze Klasse), für die schon Unterricht existiert, fertig ist.
        """
        if overrides is not None and overrides.is_completed(subject.id, class_id):
            return True
        if group is not None:
            return self.tracker.progress(
                subject.id, class_id, subject.total_periods, sessions, group
            ).is_finished
        if subject.total_periods == 0:
            return True
        cohorts = {
            s.group for s in sessions
            if s.subject_id == subject.id and s.class_id == class_id
            and s.kind == SessionKind.CLASS and s.status != SessionStatus.OFF
        }
        if not cohorts:
            return False
        return all(
            self.tracker.progress(
                subject.id, class_id, subject.total_periods, sessions, g
            ).is_finished
            for g in cohorts
        )

    def has_exam(self, subject_id: str, class_id: str,
                 sessions: Sequence[Session]) -> bool:
        return any(
            s.kind == SessionKind.EXAM and s.subject_id == subject_id
            and s.class_id == class_id and s.status != SessionStatus.OFF
            for s in sessions
        )

    def is_eligible(
        self,
        kind: SessionKind,
        subject: Subject,
        school_class: SchoolClass,
        sessions: Sequence[Session],
        overrides: Optional[OverrideTable] = None,
        editing: Optional[Session] = None,
    ) -> bool:
        if not self.sharing.is_class_eligible(subject, school_class):
            return False
        if editing is not None and editing.subject_id == subject.id:
            return True

        finished = self.is_finished(subject, school_class.id, sessions, overrides)
        if kind == SessionKind.EXAM:
            return finished and not self.has_exam(subject.id, school_class.id, sessions)
        return not finished

    def available_subjects(
        self,
        kind: SessionKind,
        school_class: SchoolClass,
        subjects: Sequence[Subject],
        sessions: Sequence[Session],
        overrides: Optional[OverrideTable] = None,
        editing: Optional[Session] = None,
    ) -> list[Subject]:
        """Wählbare Fächer für das Anlege-/Bearbeitungsformular."""
        return [
            s for s in subjects
            if self.is_eligible(kind, s, school_class, sessions, overrides, editing)
        ]
