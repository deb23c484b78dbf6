"""Lehrkraft-Vorschläge: verantwortliche Lehrkräfte eines Fachs zuerst.

Reine Vorschlagslogik – die Engine erzwingt die Zuordnung nicht.
"""

from typing import Optional, Sequence

from pydantic import BaseModel

from models.session import Session, SessionKind, SessionStatus
from models.subject import Subject
from models.teacher import Teacher


class TeacherSuggestion(BaseModel):
    """Lehrkräfte, aufgeteilt in Vorschläge und alle übrigen."""

    suggested: list[Teacher]
    others: list[Teacher]


class TeacherSuggester:
    """Ordnet Lehrkräfte nach den verantwortlichen Namen eines Fachs."""

    def suggest(
        self,
        subject: Optional[Subject],
        teachers: Sequence[Teacher],
    ) -> TeacherSuggestion:
        """Abgleich über Namen (Groß-/Kleinschreibung und Randleerzeichen egal).

        Ohne Fach oder ohne verantwortliche Namen gibt es keine Vorschläge.
        """
        if subject is None:
            return TeacherSuggestion(suggested=[], others=list(teachers))

        responsible = {n.lower().strip() for n in subject.responsible_teachers}
        if not responsible:
            return TeacherSuggestion(suggested=[], others=list(teachers))

        suggested = [t for t in teachers if t.match_key in responsible]
        others = [t for t in teachers if t.match_key not in responsible]
        return TeacherSuggestion(suggested=suggested, others=others)

    def last_teacher_for(
        self,
        subject_id: str,
        class_id: str,
        sessions: Sequence[Session],
    ) -> Optional[str]:
        """Lehrkraft des jüngsten Unterrichts dieses Fachs in der Klasse."""
        matches = [
            s for s in sessions
            if s.subject_id == subject_id and s.class_id == class_id
            and s.kind == SessionKind.CLASS and s.status != SessionStatus.OFF
        ]
        if not matches:
            return None
        latest = max(matches, key=lambda s: (s.date, s.start_period))
        return latest.teacher_id
