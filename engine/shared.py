"""Gemeinsamer Unterricht: Erkennung und Geschwister-Auflösung.

Ein gemeinsamer Unterricht ist EIN physisches Treffen mehrerer Klassen:
gleiches Fach, gleiche Lehrkraft, gleicher Raum, gleiches Datum, gleiche
Startstunde. Diese Signatur ist die einzige Quelle der Wahrheit; eine
Gruppen-ID wird nie gespeichert, sondern bei jedem Zugriff neu berechnet.
"""

from typing import Mapping, Optional, Sequence

from config.schema import SharingConfig
from models.school_class import SchoolClass
from models.session import Session
from models.subject import Subject


class SharingPolicy:
    """Zustandslose Regeln für klassenübergreifenden Unterricht."""

    def __init__(self, config: Optional[SharingConfig] = None) -> None:
        self.config = config or SharingConfig()

    # ── Fach-Ebene ────────────────────────────────────────────────────────────

    def is_major_specific(self, subject: Subject) -> bool:
        return subject.major_id not in self.config.all_neutral_major_ids

    def is_joint_capable(self, subject: Optional[Subject]) -> bool:
        """True wenn Sitzungen dieses Fachs überhaupt gemeinsam sein können."""
        if subject is None:
            return False
        return subject.is_shared or self.is_major_specific(subject)

    def is_shared(
        self,
        subject: Optional[Subject],
        classes: Sequence[SchoolClass],
        current_class_id: str,
    ) -> bool:
        """Explizit gemeinsam, oder Fachbereichsfach mit mindestens einer weiteren Klasse."""
        if subject is None:
            return False
        if subject.is_shared:
            return True
        if self.is_major_specific(subject):
            return any(
                c.id != current_class_id and c.major_id == subject.major_id
                for c in classes
            )
        return False

    def is_class_eligible(self, subject: Subject, school_class: SchoolClass) -> bool:
        """Darf die Klasse das Fach überhaupt belegen?"""
        if subject.major_id == self.config.common_major_id:
            return True
        if subject.major_id == self.config.culture_major_id:
            return not self.config.is_culture_excluded(school_class.name)
        if subject.major_id in self.config.neutral_major_ids:
            return True
        return subject.major_id == school_class.major_id

    def eligible_partner_classes(
        self,
        subject: Subject,
        classes: Sequence[SchoolClass],
        current_class_id: str,
    ) -> list[SchoolClass]:
        """Klassen, die sich einem gemeinsamen Unterricht anschließen dürfen.

        Die aktuelle Klasse bleibt immer enthalten.
        """
        return [
            c for c in classes
            if c.id == current_class_id or self.is_class_eligible(subject, c)
        ]

    # ── Sitzungs-Ebene ────────────────────────────────────────────────────────

    def siblings_of(
        self,
        session: Session,
        all_sessions: Sequence[Session],
        subjects: Mapping[str, Subject],
    ) -> list[Session]:
        """Alle Sitzungen, die zusammen mit `session` bearbeitet werden müssen.

        Enthält immer `session` selbst; Reihenfolge nach Klasse, dann ID, damit
        das Ergebnis unabhängig vom angefragten Mitglied identisch ist.
        """
        if not self.is_joint_capable(subjects.get(session.subject_id)):
            return [session]
        signature = session.signature
        group = [s for s in all_sessions if s.signature == signature]
        if not any(s.id == session.id for s in group):
            group.append(session)
        return sorted(group, key=lambda s: (s.class_id, s.id))

    def in_same_group(
        self,
        a: Session,
        b: Session,
        subjects: Mapping[str, Subject],
    ) -> bool:
        """True wenn a und b Teil desselben gemeinsamen Unterrichts sind."""
        if a.signature != b.signature:
            return False
        return self.is_joint_capable(subjects.get(a.subject_id))
