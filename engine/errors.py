"""Fehlerklassen der Stundenplan-Engine.

Alle Prüfungen laufen vor jedem Schreibzugriff; eine dieser Ausnahmen bedeutet
daher immer, dass nichts verändert wurde.
"""

from datetime import date
from typing import Optional


class ScheduleError(Exception):
    """Basisklasse aller fachlichen Engine-Fehler."""


class ValidationError(ScheduleError):
    """Pflichtfeld fehlt (Lehrkraft, Fach, Raum oder Klasse)."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            f"Bitte alle Pflichtfelder ausfüllen (fehlt: {', '.join(self.missing)})"
        )


class HolidayBlocked(ScheduleError):
    """Zieldatum liegt in einem Ferienzeitraum."""

    def __init__(self, day: date, holiday_name: str) -> None:
        self.day = day
        self.holiday_name = holiday_name
        super().__init__(
            f"{day.strftime('%d.%m.%Y')} ist unterrichtsfrei: {holiday_name}"
        )


class ConflictError(ScheduleError):
    """Überschneidung von Klasse, Lehrkraft oder Raum."""

    def __init__(self, resource: str, reason: str,
                 class_id: Optional[str] = None) -> None:
        self.resource = resource
        self.reason = reason
        self.class_id = class_id
        prefix = f"Klasse {class_id}: " if class_id else ""
        super().__init__(f"{prefix}{reason}")


class CapacityExceeded(ScheduleError):
    """Die gewünschte Stundenzahl passt nicht mehr in den Fachumfang.

    Normalerweise wird die Stundenzahl nur gekürzt; ausgelöst wird der Fehler
    erst, wenn überhaupt keine Stunde mehr passt.
    """

    def __init__(self, subject_id: str, class_id: str,
                 requested: int, allowed: int) -> None:
        self.subject_id = subject_id
        self.class_id = class_id
        self.requested = requested
        self.allowed = allowed
        super().__init__(
            f"Fach {subject_id} für Klasse {class_id}: nur noch {allowed} "
            f"Stunden offen ({requested} angefordert)"
        )
