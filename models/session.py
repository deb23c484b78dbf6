"""Datenmodell für eine Unterrichtssitzung (Pydantic v2)."""

import uuid
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SessionKind(str, Enum):
    CLASS = "class"
    EXAM = "exam"


class SessionStatus(str, Enum):
    PENDING = "pending"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    OFF = "off"
    MAKEUP = "makeup"


def generate_id() -> str:
    return uuid.uuid4().hex


class Session(BaseModel):
    """Eine geplante Sitzung (Unterricht oder Prüfung) einer Klasse.

    Belegt an einem Datum das halboffene Stundenfenster
    [start_period, start_period + period_count).
    """

    id: str = Field(default_factory=generate_id)
    kind: SessionKind = SessionKind.CLASS
    teacher_id: str
    subject_id: str
    class_id: str
    room_id: str
    group: Optional[str] = None        # Teilgruppe (z.B. Laborgruppe), None = ganze Klasse
    date: date
    start_period: int = Field(ge=1, le=10)
    period_count: int = Field(ge=1)
    status: SessionStatus = SessionStatus.PENDING
    note: str = ""

    @field_validator("group")
    @classmethod
    def normalize_group(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def end_period(self) -> int:
        """Exklusives Fensterende."""
        return self.start_period + self.period_count

    @property
    def window(self) -> range:
        return range(self.start_period, self.end_period)

    def overlaps(self, other: "Session") -> bool:
        """True wenn beide Sitzungen am selben Datum überlappende Fenster haben."""
        return (
            self.date == other.date
            and self.start_period < other.end_period
            and other.start_period < self.end_period
        )

    @property
    def signature(self) -> tuple:
        """Kennung eines gemeinsamen Unterrichts (Fach, Lehrer, Raum, Datum, Stunde)."""
        return (self.subject_id, self.teacher_id, self.room_id, self.date, self.start_period)

    @property
    def progress_key(self) -> tuple:
        return (self.subject_id, self.class_id, self.group)
