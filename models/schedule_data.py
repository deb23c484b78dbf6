"""ScheduleData: Vollständiger Datensatz eines Stundenplans (Pydantic v2)."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from config.schema import EngineConfig
from models.holiday import Holiday, HolidayCalendar
from models.overrides import CompletionOverride, OverrideTable
from models.school_class import SchoolClass
from models.session import Session, SessionKind
from models.subject import Subject
from models.teacher import Teacher


class ScheduleData(BaseModel):
    """Stammdaten + geplante Sitzungen + Ferien + Abschluss-Markierungen."""

    subjects: list[Subject]
    classes: list[SchoolClass]
    teachers: list[Teacher]
    sessions: list[Session] = []
    holidays: list[Holiday] = []
    overrides: list[CompletionOverride] = []
    config: EngineConfig
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    # ─── Nachschlagen ───

    @property
    def subject_map(self) -> dict[str, Subject]:
        return {s.id: s for s in self.subjects}

    @property
    def class_map(self) -> dict[str, SchoolClass]:
        return {c.id: c for c in self.classes}

    @property
    def teacher_map(self) -> dict[str, Teacher]:
        return {t.id: t for t in self.teachers}

    def holiday_calendar(self) -> HolidayCalendar:
        return HolidayCalendar(self.holidays)

    def override_table(self) -> OverrideTable:
        return OverrideTable(self.overrides)

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        exams = sum(1 for s in self.sessions if s.kind == SessionKind.EXAM)
        periods = sum(s.period_count for s in self.sessions if s.kind == SessionKind.CLASS)
        lines = [
            f"Einrichtung: {self.config.school_name}",
            f"Klassen: {len(self.classes)} "
            f"({len(set(c.major_id for c in self.classes))} Fachbereiche)",
            f"Fächer: {len(self.subjects)} "
            f"({sum(1 for s in self.subjects if s.is_shared)} explizit gemeinsam)",
            f"Lehrkräfte: {len(self.teachers)}",
            f"Sitzungen: {len(self.sessions)} ({exams} Prüfungen, {periods} Unterrichtsstunden)",
            f"Ferienzeiträume: {len(self.holidays)}" if self.holidays else "",
            f"Abschluss-Markierungen: {len(self.overrides)}" if self.overrides else "",
        ]
        return "\n".join(l for l in lines if l)

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        updated = self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })
        with open(path, "w", encoding="utf-8") as f:
            f.write(updated.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "ScheduleData":
        """Lädt einen Datensatz aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
