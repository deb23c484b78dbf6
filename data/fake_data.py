"""Testdaten-Generator für die Stundenplan-Engine.

Erzeugt einen kleinen, aber realistischen Datensatz:
  - 3 Fachbereiche mit je 2 Klassen, plus eine H8-Klasse (ohne culture-Fächer)
  - allgemeine (common), allgemeinbildende (culture) und Fachbereichs-Fächer
  - ein explizit gemeinsames allgemeines Fach
  - eine geplante erste Woche, angelegt über den ScheduleService
    (damit gelten alle Invarianten bereits beim Erzeugen)
  - ein Ferienzeitraum drei Wochen nach Wochenbeginn
"""

import logging
import random
from datetime import date, timedelta
from typing import Optional

from config.schema import EngineConfig
from data.repository import InMemorySessionRepository
from engine.errors import ScheduleError
from engine.service import ScheduleService, SessionDraft
from models.holiday import Holiday, HolidayCalendar
from models.schedule_data import ScheduleData
from models.school_class import SchoolClass
from models.session import SessionKind
from models.subject import Subject
from models.teacher import Teacher

logger = logging.getLogger(__name__)

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FAMILY_NAMES = ["Nguyễn", "Trần", "Lê", "Phạm", "Hoàng", "Huỳnh", "Võ", "Đặng", "Bùi", "Đỗ"]
_MIDDLE_NAMES = ["Văn", "Thị", "Minh", "Thanh", "Quốc", "Ngọc"]
_GIVEN_NAMES = [
    "An", "Bình", "Châu", "Dũng", "Giang", "Hà", "Hải", "Khoa", "Lan",
    "Long", "Mai", "Nam", "Phúc", "Quân", "Sơn", "Tâm", "Thảo", "Tuấn",
]

# (major_id, Anzeigename, Fachbereichs-Fächer mit Umfang)
_MAJORS: list[tuple[str, str, list[tuple[str, int]]]] = [
    ("cntt", "CNTT", [("Lập trình cơ bản", 60), ("Cơ sở dữ liệu", 45)]),
    ("kt", "KT", [("Nguyên lý kế toán", 45), ("Thuế", 30)]),
    ("dl", "DL", [("Nghiệp vụ lễ tân", 45), ("Tổng quan du lịch", 30)]),
]

_COMMON_SUBJECTS: list[tuple[str, int, bool]] = [
    ("Chính trị", 30, False),
    ("Pháp luật", 15, False),
    ("Giáo dục thể chất", 30, True),
]

_CULTURE_SUBJECTS: list[tuple[str, int]] = [
    ("Toán", 45),
    ("Ngữ văn", 45),
]

_ROOMS = ["A101", "A102", "A103", "B201", "B202", "B203", "LAB1", "LAB2", "SAN"]


class FakeDataGenerator:
    """Generiert vollständige Testdaten auf Basis der EngineConfig."""

    def __init__(self, config: EngineConfig, seed: Optional[int] = None,
                 week_start: Optional[date] = None) -> None:
        self.config = config
        self.rng = random.Random(seed)
        start = week_start or date.today()
        self.week_start = start - timedelta(days=start.weekday())

    # ─── Stammdaten ───────────────────────────────────────────────────────────

    def _generate_subjects(self) -> list[Subject]:
        sc = self.config.sharing
        subjects: list[Subject] = []
        for i, (name, total, shared) in enumerate(_COMMON_SUBJECTS, start=1):
            subjects.append(Subject(id=f"CM{i:02d}", name=name, total_periods=total,
                                    major_id=sc.common_major_id, is_shared=shared))
        for i, (name, total) in enumerate(_CULTURE_SUBJECTS, start=1):
            subjects.append(Subject(id=f"VH{i:02d}", name=name, total_periods=total,
                                    major_id=sc.culture_major_id))
        for major_id, label, major_subjects in _MAJORS:
            for i, (name, total) in enumerate(major_subjects, start=1):
                subjects.append(Subject(id=f"{label}{i:02d}", name=name,
                                        total_periods=total, major_id=major_id))
        return subjects

    def _generate_classes(self) -> list[SchoolClass]:
        classes: list[SchoolClass] = []
        for major_id, label, _ in _MAJORS:
            for n in (1, 2):
                classes.append(SchoolClass(id=f"{label}-K{n}", name=f"{label} K24.{n}",
                                           major_id=major_id))
        classes.append(SchoolClass(id="DL-H8", name="DL H8", major_id="dl"))
        return classes

    def _generate_teachers(self, count: int = 12) -> list[Teacher]:
        teachers: list[Teacher] = []
        used: set[str] = set()
        while len(teachers) < count:
            name = (f"{self.rng.choice(_FAMILY_NAMES)} {self.rng.choice(_MIDDLE_NAMES)} "
                    f"{self.rng.choice(_GIVEN_NAMES)}")
            if name in used:
                continue
            used.add(name)
            teachers.append(Teacher(id=f"GV{len(teachers) + 1:02d}", name=name))
        return teachers

    def _assign_responsible(self, subjects: list[Subject],
                            teachers: list[Teacher]) -> list[Subject]:
        """Ordnet jedem Fach ein bis zwei verantwortliche Lehrkräfte zu."""
        result = []
        for s in subjects:
            names = [t.name for t in self.rng.sample(teachers, k=self.rng.randint(1, 2))]
            result.append(s.model_copy(update={"responsible_teachers": names}))
        return result

    def _generate_holidays(self) -> list[Holiday]:
        start = self.week_start + timedelta(days=21)
        return [Holiday(start_date=start, end_date=start + timedelta(days=2),
                        name="Ngày nghỉ lễ")]

    # ─── Erste Woche ──────────────────────────────────────────────────────────

    def _plan_first_week(self, data: ScheduleData) -> ScheduleData:
        """Plant je Klasse einige Sitzungen über den ScheduleService ein.

        Fachbereichs-Fächer werden gemeinsam für alle Klassen des Bereichs angelegt.
        Belegte Slots werden übersprungen.
        """
        repo = InMemorySessionRepository()
        service = ScheduleService(
            repo, data.subjects, data.classes, self.config,
            holidays=HolidayCalendar(data.holidays),
        )
        teacher_by_name = {t.name: t for t in data.teachers}
        planned = 0

        for school_class in data.classes:
            options = service.available_subjects(SessionKind.CLASS, school_class.id)
            for subject in self.rng.sample(options, k=min(3, len(options))):
                teacher = next(
                    (teacher_by_name[n] for n in subject.responsible_teachers if n in teacher_by_name),
                    self.rng.choice(data.teachers),
                )
                partners = [
                    c.id for c in service.sharing.eligible_partner_classes(
                        subject, data.classes, school_class.id)
                ] if service.is_shared(subject.id, school_class.id) else None
                draft = SessionDraft(
                    kind=SessionKind.CLASS,
                    teacher_id=teacher.id,
                    subject_id=subject.id,
                    class_id=school_class.id,
                    room_id=self.rng.choice(_ROOMS),
                    date=self.week_start + timedelta(days=self.rng.randint(0, 5)),
                    start_period=self.rng.choice([1, 6]),
                    period_count=self.rng.choice([3, 4, 5]),
                )
                try:
                    result = service.create(draft, partners)
                    planned += len(result.sessions)
                except ScheduleError as e:
                    logger.debug(f"Testdaten: {school_class.id}/{subject.id} übersprungen – {e}")

        logger.info(f"Testdaten: {planned} Sitzungen in der Woche ab {self.week_start} geplant")
        return data.model_copy(update={"sessions": repo.list_sessions()})

    # ─── Vollständiger Datensatz ──────────────────────────────────────────────

    def generate(self) -> ScheduleData:
        """Erzeugt den vollständigen Datensatz als ScheduleData-Objekt."""
        teachers = self._generate_teachers()
        subjects = self._assign_responsible(self._generate_subjects(), teachers)
        data = ScheduleData(
            subjects=subjects,
            classes=self._generate_classes(),
            teachers=teachers,
            holidays=self._generate_holidays(),
            config=self.config,
        )
        return self._plan_first_week(data)

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, data: ScheduleData) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        table.add_row("Fächer", str(len(data.subjects)),
                      f"{sum(1 for s in data.subjects if s.is_shared)} explizit gemeinsam")
        table.add_row("Klassen", str(len(data.classes)),
                      f"{len(set(c.major_id for c in data.classes))} Fachbereiche")
        table.add_row("Lehrkräfte", str(len(data.teachers)), "")
        table.add_row("Sitzungen", str(len(data.sessions)),
                      f"Woche ab {self.week_start.strftime('%d.%m.%Y')}")
        table.add_row("Ferien", str(len(data.holidays)), "")

        console.print(table)
