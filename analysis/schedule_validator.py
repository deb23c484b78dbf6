"""Prüfung eines kompletten Sitzungsbestands auf Invarianten-Verletzungen.

Sicherheitsnetz unabhängig von der Einzelprüfung beim Anlegen: findet
Überschneidungen, Halbtagsüberschreitungen, überzogene Fachumfänge und
auseinandergelaufene Gruppen (z.B. nach einem Import).
"""

from collections import defaultdict
from itertools import combinations
from typing import Literal

from pydantic import BaseModel

from engine.progress import ProgressTracker
from engine.shared import SharingPolicy
from models.schedule_data import ScheduleData
from models.session import Session, SessionKind, SessionStatus


class ValidationViolation(BaseModel):
    """Eine einzelne Invarianten-Verletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "teacher_double_booking"
    description: str
    entity: str          # teacher_id / class_id / room_id / subject_id


class ValidationReport(BaseModel):
    """Ergebnis der Bestandsprüfung."""

    violations: list[ValidationViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        errors = [v for v in self.violations if v.severity == "error"]
        warnings = [v for v in self.violations if v.severity == "warning"]

        status = (
            "[bold green]✓ VALIDE[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(errors)} | Warnungen: {len(warnings)}"]
        console.print(Panel("\n".join(lines), title="Stundenplan-Prüfung", border_style="cyan"))

        if not self.violations:
            console.print("[dim]Keine Verletzungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Constraint", width=26)
        table.add_column("Entität", width=12)
        table.add_column("Beschreibung")

        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


class ScheduleValidator:
    """Prüft einen ScheduleData-Bestand auf alle Invarianten."""

    def validate(self, data: ScheduleData) -> ValidationReport:
        sharing = SharingPolicy(data.config.sharing)
        violations: list[ValidationViolation] = []

        violations.extend(self._check_overlaps(data, sharing))
        violations.extend(self._check_windows(data))
        violations.extend(self._check_capacity(data))
        violations.extend(self._check_group_consistency(data, sharing))
        violations.extend(self._check_holidays(data))

        has_errors = any(v.severity == "error" for v in violations)
        return ValidationReport(violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_overlaps(
        self, data: ScheduleData, sharing: SharingPolicy
    ) -> list[ValidationViolation]:
        """Klasse nie doppelt; Lehrkraft und Raum nur innerhalb eines gemeinsamen Unterrichts."""
        violations: list[ValidationViolation] = []
        subjects = data.subject_map

        by_date: dict = defaultdict(list)
        for s in data.sessions:
            by_date[s.date].append(s)

        for day, sessions in sorted(by_date.items()):
            for a, b in combinations(sessions, 2):
                if not a.overlaps(b):
                    continue
                joint = sharing.in_same_group(a, b, subjects)
                when = f"{day.strftime('%d.%m.%Y')}, Std. {max(a.start_period, b.start_period)}"
                if a.class_id == b.class_id:
                    violations.append(ValidationViolation(
                        severity="error",
                        constraint="class_double_booking",
                        entity=a.class_id,
                        description=f"{when}: {a.subject_id} und {b.subject_id} überschneiden sich.",
                    ))
                if a.teacher_id == b.teacher_id and not joint:
                    violations.append(ValidationViolation(
                        severity="error",
                        constraint="teacher_double_booking",
                        entity=a.teacher_id,
                        description=f"{when}: gleichzeitig in {a.class_id} und {b.class_id}.",
                    ))
                if a.room_id == b.room_id and not joint:
                    violations.append(ValidationViolation(
                        severity="error",
                        constraint="room_double_booking",
                        entity=a.room_id,
                        description=f"{when}: gleichzeitig von {a.class_id} und {b.class_id} belegt.",
                    ))
        return violations

    def _check_windows(self, data: ScheduleData) -> list[ValidationViolation]:
        """Kein Fenster darf über die Halbtagsgrenze laufen."""
        tg = data.config.time_grid
        return [
            ValidationViolation(
                severity="error",
                constraint="half_day_boundary",
                entity=s.class_id,
                description=(
                    f"{s.date.strftime('%d.%m.%Y')}: Std. {s.start_period} + "
                    f"{s.period_count} überschreitet den Halbtag."
                ),
            )
            for s in data.sessions
            if s.end_period > tg.half_day_end(s.start_period)
        ]

    def _check_capacity(self, data: ScheduleData) -> list[ValidationViolation]:
        """Unterrichtete Stunden dürfen den Fachumfang nicht übersteigen."""
        violations: list[ValidationViolation] = []
        tracker = ProgressTracker()
        subjects = data.subject_map
        keys = {
            s.progress_key for s in data.sessions
            if s.kind == SessionKind.CLASS and s.status != SessionStatus.OFF
        }
        for subject_id, class_id, group in sorted(keys, key=lambda k: (k[0], k[1], k[2] or "")):
            subject = subjects.get(subject_id)
            if subject is None:
                violations.append(ValidationViolation(
                    severity="warning",
                    constraint="unknown_subject",
                    entity=subject_id,
                    description=f"Sitzungen der Klasse {class_id} verweisen auf ein unbekanntes Fach.",
                ))
                continue
            learned = tracker.learned(subject_id, class_id, data.sessions, group)
            if learned > subject.total_periods:
                label = f"{class_id} ({group})" if group else class_id
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="capacity_exceeded",
                    entity=label,
                    description=(
                        f"Fach {subject.name}: {learned} Stunden geplant, "
                        f"Umfang {subject.total_periods} (+{learned - subject.total_periods})."
                    ),
                ))
        return violations

    def _check_group_consistency(
        self, data: ScheduleData, sharing: SharingPolicy
    ) -> list[ValidationViolation]:
        """Mitglieder eines gemeinsamen Unterrichts sollten gleich lang und gleichen Typs sein."""
        violations: list[ValidationViolation] = []
        subjects = data.subject_map
        groups: dict[tuple, list[Session]] = defaultdict(list)
        for s in data.sessions:
            if sharing.is_joint_capable(subjects.get(s.subject_id)):
                groups[s.signature].append(s)

        for signature, members in groups.items():
            if len(members) < 2:
                continue
            if len({m.period_count for m in members}) > 1 or len({m.kind for m in members}) > 1:
                violations.append(ValidationViolation(
                    severity="warning",
                    constraint="joint_group_inconsistency",
                    entity=signature[0],
                    description=(
                        f"{signature[3].strftime('%d.%m.%Y')} Std. {signature[4]}: "
                        f"Klassen {', '.join(sorted(m.class_id for m in members))} "
                        f"haben abweichende Stundenzahl oder Art."
                    ),
                ))
        return violations

    def _check_holidays(self, data: ScheduleData) -> list[ValidationViolation]:
        """Sitzungen in Ferienzeiträumen (z.B. nach nachträglich eingetragenen Ferien)."""
        calendar = data.holiday_calendar()
        violations: list[ValidationViolation] = []
        for s in data.sessions:
            holiday = calendar.holiday_for(s.date)
            if holiday is not None and s.status != SessionStatus.OFF:
                violations.append(ValidationViolation(
                    severity="warning",
                    constraint="holiday_session",
                    entity=s.class_id,
                    description=f"{s.date.strftime('%d.%m.%Y')} liegt in den Ferien ({holiday.name}).",
                ))
        return violations
