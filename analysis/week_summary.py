"""Wochenübersicht: Fächer, die in der angezeigten Woche neu beginnen."""

from datetime import date
from typing import Optional

from pydantic import BaseModel

from engine.recurrence import week_bounds
from models.schedule_data import ScheduleData
from models.session import SessionStatus


class StartedSubject(BaseModel):
    """Ein Fach, das für die Klasse in dieser Woche erstmals stattfindet."""

    subject_id: str
    subject_name: str
    class_id: str
    class_name: str
    teacher_id: Optional[str] = None
    teacher_name: str
    total_periods: int


def subjects_started_in_week(
    data: ScheduleData,
    class_id: str,
    any_date: date,
) -> list[StartedSubject]:
    """Fächer mit Sitzungen in dieser Woche, aber keiner Sitzung davor.

    Ausgefallene Sitzungen zählen weder als Beginn noch als Vorgeschichte.
    Die Lehrkraft stammt aus der spätesten Sitzung der Woche.
    """
    monday, sunday = week_bounds(any_date)
    relevant = [
        s for s in data.sessions
        if s.class_id == class_id and s.status != SessionStatus.OFF
    ]
    this_week = [s for s in relevant if monday <= s.date <= sunday]

    subjects = data.subject_map
    teachers = data.teacher_map
    school_class = data.class_map.get(class_id)

    result: list[StartedSubject] = []
    seen: set[str] = set()
    for s in sorted(this_week, key=lambda s: (s.date, s.start_period)):
        if s.subject_id in seen:
            continue
        seen.add(s.subject_id)
        if any(p.subject_id == s.subject_id and p.date < monday for p in relevant):
            continue

        latest = max(
            (w for w in this_week if w.subject_id == s.subject_id),
            key=lambda w: (w.date, w.start_period),
        )
        subject = subjects.get(s.subject_id)
        teacher = teachers.get(latest.teacher_id)
        result.append(StartedSubject(
            subject_id=s.subject_id,
            subject_name=subject.name if subject else "Unbekannt",
            class_id=class_id,
            class_name=school_class.name if school_class else class_id,
            teacher_id=teacher.id if teacher else None,
            teacher_name=teacher.name if teacher else "Noch nicht zugeordnet",
            total_periods=subject.total_periods if subject else 0,
        ))
    return result
