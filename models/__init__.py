from models.session import Session, SessionKind, SessionStatus, generate_id
from models.subject import Subject
from models.school_class import SchoolClass
from models.teacher import Teacher
from models.holiday import Holiday, HolidayCalendar
from models.overrides import CompletionOverride, OverrideTable
from models.schedule_data import ScheduleData

__all__ = [
    "Session",
    "SessionKind",
    "SessionStatus",
    "generate_id",
    "Subject",
    "SchoolClass",
    "Teacher",
    "Holiday",
    "HolidayCalendar",
    "CompletionOverride",
    "OverrideTable",
    "ScheduleData",
]
