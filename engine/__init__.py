"""Engine-Modul: Konfliktprüfung, gemeinsamer Unterricht, Fortschritt, Status, Fortschreibung."""

from .conflict import ConflictChecker, ConflictResult
from .eligibility import EligibilityPolicy
from .errors import CapacityExceeded, ConflictError, HolidayBlocked, ScheduleError, ValidationError
from .progress import Progress, ProgressTracker, SequenceInfo
from .recurrence import PropagationResult, PropagationWarning, RecurrenceEngine, week_sessions_for
from .service import CopyResult, SaveResult, ScheduleService, SessionDraft
from .shared import SharingPolicy
from .status import StatusDeterminer

__all__ = [
    "ConflictChecker",
    "ConflictResult",
    "EligibilityPolicy",
    "ScheduleError",
    "ValidationError",
    "HolidayBlocked",
    "ConflictError",
    "CapacityExceeded",
    "Progress",
    "ProgressTracker",
    "SequenceInfo",
    "PropagationResult",
    "PropagationWarning",
    "RecurrenceEngine",
    "week_sessions_for",
    "CopyResult",
    "SaveResult",
    "ScheduleService",
    "SessionDraft",
    "SharingPolicy",
    "StatusDeterminer",
]
