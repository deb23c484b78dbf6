"""Anzeigestatus einer Sitzung aus gespeichertem Status und aktueller Uhrzeit."""

from datetime import date, datetime, time

from config.schema import TimeGridConfig
from models.session import SessionStatus

_OVERRIDES = {SessionStatus.OFF, SessionStatus.MAKEUP}


def _clock(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


class StatusDeterminer:
    """Leitet den angezeigten Status ab; verändert nie gespeicherte Daten."""

    def __init__(self, time_grid: TimeGridConfig) -> None:
        self.time_grid = time_grid

    def window_bounds(self, day: date, start_period: int,
                      period_count: int = 1) -> tuple[datetime, datetime]:
        """Beginn der ersten und Ende der letzten Stunde des Fensters."""
        last = min(start_period + max(period_count, 1) - 1, self.time_grid.periods_per_day)
        start = datetime.combine(day, _clock(self.time_grid.slot(start_period).start_time))
        end = datetime.combine(day, _clock(self.time_grid.slot(last).end_time))
        return start, end

    def effective_status(
        self,
        day: date,
        start_period: int,
        stored_status: SessionStatus,
        now: datetime,
        period_count: int = 1,
    ) -> SessionStatus:
        """off/makeup gewinnen immer; sonst pending → ongoing → completed nach Uhrzeit."""
        if stored_status in _OVERRIDES:
            return stored_status
        start, end = self.window_bounds(day, start_period, period_count)
        if now.tzinfo is not None:
            now = now.replace(tzinfo=None)
        if now < start:
            return SessionStatus.PENDING
        if now < end:
            return SessionStatus.ONGOING
        return SessionStatus.COMPLETED
