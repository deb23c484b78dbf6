"""Feiertage und Ferienzeiträume (Pydantic v2)."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, model_validator


class Holiday(BaseModel):
    """Ein unterrichtsfreier Zeitraum (Grenzen inklusive)."""

    start_date: date
    end_date: date
    name: str

    @model_validator(mode='after')
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"Ferienende {self.end_date} liegt vor Ferienbeginn {self.start_date}"
            )
        return self

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class HolidayCalendar:
    """Liefert zu einem Datum den blockierenden Ferienzeitraum."""

    def __init__(self, holidays: Optional[list[Holiday]] = None) -> None:
        self._holidays: list[Holiday] = sorted(
            holidays or [], key=lambda h: h.start_date
        )

    def holiday_for(self, day: date) -> Optional[Holiday]:
        """Erster Zeitraum, der das Datum enthält, sonst None."""
        for h in self._holidays:
            if h.contains(day):
                return h
        return None

    def is_blocked(self, day: date) -> bool:
        return self.holiday_for(day) is not None

    @property
    def holidays(self) -> list[Holiday]:
        return list(self._holidays)

    def __len__(self) -> int:
        return len(self._holidays)

    def __repr__(self) -> str:
        return f"HolidayCalendar({len(self._holidays)} Zeiträume)"
