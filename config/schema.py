from pydantic import BaseModel, Field, model_validator


def _parse_hhmm(value: str) -> tuple[int, int]:
    hours, minutes = value.split(":")
    return int(hours), int(minutes)


# ─── ZEITRASTER ───

class LessonSlot(BaseModel):
    """Eine einzelne Unterrichtsstunde (Tiết) im Tagesraster."""
    # Laufende Nummer der Stunde, 1-basiert (1..10)
    slot_number: int
    # Beginn der Stunde im Format "HH:MM"
    start_time: str
    # Ende der Stunde im Format "HH:MM"
    end_time: str


class TimeGridConfig(BaseModel):
    """Tagesraster mit Vormittags- und Nachmittagsblock.

    Stunden 1..morning_last_period bilden den Vormittag, der Rest den
    Nachmittag. Eine Sitzung darf die Grenze zwischen beiden nie überschreiten.
    """
    # Alle Unterrichtsstunden des Tages mit Uhrzeiten
    lesson_slots: list[LessonSlot] = Field(
        description="Alle Unterrichtsstunden des Tages mit Uhrzeiten")
    # Letzte Stunde des Vormittags
    morning_last_period: int = Field(5, ge=1,
        description="Letzte Stunde des Vormittags")
    # Anzahl Stunden pro Tag
    periods_per_day: int = Field(10, ge=1,
        description="Stunden pro Tag")

    @model_validator(mode='after')
    def validate_slots(self):
        """Prüfe lückenlose Nummerierung, Uhrzeiten und Vormittagsgrenze."""
        numbers = sorted(s.slot_number for s in self.lesson_slots)
        if numbers != list(range(1, self.periods_per_day + 1)):
            raise ValueError(
                f"Zeitraster muss die Stunden 1..{self.periods_per_day} "
                f"lückenlos enthalten (gefunden: {numbers})")
        if self.morning_last_period >= self.periods_per_day:
            raise ValueError(
                f"Vormittagsgrenze {self.morning_last_period} liegt nicht "
                f"vor der letzten Stunde {self.periods_per_day}")
        for slot in self.lesson_slots:
            try:
                start = _parse_hhmm(slot.start_time)
                end = _parse_hhmm(slot.end_time)
            except ValueError as e:
                raise ValueError(
                    f"Stunde {slot.slot_number}: ungültige Uhrzeit ({e})") from e
            if end <= start:
                raise ValueError(
                    f"Stunde {slot.slot_number}: Ende {slot.end_time} "
                    f"liegt nicht nach Beginn {slot.start_time}")
        return self

    def slot(self, number: int) -> LessonSlot:
        for s in self.lesson_slots:
            if s.slot_number == number:
                return s
        raise KeyError(f"Stunde {number} existiert nicht im Zeitraster")

    def half_day_end(self, start_period: int) -> int:
        """Exklusives Ende des Halbtags, in dem start_period liegt (6 bzw. 11)."""
        if start_period <= self.morning_last_period:
            return self.morning_last_period + 1
        return self.periods_per_day + 1

    def max_period_count(self, start_period: int) -> int:
        """Maximal mögliche Stundenzahl ab start_period ohne Halbtagswechsel."""
        return self.half_day_end(start_period) - start_period


# ─── GEMEINSAMER UNTERRICHT ───

class SharingConfig(BaseModel):
    """Parameter der Regel für klassenübergreifenden (gemeinsamen) Unterricht.

    Fächer eines konkreten Fachbereichs (major) gelten automatisch als
    gemeinsam, sobald mehr als eine Klasse diesen Fachbereich hat. Fächer mit
    einem neutralen Bereich ("common", "culture") nur bei explizitem is_shared.
    """
    # Bereich für allgemeine Fächer (alle Klassen)
    common_major_id: str = Field("common",
        description="Bereich für allgemeine Fächer")
    # Bereich für allgemeinbildende Fächer (ohne ausgeschlossene Klassen)
    culture_major_id: str = Field("culture",
        description="Bereich für allgemeinbildende Fächer")
    # Weitere neutrale Bereiche, die nie implizit gemeinsam sind
    neutral_major_ids: list[str] = Field(default_factory=list,
        description="Weitere neutrale Bereiche")
    # Klassen, deren Name eine dieser Markierungen enthält, belegen keine culture-Fächer
    culture_excluded_class_markers: list[str] = Field(
        default=["H8"],
        description="Namensmarkierungen von Klassen ohne culture-Fächer")

    @property
    def all_neutral_major_ids(self) -> set[str]:
        return {self.common_major_id, self.culture_major_id, *self.neutral_major_ids}

    def is_culture_excluded(self, class_name: str) -> bool:
        name = class_name.upper()
        return any(m.upper() in name for m in self.culture_excluded_class_markers)


# ─── FORTSCHREIBUNG ───

class PropagationConfig(BaseModel):
    """Einstellungen für "Woche fortsetzen"."""
    # Versatz zwischen Quell- und Zielwoche in Tagen
    offset_days: int = Field(7, ge=1,
        description="Versatz Quell- → Zielwoche (Tage)")
    # Ab wie vielen Reststunden eine Abschluss-Warnung erscheint
    near_completion_threshold: int = Field(4, ge=0,
        description="Warnung, wenn höchstens so viele Stunden übrig sind")


# ─── GESAMT-CONFIG ───

class EngineConfig(BaseModel):
    """Gesamtkonfiguration der Stundenplan-Engine."""
    # Name der Einrichtung
    school_name: str = Field("Muster-Berufsschule",
        description="Name der Einrichtung")
    # Tagesraster mit Uhrzeiten und Halbtagsgrenze
    time_grid: TimeGridConfig
    # Regeln für gemeinsamen Unterricht
    sharing: SharingConfig = Field(default_factory=SharingConfig)
    # Fortschreibung in die Folgewoche
    propagation: PropagationConfig = Field(default_factory=PropagationConfig)
