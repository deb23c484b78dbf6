from config.schema import (
    EngineConfig,
    LessonSlot,
    PropagationConfig,
    SharingConfig,
    TimeGridConfig,
)


def default_time_grid() -> TimeGridConfig:
    """Standard-Tagesraster mit 10 Stunden à 45 Minuten.

    Vormittag:
    1. Stunde  07:30 - 08:15
    2. Stunde  08:15 - 09:00
       ── Pause (30 min) ──
    3. Stunde  09:30 - 10:15
    4. Stunde  10:15 - 11:00
    5. Stunde  11:00 - 11:45

    Nachmittag:
    6. Stunde  13:15 - 14:00
    7. Stunde  14:00 - 14:45
       ── Pause (15 min) ──
    8. Stunde  15:00 - 15:45
    9. Stunde  15:45 - 16:30
    10. Stunde 16:30 - 17:15
    """
    return TimeGridConfig(
        lesson_slots=[
            LessonSlot(slot_number=1, start_time="07:30", end_time="08:15"),
            LessonSlot(slot_number=2, start_time="08:15", end_time="09:00"),
            LessonSlot(slot_number=3, start_time="09:30", end_time="10:15"),
            LessonSlot(slot_number=4, start_time="10:15", end_time="11:00"),
            LessonSlot(slot_number=5, start_time="11:00", end_time="11:45"),
            LessonSlot(slot_number=6, start_time="13:15", end_time="14:00"),
            LessonSlot(slot_number=7, start_time="14:00", end_time="14:45"),
            LessonSlot(slot_number=8, start_time="15:00", end_time="15:45"),
            LessonSlot(slot_number=9, start_time="15:45", end_time="16:30"),
            LessonSlot(slot_number=10, start_time="16:30", end_time="17:15"),
        ],
        morning_last_period=5,
        periods_per_day=10,
    )


def default_engine_config() -> EngineConfig:
    """Vollständige Standard-Konfiguration."""
    return EngineConfig(
        school_name="Muster-Berufsschule",
        time_grid=default_time_grid(),
        sharing=SharingConfig(),
        propagation=PropagationConfig(),
    )
