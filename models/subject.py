"""Datenmodell für ein Fach (Pydantic v2)."""

from pydantic import BaseModel, field_validator


class Subject(BaseModel):
    """Repräsentiert ein Fach mit seinem Gesamtumfang an Stunden."""

    id: str
    name: str
    total_periods: int                    # Gesamtumfang laut Lehrplan (Stunden)
    major_id: str = "common"              # Fachbereich oder "common"/"culture"
    is_shared: bool = False               # Explizit klassenübergreifend
    responsible_teachers: list[str] = []  # Bis zu drei Namen, nur für Vorschläge

    @field_validator("total_periods")
    @classmethod
    def _check_total(cls, v: int) -> int:
        if v < 0:
            raise ValueError("total_periods darf nicht negativ sein.")
        return v

    @field_validator("responsible_teachers")
    @classmethod
    def _check_responsible(cls, v: list[str]) -> list[str]:
        names = [n.strip() for n in v if n and n.strip()]
        if len(names) > 3:
            raise ValueError(
                f"Höchstens drei verantwortliche Lehrkräfte erlaubt ({len(names)} angegeben)."
            )
        return names
