"""Datenmodell für eine Lehrkraft (Pydantic v2)."""

from pydantic import BaseModel, field_validator


class Teacher(BaseModel):
    """Repräsentiert eine einzelne Lehrkraft."""

    id: str
    name: str                   # "Nguyễn Văn An"
    email: str = ""

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @property
    def match_key(self) -> str:
        """Vergleichsschlüssel für Namensabgleich (klein, ohne Randleerzeichen)."""
        return self.name.lower().strip()
