"""Datenmodell für eine Klasse (Pydantic v2)."""

from pydantic import BaseModel


class SchoolClass(BaseModel):
    """Repräsentiert eine Klasse (z.B. "CNTT-K21", "DL-H8")."""

    id: str
    name: str
    major_id: str   # Fachbereich der Klasse
