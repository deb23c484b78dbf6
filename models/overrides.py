"""Manuelle Abschluss-Markierungen für Fach × Klasse.

Ein Eintrag überstimmt die rechnerische Restzeit: ist er gesetzt, gilt das
Fach für die Klasse als abgeschlossen, auch wenn noch Stunden offen wären.
"""

import json
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel


class CompletionOverride(BaseModel):
    """Abschluss-Markierung für ein (Fach, Klasse)-Paar."""

    subject_id: str
    class_id: str
    manual_completed: bool = False   # Von Hand als abgeschlossen markiert
    paid_completed: bool = False     # Abgerechnet und damit abgeschlossen
    status_override: Optional[Literal["completed"]] = None
    version: int = 1

    @property
    def key(self) -> tuple[str, str]:
        return (self.subject_id, self.class_id)

    @property
    def marks_completed(self) -> bool:
        return (
            self.manual_completed
            or self.paid_completed
            or self.status_override == "completed"
        )


class OverrideTable:
    """Versionierte Tabelle der Abschluss-Markierungen, Schlüssel (subject_id, class_id)."""

    def __init__(self, overrides: Optional[list[CompletionOverride]] = None) -> None:
        self._entries: dict[tuple[str, str], CompletionOverride] = {}
        for o in overrides or []:
            self._entries[o.key] = o

    def get(self, subject_id: str, class_id: str) -> Optional[CompletionOverride]:
        return self._entries.get((subject_id, class_id))

    def set(self, override: CompletionOverride) -> CompletionOverride:
        """Speichert einen Eintrag; ein bestehender wird mit neuer Version ersetzt."""
        existing = self._entries.get(override.key)
        if existing is not None:
            override = override.model_copy(update={"version": existing.version + 1})
        self._entries[override.key] = override
        return override

    def remove(self, subject_id: str, class_id: str) -> bool:
        """Entfernt einen Eintrag. Gibt True zurück wenn einer entfernt wurde."""
        return self._entries.pop((subject_id, class_id), None) is not None

    def is_completed(self, subject_id: str, class_id: str) -> bool:
        entry = self.get(subject_id, class_id)
        return entry is not None and entry.marks_completed

    def entries(self) -> list[CompletionOverride]:
        return list(self._entries.values())

    def save_json(self, path: Path) -> None:
        """Speichert alle Einträge als JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = [o.model_dump() for o in self._entries.values()]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    @classmethod
    def load_json(cls, path: Path) -> "OverrideTable":
        """Lädt Einträge aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Override-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls([CompletionOverride(**item) for item in data])

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"OverrideTable({len(self._entries)} Einträge)"
