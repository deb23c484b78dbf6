"""Sitzungs-Repository: Schnittstelle und In-Memory-Implementierung.

Die Engine kennt nur die Protokoll-Methoden; wie gespeichert wird, entscheidet
der Aufrufer. Gruppenänderungen laufen in `transaction()` – entweder alle
Zeilen werden geschrieben oder keine.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol

from models.schedule_data import ScheduleData
from models.session import Session

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    def list_sessions(self) -> list[Session]: ...

    def get(self, session_id: str) -> Optional[Session]: ...

    def create(self, session: Session) -> str: ...

    def update(self, session_id: str, changes: dict[str, Any]) -> None: ...

    def delete(self, session_id: str) -> None: ...

    def transaction(self) -> Any: ...


class InMemorySessionRepository:
    """Hält alle Sitzungen im Speicher; Transaktionen per Schnappschuss."""

    def __init__(self, sessions: Optional[list[Session]] = None) -> None:
        self._sessions: dict[str, Session] = {}
        for s in sessions or []:
            self._sessions[s.id] = s

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def create(self, session: Session) -> str:
        if session.id in self._sessions:
            raise ValueError(f"Sitzung {session.id} existiert bereits")
        self._sessions[session.id] = session
        return session.id

    def update(self, session_id: str, changes: dict[str, Any]) -> None:
        current = self._sessions.get(session_id)
        if current is None:
            raise KeyError(f"Sitzung {session_id} nicht gefunden")
        data = current.model_dump()
        data.update(changes)
        data["id"] = session_id
        self._sessions[session_id] = Session.model_validate(data)

    def delete(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise KeyError(f"Sitzung {session_id} nicht gefunden")

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Bei einer Ausnahme wird der Stand vor Beginn wiederhergestellt."""
        snapshot = dict(self._sessions)
        try:
            yield
        except Exception:
            self._sessions = snapshot
            logger.warning("Transaktion zurückgerollt")
            raise

    def __len__(self) -> int:
        return len(self._sessions)

    def __repr__(self) -> str:
        return f"InMemorySessionRepository({len(self._sessions)} Sitzungen)"


class JsonScheduleStore:
    """Lädt einen ScheduleData-Datensatz und schreibt geänderte Sitzungen zurück."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.data = ScheduleData.load_json(self.path)
        self.repository = InMemorySessionRepository(self.data.sessions)

    def save(self, path: Optional[Path] = None) -> Path:
        target = Path(path) if path else self.path
        self.data = self.data.model_copy(
            update={"sessions": self.repository.list_sessions()}
        )
        self.data.save_json(target)
        logger.info(f"{len(self.repository)} Sitzungen gespeichert: {target}")
        return target
