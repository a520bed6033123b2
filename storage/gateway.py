"""Persistence Gateway: Ablage und Abruf von Zuweisungen.

Die Engine spricht ausschließlich über PersistenceGateway mit dem Speicher.
Jeder Aufruf ist eine eigenständige Operation; es gibt keine Transaktion
über mehrere Einfüge-Aufrufe hinweg.
"""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from pydantic import TypeAdapter, ValidationError

from engine.errors import PersistenceError
from models.assignment import Assignment

logger = logging.getLogger(__name__)

_ASSIGNMENT_LIST = TypeAdapter(list[Assignment])


class PersistenceGateway(ABC):
    """Schnittstelle zum Zuweisungs-Speicher."""

    @abstractmethod
    def list_assignments(self, schedule_id: str) -> list[Assignment]:
        """Alle Zuweisungen eines Zeitplans."""

    @abstractmethod
    def insert_assignment(self, assignment: Assignment) -> Assignment:
        """Legt eine Zuweisung an und gibt sie mit vergebener id zurück."""

    @abstractmethod
    def delete_assignments(self, assignment_ids: Iterable[str]) -> int:
        """Löscht Zuweisungen per id. Rückgabe: Anzahl gelöschter Zeilen."""

    @abstractmethod
    def delete_schedule(self, schedule_id: str) -> int:
        """Löscht alle Zuweisungen eines Zeitplans. Rückgabe: Anzahl."""


class InMemoryGateway(PersistenceGateway):
    """Gateway im Arbeitsspeicher (Tests, Probeläufe).

    `calls` zählt jeden Gateway-Aufruf pro Methode.
    """

    def __init__(self, assignments: Iterable[Assignment] = ()):
        self._rows: dict[str, Assignment] = {}
        self.calls: dict[str, int] = {
            "list_assignments": 0,
            "insert_assignment": 0,
            "delete_assignments": 0,
            "delete_schedule": 0,
        }
        for a in assignments:
            self._store(a)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    @property
    def write_calls(self) -> int:
        return self.total_calls - self.calls["list_assignments"]

    def reset_calls(self) -> None:
        for key in self.calls:
            self.calls[key] = 0

    def _store(self, assignment: Assignment) -> Assignment:
        stored = assignment.model_copy(update={"id": assignment.id or uuid.uuid4().hex})
        self._rows[stored.id] = stored
        return stored

    def list_assignments(self, schedule_id: str) -> list[Assignment]:
        self.calls["list_assignments"] += 1
        return [a for a in self._rows.values() if a.schedule_id == schedule_id]

    def insert_assignment(self, assignment: Assignment) -> Assignment:
        self.calls["insert_assignment"] += 1
        return self._store(assignment)

    def delete_assignments(self, assignment_ids: Iterable[str]) -> int:
        self.calls["delete_assignments"] += 1
        deleted = 0
        for aid in assignment_ids:
            if self._rows.pop(aid, None) is not None:
                deleted += 1
        return deleted

    def delete_schedule(self, schedule_id: str) -> int:
        self.calls["delete_schedule"] += 1
        ids = [aid for aid, a in self._rows.items() if a.schedule_id == schedule_id]
        for aid in ids:
            del self._rows[aid]
        return len(ids)


class JsonFileGateway(PersistenceGateway):
    """Gateway auf Basis einer JSON-Datei (eine Liste aller Zuweisungen).

    Jeder Schreibaufruf liest die Datei, ändert sie und schreibt sie komplett
    zurück. Speicherfehler werden als PersistenceError gemeldet.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> list[Assignment]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return _ASSIGNMENT_LIST.validate_json(f.read())
        except OSError as e:
            raise PersistenceError(f"Zuweisungen nicht lesbar ({self.path}): {e}") from e
        except ValidationError as e:
            raise PersistenceError(f"Zuweisungs-Datei beschädigt ({self.path}): {e}") from e

    def _write(self, rows: list[Assignment]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = [a.model_dump(mode="json") for a in rows]
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise PersistenceError(f"Zuweisungen nicht speicherbar ({self.path}): {e}") from e

    def list_assignments(self, schedule_id: str) -> list[Assignment]:
        return [a for a in self._read() if a.schedule_id == schedule_id]

    def insert_assignment(self, assignment: Assignment) -> Assignment:
        rows = self._read()
        stored = assignment.model_copy(update={"id": assignment.id or uuid.uuid4().hex})
        rows.append(stored)
        self._write(rows)
        logger.debug(f"Zuweisung gespeichert: {stored.trainee_id} → {stored.session_identifier}")
        return stored

    def delete_assignments(self, assignment_ids: Iterable[str]) -> int:
        ids = set(assignment_ids)
        if not ids:
            return 0
        rows = self._read()
        kept = [a for a in rows if a.id not in ids]
        self._write(kept)
        return len(rows) - len(kept)

    def delete_schedule(self, schedule_id: str) -> int:
        rows = self._read()
        kept = [a for a in rows if a.schedule_id != schedule_id]
        self._write(kept)
        return len(rows) - len(kept)
