"""Capacity Tracker: eindeutige Teilnehmer pro Gruppe (Ort + Gruppennummer).

Kapazität gilt für die GRUPPE, nicht für den einzelnen Termin: Wer in
Gruppe 2 am Standort Berlin einen Kurs belegt, belegt einen Platz in allen
Kursen dieser Gruppe. Zusätzlich führt der Tracker Mitgliedsmengen pro
(Ort, Kurs, Gruppe) für die Termin-Kapazität bei Einzelkurs-Zuweisungen.
"""

import logging
from typing import Iterable, Optional

from config.schema import EngineConfig
from models.assignment import Assignment
from models.schedule_data import Schedule
from models.session import Session
from storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


def resolve_ceiling(schedule: Optional[Schedule], config: EngineConfig) -> int:
    """Kapazitätsgrenze pro Gruppe: Zeitplan-Wert, sonst Konfigurations-Default."""
    if schedule is not None and schedule.max_attendees:
        return schedule.max_attendees
    return config.capacity.default_max_attendees


class CapacityTracker:
    """Live-Zähler für Gruppen- und Termin-Belegung.

    Nach preload() werden alle Prüfungen gegen die lokale Struktur
    beantwortet; reserve() verbucht neue Zuweisungen sofort, sodass
    nachfolgende Prüfungen im selben Lauf keinen erneuten Abruf brauchen.
    """

    def __init__(self, ceiling: int, gateway: Optional[PersistenceGateway] = None):
        if ceiling < 1:
            raise ValueError(f"Kapazitätsgrenze muss ≥ 1 sein, nicht {ceiling}.")
        self.ceiling = ceiling
        self.gateway = gateway
        # Ort → Gruppennummer → Teilnehmer-IDs
        self._groups: dict[str, dict[int, set[str]]] = {}
        # (Ort, Kurs, Gruppennummer) → Teilnehmer-IDs
        self._sessions: dict[tuple[str, str, int], set[str]] = {}

    # ─── Laden ───

    def preload(self, schedule_id: str) -> list[Assignment]:
        """Ein einziger Abruf aller Zuweisungen des Zeitplans.

        Gibt die abgerufenen Zeilen zurück, damit der Aufrufer sie als
        Zuweisungs-Cache weiterverwenden kann.
        """
        if self.gateway is None:
            raise RuntimeError("CapacityTracker ohne Gateway kann nicht vorladen.")
        assignments = self.gateway.list_assignments(schedule_id)
        self.load(assignments)
        logger.debug(
            f"Kapazität vorgeladen: {len(assignments)} Zuweisungen, "
            f"{sum(len(g) for g in self._groups.values())} belegte Gruppen"
        )
        return assignments

    def load(self, assignments: Iterable[Assignment]) -> None:
        """Baut die Zähler aus einer Zuweisungsliste neu auf."""
        self._groups = {}
        self._sessions = {}
        for a in assignments:
            self._add(a.training_location, a.group_number, a.trainee_id, a.course_id)

    def _add(self, location: str, group_number: int, trainee_id: str,
             course_id: Optional[str]) -> None:
        self._groups.setdefault(location, {}).setdefault(group_number, set()).add(trainee_id)
        if course_id is not None:
            self._sessions.setdefault((location, course_id, group_number), set()).add(trainee_id)

    # ─── Gruppen-Ebene ───

    def members(self, location: str, group_number: int) -> set[str]:
        return set(self._groups.get(location, {}).get(group_number, set()))

    def count(self, location: str, group_number: int) -> int:
        """Eindeutige Teilnehmer der Gruppe (vorgeladen + lokal reserviert)."""
        return len(self._groups.get(location, {}).get(group_number, ()))

    def is_member(self, location: str, group_number: int, trainee_id: str) -> bool:
        return trainee_id in self._groups.get(location, {}).get(group_number, ())

    def has_capacity(self, location: str, group_number: int,
                     ceiling: Optional[int] = None) -> bool:
        return self.count(location, group_number) < (ceiling or self.ceiling)

    def can_join(self, location: str, group_number: int, trainee_id: str,
                 ceiling: Optional[int] = None) -> bool:
        """Platz frei ODER Teilnehmer ist bereits Mitglied (belegt keinen neuen Platz)."""
        return (self.is_member(location, group_number, trainee_id)
                or self.has_capacity(location, group_number, ceiling))

    def reserve(self, location: str, group_number: int, trainee_id: str,
                course_id: Optional[str] = None) -> None:
        """Verbucht eine erfolgreiche Zuweisung im lokalen Zähler."""
        self._add(location, group_number, trainee_id, course_id)

    def release(self, location: str, group_number: int, trainee_id: str,
                course_id: Optional[str] = None,
                remaining: Iterable[Assignment] = ()) -> None:
        """Nimmt eine gelöschte Zuweisung aus den Zählern.

        Der Gruppenplatz wird nur frei, wenn `remaining` (die übrigen
        Zuweisungen des Teilnehmers) keine weitere in derselben Gruppe enthält.
        """
        if course_id is not None:
            key = (location, course_id, group_number)
            still_in_course = any(
                a.training_location == location and a.group_number == group_number
                and a.course_id == course_id for a in remaining
            )
            if not still_in_course:
                self._sessions.get(key, set()).discard(trainee_id)
        still_in_group = any(
            a.training_location == location and a.group_number == group_number
            for a in remaining
        )
        if not still_in_group:
            self._groups.get(location, {}).get(group_number, set()).discard(trainee_id)

    # ─── Termin-Ebene ───

    def session_count(self, session: Session) -> int:
        """Eindeutige Teilnehmer des Kurses in dieser Gruppe."""
        key = (session.training_location, session.course_id, session.group_number)
        return len(self._sessions.get(key, ()))

    def is_session_member(self, session: Session, trainee_id: str) -> bool:
        key = (session.training_location, session.course_id, session.group_number)
        return trainee_id in self._sessions.get(key, ())

    def has_session_capacity(self, session: Session, ceiling: Optional[int] = None) -> bool:
        """Termin-Kapazität: eigene max_participants, sonst die Gruppengrenze."""
        limit = ceiling or session.max_participants or self.ceiling
        return self.session_count(session) < limit

    def snapshot(self) -> dict[tuple[str, int], int]:
        """(Ort, Gruppe) → Anzahl, z.B. für Statistik und Tests."""
        return {
            (loc, grp): len(ids)
            for loc, groups in self._groups.items()
            for grp, ids in groups.items()
            if ids
        }
