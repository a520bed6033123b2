"""Identifier Resolver: stabile Termin-IDs und Auflösung von Drop-Zielen.

Format der stabilen ID:

    <course_id>-session<n>-<gruppe>-<fachbereich>[-part<k>]
    z.B. "FIN-101-session1-group-2-finance-part1"

Die ID hängt nur von fachlichen Feldern ab, nie von Listenposition oder
Anzeige-Kontext. Für die Darstellung kann ein Ortssuffix in CamelCase
angehängt werden ("…-finance-part1-BerlinTrainingCentre"); resolve()
entfernt es wieder.
"""

import logging
import re
from typing import Iterable, Optional

from engine.errors import NotFoundError
from models.session import Session

logger = logging.getLogger(__name__)

# Ortssuffix im Anzeige-Format: "BerlinTrainingCentre"
_LOCATION_SUFFIX = re.compile(r"^[A-Z][a-zA-Z]+$")
_WHITESPACE = re.compile(r"\s+")


def _slug(value: str) -> str:
    return _WHITESPACE.sub("-", value.strip()).lower()


def _camel(location: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in _WHITESPACE.split(location.strip()))


def stable_id(session: Session) -> str:
    """Deterministische ID eines Termins."""
    sid = (
        f"{session.course_id}-session{session.session_number}"
        f"-{_slug(session.group_name)}-{_slug(session.functional_area or 'general')}"
    )
    if session.part_number:
        sid += f"-part{session.part_number}"
    return sid


def render_id(session: Session) -> str:
    """Stabile ID + Ortssuffix (eindeutig auch bei gleichen Terminen an mehreren Orten)."""
    return f"{stable_id(session)}-{_camel(session.training_location)}"


def split_location_suffix(target_id: str) -> tuple[str, Optional[str]]:
    """Trennt ein Ortssuffix ab: (Basis-ID, Suffix oder None)."""
    base, sep, tail = target_id.rpartition("-")
    if sep and base and len(tail) > 3 and tail != "Unknown" and _LOCATION_SUFFIX.match(tail):
        return base, tail
    return target_id, None


class IdentifierResolver:
    """Index über alle Termine eines Zeitplans.

    Neben resolve() liefert der Resolver die Termin-Abfragen, die Resolver und
    Planer für Mehrkurs- und Mehrteil-Zuweisungen brauchen.
    """

    def __init__(self, sessions: Iterable[Session]):
        self.sessions: list[Session] = []
        self._by_id: dict[str, list[Session]] = {}
        self.replace_sessions(sessions)

    def replace_sessions(self, sessions: Iterable[Session]) -> None:
        """Ersetzt den Terminbestand und baut den Index neu auf."""
        self.sessions = list(sessions)
        self._by_id = {}
        for s in self.sessions:
            self._by_id.setdefault(stable_id(s), []).append(s)
            if s.session_id and s.session_id != stable_id(s):
                self._by_id.setdefault(s.session_id, []).append(s)

    # ─── Auflösung ───

    def candidates(self, target_id: str) -> list[Session]:
        """Alle Termine zu einer ID (ohne Orts-Disambiguierung)."""
        base, suffix = split_location_suffix(target_id)
        if suffix and base in self._by_id:
            found = self._by_id[base]
            at_suffix = [s for s in found if _camel(s.training_location) == suffix]
            return at_suffix or list(found)
        return list(self._by_id.get(target_id, []))

    def resolve(self, target_id: str, location_hint: Optional[str] = None) -> Session:
        """Löst eine Ziel-ID zu genau einem Termin auf.

        Bei mehreren Kandidaten gewinnt der am Ort `location_hint`; ohne
        passenden Hinweis wird der erste Kandidat genommen und die
        Mehrdeutigkeit protokolliert.

        Raises:
            NotFoundError: keine Übereinstimmung
        """
        if not target_id:
            raise NotFoundError("Keine Termin-ID angegeben.")
        found = self.candidates(target_id)
        if not found:
            raise NotFoundError(f"Termin '{target_id}' nicht gefunden.")
        if len(found) == 1:
            return found[0]

        if location_hint:
            for s in found:
                if s.training_location == location_hint:
                    return s
        logger.warning(
            f"Termin-ID '{target_id}' mehrdeutig ({len(found)} Kandidaten an "
            f"{', '.join(sorted({s.training_location for s in found}))}); "
            f"Ortshinweis '{location_hint}' passt nicht – nehme ersten Treffer."
        )
        return found[0]

    def is_ambiguous(self, target_id: str, location_hint: Optional[str] = None) -> bool:
        """True wenn die ID auch mit Ortshinweis nicht eindeutig auflösbar ist."""
        found = self.candidates(target_id)
        if location_hint:
            found = [s for s in found if s.training_location == location_hint] or found
        return len(found) > 1

    # ─── Termin-Abfragen ───

    def group_sessions(
        self, location: str, group_number: int, functional_area: Optional[str] = None,
    ) -> list[Session]:
        """Alle Termine einer Gruppe (über alle Kurse), optional je Fachbereich."""
        return [
            s for s in self.sessions
            if s.training_location == location
            and s.group_number == group_number
            and (functional_area is None or s.functional_area == functional_area)
        ]

    def course_sessions(self, course_id: str, location: str, group_number: int) -> list[Session]:
        """Alle Termine (Teile) eines Kurses in einer Gruppe, nach Beginn sortiert."""
        return sorted(
            (s for s in self.group_sessions(location, group_number) if s.course_id == course_id),
            key=lambda s: (s.start, s.part_number or 0),
        )

    def offered_courses(self, location: str) -> list[str]:
        """Kurs-IDs, die am Ort angeboten werden (Katalog-Reihenfolge)."""
        seen: list[str] = []
        for s in self.sessions:
            if s.training_location == location and s.course_id not in seen:
                seen.append(s.course_id)
        return seen

    def groups_for_course(self, course_id: str, location: str) -> list[int]:
        """Gruppennummern, in denen der Kurs am Ort stattfindet (aufsteigend)."""
        return sorted({
            s.group_number for s in self.sessions
            if s.course_id == course_id and s.training_location == location
        })
