"""Auto-Assignment Planner: priorisierte Sammelzuweisung aller offenen Teilnehmer.

Stufen (strikt in dieser Reihenfolge):
  1. needs_all              – alle Kurse des Zeitplans offen
  2. needs_some je Kurs     – einzelne Kurse offen (inkl. teilweise zugewiesen)
  3. unassigned             – wie needs_all über die am Ort angebotenen Kurse

Die Teilnehmer werden nacheinander gegen EINE gemeinsame Kapazitäts-Struktur
verarbeitet. Kapazität wird genau einmal zu Beginn geladen.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from engine.errors import AssignmentError, CapacityExceededError, NotFoundError
from engine.resolver import (
    AssignmentResolver,
    AssignmentResult,
    FailedItem,
    Strategy,
)
from models.assignment import AssignmentSource
from models.session import Session
from models.trainee import Trainee

logger = logging.getLogger(__name__)

TIER_NEEDS_ALL = "needs_all"
TIER_NEEDS_SOME = "needs_some"
TIER_UNASSIGNED = "unassigned"


@dataclass
class AutoAssignResult:
    """Ergebnis eines Auto-Zuweisungs-Laufs."""

    successful: list[AssignmentResult] = field(default_factory=list)
    failed: list[FailedItem] = field(default_factory=list)
    summary: dict[str, dict[str, int]] = field(default_factory=dict)

    def _count(self, tier: str, key: str) -> None:
        bucket = self.summary.setdefault(tier, {"assigned": 0, "failed": 0})
        bucket[key] += 1

    @property
    def total_created(self) -> int:
        return sum(len(r.created) for r in self.successful)


class AutoAssignmentPlanner:
    """Platziert jeden offenen Teilnehmer in der niedrigsten Gruppe mit Platz."""

    def __init__(self, resolver: AssignmentResolver, max_group_number: int = 50):
        self.resolver = resolver
        self.max_group_number = max_group_number

    @property
    def identifiers(self):
        return self.resolver.identifiers

    @property
    def capacity(self):
        return self.resolver.capacity

    def run(self, schedule_id: Optional[str] = None) -> AutoAssignResult:
        """Führt alle drei Stufen aus und kategorisiert am Ende neu."""
        if schedule_id is not None and schedule_id != self.resolver.schedule_id:
            raise NotFoundError(
                f"Zeitplan '{schedule_id}' gehört nicht zu dieser Engine "
                f"({self.resolver.schedule_id})."
            )

        # Einziger Abruf: Zuweisungen + Kapazität
        self.resolver.refresh()
        categories = self.resolver.categories
        course_order = self.resolver.schedule_course_ids
        result = AutoAssignResult()

        logger.info(
            f"Auto-Zuweisung gestartet: {len(categories.needs_all)} needs_all, "
            f"{sum(len(v) for v in categories.needs_some.values())} needs_some-Einträge, "
            f"{len(categories.unassigned)} unassigned"
        )

        # ── Stufe 1: needs_all ────────────────────────────────────────────
        for trainee in categories.needs_all:
            required = [c for c in course_order
                        if c in categories.by_trainee[trainee.id].required]
            self._attempt(result, TIER_NEEDS_ALL, trainee,
                          lambda t=trainee, r=required: self._place_multi(t, r))

        # ── Stufe 2: needs_some je Kurs ───────────────────────────────────
        for course_id, trainees in categories.needs_some.items():
            for trainee in trainees:
                self._attempt(result, TIER_NEEDS_SOME, trainee,
                              lambda t=trainee, c=course_id: self._place_course(t, c))

        # ── Stufe 3: unassigned ───────────────────────────────────────────
        for trainee in categories.unassigned:
            offered = set(self.identifiers.offered_courses(trainee.training_location))
            required = [c for c in course_order if c in offered]
            # Bereits platzierte Teilnehmer bleiben in ihrer Gruppe
            held = sorted({
                a.group_number for a in self.resolver.assignments_of(trainee.id)
                if a.training_location == trainee.training_location
            })
            self._attempt(result, TIER_UNASSIGNED, trainee,
                          lambda t=trainee, r=required, h=held[:1]: self._place_multi(t, r, h))

        self.resolver.recategorize()
        logger.info(
            f"Auto-Zuweisung beendet: {len(result.successful)} erfolgreich, "
            f"{len(result.failed)} fehlgeschlagen, {result.total_created} Zuweisungen angelegt"
        )
        return result

    def _attempt(self, result: AutoAssignResult, tier: str, trainee: Trainee, place) -> None:
        try:
            placed = place()
        except AssignmentError as e:
            logger.info(f"[{tier}] {trainee.id} nicht platziert ({e.reason}): {e}")
            result.failed.append(FailedItem(trainee.id, e.reason, e.message))
            result._count(tier, "failed")
            return
        result.successful.append(placed)
        result._count(tier, "assigned")

    # ─── Platzierung ───

    def _place_multi(self, trainee: Trainee, required: list[str],
                     groups: Optional[list[int]] = None) -> AssignmentResult:
        """Niedrigste Gruppe, in der jeder Pflichtkurs einen Termin hat und Platz ist.

        Mit `groups` werden nur diese Gruppen geprüft.
        """
        location = trainee.training_location
        if not required:
            raise NotFoundError(f"Keine Termine am Ort {location}.", trainee.id)

        for group in groups or range(1, self.max_group_number + 1):
            picked: list[Session] = []
            for course_id in required:
                sessions = self.identifiers.course_sessions(course_id, location, group)
                if not sessions:
                    break
                picked.append(sessions[0])
            else:
                if not self.capacity.can_join(location, group, trainee.id):
                    continue
                return self.resolver.commit(
                    trainee, picked, Strategy.MULTI_COURSE,
                    source=AssignmentSource.AUTOMATIC,
                )

        raise CapacityExceededError(
            f"Keine Gruppe in {location} mit allen Kursen "
            f"({', '.join(required)}) und freiem Platz.",
            trainee.id,
        )

    def _place_course(self, trainee: Trainee, course_id: str) -> AssignmentResult:
        """Erste Gruppe des Kurses mit freiem Termin-Platz; alle Teile werden zugewiesen."""
        location = trainee.training_location
        groups = [g for g in self.identifiers.groups_for_course(course_id, location)
                  if g <= self.max_group_number]
        if not groups:
            raise NotFoundError(f"Kurs {course_id} wird in {location} nicht angeboten.",
                                trainee.id)

        for group in groups:
            sessions = self.identifiers.course_sessions(course_id, location, group)
            first = sessions[0]
            if not (self.capacity.is_session_member(first, trainee.id)
                    or self.capacity.has_session_capacity(first)):
                continue
            if not self.capacity.can_join(location, group, trainee.id):
                continue
            return self.resolver.commit(
                trainee, sessions, Strategy.SINGLE_COURSE,
                source=AssignmentSource.AUTOMATIC,
            )

        raise CapacityExceededError(
            f"Kurs {course_id} in {location}: alle Gruppen voll.", trainee.id
        )
