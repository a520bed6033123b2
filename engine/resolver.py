"""Assignment Resolver: manuelle Einzel- und Sammelzuweisungen.

Ablauf pro Teilnehmer:
  1. Ziel-ID mit dem Heimat-Ort als Hinweis auflösen
  2. Ort prüfen (Teilnehmer-Ort = Termin-Ort)
  3. Bereits vollständig zugewiesen → nichts tun
  4. Konflikte: gleicher Kurs in anderer Gruppe am selben Ort
     (nur bei teilweise zugewiesenen Teilnehmern)
  5. Strategie wählen: Mehrkurs / Einzelkurs / Einzeltermin
  6. Kapazität prüfen, dann Konflikte löschen und neue Zeilen einfügen
  7. Zähler aktualisieren und neu kategorisieren

Einfüge-Aufrufe sind unabhängig voneinander. Scheitert einer, bleiben die
übrigen bestehen; die nächste Kategorisierung meldet den Teilnehmer dann
als teilweise zugewiesen.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from engine.capacity import CapacityTracker
from engine.categorizer import categorize
from engine.errors import (
    AssignmentError,
    CapacityExceededError,
    LocationMismatchError,
    NotFoundError,
    PartialBatchFailure,
    PersistenceError,
    ValidationError,
)
from engine.identifiers import IdentifierResolver, stable_id
from models.assignment import Assignment, AssignmentLevel, AssignmentSource
from models.catalog import RequirementDirectory
from models.category import Category, CategoryKind, CategoryResult
from models.session import Session
from models.trainee import Trainee
from storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    NOOP = "noop"
    MULTI_COURSE = "multi_course"
    SINGLE_COURSE = "single_course"
    SINGLE_SESSION = "single_session"


_LEVEL_FOR_STRATEGY = {
    Strategy.MULTI_COURSE: AssignmentLevel.GROUP,
    Strategy.SINGLE_COURSE: AssignmentLevel.COURSE,
    Strategy.SINGLE_SESSION: AssignmentLevel.SESSION,
}


# ─── Ergebnis-Typen ───────────────────────────────────────────────────────────

@dataclass
class AssignmentResult:
    """Ergebnis einer Zuweisung für einen Teilnehmer."""

    trainee_id: str
    strategy: Strategy
    session: Optional[Session] = None
    created: list[Assignment] = field(default_factory=list)
    removed: list[Assignment] = field(default_factory=list)
    insert_errors: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.removed)

    @property
    def is_partial(self) -> bool:
        """True wenn einzelne Einfüge-Aufrufe gescheitert sind."""
        return bool(self.insert_errors)


@dataclass
class FailedItem:
    trainee_id: str
    reason: str
    message: str


@dataclass
class BulkAssignmentResult:
    """Ergebnis einer Sammelzuweisung: Erfolge und Fehler pro Teilnehmer."""

    successful: list[AssignmentResult] = field(default_factory=list)
    failed: list[FailedItem] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def add_failure(self, trainee_id: str, error: AssignmentError) -> None:
        self.failed.append(FailedItem(trainee_id, error.reason, error.message))

    def raise_on_failure(self) -> None:
        """Wirft PartialBatchFailure, sobald mindestens ein Teilnehmer scheiterte."""
        if self.failed:
            raise PartialBatchFailure(
                f"{len(self.failed)} von {len(self.successful) + len(self.failed)} "
                f"Zuweisungen fehlgeschlagen.",
                successful=self.successful,
                failed=self.failed,
            )


# ─── Resolver ─────────────────────────────────────────────────────────────────

class AssignmentResolver:
    """Führt Zuweisungen gegen einen Zeitplan aus.

    Hält den Zuweisungs-Cache des Zeitplans und die aktuelle Kategorisierung.
    refresh() lädt beides mit genau einem Gateway-Abruf neu; alle weiteren
    Operationen pflegen Cache und Kapazitäts-Zähler lokal.
    """

    def __init__(
        self,
        schedule_id: str,
        trainees: Iterable[Trainee],
        directory: RequirementDirectory,
        schedule_course_ids: Iterable[str],
        identifiers: IdentifierResolver,
        capacity: CapacityTracker,
        gateway: PersistenceGateway,
        assignment_type: str = "standard",
    ):
        self.schedule_id = schedule_id
        self.trainees: dict[str, Trainee] = {t.id: t for t in trainees}
        self.directory = directory
        self.schedule_course_ids = list(schedule_course_ids)
        self.identifiers = identifiers
        self.capacity = capacity
        self.gateway = gateway
        self.assignment_type = assignment_type
        self.assignments: list[Assignment] = []
        self.categories = CategoryResult()

    # ─── Zustand ───

    def refresh(self) -> None:
        """Lädt alle Zuweisungen des Zeitplans (ein Abruf) und kategorisiert neu."""
        if self.capacity.gateway is None:
            self.assignments = self.gateway.list_assignments(self.schedule_id)
            self.capacity.load(self.assignments)
        else:
            self.assignments = self.capacity.preload(self.schedule_id)
        self.recategorize()

    def recategorize(self) -> CategoryResult:
        self.categories = categorize(
            self.trainees.values(),
            self.directory,
            self.schedule_course_ids,
            self.assignments,
        )
        return self.categories

    def assignments_of(self, trainee_id: str) -> list[Assignment]:
        return [a for a in self.assignments if a.trainee_id == trainee_id]

    def get_trainee(self, trainee_id: str) -> Trainee:
        trainee = self.trainees.get(trainee_id)
        if trainee is None:
            raise NotFoundError(f"Teilnehmer '{trainee_id}' nicht gefunden.", trainee_id)
        return trainee

    def category_of(self, trainee_id: str) -> Category:
        category = self.categories.category_of(trainee_id)
        if category is None:
            self.recategorize()
            category = self.categories.category_of(trainee_id)
        return category

    # ─── Öffentliche Operationen ───

    def assign_one(self, trainee_id: str, target_ref: Optional[str],
                   notes: str = "") -> AssignmentResult:
        """Weist einen Teilnehmer dem Ziel-Termin zu (inkl. Konfliktauflösung)."""
        if not target_ref:
            raise ValidationError("Kein Ziel-Termin ausgewählt.", trainee_id)
        trainee = self.get_trainee(trainee_id)
        result = self._assign(trainee, target_ref, notes)
        if result.changed:
            self.recategorize()
        return result

    def assign_many(self, trainee_ids: Iterable[str], target_ref: Optional[str],
                    notes: str = "") -> BulkAssignmentResult:
        """Sammelzuweisung: Fehler einzelner Teilnehmer blockieren die anderen nicht.

        Die Teilnehmer werden nach Kategorie partitioniert (needs_all,
        needs_some/teilweise, Rest) und in dieser Reihenfolge verarbeitet.
        """
        ids = list(dict.fromkeys(trainee_ids))
        if not ids:
            raise ValidationError("Keine Teilnehmer ausgewählt.")

        result = BulkAssignmentResult()
        if not target_ref:
            for tid in ids:
                result.add_failure(tid, ValidationError("Kein Ziel-Termin ausgewählt.", tid))
            return result

        partitions: dict[str, list[Trainee]] = {"needs_all": [], "needs_some": [], "other": []}
        for tid in ids:
            trainee = self.trainees.get(tid)
            if trainee is None:
                result.add_failure(tid, NotFoundError(f"Teilnehmer '{tid}' nicht gefunden.", tid))
                continue
            kind = self.category_of(tid).kind
            if kind == CategoryKind.NEEDS_ALL:
                partitions["needs_all"].append(trainee)
            elif kind in (CategoryKind.NEEDS_SOME, CategoryKind.PARTIALLY_ASSIGNED):
                partitions["needs_some"].append(trainee)
            else:
                partitions["other"].append(trainee)

        for name, members in partitions.items():
            for trainee in members:
                try:
                    result.successful.append(self._assign(trainee, target_ref, notes))
                except AssignmentError as e:
                    logger.info(f"Zuweisung {trainee.id} → {target_ref} abgelehnt ({e.reason}): {e}")
                    result.add_failure(trainee.id, e)

        if any(r.changed for r in result.successful):
            self.recategorize()
        logger.info(
            f"Sammelzuweisung → {target_ref}: {len(result.successful)} erfolgreich, "
            f"{len(result.failed)} fehlgeschlagen"
        )
        return result

    def remove_from_group(self, trainee_id: str, target_ref: str) -> list[Assignment]:
        """Entfernt alle Zuweisungen des Teilnehmers in der Gruppe des Termins."""
        trainee = self.get_trainee(trainee_id)
        session = self.identifiers.resolve(target_ref, trainee.training_location)
        doomed = [
            a for a in self.assignments_of(trainee_id)
            if a.group_key == session.group_key
        ]
        return self._remove(trainee_id, doomed)

    def remove_from_course(self, trainee_id: str, target_ref: str) -> list[Assignment]:
        """Entfernt nur die Zuweisungen für den Kurs des Termins in dessen Gruppe."""
        trainee = self.get_trainee(trainee_id)
        session = self.identifiers.resolve(target_ref, trainee.training_location)
        doomed = [
            a for a in self.assignments_of(trainee_id)
            if a.group_key == session.group_key and a.course_id == session.course_id
        ]
        return self._remove(trainee_id, doomed)

    def remove_all(self) -> int:
        """Löscht alle Zuweisungen des Zeitplans."""
        deleted = self.gateway.delete_schedule(self.schedule_id)
        self.assignments = []
        self.capacity.load([])
        self.recategorize()
        logger.warning(f"Alle Zuweisungen von Zeitplan {self.schedule_id} gelöscht ({deleted}).")
        return deleted

    # ─── Kern ───

    def _assign(self, trainee: Trainee, target_ref: str, notes: str = "") -> AssignmentResult:
        session = self.identifiers.resolve(target_ref, trainee.training_location)
        if session.training_location != trainee.training_location:
            raise LocationMismatchError(
                f"{trainee.name} ({trainee.training_location}) passt nicht zu "
                f"Termin am Ort {session.training_location}.",
                trainee.id,
            )

        category = self.category_of(trainee.id)
        if category.is_fully_assigned:
            logger.debug(f"{trainee.id} ist bereits vollständig zugewiesen – keine Änderung.")
            return AssignmentResult(trainee.id, Strategy.NOOP, session)

        held = self.assignments_of(trainee.id)
        conflicts: list[Assignment] = []
        if category.kind == CategoryKind.PARTIALLY_ASSIGNED:
            conflicts = [
                a for a in held
                if a.course_id == session.course_id
                and a.training_location == session.training_location
                and a.group_number != session.group_number
            ]
        remaining = [a for a in held if a not in conflicts]

        if category.kind == CategoryKind.NEEDS_ALL or (
            not remaining and category.kind != CategoryKind.NEEDS_SOME
        ):
            strategy = Strategy.MULTI_COURSE
            targets = self._first_session_per_course(session)
        elif conflicts or category.needs_course(session.course_id):
            # Umbuchung: der Kurs ist nach dem Löschen offen, alle Teile neu anlegen
            strategy = Strategy.SINGLE_COURSE
            targets = self.identifiers.course_sessions(
                session.course_id, session.training_location, session.group_number
            ) or [session]
        else:
            strategy = Strategy.SINGLE_SESSION
            targets = [session]

        return self.commit(
            trainee, targets, strategy,
            conflicts=conflicts, remaining=remaining,
            source=AssignmentSource.MANUAL, notes=notes,
            anchor=session,
        )

    def _first_session_per_course(self, session: Session) -> list[Session]:
        """Je Kurs der erste Termin mit gleichem Ort, Fachbereich und Gruppe.

        Für den Kurs des Ziel-Termins gilt der Ziel-Termin selbst.
        """
        per_course: dict[str, Session] = {session.course_id: session}
        for s in self.identifiers.group_sessions(
            session.training_location, session.group_number, session.functional_area
        ):
            per_course.setdefault(s.course_id, s)
        return list(per_course.values())

    def commit(
        self,
        trainee: Trainee,
        sessions: list[Session],
        strategy: Strategy,
        conflicts: Iterable[Assignment] = (),
        remaining: Optional[list[Assignment]] = None,
        source: AssignmentSource = AssignmentSource.MANUAL,
        notes: str = "",
        anchor: Optional[Session] = None,
    ) -> AssignmentResult:
        """Prüft Kapazität, löscht Konflikte und fügt die Zuweisungen ein.

        Alle Termine müssen zur selben Gruppe (Ort + Gruppennummer) gehören.

        Raises:
            CapacityExceededError: Gruppe oder Termin voll (vor jeder Löschung)
            PersistenceError: Löschen fehlgeschlagen oder kein Einfügen gelungen
        """
        conflicts = list(conflicts)
        if remaining is None:
            remaining = [a for a in self.assignments_of(trainee.id) if a not in conflicts]
        anchor = anchor or sessions[0]

        held_triples = {a.triple for a in remaining}
        new_sessions = [
            s for s in sessions
            if (trainee.id, s.course_id, stable_id(s)) not in held_triples
        ]
        if not new_sessions and not conflicts:
            logger.debug(f"{trainee.id}: Zuweisung bereits vorhanden – keine Änderung.")
            return AssignmentResult(trainee.id, Strategy.NOOP, anchor)

        location, group = anchor.training_location, anchor.group_number
        already_member = any(
            a.training_location == location and a.group_number == group for a in remaining
        )
        if new_sessions and not already_member and not self.capacity.has_capacity(location, group):
            raise CapacityExceededError(
                f"Gruppe {group} in {location} ist voll "
                f"({self.capacity.count(location, group)}/{self.capacity.ceiling}).",
                trainee.id,
            )
        if strategy in (Strategy.SINGLE_COURSE, Strategy.SINGLE_SESSION):
            for s in new_sessions:
                if (not self.capacity.is_session_member(s, trainee.id)
                        and not self.capacity.has_session_capacity(s)):
                    raise CapacityExceededError(
                        f"Termin '{s.title}' in {location} ist voll "
                        f"({self.capacity.session_count(s)} Teilnehmer).",
                        trainee.id,
                    )

        result = AssignmentResult(trainee.id, strategy, anchor)

        if conflicts:
            self.gateway.delete_assignments([a.id for a in conflicts if a.id])
            result.removed = conflicts
            self._forget(trainee.id, conflicts)
            logger.info(
                f"{trainee.id}: {len(conflicts)} Konflikt-Zuweisung(en) für "
                f"{anchor.course_id} aufgelöst"
            )

        level = _LEVEL_FOR_STRATEGY.get(strategy, AssignmentLevel.SESSION)
        for s in new_sessions:
            row = Assignment(
                schedule_id=self.schedule_id,
                trainee_id=trainee.id,
                assignment_level=level,
                course_id=s.course_id,
                session_identifier=stable_id(s),
                group_identifier=s.group_identifier,
                group_number=s.group_number,
                training_location=s.training_location,
                functional_area=s.functional_area,
                assignment_type=self.assignment_type,
                assignment_source=source,
                notes=notes,
            )
            try:
                stored = self.gateway.insert_assignment(row)
            except PersistenceError as e:
                logger.warning(f"{trainee.id}: Einfügen für '{s.title}' fehlgeschlagen: {e}")
                result.insert_errors.append(e.message)
                continue
            self.assignments.append(stored)
            self.capacity.reserve(s.training_location, s.group_number, trainee.id, s.course_id)
            result.created.append(stored)

        if new_sessions and not result.created:
            raise PersistenceError(
                f"Keine Zuweisung für {trainee.id} gespeichert: "
                f"{'; '.join(result.insert_errors)}",
                trainee.id,
            )
        if result.insert_errors:
            logger.warning(
                f"{trainee.id}: nur {len(result.created)} von {len(new_sessions)} "
                f"Zuweisungen gespeichert"
            )
        return result

    def _remove(self, trainee_id: str, doomed: list[Assignment]) -> list[Assignment]:
        if not doomed:
            return []
        self.gateway.delete_assignments([a.id for a in doomed if a.id])
        self._forget(trainee_id, doomed)
        self.recategorize()
        logger.info(f"{trainee_id}: {len(doomed)} Zuweisung(en) entfernt")
        return doomed

    def _forget(self, trainee_id: str, removed: list[Assignment]) -> None:
        """Entfernt Zeilen aus Cache und Kapazitäts-Zählern."""
        removed_ids = {id(a) for a in removed}
        self.assignments = [a for a in self.assignments if id(a) not in removed_ids]
        remaining = self.assignments_of(trainee_id)
        for a in removed:
            self.capacity.release(
                a.training_location, a.group_number, trainee_id, a.course_id, remaining
            )
