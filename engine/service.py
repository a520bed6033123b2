"""AssignmentEngine: Fassade über alle Engine-Komponenten.

Eine Engine-Instanz gehört zu genau einem Zeitplan und besitzt für die Dauer
jeder Operation den Zuweisungs-Cache und die Kapazitäts-Zähler.
"""

import logging
from typing import Iterable, Optional

from config.schema import EngineConfig
from engine.capacity import CapacityTracker, resolve_ceiling
from engine.errors import ConfirmationError, NotFoundError
from engine.identifiers import IdentifierResolver
from engine.planner import AutoAssignmentPlanner, AutoAssignResult
from engine.resolver import AssignmentResolver, AssignmentResult, BulkAssignmentResult
from engine.resources import BulkResourceAssigner, ResourceAssignmentResult
from models.assignment import Assignment
from models.category import CategoryResult
from models.schedule_data import ScheduleData
from storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


class AssignmentEngine:
    """Öffentliche Operationen der Zuweisungs-Engine."""

    def __init__(self, data: ScheduleData, gateway: PersistenceGateway,
                 config: Optional[EngineConfig] = None):
        self.data = data
        self.gateway = gateway
        self.config = config or EngineConfig()

        # Kapazitätsgrenze einmal pro Zeitplan auflösen
        self.ceiling = resolve_ceiling(data.schedule, self.config)
        self.identifiers = IdentifierResolver(data.sessions)
        self.capacity = CapacityTracker(self.ceiling, gateway)
        self.resolver = AssignmentResolver(
            schedule_id=data.schedule.id,
            trainees=data.trainees,
            directory=data.requirements,
            schedule_course_ids=data.course_ids,
            identifiers=self.identifiers,
            capacity=self.capacity,
            gateway=gateway,
            assignment_type=self.config.assignment.default_assignment_type,
        )
        self.planner = AutoAssignmentPlanner(
            self.resolver, max_group_number=self.config.capacity.max_group_number
        )
        self.resources = BulkResourceAssigner(
            self.identifiers, data.trainers,
            allow_conflicts=self.config.assignment.allow_resource_conflicts,
        )
        self._loaded = False

    @property
    def schedule_id(self) -> str:
        return self.data.schedule.id

    @property
    def assignments(self) -> list[Assignment]:
        self._ensure_loaded()
        return list(self.resolver.assignments)

    def load(self) -> None:
        """Lädt Zuweisungen und Kapazität (ein Gateway-Abruf)."""
        self.resolver.refresh()
        self._loaded = True
        logger.debug(
            f"Engine für {self.schedule_id} geladen: {len(self.resolver.assignments)} "
            f"Zuweisungen, Kapazität {self.ceiling} pro Gruppe"
        )

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    # ─── Operationen ───

    def categorize(self) -> CategoryResult:
        self._ensure_loaded()
        return self.resolver.recategorize()

    def assign_one(self, trainee_id: str, target_ref: Optional[str],
                   notes: str = "") -> AssignmentResult:
        self._ensure_loaded()
        return self.resolver.assign_one(trainee_id, target_ref, notes)

    def assign_many(self, trainee_ids: Iterable[str], target_ref: Optional[str],
                    notes: str = "") -> BulkAssignmentResult:
        self._ensure_loaded()
        return self.resolver.assign_many(trainee_ids, target_ref, notes)

    def auto_assign_all(self) -> AutoAssignResult:
        result = self.planner.run(self.schedule_id)
        self._loaded = True
        return result

    def remove_from_group(self, trainee_id: str, target_ref: str) -> list[Assignment]:
        self._ensure_loaded()
        return self.resolver.remove_from_group(trainee_id, target_ref)

    def remove_from_course(self, trainee_id: str, target_ref: str) -> list[Assignment]:
        self._ensure_loaded()
        return self.resolver.remove_from_course(trainee_id, target_ref)

    def count_assignments(self, schedule_id: Optional[str] = None) -> int:
        """Anzahl Zuweisungen (Anzeige vor dem Löschen)."""
        self._check_schedule(schedule_id)
        self._ensure_loaded()
        return len(self.resolver.assignments)

    def remove_all_for_schedule(self, schedule_id: str, confirmation: str) -> int:
        """Löscht ALLE Zuweisungen des Zeitplans.

        Raises:
            ConfirmationError: confirmation ≠ config.assignment.reset_confirmation
        """
        self._check_schedule(schedule_id)
        expected = self.config.assignment.reset_confirmation
        if confirmation != expected:
            raise ConfirmationError(
                f"Bestätigung fehlgeschlagen: '{expected}' muss exakt eingegeben werden."
            )
        self._ensure_loaded()
        return self.resolver.remove_all()

    def assign_trainer(self, trainer_id: str, session_refs: Iterable[str],
                       apply: bool = True) -> ResourceAssignmentResult:
        """Setzt einen Trainer an mehreren Terminen; Überschneidungen werden gemeldet."""
        result = self.resources.assign(trainer_id, session_refs, apply=apply)
        if result.applied:
            self.data = self.data.model_copy(update={"sessions": list(self.identifiers.sessions)})
        return result

    def _check_schedule(self, schedule_id: Optional[str]) -> None:
        if schedule_id is not None and schedule_id != self.schedule_id:
            raise NotFoundError(f"Zeitplan '{schedule_id}' nicht gefunden.")
