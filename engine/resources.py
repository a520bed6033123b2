"""Bulk Resource Assignment: einen Trainer mehreren Terminen zuordnen.

Die ausgewählten Termine werden nach Beginn sortiert; überschneiden sich zwei
benachbarte Termine (Ende[i] > Beginn[i+1]), wird das Paar als Konflikt
gemeldet. Standardmäßig ist das nur eine Warnung.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from engine.errors import NotFoundError, ResourceConflictError, ValidationError
from engine.identifiers import IdentifierResolver, stable_id
from models.session import Session
from models.trainer import Trainer

logger = logging.getLogger(__name__)


@dataclass
class ResourceConflict:
    first: Session
    second: Session

    def __str__(self) -> str:
        return (f"{self.first.title} ({self.first.start:%d.%m. %H:%M}–{self.first.end:%H:%M}) "
                f"↔ {self.second.title} ({self.second.start:%d.%m. %H:%M}–{self.second.end:%H:%M})")


@dataclass
class ResourceAssignmentResult:
    resource_id: str
    conflicts: list[ResourceConflict] = field(default_factory=list)
    applied: list[Session] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


def find_conflicts(sessions: Iterable[Session]) -> list[ResourceConflict]:
    """Benachbarte Überschneidungen in der nach Beginn sortierten Liste."""
    ordered = sorted(sessions, key=lambda s: (s.start, s.end))
    return [
        ResourceConflict(ordered[i], ordered[i + 1])
        for i in range(len(ordered) - 1)
        if ordered[i].overlaps(ordered[i + 1])
    ]


class BulkResourceAssigner:
    """Ordnet einen Trainer den ausgewählten Terminen zu."""

    def __init__(self, identifiers: IdentifierResolver, trainers: Iterable[Trainer],
                 allow_conflicts: bool = True):
        self.identifiers = identifiers
        self.trainers = {t.id: t for t in trainers}
        self.allow_conflicts = allow_conflicts

    def assign(self, resource_id: str, session_refs: Iterable[str],
               apply: bool = True, location_hint: Optional[str] = None) -> ResourceAssignmentResult:
        """Prüft Konflikte und setzt (bei apply=True) den Trainer an allen Terminen.

        Raises:
            NotFoundError: Trainer unbekannt/inaktiv oder Termin nicht auflösbar
            ValidationError: keine Termine ausgewählt
            ResourceConflictError: Konflikte bei allow_conflicts=False
        """
        trainer = self.trainers.get(resource_id)
        if trainer is None or not trainer.active:
            raise NotFoundError(f"Trainer '{resource_id}' nicht gefunden oder inaktiv.")

        refs = list(dict.fromkeys(session_refs))
        if not refs:
            raise ValidationError("Keine Termine ausgewählt.")
        selected = [self.identifiers.resolve(ref, location_hint) for ref in refs]

        result = ResourceAssignmentResult(resource_id, conflicts=find_conflicts(selected))
        for c in result.conflicts:
            logger.warning(f"Trainer {trainer.name}: Terminüberschneidung {c}")

        if result.conflicts and not self.allow_conflicts:
            raise ResourceConflictError(
                f"Trainer {trainer.name}: {len(result.conflicts)} Terminüberschneidung(en)."
            )
        if not apply:
            return result

        targets = {id(s) for s in selected}
        updated: list[Session] = []
        for s in self.identifiers.sessions:
            if id(s) in targets:
                s = s.model_copy(update={"trainer_id": trainer.id, "trainer_name": trainer.name})
                result.applied.append(s)
            updated.append(s)
        self.identifiers.replace_sessions(updated)
        logger.info(
            f"Trainer {trainer.name} an {len(result.applied)} Termine gesetzt: "
            f"{', '.join(stable_id(s) for s in result.applied)}"
        )
        return result
