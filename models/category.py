"""Abgeleitete Teilnehmer-Kategorien (werden nie persistiert)."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from models.trainee import Trainee


class CategoryKind(str, Enum):
    NEEDS_ALL = "needs_all"
    NEEDS_SOME = "needs_some"
    PARTIALLY_ASSIGNED = "partially_assigned"
    UNASSIGNED = "unassigned"
    FULLY_ASSIGNED = "fully_assigned"


@dataclass(frozen=True)
class Category:
    """Klassifikation eines Teilnehmers gegenüber einem Zeitplan.

    missing enthält die noch offenen Pflichtkurse (nur bei NEEDS_SOME und
    PARTIALLY_ASSIGNED befüllt, bei NEEDS_ALL identisch mit required).
    """

    kind: CategoryKind
    required: frozenset[str] = frozenset()
    missing: frozenset[str] = frozenset()

    @property
    def is_fully_assigned(self) -> bool:
        return self.kind == CategoryKind.FULLY_ASSIGNED

    def needs_course(self, course_id: str) -> bool:
        """True wenn der Kurs zu den offenen Pflichtkursen gehört."""
        return course_id in self.missing

    def __str__(self) -> str:
        if self.missing and self.kind != CategoryKind.NEEDS_ALL:
            return f"{self.kind.value}({', '.join(sorted(self.missing))})"
        return self.kind.value


@dataclass
class CategoryResult:
    """Ergebnis eines Kategorisierungs-Durchlaufs.

    by_trainee liefert die Kategorie jedes Teilnehmers in O(1); die Listen
    bilden die Buckets für Anzeige und Auto-Zuweisung.
    """

    needs_all: list[Trainee] = field(default_factory=list)
    needs_some: dict[str, list[Trainee]] = field(default_factory=dict)
    unassigned: list[Trainee] = field(default_factory=list)
    partially_assigned: list[Trainee] = field(default_factory=list)
    by_trainee: dict[str, Category] = field(default_factory=dict)

    def category_of(self, trainee_id: str) -> Optional[Category]:
        return self.by_trainee.get(trainee_id)

    @property
    def fully_assigned_ids(self) -> list[str]:
        return [
            tid for tid, cat in self.by_trainee.items()
            if cat.kind == CategoryKind.FULLY_ASSIGNED
        ]

    def counts(self) -> dict[str, int]:
        """Anzahl Teilnehmer pro Bucket (needs_some zählt eindeutige Teilnehmer)."""
        some_ids = {t.id for users in self.needs_some.values() for t in users}
        return {
            "needs_all": len(self.needs_all),
            "needs_some": len(some_ids),
            "partially_assigned": len(self.partially_assigned),
            "unassigned": len(self.unassigned),
            "fully_assigned": len(self.fully_assigned_ids),
        }
