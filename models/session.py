"""Datenmodell für einen Schulungstermin (Pydantic v2)."""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

# Titel-Muster: "Transfers - Group 2 (Part 1)"
GROUP_PATTERN = re.compile(r"Group (\d+)")
PART_PATTERN = re.compile(r"Part (\d+)")


def parse_group_number(title: Optional[str]) -> Optional[int]:
    """Gruppennummer aus dem Titel ("Group N"), None wenn kein Muster gefunden."""
    if not title:
        return None
    match = GROUP_PATTERN.search(title)
    return int(match.group(1)) if match else None


def parse_part_number(title: Optional[str]) -> Optional[int]:
    """Teilnummer aus dem Titel ("Part N"), None bei einteiligen Terminen."""
    if not title:
        return None
    match = PART_PATTERN.search(title)
    return int(match.group(1)) if match else None


class Session(BaseModel):
    """Ein einzelner Termin eines Kurses für eine bestimmte Gruppe.

    Alle Felder sind nach der Übernahme aus dem Session Catalog explizit
    gesetzt (siehe models.catalog.normalize_catalog). Kein nachgelagerter
    Code leitet Ort oder Fachbereich aus zusammengesetzten Strings ab.
    """

    session_id: Optional[str] = None   # ID aus dem Katalog (falls vorhanden)
    course_id: str
    course_name: str = ""
    title: str                         # "FIN-101 - Group 2 (Part 1)"
    training_location: str
    functional_area: str
    classroom: Optional[str] = None
    session_number: int = Field(1, ge=1)
    group_number: int = Field(1, ge=1)
    part_number: Optional[int] = Field(None, ge=1)
    start: datetime
    end: datetime
    max_participants: Optional[int] = Field(None, ge=1)
    trainer_id: Optional[str] = None
    trainer_name: Optional[str] = None

    @model_validator(mode="after")
    def _check_time_window(self):
        if self.end <= self.start:
            raise ValueError(
                f"Termin '{self.title}': Ende ({self.end}) liegt nicht nach Beginn ({self.start})."
            )
        return self

    @property
    def group_name(self) -> str:
        """Anzeigename der Gruppe ("Group 2")."""
        return f"Group {self.group_number}"

    @property
    def group_key(self) -> tuple[str, int]:
        """Kapazitäts-Schlüssel: (Schulungsort, Gruppennummer)."""
        return (self.training_location, self.group_number)

    @property
    def group_identifier(self) -> str:
        """Gruppen-Bezeichner einer Zuweisung, z.B. "FIN-101-group-2"."""
        return f"{self.course_id}-group-{self.group_number}"

    def overlaps(self, other: "Session") -> bool:
        """True wenn sich die Zeitfenster überschneiden."""
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"{self.title} @ {self.training_location} ({self.start:%d.%m. %H:%M})"
