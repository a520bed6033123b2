"""Datenmodell für eine Zuweisung (Pydantic v2)."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AssignmentLevel(str, Enum):
    SESSION = "session"
    COURSE = "course"
    GROUP = "group"
    LOCATION = "location"


class AssignmentSource(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Assignment(BaseModel):
    """Eine Zeile pro (Teilnehmer, Kurs, Termin).

    Zuweisungen werden nie verändert: Eine Umbuchung löscht die alte Zeile und
    legt eine neue an.
    """

    id: Optional[str] = None            # wird vom Persistence Gateway vergeben
    schedule_id: str
    trainee_id: str
    assignment_level: AssignmentLevel = AssignmentLevel.SESSION
    course_id: str
    session_identifier: str             # stabile Termin-ID (engine.identifiers.stable_id)
    group_identifier: str               # "FIN-101-group-2"
    group_number: int = Field(ge=1)
    training_location: str
    functional_area: str
    assignment_type: str = "standard"
    assignment_source: AssignmentSource = AssignmentSource.MANUAL
    notes: str = ""
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def group_key(self) -> tuple[str, int]:
        """Kapazitäts-Schlüssel: (Schulungsort, Gruppennummer)."""
        return (self.training_location, self.group_number)

    @property
    def triple(self) -> tuple[str, str, str]:
        """(trainee_id, course_id, session_identifier) – fachlicher Schlüssel."""
        return (self.trainee_id, self.course_id, self.session_identifier)
