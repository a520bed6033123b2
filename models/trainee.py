"""Datenmodell für einen Teilnehmer (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, field_validator


class Trainee(BaseModel):
    """Repräsentiert einen Schulungsteilnehmer.

    Die Pflichtkurse werden NICHT gespeichert, sondern aus der Rolle über das
    Requirement Directory abgeleitet.
    """

    id: str                     # "U0042"
    name: str                   # "Müller, Anna"
    training_location: str      # Heimat-Schulungsort, z.B. "Berlin Training Centre"
    role: str                   # bestimmt die Pflichtkurse
    email: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v) -> str:
        return str(v).strip()
