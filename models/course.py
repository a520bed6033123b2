"""Datenmodell für einen Kurs (Pydantic v2)."""

from pydantic import BaseModel


class Course(BaseModel):
    """Ein Kurs; kann in beliebig vielen Schulungsterminen eines Zeitplans vorkommen."""

    course_id: str      # "FIN-101"
    course_name: str    # "Finanzbuchhaltung Grundlagen"
