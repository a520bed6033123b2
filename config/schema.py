from pydantic import BaseModel, Field, field_validator
from enum import Enum


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ─── KAPAZITÄT ───

class CapacityConfig(BaseModel):
    """Kapazitäts-Konfiguration.

    Die Kapazität gilt pro GRUPPE (Schulungsort + Gruppennummer) und zählt
    eindeutige Teilnehmer über alle Kurse, die sich die Gruppe teilen.
    Eine Schulung mit eigenem max_attendees überschreibt den Default.
    """
    # Maximale Teilnehmer pro Gruppe, falls der Zeitplan nichts vorgibt
    default_max_attendees: int = Field(25, ge=1, le=500,
        description="Max. Teilnehmer pro Gruppe (Default)")
    # Obergrenze für die Gruppensuche der Auto-Zuweisung (1..N)
    max_group_number: int = Field(50, ge=1, le=500,
        description="Höchste Gruppennummer, die bei der Auto-Zuweisung geprüft wird")


# ─── ZUWEISUNG ───

class AssignmentConfig(BaseModel):
    """Regeln für manuelle und automatische Zuweisungen."""
    # Literal, das beim Löschen aller Zuweisungen eingetippt werden muss
    reset_confirmation: str = Field("DELETE",
        description="Bestätigungs-Literal für das Löschen aller Zuweisungen")
    # Überschneidende Trainer-Termine nur warnen (True) oder blockieren (False)
    allow_resource_conflicts: bool = Field(True,
        description="Trainer-Zeitkonflikte nur als Warnung behandeln")
    # Wert für assignment_type neuer Zuweisungen
    default_assignment_type: str = Field("standard",
        description="assignment_type neuer Zuweisungen")

    @field_validator("reset_confirmation")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reset_confirmation darf nicht leer sein.")
        return v


# ─── SPEICHER ───

class StorageConfig(BaseModel):
    """Ablageorte der JSON-Dateien."""
    # Vollständiger Datensatz (Zeitplan, Schulungen, Teilnehmer, Rollen)
    data_path: str = Field("output/schedule_data.json",
        description="Pfad zum Datensatz (JSON)")
    # Persistierte Zuweisungen
    assignments_path: str = Field("output/assignments.json",
        description="Pfad zur Zuweisungs-Datei (JSON)")


# ─── LOGGING ───

class LoggingConfig(BaseModel):
    """Logging-Konfiguration für CLI-Läufe."""
    level: LogLevel = Field(LogLevel.INFO,
        description="Log-Level (DEBUG, INFO, WARNING, ERROR)")


# ─── GESAMT-CONFIG ───

class EngineConfig(BaseModel):
    """Gesamtkonfiguration des Schulungsplaners."""
    # Name der Organisation (nur Anzeige)
    organization_name: str = Field("Muster-Schulungszentrum",
        description="Name der Organisation")
    # Kapazitätsgrenzen
    capacity: CapacityConfig = Field(default_factory=CapacityConfig)
    # Zuweisungsregeln
    assignment: AssignmentConfig = Field(default_factory=AssignmentConfig)
    # Ablageorte
    storage: StorageConfig = Field(default_factory=StorageConfig)
    # Logging
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
