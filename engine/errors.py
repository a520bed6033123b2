"""Fehlerarten der Zuweisungs-Engine.

Jede Fehlerart trägt einen stabilen `reason`-Code, der in Sammelergebnissen
(BulkAssignmentResult.failed, AutoAssignResult.failed) pro Teilnehmer
abgelegt wird.
"""

from typing import Optional


class AssignmentError(Exception):
    """Basisklasse aller Engine-Fehler."""

    reason = "error"

    def __init__(self, message: str, trainee_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.trainee_id = trainee_id


class ValidationError(AssignmentError):
    """Ungültige Anfrage, z.B. kein Ziel-Termin oder keine Teilnehmer gewählt."""

    reason = "validation"


class LocationMismatchError(AssignmentError):
    """Heimat-Ort des Teilnehmers ≠ Ort des Ziel-Termins."""

    reason = "location_mismatch"


class NotFoundError(AssignmentError):
    """Termin-ID (oder Teilnehmer/Trainer) konnte nicht aufgelöst werden."""

    reason = "not_found"


class CapacityExceededError(AssignmentError):
    """Gruppe oder Termin ist voll."""

    reason = "no_capacity"


class PersistenceError(AssignmentError):
    """Speicher-Zugriff des Persistence Gateway fehlgeschlagen."""

    reason = "persistence"


class PartialBatchFailure(AssignmentError):
    """Sammel-Operation mit gemischtem Ergebnis."""

    reason = "partial_batch_failure"

    def __init__(self, message: str, successful: list, failed: list):
        super().__init__(message)
        self.successful = successful
        self.failed = failed


class ResourceConflictError(AssignmentError):
    """Trainer-Termine überschneiden sich und Konflikte sind nicht erlaubt."""

    reason = "resource_conflict"


class ConfirmationError(AssignmentError):
    """Bestätigungs-Literal für destruktive Operationen stimmt nicht."""

    reason = "confirmation"
