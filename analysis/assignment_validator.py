"""Validierung der gespeicherten Zuweisungen.

Prüft den Zuweisungsbestand eines Zeitplans unabhängig von der Engine:
Gruppenkapazität, auflösbare Termin-IDs, doppelte Zeilen, Ortskonsistenz.
"""

from collections import defaultdict
from typing import Literal

from pydantic import BaseModel

from engine.identifiers import IdentifierResolver
from models.assignment import Assignment
from models.schedule_data import ScheduleData


class ValidationViolation(BaseModel):
    """Eine einzelne Verletzung."""

    severity: Literal["error", "warning"]
    check: str           # z.B. "group_capacity"
    description: str
    entity: str          # trainee_id / "Ort#Gruppe"


class ValidationReport(BaseModel):
    """Ergebnis der Zuweisungs-Validierung."""

    violations: list[ValidationViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    def counts_by_check(self) -> dict[str, int]:
        """Anzahl Verletzungen je Prüfung, sortiert nach Prüfungsname."""
        counts: dict[str, int] = defaultdict(int)
        for v in self.violations:
            counts[v.check] += 1
        return dict(sorted(counts.items()))

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        errors = [v for v in self.violations if v.severity == "error"]
        warnings = [v for v in self.violations if v.severity == "warning"]

        status = (
            "[bold green]✓ VALIDE[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(errors)} | Warnungen: {len(warnings)}"]
        per_check = self.counts_by_check()
        if per_check:
            lines.append(", ".join(f"{check}: {n}" for check, n in per_check.items()))
        console.print(Panel("\n".join(lines), title="Zuweisungs-Validierung", border_style="cyan"))

        if not self.violations:
            console.print("[dim]Keine Verletzungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Prüfung", width=22)
        table.add_column("Entität", width=28)
        table.add_column("Beschreibung")

        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.check,
                v.entity,
                v.description,
            )
        console.print(table)


class AssignmentValidator:
    """Prüft einen Zuweisungsbestand gegen den Datensatz."""

    def __init__(self, ceiling: int):
        self.ceiling = ceiling

    def validate(self, assignments: list[Assignment], data: ScheduleData) -> ValidationReport:
        identifiers = IdentifierResolver(data.sessions)
        violations: list[ValidationViolation] = []

        violations.extend(self._check_group_capacity(assignments))
        violations.extend(self._check_identifiers(assignments, identifiers))
        violations.extend(self._check_duplicates(assignments))
        violations.extend(self._check_locations(assignments, data))

        has_errors = any(v.severity == "error" for v in violations)
        return ValidationReport(violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_group_capacity(self, assignments: list[Assignment]) -> list[ValidationViolation]:
        """Eindeutige Teilnehmer pro Gruppe ≤ Kapazitätsgrenze."""
        members: dict[tuple[str, int], set[str]] = defaultdict(set)
        for a in assignments:
            members[a.group_key].add(a.trainee_id)

        violations = []
        for (location, group), ids in sorted(members.items()):
            if len(ids) > self.ceiling:
                violations.append(ValidationViolation(
                    severity="error",
                    check="group_capacity",
                    entity=f"{location}#{group}",
                    description=f"{len(ids)} Teilnehmer bei Kapazität {self.ceiling}.",
                ))
        return violations

    def _check_identifiers(
        self, assignments: list[Assignment], identifiers: IdentifierResolver
    ) -> list[ValidationViolation]:
        """Jede Termin-ID muss mit dem Ort der Zuweisung eindeutig auflösbar sein."""
        violations = []
        for a in assignments:
            if not identifiers.candidates(a.session_identifier):
                violations.append(ValidationViolation(
                    severity="error",
                    check="unknown_session",
                    entity=a.trainee_id,
                    description=f"Termin '{a.session_identifier}' existiert nicht.",
                ))
            elif identifiers.is_ambiguous(a.session_identifier, a.training_location):
                violations.append(ValidationViolation(
                    severity="warning",
                    check="ambiguous_session",
                    entity=a.trainee_id,
                    description=(
                        f"Termin '{a.session_identifier}' ist am Ort "
                        f"{a.training_location} nicht eindeutig."
                    ),
                ))
        return violations

    def _check_duplicates(self, assignments: list[Assignment]) -> list[ValidationViolation]:
        """Pro (Teilnehmer, Kurs, Termin) höchstens eine Zeile."""
        seen: dict[tuple, int] = defaultdict(int)
        for a in assignments:
            seen[a.triple] += 1
        return [
            ValidationViolation(
                severity="warning",
                check="duplicate_assignment",
                entity=trainee_id,
                description=f"{count}× {course_id} / {session_id}",
            )
            for (trainee_id, course_id, session_id), count in seen.items()
            if count > 1
        ]

    def _check_locations(
        self, assignments: list[Assignment], data: ScheduleData
    ) -> list[ValidationViolation]:
        """Ort der Zuweisung = Heimat-Ort des Teilnehmers."""
        home = {t.id: t.training_location for t in data.trainees}
        violations = []
        for a in assignments:
            location = home.get(a.trainee_id)
            if location is None:
                violations.append(ValidationViolation(
                    severity="warning",
                    check="unknown_trainee",
                    entity=a.trainee_id,
                    description="Teilnehmer nicht im Datensatz.",
                ))
            elif location != a.training_location:
                violations.append(ValidationViolation(
                    severity="error",
                    check="location_mismatch",
                    entity=a.trainee_id,
                    description=f"Zuweisung in {a.training_location}, Heimat-Ort {location}.",
                ))
        return violations
