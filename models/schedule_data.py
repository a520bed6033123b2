"""ScheduleData: Vollständiger Schulungsdatensatz + Machbarkeits-Check (Pydantic v2)."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from models.catalog import RequirementDirectory
from models.course import Course
from models.session import Session, GROUP_PATTERN
from models.trainee import Trainee
from models.trainer import Trainer


class Schedule(BaseModel):
    """Ein Zeitplan (Schulungsprogramm), auf den sich alle Zuweisungen beziehen."""

    id: str
    name: str
    functional_area: Optional[str] = None
    # Kapazitätskriterium des Zeitplans; None → config.capacity.default_max_attendees
    max_attendees: Optional[int] = Field(None, ge=1)


class FeasibilityReport(BaseModel):
    """Ergebnis des Machbarkeits-Checks."""

    is_feasible: bool
    errors: list[str]      # Kritische Probleme (Auto-Zuweisung scheitert sicher)
    warnings: list[str]    # Hinweise (einzelne Teilnehmer bleiben evtl. offen)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        if self.is_feasible:
            status = "[bold green]✓ ZUWEISBAR[/bold green]"
        else:
            status = "[bold red]✗ NICHT ZUWEISBAR[/bold red]"

        lines = [status]
        if self.errors:
            lines.append("\n[red bold]Fehler (kritisch):[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Machbarkeits-Check", border_style="cyan"))


class ScheduleData(BaseModel):
    """Vollständiger Datensatz: Zeitplan, Kurse, Termine, Teilnehmer, Rollen, Trainer."""

    schedule: Schedule
    courses: list[Course]
    sessions: list[Session]
    trainees: list[Trainee]
    requirements: RequirementDirectory = Field(default_factory=RequirementDirectory)
    trainers: list[Trainer] = []
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    # ─── Abfragen ───

    @property
    def course_ids(self) -> list[str]:
        """Kurs-IDs des Zeitplans in Katalog-Reihenfolge (ohne Duplikate)."""
        ids = [c.course_id for c in self.courses]
        for s in self.sessions:
            if s.course_id not in ids:
                ids.append(s.course_id)
        return ids

    def trainee_by_id(self, trainee_id: str) -> Optional[Trainee]:
        for t in self.trainees:
            if t.id == trainee_id:
                return t
        return None

    def trainer_by_id(self, trainer_id: str) -> Optional[Trainer]:
        for t in self.trainers:
            if t.id == trainer_id:
                return t
        return None

    def locations(self) -> list[str]:
        """Alle Schulungsorte, an denen Termine stattfinden (sortiert)."""
        return sorted({s.training_location for s in self.sessions})

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        groups = {s.group_key for s in self.sessions}
        lines = [
            f"Zeitplan: {self.schedule.name} ({self.schedule.id})",
            f"Kurse: {len(self.courses)}",
            f"Termine: {len(self.sessions)} "
            f"({len(groups)} Gruppen an {len(self.locations())} Orten)",
            f"Teilnehmer: {len(self.trainees)}",
            f"Rollen: {len(self.requirements.mappings)}",
            f"Trainer: {len(self.trainers)}" if self.trainers else "",
            f"Kapazität pro Gruppe: {self.schedule.max_attendees}"
            if self.schedule.max_attendees else "",
        ]
        return "\n".join(l for l in lines if l)

    # ─── Machbarkeits-Check ───

    def validate_feasibility(self, ceiling: int, max_group_number: int) -> FeasibilityReport:
        """Prüft ob die Auto-Zuweisung grundsätzlich alle Teilnehmer platzieren kann.

        Prüfungen:
        1. Jede Teilnehmer-Rolle ist im Requirement Directory bekannt
        2. Jeder Teilnehmer-Ort bietet Termine an
        3. Pro Ort: Plätze (Gruppen × Kapazität) ≥ Teilnehmer
        4. Pflichtkurse einer Rolle werden am Ort angeboten
        5. Termin-Titel enthalten das Muster "Group N"
        6. Gruppennummern liegen im Suchbereich der Auto-Zuweisung
        """
        errors: list[str] = []
        warnings: list[str] = []

        schedule_courses = set(self.course_ids)
        sessions_by_location: dict[str, list[Session]] = {}
        for s in self.sessions:
            sessions_by_location.setdefault(s.training_location, []).append(s)

        # ── 1. Rollen ─────────────────────────────────────────────────────
        unknown_roles = sorted({
            t.role for t in self.trainees
            if not self.requirements.has_role(t.role)
        })
        for role in unknown_roles:
            count = sum(1 for t in self.trainees if t.role == role)
            warnings.append(
                f"Rolle '{role}' ({count} Teilnehmer) hat keine Pflichtkurse im "
                f"Requirement Directory – Teilnehmer gelten als 'unassigned'."
            )

        # ── 2./3. Orte und Plätze ─────────────────────────────────────────
        trainees_by_location: dict[str, int] = {}
        for t in self.trainees:
            trainees_by_location[t.training_location] = (
                trainees_by_location.get(t.training_location, 0) + 1
            )

        for location, count in sorted(trainees_by_location.items()):
            loc_sessions = sessions_by_location.get(location)
            if not loc_sessions:
                errors.append(
                    f"Ort '{location}': {count} Teilnehmer, aber keine Termine."
                )
                continue
            groups = {s.group_number for s in loc_sessions}
            seats = len(groups) * ceiling
            if seats < count:
                errors.append(
                    f"Ort '{location}': {count} Teilnehmer bei nur {seats} Plätzen "
                    f"({len(groups)} Gruppen × {ceiling}). Mehr Gruppen benötigt."
                )
            elif seats < count * 1.1:
                warnings.append(
                    f"Ort '{location}': Auslastung sehr hoch – "
                    f"{count} Teilnehmer bei {seats} Plätzen."
                )

        # ── 4. Pflichtkurse am Ort ────────────────────────────────────────
        offered: dict[str, set[str]] = {
            loc: {s.course_id for s in ss} for loc, ss in sessions_by_location.items()
        }
        seen: set[tuple[str, str]] = set()
        for t in self.trainees:
            key = (t.role, t.training_location)
            if key in seen or t.training_location not in offered:
                continue
            seen.add(key)
            required = set(self.requirements.required_for(t.role)) & schedule_courses
            missing = required - offered[t.training_location]
            if missing:
                errors.append(
                    f"Rolle '{t.role}' @ {t.training_location}: Pflichtkurse "
                    f"{', '.join(sorted(missing))} werden dort nicht angeboten."
                )

        # ── 5. Titel-Muster ───────────────────────────────────────────────
        no_pattern = [s for s in self.sessions if not GROUP_PATTERN.search(s.title)]
        if no_pattern:
            warnings.append(
                f"{len(no_pattern)} Termine ohne 'Group N' im Titel – "
                f"Gruppe 1 angenommen (z.B. '{no_pattern[0].title}')."
            )

        # ── 6. Gruppensuche ───────────────────────────────────────────────
        too_high = sorted({
            s.group_number for s in self.sessions if s.group_number > max_group_number
        })
        if too_high:
            warnings.append(
                f"Gruppen {', '.join(map(str, too_high))} liegen über "
                f"max_group_number={max_group_number} und werden von der "
                f"Auto-Zuweisung nicht berücksichtigt."
            )

        return FeasibilityReport(
            is_feasible=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        updated = self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })
        with open(path, "w", encoding="utf-8") as f:
            f.write(updated.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "ScheduleData":
        """Lädt einen Datensatz aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
