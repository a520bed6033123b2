"""Zuweisungs-Statistik: Gesamt / vollständig / teilweise / offen."""

from pydantic import BaseModel

from models.category import CategoryKind, CategoryResult


class LocationStats(BaseModel):
    location: str
    groups: int
    trainees: int
    capacity: int

    @property
    def utilization(self) -> float:
        return self.trainees / self.capacity if self.capacity else 0.0


class AssignmentStats(BaseModel):
    total: int
    fully_assigned: int
    partially_assigned: int
    unassigned: int          # needs_all + needs_some ohne Zuweisung + ohne Pflichtkurse
    locations: list[LocationStats] = []

    @property
    def completion(self) -> float:
        return self.fully_assigned / self.total if self.total else 0.0

    def print_rich(self) -> None:
        """Gibt die Statistik formatiert über Rich aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Zuweisungs-Statistik", box=box.ROUNDED)
        table.add_column("Kennzahl")
        table.add_column("Wert", justify="right")
        table.add_row("Teilnehmer gesamt", str(self.total))
        table.add_row("[green]Vollständig zugewiesen[/green]", str(self.fully_assigned))
        table.add_row("[yellow]Teilweise zugewiesen[/yellow]", str(self.partially_assigned))
        table.add_row("[red]Nicht zugewiesen[/red]", str(self.unassigned))
        table.add_row("Abschluss", f"{self.completion * 100:.0f}%")
        console.print(table)

        if self.locations:
            loc_table = Table(title="Auslastung pro Ort", box=box.SIMPLE)
            loc_table.add_column("Ort")
            loc_table.add_column("Gruppen", justify="right")
            loc_table.add_column("Teilnehmer", justify="right")
            loc_table.add_column("Plätze", justify="right")
            loc_table.add_column("Auslastung", justify="right")
            for ls in self.locations:
                color = "red" if ls.utilization > 0.95 else "green"
                loc_table.add_row(
                    ls.location, str(ls.groups), str(ls.trainees), str(ls.capacity),
                    f"[{color}]{ls.utilization * 100:.0f}%[/{color}]",
                )
            console.print(loc_table)


def compute_stats(
    categories: CategoryResult,
    snapshot: dict[tuple[str, int], int] = None,
    groups_per_location: dict[str, int] = None,
    ceiling: int = 0,
) -> AssignmentStats:
    """Verdichtet eine Kategorisierung (und optional Kapazitäts-Zähler) zur Statistik."""
    kinds = [c.kind for c in categories.by_trainee.values()]
    fully = kinds.count(CategoryKind.FULLY_ASSIGNED)
    partial = kinds.count(CategoryKind.PARTIALLY_ASSIGNED)

    locations: list[LocationStats] = []
    if snapshot is not None and groups_per_location:
        for location, groups in sorted(groups_per_location.items()):
            trainees = sum(n for (loc, _), n in snapshot.items() if loc == location)
            locations.append(LocationStats(
                location=location, groups=groups,
                trainees=trainees, capacity=groups * ceiling,
            ))

    return AssignmentStats(
        total=len(kinds),
        fully_assigned=fully,
        partially_assigned=partial,
        unassigned=len(kinds) - fully - partial,
        locations=locations,
    )
