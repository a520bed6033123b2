"""Interaktiver Setup-Wizard für die Ersteinrichtung des Schulungsplaners.

Führt den Nutzer Schritt für Schritt durch alle Konfigurationsbereiche.
Nutzt rich für schöne Konsolenausgabe.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table
from rich import box

from config.schema import (
    AssignmentConfig,
    CapacityConfig,
    EngineConfig,
    LoggingConfig,
    LogLevel,
    StorageConfig,
)

console = Console()


def _header(title: str) -> None:
    console.print()
    console.print(Panel(f"[bold cyan]{title}[/bold cyan]", expand=False))


def _info(text: str) -> None:
    console.print(f"[dim]{text}[/dim]")


def _success(text: str) -> None:
    console.print(f"[green]✓[/green] {text}")


def _warn(text: str) -> None:
    console.print(f"[yellow]⚠[/yellow]  {text}")


# ─── SCHRITT 1: Organisation ───

def _wizard_organization() -> str:
    _header("Schritt 1 — Organisation")
    return Prompt.ask("Name der Organisation", default="Muster-Schulungszentrum")


# ─── SCHRITT 2: Kapazität ───

def _wizard_capacity() -> CapacityConfig:
    _header("Schritt 2 — Kapazität")
    _info("Die Kapazität gilt pro Gruppe (Schulungsort + Gruppennummer), "
          "über alle Kurse der Gruppe hinweg.")

    while True:
        max_attendees = IntPrompt.ask("Max. Teilnehmer pro Gruppe", default=25)
        if 1 <= max_attendees <= 500:
            break
        _warn("Bitte einen Wert zwischen 1 und 500 eingeben.")

    max_group = IntPrompt.ask("Höchste Gruppennummer für die Auto-Zuweisung", default=50)
    return CapacityConfig(default_max_attendees=max_attendees,
                          max_group_number=max(1, min(max_group, 500)))


# ─── SCHRITT 3: Zuweisung ───

def _wizard_assignment() -> AssignmentConfig:
    _header("Schritt 3 — Zuweisungsregeln")
    literal = Prompt.ask("Bestätigungs-Literal zum Löschen aller Zuweisungen",
                         default="DELETE")
    allow = Confirm.ask("Trainer-Terminüberschneidungen nur warnen (statt blockieren)?",
                        default=True)
    return AssignmentConfig(reset_confirmation=literal, allow_resource_conflicts=allow)


# ─── SCHRITT 4: Speicher & Logging ───

def _wizard_storage() -> tuple[StorageConfig, LoggingConfig]:
    _header("Schritt 4 — Speicher & Logging")
    data_path = Prompt.ask("Pfad zum Datensatz", default="output/schedule_data.json")
    assignments_path = Prompt.ask("Pfad zu den Zuweisungen", default="output/assignments.json")
    level = Prompt.ask("Log-Level", choices=[lv.value for lv in LogLevel], default="INFO")
    return (
        StorageConfig(data_path=data_path, assignments_path=assignments_path),
        LoggingConfig(level=LogLevel(level)),
    )


# ─── ZUSAMMENFASSUNG ───

def _show_summary(config: EngineConfig) -> None:
    _header("Zusammenfassung")
    table = Table(box=box.ROUNDED, title="Konfigurationsübersicht")
    table.add_column("Bereich", style="bold cyan")
    table.add_column("Wert")

    table.add_row("Organisation", config.organization_name)
    table.add_row("Kapazität", f"{config.capacity.default_max_attendees} pro Gruppe")
    table.add_row("Gruppensuche", f"1..{config.capacity.max_group_number}")
    table.add_row("Lösch-Bestätigung", config.assignment.reset_confirmation)
    table.add_row(
        "Trainer-Konflikte",
        "Warnung" if config.assignment.allow_resource_conflicts else "Blockieren",
    )
    table.add_row("Datensatz", config.storage.data_path)
    table.add_row("Zuweisungen", config.storage.assignments_path)
    table.add_row("Log-Level", config.logging.level.value)
    console.print(table)


# ─── HAUPT-WIZARD ───

def run_wizard() -> Optional[EngineConfig]:
    """Führt den vollständigen interaktiven Setup-Wizard aus.

    Returns:
        Fertige EngineConfig oder None, wenn der Nutzer abbricht.
    """
    console.print()
    console.print(Panel(
        "[bold]Willkommen beim Schulungsplaner![/bold]\n\n"
        "Der Wizard führt Sie durch alle Konfigurationsbereiche.\n"
        "[dim]Standard-Werte können mit Enter übernommen werden.[/dim]",
        title="[bold cyan]Schulungsplaner[/bold cyan]",
        border_style="cyan",
    ))

    if not Confirm.ask("\nMöchten Sie jetzt die Engine einrichten?", default=True):
        console.print("[yellow]Einrichtung abgebrochen.[/yellow]")
        return None

    try:
        name = _wizard_organization()
        capacity = _wizard_capacity()
        assignment = _wizard_assignment()
        storage, logging_cfg = _wizard_storage()

        config = EngineConfig(
            organization_name=name,
            capacity=capacity,
            assignment=assignment,
            storage=storage,
            logging=logging_cfg,
        )

        _show_summary(config)

        if not Confirm.ask("\nKonfiguration speichern?", default=True):
            console.print("[yellow]Konfiguration wird nicht gespeichert.[/yellow]")
            return None

        _success("Konfiguration wird gespeichert...")
        return config

    except KeyboardInterrupt:
        console.print("\n[yellow]Wizard abgebrochen.[/yellow]")
        return None
    except ValueError as e:
        console.print(f"\n[red]Fehler während der Konfiguration: {e}[/red]")
        return None
