"""Schulungsplaner — Haupt-CLI.

Verwendung:
  python main.py setup                         Ersteinrichtung (Wizard)
  python main.py config show                   Konfiguration anzeigen
  python main.py generate --export-json        Fake-Daten erzeugen + speichern
  python main.py import <katalog.json>         Session Catalog übernehmen
  python main.py validate                      Machbarkeits-Check
  python main.py categorize                    Teilnehmer-Kategorien anzeigen
  python main.py assign <ids...> -t <termin>   Manuelle Zuweisung
  python main.py auto-assign                   Automatische Zuweisung
  python main.py remove <id> <termin>          Zuweisung entfernen
  python main.py reset                         ALLE Zuweisungen löschen
  python main.py trainer-assign <tr> <termine...>  Trainer an Termine setzen
  python main.py check                         Zuweisungen validieren
  python main.py stats                         Zuweisungs-Statistik
"""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    try:
        return mgr, mgr.load()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _load_data_or_abort(config):
    from models.schedule_data import ScheduleData

    p = Path(config.storage.data_path)
    if not p.exists():
        console.print(
            f"[red]Keine Datendatei gefunden: {p}[/red]\n"
            "Verwenden Sie [bold]python main.py generate --export-json[/bold]."
        )
        sys.exit(1)
    return ScheduleData.load_json(p)


def _open_engine():
    """Konfiguration + Datensatz + JSON-Gateway → AssignmentEngine."""
    from engine.service import AssignmentEngine
    from storage.gateway import JsonFileGateway

    _, config = _load_config_or_abort()
    data = _load_data_or_abort(config)
    gateway = JsonFileGateway(Path(config.storage.assignments_path))
    return config, AssignmentEngine(data, gateway, config)


def _abort_on(error) -> None:
    console.print(f"[red bold]Fehler ({error.reason}):[/red bold] {error}")
    sys.exit(1)


def _print_failures(failed) -> None:
    if not failed:
        return
    table = Table(title="Fehlgeschlagen", box=box.ROUNDED)
    table.add_column("Teilnehmer", style="bold")
    table.add_column("Grund")
    table.add_column("Meldung")
    for f in failed:
        table.add_row(f.trainee_id, f"[red]{f.reason}[/red]", f.message)
    console.print(table)


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
def cmd_setup():
    """Ersteinrichtung: Engine-Konfiguration mit dem Setup-Wizard anlegen."""
    from config.wizard import run_wizard
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print("[yellow]Eine Konfiguration existiert bereits.[/yellow]")
        if not click.confirm("Trotzdem neu einrichten?", default=False):
            return

    config = run_wizard()
    if config is not None:
        mgr.save(config)
        console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
        console.print("Führen Sie jetzt [bold]python main.py generate --export-json[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    mgr, config = _load_config_or_abort()

    console.print(Panel(
        f"[bold]{config.organization_name}[/bold]",
        title="Engine-Konfiguration",
        border_style="cyan",
    ))
    table = Table(box=box.ROUNDED)
    table.add_column("Bereich", style="bold cyan")
    table.add_column("Schlüssel")
    table.add_column("Wert")
    for section in ("capacity", "assignment", "storage", "logging"):
        for key, value in getattr(config, section).model_dump(mode="json").items():
            table.add_row(section, key, str(value))
    console.print(table)


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--trainees", "num_trainees", default=60, help="Anzahl Teilnehmer.")
@click.option("--groups", default=2, help="Gruppen pro Ort und Fachbereich.")
@click.option("--export-json", is_flag=True, default=False,
              help="Datensatz als JSON speichern.")
@click.option("--catalog-path", default=None,
              help="Zusätzlich den verschachtelten Session Catalog als JSON speichern.")
@click.option("--validate/--no-validate", "run_validate", default=True,
              help="Machbarkeits-Check nach Generierung.")
def cmd_generate(seed: int, num_trainees: int, groups: int, export_json: bool,
                 catalog_path: str, run_validate: bool):
    """Erzeugt Testdaten (Termine, Teilnehmer, Rollen, Trainer)."""
    from data.fake_data import FakeDataGenerator
    from engine.capacity import resolve_ceiling
    from models.catalog import nest_catalog

    mgr, config = _load_config_or_abort()
    console.print("[bold]Testdaten werden generiert...[/bold]")
    gen = FakeDataGenerator(config, seed=seed, num_trainees=num_trainees,
                            groups_per_location=groups)
    data = gen.generate()
    gen.print_summary(data)
    console.print(f"\n[dim]{data.summary()}[/dim]")

    if run_validate:
        report = data.validate_feasibility(
            resolve_ceiling(data.schedule, config), config.capacity.max_group_number
        )
        report.print_rich()

    if export_json:
        out_path = Path(config.storage.data_path)
        data.save_json(out_path)
        console.print(f"[green]✓[/green] JSON gespeichert: {out_path}")

    if catalog_path:
        out = Path(catalog_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            json.dump(nest_catalog(data.sessions), f, indent=2, ensure_ascii=False)
        console.print(f"[green]✓[/green] Session Catalog gespeichert: {out}")


# ─── IMPORT ───────────────────────────────────────────────────────────────────

@click.command("import")
@click.argument("katalog", type=click.Path(exists=True, path_type=Path))
def cmd_import(katalog: Path):
    """Übernimmt einen Session Catalog (JSON) in den gespeicherten Datensatz."""
    from models.catalog import CatalogImportError, normalize_catalog
    from models.course import Course

    mgr, config = _load_config_or_abort()
    data = _load_data_or_abort(config)

    console.print(f"[bold]Importiere:[/bold] {katalog}")
    try:
        with open(katalog, "r", encoding="utf-8") as f:
            sessions = normalize_catalog(json.load(f))
    except (CatalogImportError, json.JSONDecodeError) as e:
        console.print(f"[red bold]Import fehlgeschlagen:[/red bold]\n{e}")
        sys.exit(1)

    courses = {c.course_id: c for c in data.courses}
    for s in sessions:
        courses.setdefault(s.course_id, Course(course_id=s.course_id, course_name=s.course_name))
    data = data.model_copy(update={"sessions": sessions, "courses": list(courses.values())})
    data.save_json(Path(config.storage.data_path))

    console.print(f"[green]✓[/green] {len(sessions)} Termine übernommen.")
    console.print(f"\n{data.summary()}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
def cmd_validate():
    """Führt einen Machbarkeits-Check auf dem aktuellen Datensatz durch."""
    from engine.capacity import resolve_ceiling

    mgr, config = _load_config_or_abort()
    data = _load_data_or_abort(config)
    console.print(f"\n{data.summary()}\n")
    report = data.validate_feasibility(
        resolve_ceiling(data.schedule, config), config.capacity.max_group_number
    )
    report.print_rich()
    sys.exit(0 if report.is_feasible else 1)


# ─── CATEGORIZE ───────────────────────────────────────────────────────────────

@click.command("categorize")
def cmd_categorize():
    """Zeigt die Kategorien aller Teilnehmer gegenüber dem Zeitplan."""
    config, engine = _open_engine()
    result = engine.categorize()

    counts = result.counts()
    table = Table(title=f"Kategorien — {engine.data.schedule.name}", box=box.ROUNDED)
    table.add_column("Kategorie", style="bold cyan")
    table.add_column("Anzahl", justify="right")
    table.add_column("Teilnehmer")
    table.add_row("needs_all", str(counts["needs_all"]),
                  ", ".join(t.id for t in result.needs_all[:8]))
    for course_id, trainees in result.needs_some.items():
        table.add_row(f"needs_some[{course_id}]", str(len(trainees)),
                      ", ".join(t.id for t in trainees[:8]))
    table.add_row("partially_assigned", str(counts["partially_assigned"]),
                  ", ".join(t.id for t in result.partially_assigned[:8]))
    table.add_row("unassigned", str(counts["unassigned"]),
                  ", ".join(t.id for t in result.unassigned[:8]))
    table.add_row("[green]fully_assigned[/green]", str(counts["fully_assigned"]), "")
    console.print(table)


# ─── ASSIGN ───────────────────────────────────────────────────────────────────

@click.command("assign")
@click.argument("trainee_ids", nargs=-1, required=True)
@click.option("--target", "-t", default=None, help="Termin-ID (stabil oder mit Ortssuffix).")
@click.option("--notes", default="", help="Freitext-Notiz.")
def cmd_assign(trainee_ids: tuple[str, ...], target: str, notes: str):
    """Weist Teilnehmer manuell einem Termin zu."""
    from engine.errors import AssignmentError

    config, engine = _open_engine()
    try:
        if len(trainee_ids) == 1:
            r = engine.assign_one(trainee_ids[0], target, notes)
            if not r.changed:
                console.print(f"[dim]{r.trainee_id}: keine Änderung ({r.strategy.value}).[/dim]")
            else:
                console.print(
                    f"[green]✓[/green] {r.trainee_id}: {len(r.created)} Zuweisung(en) angelegt, "
                    f"{len(r.removed)} entfernt ({r.strategy.value})"
                )
            if r.is_partial:
                console.print(f"[yellow]⚠[/yellow]  Teilweise gespeichert: {'; '.join(r.insert_errors)}")
            return
        result = engine.assign_many(trainee_ids, target, notes)
    except AssignmentError as e:
        _abort_on(e)

    created = sum(len(r.created) for r in result.successful)
    console.print(
        f"[green]✓[/green] {len(result.successful)} Teilnehmer verarbeitet, "
        f"{created} Zuweisungen angelegt"
    )
    _print_failures(result.failed)
    if result.failed:
        sys.exit(1)


# ─── AUTO-ASSIGN ──────────────────────────────────────────────────────────────

@click.command("auto-assign")
def cmd_auto_assign():
    """Weist alle offenen Teilnehmer automatisch zu (needs_all → needs_some → unassigned)."""
    from engine.errors import AssignmentError

    config, engine = _open_engine()
    console.print(f"[bold]Auto-Zuweisung:[/bold] {engine.data.schedule.name} "
                  f"(Kapazität {engine.ceiling} pro Gruppe)")
    try:
        result = engine.auto_assign_all()
    except AssignmentError as e:
        _abort_on(e)

    table = Table(title="Auto-Zuweisung", box=box.ROUNDED)
    table.add_column("Stufe", style="bold cyan")
    table.add_column("Zugewiesen", justify="right")
    table.add_column("Fehlgeschlagen", justify="right")
    for tier, counts in result.summary.items():
        table.add_row(tier, str(counts["assigned"]),
                      f"[red]{counts['failed']}[/red]" if counts["failed"] else "0")
    console.print(table)
    console.print(f"[green]✓[/green] {result.total_created} Zuweisungen angelegt")
    _print_failures(result.failed)


# ─── REMOVE ───────────────────────────────────────────────────────────────────

@click.command("remove")
@click.argument("trainee_id")
@click.argument("target")
@click.option("--course", "course_only", is_flag=True, default=False,
              help="Nur den Kurs des Termins entfernen (statt der ganzen Gruppe).")
def cmd_remove(trainee_id: str, target: str, course_only: bool):
    """Entfernt einen Teilnehmer aus einer Gruppe oder einem Kurs."""
    from engine.errors import AssignmentError

    config, engine = _open_engine()
    try:
        if course_only:
            removed = engine.remove_from_course(trainee_id, target)
        else:
            removed = engine.remove_from_group(trainee_id, target)
    except AssignmentError as e:
        _abort_on(e)
    console.print(f"[green]✓[/green] {len(removed)} Zuweisung(en) von {trainee_id} entfernt")


# ─── RESET ────────────────────────────────────────────────────────────────────

@click.command("reset")
def cmd_reset():
    """Löscht ALLE Zuweisungen des Zeitplans (dreistufige Bestätigung)."""
    from engine.errors import AssignmentError

    config, engine = _open_engine()
    literal = config.assignment.reset_confirmation

    # 1. Anzahl anzeigen
    count = engine.count_assignments(engine.schedule_id)
    console.print(Panel(
        f"Zeitplan: [bold]{engine.data.schedule.name}[/bold]\n"
        f"Zuweisungen: [bold red]{count}[/bold red]",
        title="Alle Zuweisungen löschen",
        border_style="red",
    ))
    if count == 0:
        console.print("[dim]Nichts zu löschen.[/dim]")
        return

    # 2. Bestätigung
    if not click.confirm(f"Wirklich alle {count} Zuweisungen löschen?", default=False):
        console.print("[yellow]Abgebrochen.[/yellow]")
        return

    # 3. Literal eintippen
    typed = click.prompt(f"Zur Bestätigung '{literal}' eingeben", default="", show_default=False)
    try:
        deleted = engine.remove_all_for_schedule(engine.schedule_id, typed)
    except AssignmentError as e:
        _abort_on(e)
    console.print(f"[green]✓[/green] {deleted} Zuweisungen gelöscht")


# ─── TRAINER-ASSIGN ───────────────────────────────────────────────────────────

@click.command("trainer-assign")
@click.argument("trainer_id")
@click.argument("session_refs", nargs=-1, required=True)
@click.option("--dry-run", is_flag=True, default=False,
              help="Nur Konflikte prüfen, nichts speichern.")
def cmd_trainer_assign(trainer_id: str, session_refs: tuple[str, ...], dry_run: bool):
    """Setzt einen Trainer an mehrere Termine (mit Überschneidungs-Prüfung)."""
    from engine.errors import AssignmentError

    config, engine = _open_engine()
    try:
        result = engine.assign_trainer(trainer_id, session_refs, apply=not dry_run)
    except AssignmentError as e:
        _abort_on(e)

    for c in result.conflicts:
        console.print(f"[yellow]⚠[/yellow]  Überschneidung: {c}")
    if dry_run:
        console.print(f"[dim]Probelauf: {len(result.conflicts)} Konflikt(e), nichts gespeichert.[/dim]")
        return
    engine.data.save_json(Path(config.storage.data_path))
    console.print(f"[green]✓[/green] Trainer an {len(result.applied)} Termine gesetzt")


# ─── CHECK ────────────────────────────────────────────────────────────────────

@click.command("check")
def cmd_check():
    """Validiert die gespeicherten Zuweisungen (Kapazität, IDs, Duplikate, Orte)."""
    from analysis.assignment_validator import AssignmentValidator

    config, engine = _open_engine()
    report = AssignmentValidator(engine.ceiling).validate(engine.assignments, engine.data)
    report.print_rich()
    sys.exit(0 if report.is_valid else 1)


# ─── STATS ────────────────────────────────────────────────────────────────────

@click.command("stats")
def cmd_stats():
    """Zeigt die Zuweisungs-Statistik."""
    from analysis.stats import compute_stats

    config, engine = _open_engine()
    categories = engine.categorize()
    groups_per_location: dict[str, int] = {}
    for loc in engine.data.locations():
        groups_per_location[loc] = len({
            s.group_number for s in engine.data.sessions if s.training_location == loc
        })
    stats = compute_stats(categories, engine.capacity.snapshot(),
                          groups_per_location, engine.ceiling)
    stats.print_rich()


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug-Logging aktivieren.")
def cli(verbose: bool):
    """Schulungsplaner: Teilnehmer-Zuweisung zu Schulungsgruppen.

    Starten Sie mit: python main.py setup
    """
    from config.manager import ConfigManager

    level = "DEBUG"
    if not verbose:
        try:
            level = ConfigManager().load_or_default().logging.level.value
        except ValueError:
            level = "INFO"
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def main():
    """Einstiegspunkt. Startet automatisch den Wizard beim ersten Aufruf."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen beim Schulungsplaner![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Der Setup-Wizard wird jetzt gestartet...",
            border_style="cyan",
        ))
        sys.argv.append("setup")

    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_import)
cli.add_command(cmd_validate)
cli.add_command(cmd_categorize)
cli.add_command(cmd_assign)
cli.add_command(cmd_auto_assign)
cli.add_command(cmd_remove)
cli.add_command(cmd_reset)
cli.add_command(cmd_trainer_assign)
cli.add_command(cmd_check)
cli.add_command(cmd_stats)


if __name__ == "__main__":
    main()
