"""Testdaten-Generator für den Schulungsplaner.

Erzeugt einen realistischen Datensatz (Zeitplan, Kurse, Termine, Teilnehmer,
Rollen, Trainer) mit absichtlichen Engpässen für robuste Tests.

Absichtliche Engpässe:
  1. Berlin ist überbucht: dort sitzen ~45% aller Teilnehmer
  2. "Teamleitung" braucht Kurse aus drei Fachbereichen (breite Mehrkurs-Gruppe)
  3. "Beobachter" hat keine Pflichtkurse → landet als 'unassigned' in Stufe 3
  4. Ein Trainer ist inaktiv

Die Termine werden als verschachtelter Session Catalog erzeugt und über
normalize_catalog() übernommen, genau wie ein echter Import.
"""

import random
from datetime import datetime, timedelta
from typing import Optional

from config.schema import EngineConfig
from config.defaults import (
    COURSE_METADATA,
    FUNCTIONAL_AREAS,
    ROLE_REQUIREMENTS,
    TRAINING_LOCATIONS,
)
from models.catalog import RequirementDirectory, normalize_catalog
from models.course import Course
from models.schedule_data import Schedule, ScheduleData
from models.trainee import Trainee
from models.trainer import Trainer

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Andreas", "Anna", "Bernd", "Birgit", "Christian", "Christine", "Dieter",
    "Eva", "Franz", "Gabi", "Hans", "Iris", "Jürgen", "Kathrin", "Klaus",
    "Lena", "Markus", "Maria", "Norbert", "Olga", "Peter", "Renate",
    "Stefan", "Sandra", "Thomas", "Tanja", "Ulrich", "Vera", "Yusuf", "Zoe",
]

_LAST_NAMES = [
    "Müller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer",
    "Wagner", "Becker", "Schulz", "Hoffmann", "Schäfer", "Koch",
    "Bauer", "Richter", "Klein", "Wolf", "Schröder", "Neumann",
    "Schwarz", "Zimmermann", "Braun", "Krüger", "Hartmann", "Lange",
]

# ─── Rollen (gewichtet) ──────────────────────────────────────────────────────

_ROLE_WEIGHTS: list[tuple[str, int]] = [
    ("Buchhalter", 8),
    ("Finanz-Assistenz", 5),
    ("Lagerist", 8),
    ("Disponent", 4),
    ("Personalreferent", 3),
    ("Teamleitung", 2),
    ("Beobachter", 1),
]

# Anteil der Teilnehmer je Ort (Berlin bewusst überbucht)
_LOCATION_WEIGHTS = [45, 30, 25]

_TRAINER_NAMES = ["Dr. Keller", "Frau Yilmaz", "Herr Brandt", "Frau Okafor"]


class FakeDataGenerator:
    """Generiert vollständige Testdaten auf Basis der EngineConfig."""

    def __init__(
        self,
        config: EngineConfig,
        seed: Optional[int] = None,
        num_trainees: int = 60,
        groups_per_location: int = 2,
        start_date: Optional[datetime] = None,
    ) -> None:
        self.config = config
        self.rng = random.Random(seed)
        self.num_trainees = num_trainees
        self.groups_per_location = groups_per_location
        self.start_date = start_date or datetime(2026, 11, 2, 9, 0)

    # ─── Termine ──────────────────────────────────────────────────────────────

    def _generate_catalog(self) -> dict:
        """Verschachtelter Katalog: Fachbereich → Ort → Raum → [Termine]."""
        catalog: dict = {}
        for area_idx, (area, course_ids) in enumerate(FUNCTIONAL_AREAS.items()):
            for location in TRAINING_LOCATIONS:
                rooms: dict[str, list[dict]] = {}
                for group in range(1, self.groups_per_location + 1):
                    room = f"Raum {area[:3].upper()}-{group}"
                    day = self.start_date + timedelta(days=(group - 1) * 7 + area_idx)
                    slot = day
                    for course_id in course_ids:
                        meta = COURSE_METADATA[course_id]
                        for part in range(1, meta["parts"] + 1):
                            title = f"{course_id} - Group {group}"
                            if meta["parts"] > 1:
                                title += f" (Part {part})"
                            end = slot + timedelta(hours=meta["hours"])
                            rooms.setdefault(room, []).append({
                                "course_id": course_id,
                                "course_name": meta["name"],
                                "title": title,
                                "start": slot.isoformat(),
                                "end": end.isoformat(),
                                "session_number": 1,
                            })
                            # Mittagspause / Folgetag
                            slot = end + timedelta(hours=1)
                            if slot.hour >= 17:
                                slot = (slot + timedelta(days=1)).replace(hour=9)
                catalog.setdefault(area, {})[location] = rooms
        return catalog

    # ─── Teilnehmer ───────────────────────────────────────────────────────────

    def _generate_trainees(self) -> list[Trainee]:
        roles = [r for r, _ in _ROLE_WEIGHTS]
        weights = [w for _, w in _ROLE_WEIGHTS]
        trainees = []
        for i in range(1, self.num_trainees + 1):
            first = self.rng.choice(_FIRST_NAMES)
            last = self.rng.choice(_LAST_NAMES)
            location = self.rng.choices(TRAINING_LOCATIONS, weights=_LOCATION_WEIGHTS)[0]
            trainees.append(Trainee(
                id=f"U{i:04d}",
                name=f"{last}, {first}",
                training_location=location,
                role=self.rng.choices(roles, weights=weights)[0],
                email=f"{first.lower()}.{last.lower()}@example.org",
            ))
        return trainees

    def _generate_trainers(self) -> list[Trainer]:
        trainers = [
            Trainer(id=f"TR{i + 1:02d}", name=name)
            for i, name in enumerate(_TRAINER_NAMES)
        ]
        trainers[-1] = trainers[-1].model_copy(update={"active": False})
        return trainers

    # ─── Vollständiger Datensatz ──────────────────────────────────────────────

    def generate(self) -> ScheduleData:
        """Erzeugt den vollständigen Datensatz als ScheduleData-Objekt."""
        sessions = normalize_catalog(self._generate_catalog())
        courses = [
            Course(course_id=cid, course_name=meta["name"])
            for cid, meta in COURSE_METADATA.items()
        ]
        return ScheduleData(
            schedule=Schedule(
                id=f"SCH-{self.start_date:%Y-%m}",
                name=f"Rollout {self.config.organization_name} {self.start_date:%m/%Y}",
            ),
            courses=courses,
            sessions=sessions,
            trainees=self._generate_trainees(),
            requirements=RequirementDirectory(mappings=dict(ROLE_REQUIREMENTS)),
            trainers=self._generate_trainers(),
        )

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, data: ScheduleData) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        per_location = {
            loc: sum(1 for t in data.trainees if t.training_location == loc)
            for loc in data.locations()
        }
        table.add_row("Kurse", str(len(data.courses)), "")
        table.add_row("Termine", str(len(data.sessions)),
                      f"{len({s.group_key for s in data.sessions})} Gruppen")
        table.add_row("Teilnehmer", str(len(data.trainees)),
                      ", ".join(f"{loc.split()[0]}: {n}" for loc, n in per_location.items()))
        table.add_row("Rollen", str(len(data.requirements.mappings)), "")
        table.add_row("Trainer", str(len(data.trainers)),
                      f"{sum(1 for t in data.trainers if not t.active)} inaktiv")

        console.print(table)
