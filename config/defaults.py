from config.schema import (
    AssignmentConfig,
    CapacityConfig,
    EngineConfig,
    LoggingConfig,
    StorageConfig,
)


def default_engine_config() -> EngineConfig:
    """Standard-Konfiguration eines mittelgroßen Schulungsprogramms.

    Kapazität:
      25 Teilnehmer pro Gruppe (Schulungsort + Gruppennummer),
      Auto-Zuweisung prüft die Gruppen 1..50.

    Zuweisung:
      Löschen aller Zuweisungen verlangt das Literal "DELETE".
      Trainer-Zeitkonflikte werden nur als Warnung gemeldet.
    """
    return EngineConfig(
        organization_name="Muster-Schulungszentrum",
        capacity=CapacityConfig(default_max_attendees=25, max_group_number=50),
        assignment=AssignmentConfig(
            reset_confirmation="DELETE",
            allow_resource_conflicts=True,
            default_assignment_type="standard",
        ),
        storage=StorageConfig(),
        logging=LoggingConfig(),
    )


# ─── Kurs-Katalog ──────────────────────────────────────────────────────────────
# course_id → Metadaten. "parts" = Anzahl Termine (Part 1..n) pro Gruppe,
# "hours" = Dauer eines Termins.

COURSE_METADATA: dict[str, dict] = {
    "FIN-101": {"name": "Finanzbuchhaltung Grundlagen", "parts": 2, "hours": 3},
    "FIN-201": {"name": "Kreditorenprozesse",           "parts": 1, "hours": 4},
    "LOG-101": {"name": "Lagerverwaltung",              "parts": 1, "hours": 3},
    "LOG-201": {"name": "Transporte & Versand",         "parts": 2, "hours": 2},
    "HR-101":  {"name": "Personalstammdaten",           "parts": 1, "hours": 2},
}

# Fachbereich → angebotene Kurse
FUNCTIONAL_AREAS: dict[str, list[str]] = {
    "Finance":   ["FIN-101", "FIN-201"],
    "Logistics": ["LOG-101", "LOG-201"],
    "HR":        ["HR-101"],
}

TRAINING_LOCATIONS: list[str] = [
    "Berlin Training Centre",
    "Hamburg Training Centre",
    "Munich Training Centre",
]

# Rolle → Pflichtkurse (Requirement Directory)
ROLE_REQUIREMENTS: dict[str, list[str]] = {
    "Buchhalter":        ["FIN-101", "FIN-201"],
    "Finanz-Assistenz":  ["FIN-101"],
    "Lagerist":          ["LOG-101", "LOG-201"],
    "Disponent":         ["LOG-201"],
    "Personalreferent":  ["HR-101"],
    "Teamleitung":       ["FIN-101", "LOG-101", "HR-101"],
    "Beobachter":        [],
}
