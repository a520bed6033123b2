"""Tests für Datenmodelle, Katalog-Übernahme und Datensatz."""

from pathlib import Path

import pytest

from config.defaults import TRAINING_LOCATIONS, default_engine_config
from data.fake_data import FakeDataGenerator
from models.catalog import (
    CatalogImportError,
    RequirementDirectory,
    nest_catalog,
    normalize_catalog,
)
from models.schedule_data import ScheduleData
from models.session import Session, parse_group_number, parse_part_number

from conftest import BERLIN, HAMBURG, MUNICH, build_data, build_session, trainee


def _raw(title: str, course_id: str = "FIN-101", **extra) -> dict:
    raw = {
        "course_id": course_id,
        "course_name": "Finanzbuchhaltung",
        "title": title,
        "start": "2026-11-02T09:00:00",
        "end": "2026-11-02T12:00:00",
    }
    raw.update(extra)
    return raw


# ─── SESSION ──────────────────────────────────────────────────────────────────

class TestSession:
    def test_parse_group_number(self):
        assert parse_group_number("FIN-101 - Group 12 (Part 2)") == 12
        assert parse_group_number("Einführung") is None
        assert parse_group_number(None) is None

    def test_parse_part_number(self):
        assert parse_part_number("FIN-101 - Group 2 (Part 3)") == 3
        assert parse_part_number("FIN-101 - Group 2") is None

    def test_end_before_start_rejected(self):
        """Ende vor Beginn → Validierungsfehler."""
        with pytest.raises(ValueError):
            Session(course_id="C1", title="C1 - Group 1", training_location=BERLIN,
                    functional_area="Finance",
                    start="2026-11-02T12:00:00", end="2026-11-02T09:00:00")

    def test_group_properties(self):
        s = build_session("C1", group=3)
        assert s.group_name == "Group 3"
        assert s.group_key == (BERLIN, 3)
        assert s.group_identifier == "C1-group-3"

    def test_overlaps(self):
        a = build_session("A", hour=10, hours=1)
        b = build_session("B", hour=10, hours=2)
        c = build_session("C", hour=12, hours=1)
        assert a.overlaps(b)
        assert not a.overlaps(c)
        # Angrenzend ist keine Überschneidung
        assert not build_session("D", hour=11, hours=1).overlaps(c)


# ─── KATALOG-ÜBERNAHME ────────────────────────────────────────────────────────

class TestNormalizeCatalog:
    def test_nested_structure(self):
        """Fachbereich → Ort → Raum → Termine wird flach und explizit."""
        raw = {
            "Finance": {
                BERLIN: {
                    "Raum 1": [_raw("FIN-101 - Group 2 (Part 1)"),
                               _raw("FIN-101 - Group 2 (Part 2)")],
                },
            },
        }
        sessions = normalize_catalog(raw)
        assert len(sessions) == 2
        first = sessions[0]
        assert first.training_location == BERLIN
        assert first.functional_area == "Finance"
        assert first.classroom == "Raum 1"
        assert first.group_number == 2
        assert first.part_number == 1
        assert sessions[1].part_number == 2

    def test_missing_group_pattern_defaults_to_one(self):
        sessions = normalize_catalog({"HR": {BERLIN: {"R": [_raw("Personalstammdaten")]}}})
        assert sessions[0].group_number == 1
        assert sessions[0].part_number is None

    def test_legacy_compound_group_name(self):
        """Alter group_name 'Ort | Fachbereich' wird einmalig aufgelöst."""
        sessions = normalize_catalog([
            _raw("FIN-101 - Group 1", group_name=f"{HAMBURG} | Finance"),
            _raw("FIN-101 - Group 1", group_name=f"Logistics | {MUNICH}"),
        ])
        assert sessions[0].training_location == HAMBURG
        assert sessions[0].functional_area == "Finance"
        assert sessions[1].training_location == MUNICH
        assert sessions[1].functional_area == "Logistics"

    def test_explicit_fields_win_over_legacy(self):
        sessions = normalize_catalog([
            _raw("FIN-101 - Group 1", training_location=BERLIN,
                 functional_area="Finance", group_name=f"{HAMBURG} | HR"),
        ])
        assert sessions[0].training_location == BERLIN
        assert sessions[0].functional_area == "Finance"

    def test_missing_location_raises(self):
        with pytest.raises(CatalogImportError):
            normalize_catalog([_raw("FIN-101 - Group 1")])

    def test_missing_title_raises(self):
        with pytest.raises(CatalogImportError):
            normalize_catalog([{"course_id": "FIN-101", "training_location": BERLIN}])

    def test_invalid_time_window_raises(self):
        bad = _raw("FIN-101 - Group 1", training_location=BERLIN,
                   start="2026-11-02T12:00:00", end="2026-11-02T09:00:00")
        with pytest.raises(CatalogImportError):
            normalize_catalog([bad])

    def test_wrong_shape_raises(self):
        with pytest.raises(CatalogImportError):
            normalize_catalog({"Finance": [_raw("x")]})

    def test_nest_catalog_is_inverse(self):
        sessions = [build_session("C1", 1, classroom="Raum 1"),
                    build_session("C2", 2, HAMBURG, area="HR", classroom="Raum 2")]
        again = normalize_catalog(nest_catalog(sessions))
        assert again == sessions


# ─── REQUIREMENT DIRECTORY ────────────────────────────────────────────────────

class TestRequirementDirectory:
    def test_required_for(self):
        d = RequirementDirectory(mappings={"Buchhalter": ["FIN-101", "FIN-201"]})
        assert d.required_for("Buchhalter") == ["FIN-101", "FIN-201"]
        assert d.required_for("Unbekannt") == []

    def test_required_for_returns_copy(self):
        d = RequirementDirectory(mappings={"A": ["C1"]})
        d.required_for("A").append("C2")
        assert d.required_for("A") == ["C1"]


# ─── DATENSATZ + MACHBARKEIT ─────────────────────────────────────────────────

class TestScheduleData:
    def test_course_ids_in_catalog_order(self):
        data = build_data([build_session("C2"), build_session("C1")], [], {})
        assert data.course_ids == ["C2", "C1"]

    def test_feasible_dataset(self):
        sessions = [build_session("C1", 1), build_session("C1", 2)]
        data = build_data(sessions, [trainee("U1", "A"), trainee("U2", "A")], {"A": ["C1"]})
        report = data.validate_feasibility(ceiling=2, max_group_number=10)
        assert report.is_feasible
        assert report.errors == []

    def test_location_without_sessions_is_error(self):
        data = build_data([build_session("C1")], [trainee("U1", "A", MUNICH)], {"A": ["C1"]})
        report = data.validate_feasibility(ceiling=5, max_group_number=10)
        assert not report.is_feasible
        assert any(MUNICH in e for e in report.errors)

    def test_too_few_seats_is_error(self):
        data = build_data([build_session("C1")],
                          [trainee(f"U{i}", "A") for i in range(3)], {"A": ["C1"]})
        report = data.validate_feasibility(ceiling=2, max_group_number=10)
        assert not report.is_feasible

    def test_required_course_not_offered_is_error(self):
        sessions = [build_session("C1"), build_session("C2", location=HAMBURG)]
        data = build_data(sessions, [trainee("U1", "Both")], {"Both": ["C1", "C2"]})
        report = data.validate_feasibility(ceiling=5, max_group_number=10)
        assert any("C2" in e for e in report.errors)

    def test_unknown_role_is_warning(self):
        data = build_data([build_session("C1")], [trainee("U1", "Gast")], {"A": ["C1"]})
        report = data.validate_feasibility(ceiling=5, max_group_number=10)
        assert report.is_feasible
        assert any("Gast" in w for w in report.warnings)

    def test_print_rich_runs(self):
        data = build_data([build_session("C1")], [trainee("U1", "A")], {"A": ["C1"]})
        data.validate_feasibility(ceiling=5, max_group_number=10).print_rich()

    def test_save_load_json(self, tmp_path: Path):
        data = build_data([build_session("C1")], [trainee("U1", "A")], {"A": ["C1"]})
        p = tmp_path / "data.json"
        data.save_json(p)
        loaded = ScheduleData.load_json(p)
        assert loaded.sessions == data.sessions
        assert loaded.trainees == data.trainees
        assert loaded.requirements == data.requirements
        assert loaded.created_at is not None

    def test_load_missing_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            ScheduleData.load_json(tmp_path / "fehlt.json")


# ─── FAKE-DATEN ───────────────────────────────────────────────────────────────

class TestFakeData:
    def test_reproducible_with_seed(self):
        a = FakeDataGenerator(default_engine_config(), seed=7).generate()
        b = FakeDataGenerator(default_engine_config(), seed=7).generate()
        assert a.trainees == b.trainees
        assert a.sessions == b.sessions

    def test_sessions_at_every_location(self):
        data = FakeDataGenerator(default_engine_config(), seed=1, groups_per_location=3).generate()
        assert data.locations() == sorted(TRAINING_LOCATIONS)
        assert {s.group_number for s in data.sessions} == {1, 2, 3}
        assert all(s.end > s.start for s in data.sessions)

    def test_multi_part_courses(self):
        data = FakeDataGenerator(default_engine_config(), seed=1).generate()
        parts = {s.part_number for s in data.sessions if s.course_id == "FIN-101"}
        assert parts == {1, 2}

    def test_one_trainer_inactive(self):
        data = FakeDataGenerator(default_engine_config(), seed=1).generate()
        assert sum(1 for t in data.trainers if not t.active) == 1

    def test_summary_mentions_schedule(self):
        data = FakeDataGenerator(default_engine_config(), seed=1, num_trainees=10).generate()
        assert "Teilnehmer: 10" in data.summary()
