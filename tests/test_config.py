"""Tests für das Konfigurationssystem."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config.schema import (
    AssignmentConfig,
    CapacityConfig,
    EngineConfig,
    LogLevel,
)
from config.defaults import (
    COURSE_METADATA,
    FUNCTIONAL_AREAS,
    ROLE_REQUIREMENTS,
    default_engine_config,
)
from config.manager import ConfigManager


# ─── DEFAULT-KONFIGURATION ────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_default_engine_config_valid(self):
        """Default-Config lässt sich ohne Fehler erstellen."""
        config = default_engine_config()
        assert config.capacity.default_max_attendees == 25
        assert config.capacity.max_group_number == 50
        assert config.assignment.reset_confirmation == "DELETE"
        assert config.assignment.allow_resource_conflicts is True
        assert config.logging.level == LogLevel.INFO

    def test_engine_config_defaults_match(self):
        """EngineConfig() ohne Argumente entspricht der Default-Config."""
        assert EngineConfig() == default_engine_config()

    def test_role_requirements_reference_known_courses(self):
        """Alle Pflichtkurse der Rollen existieren im Kurs-Katalog."""
        for role, courses in ROLE_REQUIREMENTS.items():
            for cid in courses:
                assert cid in COURSE_METADATA, f"Rolle {role}: unbekannter Kurs {cid}"

    def test_functional_areas_cover_all_courses(self):
        """Jeder Kurs gehört zu genau einem Fachbereich."""
        covered = [cid for courses in FUNCTIONAL_AREAS.values() for cid in courses]
        assert sorted(covered) == sorted(COURSE_METADATA)


# ─── VALIDIERUNG ──────────────────────────────────────────────────────────────

class TestSchemaValidation:
    def test_capacity_must_be_positive(self):
        """Kapazität 0 → Pydantic-Fehler."""
        with pytest.raises(ValidationError):
            CapacityConfig(default_max_attendees=0)

    def test_capacity_upper_bound(self):
        with pytest.raises(ValidationError):
            CapacityConfig(default_max_attendees=501)

    def test_blank_reset_confirmation_rejected(self):
        """Leeres Bestätigungs-Literal ist nicht erlaubt."""
        with pytest.raises(ValidationError):
            AssignmentConfig(reset_confirmation="   ")

    def test_log_level_from_string(self):
        config = EngineConfig.model_validate({"logging": {"level": "DEBUG"}})
        assert config.logging.level == LogLevel.DEBUG


# ─── YAML SPEICHERN / LADEN ───────────────────────────────────────────────────

class TestConfigManager:
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        """Config speichern, laden und validieren — vollständiger Roundtrip."""
        config = default_engine_config().model_copy(update={
            "organization_name": "Test-Akademie",
            "capacity": CapacityConfig(default_max_attendees=12, max_group_number=8),
        })
        mgr = ConfigManager(tmp_path / "engine_config.yaml")

        mgr.save(config)
        assert mgr.DEFAULT_CONFIG.exists()

        loaded = mgr.load()
        assert loaded.organization_name == "Test-Akademie"
        assert loaded.capacity.default_max_attendees == 12
        assert loaded.capacity.max_group_number == 8
        assert loaded == config

    def test_saved_yaml_has_comments(self, tmp_path: Path):
        """Die YAML-Datei enthält Kopfzeile und Abschnitts-Kommentare."""
        mgr = ConfigManager(tmp_path / "engine_config.yaml")
        mgr.save(default_engine_config())
        text = mgr.DEFAULT_CONFIG.read_text(encoding="utf-8")
        assert text.startswith("# ====")
        assert "Kapazität" in text
        assert "reset_confirmation: DELETE" in text

    def test_first_run_check_no_file(self, tmp_path: Path):
        """first_run_check gibt True zurück wenn keine Config existiert."""
        mgr = ConfigManager(tmp_path / "nonexistent.yaml")
        assert mgr.first_run_check() is True

    def test_first_run_check_with_file(self, tmp_path: Path):
        """first_run_check gibt False zurück wenn Config existiert."""
        mgr = ConfigManager(tmp_path / "engine_config.yaml")
        mgr.save(default_engine_config())
        assert mgr.first_run_check() is False

    def test_load_nonexistent_raises(self, tmp_path: Path):
        """Laden einer nicht-existenten Datei → FileNotFoundError."""
        mgr = ConfigManager()
        with pytest.raises(FileNotFoundError):
            mgr.load(tmp_path / "not_there.yaml")

    def test_load_invalid_raises_value_error(self, tmp_path: Path):
        """Ungültige Werte in der YAML-Datei → ValueError."""
        p = tmp_path / "engine_config.yaml"
        p.write_text("capacity:\n  default_max_attendees: 0\n", encoding="utf-8")
        with pytest.raises(ValueError):
            ConfigManager(p).load()

    def test_load_or_default_without_file(self, tmp_path: Path):
        mgr = ConfigManager(tmp_path / "missing.yaml")
        assert mgr.load_or_default() == EngineConfig()


# ─── MAIN.PY CLI ──────────────────────────────────────────────────────────────

class TestCli:
    def test_help(self):
        """main.py --help gibt Usage aus."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_config_show_no_file(self):
        """config show ohne Konfiguration → Fehlermeldung."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["config", "show"])
            assert result.exit_code != 0 or "Keine Konfiguration" in result.output

    def test_generate_command_exists(self):
        """generate Befehl ist registriert und hat --export-json."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        result = runner.invoke(cli, ["generate", "--help"])
        assert result.exit_code == 0
        assert "export-json" in result.output

    def test_assignment_commands_exist(self):
        """Alle Zuweisungs-Befehle sind registriert."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        for command in ("categorize", "assign", "auto-assign", "remove", "reset",
                        "trainer-assign", "check", "stats", "import", "validate"):
            result = runner.invoke(cli, [command, "--help"])
            assert result.exit_code == 0, command

    def test_generate_auto_assign_reset(self):
        """Daten erzeugen, automatisch zuweisen, prüfen und mit Bestätigung löschen."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            ConfigManager().save(default_engine_config())

            result = runner.invoke(cli, ["generate", "--export-json", "--no-validate",
                                         "--trainees", "20", "--seed", "1"])
            assert result.exit_code == 0, result.output
            assert Path("output/schedule_data.json").exists()

            result = runner.invoke(cli, ["auto-assign"])
            assert result.exit_code == 0, result.output
            assert Path("output/assignments.json").exists()

            result = runner.invoke(cli, ["check"])
            assert result.exit_code == 0, result.output

            result = runner.invoke(cli, ["reset"], input="y\nLÖSCHEN\n")
            assert result.exit_code == 1
            assert "confirmation" in result.output

            result = runner.invoke(cli, ["reset"], input="y\nDELETE\n")
            assert result.exit_code == 0, result.output
            assert "gelöscht" in result.output
