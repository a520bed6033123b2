"""Tests für die Persistence Gateways."""

from pathlib import Path

import pytest

from engine.errors import PersistenceError
from storage.gateway import InMemoryGateway, JsonFileGateway

from conftest import SCHEDULE_ID, build_assignment, build_session

C1 = build_session("C1", 1)
C2 = build_session("C2", 1, hour=13)


class TestInMemoryGateway:
    def test_insert_assigns_id_and_counts_call(self):
        gw = InMemoryGateway()
        stored = gw.insert_assignment(build_assignment("U1", C1))
        assert stored.id
        assert gw.calls["insert_assignment"] == 1
        assert gw.write_calls == 1

    def test_preloaded_rows_are_not_counted(self):
        gw = InMemoryGateway([build_assignment("U1", C1)])
        assert gw.total_calls == 0
        assert len(gw.list_assignments(SCHEDULE_ID)) == 1
        assert gw.total_calls == 1

    def test_list_filters_by_schedule(self):
        gw = InMemoryGateway([build_assignment("U1", C1), build_assignment("U1", C1, "S2")])
        assert [a.schedule_id for a in gw.list_assignments("S2")] == ["S2"]

    def test_delete_by_ids(self):
        gw = InMemoryGateway()
        a = gw.insert_assignment(build_assignment("U1", C1))
        gw.insert_assignment(build_assignment("U1", C2))
        assert gw.delete_assignments([a.id, "gibt-es-nicht"]) == 1
        assert [r.course_id for r in gw.list_assignments(SCHEDULE_ID)] == ["C2"]

    def test_delete_schedule_keeps_other_schedules(self):
        gw = InMemoryGateway([
            build_assignment("U1", C1), build_assignment("U2", C1),
            build_assignment("U1", C1, "S2"),
        ])
        assert gw.delete_schedule(SCHEDULE_ID) == 2
        assert gw.list_assignments(SCHEDULE_ID) == []
        assert len(gw.list_assignments("S2")) == 1

    def test_reset_calls(self):
        gw = InMemoryGateway()
        gw.list_assignments(SCHEDULE_ID)
        gw.reset_calls()
        assert gw.total_calls == 0


class TestJsonFileGateway:
    def test_missing_file_is_empty(self, tmp_path: Path):
        assert JsonFileGateway(tmp_path / "assignments.json").list_assignments(SCHEDULE_ID) == []

    def test_roundtrip(self, tmp_path: Path):
        path = tmp_path / "sub" / "assignments.json"
        gw = JsonFileGateway(path)
        stored = gw.insert_assignment(build_assignment("U1", C1))
        gw.insert_assignment(build_assignment("U2", C2))

        again = JsonFileGateway(path).list_assignments(SCHEDULE_ID)
        assert [a.trainee_id for a in again] == ["U1", "U2"]
        assert again[0] == stored

    def test_delete(self, tmp_path: Path):
        gw = JsonFileGateway(tmp_path / "assignments.json")
        a = gw.insert_assignment(build_assignment("U1", C1))
        gw.insert_assignment(build_assignment("U2", C1, "S2"))
        assert gw.delete_assignments([a.id]) == 1
        assert gw.delete_assignments([]) == 0
        assert gw.delete_schedule("S2") == 1
        assert gw.list_assignments(SCHEDULE_ID) == []

    def test_corrupt_file_raises_persistence_error(self, tmp_path: Path):
        path = tmp_path / "assignments.json"
        path.write_text('[{"trainee_id": 42}]', encoding="utf-8")
        with pytest.raises(PersistenceError) as exc:
            JsonFileGateway(path).list_assignments(SCHEDULE_ID)
        assert exc.value.reason == "persistence"
