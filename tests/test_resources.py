"""Tests für die Sammelzuweisung von Trainern an Termine."""

import pytest

from config.schema import AssignmentConfig, EngineConfig
from engine.errors import NotFoundError, ResourceConflictError, ValidationError
from engine.identifiers import IdentifierResolver, stable_id
from engine.resources import BulkResourceAssigner, find_conflicts
from models.trainer import Trainer

from conftest import ROLES, T0, build_data, build_session

TRAINERS = [Trainer(id="TR01", name="Dr. Keller"),
            Trainer(id="TR02", name="Herr Brandt", active=False)]


def _overlapping():
    """A 10:00–11:00, B 10:30–11:30, C 12:00–13:00."""
    a = build_session("A", hour=10, hours=1)
    b = build_session("B").model_copy(update={
        "start": T0.replace(hour=10, minute=30),
        "end": T0.replace(hour=11, minute=30),
    })
    c = build_session("C", hour=12, hours=1)
    return a, b, c


class TestFindConflicts:
    def test_single_overlapping_pair(self):
        a, b, c = _overlapping()
        conflicts = find_conflicts([c, b, a])
        assert len(conflicts) == 1
        assert (conflicts[0].first, conflicts[0].second) == (a, b)
        assert all(c not in (x.first, x.second) for x in conflicts)

    def test_back_to_back_is_no_conflict(self):
        a = build_session("A", hour=9, hours=1)
        b = build_session("B", hour=10, hours=1)
        assert find_conflicts([a, b]) == []


class TestBulkResourceAssigner:
    def test_soft_conflicts_still_applied(self):
        a, b, c = _overlapping()
        identifiers = IdentifierResolver([a, b, c])
        assigner = BulkResourceAssigner(identifiers, TRAINERS)

        result = assigner.assign("TR01", [stable_id(s) for s in (a, b, c)])

        assert result.has_conflicts
        assert len(result.applied) == 3
        assert {s.trainer_id for s in identifiers.sessions} == {"TR01"}
        assert {s.trainer_name for s in identifiers.sessions} == {"Dr. Keller"}

    def test_strict_mode_blocks(self):
        a, b, c = _overlapping()
        identifiers = IdentifierResolver([a, b, c])
        assigner = BulkResourceAssigner(identifiers, TRAINERS, allow_conflicts=False)

        with pytest.raises(ResourceConflictError):
            assigner.assign("TR01", [stable_id(a), stable_id(b)])
        assert all(s.trainer_id is None for s in identifiers.sessions)

    def test_strict_mode_without_conflicts(self):
        a, _, c = _overlapping()
        identifiers = IdentifierResolver([a, c])
        assigner = BulkResourceAssigner(identifiers, TRAINERS, allow_conflicts=False)
        result = assigner.assign("TR01", [stable_id(a), stable_id(c)])
        assert not result.has_conflicts
        assert len(result.applied) == 2

    def test_dry_run_changes_nothing(self):
        a, b, c = _overlapping()
        identifiers = IdentifierResolver([a, b, c])
        result = BulkResourceAssigner(identifiers, TRAINERS).assign(
            "TR01", [stable_id(a), stable_id(b)], apply=False
        )
        assert len(result.conflicts) == 1
        assert result.applied == []
        assert all(s.trainer_id is None for s in identifiers.sessions)

    def test_unknown_or_inactive_trainer(self):
        identifiers = IdentifierResolver([build_session("A")])
        assigner = BulkResourceAssigner(identifiers, TRAINERS)
        with pytest.raises(NotFoundError):
            assigner.assign("TR99", [stable_id(build_session("A"))])
        with pytest.raises(NotFoundError):
            assigner.assign("TR02", [stable_id(build_session("A"))])

    def test_empty_selection(self):
        assigner = BulkResourceAssigner(IdentifierResolver([build_session("A")]), TRAINERS)
        with pytest.raises(ValidationError):
            assigner.assign("TR01", [])

    def test_unknown_session(self):
        assigner = BulkResourceAssigner(IdentifierResolver([build_session("A")]), TRAINERS)
        with pytest.raises(NotFoundError):
            assigner.assign("TR01", ["X-session1-group-1-finance"])


class TestEngineTrainerAssignment:
    def test_engine_updates_dataset(self, make_engine):
        a, b, c = _overlapping()
        data = build_data([a, b, c], [], ROLES, trainers=TRAINERS)
        engine, gw = make_engine(data)

        result = engine.assign_trainer("TR01", [stable_id(a), stable_id(c)])

        assert not result.has_conflicts
        assigned = [s.course_id for s in engine.data.sessions if s.trainer_id == "TR01"]
        assert assigned == ["A", "C"]
        assert gw.total_calls == 0

    def test_engine_strict_config(self, make_engine):
        a, b, _ = _overlapping()
        data = build_data([a, b], [], ROLES, trainers=TRAINERS)
        strict = EngineConfig(assignment=AssignmentConfig(allow_resource_conflicts=False))
        engine, _ = make_engine(data, engine_config=strict)
        with pytest.raises(ResourceConflictError):
            engine.assign_trainer("TR01", [stable_id(a), stable_id(b)])
