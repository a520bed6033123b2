"""Gemeinsame Testdaten-Bausteine für die Engine-Tests."""

from datetime import datetime, timedelta
from typing import Optional

import pytest

from config.schema import CapacityConfig, EngineConfig
from engine.identifiers import stable_id
from engine.service import AssignmentEngine
from models.assignment import Assignment
from models.catalog import RequirementDirectory
from models.course import Course
from models.schedule_data import Schedule, ScheduleData
from models.session import Session
from models.trainee import Trainee
from models.trainer import Trainer
from storage.gateway import InMemoryGateway

BERLIN = "Berlin Training Centre"
HAMBURG = "Hamburg Training Centre"
MUNICH = "Munich Training Centre"
SCHEDULE_ID = "S1"
T0 = datetime(2026, 11, 2, 9, 0)


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def build_session(
    course_id: str,
    group: int = 1,
    location: str = BERLIN,
    area: str = "Finance",
    part: Optional[int] = None,
    day: int = 0,
    hour: int = 9,
    hours: int = 2,
    **extra,
) -> Session:
    start = T0 + timedelta(days=day) + timedelta(hours=hour - 9)
    title = f"{course_id} - Group {group}" + (f" (Part {part})" if part else "")
    return Session(
        course_id=course_id,
        course_name=f"Kurs {course_id}",
        title=title,
        training_location=location,
        functional_area=area,
        group_number=group,
        part_number=part,
        start=start,
        end=start + timedelta(hours=hours),
        **extra,
    )


def build_assignment(trainee_id: str, session: Session, schedule_id: str = SCHEDULE_ID) -> Assignment:
    return Assignment(
        schedule_id=schedule_id,
        trainee_id=trainee_id,
        course_id=session.course_id,
        session_identifier=stable_id(session),
        group_identifier=session.group_identifier,
        group_number=session.group_number,
        training_location=session.training_location,
        functional_area=session.functional_area,
    )


def build_data(
    sessions: list[Session],
    trainees: list[Trainee],
    mappings: dict[str, list[str]],
    max_attendees: Optional[int] = None,
    trainers: list[Trainer] = (),
) -> ScheduleData:
    courses: dict[str, Course] = {}
    for s in sessions:
        courses.setdefault(s.course_id, Course(course_id=s.course_id, course_name=s.course_name))
    return ScheduleData(
        schedule=Schedule(id=SCHEDULE_ID, name="Testplan", max_attendees=max_attendees),
        courses=list(courses.values()),
        sessions=sessions,
        trainees=trainees,
        requirements=RequirementDirectory(mappings=mappings),
        trainers=list(trainers),
    )


def trainee(tid: str, role: str = "Both", location: str = BERLIN) -> Trainee:
    return Trainee(id=tid, name=f"Teilnehmer {tid}", training_location=location, role=role)


ROLES = {
    "Both": ["C1", "C2"],
    "OnlyC1": ["C1"],
    "OnlyC2": ["C2"],
    "Observer": [],
}


def two_course_sessions(groups: int = 2, location: str = BERLIN) -> list[Session]:
    """C1 und C2 in den Gruppen 1..groups, jeweils am selben Tag."""
    sessions = []
    for g in range(1, groups + 1):
        sessions.append(build_session("C1", g, location, day=g - 1, hour=9))
        sessions.append(build_session("C2", g, location, day=g - 1, hour=13))
    return sessions


class FailingGateway(InMemoryGateway):
    """InMemoryGateway, dessen Einfügen für bestimmte Kurse scheitert."""

    def __init__(self, fail_courses=(), fail_times: int = 10**6, assignments=()):
        super().__init__(assignments)
        self.fail_courses = set(fail_courses)
        self.fail_times = fail_times

    def insert_assignment(self, assignment):
        from engine.errors import PersistenceError

        if assignment.course_id in self.fail_courses and self.fail_times > 0:
            self.calls["insert_assignment"] += 1
            self.fail_times -= 1
            raise PersistenceError(f"Speicher nicht erreichbar ({assignment.course_id})")
        return super().insert_assignment(assignment)


# ─── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture
def config() -> EngineConfig:
    """Kapazität 2 pro Gruppe, Gruppensuche bis 10."""
    return EngineConfig(capacity=CapacityConfig(default_max_attendees=2, max_group_number=10))


@pytest.fixture
def make_engine(config):
    """Fabrik: (ScheduleData, Vorbelegung, Gateway) → (Engine, Gateway)."""

    def _make(data: ScheduleData, assignments=(), gateway=None, engine_config=None):
        gw = gateway if gateway is not None else InMemoryGateway(assignments)
        return AssignmentEngine(data, gw, engine_config or config), gw

    return _make
