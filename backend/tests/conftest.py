"""
Pytest fixtures for the crewsheet test suite.

Provides:
- an in-memory SQLite engine (StaticPool) with the full schema, per test
- a session bound to it and a small factory for companies, users, shifts...
- FakePdfStore, an in-memory stand-in for R2
- a FastAPI TestClient wired to the same session and store
"""

import os

# must be set before crewsheet.database builds its module-level engine
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from crewsheet.database import Base, get_db
from crewsheet.exceptions import DependencyFailure
from crewsheet.models.enums import RoleCode, UserRole, WorkerStatus
from crewsheet.models.shift import AssignedPersonnel, Job, Shift, TimeEntry
from crewsheet.models.timesheet import Timesheet
from crewsheet.models.user import Company, User
from crewsheet.models import audit_log  # noqa: F401
from crewsheet.services.file_storage import get_pdf_store


SHIFT_DATE = date(2026, 3, 14)
SHIFT_START = datetime(2026, 3, 14, 8, 0)


class FakePdfStore:
    """Keeps uploaded PDFs in a dict. ``fail_next`` makes the next N puts fail."""

    def __init__(self):
        self.objects = {}
        self.puts = []
        self.fail_next = 0

    def put(self, key, content):
        self.puts.append(key)
        if self.fail_next:
            self.fail_next -= 1
            raise DependencyFailure("simulated upload failure", dependency="storage")
        self.objects[key] = content
        return key

    def download_url(self, key, expires_in=3600):
        return f"https://files.example.test/{key}?expires={expires_in}"


class Factory:
    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def company(self, name="Acme Events"):
        return self._save(Company(name=name))

    def user(self, role=UserRole.staff, company=None, name=None, is_active=True):
        self._seq += 1
        role = getattr(role, "value", role)
        return self._save(User(
            name=name or f"{role} {self._seq}",
            email=f"user{self._seq}@example.test",
            role=role,
            company_id=company.id if company else None,
            is_active=is_active,
        ))

    def job(self, company, name="Arena Load-in"):
        return self._save(Job(name=name, company_id=company.id, location="Hall B"))

    def shift(self, job, **counts):
        return self._save(Shift(
            job_id=job.id,
            date=SHIFT_DATE,
            start_time=SHIFT_START,
            end_time=SHIFT_START + timedelta(hours=8),
            **counts,
        ))

    def assign(self, shift, user=None, role_code=RoleCode.stagehand, status=WorkerStatus.assigned):
        return self._save(AssignedPersonnel(
            shift_id=shift.id,
            user_id=user.id if user else None,
            role_code=getattr(role_code, "value", role_code),
            status=getattr(status, "value", status),
        ))

    def time_entry(self, assignment, clock_in=SHIFT_START, clock_out=SHIFT_START + timedelta(hours=8), entry_number=1):
        return self._save(TimeEntry(
            assigned_personnel_id=assignment.id,
            entry_number=entry_number,
            clock_in=clock_in,
            clock_out=clock_out,
        ))

    def timesheet(self, shift, status):
        return self._save(Timesheet(shift_id=shift.id, status=getattr(status, "value", status)))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def store():
    return FakePdfStore()


@pytest.fixture
def crew(factory):
    """
    A booked shift ready for sign-off.

    Acme's job has one shift needing CC:1 SH:2. The crew chief and two
    stagehands each worked 08:00-16:00. ``outsider`` belongs to a different
    company; ``idle_chief`` is a crew chief not assigned to this shift.
    """
    acme = factory.company("Acme Events")
    other = factory.company("Other Co")
    people = {
        "admin": factory.user(UserRole.admin, name="Ada Admin"),
        "client": factory.user(UserRole.company_user, company=acme, name="Cory Client"),
        "outsider": factory.user(UserRole.company_user, company=other, name="Olga Outsider"),
        "chief": factory.user(UserRole.crew_chief, name="Chris Chief"),
        "idle_chief": factory.user(UserRole.crew_chief, name="Ivan Idle"),
        "staff": factory.user(UserRole.staff, name="Sam Staff"),
        "hand_a": factory.user(UserRole.employee, name="Alex Hand"),
        "hand_b": factory.user(UserRole.employee, name="Blair Hand"),
    }
    job = factory.job(acme)
    shift = factory.shift(job, required_crew_chiefs=1, required_stagehands=2)
    for key, role_code in (("chief", RoleCode.crew_chief), ("hand_a", RoleCode.stagehand), ("hand_b", RoleCode.stagehand)):
        assignment = factory.assign(shift, people[key], role_code)
        factory.time_entry(assignment)
    factory.db.refresh(shift)
    return {"company": acme, "job": job, "shift": shift, **people}


@pytest.fixture
def client(db, store):
    from fastapi.testclient import TestClient
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_pdf_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def factory_cls():
    """The Factory class itself, for tests that bring their own session."""
    return Factory
