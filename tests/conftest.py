"""Root conftest for all tests.

This file makes shared fixtures available across all test modules.
"""

from datetime import date

import pytest
from planner_ids import (
    ACME,
    ANA,
    BILLABLE_CATEGORY,
    BRUNO,
    CARLA,
    CONSULTING_AREA,
    CONSULTING_VACATION,
    EMPTY_AREA,
    ENGINEERING_AREA,
    FALLBACK_CLIENT,
    GLOBEX,
    INITECH,
    VACATION_CATEGORY,
)
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

import resource_planner.api.dependencies as dependencies_module
import resource_planner.db.session as session_module
from resource_planner.allocations.directory import FallbackClientDirectory
from resource_planner.allocations.store import AllocationStore
from resource_planner.allocations.transitions import WeekTransitionEngine
from resource_planner.allocations.types import AllocationInput, AllocationRecord
from resource_planner.calendar.weeks import week_key_for_date
from resource_planner.db.models import Area, Base, Client, Collaborator, ProjectCategory
from resource_planner.db.session import _enable_sqlite_foreign_keys, get_session


@pytest.fixture(scope="function")
def db_session(monkeypatch):
    """
    Provides an isolated in-memory SQLite database for tests.

    This fixture:
    - Creates an in-memory SQLite engine shared by every connection (StaticPool)
    - Enables foreign key enforcement like the production engine does
    - Patches the engine getter so get_session() commits into the test database

    Yields:
        Session: a session on the test database for direct setup and assertions
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(engine)

    monkeypatch.setattr(session_module, "_get_engine", lambda: engine)
    monkeypatch.setattr(session_module, "_SessionLocal", None)
    monkeypatch.setattr(dependencies_module, "_store", None)
    monkeypatch.setattr(dependencies_module, "_directory", None)

    session = session_module._get_session_local()()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def planning_data(db_session):
    """Areas, collaborators and clients used across allocation tests.

    - Consulting (area 1): Ana, Bruno; clients Acme and the consulting vacation client
    - Engineering (area 2): Carla; client Globex, no vacation client
    - Empty (area 3): nobody
    - Client 10 is the global fallback client (vacation category, no area)
    """
    with get_session() as db:
        db.add_all(
            [
                Area(id=CONSULTING_AREA, name="Consulting"),
                Area(id=ENGINEERING_AREA, name="Engineering"),
                Area(id=EMPTY_AREA, name="Empty"),
                ProjectCategory(id=BILLABLE_CATEGORY, name="Billable"),
                ProjectCategory(id=VACATION_CATEGORY, name="Vacaciones"),
            ]
        )
    with get_session() as db:
        db.add_all(
            [
                Collaborator(id=ANA, name="Ana", area_id=CONSULTING_AREA),
                Collaborator(id=BRUNO, name="Bruno", area_id=CONSULTING_AREA),
                Collaborator(id=CARLA, name="Carla", area_id=ENGINEERING_AREA),
                Client(id=ACME, name="Acme", project_category_id=BILLABLE_CATEGORY, area_id=CONSULTING_AREA),
                Client(id=GLOBEX, name="Globex", project_category_id=BILLABLE_CATEGORY, area_id=ENGINEERING_AREA),
                Client(id=INITECH, name="Initech", project_category_id=BILLABLE_CATEGORY, area_id=CONSULTING_AREA),
                Client(id=FALLBACK_CLIENT, name="Vacaciones (general)", project_category_id=VACATION_CATEGORY),
                Client(
                    id=CONSULTING_VACATION,
                    name="Vacaciones Consulting",
                    project_category_id=VACATION_CATEGORY,
                    area_id=CONSULTING_AREA,
                ),
            ]
        )
    return db_session


@pytest.fixture
def store(planning_data) -> AllocationStore:
    return AllocationStore()


@pytest.fixture
def directory(store) -> FallbackClientDirectory:
    return FallbackClientDirectory.from_clients(
        store.list_clients(),
        vacation_category_id=VACATION_CATEGORY,
        fallback_client_id=FALLBACK_CLIENT,
    )


@pytest.fixture
def transitions(store, directory) -> WeekTransitionEngine:
    return WeekTransitionEngine(store, directory, seed_hours=8.0)


@pytest.fixture
def add_allocation(store):
    """Factory storing one allocation under the week key of its date."""

    def _add(
        collaborator_id: int,
        client_id: int,
        day: date,
        hours: float,
        area_id: int | None = CONSULTING_AREA,
    ) -> AllocationRecord:
        key = week_key_for_date(day)
        return store.upsert_allocation(
            AllocationInput(
                collaborator_id=collaborator_id,
                client_id=client_id,
                date=day,
                hours=hours,
                week_number=key.week,
                year=key.year,
                area_id=area_id,
            )
        )

    return _add
