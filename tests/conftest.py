"""
Pytest configuration and fixtures for test suite.
"""
import os
from datetime import date
from unittest.mock import patch

import pytest

os.environ.setdefault("LOG_FILE", "none")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient

from app import app
from src.recurrence.generator import DeadlineGenerator
from src.services.deadline_service import DeadlineService
from src.storage.deadline_repository import DeadlineRepository
from src.storage.models import DeadlineTemplate, Organization, Person, Structure

ORG_ID = "org-1"
OTHER_ORG_ID = "org-2"
TODAY = date(2025, 1, 1)


@pytest.fixture
def repository():
    """Repository over a fresh in-memory SQLite database."""
    return DeadlineRepository.from_url("sqlite://")


@pytest.fixture
def seed(repository):
    """
    Fixture that seeds two organizations, people, structures and templates.

    Returns a dict of the created ids.
    """
    with repository.transaction() as session:
        session.add_all([
            Organization(id=ORG_ID, name="Acme Care"),
            Organization(id=OTHER_ORG_ID, name="Other Org"),
            Person(id="person-1", organization_id=ORG_ID, first_name="Ada", last_name="Rossi",
                   hire_date=date(2024, 3, 15)),
            Person(id="person-2", organization_id=ORG_ID, first_name="Bruno", last_name="Bianchi",
                   assignment_start_date=date(2024, 9, 1)),
            Person(id="person-x", organization_id=OTHER_ORG_ID, first_name="Carla", last_name="Verdi"),
            Structure(id="structure-1", organization_id=ORG_ID, name="North Clinic", opened_at=date(2020, 5, 1)),
            Structure(id="structure-2", organization_id=ORG_ID, name="South Clinic"),
            Structure(id="structure-3", organization_id=ORG_ID, name="East Clinic"),
            DeadlineTemplate(id="tpl-monthly", owner_type="ORG", organization_id=ORG_ID,
                             title="Fire extinguisher check", description="Inspect all extinguishers",
                             recurrence_unit="MONTH", recurrence_every=1, anchor="CUSTOM"),
            DeadlineTemplate(id="tpl-weekly", owner_type="GLOBAL", organization_id=None,
                             title="Cleaning log", recurrence_unit="DAY", recurrence_every=7,
                             first_due_offset_days=2, anchor="CUSTOM"),
            DeadlineTemplate(id="tpl-yearly", owner_type="GLOBAL", organization_id=None,
                             title="Safety training", recurrence_unit="YEAR", recurrence_every=1,
                             anchor="HIRE_DATE"),
            DeadlineTemplate(id="tpl-foreign", owner_type="ORG", organization_id=OTHER_ORG_ID,
                             title="Other org template", recurrence_unit="MONTH", recurrence_every=1),
            DeadlineTemplate(id="tpl-inactive", owner_type="ORG", organization_id=ORG_ID,
                             title="Retired template", recurrence_unit="MONTH", recurrence_every=1,
                             active=False),
        ])
    return {"organization_id": ORG_ID, "other_organization_id": OTHER_ORG_ID}


@pytest.fixture
def generator():
    return DeadlineGenerator(cap=3)


@pytest.fixture
def service(repository, generator, seed):
    """Deadline service with a fixed clock."""
    return DeadlineService(repository, generator, today=lambda: TODAY)


@pytest.fixture
def client(service):
    """
    Fixture that provides a TestClient instance wired to the seeded service.
    """
    with patch("src.api.routes.get_deadline_service", return_value=service):
        yield TestClient(app)


@pytest.fixture
def bare_client():
    """TestClient without a database, for system endpoints."""
    return TestClient(app)
