"""Shared fixtures for live measure tests."""

import pytest

from src.measures.core_metrics import core_metrics
from src.measures.in_memory import InMemoryMeasureDatabase
from src.models.measure_models import Organization
from src.tests.measure_factories import register_project


@pytest.fixture
def db():
    """In-memory database with core metrics and one organization."""
    database = InMemoryMeasureDatabase(core_metrics())
    database.add_organization(Organization(uuid="org1", key="acme"))
    return database


@pytest.fixture
def tree(db):
    """Analyzed project p1 with a leak period: (project, directory, file)."""
    return register_project(db, "p1")
