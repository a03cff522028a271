"""Pytest fixtures for checkin tests."""

from __future__ import annotations

import tempfile
from datetime import date, timedelta
from pathlib import Path

import pytest

from checkin.db.connection import DatabaseConnection, set_db
from checkin.tracking.models import Patient, WeeklyRecord
from checkin.tracking.queries import PatientQueries


def make_series(weights: dict[int, float | None]) -> list[WeeklyRecord]:
    """Build weekly records from {week: weight}, dated one week apart."""
    start = date(2025, 1, 6)
    return [
        WeeklyRecord(
            week_number=week,
            quantity=weight,
            recorded_at=start + timedelta(weeks=week),
        )
        for week, weight in weights.items()
    ]


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    db_path.unlink(missing_ok=True)


@pytest.fixture
def cli_db(temp_db):
    """Point the CLI's global database at the temporary one."""
    set_db(temp_db)
    yield temp_db
    set_db(None)


@pytest.fixture
def patient_id(temp_db) -> int:
    """A stored patient."""
    with temp_db.get_connection() as conn:
        return PatientQueries.create_patient(
            conn,
            Patient(
                patient_id=None,
                full_name="Jane Doe",
                goal_rate_percent=1.0,
                protein_goal_grams=140,
            ),
        )


@pytest.fixture
def steady_series() -> list[WeeklyRecord]:
    """Weeks 0-6 with steady loss."""
    return make_series({0: 200.0, 1: 198.0, 2: 197.0, 3: 195.0, 4: 194.0, 5: 193.0, 6: 190.0})


@pytest.fixture
def gapped_series() -> list[WeeklyRecord]:
    """Week 6 checked in without a weight."""
    return make_series({0: 200.0, 1: 198.0, 2: 197.0, 3: 195.0, 4: 194.0, 5: 193.0, 6: None, 7: 185.0})
