import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Point the app at a throwaway SQLite database before anything imports it.
_DB_DIR = tempfile.mkdtemp(prefix="growflow-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["HOME_ASSISTANT_URL"] = ""
os.environ["HOME_ASSISTANT_TOKEN"] = ""

from app.schemas.phase import PhaseInstance, PhaseTemplate  # noqa: E402

BASE_DATE = datetime(2024, 3, 1, 9, 0, 0)


def day(n: float) -> datetime:
    return BASE_DATE + timedelta(days=n)


def make_phases(*starts, harvest_index=None):
    """A(1-3d), B(2-5d), C(3-10d) with the given start dates (None = not started)."""
    specs = [("A", 1, 3), ("B", 2, 5), ("C", 3, 10)]
    starts = list(starts) + [None] * (len(specs) - len(starts))
    return [
        PhaseInstance(
            id=f"phase-{name.lower()}",
            name=name,
            duration_min=duration_min,
            duration_max=duration_max,
            start_date=start,
            counts_toward_harvest_estimate=(index == harvest_index),
        )
        for index, ((name, duration_min, duration_max), start) in enumerate(zip(specs, starts))
    ]


@pytest.fixture
def now():
    return day(10)


@pytest.fixture
def template():
    return PhaseTemplate(name="Veg Extension", duration_min=4, duration_max=8)


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client
