# Program guide sync test fixtures
from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from program_guide.database import Database
from program_guide.models import ProgramRow
from program_guide.services.db_service import ProgramGuideStore


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'guide.db'}"


@pytest.fixture()
def database(database_url: str):
    db = Database(database_url)
    db.create_schema()
    yield db
    db.close()


@pytest.fixture()
def store(database: Database) -> ProgramGuideStore:
    return ProgramGuideStore(database)


@pytest.fixture()
def seed_programs(database: Database):
    """Insert program rows the way the seeding process would."""

    def _seed(*programs: dict) -> None:
        with database.session_scope() as session:
            for values in programs:
                session.add(ProgramRow(**values))

    return _seed
