"""
pytest configuration – point the app at a throwaway SQLite database,
create tables before tests run and provide seeding helpers.
"""
import os

os.environ.setdefault("EVALUATIONS_DATABASE_URL", "sqlite:///./evaluations_test.db")
os.environ.setdefault("EVALUATIONS_SEED_ON_STARTUP", "false")
os.environ.setdefault("EVALUATIONS_EVALUATION_RATE_LIMIT", "1000/minute")
os.environ.setdefault("EVALUATIONS_LOG_FORMAT", "text")

import pytest

from evaluation_api.database import Base, db_session, engine
from evaluation_api import models  # noqa: F401 – registers ORM mappings with Base.metadata
from evaluation_api.main import app
from evaluation_api.models import Answer, Course, Evaluation, Instructor, Question
from evaluation_api.seed import seed_reference_data
from evaluation_api.state import build_services
from evaluation_api.config import settings


@pytest.fixture(autouse=True, scope="session")
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def clear_tables() -> None:
    """Remove all rows, children first, to keep tests isolated."""
    with db_session() as session:
        session.query(Answer).delete()
        session.query(Evaluation).delete()
        session.query(Course).delete()
        session.query(Instructor).delete()
        session.query(Question).delete()


@pytest.fixture
def empty_db():
    clear_tables()
    yield
    clear_tables()


@pytest.fixture
def seeded(empty_db):
    """Reference data: five instructors, five courses, five questions."""
    seed_reference_data()
    yield


@pytest.fixture(autouse=True)
def fresh_services():
    """Every test starts with an empty sentiment limiter and cache."""
    app.state.services = build_services(settings)
    yield app.state.services
