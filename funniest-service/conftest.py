"""
pytest configuration – point the service at a throwaway SQLite file,
initialise tables before tests run and provide signed-in test profiles.
"""
import os

os.environ.setdefault("FUNNIEST_DATABASE_URL", "sqlite:///./test_funniest.db")
os.environ.setdefault("FUNNIEST_LOG_FORMAT", "text")

import pytest
from sqlalchemy import delete

from funniest.database import Base, engine, db_session
from funniest import models  # noqa: F401 - registers ORM mappings with Base.metadata
from funniest.models import Caption, CaptionVote, Image, Profile
from funniest.auth.core import create_access_token
from funniest.rate_limit import limiter
from funniest.main import app  # noqa: F401 - import creates tables and routes


@pytest.fixture(autouse=True, scope="session")
def create_tables():
    Base.metadata.create_all(bind=engine)
    limiter.enabled = False
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with db_session() as session:
        session.execute(delete(CaptionVote))
        session.execute(delete(Caption))
        session.execute(delete(Image))
        session.execute(delete(Profile))


def _make_profile(profile_id: str, email: str, name: str) -> str:
    with db_session() as session:
        session.add(Profile(id=profile_id, email=email, full_name=name, login_count=1))
    return create_access_token(profile_id, email, name)


@pytest.fixture
def student_token() -> str:
    return _make_profile("11111111-1111-1111-1111-111111111111", "ada@columbia.edu", "Ada Lovelace")


@pytest.fixture
def other_student_token() -> str:
    return _make_profile("22222222-2222-2222-2222-222222222222", "grace@barnard.edu", "Grace Hopper")
