import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.pool import StaticPool

from staffdir.config import Settings
from staffdir.database import build_session_factory
from staffdir.main import create_app
from staffdir.models import Base, User
from staffdir.repository import UserRepository

# In-memory SQLite database shared across connections via StaticPool.
TEST_DATABASE_URL = "sqlite://"

engine_test = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture()
def settings():
    """Settings that ignore the developer's environment and .env file."""
    return Settings(_env_file=None, app_name="Test Directory", database_url=TEST_DATABASE_URL)


@pytest.fixture()
def engine():
    """Fresh ``users`` table for every test function."""
    Base.metadata.drop_all(bind=engine_test)
    Base.metadata.create_all(bind=engine_test)
    yield engine_test


@pytest.fixture()
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture()
def repo(session_factory):
    return UserRepository(session_factory)


@pytest.fixture()
def app(settings, engine):
    return create_app(settings=settings, engine=engine)


@pytest.fixture()
def client(app):
    """TestClient entered as a context manager so the startup ping runs."""
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def user_factory(session_factory):
    """Insert users directly, bypassing the HTTP API. Returns the new id."""

    def _create_user(name: str, department: str, email: str) -> int:
        with session_factory.begin() as db:
            user = User(name=name, department=department, email=email)
            db.add(user)
            db.flush()
            return user.id

    return _create_user


@pytest.fixture()
def count_users(session_factory):
    def _count() -> int:
        with session_factory() as db:
            return db.execute(select(func.count()).select_from(User)).scalar_one()

    return _count
