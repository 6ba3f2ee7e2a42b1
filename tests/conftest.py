import os
import tempfile

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["PUSH_ENABLED"] = "false"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="family-records-")
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.db import Base, get_db, get_engine
from app.main import app as fastapi_app
from tests.factories import headers_for, make_person, make_user


@pytest.fixture()
def engine():
    engine = get_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db_session):
    def _get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = _get_db
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def admin_user(db_session):
    return make_user(db_session, "Admin", "admin@example.com", is_admin=True)


@pytest.fixture()
def user(db_session):
    return make_user(db_session, "Farah", "farah@example.com")


@pytest.fixture()
def other_user(db_session):
    return make_user(db_session, "Hakim", "hakim@example.com")


@pytest.fixture()
def pending_user(db_session):
    return make_user(db_session, "Pending", "pending@example.com", approved=False)


@pytest.fixture()
def person(db_session, user):
    return make_person(db_session, user)


@pytest.fixture()
def auth_headers(db_session, user):
    return headers_for(db_session, user)


@pytest.fixture()
def other_headers(db_session, other_user):
    return headers_for(db_session, other_user)


@pytest.fixture()
def admin_headers(db_session, admin_user):
    return headers_for(db_session, admin_user)
