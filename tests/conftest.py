import datetime
import os
import pathlib
import sys
import tempfile
import uuid

import pytest
from fastapi.testclient import TestClient
from jose import jwt

# Environment needed before importing application modules
_fd, _db_path = tempfile.mkstemp(prefix="test_db_", suffix=".sqlite")
os.close(_fd)
os.environ["DATABASE_URL"] = os.getenv("DATABASE_URL_DEV") or f"sqlite:///{_db_path}"
os.environ.setdefault("JWT_SECRET_KEY", "testsecret")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("ENVIRONMENT", "test")

# Ensure project root on sys.path for application imports
PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(scope="session")
def engine():
    import models  # noqa: F401
    from database.database import engine as engine_

    yield engine_
    engine_.dispose()


@pytest.fixture(autouse=True)
def _reset_db(engine):
    from database.database import Base

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function")
def db_session(_reset_db):
    from database.database import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app(engine):  # noqa: D401
    from main import app as fastapi_app

    return fastapi_app


@pytest.fixture(autouse=True)
def _override_dependency(app, db_session):
    from database.database import get_db

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


#########################
# Helpers
#########################


def make_token(user_id: int, role: str) -> str:
    payload = {
        "sub": str(user_id),
        "role": role,
        "exp": datetime.datetime.now(datetime.UTC) + datetime.timedelta(minutes=30),
    }
    return jwt.encode(payload, os.environ["JWT_SECRET_KEY"], os.environ["JWT_ALGORITHM"])


class Actor:
    """A stored user together with its caller context and auth headers."""

    def __init__(self, user):
        from core.auth import CallerContext

        self.id = user.id
        self.role = user.role
        self.caller = CallerContext(id=user.id, role=user.role)
        self.headers = {"Authorization": f"Bearer {make_token(user.id, user.role)}"}


@pytest.fixture()
def make_actor(db_session):
    from models.user import User

    def _make(role: str = "client", first_name: str = "Test", last_name: str = "User") -> Actor:
        user = User(
            email=f"{uuid.uuid4().hex[:8]}@example.com",
            first_name=first_name,
            last_name=last_name,
            phone="555-0100",
            role=role,
        )
        db_session.add(user)
        db_session.flush()
        actor = Actor(user)
        db_session.commit()
        return actor

    return _make


@pytest.fixture()
def admin(make_actor):
    return make_actor("admin", "Ada", "Admin")


@pytest.fixture()
def mediator(make_actor):
    return make_actor("mediator", "Mia", "Mediator")


@pytest.fixture()
def client_user(make_actor):
    return make_actor("client", "Carl", "Client")


@pytest.fixture()
def activities(db_session):
    """(activity_type, description) pairs of a case, oldest first."""
    from models.activity import CaseActivity

    def _activities(case_id: int):
        rows = (
            db_session.query(CaseActivity)
            .filter(CaseActivity.case_id == case_id)
            .order_by(CaseActivity.id)
            .all()
        )
        entries = [(row.activity_type, row.description) for row in rows]
        db_session.commit()
        return entries

    return _activities
