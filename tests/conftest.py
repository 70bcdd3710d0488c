import pytest
from fastapi.testclient import TestClient

from cinedesk.config import Settings
from cinedesk.main import create_app
from cinedesk.models import User
from cinedesk.security import create_token, hash_password

ALLOWED_ORIGIN = "https://cine-desk.vercel.app"
EVIL_ORIGIN = "https://evil.example.com"


def make_settings(**overrides) -> Settings:
    values = {"database": "sqlite://", "environment": "development"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session(client, app):
    db = app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def add_user(db, username, role="user", password="secret123"):
    user = User(
        username=username,
        email=f"{username}@example.com",
        password=hash_password(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_headers(db_session, settings):
    admin = add_user(db_session, "admin", role="admin")
    return {"Authorization": f"Bearer {create_token(admin.id, settings)}"}


@pytest.fixture
def user_headers(db_session, settings):
    user = add_user(db_session, "viewer")
    return {"Authorization": f"Bearer {create_token(user.id, settings)}"}
