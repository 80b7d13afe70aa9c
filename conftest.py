"""Shared fixtures: a throwaway SQLite database and upload directory per session."""
import os
import shutil
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="studium-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["EMAIL_TRANSPORT"] = "console"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["APP_ENV"] = "test"
os.environ.pop("MIN_APP_VERSION", None)

import pytest
from fastapi.testclient import TestClient

from studium import config
from studium.database import SessionLocal, create_tables, drop_tables
from studium.main import app
from studium.models import Notebook, User
from studium.routers.auth import create_access_token, get_password_hash


@pytest.fixture
def client():
    create_tables()
    with TestClient(app) as test_client:
        yield test_client
    drop_tables()
    shutil.rmtree(config.UPLOAD_DIR, ignore_errors=True)


@pytest.fixture
def db(client):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(email="test@example.com", password="password123", name=None):
        user = User(email=email, hashed_password=get_password_hash(password), name=name)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_notebook(db):
    def _make_notebook(user, title="Test Notebook", content="Test content"):
        notebook = Notebook(title=title, content=content, user_id=user.id)
        db.add(notebook)
        db.commit()
        db.refresh(notebook)
        return notebook
    return _make_notebook


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def other_user(make_user):
    return make_user(email="other@example.com", password="otherpass123")


@pytest.fixture
def headers(user):
    return auth_headers(user)


@pytest.fixture
def other_headers(other_user):
    return auth_headers(other_user)
