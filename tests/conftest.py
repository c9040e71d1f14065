"""Shared fixtures: a throwaway SQLite database and upload dir per test."""
from __future__ import annotations

import os

# Cheap hashing for tests; must be set before elibrary.config is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from elibrary import config
from elibrary.database.connection import get_db, init_db, make_engine
from elibrary.main import app


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory, upload_dir):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Sign up a user and return ``(user_json, auth_headers)``.

    The auth cookie the signup sets is dropped so that each request's
    identity comes only from the headers a test passes.
    """
    counter = {"n": 0}

    def _make(role: str = "student", name: str | None = None, email: str | None = None,
              password: str = "secret123"):
        counter["n"] += 1
        payload = {
            "name": name or f"{role.title()} {counter['n']}",
            "email": email or f"{role}{counter['n']}@example.com",
            "password": password,
            "role": role,
        }
        resp = client.post("/api/auth/signup", json=payload)
        assert resp.status_code == 201, resp.text
        client.cookies.clear()
        body = resp.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _make


@pytest.fixture
def upload(client):
    """Upload a resource as the given user and return the response JSON."""

    def _upload(headers, title: str = "Linear Algebra Notes", subject: str = "math",
                tags: str | None = None, description: str = "", content: bytes = b"%PDF-1.4 test",
                filename: str = "notes.pdf"):
        data = {"title": title, "subject": subject, "description": description}
        if tags is not None:
            data["tags"] = tags
        resp = client.post(
            "/api/resources",
            data=data,
            files={"file": (filename, content, "application/pdf")},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _upload
