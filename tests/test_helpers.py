"""Unit tests for config parsing, tokens, file storage and the upsert helper."""
from __future__ import annotations

import io
from datetime import timedelta

import pytest
from fastapi import HTTPException

from elibrary import config
from elibrary.auth import hashing, token
from elibrary.database.upsert import upsert
from elibrary.models.all_model import Bookmark, Rating, Resource, User
from elibrary.router.resource_routes import like_pattern, split_tags
from elibrary.utilis import file_storage


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("7d", timedelta(days=7)),
        ("12h", timedelta(hours=12)),
        ("30m", timedelta(minutes=30)),
        ("45s", timedelta(seconds=45)),
        ("3600", timedelta(seconds=3600)),
        ("2w", timedelta(weeks=2)),
    ],
)
def test_parse_duration(raw, expected):
    assert config.parse_duration(raw) == expected


def test_parse_duration_rejects_garbage():
    with pytest.raises(ValueError):
        config.parse_duration("soon")


def test_split_tags_flattens_and_dedupes():
    assert split_tags(["math, algebra", "algebra", " ", "geometry,"]) == ["math", "algebra", "geometry"]
    assert split_tags(None) == []


def test_like_pattern_escapes_wildcards():
    assert like_pattern("algebra") == "%algebra%"
    assert like_pattern("100%") == "%100\\%%"
    assert like_pattern("a_b\\c") == "%a\\_b\\\\c%"


def test_token_roundtrip_and_rejection():
    class _User:
        id = 7
        role = "teacher"

    error = HTTPException(status_code=401)
    data = token.verify_token(token.create_user_token(_User()), error)
    assert data.user_id == 7
    assert data.role == "teacher"

    with pytest.raises(HTTPException):
        token.verify_token("abc.def.ghi", error)
    with pytest.raises(HTTPException):
        token.verify_token(token.create_access_token({"role": "admin"}), error)
    with pytest.raises(HTTPException):
        token.verify_token(token.create_access_token({"sub": "1"}, timedelta(seconds=-1)), error)


def test_token_signed_with_other_secret_is_rejected(monkeypatch):
    foreign = token.create_access_token({"sub": "1"})
    monkeypatch.setattr(config, "SECRET_KEY", "another-secret")

    with pytest.raises(HTTPException):
        token.verify_token(foreign, HTTPException(status_code=401))


def test_password_hashing():
    hashed = hashing.Hash.bcrypt("secret123")
    assert hashed != "secret123"
    assert hashing.Hash.verify("secret123", hashed)
    assert not hashing.Hash.verify("secret124", hashed)


def test_save_and_delete_upload(upload_dir):
    path = file_storage.save_upload(io.BytesIO(b"hello"), "Lecture 1.PDF")

    assert path.startswith("uploads/")
    assert path.endswith(".pdf")
    stored = file_storage.resolve(path)
    assert stored.parent == upload_dir
    assert stored.read_bytes() == b"hello"
    assert file_storage.delete_upload(path) is True
    assert file_storage.delete_upload(path) is False


def test_stored_names_drop_odd_extensions_and_never_collide(upload_dir):
    first = file_storage.save_upload(io.BytesIO(b"a"), "../../etc/passwd")
    second = file_storage.save_upload(io.BytesIO(b"b"), "weird.ta r")

    assert "/" not in first[len("uploads/"):]
    assert "." not in first[len("uploads/"):]
    assert "." not in second[len("uploads/"):]
    assert first != second


def test_save_upload_enforces_limit(upload_dir, monkeypatch):
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 4)

    with pytest.raises(file_storage.UploadTooLarge):
        file_storage.save_upload(io.BytesIO(b"too big"), "x.txt")
    assert list(upload_dir.iterdir()) == []


def _seed(db):
    user = User(name="Rater", email="rater@example.com", hashed_password="x", role="student")
    db.add(user)
    db.flush()
    resource = Resource(
        title="T", subject="s", file_path="uploads/t", uploaded_by_id=user.id, status="approved"
    )
    db.add(resource)
    db.commit()
    return user, resource


def test_upsert_updates_existing_row(db_session):
    user, resource = _seed(db_session)
    keys = {"resource_id": resource.id, "user_id": user.id}

    upsert(db_session, Rating, keys=keys, values={"rating": 1})
    upsert(db_session, Rating, keys=keys, values={"rating": 4})
    db_session.commit()

    rows = db_session.query(Rating).all()
    assert [(r.user_id, r.rating) for r in rows] == [(user.id, 4)]


def test_upsert_without_values_ignores_duplicates(db_session):
    user, resource = _seed(db_session)
    keys = {"user_id": user.id, "resource_id": resource.id}

    upsert(db_session, Bookmark, keys=keys)
    upsert(db_session, Bookmark, keys=keys)
    db_session.commit()

    assert db_session.query(Bookmark).count() == 1
