"""Moderation, user blocking and stats."""
from __future__ import annotations


def test_admin_routes_require_admin_role(client, make_user):
    _, student = make_user("student")
    _, teacher = make_user("teacher")

    assert client.get("/api/admin/pending").status_code == 401
    assert client.get("/api/admin/pending", headers=student).status_code == 403
    assert client.get("/api/admin/users", headers=teacher).status_code == 403
    assert client.post("/api/admin/approve/1", headers=student).status_code == 403


def test_pending_queue_and_approval(client, make_user, upload):
    _, student = make_user()
    _, admin = make_user("admin")
    first = upload(student, title="First Draft")
    upload(student, title="Second Draft")

    queue = client.get("/api/admin/pending", headers=admin).json()
    assert [r["title"] for r in queue] == ["First Draft", "Second Draft"]

    resp = client.post(f"/api/admin/approve/{first['id']}", headers=admin)

    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    assert [r["title"] for r in client.get("/api/admin/pending", headers=admin).json()] == ["Second Draft"]
    assert [r["title"] for r in client.get("/api/resources").json()] == ["First Draft"]


def test_reject_hides_resource_and_is_terminal(client, make_user, upload):
    _, student = make_user()
    _, admin = make_user("admin")
    item = upload(student)

    rejected = client.post(f"/api/admin/reject/{item['id']}", headers=admin)
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"
    assert client.get("/api/resources").json() == []

    again = client.post(f"/api/admin/approve/{item['id']}", headers=admin)
    assert again.status_code == 409
    assert client.get(f"/api/resources/{item['id']}").json()["status"] == "rejected"


def test_moderating_missing_resource_is_404(client, make_user):
    _, admin = make_user("admin")

    assert client.post("/api/admin/approve/404", headers=admin).status_code == 404
    assert client.post("/api/admin/reject/404", headers=admin).status_code == 404


def test_users_listing_hides_password_hashes(client, make_user):
    _, admin = make_user("admin")
    make_user("student")

    resp = client.get("/api/admin/users", headers=admin)

    assert resp.status_code == 200
    users = resp.json()
    assert len(users) == 2
    for user in users:
        assert set(user) == {"id", "name", "email", "role", "isBlocked", "createdAt"}


def test_blocking_invalidates_existing_token(client, make_user):
    user, headers = make_user(email="blocked@example.com", password="secret123")
    _, admin = make_user("admin")
    assert client.get("/api/auth/me", headers=headers).status_code == 200

    blocked = client.post(f"/api/admin/block/{user['id']}", headers=admin)
    assert blocked.status_code == 200
    assert blocked.json()["isBlocked"] is True

    assert client.get("/api/auth/me", headers=headers).status_code == 401
    login = client.post("/api/auth/login", json={"email": "blocked@example.com", "password": "secret123"})
    assert login.status_code == 401

    unblocked = client.post(f"/api/admin/unblock/{user['id']}", headers=admin)
    assert unblocked.json()["isBlocked"] is False
    assert client.get("/api/auth/me", headers=headers).status_code == 200


def test_admins_cannot_be_blocked(client, make_user):
    _, admin = make_user("admin")
    other_admin, other_headers = make_user("admin")

    resp = client.post(f"/api/admin/block/{other_admin['id']}", headers=admin)

    assert resp.status_code == 403
    assert client.get("/api/auth/me", headers=other_headers).status_code == 200


def test_block_missing_user_is_404(client, make_user):
    _, admin = make_user("admin")

    assert client.post("/api/admin/block/31337", headers=admin).status_code == 404
    assert client.post("/api/admin/unblock/31337", headers=admin).status_code == 404


def test_stats_cover_approved_resources_only(client, make_user, upload):
    _, admin = make_user("admin")
    _, student = make_user()
    popular = upload(admin, title="Popular", subject="math")
    upload(admin, title="Quiet", subject="math")
    upload(admin, title="Molecules", subject="chemistry")
    hidden = upload(student, title="Hidden", subject="biology")
    for _ in range(3):
        client.post(f"/api/resources/{popular['id']}/download")
    for _ in range(5):
        client.post(f"/api/resources/{hidden['id']}/download")

    resp = client.get("/api/admin/stats", headers=admin)

    assert resp.status_code == 200
    body = resp.json()
    assert body["topDownloads"][0] == {"id": popular["id"], "title": "Popular", "downloadsCount": 3}
    assert "Hidden" not in [r["title"] for r in body["topDownloads"]]
    assert body["bySubject"] == [
        {"subject": "math", "count": 2},
        {"subject": "chemistry", "count": 1},
    ]


def test_stats_top_downloads_is_capped_at_ten(client, make_user, upload):
    _, admin = make_user("admin")
    for i in range(12):
        upload(admin, title=f"Doc {i}")

    body = client.get("/api/admin/stats", headers=admin).json()

    assert len(body["topDownloads"]) == 10
