"""Registration, credential sign-in, session and magic-link flows."""
from unittest.mock import patch

from pitchgenie.core.database import get_db_session, users
from pitchgenie.core.security import create_magic_link_token
from pitchgenie.features.users.service import authorize, create_user, get_user_by_email
from sqlalchemy import select


def test_register_creates_user_without_exposing_password(client):
    resp = client.post(
        "/api/auth/register",
        json={"email": "new@example.com", "password": "pass1234", "name": "New User"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User created successfully"
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["name"] == "New User"
    assert "password" not in body["user"]
    assert set(body["user"]) == {"id", "email", "name", "image", "email_verified", "created_at", "updated_at"}

    with get_db_session() as session:
        stored = session.execute(select(users.c.password).where(users.c.email == "new@example.com")).scalar_one()
    assert stored.startswith("$2b$12$")


def test_register_requires_email_and_password(client):
    for payload in ({"email": "x@example.com"}, {"password": "p"}, {}):
        resp = client.post("/api/auth/register", json=payload)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Email and password are required"


def test_register_duplicate_email_is_400(client):
    create_user("dupe@example.com", "pw", "Dupe")
    resp = client.post("/api/auth/register", json={"email": "dupe@example.com", "password": "other"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User with this email already exists"


def test_register_unexpected_failure_is_500(client):
    with patch("pitchgenie.api.auth.create_user", side_effect=RuntimeError("db down")):
        resp = client.post("/api/auth/register", json={"email": "e@example.com", "password": "pw"})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal server error"


def test_authorize_returns_none_for_every_failure_mode():
    create_user("real@example.com", "right-password", "Real")
    create_user("magic@example.com", None)

    assert authorize(None, "right-password") is None
    assert authorize("real@example.com", "") is None
    assert authorize("ghost@example.com", "right-password") is None
    assert authorize("magic@example.com", "anything") is None
    assert authorize("real@example.com", "wrong-password") is None


def test_authorize_success_returns_public_fields():
    create_user("real@example.com", "right-password", "Real")
    user = authorize("REAL@example.com", "right-password")
    assert set(user) == {"id", "email", "name", "image"}
    assert user["email"] == "real@example.com"
    assert user["name"] == "Real"


def test_signin_then_session(client):
    create_user("s@example.com", "pw-123456", "Sam")
    signin = client.post("/api/auth/signin", json={"email": "s@example.com", "password": "pw-123456"})
    assert signin.status_code == 200
    token = signin.json()["token"]
    assert signin.cookies.get("pitchgenie_session")

    session = client.get("/api/auth/session", headers={"Authorization": f"Bearer {token}"})
    assert session.status_code == 200
    assert session.json()["user"]["email"] == "s@example.com"
    assert session.json()["expires"]


def test_signin_with_bad_password_is_401(client):
    create_user("s@example.com", "pw-123456", "Sam")
    resp = client.post("/api/auth/signin", json={"email": "s@example.com", "password": "nope"})
    assert resp.status_code == 401


def test_session_without_token_is_401(client):
    resp = client.get("/api/auth/session")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "No session"


def test_session_refresh_marks_refreshed(client, make_user):
    _, headers = make_user()
    resp = client.post("/api/auth/session", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["refreshed"] is True
    assert resp.json()["user"]["email"] == "founder@example.com"


def test_magic_link_request_logs_link_without_smtp(client):
    with patch("pitchgenie.api.auth.send_magic_link") as send:
        resp = client.post("/api/auth/email", json={"email": "link@example.com"})
    assert resp.status_code == 200
    send.assert_called_once()
    assert send.call_args.args[0] == "link@example.com"


def test_magic_link_verify_creates_verified_user(client):
    token, _ = create_magic_link_token("fresh@example.com")
    resp = client.get("/api/auth/email/verify", params={"token": token})
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "fresh@example.com"

    user = get_user_by_email("fresh@example.com")
    assert user is not None
    assert user.email_verified is not None


def test_magic_link_verify_rejects_garbage(client):
    resp = client.get("/api/auth/email/verify", params={"token": "not-a-token"})
    assert resp.status_code == 401


def test_register_rejects_password_over_bcrypt_limit(client):
    resp = client.post("/api/auth/register", json={"email": "long@example.com", "password": "p" * 80})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Password is too long"
    assert get_user_by_email("long@example.com") is None


def test_register_accepts_password_at_bcrypt_limit(client):
    resp = client.post("/api/auth/register", json={"email": "edge@example.com", "password": "p" * 72})
    assert resp.status_code == 201
    assert authorize("edge@example.com", "p" * 72) is not None
    assert authorize("edge@example.com", "p" * 73) is None
