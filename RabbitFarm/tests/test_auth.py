from datetime import timedelta

from conftest import USER_EMAIL, login_user, register_user
from models.user import User, TokenBlacklist
from utils.datetime_utils import now_utc


def _token_from_link(link: str) -> str:
    return link.rstrip("/").rsplit("/", 1)[-1]


def test_register_creates_unverified_user_and_sends_link(client, outbox, db_session):
    resp = register_user(client)

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Registration successful! Please check your email to verify your account."
    assert body["data"]["email"] == USER_EMAIL
    assert body["data"]["email_verified"] is False
    assert "password_hash" not in body["data"]

    assert len(outbox) == 1
    assert outbox[0]["kind"] == "verification"
    assert "/auth/verify-email/" in outbox[0]["link"]


def test_register_duplicate_email_fails(client):
    register_user(client)
    resp = register_user(client, email="A@X.com")

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Email is already registered"}


def test_register_missing_fields_is_validation_error(client):
    resp = client.post("/auth/register", json={"email": "b@x.com"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["errors"]


def test_unverified_login_requires_verification(client):
    register_user(client)
    resp = login_user(client)

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful, but please verify your email to receive notifications."
    assert body["data"]["requires_email_verification"] is True
    assert body["data"]["token"]


def test_verified_login_has_plain_message(client, outbox):
    register_user(client)
    client.get(f"/auth/verify-email/{_token_from_link(outbox[0]['link'])}")

    body = login_user(client).json()
    assert body["message"] == "Login successful"
    assert body["data"]["requires_email_verification"] is False
    assert body["data"]["user"]["login_count"] == 1


def test_login_wrong_password(client):
    register_user(client)
    resp = login_user(client, password="nope-nope")

    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid email or password"


def test_verify_email_renders_success_page(client, outbox):
    register_user(client)
    token = _token_from_link(outbox[0]["link"])

    resp = client.get(f"/auth/verify-email/{token}")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "Email verified successfully! You can now receive notifications." in resp.text
    assert "Ana" in resp.text
    assert "Rabbit Farm" in resp.text


def test_verify_email_invalid_token_renders_error_page(client):
    resp = client.get("/auth/verify-email/not-a-real-token")

    assert resp.status_code == 400
    assert resp.headers["content-type"].startswith("text/html")
    assert "Invalid verification token" in resp.text


def test_verify_email_expired_token(client, outbox, db_session):
    register_user(client)
    token = _token_from_link(outbox[0]["link"])
    user = db_session.query(User).filter(User.email == USER_EMAIL).one()
    user.verification_expires_at = now_utc() - timedelta(minutes=1)
    db_session.commit()

    resp = client.get(f"/auth/verify-email/{token}")

    assert resp.status_code == 400
    assert "Verification token has expired" in resp.text


def test_verify_email_falls_back_when_template_missing(client, monkeypatch):
    monkeypatch.setattr("api.auth.render_template", lambda name, values: None)

    resp = client.get("/auth/verify-email/whatever")

    assert resp.status_code == 400
    assert "Something went wrong" in resp.text


def test_resend_verification_respects_cooldown(client, outbox):
    register_user(client)

    resp = client.post("/auth/resend-verification", json={"email": USER_EMAIL})

    assert resp.status_code == 200
    assert resp.json()["data"] == {"success": False}
    assert "sent recently" in resp.json()["message"]
    assert len(outbox) == 1


def test_resend_verification_after_cooldown(client, outbox, db_session):
    register_user(client)
    user = db_session.query(User).filter(User.email == USER_EMAIL).one()
    user.last_verification_sent_at = now_utc() - timedelta(hours=1)
    db_session.commit()

    resp = client.post("/auth/resend-verification", json={"email": USER_EMAIL})

    assert resp.json()["data"] == {"success": True}
    assert resp.json()["message"] == "Verification email sent successfully"
    assert len(outbox) == 2
    assert outbox[0]["link"] != outbox[1]["link"]


def test_resend_verification_unknown_user(client):
    resp = client.post("/auth/resend-verification", json={"email": "ghost@x.com"})

    assert resp.status_code == 404
    assert resp.json()["message"] == "User not found"


def test_me_requires_token(client):
    resp = client.get("/auth/me")

    assert resp.status_code == 401
    assert resp.json()["message"] == "User not authenticated"


def test_me_returns_current_user(client, auth_headers):
    resp = client.get("/auth/me", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["email"] == USER_EMAIL


def test_logout_revokes_token(client, auth_headers, db_session):
    resp = client.post("/auth/logout", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["message"] == "Logged out successfully"
    assert db_session.query(TokenBlacklist).count() == 1

    again = client.get("/auth/me", headers=auth_headers)
    assert again.status_code == 401
    assert again.json()["message"] == "Invalid or expired token"


def test_logout_without_token(client):
    resp = client.post("/auth/logout")

    assert resp.status_code == 401
    assert resp.json()["message"] == "User not authenticated"


def test_garbage_token_is_rejected(client):
    resp = client.get("/farms", headers={"Authorization": "Bearer garbage"})

    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid or expired token"
