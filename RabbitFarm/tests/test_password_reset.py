from datetime import timedelta

import pytest

from conftest import USER_EMAIL, login_user, register_user
from models.password_reset import PasswordReset
from services import password_reset_service
from utils.datetime_utils import now_utc
from utils.errors import InternalError, RateLimitError, ValidationError


def _request_reset(client, outbox):
    resp = client.post("/auth/forgot-password", json={"email": USER_EMAIL})
    assert resp.status_code == 200
    link = [m for m in outbox if m["kind"] == "reset"][-1]["link"]
    return link.rsplit("/", 1)[-1]


def _reset(client, token, password="newpass123", confirm=None):
    return client.post(
        f"/auth/reset-password/{token}",
        json={"password": password, "confirm_password": confirm or password},
    )


def test_forgot_validate_reset_then_token_is_used(client, outbox):
    register_user(client)
    token = _request_reset(client, outbox)

    valid = client.get(f"/auth/reset-password/{token}/validate")
    assert valid.status_code == 200
    assert valid.json() == {"success": True, "message": "Token is valid", "data": {"valid": True}}

    resp = _reset(client, token)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Password reset successfully"

    after = client.get(f"/auth/reset-password/{token}/validate")
    assert after.status_code == 400
    assert after.json()["message"] == "Invalid or expired reset token"

    assert login_user(client, password="newpass123").status_code == 200
    assert login_user(client).status_code == 401


def test_second_reset_with_same_token_fails(client, outbox):
    register_user(client)
    token = _request_reset(client, outbox)

    assert _reset(client, token).status_code == 200
    second = _reset(client, token, password="another123")

    assert second.status_code == 400
    assert second.json()["message"] == "Invalid or expired reset token"
    assert login_user(client, password="newpass123").status_code == 200


def test_reset_password_mismatch(client, outbox):
    register_user(client)
    token = _request_reset(client, outbox)

    resp = _reset(client, token, password="newpass123", confirm="different1")

    assert resp.status_code == 400
    assert resp.json()["message"] == "New password and confirmation do not match"
    assert client.get(f"/auth/reset-password/{token}/validate").status_code == 200


def test_expired_token_is_invalid(client, outbox, db_session):
    register_user(client)
    token = _request_reset(client, outbox)
    db_session.query(PasswordReset).update({PasswordReset.expires_at: now_utc() - timedelta(seconds=1)})
    db_session.commit()

    assert client.get(f"/auth/reset-password/{token}/validate").status_code == 400
    assert _reset(client, token).status_code == 400


def test_reset_revokes_other_pending_tokens(client, outbox, db_session):
    register_user(client)
    first = _request_reset(client, outbox)
    second = _request_reset(client, outbox)

    assert _reset(client, second).status_code == 200

    assert client.get(f"/auth/reset-password/{first}/validate").status_code == 400
    assert db_session.query(PasswordReset).filter(PasswordReset.is_deleted == 1).count() == 1


def test_only_token_hash_is_stored(client, outbox, db_session):
    register_user(client)
    token = _request_reset(client, outbox)

    stored = db_session.query(PasswordReset).one()
    assert stored.token_hash != token
    assert len(stored.token_hash) == 64


def test_forgot_password_unknown_email(client):
    resp = client.post("/auth/forgot-password", json={"email": "ghost@x.com"})

    assert resp.status_code == 404
    assert resp.json()["message"] == "User not found"


def test_forgot_password_rate_limit(client, outbox, db_session):
    register_user(client)
    for _ in range(5):
        _request_reset(client, outbox)

    with pytest.raises(RateLimitError):
        password_reset_service.request_password_reset(db_session, USER_EMAIL)

    resp = client.post("/auth/forgot-password", json={"email": USER_EMAIL})
    assert resp.status_code == 429


def test_failed_email_removes_token(client, db_session, monkeypatch):
    register_user(client)
    monkeypatch.setattr(
        "services.password_reset_service.send_password_reset_email", lambda **kwargs: False
    )

    with pytest.raises(InternalError):
        password_reset_service.request_password_reset(db_session, USER_EMAIL)

    assert db_session.query(PasswordReset).count() == 0


def test_missing_token(db_session):
    with pytest.raises(ValidationError, match="Missing reset token"):
        password_reset_service.validate_reset_token(db_session, "")


def test_cleanup_expired_tokens(client, outbox, db_session):
    register_user(client)
    _request_reset(client, outbox)
    db_session.query(PasswordReset).update({PasswordReset.expires_at: now_utc() - timedelta(days=8)})
    db_session.commit()

    assert password_reset_service.cleanup_expired_tokens(db_session) == 1
    assert db_session.query(PasswordReset).count() == 0
