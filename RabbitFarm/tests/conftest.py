"""Fixtures de pruebas: SQLite en memoria por test + TestClient de FastAPI.

- Cada test recibe una BD nueva (StaticPool: una sola conexión compartida)
- get_db se sobreescribe para usar la BD de prueba
- Los envíos de email se interceptan y quedan en `outbox`
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_FORMAT", "text")

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import models  # noqa: E402,F401
from main import app  # noqa: E402
from utils.db import Base, get_db  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def outbox(monkeypatch):
    """Captura los emails salientes: lista de dicts {kind, to, link/message}."""
    sent = []

    def _verification(to, verify_link, user_name):
        sent.append({"kind": "verification", "to": to, "link": verify_link})
        return True

    def _reset(to_email, reset_link, user_name):
        sent.append({"kind": "reset", "to": to_email, "link": reset_link})
        return True

    def _alert(to_email, alert_name, message, severity):
        sent.append({"kind": "alert", "to": to_email, "name": alert_name, "message": message})
        return True

    monkeypatch.setattr("services.auth_service.send_verification_email", _verification)
    monkeypatch.setattr("services.password_reset_service.send_password_reset_email", _reset)
    monkeypatch.setattr("services.alert_service.send_alert_email", _alert)
    return sent


@pytest.fixture
def client(session_factory, outbox):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# -------------------------------------------------------------------
# Datos de apoyo
# -------------------------------------------------------------------
USER_EMAIL = "a@x.com"
USER_PASSWORD = "secret123"


def register_user(client, email=USER_EMAIL, password=USER_PASSWORD, name="Ana", phone="0700000000"):
    return client.post("/auth/register", json={"email": email, "password": password, "name": name, "phone": phone})


def login_user(client, email=USER_EMAIL, password=USER_PASSWORD):
    return client.post("/auth/login", json={"email": email, "password": password})


@pytest.fixture
def auth_headers(client):
    register_user(client)
    token = login_user(client).json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def farm(client, auth_headers):
    resp = client.post("/farms", json={"name": "Green Acres", "location": "Nakuru"}, headers=auth_headers)
    assert resp.status_code == 201
    return resp.json()["data"]


@pytest.fixture
def hutch(client, auth_headers, farm):
    resp = client.post(
        f"/farms/{farm['id']}/hutches",
        json={"id": "H1", "level": "A", "position": 1, "size": "medium", "material": "wire"},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    return resp.json()["data"]


def rabbit_payload(rabbit_id, gender="female", hutch_id=None, **extra):
    body = {
        "rabbit_id": rabbit_id,
        "gender": gender,
        "breed": "New Zealand White",
        "color": "white",
        "birth_date": date(2024, 1, 10).isoformat(),
        "weight": 3.5,
    }
    if hutch_id:
        body["hutch_id"] = hutch_id
    body.update(extra)
    return body
