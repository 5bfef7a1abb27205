from datetime import datetime

import pytest

from models.user import User
from services import alert_service
from utils.errors import ValidationError


@pytest.fixture
def owner_id(auth_headers, db_session):
    return db_session.query(User.id).scalar()


def _alert(farm, owner_id, name, severity="medium", start=datetime(2025, 3, 1), **extra):
    data = {
        "farm_id": farm["id"],
        "user_id": owner_id,
        "name": name,
        "alert_start_date": start,
        "alert_type": "general",
        "severity": severity,
        "message": f"{name} message",
    }
    data.update(extra)
    return data


def test_add_alert_requires_fields(db_session):
    with pytest.raises(ValidationError, match="Missing required alert fields"):
        alert_service.add_alert(db_session, {"farm_id": "f", "name": "x"})


def test_alerts_ordered_by_severity_then_date(client, auth_headers, farm, owner_id, db_session):
    alert_service.create_alert(db_session, _alert(farm, owner_id, "low", "low", datetime(2025, 1, 1)))
    alert_service.create_alert(db_session, _alert(farm, owner_id, "high-late", "high", datetime(2025, 2, 1)))
    alert_service.create_alert(db_session, _alert(farm, owner_id, "high-early", "high", datetime(2025, 1, 15)))
    alert_service.create_alert(db_session, _alert(farm, owner_id, "medium", "medium", datetime(2025, 1, 2)))

    resp = client.get(f"/farms/{farm['id']}/alerts", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["message"] == "Alerts loaded successfully"
    assert [a["name"] for a in resp.json()["data"]] == ["high-early", "high-late", "medium", "low"]


def test_alert_list_filters_and_default_limit(client, auth_headers, farm, owner_id, db_session):
    for n in range(12):
        alert_service.create_alert(db_session, _alert(farm, owner_id, f"a{n}", start=datetime(2025, 1, n + 1)))
    alert_service.create_alert(db_session, _alert(farm, owner_id, "health", alert_type="health"))

    base = f"/farms/{farm['id']}/alerts"
    assert len(client.get(base, headers=auth_headers).json()["data"]) == 10
    assert len(client.get(base, params={"limit": 20}, headers=auth_headers).json()["data"]) == 13

    health = client.get(base, params={"alert_type": "health"}, headers=auth_headers).json()["data"]
    assert [a["name"] for a in health] == ["health"]


def test_calendar_excludes_rejected(client, auth_headers, farm, owner_id, db_session):
    keep = alert_service.create_alert(db_session, _alert(farm, owner_id, "keep"))
    drop = alert_service.create_alert(db_session, _alert(farm, owner_id, "drop"))

    client.put(f"/farms/{farm['id']}/alerts/{drop.id}/status", json={"status": "rejected"}, headers=auth_headers)

    resp = client.get(f"/farms/{farm['id']}/alerts/calendar", headers=auth_headers)
    assert [a["id"] for a in resp.json()["data"]] == [keep.id]


def test_update_alert_status(client, auth_headers, farm, owner_id, db_session):
    alert = alert_service.create_alert(db_session, _alert(farm, owner_id, "done"))

    resp = client.put(
        f"/farms/{farm['id']}/alerts/{alert.id}/status", json={"status": "completed"}, headers=auth_headers
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "completed"

    invalid = client.put(
        f"/farms/{farm['id']}/alerts/{alert.id}/status", json={"status": "snoozed"}, headers=auth_headers
    )
    assert invalid.status_code == 400

    missing = client.put(f"/farms/{farm['id']}/alerts/nope/status", json={"status": "sent"}, headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Alert not found"


def test_process_due_alerts_emails_and_marks_sent(client, farm, owner_id, db_session, outbox):
    due = alert_service.create_alert(db_session, _alert(farm, owner_id, "due", "high", datetime(2025, 1, 1)))
    later = alert_service.create_alert(db_session, _alert(farm, owner_id, "later", start=datetime(2030, 1, 1)))

    results = alert_service.process_due_alerts(db_session, now=datetime(2025, 6, 1))

    assert results == [{"alert_id": due.id, "success": True, "message": "Notification sent successfully"}]
    assert [m["name"] for m in outbox if m["kind"] == "alert"] == ["due"]
    db_session.refresh(due)
    db_session.refresh(later)
    assert due.status == "sent"
    assert later.status == "pending"


def test_process_due_alerts_keeps_going_after_failure(client, farm, owner_id, db_session, monkeypatch):
    first = alert_service.create_alert(db_session, _alert(farm, owner_id, "first", start=datetime(2025, 1, 1)))
    second = alert_service.create_alert(db_session, _alert(farm, owner_id, "second", start=datetime(2025, 1, 2)))
    calls = []

    def flaky(to_email, alert_name, message, severity):
        calls.append(alert_name)
        return alert_name != "first"

    monkeypatch.setattr("services.alert_service.send_alert_email", flaky)

    results = alert_service.process_due_alerts(db_session, now=datetime(2025, 6, 1))

    assert calls == ["first", "second"]
    assert results[0] == {"alert_id": first.id, "success": False, "message": "Failed to send alert email"}
    assert results[1]["success"] is True
    db_session.refresh(first)
    db_session.refresh(second)
    assert first.status == "pending"
    assert second.status == "sent"
