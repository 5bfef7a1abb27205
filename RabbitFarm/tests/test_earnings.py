import pytest


def _earning(**overrides):
    body = {"type": "urine_sale", "amount": 12.5, "date": "2025-03-05"}
    body.update(overrides)
    return body


@pytest.fixture
def base(farm):
    return f"/farms/{farm['id']}/earnings"


def test_create_earnings_defaults_currency(client, auth_headers, base):
    resp = client.post(base, json=_earning(), headers=auth_headers)

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["currency"] == "USD"
    assert data["amount"] == 12.5
    assert data["includes_urine"] is False


@pytest.mark.parametrize("overrides, message", [
    ({"type": "wool_sale"}, "Type must be rabbit_sale, urine_sale, manure_sale, or other"),
    ({"sale_type": "frozen"}, "Sale type must be whole, processed, or live"),
    ({"currency": "usd"}, "Currency must be a valid 3-letter code"),
    ({"amount": -3}, "Amount must be positive"),
    ({"amount": 0}, "Missing required earnings fields"),
    ({"hutch_id": "NOPE"}, "Hutch not found"),
])
def test_create_earnings_validation(client, auth_headers, base, overrides, message):
    resp = client.post(base, json=_earning(**overrides), headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == message


def test_list_earnings_filters(client, auth_headers, base):
    client.post(base, json=_earning(date="2025-01-10"), headers=auth_headers)
    client.post(base, json=_earning(type="manure_sale", date="2025-02-10"), headers=auth_headers)
    client.post(base, json=_earning(date="2025-03-10"), headers=auth_headers)

    all_dates = [e["date"] for e in client.get(base, headers=auth_headers).json()["data"]]
    assert all_dates == ["2025-03-10", "2025-02-10", "2025-01-10"]

    urine = client.get(base, params={"type": "urine_sale"}, headers=auth_headers).json()["data"]
    assert len(urine) == 2

    ranged = client.get(base, params={"date_from": "2025-02-01", "date_to": "2025-02-28"}, headers=auth_headers)
    assert [e["type"] for e in ranged.json()["data"]] == ["manure_sale"]


def test_list_earnings_rejects_bad_limit(client, auth_headers, base):
    resp = client.get(base, params={"limit": "abc"}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Limit and offset must be valid integers"


def test_list_earnings_rejects_bad_date(client, auth_headers, base):
    resp = client.get(base, params={"date_from": "yesterday"}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "date_from must be a valid date (YYYY-MM-DD)"


def test_update_earnings(client, auth_headers, base):
    created = client.post(base, json=_earning(), headers=auth_headers).json()["data"]

    resp = client.put(f"{base}/{created['id']}", json={"amount": 20, "notes": "Bulk"}, headers=auth_headers)

    data = resp.json()["data"]
    assert data["amount"] == 20
    assert data["notes"] == "Bulk"
    assert data["type"] == "urine_sale"


def test_update_earnings_unknown_rabbit(client, auth_headers, base):
    created = client.post(base, json=_earning(), headers=auth_headers).json()["data"]

    resp = client.put(f"{base}/{created['id']}", json={"rabbit_id": "NOPE"}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Rabbit not found"


def test_delete_earnings(client, auth_headers, base):
    created = client.post(base, json=_earning(), headers=auth_headers).json()["data"]

    assert client.delete(f"{base}/{created['id']}", headers=auth_headers).status_code == 200

    missing = client.get(f"{base}/{created['id']}", headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Earnings record not found"
    assert client.delete(f"{base}/{created['id']}", headers=auth_headers).status_code == 404
