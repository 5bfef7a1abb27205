from datetime import date

import pytest

from conftest import rabbit_payload
from models.earnings import EarningsRecord
from models.rabbit import RemovalRecord


def _create(client, farm, headers, rabbit_id, **kwargs):
    return client.post(f"/farms/{farm['id']}/rabbits", json=rabbit_payload(rabbit_id, **kwargs), headers=headers)


def test_create_rabbit_in_hutch_marks_it_occupied(client, auth_headers, farm, hutch):
    resp = _create(client, farm, auth_headers, "RB-1", hutch_id="H1")

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["rabbit_id"] == "RB-1"
    assert data["gender"] == "female"
    assert data["hutch_id"] == "H1"

    hutch_data = client.get(f"/farms/{farm['id']}/hutches/H1", headers=auth_headers).json()["data"]
    assert hutch_data["is_occupied"] is True


def test_duplicate_rabbit_id(client, auth_headers, farm):
    _create(client, farm, auth_headers, "RB-1")
    resp = _create(client, farm, auth_headers, "RB-1")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Rabbit ID already exists"


def test_create_rabbit_in_unknown_hutch(client, auth_headers, farm):
    resp = _create(client, farm, auth_headers, "RB-1", hutch_id="NOPE")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Hutch not found"


def test_hutch_holds_at_most_six_rabbits(client, auth_headers, farm, hutch):
    for n in range(6):
        assert _create(client, farm, auth_headers, f"RB-{n}", hutch_id="H1").status_code == 201

    resp = _create(client, farm, auth_headers, "RB-7", hutch_id="H1")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Hutch cannot have more than 6 rabbits"


def test_invalid_gender_is_rejected(client, auth_headers, farm):
    resp = _create(client, farm, auth_headers, "RB-1", gender="unknown")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation failed"


def test_list_rabbits_by_hutch(client, auth_headers, farm, hutch):
    _create(client, farm, auth_headers, "RB-1", hutch_id="H1")
    _create(client, farm, auth_headers, "RB-2")

    resp = client.get(f"/farms/{farm['id']}/rabbits", params={"hutch_id": "H1"}, headers=auth_headers)

    assert [r["rabbit_id"] for r in resp.json()["data"]] == ["RB-1"]
    assert len(client.get(f"/farms/{farm['id']}/rabbits", headers=auth_headers).json()["data"]) == 2


def test_move_rabbit_between_hutches(client, auth_headers, farm, hutch):
    base = f"/farms/{farm['id']}"
    client.post(
        f"{base}/hutches",
        json={"id": "H2", "level": "B", "position": 1, "size": "medium", "material": "wire"},
        headers=auth_headers,
    )
    _create(client, farm, auth_headers, "RB-1", hutch_id="H1")

    resp = client.put(f"{base}/rabbits/RB-1", json={"hutch_id": "H2", "weight": 3.9}, headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["hutch_id"] == "H2"
    assert resp.json()["data"]["weight"] == 3.9

    h1 = client.get(f"{base}/hutches/H1", headers=auth_headers).json()["data"]
    h2 = client.get(f"{base}/hutches/H2", headers=auth_headers).json()["data"]
    assert h1["is_occupied"] is False
    assert h2["is_occupied"] is True

    history = client.get(f"{base}/rabbits/RB-1", headers=auth_headers).json()["data"]["history"]
    assert [h["hutch_id"] for h in history] == ["H1", "H2"]
    assert history[0]["removed_at"] is not None
    assert history[1]["removed_at"] is None


def test_get_unknown_rabbit(client, auth_headers, farm):
    resp = client.get(f"/farms/{farm['id']}/rabbits/NOPE", headers=auth_headers)

    assert resp.status_code == 404
    assert resp.json()["message"] == "Rabbit not found"


def test_removal_requires_reason(client, auth_headers, farm):
    _create(client, farm, auth_headers, "RB-1")

    resp = client.post(f"/farms/{farm['id']}/rabbits/RB-1/removal", json={"notes": "?"}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Removal reason is required"


def test_sale_removal_records_earnings(client, auth_headers, farm, hutch, db_session):
    _create(client, farm, auth_headers, "RB-1", hutch_id="H1")

    resp = client.post(
        f"/farms/{farm['id']}/rabbits/RB-1/removal",
        json={"reason": "Sale", "sale_amount": 25.5, "sale_weight": 2.8, "sold_to": "Butcher", "date": "2025-03-05"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Rabbit removed successfully", "data": {"rabbit_id": "RB-1"}}

    removal = db_session.query(RemovalRecord).one()
    assert removal.reason == "Sale"
    assert removal.hutch_id == "H1"

    earning = db_session.query(EarningsRecord).one()
    assert earning.type == "rabbit_sale"
    assert earning.amount == 25.5
    assert earning.currency == "USD"
    assert earning.sale_type == "whole"
    assert earning.date == date(2025, 3, 5)
    assert earning.buyer_name == "Butcher"

    assert client.get(f"/farms/{farm['id']}/rabbits/RB-1", headers=auth_headers).status_code == 404
    h1 = client.get(f"/farms/{farm['id']}/hutches/H1", headers=auth_headers).json()["data"]
    assert h1["is_occupied"] is False
    assert h1["rabbits"] == []


@pytest.mark.parametrize("sale, message", [
    ({"sale_type": "bogus"}, "Sale type must be whole, processed, or live"),
    ({"currency": "dollars"}, "Currency must be a valid 3-letter code"),
])
def test_sale_removal_validates_sale_fields(client, auth_headers, farm, db_session, sale, message):
    _create(client, farm, auth_headers, "RB-1")

    resp = client.post(
        f"/farms/{farm['id']}/rabbits/RB-1/removal",
        json={"reason": "Sale", "sale_amount": 10, **sale},
        headers=auth_headers,
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == message
    assert db_session.query(EarningsRecord).count() == 0
    assert client.get(f"/farms/{farm['id']}/rabbits/RB-1", headers=auth_headers).status_code == 200


def test_death_removal_has_no_earnings(client, auth_headers, farm, db_session):
    _create(client, farm, auth_headers, "RB-1")

    resp = client.post(f"/farms/{farm['id']}/rabbits/RB-1/removal", json={"reason": "Death"}, headers=auth_headers)

    assert resp.status_code == 200
    assert db_session.query(EarningsRecord).count() == 0
    assert db_session.query(RemovalRecord).one().date is not None


def test_remove_unknown_rabbit(client, auth_headers, farm):
    resp = client.post(f"/farms/{farm['id']}/rabbits/NOPE/removal", json={"reason": "Death"}, headers=auth_headers)

    assert resp.status_code == 404
    assert resp.json()["message"] == "Rabbit not found"
