import pytest

from conftest import rabbit_payload
from models.alert import Alert, Notification
from models.breeding import KitRecord
from models.rabbit import Rabbit


@pytest.fixture
def base(farm):
    return f"/farms/{farm['id']}"


@pytest.fixture
def parents(client, auth_headers, base):
    for rabbit_id, gender in (("D1", "female"), ("D2", "female"), ("B1", "male")):
        resp = client.post(f"{base}/rabbits", json=rabbit_payload(rabbit_id, gender=gender), headers=auth_headers)
        assert resp.status_code == 201


def _breed(client, headers, base, doe="D1", buck="B1", mating="2025-03-01", expected="2025-03-31"):
    return client.post(
        f"{base}/breeding-records",
        json={"doe_id": doe, "buck_id": buck, "mating_date": mating, "expected_birth_date": expected},
        headers=headers,
    )


def _birth(client, headers, base, record_id, born="2025-03-31", kits=7):
    return client.put(
        f"{base}/breeding-records/{record_id}",
        json={"actual_birth_date": born, "number_of_kits": kits},
        headers=headers,
    )


def _kit(record_id, number, **extra):
    body = {"breeding_record_id": record_id, "kit_number": number, "birth_weight": 0.06}
    body.update(extra)
    return body


@pytest.fixture
def record(client, auth_headers, base, parents):
    resp = _breed(client, auth_headers, base)
    assert resp.status_code == 201
    return resp.json()["data"]


@pytest.fixture
def born_record(client, auth_headers, base, record):
    resp = _birth(client, auth_headers, base, record["id"])
    assert resp.status_code == 200
    return resp.json()["data"]


# -------------------------------------------------------------------
# Cruzas
# -------------------------------------------------------------------
def test_breeding_marks_doe_pregnant_and_schedules_alerts(record, db_session):
    doe = db_session.query(Rabbit).filter(Rabbit.rabbit_id == "D1").one()
    assert doe.is_pregnant is True
    assert str(doe.expected_birth_date) == "2025-03-31"
    assert str(record["alert_date"]) == "2025-03-22"

    alerts = db_session.query(Alert).filter(Alert.rabbit_id == "D1").all()
    assert len(alerts) == 6
    assert sorted(a.alert_type for a in alerts).count("birth") == 4

    nesting = next(a for a in alerts if a.name == "Add Nesting Box for D1")
    assert nesting.severity == "high"
    assert nesting.message == "Add nesting box for rabbit D1 on hutch unknown by March 27, 2025"
    assert nesting.status == "pending"


def test_doe_must_be_female(client, auth_headers, base, parents):
    resp = _breed(client, auth_headers, base, doe="B1")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Doe not found or invalid"


def test_buck_must_be_male(client, auth_headers, base, parents):
    resp = _breed(client, auth_headers, base, buck="D2")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Buck not found or invalid"


def test_buck_rests_three_days(client, auth_headers, base, record):
    resp = _breed(client, auth_headers, base, doe="D2", mating="2025-03-03", expected="2025-04-02")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Buck has served within the last 3 days"

    assert _breed(client, auth_headers, base, doe="D2", mating="2025-03-05", expected="2025-04-04").status_code == 201


def test_doe_rests_after_weaning(client, auth_headers, base, born_record):
    resp = _breed(client, auth_headers, base, mating="2025-05-10", expected="2025-06-09")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Doe cannot be served within 1 week of weaning"

    assert _breed(client, auth_headers, base, mating="2025-05-19", expected="2025-06-18").status_code == 201


def test_birth_completes_breeding_alerts_and_schedules_care(client, auth_headers, base, born_record, db_session):
    doe = db_session.query(Rabbit).filter(Rabbit.rabbit_id == "D1").one()
    assert doe.is_pregnant is False
    assert str(doe.actual_birth_date) == "2025-03-31"

    statuses = {a.name: a.status for a in db_session.query(Alert).filter(Alert.alert_type == "breeding")}
    assert set(statuses.values()) == {"completed"}

    names = {a.name for a in db_session.query(Alert).filter(Alert.status == "pending")}
    assert {"Fostering Check for D1", "Remove Nesting Box for D1", "Wean Kits for D1"} <= names
    assert db_session.query(Notification).count() == 0


def test_small_litter_triggers_culling_notification(client, auth_headers, base, record, db_session):
    _birth(client, auth_headers, base, record["id"], kits=4)

    notice = db_session.query(Notification).one()
    assert notice.type == "culling_alert"
    assert notice.priority == "high"
    assert notice.message == "Doe D1 recommended for culling due to litter size 4."


def test_three_small_litters_trigger_generational_culling(client, auth_headers, base, parents, db_session):
    cycles = [
        ("2024-01-01", "2024-01-31"),
        ("2024-03-20", "2024-04-19"),
        ("2024-06-07", "2024-07-07"),
    ]
    for mating, born in cycles:
        rec = _breed(client, auth_headers, base, mating=mating, expected=born)
        assert rec.status_code == 201
        _birth(client, auth_headers, base, rec.json()["data"]["id"], born=born, kits=3)

    last = db_session.query(Notification).order_by(Notification.created_at.desc(), Notification.id).all()
    assert any("over 3 generations" in n.message for n in last)


def test_list_and_get_breeding_records_include_kits(client, auth_headers, base, born_record):
    client.post(f"{base}/kits", json={"kitz": [_kit(born_record["id"], "K1")]}, headers=auth_headers)

    listed = client.get(f"{base}/breeding-records", headers=auth_headers).json()["data"]
    assert [k["kit_number"] for k in listed[0]["kits"]] == ["K1"]

    single = client.get(f"{base}/breeding-records/{born_record['id']}", headers=auth_headers).json()["data"]
    assert single["number_of_kits"] == 7
    assert len(single["kits"]) == 1


def test_breeding_history(client, auth_headers, base, record):
    resp = client.get(f"{base}/breeding-records/history/D1", headers=auth_headers)
    assert [r["id"] for r in resp.json()["data"]] == [record["id"]]

    missing = client.get(f"{base}/breeding-records/history/D2", headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Breeding record not found"


def test_delete_unborn_record_clears_pregnancy(client, auth_headers, base, record, db_session):
    resp = client.delete(f"{base}/breeding-records/{record['id']}", headers=auth_headers)

    assert resp.status_code == 200
    doe = db_session.query(Rabbit).filter(Rabbit.rabbit_id == "D1").one()
    assert doe.is_pregnant is False
    assert {a.status for a in db_session.query(Alert).filter(Alert.rabbit_id == "D1")} == {"rejected"}
    assert client.get(f"{base}/breeding-records/{record['id']}", headers=auth_headers).status_code == 404


# -------------------------------------------------------------------
# Crías
# -------------------------------------------------------------------
def test_create_kits_sets_weaning_and_relocation_alert(client, auth_headers, base, born_record, db_session):
    resp = client.post(
        f"{base}/kits",
        json={"kitz": [_kit(born_record["id"], "K1"), _kit(born_record["id"], "K2", gender="male")]},
        headers=auth_headers,
    )

    assert resp.status_code == 201
    assert resp.json()["message"] == "2 kits created successfully"
    kits = resp.json()["data"]
    assert {k["weaning_date"] for k in kits} == {"2025-05-12"}
    assert {k["parent_female_id"] for k in kits} == {"D1"}
    assert {k["parent_male_id"] for k in kits} == {"B1"}

    relocation = db_session.query(Alert).filter(Alert.name == "Relocate Kits for D1").one()
    assert relocation.message == "Relocate kits for rabbit D1 to individual hutches by May 12, 2025"


def test_create_kits_requires_list(client, auth_headers, base):
    resp = client.post(f"{base}/kits", json={"kitz": []}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "kitz array is required and must not be empty"


def test_create_kits_unknown_record(client, auth_headers, base, born_record):
    resp = client.post(f"{base}/kits", json={"kitz": [_kit("nope", "K1")]}, headers=auth_headers)

    assert resp.json()["message"] == "One or more breeding records not found"


def test_create_kits_over_litter_size(client, auth_headers, base, record):
    _birth(client, auth_headers, base, record["id"], kits=2)
    kitz = [_kit(record["id"], f"K{n}") for n in range(4)]

    resp = client.post(f"{base}/kits", json={"kitz": kitz}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == (
        f"Total kits significantly exceed breeding record litter size for breeding record {record['id']}"
    )


def test_create_kits_duplicate_numbers(client, auth_headers, base, born_record):
    rid = born_record["id"]
    client.post(f"{base}/kits", json={"kitz": [_kit(rid, "K1")]}, headers=auth_headers)

    resp = client.post(f"{base}/kits", json={"kitz": [_kit(rid, "K1"), _kit(rid, "K2"), _kit(rid, "K2")]},
                       headers=auth_headers)

    assert resp.json()["message"] == "Duplicate kit numbers: K2, K1"


@pytest.mark.parametrize("extra, message", [
    ({"parent_male_id": "ZZ"}, "Invalid parent IDs: ZZ"),
    ({"parent_female_id": "B1"}, "Parent female ID B1 is not a doe"),
])
def test_create_kits_parent_checks(client, auth_headers, base, born_record, extra, message):
    resp = client.post(f"{base}/kits", json={"kitz": [_kit(born_record["id"], "K1", **extra)]}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == message


def test_create_kits_doe_must_match_record(client, auth_headers, base, born_record):
    resp = client.post(
        f"{base}/kits",
        json={"kitz": [_kit(born_record["id"], "K1", parent_female_id="D2")]},
        headers=auth_headers,
    )

    assert resp.json()["message"] == f"Breeding record {born_record['id']} does not match doe D2"


def test_update_kit(client, auth_headers, base, born_record):
    kit = client.post(f"{base}/kits", json={"kitz": [_kit(born_record["id"], "K1")]}, headers=auth_headers)
    kit_id = kit.json()["data"][0]["id"]

    ok = client.put(f"{base}/kits/{kit_id}", json={"weaning_weight": 0.9, "status": "weaned"}, headers=auth_headers)
    assert ok.json()["data"]["status"] == "weaned"
    assert ok.json()["data"]["weaning_weight"] == 0.9

    bad_weight = client.put(f"{base}/kits/{kit_id}", json={"birth_weight": -1}, headers=auth_headers)
    assert bad_weight.json()["message"] == "Birth weight must be a positive number"

    bad_mother = client.put(f"{base}/kits/{kit_id}", json={"parent_female_id": "B1"}, headers=auth_headers)
    assert bad_mother.json()["message"] == "Parent female rabbit must be a doe (female)"

    missing = client.put(f"{base}/kits/nope", json={"status": "dead"}, headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Kit record not found"


def test_update_kit_ignores_null_fields(client, auth_headers, base, born_record):
    kit = client.post(f"{base}/kits", json={"kitz": [_kit(born_record["id"], "K1")]}, headers=auth_headers)
    kit_id = kit.json()["data"][0]["id"]
    status = kit.json()["data"][0]["status"]

    resp = client.put(f"{base}/kits/{kit_id}", json={"status": None, "notes": "x"}, headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == status
    assert resp.json()["data"]["notes"] == "x"


def test_delete_record_soft_deletes_kits(client, auth_headers, base, born_record, db_session):
    client.post(f"{base}/kits", json={"kitz": [_kit(born_record["id"], "K1")]}, headers=auth_headers)

    client.delete(f"{base}/breeding-records/{born_record['id']}", headers=auth_headers)

    assert db_session.query(KitRecord).filter(KitRecord.is_deleted == 1).count() == 1
