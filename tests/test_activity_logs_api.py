import pytest

from coursehub.schemas.notification import parse_queue_item
from factories import auth_headers, make_allocation, make_log, make_user

LOG_BODY = {
    "week_number": 3,
    "academic_year": "2024",
    "attendance_status": [True, True, True, False, True],
    "formative_one_grading": "Done",
    "summative_grading": "Pending",
}


@pytest.fixture()
def people(db):
    manager = make_user(db, "manager@example.com", role="manager")
    fac = make_user(db, "fac@example.com")
    other = make_user(db, "other@example.com")
    alloc = make_allocation(db, fac, manager=manager)
    other_alloc = make_allocation(db, other, manager=manager, course_code="CS102")
    return {"manager": manager, "fac": fac, "other": other, "alloc": alloc, "other_alloc": other_alloc}


def _alerts(redis_client, alerts):
    return [parse_queue_item(raw) for raw in redis_client.pending(alerts.name)]


def test_login_returns_bearer_token(client, db):
    make_user(db, "fac@example.com", password="Correct-Horse1")

    r = client.post("/api/v1/auth/login", data={"username": "fac@example.com", "password": "Correct-Horse1"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "fac@example.com"


def test_login_rejects_bad_password_with_error_envelope(client, db):
    make_user(db, "fac@example.com", password="Correct-Horse1")

    r = client.post("/api/v1/auth/login", data={"username": "fac@example.com", "password": "nope"})
    assert r.status_code == 401
    body = r.json()
    assert body["success"] is False
    assert body["error"]["status"] == 401
    assert r.headers["X-Request-ID"]


def test_requests_without_token_are_rejected(client):
    assert client.get("/api/v1/activities/logs").status_code == 401


def test_create_log_queues_submitted_alert(client, people, alerts, redis_client):
    r = client.post(
        "/api/v1/activities/logs",
        json={**LOG_BODY, "allocation_id": people["alloc"].id},
        headers=auth_headers(people["fac"]),
    )
    assert r.status_code == 201
    data = r.json()
    assert data["facilitator_id"] == people["fac"].id
    assert data["allocation_id"] == people["alloc"].id
    assert data["week_number"] == 3
    assert data["attendance_status"] == [True, True, True, False, True]
    assert data["formative_one_grading"] == "Done"
    assert data["summative_grading"] == "Pending"
    assert data["intranet_sync"] == "Not Started"
    assert data["completion_percentage"] == 17

    r = client.get(f"/api/v1/activities/logs/{data['id']}", headers=auth_headers(people["fac"]))
    assert r.status_code == 200
    assert r.json()["completion_percentage"] == 17

    (item,) = _alerts(redis_client, alerts)
    assert item.action == "submitted"
    assert item.log_id == data["id"]
    assert (item.week_number, item.academic_year) == (3, "2024")


def test_create_log_access_rules(client, people):
    body = {**LOG_BODY, "allocation_id": people["other_alloc"].id}
    r = client.post("/api/v1/activities/logs", json=body, headers=auth_headers(people["fac"]))
    assert r.status_code == 403

    r = client.post("/api/v1/activities/logs", json=body, headers=auth_headers(people["manager"]))
    assert r.status_code == 403

    body["allocation_id"] = 999
    r = client.post("/api/v1/activities/logs", json=body, headers=auth_headers(people["fac"]))
    assert r.status_code == 404


def test_duplicate_week_is_a_conflict(client, db, people):
    make_log(db, people["alloc"], week_number=3, academic_year="2024")
    r = client.post(
        "/api/v1/activities/logs",
        json={**LOG_BODY, "allocation_id": people["alloc"].id},
        headers=auth_headers(people["fac"]),
    )
    assert r.status_code == 409


def test_invalid_week_is_a_validation_error(client, people):
    r = client.post(
        "/api/v1/activities/logs",
        json={**LOG_BODY, "week_number": 60, "allocation_id": people["alloc"].id},
        headers=auth_headers(people["fac"]),
    )
    assert r.status_code == 422
    assert r.json()["error"]["type"] == "validation_error"


def test_queue_outage_does_not_fail_the_request(client, people, alerts, monkeypatch):
    def boom(item):
        raise ConnectionError("redis down")

    monkeypatch.setattr(alerts, "push", boom)
    r = client.post(
        "/api/v1/activities/logs",
        json={**LOG_BODY, "allocation_id": people["alloc"].id},
        headers=auth_headers(people["fac"]),
    )
    assert r.status_code == 201


def test_update_and_delete_queue_alerts(client, db, people, alerts, redis_client):
    row = make_log(db, people["alloc"], week_number=4)
    headers = auth_headers(people["fac"])

    r = client.put(f"/api/v1/activities/logs/{row.id}", json={"summative_grading": "Done"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["summative_grading"] == "Done"

    r = client.delete(f"/api/v1/activities/logs/{row.id}", headers=headers)
    assert r.status_code == 200
    assert client.get(f"/api/v1/activities/logs/{row.id}", headers=headers).status_code == 404

    updated, deleted = _alerts(redis_client, alerts)
    assert (updated.action, updated.log_id) == ("updated", row.id)
    assert (deleted.action, deleted.log_id, deleted.week_number) == ("deleted", row.id, 4)


def test_only_the_owner_may_change_a_log(client, db, people):
    row = make_log(db, people["alloc"], week_number=4)
    headers = auth_headers(people["other"])

    assert client.put(f"/api/v1/activities/logs/{row.id}", json={"intranet_sync": "Done"}, headers=headers).status_code == 403
    assert client.delete(f"/api/v1/activities/logs/{row.id}", headers=headers).status_code == 403
    assert client.get(f"/api/v1/activities/logs/{row.id}", headers=headers).status_code == 403


def test_listing_is_scoped_by_role(client, db, people):
    for week in (1, 2, 3):
        make_log(db, people["alloc"], week_number=week)
    make_log(db, people["other_alloc"], week_number=1)

    r = client.get("/api/v1/activities/logs", params={"limit": 2}, headers=auth_headers(people["fac"]))
    assert r.status_code == 200
    page = r.json()
    assert page["total"] == 3
    assert page["pages"] == 2
    assert len(page["items"]) == 2
    assert {i["facilitator_id"] for i in page["items"]} == {people["fac"].id}

    r = client.get("/api/v1/activities/logs", headers=auth_headers(people["manager"]))
    assert r.json()["total"] == 4

    r = client.get(
        "/api/v1/activities/logs",
        params={"facilitator_id": people["other"].id},
        headers=auth_headers(people["manager"]),
    )
    assert r.json()["total"] == 1


def test_stats_are_manager_only(client, db, people):
    make_log(db, people["alloc"], week_number=1)

    assert client.get("/api/v1/activities/stats", headers=auth_headers(people["fac"])).status_code == 403

    r = client.get("/api/v1/activities/stats", headers=auth_headers(people["manager"]))
    assert r.status_code == 200
    stats = r.json()
    assert stats["total_logs"] == 1
    assert stats["total_activities"] == 6
    assert stats["status_counts"] == {"Done": 1, "Pending": 0, "Not Started": 5}
    assert stats["completion_rate"] == "16.67%"


def test_healthz(client):
    r = client.get("/api/healthz")
    assert r.status_code == 200
    assert r.json()["ok"] is True


@pytest.mark.parametrize("field", ["week_number", "academic_year", "formative_one_grading", "attendance_status"])
def test_update_rejects_explicit_nulls(client, db, people, alerts, redis_client, field):
    row = make_log(db, people["alloc"], week_number=4)

    r = client.put(f"/api/v1/activities/logs/{row.id}", json={field: None}, headers=auth_headers(people["fac"]))
    assert r.status_code == 422
    assert r.json()["error"]["type"] == "validation_error"
    assert _alerts(redis_client, alerts) == []


def test_update_keeps_omitted_fields_and_may_clear_notes(client, db, people):
    row = make_log(db, people["alloc"], week_number=4)
    headers = auth_headers(people["fac"])

    r = client.put(f"/api/v1/activities/logs/{row.id}", json={"additional_notes": "late marking"}, headers=headers)
    assert r.json()["additional_notes"] == "late marking"

    r = client.put(f"/api/v1/activities/logs/{row.id}", json={"additional_notes": None}, headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["additional_notes"] is None
    assert body["week_number"] == 4
    assert body["formative_one_grading"] == "Done"


def test_update_into_an_existing_week_is_a_conflict(client, db, people):
    make_log(db, people["alloc"], week_number=4)
    row = make_log(db, people["alloc"], week_number=5)

    r = client.put(f"/api/v1/activities/logs/{row.id}", json={"week_number": 4}, headers=auth_headers(people["fac"]))
    assert r.status_code == 409


def test_manager_reads_any_log_but_foreign_facilitator_does_not(client, db, people):
    row = make_log(db, people["other_alloc"], week_number=2)

    assert client.get(f"/api/v1/activities/logs/{row.id}", headers=auth_headers(people["fac"])).status_code == 403
    r = client.get(f"/api/v1/activities/logs/{row.id}", headers=auth_headers(people["manager"]))
    assert r.status_code == 200
    assert r.json()["facilitator_id"] == people["other"].id
