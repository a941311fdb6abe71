from __future__ import annotations

from datetime import date

import pytest

from src.attendance_excuses.attendance_excuses.core.enums import ExcuseStatus, Presence
from src.attendance_excuses.attendance_excuses.main import create_app

DIRECTOR = {"X-User-Id": "1", "X-User-Role": "director"}
TEACHER = {"X-User-Id": "2", "X-User-Role": "teacher"}
PARENT = {"X-User-Id": "30", "X-User-Role": "parent"}


@pytest.fixture
def client(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=container)
    return app.test_client()


def _future_excuse(client, child_id=1, headers=PARENT):
    return client.post(
        "/api/excuses",
        json={"child_id": child_id, "from_date": "2099-03-02", "to_date": "2099-03-03", "reason": "Trip"},
        headers=headers,
    )


def test_missing_identity_is_401(client):
    resp = client.get("/api/children")

    assert resp.status_code == 401
    assert "error" in resp.get_json()


def test_unknown_role_is_401(client):
    assert client.get("/api/children", headers={"X-User-Id": "1", "X-User-Role": "janitor"}).status_code == 401


def test_parent_sees_only_own_children(client):
    resp = client.get("/api/children", headers=PARENT)

    assert resp.status_code == 200
    assert sorted(c["child_id"] for c in resp.get_json()) == [1, 2]


def test_parent_submits_excuse(client, notifier):
    resp = _future_excuse(client)

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["excuse"]["auto_approved"] is True
    assert body["excuse"]["submitted_by"] == 30
    assert len(notifier.sent) == 1


def test_teacher_cannot_submit_excuse(client):
    assert _future_excuse(client, headers=TEACHER).status_code == 403


def test_parent_cannot_excuse_other_child(client, repos):
    assert _future_excuse(client, child_id=3).status_code == 403
    assert repos.store.excuses == {}


def test_too_long_excuse_is_400(client):
    resp = client.post(
        "/api/excuses",
        json={"child_id": 1, "from_date": "2099-01-01", "to_date": "2099-02-15"},
        headers=PARENT,
    )

    assert resp.status_code == 400
    assert "30" in resp.get_json()["error"]


def test_malformed_date_is_400(client):
    resp = client.post("/api/excuses", json={"child_id": 1, "from_date": "15.1.2024", "to_date": "2099-01-01"}, headers=PARENT)

    assert resp.status_code == 400


def test_deadline_endpoint(client):
    resp = client.get("/api/excuses/deadline?from_date=2024-01-15", headers=PARENT)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["deadline"] == "2024-01-14T09:00:00"
    assert body["deadline_label"] == "Sunday 14 January, 09:00"
    assert body["can_auto_approve"] is False
    assert body["is_past"] is True


def test_director_overrides_and_deletes(client, repos):
    excuse_id = _future_excuse(client).get_json()["excuse"]["excuse_id"]

    resp = client.post(f"/api/excuses/{excuse_id}/override", json={"auto_approved": False}, headers=DIRECTOR)
    assert resp.status_code == 200
    assert resp.get_json()["auto_approved"] is False

    pending = client.get("/api/excuses?pending=1", headers=DIRECTOR).get_json()
    assert [e["excuse_id"] for e in pending] == [excuse_id]

    assert client.delete(f"/api/excuses/{excuse_id}", headers=DIRECTOR).status_code == 200
    assert repos.store.excuses == {}


def test_override_requires_director(client):
    excuse_id = _future_excuse(client).get_json()["excuse"]["excuse_id"]

    resp = client.post(f"/api/excuses/{excuse_id}/override", json={"auto_approved": True}, headers=PARENT)

    assert resp.status_code == 403


def test_override_unknown_excuse_is_404(client):
    resp = client.post("/api/excuses/999/override", json={"auto_approved": True}, headers=DIRECTOR)

    assert resp.status_code == 404


def test_edit_excuse(client):
    excuse_id = _future_excuse(client).get_json()["excuse"]["excuse_id"]

    resp = client.put(
        f"/api/excuses/{excuse_id}",
        json={"from_date": "2099-03-03", "to_date": "2099-03-05"},
        headers=DIRECTOR,
    )

    assert resp.status_code == 200
    assert resp.get_json()["from_date"] == "2099-03-03"
    assert resp.get_json()["reason"] == "Trip"


def test_bulk_attendance(client, repos):
    resp = client.post(
        "/api/attendance",
        json={
            "date": "2024-01-15",
            "records": [{"child_id": 1, "presence": "PRESENT"}, {"child_id": 2, "presence": "ABSENT"}],
        },
        headers=TEACHER,
    )

    assert resp.status_code == 201
    assert resp.get_json()["record_count"] == 2
    row = repos.attendance.get_for_child_and_date(2, date(2024, 1, 15))
    assert row.presence == Presence.ABSENT
    assert row.excuse_status == ExcuseStatus.UNEXCUSED


def test_bulk_attendance_on_weekend_is_rejected(client, repos):
    resp = client.post(
        "/api/attendance",
        json={"date": "2024-01-13", "records": [{"child_id": 1, "presence": "PRESENT"}]},
        headers=TEACHER,
    )

    assert resp.status_code == 400
    assert repos.store.attendance == {}


def test_parent_cannot_record_attendance(client):
    resp = client.post("/api/attendance", json={"date": "2024-01-15", "records": []}, headers=PARENT)

    assert resp.status_code == 403


def test_child_stats(client, ledger):
    ledger.record_attendance(1, date(2024, 1, 15), Presence.PRESENT, 2)
    ledger.record_attendance(1, date(2024, 1, 16), Presence.ABSENT, 2)

    resp = client.get("/api/children/1/stats?start=2024-01-15&end=2024-01-18", headers=PARENT)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["total_days"] == 4
    assert body["present"] == 1
    assert body["unexcused"] == 1
    assert body["attendance_rate"] == 25.0


def test_parent_cannot_read_other_childs_history(client):
    assert client.get("/api/children/3/attendance", headers=PARENT).status_code == 403


def test_closed_days_admin(client):
    resp = client.post("/api/closed-days", json={"date": "2024-12-23", "description": "Winter break"}, headers=DIRECTOR)
    assert resp.status_code == 201
    closed_day_id = resp.get_json()["closed_day_id"]

    listed = client.get("/api/closed-days?year=2024", headers=DIRECTOR).get_json()
    assert [cd["date"] for cd in listed] == ["2024-12-23"]

    duplicate = client.post("/api/closed-days", json={"date": "2024-12-23"}, headers=DIRECTOR)
    assert duplicate.status_code == 400

    assert client.delete(f"/api/closed-days/{closed_day_id}", headers=DIRECTOR).status_code == 200
    assert client.delete(f"/api/closed-days/{closed_day_id}", headers=DIRECTOR).status_code == 404


def test_school_day_check(client):
    resp = client.get("/api/school-days/check?date=2024-01-19", headers=TEACHER)

    assert resp.get_json() == {
        "date": "2024-01-19",
        "is_teaching_day": False,
        "is_closed": True,
        "next_school_day": "2024-01-22",
    }


def test_audit_log_is_director_only(client):
    _future_excuse(client)

    assert client.get("/api/audit", headers=TEACHER).status_code == 403

    entries = client.get("/api/audit?limit=5", headers=DIRECTOR).get_json()
    assert [e["entity_type"] for e in entries] == ["Excuse"]
    assert entries[0]["action"] == "CREATE"


def test_dashboard_is_director_only(client):
    assert client.get("/api/dashboard", headers=TEACHER).status_code == 403


def test_dashboard(client, ledger, reconciler):
    today = date.today()
    ledger.record_attendance(1, today, Presence.PRESENT, 2)
    ledger.record_attendance(2, today, Presence.ABSENT, 2)
    late = reconciler.submit(2, today, today, "Fever", 30)

    body = client.get("/api/dashboard", headers=DIRECTOR).get_json()

    assert body["today"] == {"date": today.isoformat(), "present": 1, "absent": 1, "total": 3, "recorded": True}
    assert body["month"]["total_records"] == 2
    assert body["month"]["unexcused"] == 1
    assert [e["excuse_id"] for e in body["recent_excuses"]] == [late.excuse_id]
    assert body["recent_excuses"][0]["child_name"] == "Jakub Novak"


def test_school_week(client, repos):
    repos.closed_days.create(day=date(2024, 1, 17))

    resp = client.get("/api/school-days/week?date=2024-01-20", headers=PARENT)

    assert resp.get_json() == [
        {"date": "2024-01-15", "is_teaching_day": True},
        {"date": "2024-01-16", "is_teaching_day": True},
        {"date": "2024-01-17", "is_teaching_day": False},
        {"date": "2024-01-18", "is_teaching_day": True},
    ]
