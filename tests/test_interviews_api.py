"""
API tests for /api/interviews, including the automatic move to interviewing.
"""

from datetime import datetime, timedelta

import pytest


def _schedule(client, headers, application_id, **extra):
    payload = {"application_id": application_id, "scheduled_at": "2030-05-01T15:00:00"}
    payload.update(extra)
    return client.post("/api/interviews", json=payload, headers=headers)


@pytest.mark.parametrize("status", ["saved", "applied"])
def test_scheduling_moves_application_to_interviewing(client, auth_headers, make_application, status):
    application = make_application(status=status)

    response = _schedule(client, auth_headers, application["id"], type="phone", interviewers=["Ana", "Raj"])
    assert response.status_code == 201
    interview = response.json()
    assert interview["status"] == "scheduled"
    assert interview["type"] == "phone"
    assert interview["interviewers"] == ["Ana", "Raj"]
    assert interview["application"]["job"]["title"] == "Backend Engineer"

    updated = client.get(f"/api/applications/{application['id']}", headers=auth_headers).json()
    assert updated["status"] == "interviewing"
    assert updated["applied_at"] is not None


@pytest.mark.parametrize("status", ["interviewing", "offer", "accepted", "rejected"])
def test_scheduling_leaves_later_statuses(client, auth_headers, make_application, status):
    application = make_application(status=status)
    assert _schedule(client, auth_headers, application["id"]).status_code == 201

    updated = client.get(f"/api/applications/{application['id']}", headers=auth_headers).json()
    assert updated["status"] == status


def test_requires_scheduled_at(client, auth_headers, make_application):
    application = make_application()
    response = client.post("/api/interviews", json={"application_id": application["id"]}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


def test_cannot_schedule_on_foreign_application(client, auth_headers, other_headers, make_application):
    application = make_application()
    response = _schedule(client, other_headers, application["id"])
    assert response.status_code == 404

    unchanged = client.get(f"/api/applications/{application['id']}", headers=auth_headers).json()
    assert unchanged["status"] == "saved"


def test_foreign_interview_indistinguishable_from_missing(client, auth_headers, other_headers, make_application):
    application = make_application()
    interview = _schedule(client, auth_headers, application["id"]).json()

    foreign = client.get(f"/api/interviews/{interview['id']}", headers=other_headers)
    missing = client.get("/api/interviews/424242", headers=other_headers)

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()
    assert client.put(
        f"/api/interviews/{interview['id']}", json={"status": "completed"}, headers=other_headers
    ).status_code == 404
    assert client.delete(f"/api/interviews/{interview['id']}", headers=other_headers).status_code == 404


def test_update_partial(client, auth_headers, make_application):
    application = make_application()
    interview = _schedule(client, auth_headers, application["id"], prep_notes="Review system design").json()

    response = client.put(
        f"/api/interviews/{interview['id']}",
        json={"status": "completed", "post_notes": "Went well"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["post_notes"] == "Went well"
    assert data["prep_notes"] == "Review system design"
    assert data["scheduled_at"] == interview["scheduled_at"]


def test_list_filters(client, auth_headers, make_application):
    application = make_application()
    future = (datetime.utcnow() + timedelta(days=3)).isoformat()
    past = (datetime.utcnow() - timedelta(days=3)).isoformat()

    upcoming = _schedule(client, auth_headers, application["id"], scheduled_at=future).json()
    done = _schedule(client, auth_headers, application["id"], scheduled_at=past).json()
    client.put(f"/api/interviews/{done['id']}", json={"status": "completed"}, headers=auth_headers)

    everything = client.get("/api/interviews", headers=auth_headers).json()
    assert [i["id"] for i in everything] == [done["id"], upcoming["id"]]

    only_upcoming = client.get("/api/interviews", params={"upcoming": "true"}, headers=auth_headers).json()
    assert [i["id"] for i in only_upcoming] == [upcoming["id"]]

    completed = client.get("/api/interviews", params={"status": "completed"}, headers=auth_headers).json()
    assert [i["id"] for i in completed] == [done["id"]]

    upcoming_wins = client.get(
        "/api/interviews", params={"upcoming": "true", "status": "completed"}, headers=auth_headers
    ).json()
    assert [i["id"] for i in upcoming_wins] == [upcoming["id"]]


def test_delete(client, auth_headers, make_application):
    application = make_application()
    interview = _schedule(client, auth_headers, application["id"]).json()

    assert client.delete(f"/api/interviews/{interview['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/interviews/{interview['id']}", headers=auth_headers).status_code == 404
