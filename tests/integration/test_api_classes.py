"""Integration tests for the Classes API endpoints.

Endpoints tested
----------------
GET    /api/classes                   — list with search, subjectId, teacherId, status
GET    /api/classes/{class_id}        — detail with subject, department and teacher
GET    /api/classes/{class_id}/users  — enrolled users with search/role filters
POST   /api/classes                   — create with generated invite code and defaults
PUT    /api/classes/{class_id}        — partial update
DELETE /api/classes/{class_id}        — delete, cascading to enrollments
"""

from __future__ import annotations

import re

from tests.fixtures.factories import (
    create_class,
    create_department,
    create_subject,
    enroll,
    register_user,
)

INVITE_CODE = re.compile(r"^[A-Z0-9]{6}$")


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def test_create_class_applies_defaults(auth_client):
    """capacity 50, status active, schedules [] and a 6-character upper-case code."""
    department = create_department(auth_client, name="Computing")
    subject = create_subject(auth_client, department_id=department["id"], code="CS50")

    response = auth_client.post(
        "/api/classes", json={"name": "Intro A", "subjectId": subject["id"]}
    )

    assert response.status_code == 201, response.text
    created = response.json()["data"]
    assert created["capacity"] == 50
    assert created["status"] == "active"
    assert created["schedules"] == []
    assert INVITE_CODE.match(created["inviteCode"]), f"Bad invite code {created['inviteCode']!r}"
    assert created["subject"] == {"id": subject["id"], "name": subject["name"], "code": "CS50"}
    assert created["department"] == {"id": department["id"], "name": "Computing"}
    assert created["teacher"] is None


def test_invite_codes_are_unique(auth_client):
    subject = create_subject(auth_client)

    codes = {create_class(auth_client, subject_id=subject["id"])["inviteCode"] for _ in range(10)}

    assert len(codes) == 10


def test_create_class_with_teacher_and_schedule(auth_client):
    teacher = register_user(auth_client, name="Grace Teacher", role="teacher")["user"]
    schedule = [{"day": "Monday", "startTime": "09:00", "endTime": "10:30"}]

    created = create_class(
        auth_client,
        teacherId=teacher["id"],
        capacity=12,
        status="inactive",
        schedules=schedule,
    )

    assert created["teacher"]["name"] == "Grace Teacher"
    assert created["teacherId"] == teacher["id"]
    assert created["capacity"] == 12
    assert created["status"] == "inactive"
    assert created["schedules"] == schedule


def test_create_class_missing_references(auth_client):
    subject = create_subject(auth_client)

    no_subject = auth_client.post("/api/classes", json={"name": "X", "subjectId": 999})
    no_teacher = auth_client.post(
        "/api/classes",
        json={"name": "X", "subjectId": subject["id"], "teacherId": "nobody"},
    )

    assert no_subject.status_code == 404
    assert no_subject.json()["message"] == "Subject not found"
    assert no_teacher.status_code == 404
    assert no_teacher.json()["message"] == "Teacher not found"


def test_create_class_rejects_bad_schedule_and_capacity(auth_client):
    subject = create_subject(auth_client)

    backwards = auth_client.post(
        "/api/classes",
        json={
            "name": "X",
            "subjectId": subject["id"],
            "schedules": [{"day": "Friday", "startTime": "11:00", "endTime": "10:00"}],
        },
    )
    zero_capacity = auth_client.post(
        "/api/classes", json={"name": "X", "subjectId": subject["id"], "capacity": 0}
    )
    bad_status = auth_client.post(
        "/api/classes", json={"name": "X", "subjectId": subject["id"], "status": "paused"}
    )

    assert backwards.status_code == 400
    assert zero_capacity.status_code == 400
    assert bad_status.status_code == 400


# ---------------------------------------------------------------------------
# List / get
# ---------------------------------------------------------------------------


def test_list_classes_filters(auth_client):
    teacher = register_user(auth_client, role="teacher")["user"]
    subject_a = create_subject(auth_client)
    subject_b = create_subject(auth_client)
    create_class(auth_client, subject_id=subject_a["id"], name="Morning Algebra")
    create_class(
        auth_client, subject_id=subject_a["id"], name="Evening Algebra", status="archived"
    )
    taught = create_class(auth_client, subject_id=subject_b["id"], teacherId=teacher["id"])

    by_subject = auth_client.get("/api/classes", params={"subjectId": subject_a["id"]}).json()
    by_status = auth_client.get("/api/classes", params={"status": "archived"}).json()
    by_teacher = auth_client.get("/api/classes", params={"teacherId": teacher["id"]}).json()
    by_search = auth_client.get("/api/classes", params={"search": "morning"}).json()
    by_code = auth_client.get(
        "/api/classes", params={"search": taught["inviteCode"].lower()}
    ).json()

    assert by_subject["pagination"]["total"] == 2
    assert [c["name"] for c in by_status["data"]] == ["Evening Algebra"]
    assert [c["id"] for c in by_teacher["data"]] == [taught["id"]]
    assert [c["name"] for c in by_search["data"]] == ["Morning Algebra"]
    assert [c["id"] for c in by_code["data"]] == [taught["id"]]


def test_list_classes_rejects_bad_filters(auth_client):
    assert auth_client.get("/api/classes", params={"status": "paused"}).status_code == 400
    assert auth_client.get("/api/classes", params={"subjectId": "x"}).status_code == 400


def test_get_class_detail(auth_client):
    created = create_class(auth_client)

    response = auth_client.get(f"/api/classes/{created['id']}")

    assert response.status_code == 200
    detail = response.json()["data"]
    assert detail["inviteCode"] == created["inviteCode"]
    assert detail["subject"]["id"] == created["subjectId"]
    assert auth_client.get("/api/classes/0").status_code == 400
    assert auth_client.get("/api/classes/4242").status_code == 404


# ---------------------------------------------------------------------------
# Enrolled users
# ---------------------------------------------------------------------------


def test_list_class_users(auth_client):
    section = create_class(auth_client)
    alice = register_user(auth_client, name="Alice Student")["user"]
    bob = register_user(auth_client, name="Bob Student")["user"]
    register_user(auth_client, name="Carol Outsider")
    assert enroll(auth_client, section["id"], alice["id"]).status_code == 201
    assert enroll(auth_client, section["id"], bob["id"]).status_code == 201

    everyone = auth_client.get(f"/api/classes/{section['id']}/users").json()
    searched = auth_client.get(
        f"/api/classes/{section['id']}/users", params={"search": "alice"}
    ).json()
    teachers = auth_client.get(
        f"/api/classes/{section['id']}/users", params={"role": "teacher"}
    ).json()

    assert [u["name"] for u in everyone["data"]] == ["Bob Student", "Alice Student"]
    assert everyone["pagination"]["total"] == 2
    assert [u["id"] for u in searched["data"]] == [alice["id"]]
    assert teachers["data"] == []


def test_list_class_users_unknown_class(auth_client):
    response = auth_client.get("/api/classes/999/users")

    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------


def test_update_class_replaces_schedules(auth_client):
    created = create_class(
        auth_client,
        schedules=[{"day": "Monday", "startTime": "09:00", "endTime": "10:00"}],
    )
    new_schedule = [{"day": "Tuesday", "startTime": "13:00", "endTime": "14:00"}]

    response = auth_client.put(
        f"/api/classes/{created['id']}",
        json={"schedules": new_schedule, "status": "inactive"},
    )

    assert response.status_code == 200, response.text
    updated = response.json()["data"]
    assert updated["schedules"] == new_schedule
    assert updated["status"] == "inactive"
    assert updated["inviteCode"] == created["inviteCode"], "invite code must not change"


def test_update_class_unassigns_teacher(auth_client):
    teacher = register_user(auth_client, role="teacher")["user"]
    created = create_class(auth_client, teacherId=teacher["id"])

    response = auth_client.put(f"/api/classes/{created['id']}", json={"teacherId": None})

    assert response.status_code == 200
    assert response.json()["data"]["teacher"] is None


def test_update_class_capacity_below_enrollment_is_conflict(auth_client):
    created = create_class(auth_client, capacity=5)
    for _ in range(3):
        student = register_user(auth_client)["user"]
        assert enroll(auth_client, created["id"], student["id"]).status_code == 201

    shrink = auth_client.put(f"/api/classes/{created['id']}", json={"capacity": 2})
    exact = auth_client.put(f"/api/classes/{created['id']}", json={"capacity": 3})

    assert shrink.status_code == 409
    assert exact.status_code == 200


def test_delete_class_cascades_enrollments(auth_client):
    created = create_class(auth_client)
    student = register_user(auth_client)["user"]
    assert enroll(auth_client, created["id"], student["id"]).status_code == 201

    response = auth_client.delete(f"/api/classes/{created['id']}")

    assert response.status_code == 200
    assert response.json()["data"] == {"id": created["id"]}
    remaining = auth_client.get("/api/enrollments", params={"classId": created["id"]}).json()
    assert remaining["pagination"]["total"] == 0
    assert auth_client.get(f"/api/classes/{created['id']}").status_code == 404
