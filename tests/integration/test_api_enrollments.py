"""Integration tests for the Enrollments API endpoints.

Endpoints tested
----------------
GET    /api/enrollments                   — list with classId/studentId filters
GET    /api/enrollments/{enrollment_id}   — detail with student and class joined
POST   /api/enrollments                   — enroll by class id
POST   /api/enrollments/join              — enroll by invite code
DELETE /api/enrollments/{enrollment_id}   — unenroll
"""

from __future__ import annotations

import pytest

from tests.fixtures.factories import create_class, enroll, register_user


@pytest.fixture
def student(auth_client) -> dict:
    return register_user(auth_client, name="Sam Student")["user"]


# ---------------------------------------------------------------------------
# Enroll by class id
# ---------------------------------------------------------------------------


def test_enroll_student(auth_client, student):
    section = create_class(auth_client)

    response = enroll(auth_client, section["id"], student["id"])

    assert response.status_code == 201, response.text
    created = response.json()["data"]
    assert created["classId"] == section["id"]
    assert created["studentId"] == student["id"]
    assert isinstance(created["id"], int)


def test_enroll_twice_is_conflict(auth_client, student):
    section = create_class(auth_client)
    assert enroll(auth_client, section["id"], student["id"]).status_code == 201

    response = enroll(auth_client, section["id"], student["id"])

    assert response.status_code == 409
    assert response.json()["message"] == "Student is already enrolled in this class"


def test_enroll_respects_capacity(auth_client):
    """Capacity 2: the first two students get in, the third is turned away."""
    section = create_class(auth_client, capacity=2)
    students = [register_user(auth_client)["user"] for _ in range(3)]

    statuses = [enroll(auth_client, section["id"], s["id"]).status_code for s in students]

    assert statuses == [201, 201, 409]
    listed = auth_client.get("/api/enrollments", params={"classId": section["id"]}).json()
    assert listed["pagination"]["total"] == 2


def test_full_class_message(auth_client):
    section = create_class(auth_client, capacity=1)
    first, second = (register_user(auth_client)["user"] for _ in range(2))
    enroll(auth_client, section["id"], first["id"])

    response = enroll(auth_client, section["id"], second["id"])

    assert response.json() == {"error": "conflict", "message": "Class is full"}


@pytest.mark.parametrize(
    "payload",
    [{}, {"classId": 1}, {"studentId": "u1"}, {"classId": 1, "studentId": ""}],
)
def test_enroll_requires_both_fields(auth_client, payload):
    response = auth_client.post("/api/enrollments", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == "Class ID and Student ID are required"


def test_enroll_unknown_class_or_student(auth_client, student):
    section = create_class(auth_client)

    no_class = enroll(auth_client, 999, student["id"])
    no_student = enroll(auth_client, section["id"], "ghost")

    assert no_class.status_code == 404
    assert no_class.json()["message"] == "Class not found"
    assert no_student.status_code == 404
    assert no_student.json()["message"] == "Student not found"


@pytest.mark.parametrize("class_status", ["inactive", "archived"])
def test_status_does_not_block_enrollment(auth_client, student, class_status):
    """Only presence, existence, duplicates and capacity can reject an enrollment."""
    section = create_class(auth_client, status=class_status)

    response = enroll(auth_client, section["id"], student["id"])

    assert response.status_code == 201, response.text


# ---------------------------------------------------------------------------
# Join by invite code
# ---------------------------------------------------------------------------


def test_join_by_invite_code_is_case_insensitive(auth_client, student):
    section = create_class(auth_client)

    response = auth_client.post(
        "/api/enrollments/join",
        json={"inviteCode": f"  {section['inviteCode'].lower()} ", "studentId": student["id"]},
    )

    assert response.status_code == 201, response.text
    assert response.json()["data"]["classId"] == section["id"]


def test_join_unknown_code_is_not_found(auth_client, student):
    response = auth_client.post(
        "/api/enrollments/join", json={"inviteCode": "NOPE00", "studentId": student["id"]}
    )

    assert response.status_code == 404


def test_join_requires_code_and_student(auth_client):
    response = auth_client.post("/api/enrollments/join", json={"studentId": "u1"})

    assert response.status_code == 400
    assert response.json()["message"] == "Invite code and Student ID are required"


def test_join_respects_capacity(auth_client):
    section = create_class(auth_client, capacity=1)
    first, second = (register_user(auth_client)["user"] for _ in range(2))

    ok = auth_client.post(
        "/api/enrollments/join",
        json={"inviteCode": section["inviteCode"], "studentId": first["id"]},
    )
    full = auth_client.post(
        "/api/enrollments/join",
        json={"inviteCode": section["inviteCode"], "studentId": second["id"]},
    )

    assert ok.status_code == 201
    assert full.status_code == 409


# ---------------------------------------------------------------------------
# List / get / delete
# ---------------------------------------------------------------------------


def test_list_and_get_enrollments_with_joins(auth_client, student):
    section = create_class(auth_client, name="Robotics")
    other = create_class(auth_client)
    enrollment_id = enroll(auth_client, section["id"], student["id"]).json()["data"]["id"]
    enroll(auth_client, other["id"], student["id"])

    by_student = auth_client.get("/api/enrollments", params={"studentId": student["id"]})
    by_class = auth_client.get("/api/enrollments", params={"classId": section["id"]}).json()
    detail = auth_client.get(f"/api/enrollments/{enrollment_id}").json()["data"]

    assert by_student.headers["X-Total-Count"] == "2"
    assert [e["id"] for e in by_class["data"]] == [enrollment_id]
    assert detail["student"]["name"] == "Sam Student"
    assert detail["class"] == {
        "id": section["id"],
        "name": "Robotics",
        "inviteCode": section["inviteCode"],
    }


def test_list_enrollments_rejects_non_integer_class_id(auth_client):
    response = auth_client.get("/api/enrollments", params={"classId": "abc"})

    assert response.status_code == 400


def test_unenroll(auth_client, student):
    section = create_class(auth_client, capacity=1)
    enrollment_id = enroll(auth_client, section["id"], student["id"]).json()["data"]["id"]

    response = auth_client.delete(f"/api/enrollments/{enrollment_id}")

    assert response.status_code == 200
    assert response.json() == {
        "message": "Enrollment deleted successfully",
        "data": {"id": enrollment_id},
    }
    assert auth_client.get(f"/api/enrollments/{enrollment_id}").status_code == 404
    assert auth_client.delete(f"/api/enrollments/{enrollment_id}").status_code == 404
    # The freed seat can be taken again.
    assert enroll(auth_client, section["id"], student["id"]).status_code == 201
