"""Integration tests for the Users API endpoints.

Endpoints tested
----------------
GET    /api/users            — list with search and role filters
GET    /api/users/{user_id}  — detail
PUT    /api/users/{user_id}  — update name, role or image
DELETE /api/users/{user_id}  — delete with cascades
"""

from __future__ import annotations

from tests.fixtures.factories import create_class, enroll, register_user


def test_list_users_filters(auth_client):
    register_user(auth_client, name="Tina Teacher", email="tina@school.org", role="teacher")
    register_user(auth_client, name="Stan Student", email="stan@school.org")

    everyone = auth_client.get("/api/users")
    teachers = auth_client.get("/api/users", params={"role": "teacher"}).json()
    by_email = auth_client.get("/api/users", params={"search": "SCHOOL.ORG"}).json()

    assert everyone.status_code == 200
    assert everyone.headers["X-Total-Count"] == "3"
    assert [u["name"] for u in teachers["data"]] == ["Tina Teacher"]
    assert sorted(u["name"] for u in by_email["data"]) == ["Stan Student", "Tina Teacher"]


def test_list_users_rejects_unknown_role(auth_client):
    response = auth_client.get("/api/users", params={"role": "janitor"})

    assert response.status_code == 400
    assert "role" in response.json()["message"]


def test_get_user(auth_client):
    response = auth_client.get(f"/api/users/{auth_client.user_id}")

    assert response.status_code == 200
    user = response.json()["data"]
    assert user["email"] == "ada@example.com"
    assert user["role"] == "student"
    assert "passwordHash" not in user
    assert auth_client.get("/api/users/missing").status_code == 404


def test_update_user_role_and_name(auth_client):
    target = register_user(auth_client, name="Promote Me")["user"]

    response = auth_client.put(
        f"/api/users/{target['id']}", json={"role": "teacher", "name": "Prof. Me"}
    )

    assert response.status_code == 200, response.text
    updated = response.json()["data"]
    assert (updated["role"], updated["name"]) == ("teacher", "Prof. Me")


def test_update_user_validation(auth_client):
    target = register_user(auth_client)["user"]

    empty = auth_client.put(f"/api/users/{target['id']}", json={})
    bad_role = auth_client.put(f"/api/users/{target['id']}", json={"role": "janitor"})
    missing = auth_client.put("/api/users/missing", json={"name": "x"})

    assert empty.status_code == 400
    assert empty.json()["message"] == "No fields to update"
    assert bad_role.status_code == 400
    assert missing.status_code == 404


def test_delete_user_cascades(auth_client):
    """Enrollments go with the student; taught classes stay without a teacher."""
    teacher = register_user(auth_client, role="teacher")["user"]
    student = register_user(auth_client)["user"]
    taught = create_class(auth_client, teacherId=teacher["id"])
    assert enroll(auth_client, taught["id"], student["id"]).status_code == 201

    removed_student = auth_client.delete(f"/api/users/{student['id']}")
    removed_teacher = auth_client.delete(f"/api/users/{teacher['id']}")

    assert removed_student.status_code == 200
    assert removed_student.json() == {
        "message": "User deleted successfully",
        "data": {"id": student["id"]},
    }
    assert removed_teacher.status_code == 200
    enrollments = auth_client.get("/api/enrollments", params={"classId": taught["id"]}).json()
    assert enrollments["pagination"]["total"] == 0
    section = auth_client.get(f"/api/classes/{taught['id']}").json()["data"]
    assert section["teacherId"] is None
    assert section["teacher"] is None
    assert auth_client.get(f"/api/users/{student['id']}").status_code == 404
