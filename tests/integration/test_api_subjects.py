"""Integration tests for the Subjects API endpoints.

Endpoints tested
----------------
GET    /api/subjects               — list with search, departmentId and department filters
GET    /api/subjects/{subject_id}  — detail with joined department
POST   /api/subjects               — create under an existing department
PUT    /api/subjects/{subject_id}  — partial update
DELETE /api/subjects/{subject_id}  — delete, restricted by classes
"""

from __future__ import annotations

from tests.fixtures.factories import create_class, create_department, create_subject


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------


def test_create_subject_includes_department(auth_client):
    department = create_department(auth_client, name="Engineering")

    response = auth_client.post(
        "/api/subjects",
        json={"code": "ENG101", "name": "Statics", "departmentId": department["id"]},
    )

    assert response.status_code == 201, response.text
    subject = response.json()["data"]
    assert subject["departmentId"] == department["id"]
    assert subject["department"] == {"id": department["id"], "name": "Engineering"}


def test_create_subject_unknown_department_is_not_found(auth_client):
    response = auth_client.post(
        "/api/subjects", json={"code": "X1", "name": "Orphan", "departmentId": 999}
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Department not found"


def test_create_subject_duplicate_code_is_conflict(auth_client):
    department = create_department(auth_client)
    create_subject(auth_client, department_id=department["id"], code="DUP1")

    response = auth_client.post(
        "/api/subjects", json={"code": "DUP1", "name": "Copy", "departmentId": department["id"]}
    )

    assert response.status_code == 409


def test_get_subject_round_trip(auth_client):
    subject = create_subject(auth_client, name="Linear Algebra")

    response = auth_client.get(f"/api/subjects/{subject['id']}")

    assert response.status_code == 200
    fetched = response.json()["data"]
    for key in ("id", "code", "name", "description", "departmentId", "department"):
        assert fetched[key] == subject[key], f"{key} differs after round trip"


# ---------------------------------------------------------------------------
# List filters
# ---------------------------------------------------------------------------


def test_list_subjects_filters(auth_client):
    science = create_department(auth_client, name="Natural Science")
    arts = create_department(auth_client, name="Fine Arts")
    create_subject(auth_client, department_id=science["id"], code="CHEM1", name="Chemistry")
    create_subject(auth_client, department_id=science["id"], code="BIO1", name="Biology")
    create_subject(auth_client, department_id=arts["id"], code="ART1", name="Painting")

    by_department_id = auth_client.get(
        "/api/subjects", params={"departmentId": science["id"]}
    ).json()
    by_department_name = auth_client.get("/api/subjects", params={"department": "arts"}).json()
    combined = auth_client.get(
        "/api/subjects", params={"departmentId": science["id"], "search": "chem"}
    ).json()

    assert by_department_id["pagination"]["total"] == 2
    assert [s["code"] for s in by_department_name["data"]] == ["ART1"]
    assert [s["code"] for s in combined["data"]] == ["CHEM1"], "filters must be ANDed"


def test_list_subjects_rejects_non_integer_department_id(auth_client):
    response = auth_client.get("/api/subjects", params={"departmentId": "science"})

    assert response.status_code == 400
    assert "departmentId" in response.json()["message"]


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------


def test_update_subject_moves_department(auth_client):
    subject = create_subject(auth_client)
    target = create_department(auth_client, name="Target")

    response = auth_client.put(
        f"/api/subjects/{subject['id']}", json={"departmentId": target["id"]}
    )

    assert response.status_code == 200, response.text
    assert response.json()["data"]["department"]["name"] == "Target"


def test_update_subject_to_unknown_department_is_not_found(auth_client):
    subject = create_subject(auth_client)

    response = auth_client.put(f"/api/subjects/{subject['id']}", json={"departmentId": 999})

    assert response.status_code == 404


def test_update_subject_rejects_explicit_null_name(auth_client):
    subject = create_subject(auth_client)

    response = auth_client.put(f"/api/subjects/{subject['id']}", json={"name": None})

    assert response.status_code == 400


def test_delete_subject_restricted_while_classes_exist(auth_client):
    subject = create_subject(auth_client)
    create_class(auth_client, subject_id=subject["id"])

    response = auth_client.delete(f"/api/subjects/{subject['id']}")

    assert response.status_code == 409
    assert "associated classes" in response.json()["message"]
