import pytest
from fastapi.testclient import TestClient

from auth.dependencies import get_services
from main import app


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def _register(client, email, name="Teacher"):
    res = client.post("/register", json={"name": name, "email": email, "password": "s3cret-pass"})
    assert res.status_code == 201, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


def test_register_login_me(client):
    _register(client, "anna@school.test", name="Anna")

    res = client.post("/login", json={"email": "anna@school.test", "password": "s3cret-pass"})
    assert res.status_code == 200
    headers = {"Authorization": f"Bearer {res.json()['token']}"}

    me = client.get("/me", headers=headers).json()
    assert me["name"] == "Anna"
    assert me["role"] == "teacher"
    assert "password_hash" not in me


def test_duplicate_email_and_bad_password(client):
    _register(client, "anna@school.test")

    dup = client.post("/register", json={"name": "A", "email": "anna@school.test", "password": "another1"})
    bad = client.post("/login", json={"email": "anna@school.test", "password": "wrong-pass"})
    unknown = client.post("/login", json={"email": "nobody@school.test", "password": "wrong-pass"})

    assert dup.status_code == 409
    assert bad.status_code == unknown.status_code == 401
    assert bad.json() == unknown.json()


def test_logout_revokes_token(client):
    headers = _register(client, "anna@school.test")

    assert client.post("/logout", headers=headers).status_code == 200
    assert client.post("/logout", headers=headers).status_code == 200

    res = client.get("/me", headers=headers)
    assert res.status_code == 401
    assert res.json()["error"] == "RevokedToken"


def test_requests_without_valid_token(client):
    assert client.get("/students").status_code == 401
    res = client.get("/students", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 401
    assert res.json()["error"] == "InvalidToken"


def test_enrollment_and_grading_flow(client):
    headers = _register(client, "anna@school.test")
    klass = client.post("/classes", json={"name": "Algebra", "capacity": 2}, headers=headers).json()
    ids = [
        client.post("/students", json={"name": name}, headers=headers).json()["id"]
        for name in ("Lena", "Omar", "Ivy")
    ]

    over = client.post(f"/classes/{klass['id']}/students", json={"student_ids": ids}, headers=headers)
    assert over.status_code == 400
    assert over.json()["error"] == "CapacityExceeded"

    ok = client.post(f"/classes/{klass['id']}/students", json={"student_ids": ids[:2]}, headers=headers)
    assert ok.status_code == 201
    assert len(ok.json()["enrollment_ids"]) == 2

    not_enrolled = client.post(
        "/grades",
        json={"student_id": ids[2], "class_id": klass["id"], "assignment": "Quiz", "score": 90},
        headers=headers,
    )
    assert not_enrolled.status_code == 400
    assert not_enrolled.json()["error"] == "NotEnrolled"

    # legacy clients send "title" instead of "assignment"
    grade = client.post(
        "/grades",
        json={"student_id": ids[0], "class_id": klass["id"], "title": "Quiz", "score": 90},
        headers=headers,
    )
    assert grade.status_code == 201
    assert grade.json()["assignment"] == "Quiz"

    roster = client.get(f"/classes/{klass['id']}/students", headers=headers).json()
    assert sorted(s["name"] for s in roster) == ["Lena", "Omar"]

    deleted = client.delete(f"/classes/{klass['id']}", headers=headers).json()
    assert deleted == {"deleted": True, "grades": 1, "enrollments": 2}
    assert client.get(f"/classes/{klass['id']}", headers=headers).status_code == 404


def test_other_teacher_gets_404(client):
    anna = _register(client, "anna@school.test")
    boris = _register(client, "boris@school.test")
    student = client.post("/students", json={"name": "Lena"}, headers=anna).json()

    assert client.get(f"/students/{student['id']}", headers=boris).status_code == 404
    assert client.get("/students/9999", headers=boris).status_code == 404
    assert client.patch(f"/students/{student['id']}", json={"age": 9}, headers=boris).status_code == 404
    assert client.delete(f"/students/{student['id']}", headers=boris).status_code == 404
    assert client.get("/students", headers=boris).json() == []
    assert client.get(f"/students/{student['id']}", headers=anna).status_code == 200
