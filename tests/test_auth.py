def test_register_returns_token_and_me_works(client, student):
    response = client.get("/api/auth/me", headers=student["headers"])
    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "linh@campusmail.com"
    assert body["role"] == "student"
    assert body["application_stats"] == {}
    assert "password_hash" not in body


def test_duplicate_email_rejected(client, student):
    response = client.post("/api/auth/register", json={
        "name": "Someone Else", "email": "LINH@campusmail.com", "password": "secret123", "user_type": "student",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "conflict"


def test_register_validation_lists_every_field(client):
    response = client.post("/api/auth/register", json={
        "name": "X", "email": "not-an-email", "password": "123", "user_type": "admin",
    })
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_failed"
    fields = {e["field"] for e in body["errors"]}
    assert {"name", "email", "password", "user_type"} <= fields


def test_login(client, student):
    response = client.post("/api/auth/login", json={"email": "linh@campusmail.com", "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["role"] == "student"

    bad = client.post("/api/auth/login", json={"email": "linh@campusmail.com", "password": "wrong-one"})
    assert bad.status_code == 401
    assert bad.json()["error"] == "unauthorized"


def test_missing_and_invalid_token(client):
    assert client.get("/api/auth/me").status_code == 401
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired token"


def test_role_guard(client, student):
    response = client.get("/api/jobs/employer/my-jobs", headers=student["headers"])
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


def test_change_password(client, student):
    wrong = client.put("/api/auth/password", headers=student["headers"],
                       json={"current_password": "nope", "new_password": "another123"})
    assert wrong.status_code == 401

    ok = client.put("/api/auth/password", headers=student["headers"],
                    json={"current_password": "secret123", "new_password": "another123"})
    assert ok.status_code == 200

    login = client.post("/api/auth/login", json={"email": "linh@campusmail.com", "password": "another123"})
    assert login.status_code == 200
