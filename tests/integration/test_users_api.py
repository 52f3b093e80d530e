from __future__ import annotations


def test_user_management_flow(client, admin_headers) -> None:
    created = client.post("/api/users", json={"email": "Chef@Example.com"}, headers=admin_headers)
    assert created.status_code == 201
    user = created.json()
    assert user["email"] == "chef@example.com"
    assert user["role"] == "readonly"

    duplicate = client.post("/api/users", json={"email": "chef@example.com", "role": "admin"}, headers=admin_headers)
    assert duplicate.status_code == 409

    promoted = client.put(f"/api/users/{user['id']}/role", json={"role": "admin"}, headers=admin_headers)
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "admin"

    emails = [item["email"] for item in client.get("/api/users", headers=admin_headers).json()]
    assert "chef@example.com" in emails
    assert "admin@example.com" in emails

    removed = client.delete(f"/api/users/{user['id']}", headers=admin_headers)
    assert removed.json() == {"success": True}
    assert client.delete(f"/api/users/{user['id']}", headers=admin_headers).status_code == 404


def test_user_management_validation_and_permissions(client, admin_headers, readonly_headers) -> None:
    assert client.post("/api/users", json={"email": "not-an-email"}, headers=admin_headers).status_code == 422
    assert (
        client.post("/api/users", json={"email": "x@example.com", "role": "owner"}, headers=admin_headers).status_code
        == 422
    )
    assert client.get("/api/users", headers=readonly_headers).status_code == 403
    assert client.get("/api/users").status_code == 401
