"""
Tests d'intégration API pour les utilisateurs de l'administration (base SQLite en mémoire).
"""

import pytest

from app.models.user import Role, User
from app.security import verify_password


# --- Helpers ---

def user_payload(**kwargs) -> dict:
    payload = {
        "name": "Claire Dubois",
        "email": "claire@example.com",
        "password": "password123",
        "role": "RECEPTIONIST",
    }
    payload.update(kwargs)
    return payload


def assert_no_password(data: dict):
    assert "password" not in data
    assert "passwordHash" not in data
    assert "password_hash" not in data


# ============================================================
# POST /api/users
# ============================================================

def test_create_user_superuser(db_client, db_session, auth_headers):
    response = db_client.post("/api/users", json=user_payload(), headers=auth_headers(Role.SUPERUSER))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "claire@example.com"
    assert data["role"] == "RECEPTIONIST"
    assert_no_password(data)

    stored = db_session.get(User, data["id"])
    assert stored.password_hash != "password123"
    assert verify_password("password123", stored.password_hash)


def test_create_user_admin_receptionniste(db_client, auth_headers):
    response = db_client.post("/api/users", json=user_payload(), headers=auth_headers(Role.ADMIN))
    assert response.status_code == 201


def test_create_user_admin_ne_cree_pas_de_superuser(db_client, auth_headers):
    response = db_client.post(
        "/api/users",
        json=user_payload(role="SUPERUSER"),
        headers=auth_headers(Role.ADMIN),
    )
    assert response.status_code == 403


def test_create_user_receptionniste_403(db_client, auth_headers):
    response = db_client.post("/api/users", json=user_payload(), headers=auth_headers(Role.RECEPTIONIST))
    assert response.status_code == 403


def test_create_user_email_duplique_409(db_client, auth_headers):
    db_client.post("/api/users", json=user_payload(), headers=auth_headers())

    response = db_client.post(
        "/api/users",
        json=user_payload(name="Autre", email="CLAIRE@example.com"),
        headers=auth_headers(),
    )

    assert response.status_code == 409


@pytest.mark.parametrize("field, value", [
    ("email", "pas-un-email"),
    ("password", "court"),
    ("password", "é" * 40),
    ("name", "   "),
    ("role", "ROOT"),
])
def test_create_user_validation_422(db_client, auth_headers, field, value):
    response = db_client.post("/api/users", json=user_payload(**{field: value}), headers=auth_headers())
    assert response.status_code == 422
    assert response.json()["success"] is False


def test_create_user_mot_de_passe_jamais_logge(db_client, auth_headers, caplog):
    with caplog.at_level("INFO"):
        db_client.post("/api/users", json=user_payload(password="Sup3r-s3cret!"), headers=auth_headers())
        db_client.post("/api/users", json=user_payload(name="", password="Sup3r-s3cret!"), headers=auth_headers())
    assert "Sup3r-s3cret!" not in caplog.text


# ============================================================
# GET / PUT / DELETE
# ============================================================

def test_list_users_sans_mot_de_passe(db_client, auth_headers):
    db_client.post("/api/users", json=user_payload(), headers=auth_headers())

    response = db_client.get("/api/users", headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["total"] == 1
    for user in response.json()["data"]:
        assert_no_password(user)


def test_list_users_admin_403(db_client, auth_headers):
    assert db_client.get("/api/users", headers=auth_headers(Role.ADMIN)).status_code == 403


def test_update_user_role_et_mot_de_passe(db_client, db_session, auth_headers):
    created = db_client.post("/api/users", json=user_payload(), headers=auth_headers()).json()["data"]

    response = db_client.put(
        f"/api/users/{created['id']}",
        json={"role": "ADMIN", "password": "nouveau-mdp-42"},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    assert response.json()["data"]["role"] == "ADMIN"
    assert_no_password(response.json()["data"])
    assert verify_password("nouveau-mdp-42", db_session.get(User, created["id"]).password_hash)


def test_update_user_introuvable_404(db_client, auth_headers):
    response = db_client.put("/api/users/999", json={"name": "X"}, headers=auth_headers())
    assert response.status_code == 404


def test_delete_user(db_client, auth_headers):
    created = db_client.post("/api/users", json=user_payload(), headers=auth_headers()).json()["data"]

    response = db_client.delete(f"/api/users/{created['id']}", headers=auth_headers())

    assert response.status_code == 200
    assert db_client.get(f"/api/users/{created['id']}", headers=auth_headers()).status_code == 404
