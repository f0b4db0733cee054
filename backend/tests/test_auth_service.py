"""
Tests unitaires pour la connexion (auth_service.login).
"""

from unittest.mock import MagicMock, patch

import pytest

from app.errors import InvalidCredentials
from app.models.user import Role, User
from app.security import decode_access_token, hash_password
from app.services.auth_service import login


# --- Helpers ---

def make_user_mock(user_id=7, role=Role.ADMIN, password="password123"):
    user = MagicMock(spec=User)
    user.id = user_id
    user.name = "Alice Martin"
    user.email = "alice@example.com"
    user.role = role
    user.password_hash = hash_password(password)
    user.created_at = None
    user.updated_at = None
    return user


def make_db_mock(user=None):
    db = MagicMock()
    db.execute.return_value.scalar.return_value = user
    return db


# ============================================================
# login
# ============================================================

def test_login_succes():
    """Identifiants corrects → jeton portant l'ID et le rôle de l'utilisateur."""
    db = make_db_mock(make_user_mock(user_id=7, role=Role.ADMIN))

    result = login(db, "alice@example.com", "password123")

    identity = decode_access_token(result.token)
    assert identity.subject_id == 7
    assert identity.role == Role.ADMIN
    assert result.role == Role.ADMIN
    assert result.token_type == "Bearer"
    assert result.user.email == "alice@example.com"


def test_login_ne_persiste_rien():
    """Session sans état : aucune écriture en base."""
    db = make_db_mock(make_user_mock())

    login(db, "alice@example.com", "password123")

    db.add.assert_not_called()
    db.commit.assert_not_called()


def test_login_mot_de_passe_incorrect():
    db = make_db_mock(make_user_mock(password="password123"))
    with pytest.raises(InvalidCredentials):
        login(db, "alice@example.com", "mauvais-mdp")


def test_login_email_inconnu():
    db = make_db_mock(None)
    with pytest.raises(InvalidCredentials):
        login(db, "inconnu@example.com", "password123")


def test_login_email_inconnu_verifie_quand_meme():
    """Email inconnu : une vérification bcrypt a lieu quand même (temps de réponse homogène)."""
    db = make_db_mock(None)
    with patch("app.services.auth_service.verify_password", return_value=False) as mock_verify:
        with pytest.raises(InvalidCredentials):
            login(db, "inconnu@example.com", "password123")

    mock_verify.assert_called_once()


def test_login_meme_erreur_email_ou_mdp():
    """Le message ne révèle pas si l'email existe."""
    with pytest.raises(InvalidCredentials) as unknown:
        login(make_db_mock(None), "inconnu@example.com", "password123")
    with pytest.raises(InvalidCredentials) as wrong:
        login(make_db_mock(make_user_mock()), "alice@example.com", "mauvais-mdp")

    assert unknown.value.message == wrong.value.message
