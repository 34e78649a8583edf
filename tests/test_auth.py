"""Auth service endpoints and identity providers."""

import asyncio

import pytest
from firebase_admin import auth as firebase_auth

from restaurant_services.auth.identity import (
    EmailAlreadyExistsError,
    FirebaseIdentityService,
    IdentityUser,
    InvalidTokenError,
    InvalidUserDataError,
    MockIdentityService,
    get_identity_service,
    reset_identity_service,
)
from restaurant_services.auth.identity import firebase as firebase_module
from restaurant_services.auth.main import app
from restaurant_services.core.config import EnvironmentMode, get_settings


def register(client, email="maria@example.com", password="s3nh4-segura", **extra):
    return client.post("/register", json={"email": email, "password": password, **extra})


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def unavailable_client(monkeypatch):
    """Auth app whose provider failed to initialise (no Firebase credentials)."""
    from fastapi.testclient import TestClient

    monkeypatch.setattr(get_settings(), "env_mode", EnvironmentMode.PRODUCTION)
    monkeypatch.setattr(get_settings(), "firebase_private_key", None)
    identity = FirebaseIdentityService()
    app.dependency_overrides[get_identity_service] = lambda: identity

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# =============================================================================
# HEALTH
# =============================================================================

def test_health_reports_provider(auth_client):
    response = auth_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["service"] == "Auth Service"
    assert body["firebase"] == "Connected"


def test_health_without_provider(unavailable_client):
    assert unavailable_client.get("/health").json()["firebase"] == "Disconnected"


# =============================================================================
# REGISTER
# =============================================================================

def test_register_creates_user(auth_client):
    response = register(auth_client, displayName="Maria")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Usuário criado com sucesso"
    assert body["user"]["email"] == "maria@example.com"
    assert body["user"]["name"] == "Maria"
    assert body["user"]["uid"]


def test_register_defaults_display_name(auth_client):
    body = register(auth_client).json()

    assert body["user"]["name"] == "Usuário"


@pytest.mark.parametrize("payload", [
    {"email": "maria@example.com"},
    {"password": "s3nh4-segura"},
    {"email": "", "password": "s3nh4-segura"},
])
def test_register_requires_email_and_password(auth_client, payload):
    response = auth_client.post("/register", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Email e senha são obrigatórios"}


def test_register_duplicate_email_is_409(auth_client):
    register(auth_client)

    response = register(auth_client)

    assert response.status_code == 409
    assert response.json() == {
        "error": "Email já cadastrado",
        "message": "Use outro email ou faça login",
    }


def test_register_rejects_short_password(auth_client):
    response = register(auth_client, password="123")

    assert response.status_code == 400
    assert response.json()["error"] == "Dados inválidos"


def test_register_without_provider_is_503(unavailable_client):
    response = register(unavailable_client)

    assert response.status_code == 503
    assert response.json() == {
        "error": "Serviço de autenticação indisponível",
        "message": "Tente novamente mais tarde",
    }


# =============================================================================
# LOGIN
# =============================================================================

def test_login_returns_user(auth_client, identity):
    uid = register(auth_client, displayName="Maria").json()["user"]["uid"]

    response = auth_client.post("/login", json={"idToken": identity.issue_token(uid)})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "user": {"uid": uid, "email": "maria@example.com", "name": "Maria"},
        "message": "Login realizado com sucesso",
    }


def test_login_requires_token(auth_client):
    response = auth_client.post("/login", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Token ID não fornecido"}


def test_login_with_bad_token_is_401(auth_client):
    response = auth_client.post("/login", json={"idToken": "forged"})

    assert response.status_code == 401
    assert response.json() == {
        "error": "Falha na autenticação",
        "message": "Verifique suas credenciais",
    }


def test_login_without_provider_is_503(unavailable_client):
    response = unavailable_client.post("/login", json={"idToken": "anything"})

    assert response.status_code == 503


# =============================================================================
# PROFILE
# =============================================================================

def test_profile_from_bearer_token(auth_client, identity):
    uid = register(auth_client).json()["user"]["uid"]

    response = auth_client.get("/profile", headers=bearer(identity.issue_token(uid)))

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "user": {"uid": uid, "email": "maria@example.com", "name": "Usuário"},
    }


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Basic abc"}, bearer("")])
def test_profile_without_token_is_401(auth_client, headers):
    response = auth_client.get("/profile", headers=headers)

    assert response.status_code == 401
    assert response.json() == {"error": "Token não fornecido"}


def test_profile_with_unknown_token_is_401(auth_client, identity):
    response = auth_client.get("/profile", headers=bearer(identity.issue_token("ghost")))

    assert response.status_code == 401
    assert response.json() == {"error": "Token inválido"}


def test_profile_without_provider_is_503(unavailable_client):
    response = unavailable_client.get("/profile", headers=bearer("anything"))

    assert response.status_code == 503


# =============================================================================
# PROVIDERS
# =============================================================================

def test_factory_uses_mock_in_development():
    reset_identity_service()
    try:
        service = get_identity_service()
        assert isinstance(service, MockIdentityService)
        assert get_identity_service() is service
    finally:
        reset_identity_service()


def test_mock_rejects_malformed_email():
    identity = MockIdentityService()

    with pytest.raises(InvalidUserDataError):
        asyncio.run(identity.create_user("not-an-email", "s3nh4-segura"))


def test_mock_duplicate_email():
    identity = MockIdentityService()
    asyncio.run(identity.create_user("joao@example.com", "s3nh4-segura"))

    with pytest.raises(EmailAlreadyExistsError):
        asyncio.run(identity.create_user("joao@example.com", "outra-senha"))


def test_identity_user_from_claims_falls_back_to_default_name():
    user = IdentityUser.from_claims({"uid": "abc", "email": "a@b.com"})

    assert user.to_dict() == {"uid": "abc", "email": "a@b.com", "name": "Usuário"}


@pytest.fixture
def firebase_service(monkeypatch):
    """FirebaseIdentityService with the SDK initialisation stubbed out."""
    monkeypatch.setattr(get_settings(), "env_mode", EnvironmentMode.PRODUCTION)
    monkeypatch.setattr(get_settings(), "firebase_private_key", "-----KEY-----\\nabc")
    monkeypatch.setattr(get_settings(), "firebase_client_email", "svc@example.iam.gserviceaccount.com")

    seen = {}

    def certificate(info):
        seen["credentials"] = info
        return object()

    monkeypatch.setattr(firebase_module.credentials, "Certificate", certificate)
    monkeypatch.setattr(
        firebase_module.firebase_admin, "initialize_app", lambda cert, name: object()
    )

    service = FirebaseIdentityService()
    service.seen = seen
    return service


def test_firebase_initialises_with_unescaped_key(firebase_service):
    assert firebase_service.is_available
    assert firebase_service.provider_name == "firebase"
    assert firebase_service.seen["credentials"]["private_key"] == "-----KEY-----\nabc"


def test_firebase_verify_token(firebase_service, monkeypatch):
    def verify(token, app=None):
        if token != "good":
            raise ValueError("bad token")
        return {"uid": "fb-1", "email": "maria@example.com", "name": "Maria"}

    monkeypatch.setattr(firebase_module.auth, "verify_id_token", verify)

    claims = asyncio.run(firebase_service.verify_id_token("good"))
    assert claims["uid"] == "fb-1"

    with pytest.raises(InvalidTokenError):
        asyncio.run(firebase_service.verify_id_token("bad"))


def test_firebase_duplicate_email(firebase_service, monkeypatch):
    def create_user(**kwargs):
        raise firebase_auth.EmailAlreadyExistsError("taken", None, None)

    monkeypatch.setattr(firebase_module.auth, "create_user", create_user)

    with pytest.raises(EmailAlreadyExistsError):
        asyncio.run(firebase_service.create_user("maria@example.com", "s3nh4-segura"))


def test_firebase_without_credentials_is_unavailable(monkeypatch):
    monkeypatch.setattr(get_settings(), "env_mode", EnvironmentMode.STAGING)
    monkeypatch.setattr(get_settings(), "firebase_private_key", None)
    monkeypatch.setattr(get_settings(), "firebase_client_email", None)

    service = FirebaseIdentityService()

    assert not service.is_available
    assert asyncio.run(service.health_check()) is False


def test_firebase_app_is_reused_after_reset(monkeypatch):
    monkeypatch.setattr(get_settings(), "env_mode", EnvironmentMode.PRODUCTION)
    monkeypatch.setattr(get_settings(), "firebase_private_key", "-----KEY-----\\nabc")
    monkeypatch.setattr(get_settings(), "firebase_client_email", "svc@example.iam.gserviceaccount.com")

    apps = {}

    def initialize_app(cert, name):
        if name in apps:
            raise ValueError(f'The default Firebase app "{name}" already exists.')
        apps[name] = object()
        return apps[name]

    def get_app(name):
        if name not in apps:
            raise ValueError(f'Firebase app named "{name}" does not exist.')
        return apps[name]

    monkeypatch.setattr(firebase_module.credentials, "Certificate", lambda info: object())
    monkeypatch.setattr(firebase_module.firebase_admin, "initialize_app", initialize_app)
    monkeypatch.setattr(firebase_module.firebase_admin, "get_app", get_app)

    reset_identity_service()
    try:
        first = get_identity_service()
        reset_identity_service()
        second = get_identity_service()
    finally:
        reset_identity_service()

    assert first is not second
    assert first.is_available and second.is_available
    assert len(apps) == 1
