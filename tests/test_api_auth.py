from studioboard.core.errors import ConnectivityError, RemoteAuthorizationError
from conftest import PASSWORD, api


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_gate_without_session_is_unauthenticated(client):
    r = client.get(api("/auth/gate"))
    assert r.status_code == 200
    assert r.json()["state"] == "unauthenticated"
    assert r.json()["actions"] == ["sign_in", "sign_up"]


def test_register_lands_in_pending_state(client, provider):
    r = client.post(api("/auth/register"), json={"name": "Bia", "email": "bia@studio.com.br", "password": PASSWORD})
    assert r.status_code == 201
    body = r.json()
    assert body["gate"]["state"] == "pending"
    assert body["gate"]["actions"] == ["sign_out"]
    assert "validação administrativa" in body["message"]

    [profile] = provider.tables["profiles"]
    assert profile["role"] == "Free" and profile["approved"] is False

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    blocked = client.get(api("/board"), headers=headers)
    assert blocked.status_code == 403
    assert "pendente" in blocked.json()["detail"]

    out = client.post(api("/auth/logout"), headers=headers)
    assert out.status_code == 200
    assert out.json()["state"] == "unauthenticated"
    assert client.get(api("/auth/gate"), headers=headers).json()["state"] == "unauthenticated"


def test_register_duplicate_email_message(client, provider):
    provider.add_user("bia@studio.com.br")
    r = client.post(api("/auth/register"), json={"name": "Bia", "email": "bia@studio.com.br", "password": PASSWORD})
    assert r.status_code == 400
    assert "já está cadastrado" in r.json()["detail"]


def test_login_with_wrong_password(client, provider):
    provider.add_user("ana@studio.com.br")
    r = client.post(api("/auth/login"), json={"email": "ana@studio.com.br", "password": "errada"})
    assert r.status_code == 401
    assert r.json()["detail"].startswith("E-mail ou senha inválidos")


def test_master_login_is_authorized_with_user_management(client, master_headers):
    gate = client.get(api("/auth/gate"), headers=master_headers).json()
    assert gate["state"] == "authorized"
    assert gate["is_master"] is True
    assert gate["role"] == "Master"
    assert "users" in gate["actions"]


def test_logout_invalidates_token(client, provider, login):
    provider.add_user("ana@studio.com.br")
    headers = login("ana@studio.com.br")
    assert client.get(api("/board"), headers=headers).status_code == 200

    r = client.post(api("/auth/logout"), headers=headers)
    assert r.json()["state"] == "unauthenticated"
    assert client.get(api("/board"), headers=headers).status_code == 401


def test_password_reset_is_accepted_for_any_email(client, provider):
    provider.add_user("ana@studio.com.br")
    for email in ("ana@studio.com.br", "ninguem@studio.com.br"):
        assert client.post(api("/auth/password-reset"), json={"email": email}).status_code == 202
    assert provider.reset_requests == ["ana@studio.com.br"]


def test_connection_probe(client, provider, monkeypatch):
    assert client.get(api("/auth/connection")).json()["status"] == "connected"

    async def _denied(table):
        raise RemoteAuthorizationError("permission denied")

    monkeypatch.setattr(provider, "count", _denied)
    assert client.get(api("/auth/connection")).json()["status"] == "connected"

    async def _offline(table):
        raise ConnectivityError("Failed to fetch")

    monkeypatch.setattr(provider, "count", _offline)
    body = client.get(api("/auth/connection")).json()
    assert body == {"status": "error", "detail": "Failed to fetch"}


def test_login_when_store_is_unreachable(client, provider):
    provider.add_user("ana@studio.com.br")
    provider.fail_selects = ConnectivityError("Failed to fetch")
    r = client.post(api("/auth/login"), json={"email": "ana@studio.com.br", "password": PASSWORD})
    assert r.status_code == 503
    assert "--- ERRO DE CONEXÃO ---" in r.json()["detail"]
