from urllib.parse import parse_qs, urlsplit

from fastapi import status

UUID = "123e4567-e89b-42d3-a456-426614174000"


def _start(client, provider="google", **payload):
    return client.post(f"/api/v1/auth/oauth/{provider}", json=payload)


def test_start_oauth_returns_url_with_state(client):
    response = _start(client, redirect="/competition/summer-shred/enter", competition=UUID)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    query = parse_qs(urlsplit(body["url"]).query)
    assert urlsplit(body["url"]).path == "/auth/oauth/google"
    assert query["state"] == [body["state"]]
    assert len(body["state"]) == 64
    assert query["redirect"] == ["/competition/summer-shred/enter"]
    assert query["competition"] == [UUID]


def test_start_oauth_unsupported_provider(client):
    response = _start(client, provider="myspace")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["code"] == "unsupported_oauth_provider"


def test_callback_returns_stored_destination(client, credential_store):
    state = _start(client, redirect="/competition/summer-shred/enter").json()["state"]
    credential_store.current_user = credential_store.add_account("ana@example.com", "Str0ngPass")

    response = client.get("/api/v1/auth/oauth/callback", params={"state": state})

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"redirect_to": "/competition/summer-shred/enter"}


def test_callback_replay_is_rejected(client, credential_store):
    state = _start(client).json()["state"]
    credential_store.current_user = credential_store.add_account("ana@example.com", "Str0ngPass")

    assert client.get("/api/v1/auth/oauth/callback", params={"state": state}).status_code == 200
    replay = client.get("/api/v1/auth/oauth/callback", params={"state": state})

    assert replay.status_code == status.HTTP_403_FORBIDDEN
    assert replay.json()["code"] == "invalid_state"
    assert replay.json()["redirect_to"] == "/auth/login"


def test_callback_with_forged_state(client):
    _start(client)
    response = client.get("/api/v1/auth/oauth/callback", params={"state": "0" * 64})

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert "0" * 64 not in response.text


def test_callback_state_from_other_session_is_rejected(app, credential_store):
    from fastapi.testclient import TestClient

    with TestClient(app) as victim, TestClient(app) as attacker:
        state = _start(attacker).json()["state"]
        credential_store.current_user = credential_store.add_account("ana@example.com", "Str0ngPass")

        response = victim.get("/api/v1/auth/oauth/callback", params={"state": state})
        assert response.status_code == status.HTTP_403_FORBIDDEN


def test_callback_provider_denied(client):
    _start(client, redirect="/competition/summer-shred")
    response = client.get(
        "/api/v1/auth/oauth/callback",
        params={"error": "access_denied", "error_description": "User cancelled at 10.0.0.5"},
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    body = response.json()
    assert body["code"] == "access_denied"
    assert body["redirect_to"] == "/auth/login?error=access_denied"
    assert "10.0.0.5" not in body["detail"]


def test_callback_message_is_localized(client):
    _start(client)
    response = client.get(
        "/api/v1/auth/oauth/callback",
        params={"state": "0" * 64},
        headers={"Accept-Language": "es"},
    )

    assert response.headers["Content-Language"] == "es"
    assert response.json()["detail"] == "Tu sesión de inicio ya no es válida. Vuelve a iniciar sesión."
