from fastapi import status

UUID = "123e4567-e89b-42d3-a456-426614174000"


def test_request_reset_sends_link_with_context(client, credential_store):
    response = client.post(
        "/api/v1/auth/reset/request",
        json={"email": "ana@example.com", "redirect": "/competition/summer-shred", "competition": UUID},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"state": "sent", "error": None, "field_errors": {}, "redirect_to": None}
    email, redirect_to = credential_store.reset_emails[0]
    assert email == "ana@example.com"
    assert redirect_to.endswith(
        f"/auth/reset?redirect=/competition/summer-shred&competition={UUID}"
    )


def test_request_reset_invalid_email_is_field_error(client):
    response = client.post("/api/v1/auth/reset/request", json={"email": "nope"})

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["state"] == "request"
    assert "email" in body["field_errors"]


def test_verify_expired_link(client, credential_store):
    credential_store.add_recovery_token("old", status="expired")

    body = client.post("/api/v1/auth/reset/verify", json={"token": "old"}).json()

    assert body["state"] == "expired"
    assert body["error"]


def test_verify_provider_error_params(client):
    body = client.post(
        "/api/v1/auth/reset/verify",
        json={"error": "access_denied", "error_code": "otp_expired", "error_description": "expired"},
    ).json()
    assert body["state"] == "expired"


def test_complete_without_verification_conflicts(client):
    response = client.post(
        "/api/v1/auth/reset/complete",
        json={"password": "N3wPassword", "confirm_password": "N3wPassword"},
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "invalid_reset_transition"


def test_full_reset_returns_to_login_with_context_cleared(client, credential_store):
    credential_store.add_recovery_token("good")
    client.post("/api/v1/auth/context", json={"query": {"redirect": "/competition/summer-shred"}})
    client.post("/api/v1/auth/context/backup", json={"path": "/competition/summer-shred/enter"})

    verify = client.post("/api/v1/auth/reset/verify", json={"token": "good"})
    assert verify.json()["state"] == "reset"

    mismatch = client.post(
        "/api/v1/auth/reset/complete",
        json={"password": "N3wPassword", "confirm_password": "Different1"},
    )
    assert mismatch.json()["state"] == "reset"
    assert "confirm_password" in mismatch.json()["field_errors"]

    complete = client.post(
        "/api/v1/auth/reset/complete",
        json={"password": "N3wPassword", "confirm_password": "N3wPassword"},
    )
    assert complete.json() == {
        "state": "success",
        "error": None,
        "field_errors": {},
        "redirect_to": "/auth/login?redirect=/competition/summer-shred",
    }
    assert client.post("/api/v1/auth/context/restore").json() == {"path": None}

    again = client.post(
        "/api/v1/auth/reset/complete",
        json={"password": "N3wPassword", "confirm_password": "N3wPassword"},
    )
    assert again.status_code == status.HTTP_409_CONFLICT


def test_cancel_clears_context(client, credential_store):
    credential_store.add_recovery_token("good")
    client.post("/api/v1/auth/reset/verify", json={"token": "good"})

    response = client.post("/api/v1/auth/reset/cancel")
    assert response.json() == {"redirect_to": "/auth/login"}

    complete = client.post(
        "/api/v1/auth/reset/complete",
        json={"password": "N3wPassword", "confirm_password": "N3wPassword"},
    )
    assert complete.status_code == status.HTTP_409_CONFLICT
