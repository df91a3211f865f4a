import json
from http.cookies import SimpleCookie

from fastapi import status


def _cookie_value(response, name):
    for header in response.headers.get_list("set-cookie"):
        if header.startswith(f"{name}="):
            cookie = SimpleCookie()
            cookie.load(header)
            return cookie[name].value
    return None


def test_competition_link_is_redirected_with_context_cookie(client):
    response = client.get(
        "/c/summer-shred",
        params={"utm_source": "twitter", "invite": "abc", "token": "secret"},
        follow_redirects=False,
    )

    assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
    assert response.headers["location"] == "/competition/summer-shred?invite=abc&utm_source=twitter"

    context = json.loads(_cookie_value(response, "deep-link-context"))
    assert context["source"] == "social"
    assert context["competition_slug"] == "summer-shred"
    assert context["params"] == {"utm_source": "twitter", "invite": "abc"}


def test_canonical_deep_link_gets_context_header(client):
    response = client.get(
        "/competition/summer-shred", params={"utm_source": "newsletter"}, follow_redirects=False
    )

    header = json.loads(response.headers["X-Deep-Link-Context"])
    assert header["source"] == "email"
    assert header["params"] == {"utm_source": "newsletter"}
    assert isinstance(header["timestamp"], int)


def test_social_traffic_redirected_to_competitions(client):
    response = client.get(
        "/", params={"utm_source": "facebook", "utm_campaign": "spring"}, follow_redirects=False
    )

    assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
    assert response.headers["location"] == "/competitions?utm_campaign=spring&utm_source=facebook"


def test_auth_pages_are_not_redirected(client):
    response = client.get(
        "/auth/login", params={"utm_source": "facebook"}, follow_redirects=False
    )
    assert response.status_code != status.HTTP_307_TEMPORARY_REDIRECT


def test_invalid_redirect_is_stripped(client, mocker):
    warning = mocker.patch("deeplink_auth.core.middleware.logger.warning")

    response = client.get(
        "/auth/login", params={"redirect": "https://evil.example.com"}, follow_redirects=False
    )

    warning.assert_called_once_with("invalid_redirect_blocked", path="/auth/login")
    assert "X-Deep-Link-Context" not in response.headers


def test_plain_page_untouched(client):
    response = client.get("/profile", follow_redirects=False)
    assert "X-Deep-Link-Context" not in response.headers
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_api_requests_skip_deep_link_handling(client):
    response = client.get("/api/v1/health", params={"utm_source": "facebook"}, follow_redirects=False)

    assert response.status_code == status.HTTP_200_OK
    assert "X-Deep-Link-Context" not in response.headers
