import pytest

from deeplink_auth.domain.value_objects.auth_context import AuthUrlContext, OAuthProvider, OAuthUrl
from deeplink_auth.domain.value_objects.deep_link import (
    CompetitionContext,
    DeepLinkAction,
    DeepLinkData,
    DeepLinkRouteResult,
    DeepLinkSource,
)


@pytest.mark.parametrize(
    "action,expected",
    [
        (DeepLinkAction.VIEW, "/competition/summer-shred"),
        (DeepLinkAction.ENTER, "/competition/summer-shred/enter"),
        (DeepLinkAction.RESULTS, "/competition/summer-shred/results"),
    ],
)
def test_competition_context_path(action, expected):
    assert CompetitionContext("summer-shred", action).path == expected


def test_deep_link_data_competition_defaults_to_view():
    data = DeepLinkData(
        is_deep_link=True,
        source=DeepLinkSource.WEB,
        original_url="/c/summer-shred",
        competition_slug="summer-shred",
    )
    assert data.competition == CompetitionContext("summer-shred", DeepLinkAction.VIEW)


def test_deep_link_data_without_slug_has_no_competition():
    data = DeepLinkData(is_deep_link=False, source=DeepLinkSource.WEB, original_url="/")
    assert data.competition is None


def test_route_result_location_keeps_slashes_literal():
    result = DeepLinkRouteResult(
        should_redirect=True,
        path="/competitions",
        query={"utm_campaign": "spring/launch", "utm_source": "twitter"},
    )
    assert result.location == "/competitions?utm_campaign=spring/launch&utm_source=twitter"


def test_route_result_location_without_query():
    assert DeepLinkRouteResult(True, path="/competition/abc").location == "/competition/abc"
    assert DeepLinkRouteResult.stay().location is None


def test_auth_url_context_masking_hides_secrets():
    context = AuthUrlContext(
        redirect_url="/competitions/private",
        oauth_state="a" * 64,
        error="access_denied",
    )
    masked = context.mask_for_logging()

    assert masked["has_redirect"] is True
    assert masked["has_state"] is True
    assert "a" * 64 not in str(masked)
    assert "/competitions/private" not in str(masked)
    assert context.has_error is True


def test_oauth_url_repr_hides_state():
    oauth_url = OAuthUrl(url="/auth/oauth/google?state=" + "b" * 64, state="b" * 64)
    assert "b" * 64 not in repr(oauth_url)


def test_oauth_provider_is_normalized_and_checked():
    assert OAuthProvider(" Google ", ["google", "github"]).value == "google"
    assert OAuthProvider("google", ["google"]) == OAuthProvider("GOOGLE", ["google"])
    with pytest.raises(ValueError):
        OAuthProvider("myspace", ["google"])
    with pytest.raises(ValueError):
        OAuthProvider("", ["google"])
