import pytest

from deeplink_auth.core.config.settings import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("CONTEXT_TTL_MINUTES", raising=False)
    settings = Settings(_env_file=None, APP_ENV="test")

    assert settings.CONTEXT_TTL_MINUTES == 30
    assert settings.OAUTH_STATE_TTL_MINUTES == 10
    assert settings.SUPPORTED_LANGUAGES == ["en", "es"]
    assert settings.DEFAULT_LANDING_PATH == "/competitions"


def test_site_url_trailing_slash_is_stripped():
    settings = Settings(_env_file=None, APP_ENV="test", SITE_URL="https://fit.example.com/")
    assert settings.SITE_URL == "https://fit.example.com"


def test_allowed_origins_are_split():
    settings = Settings(
        _env_file=None, APP_ENV="test", ALLOWED_ORIGINS="https://a.example.com, https://b.example.com"
    )
    assert settings.ALLOWED_ORIGINS == ["https://a.example.com", "https://b.example.com"]


def test_redis_url_is_assembled():
    settings = Settings(
        _env_file=None,
        APP_ENV="test",
        REDIS_HOST="cache",
        REDIS_PORT=6380,
        REDIS_SSL=True,
        REDIS_URL="",
    )
    assert settings.REDIS_URL == "rediss://cache:6380/0"


def test_redis_password_required_in_production():
    with pytest.raises(ValueError):
        Settings(
            _env_file=None,
            APP_ENV="production",
            CONTEXT_STORAGE_BACKEND="redis",
            REDIS_PASSWORD="",
        )


def test_unknown_storage_backend_rejected():
    with pytest.raises(ValueError):
        Settings(_env_file=None, APP_ENV="test", CONTEXT_STORAGE_BACKEND="memcached")


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        Settings(_env_file=None, APP_ENV="test", CONTEXT_TTL_MINUTES=0)
