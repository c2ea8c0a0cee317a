import pytest

from rancher_exporter.config import ConfigError, load_settings


@pytest.fixture()
def clean_env(monkeypatch):
    for name in (
        "API_ACCESS_KEY",
        "API_SECRET_KEY",
        "HOST",
        "PORT",
        "LISTEN_PORT",
        "UPDATE_INTERVAL",
        "API_SCHEME",
        "LISTEN_HOST",
        "REQUEST_TIMEOUT",
        "MAX_CONCURRENCY",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("API_ACCESS_KEY", "access")
    monkeypatch.setenv("API_SECRET_KEY", "secret")
    return monkeypatch


def test_defaults(clean_env):
    settings = load_settings()

    assert settings.host == "localhost"
    assert settings.port == 8080
    assert settings.listen_port == 9010
    assert settings.update_interval == 5000
    assert settings.update_interval_seconds == 5.0
    assert settings.base_url == "http://localhost:8080"
    assert settings.max_concurrency == 16


def test_environment_overrides(clean_env):
    clean_env.setenv("HOST", "rancher.internal")
    clean_env.setenv("PORT", "443")
    clean_env.setenv("API_SCHEME", "HTTPS")
    clean_env.setenv("UPDATE_INTERVAL", "250")
    clean_env.setenv("MAX_CONCURRENCY", "0")
    clean_env.setenv("LOG_LEVEL", "warn")

    settings = load_settings()

    assert settings.base_url == "https://rancher.internal:443"
    assert settings.update_interval_seconds == 0.25
    assert settings.max_concurrency == 0
    assert settings.log_level == "WARNING"


@pytest.mark.parametrize("variable", ["API_ACCESS_KEY", "API_SECRET_KEY"])
def test_missing_credentials_raise_config_error(clean_env, variable):
    clean_env.delenv(variable)

    with pytest.raises(ConfigError) as excinfo:
        load_settings()

    assert excinfo.value.missing == [variable]
    assert variable in str(excinfo.value)


def test_blank_credential_counts_as_missing(clean_env):
    clean_env.setenv("API_SECRET_KEY", "   ")

    with pytest.raises(ConfigError) as excinfo:
        load_settings()

    assert excinfo.value.missing == ["API_SECRET_KEY"]


def test_invalid_interval_is_rejected(clean_env):
    clean_env.setenv("UPDATE_INTERVAL", "0")

    with pytest.raises(ConfigError) as excinfo:
        load_settings()

    assert excinfo.value.missing == []
    assert "UPDATE_INTERVAL" in str(excinfo.value)
