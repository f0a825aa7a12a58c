import pytest

from jira_timeline.core.config import ClientSettings
from jira_timeline.core.errors import ConfigurationError

ENV_VARS = (
    "JIRA_SERVER",
    "JIRA_EMAIL",
    "JIRA_LOGIN",
    "JIRA_API_TOKEN",
    "JIRA_TOKEN",
    "JIRA_AUTH_TYPE",
    "JIRA_INSTALLATION_TYPE",
    "JIRA_TIMEOUT",
    "JIRA_INSECURE",
    "JIRA_CA_CERT",
    "JIRA_CLIENT_CERT",
    "JIRA_CLIENT_KEY",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_and_api_version():
    settings = ClientSettings(server="https://x", login="me", api_token="t").validate()
    assert settings.auth_type == "basic"
    assert settings.timeout == 15.0
    assert settings.api_version == "3"
    assert ClientSettings(server="https://x", login="me", api_token="t", installation_type="Local").api_version == "2"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"server": ""},
        {"server": "https://x", "api_token": "t"},
        {"server": "https://x", "login": "me"},
        {"server": "https://x", "login": "me", "api_token": "t", "auth_type": "kerberos"},
        {"server": "https://x", "login": "me", "api_token": "t", "installation_type": "Hybrid"},
        {"server": "https://x", "auth_type": "mtls", "client_cert": "c.pem"},
        {"server": "https://x", "login": "me", "api_token": "t", "timeout": 0},
    ],
)
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        ClientSettings(**kwargs).validate()


def test_bearer_and_mtls_do_not_need_login():
    ClientSettings(server="https://x", api_token="t", auth_type="bearer").validate()
    ClientSettings(server="https://x", auth_type="mtls", client_cert="c.pem", client_key="k.pem").validate()


def test_from_env(clean_env):
    clean_env.setenv("JIRA_SERVER", "https://jira.example.com")
    clean_env.setenv("JIRA_EMAIL", "me@example.com")
    clean_env.setenv("JIRA_API_TOKEN", "secret")
    clean_env.setenv("JIRA_INSTALLATION_TYPE", "local")
    clean_env.setenv("JIRA_TIMEOUT", "30")
    settings = ClientSettings.from_env("/nonexistent/.env")
    assert settings.server == "https://jira.example.com"
    assert settings.installation_type == "Local"
    assert settings.timeout == 30.0


def test_from_env_file_does_not_override_process_env(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("JIRA_SERVER=https://from-file\nJIRA_EMAIL=file@example.com\nJIRA_API_TOKEN=file-token\n")
    clean_env.setenv("JIRA_API_TOKEN", "process-token")
    settings = ClientSettings.from_env(str(env_file))
    assert settings.server == "https://from-file"
    assert settings.api_token == "process-token"


def test_from_env_rejects_bad_timeout(clean_env):
    clean_env.setenv("JIRA_SERVER", "https://x")
    clean_env.setenv("JIRA_TIMEOUT", "soon")
    with pytest.raises(ConfigurationError):
        ClientSettings.from_env("/nonexistent/.env")
