"""
Unit tests -- GA4 credentials resolution and the lazily-built API handle.
"""
import pytest

from ga4chat.analytics import client as client_module
from ga4chat.analytics.client import SCOPES, AnalyticsClient, resolve_credentials
from ga4chat.core.config import Settings
from ga4chat.core.errors import ConfigError


@pytest.fixture
def fake_loaders(monkeypatch):
    calls = []

    def from_info(info, scopes):
        calls.append(("info", info, scopes))
        return "creds-from-info"

    def from_file(path, scopes):
        calls.append(("file", path, scopes))
        return "creds-from-file"

    creds_cls = client_module.service_account.Credentials
    monkeypatch.setattr(creds_cls, "from_service_account_info", staticmethod(from_info))
    monkeypatch.setattr(creds_cls, "from_service_account_file", staticmethod(from_file))
    return calls


def test_inline_json_wins(fake_loaders):
    creds = resolve_credentials('{"type": "service_account"}', "/keys/ga.json")
    assert creds == "creds-from-info"
    assert fake_loaders == [("info", {"type": "service_account"}, SCOPES)]


def test_file_path_used_when_no_inline_json(fake_loaders):
    creds = resolve_credentials("", "/keys/ga.json")
    assert creds == "creds-from-file"
    assert fake_loaders == [("file", "/keys/ga.json", SCOPES)]


def test_neither_source_is_config_error():
    with pytest.raises(ConfigError, match="Neither GA_CREDENTIALS_JSON nor GOOGLE_APPLICATION_CREDENTIALS"):
        resolve_credentials("", "")


def test_malformed_inline_json_is_config_error():
    with pytest.raises(ConfigError, match="Invalid GA_CREDENTIALS_JSON format"):
        resolve_credentials("{not-json", "")


@pytest.mark.parametrize("raw", ['"abc"', "[1, 2]", "42", "null"])
def test_non_object_inline_json_is_config_error(raw):
    with pytest.raises(ConfigError, match="Invalid GA_CREDENTIALS_JSON format"):
        resolve_credentials(raw, "")


def test_missing_key_file_is_config_error(tmp_path):
    with pytest.raises(ConfigError, match="Cannot load GA credentials file"):
        resolve_credentials("", str(tmp_path / "missing.json"))


def test_api_handle_built_once(fake_loaders, monkeypatch):
    built = []

    def fake_data_client(credentials):
        built.append(credentials)
        return object()

    monkeypatch.setattr(client_module, "BetaAnalyticsDataClient", fake_data_client)
    client = AnalyticsClient(property_id="1", credentials_path="/keys/ga.json")
    assert client._api() is client._api()
    assert built == ["creds-from-file"]


def test_from_settings():
    settings = Settings(
        ga4_property_id="987",
        ga_credentials_json="{}",
        google_application_credentials="/keys/ga.json",
    )
    client = AnalyticsClient.from_settings(settings)
    assert client.property_id == "987"
    assert client._credentials_json == "{}"
    assert client._credentials_path == "/keys/ga.json"
