import pytest

from ledgerview.config import Settings
from ledgerview.errors import ConfigurationError


def test_defaults(monkeypatch):
    """Test settings without environment overrides."""
    for name in ("API_BASE_URL", "PAGE_SIZE", "TIMEOUT", "TODAY_LABEL"):
        monkeypatch.delenv(f"LEDGERVIEW_{name}", raising=False)

    settings = Settings.from_env()

    assert settings.api_base_url is None
    assert settings.page_size == 20
    assert settings.timeout == 10.0
    assert settings.labels.today == "Today"


def test_from_env(monkeypatch):
    """Test values read from the environment."""
    monkeypatch.setenv("LEDGERVIEW_API_BASE_URL", "https://api.example.test/")
    monkeypatch.setenv("LEDGERVIEW_PAGE_SIZE", "50")
    monkeypatch.setenv("LEDGERVIEW_RETRY_BASE_DELAY", "0.5")
    monkeypatch.setenv("LEDGERVIEW_YESTERDAY_LABEL", "Hôm qua")
    monkeypatch.setenv("LEDGERVIEW_FILTER_DEBOUNCE", "0")

    settings = Settings.from_env()

    assert settings.page_size == 50
    assert settings.retry_base_delay == 0.5
    assert settings.labels.yesterday == "Hôm qua"
    assert settings.filter_debounce == 0.0
    assert settings.require_base_url() == "https://api.example.test"


@pytest.mark.parametrize("value", ["abc", "0", "-3"])
def test_invalid_page_size(monkeypatch, value):
    """Test non-numeric and non-positive page sizes are rejected."""
    monkeypatch.setenv("LEDGERVIEW_PAGE_SIZE", value)

    with pytest.raises(ConfigurationError):
        Settings.from_env()


def test_require_base_url_missing():
    """Test the error for a missing API URL."""
    with pytest.raises(ConfigurationError, match="API_BASE_URL"):
        Settings().require_base_url()
