import pytest
from pydantic import ValidationError

from deepexo_dashboard.core.config import (
    DEFAULT_DISPLAY_URL,
    DEFAULT_REQUEST_URL,
    Settings,
    sanitize_base,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("API_BASE_URL", "API_REQUEST_BASE", "DISPLAY_API_URL", "HISTOGRAM_BINS", "REQUEST_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


def test_sanitize_base():
    assert sanitize_base(None, "/fallback") == "/fallback"
    assert sanitize_base("", "/fallback") == "/fallback"
    assert sanitize_base("api", "/x") == "/api"
    assert sanitize_base("/api/", "/x") == "/api"
    assert sanitize_base("https://example.org/api/", "/x") == "https://example.org/api"
    assert sanitize_base("http://localhost:8000", "/x") == "http://localhost:8000"


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.request_base_url == DEFAULT_REQUEST_URL
    assert settings.display_base_url == DEFAULT_DISPLAY_URL
    assert settings.REQUEST_TIMEOUT == 20.0
    assert settings.HISTOGRAM_BINS == 20


def test_base_url_from_environment(monkeypatch):
    monkeypatch.setenv("API_BASE_URL", "https://models.example.org/api/")
    settings = Settings(_env_file=None)
    assert settings.request_base_url == "https://models.example.org/api"
    assert settings.display_base_url == "https://models.example.org/api"


def test_request_base_takes_precedence(monkeypatch):
    monkeypatch.setenv("API_BASE_URL", "https://models.example.org/api")
    monkeypatch.setenv("API_REQUEST_BASE", "proxy/")
    monkeypatch.setenv("DISPLAY_API_URL", "https://public.example.org/api/")
    settings = Settings(_env_file=None)
    assert settings.request_base_url == "/proxy"
    assert settings.display_base_url == "https://public.example.org/api"


def test_invalid_bins_rejected(monkeypatch):
    monkeypatch.setenv("HISTOGRAM_BINS", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
