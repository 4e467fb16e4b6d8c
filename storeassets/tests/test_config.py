import pytest
from pydantic import ValidationError

from storeassets.config import (
    CompositorConfig,
    FetcherConfig,
    ParserConfig,
    ProxyEndpoint,
    Settings,
)


def test_default_settings():
    settings = Settings()
    assert settings.parser.max_screenshots == 5
    assert settings.fetcher.min_image_bytes == 100
    assert settings.compositor.icon_min_size == 50
    assert settings.compositor.screenshot_min_size == 200


def test_default_proxy_order():
    config = FetcherConfig()
    assert [p.name for p in config.html_proxies] == [
        "corsproxy", "allorigins", "codetabs", "direct",
    ]
    assert [e.name for e in config.image_endpoints] == [
        "wsrv", "corsproxy", "codetabs", "allorigins", "direct",
    ]
    assert [e.name for e in config.image_endpoints if e.fallback_only] == [
        "allorigins", "direct",
    ]


def test_proxy_template_requires_target():
    with pytest.raises(ValidationError):
        ProxyEndpoint(name="broken", template="https://proxy.example/")


def test_proxy_names_must_be_unique():
    endpoint = ProxyEndpoint(name="same", template="{raw_url}")
    with pytest.raises(ValidationError):
        FetcherConfig(html_proxies=[endpoint, endpoint])


def test_parser_limits_validated():
    with pytest.raises(ValidationError):
        ParserConfig(max_screenshots=0)


def test_compositor_opacity_validated():
    with pytest.raises(ValidationError):
        CompositorConfig(shadow_opacity=1.5)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("PARSER__MAX_SCREENSHOTS", "3")
    monkeypatch.setenv("FETCHER__TIMEOUT_SECONDS", "5")
    settings = Settings()
    assert settings.parser.max_screenshots == 3
    assert settings.fetcher.timeout_seconds == 5.0
