import httpx
import pytest

from storeassets.config import FetcherConfig, ProxyEndpoint
from storeassets.errors import FetchExhausted
from storeassets.fetcher import (
    FetchStrategy,
    ResourceFetcher,
    accept_image,
    image_strategies,
    page_strategies,
)

PNG_BODY = b"\x89PNG\r\n\x1a\n" + b"\x00" * 200
PAGE_HTML = "<html><body>" + "x" * 3000 + "</body></html>"

ENDPOINTS = [
    ProxyEndpoint(name="one", template="https://one.proxy/?u={url}"),
    ProxyEndpoint(name="two", template="https://two.proxy/?u={url}"),
    ProxyEndpoint(name="direct", template="{raw_url}", fallback_only=True),
]


def _config(**kwargs):
    return FetcherConfig(html_proxies=ENDPOINTS, image_endpoints=ENDPOINTS, **kwargs)


def _fetcher(handler, config=None, **kwargs):
    return ResourceFetcher(config or _config(), transport=httpx.MockTransport(handler), **kwargs)


def test_request_url_encodes_target():
    strategy = FetchStrategy(
        url_variant="https://example.com/a b?x=1",
        endpoint=ProxyEndpoint(name="p", template="https://p/?url={url}&t={timestamp}"),
    )
    assert strategy.request_url(timestamp=42) == (
        "https://p/?url=https%3A%2F%2Fexample.com%2Fa%20b%3Fx%3D1&t=42"
    )


def test_raw_url_template_passes_target_through():
    strategy = FetchStrategy(url_variant="https://example.com/a", endpoint=ENDPOINTS[2])
    assert strategy.request_url() == "https://example.com/a"


def test_page_strategies_follow_proxy_order():
    strategies = page_strategies("https://example.com", ENDPOINTS)
    assert [s.endpoint.name for s in strategies] == ["one", "two", "direct"]


def test_image_strategies_order():
    strategies = image_strategies(["https://cdn/hi", "https://cdn/lo"], ENDPOINTS)
    assert [(s.url_variant, s.endpoint.name) for s in strategies] == [
        ("https://cdn/hi", "one"),
        ("https://cdn/hi", "two"),
        ("https://cdn/lo", "one"),
        ("https://cdn/lo", "two"),
        ("https://cdn/lo", "direct"),
    ]


def test_image_strategies_dedupe_identical_variants():
    strategies = image_strategies(["https://cdn/a", "https://cdn/a"], ENDPOINTS)
    assert [(s.url_variant, s.endpoint.name) for s in strategies] == [
        ("https://cdn/a", "one"),
        ("https://cdn/a", "two"),
        ("https://cdn/a", "direct"),
    ]


def test_accept_image():
    accept = accept_image(100)
    assert accept(httpx.Response(200, content=PNG_BODY, headers={"content-type": "image/png"}))
    assert not accept(httpx.Response(200, content=b"x" * 50, headers={"content-type": "image/png"}))
    assert not accept(httpx.Response(200, content=PNG_BODY, headers={"content-type": "text/html"}))


@pytest.mark.asyncio
async def test_fetch_image_skips_tiny_body():
    requested = []

    def handler(request):
        requested.append(request.url.host)
        if request.url.host == "one.proxy":
            return httpx.Response(200, content=b"x" * 50, headers={"content-type": "image/png"})
        return httpx.Response(200, content=PNG_BODY, headers={"content-type": "image/png"})

    async with _fetcher(handler) as fetcher:
        data = await fetcher.fetch_image("https://example.com/icon.png")

    assert data == PNG_BODY
    assert requested == ["one.proxy", "two.proxy"]


@pytest.mark.asyncio
async def test_fetch_image_requests_high_resolution_first():
    requested = []

    def handler(request):
        requested.append(str(request.url))
        return httpx.Response(200, content=PNG_BODY, headers={"content-type": "image/png"})

    async with _fetcher(handler) as fetcher:
        await fetcher.fetch_image("https://play-lh.googleusercontent.com/abc=w240-h480")

    assert "abc%3Ds0" in requested[0]


@pytest.mark.asyncio
async def test_fetch_html_falls_through_errors():
    def handler(request):
        if request.url.host == "one.proxy":
            raise httpx.ConnectError("refused", request=request)
        if request.url.host == "two.proxy":
            return httpx.Response(200, text="<html>blocked</html>")
        return httpx.Response(200, text=PAGE_HTML)

    async with _fetcher(handler) as fetcher:
        html = await fetcher.fetch_html("https://example.com/app")

    assert html == PAGE_HTML


@pytest.mark.asyncio
async def test_fetch_exhausted():
    calls = []

    def handler(request):
        calls.append(request.url.host)
        return httpx.Response(503)

    async with _fetcher(handler) as fetcher:
        with pytest.raises(FetchExhausted) as exc_info:
            await fetcher.fetch_html("https://example.com/app")

    # One attempt per strategy, no retries
    assert calls == ["one.proxy", "two.proxy", "example.com"]
    assert exc_info.value.attempts == 3


@pytest.mark.asyncio
async def test_no_credentials_or_referrer_sent():
    seen = []

    def handler(request):
        seen.append(request.headers)
        return httpx.Response(
            200,
            text=PAGE_HTML,
            headers={"set-cookie": "session=secret; Path=/"},
        )

    fetcher = _fetcher(handler, default_headers={"Referer": "https://me", "Authorization": "x"})
    async with fetcher:
        await fetcher.fetch_html("https://example.com/app")
        await fetcher.fetch_html("https://example.com/app")

    for headers in seen:
        assert "referer" not in headers
        assert "authorization" not in headers
        assert "cookie" not in headers


@pytest.mark.asyncio
async def test_fetch_image_falls_back_to_original_url():
    requested = []

    def handler(request):
        requested.append(str(request.url))
        if request.url.params.get("w") == "64":
            return httpx.Response(200, content=PNG_BODY, headers={"content-type": "image/png"})
        return httpx.Response(404)

    direct = ProxyEndpoint(name="direct", template="{raw_url}")
    config = FetcherConfig(html_proxies=[direct], image_endpoints=[direct])
    async with _fetcher(handler, config=config) as fetcher:
        data = await fetcher.fetch_image("https://image.winudf.com/v2/icon.png?w=64")

    assert data == PNG_BODY
    assert requested == [
        "https://image.winudf.com/v2/icon.png",
        "https://image.winudf.com/v2/icon.png?w=64",
    ]


@pytest.mark.asyncio
async def test_cookies_from_redirect_are_not_forwarded():
    landing_headers = []

    def handler(request):
        if request.url.host == "one.proxy":
            return httpx.Response(
                302,
                headers={
                    "location": "https://landing.example/page",
                    "set-cookie": "tracker=abc; Domain=.example; Path=/",
                },
            )
        landing_headers.append(request.headers)
        return httpx.Response(
            200,
            text=PAGE_HTML,
            headers={"set-cookie": "session=secret; Path=/"},
        )

    async with _fetcher(handler) as fetcher:
        html = await fetcher.fetch_html("https://example.com/app")
        assert html == PAGE_HTML
        assert len(fetcher.client.cookies) == 0

    assert len(landing_headers) == 1
    assert "cookie" not in landing_headers[0]
