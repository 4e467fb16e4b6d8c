import json

import pytest

from storeassets.config import ParserConfig, ScoringWeights
from storeassets.extractor import extract
from storeassets.extractor.image_extractor import (
    largest_from_srcset,
    score_icon_candidate,
    to_absolute,
    vacuum_icon,
)
from storeassets.extractor.metadata import clean_app_name, extract_jsonld_app
from storeassets.models.listing import SiteFamily
from storeassets.parser import parse_html


def _jsonld(payload):
    return f'<script type="application/ld+json">{json.dumps(payload)}</script>'


def test_jsonld_name_and_icon():
    html = "<html><head>" + _jsonld({
        "@context": "https://schema.org",
        "@type": "SoftwareApplication",
        "name": "Demo App",
        "image": "https://example.com/icon.png",
    }) + "</head><body></body></html>"

    data = extract(html, "https://example.com/app")

    assert data.app_name == "Demo App"
    assert data.icon_url == "https://example.com/icon.png"


def test_jsonld_graph_and_image_object():
    html = _jsonld({
        "@graph": [
            {"@type": "WebPage", "name": "Store page"},
            {
                "@type": ["MobileApplication", "Thing"],
                "name": "Graph &amp; App",
                "image": {"@type": "ImageObject", "url": "https://example.com/g.png"},
            },
        ]
    })
    name, image = extract_jsonld_app(parse_html(html))
    assert name == "Graph & App"
    assert image == "https://example.com/g.png"


def test_malformed_jsonld_is_skipped():
    html = (
        '<script type="application/ld+json">{not json</script>'
        "<h1>Fallback Name</h1>"
    )
    data = extract(html, "https://example.com/app")
    assert data.app_name == "Fallback Name"


def test_clean_app_name():
    assert clean_app_name("  <b>Demo</b>\n  App ") == "Demo App"
    assert clean_app_name("<span></span>") is None


def test_google_play_listing():
    html = """
    <html><head>
      <meta property="og:image" content="https://play-lh.googleusercontent.com/feature=w1024">
    </head><body>
      <h1 itemprop="name"><span>Play Game</span></h1>
      <img class="app-icon-img" alt="Icon image"
           src="https://play-lh.googleusercontent.com/icon=s64" width="64" height="64">
      <div>
        <button><img src="https://play-lh.googleusercontent.com/shot1=w526-h296"
             srcset="https://play-lh.googleusercontent.com/shot1=w526-h296 1x,
                     https://play-lh.googleusercontent.com/shot1=w1052-h592 2x"></button>
        <button><img src="https://play-lh.googleusercontent.com/shot2=w526-h296"></button>
        <button><img src="https://play-lh.googleusercontent.com/icon=s128"></button>
        <button><img src="https://www.gstatic.com/badge.png"></button>
      </div>
    </body></html>
    """
    data = extract(html, "https://play.google.com/store/apps/details?id=com.play.game")

    assert data.app_name == "Play Game"
    assert data.icon_url == "https://play-lh.googleusercontent.com/icon=s64"
    # The icon thumbnail inside the gallery is not a screenshot
    assert data.screenshot_urls == [
        "https://play-lh.googleusercontent.com/shot1=w1052-h592",
        "https://play-lh.googleusercontent.com/shot2=w526-h296",
    ]


def test_google_play_ignores_og_image():
    html = """
    <meta property="og:image" content="https://play-lh.googleusercontent.com/feature=w1024">
    <img class="icon" src="https://play-lh.googleusercontent.com/real=s64" width="64" height="64">
    """
    data = extract(html, "https://play.google.com/store/apps/details?id=x")
    assert data.icon_url == "https://play-lh.googleusercontent.com/real=s64"


def test_generic_page_uses_og_image():
    html = '<meta property="og:image" content="/img/share.png"><h1>Site</h1>'
    data = extract(html, "https://example.com/apps/site")
    assert data.icon_url == "https://example.com/img/share.png"


def test_apkpure_gallery_links_capped_and_filtered():
    links = "".join(
        f'<a href="/shots/{i}.jpg"><img src="/thumbs/{i}.jpg"></a>' for i in range(1, 8)
    )
    html = f"""
    <h1 class="title-like">Pure App</h1>
    <div class="icon"><img src="https://image.winudf.com/v2/icon.png?w=64"></div>
    <div class="screen-pswp">
      <a href="https://cdn.example.com/avatar/me.jpg"></a>
      {links}
    </div>
    """
    data = extract(html, "https://apkpure.com/pure-app/com.pure")

    assert data.app_name == "Pure App"
    assert data.icon_url == "https://image.winudf.com/v2/icon.png?w=64"
    assert data.screenshot_urls == [f"https://apkpure.com/shots/{i}.jpg" for i in range(1, 6)]


def test_apkcombo_falls_back_to_gallery_images():
    html = """
    <div id="gallery-screenshots">
      <img data-src="https://cdn.example.com/s1.png" src="data:image/gif;base64,R0lGOD">
      <img data-src="https://cdn.example.com/s2.png">
    </div>
    """
    data = extract(html, "https://apkcombo.com/app/com.combo/")
    assert data.screenshot_urls == [
        "https://cdn.example.com/s1.png",
        "https://cdn.example.com/s2.png",
    ]


def test_vacuum_tiers_only_run_below_minimum():
    gallery = "".join(f'<a href="https://cdn.example.com/g{i}.png"></a>' for i in range(3))
    html = f"""
    <div class="gallery">{gallery}</div>
    <img class="screenshot" src="https://cdn.example.com/extra.png">
    """
    data = extract(html, "https://example.com/app")
    assert data.screenshot_urls == [f"https://cdn.example.com/g{i}.png" for i in range(3)]

    data = extract(html, "https://example.com/app", config=ParserConfig(min_screenshots=4))
    assert data.screenshot_urls[-1] == "https://cdn.example.com/extra.png"


def test_vacuum_screenshots_by_url_hint():
    html = """
    <img src="https://cdn.example.com/mktg/one.png">
    <img src="https://cdn.example.com/banner.png">
    <div class="screens"><img src="https://cdn.example.com/two.png"></div>
    """
    data = extract(html, "https://example.com/app")
    assert data.screenshot_urls == [
        "https://cdn.example.com/mktg/one.png",
        "https://cdn.example.com/two.png",
    ]


def test_icon_vacuum_scoring():
    weights = ScoringWeights()
    parser = parse_html("""
    <img class="user-avatar icon" src="https://cdn.example.com/avatar.png">
    <img class="screenshot" src="https://cdn.example.com/shot.png" width="512" height="512">
    <div class="brand-logo"><img src="https://cdn.example.com/brand.png" width="96" height="96"></div>
    <img src="https://cdn.example.com/plain.png">
    """)
    images = parser.select("img")

    assert score_icon_candidate(images[0], weights) == 5
    assert score_icon_candidate(images[1], weights) == -15
    assert score_icon_candidate(images[2], weights) == 10
    assert score_icon_candidate(images[3], weights) == 0
    assert vacuum_icon(parser, weights) == "https://cdn.example.com/brand.png"


def test_icon_vacuum_requires_positive_score():
    parser = parse_html('<img src="https://cdn.example.com/plain.png">')
    assert vacuum_icon(parser, ScoringWeights()) is None


def test_favicon_is_last_resort():
    html = '<link rel="apple-touch-icon" href="/favicon-180.png">'
    data = extract(html, "https://example.com/app")
    assert data.icon_url == "https://example.com/favicon-180.png"

    html += '<img class="app-icon" src="/real-icon.png" width="128" height="128">'
    data = extract(html, "https://example.com/app")
    assert data.icon_url == "https://example.com/real-icon.png"


def test_empty_and_garbage_pages():
    assert extract("", "https://example.com").is_empty
    assert extract("<<<>>>\x00", "https://example.com").is_empty


@pytest.mark.parametrize("path, expected", [
    ("//cdn.example.com/a.png", "https://cdn.example.com/a.png"),
    ("/a.png", "https://example.com/a.png"),
    ("b.png", "https://example.com/apps/b.png"),
    ("https://other.example/c.png", "https://other.example/c.png"),
    ("data:image/png;base64,AAA", ""),
    ("javascript:void(0)", ""),
    ("", ""),
    (None, ""),
])
def test_to_absolute(path, expected):
    assert to_absolute(path, "https://example.com/apps/page") == expected


def test_largest_from_srcset():
    assert largest_from_srcset("a.png 1x, b.png 2x") == "b.png"
    assert largest_from_srcset("a.png 640w, b.png 320w") == "a.png"
    assert largest_from_srcset("only.png") == "only.png"
    assert largest_from_srcset("") is None


def test_site_family_override():
    html = '<div class="screen-pswp"><a href="https://cdn.example.com/1.jpg"></a></div>'
    data = extract(html, "https://mirror.example/app", site_family=SiteFamily.APK_PURE)
    assert data.screenshot_urls == ["https://cdn.example.com/1.jpg"]
