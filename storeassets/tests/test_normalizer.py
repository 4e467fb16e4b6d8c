import pytest

from storeassets.normalizer import normalize


@pytest.mark.parametrize("url, expected", [
    (
        "https://play-lh.googleusercontent.com/abc=w526-h296-rw",
        "https://play-lh.googleusercontent.com/abc=s0",
    ),
    (
        "https://play-lh.googleusercontent.com/abc=s64",
        "https://play-lh.googleusercontent.com/abc=s0",
    ),
    (
        "https://play-lh.googleusercontent.com/abc",
        "https://play-lh.googleusercontent.com/abc=s0",
    ),
    (
        "https://lh3.ggpht.com/photo.png",
        "https://lh3.ggpht.com/photo.png",
    ),
    (
        "https://image.winudf.com/v2/image/abc/screen.jpg?fakeurl=1&type=.jpg",
        "https://image.winudf.com/v2/image/abc/screen.jpg",
    ),
    (
        "https://image.winudf.com/v2/image/abc/screen.jpg?token=xyz",
        "https://image.winudf.com/v2/image/abc/screen.jpg?token=xyz",
    ),
    (
        "https://example.com/img.png?w=100",
        "https://example.com/img.png?w=100",
    ),
])
def test_normalize(url, expected):
    assert normalize(url) == expected


def test_normalize_is_idempotent():
    urls = [
        "https://play-lh.googleusercontent.com/abc=w526-h296-rw",
        "https://play-lh.googleusercontent.com/abc",
        "https://image.winudf.com/v2/image/x.png?w=10",
        "https://example.com/a.png",
    ]
    for url in urls:
        once = normalize(url)
        assert normalize(once) == once


def test_normalize_empty_and_unparseable():
    assert normalize("") == ""
    assert normalize("   ") == ""
    assert normalize("http://[::1") == "http://[::1"


def test_normalize_ignores_lookalike_hosts():
    url = "https://googleusercontent.com.evil.example/abc=w100"
    assert normalize(url) == url
