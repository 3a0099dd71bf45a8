import pytest

from makeepub.core.media_types import DEFAULT_MEDIA_TYPE, media_type


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("chapter_0001.html", "application/xhtml+xml"),
        ("old/page.HTM", "application/xhtml+xml"),
        ("nav.xhtml", "application/xhtml+xml"),
        ("css/style.css", "text/css"),
        ("toc.ncx", "application/x-dtbncx+xml"),
        ("images/cover.JPG", "image/jpeg"),
        ("a.jpeg", "image/jpeg"),
        ("a.png", "image/png"),
        ("a.gif", "image/gif"),
        ("a.svg", "image/svg+xml"),
        ("fonts\\serif.ttf", "application/x-font-ttf"),
    ],
)
def test_known_extensions(path: str, expected: str) -> None:
    assert media_type(path) == expected


@pytest.mark.parametrize("path", ["README", "data.bin", "archive.tar.zst", ".hidden"])
def test_unknown_extensions_fall_back(path: str) -> None:
    assert media_type(path) == DEFAULT_MEDIA_TYPE
