import io
import zipfile
from pathlib import Path

import pytest

BOOK_INI = """\
[book]
name = Sample Book
author = Someone
id = sample-book-id
toc = 2

[split]
AtLevel = 1

[output]
path = sample.epub
version = 2
"""

BOOK_HTML = """\
<html>
  <head>
    <title>Sample</title>
    <link rel="stylesheet" href="style.css" />
  </head>
  <body>
    <h1>Chapter One</h1>
    <p>one</p>
    <h2>Section</h2>
    <p>more</p>
    <h1>Chapter Two</h1>
    <p>two</p>
  </body>
</html>
"""

# smallest valid GIF, enough to stand in for a cover image
COVER_BYTES = (
    b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff!\xf9\x04\x01"
    b"\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
)


def write_source(root: Path, ini: str = BOOK_INI, html: str = BOOK_HTML) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "book.ini").write_text(ini, encoding="utf-8")
    (root / "book.html").write_text(html, encoding="utf-8")
    (root / "style.css").write_text("p { margin: 0; }\n", encoding="utf-8")
    (root / "cover.gif").write_bytes(COVER_BYTES)
    (root / "images").mkdir(exist_ok=True)
    (root / "images" / "map.gif").write_bytes(COVER_BYTES)
    return root


def zip_source(root: Path) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for path in sorted(root.rglob("*")):
            if path.is_file():
                archive.write(path, path.relative_to(root).as_posix())
    return buffer.getvalue()


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    return write_source(tmp_path / "sample")
