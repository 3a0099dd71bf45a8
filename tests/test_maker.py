import io
import zipfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import BOOK_HTML, BOOK_INI, write_source, zip_source
from makeepub.core.context import JobContext
from makeepub.core.errors import ConfigError
from makeepub.core.folder import DirectoryFolder, ZipFolder
from makeepub.core.maker import EpubMaker, make_book
from makeepub.core.reader import EpubReader, flatten_toc

INI_WITHOUT_OUTPUT = """\
[book]
name = Sample Book
author = Someone
"""


def _names(data: bytes) -> list[str]:
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return archive.namelist()


def _read(data: bytes, name: str) -> bytes:
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return archive.read(name)


def test_process_directory(source_dir: Path) -> None:
    ctx = JobContext()
    with DirectoryFolder(source_dir) as folder:
        result = EpubMaker(ctx).process(folder)

    assert result.name == "sample.epub"
    assert result.output_path == "sample.epub"
    assert result.options.epub_version == 2
    assert result.book.id == "sample-book-id"
    assert result.book.language == "zh"
    assert result.book.cover == "cover.gif"
    assert _names(result.data) == [
        "mimetype",
        "META-INF/container.xml",
        "cover.html",
        "content.opf",
        "toc.ncx",
        "chapter_0001.html",
        "chapter_0002.html",
        "cover.gif",
        "images/map.gif",
        "style.css",
    ]
    assert ctx.messages == []


def test_chapters_follow_headings(source_dir: Path) -> None:
    with DirectoryFolder(source_dir) as folder:
        result = EpubMaker().process(folder)

    chapters = result.book.content_files()
    assert [[ref.title for ref in entry.chapters] for entry in chapters] == [
        ["Chapter One", "Section"],
        ["Chapter Two"],
    ]
    assert b"Chapter Two" not in chapters[0].data
    assert b'href="style.css"' in chapters[1].data


def test_written_epub_reads_back(source_dir: Path, tmp_path: Path) -> None:
    written = make_book(source_dir, tmp_path / "out.epub")
    assert written == tmp_path / "out.epub"

    summary = EpubReader(written).read()
    assert summary.metadata.title == "Sample Book"
    assert summary.metadata.authors == ["Someone"]
    assert summary.metadata.identifier == "sample-book-id"
    assert summary.spine_order == ["cover", "item0000", "item0001"]
    assert [entry.title for entry in flatten_toc(summary.toc)] == [
        "Chapter One",
        "Section",
        "Chapter Two",
    ]


def test_version_override_writes_nav(source_dir: Path) -> None:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    with DirectoryFolder(source_dir) as folder:
        result = EpubMaker(epub_version=3, now=now).process(folder)

    names = _names(result.data)
    assert "nav.xhtml" in names
    assert "toc.ncx" not in names
    nav = _read(result.data, "nav.xhtml")
    assert b"Chapter One" in nav
    assert b'href="chapter_0001.html#chapter-2"' in nav


def test_duokan_switch(tmp_path: Path) -> None:
    on = write_source(tmp_path / "on")
    off = write_source(tmp_path / "off", ini=BOOK_INI + "duokan = false\n")

    with DirectoryFolder(on) as folder:
        assert b"duokan-page-fullscreen" in _read(EpubMaker().process(folder).data, "content.opf")
    with DirectoryFolder(off) as folder:
        result = EpubMaker().process(folder)
    assert not result.options.extension
    assert b"duokan-page-fullscreen" not in _read(result.data, "content.opf")

    with DirectoryFolder(on) as folder:
        result = EpubMaker(extension=False).process(folder)
    assert b"duokan-page-fullscreen" not in _read(result.data, "content.opf")


def test_marker_mode_from_config(tmp_path: Path) -> None:
    html = (
        "<html><body>"
        '<div class="epub-chapter"></div><h1>One</h1><p>a</p>'
        '<div class="epub-chapter"></div><h1>Two</h1><p>b</p>'
        "</body></html>"
    )
    root = write_source(tmp_path / "marker", ini=BOOK_INI + "[split]\nbydiv = true\n", html=html)
    with DirectoryFolder(root) as folder:
        result = EpubMaker().process(folder)
    assert [entry.chapters[0].title for entry in result.book.content_files()] == ["One", "Two"]


def test_invalid_options_warn(tmp_path: Path) -> None:
    ini = BOOK_INI.replace("toc = 2", "toc = 9").replace("AtLevel = 1", "AtLevel = deep")
    root = write_source(tmp_path / "bad", ini=ini)
    ctx = JobContext()
    with DirectoryFolder(root) as folder:
        result = EpubMaker(ctx).process(folder)
    assert result.options.toc_depth == 2
    assert result.options.split_level == 1
    assert len(ctx.messages) == 2


def test_empty_name_and_author_warn(tmp_path: Path) -> None:
    root = write_source(tmp_path / "anon", ini="[output]\npath = a.epub\n")
    ctx = JobContext()
    with DirectoryFolder(root) as folder:
        EpubMaker(ctx).process(folder)
    assert ctx.messages == ["book name is empty", "author name is empty"]


def test_generated_names_in_source_are_ignored(source_dir: Path) -> None:
    (source_dir / "content.opf").write_text("<bogus/>")
    ctx = JobContext()
    with DirectoryFolder(source_dir) as folder:
        result = EpubMaker(ctx).process(folder)
    assert b"<bogus/>" not in _read(result.data, "content.opf")
    assert _names(result.data).count("content.opf") == 1
    assert any("content.opf" in message for message in ctx.messages)


@pytest.mark.parametrize("missing", ["book.ini", "book.html"])
def test_missing_required_file(source_dir: Path, missing: str) -> None:
    (source_dir / missing).unlink()
    with DirectoryFolder(source_dir) as folder:
        with pytest.raises(ConfigError, match=missing):
            EpubMaker().process(folder)


def test_make_book_from_zip(source_dir: Path, tmp_path: Path) -> None:
    write_source(source_dir, ini=INI_WITHOUT_OUTPUT, html=BOOK_HTML)
    archive = tmp_path / "upload.zip"
    archive.write_bytes(zip_source(source_dir))
    outdir = tmp_path / "out"
    outdir.mkdir()

    written = make_book(archive, outdir)
    assert written == outdir / "upload.epub"
    assert zipfile.is_zipfile(written)

    with ZipFolder(archive) as folder:
        assert _names(EpubMaker().process(folder).data) == _names(written.read_bytes())


def test_make_book_uses_configured_path(
    source_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    written = make_book(source_dir)
    assert written == Path("sample.epub")
    assert (tmp_path / "sample.epub").exists()


def test_make_book_without_output_path(tmp_path: Path) -> None:
    root = write_source(tmp_path / "nopath", ini=INI_WITHOUT_OUTPUT)
    ctx = JobContext()
    assert make_book(root, ctx=ctx) is None
    assert ctx.messages == ["output path is empty, no file will be created"]
    assert not list(tmp_path.glob("*.epub"))


def test_make_book_bad_input(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        make_book(tmp_path / "missing")
    broken = tmp_path / "broken.zip"
    broken.write_bytes(b"not a zip")
    with pytest.raises(ConfigError):
        make_book(broken)
