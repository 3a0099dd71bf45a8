"""Run one conversion job: source tree in, EPUB out."""

import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath

from makeepub.core.builder import INTERNAL_NAMES, ContainerBuilder
from makeepub.core.context import JobContext
from makeepub.core.errors import ConfigError
from makeepub.core.folder import SourceFolder, open_folder
from makeepub.core.ini import BookConfig
from makeepub.core.packager import EpubPackager, write_atomic
from makeepub.core.splitter import split_document
from makeepub.models.book import Book, FileEntry
from makeepub.models.options import SplitOptions, TriggerMode

CONFIG_FILE = "book.ini"
CONTENT_FILE = "book.html"
COVER_PAGE_FILE = "cover.html"
RESERVED_NAMES = frozenset({CONFIG_FILE, CONTENT_FILE, COVER_PAGE_FILE})
COVER_IMAGE_NAMES = frozenset({"cover.png", "cover.jpg", "cover.jpeg", "cover.gif"})

DEFAULT_LANGUAGE = "zh"


@dataclass
class MakeResult:
    """Outcome of a conversion job."""

    book: Book
    options: SplitOptions
    data: bytes
    name: str  # file name of the EPUB
    output_path: str = ""  # output/path from book.ini
    internal: list[FileEntry] = field(default_factory=list)


class EpubMaker:
    """Convert one source tree into an in-memory EPUB.

    Values given to the constructor override the matching book.ini keys.
    """

    def __init__(
        self,
        ctx: JobContext | None = None,
        epub_version: int | None = None,
        extension: bool | None = None,
        now: datetime | None = None,
    ):
        self.ctx = ctx or JobContext()
        self.epub_version = epub_version
        self.extension = extension
        self.now = now

    def process(self, folder: SourceFolder) -> MakeResult:
        """Convert a source tree.

        Raises:
            ConfigError: If book.ini or book.html cannot be read
            BuildError: If a package file cannot be rendered or zipped
        """
        config = self.load_config(folder)
        options = self.options_from_config(config)
        book = self.book_from_config(config)
        book.extension = options.extension

        try:
            html = folder.read(CONTENT_FILE)
        except (OSError, zipfile.BadZipFile) as e:
            raise ConfigError(f"failed to open '{CONTENT_FILE}': {e}") from e

        split_document(html, book, options, self.ctx)
        self.add_files(book, folder)

        internal = ContainerBuilder(book, options.epub_version, self.ctx, self.now).build()
        packager = EpubPackager()
        packager.add_files(internal)
        packager.add_files(book.files)

        output_path = config.get_str("/output/path").strip()
        if output_path:
            name = PurePosixPath(output_path.replace("\\", "/")).name
        else:
            name = (Path(folder.name).stem or "book") + ".epub"

        self.ctx.info(
            "%d chapter file(s), %d other file(s)",
            len(book.content_files()),
            len(book.files) - len(book.content_files()),
        )
        return MakeResult(
            book=book,
            options=options,
            data=packager.getvalue(),
            name=name,
            output_path=output_path,
            internal=internal,
        )

    def load_config(self, folder: SourceFolder) -> BookConfig:
        try:
            return BookConfig.parse(folder.read(CONFIG_FILE))
        except (OSError, UnicodeDecodeError, zipfile.BadZipFile) as e:
            raise ConfigError(f"failed to open '{CONFIG_FILE}': {e}") from e

    def book_from_config(self, config: BookConfig) -> Book:
        book = Book(
            title=config.get_str("/book/name"),
            author=config.get_str("/book/author"),
            publisher=config.get_str("/book/publisher"),
            description=config.get_str("/book/description"),
            language=config.get_str("/book/language") or DEFAULT_LANGUAGE,
        )
        book_id = config.get_str("/book/id").strip()
        if book_id:
            book.id = book_id
        if not book.title:
            self.ctx.warning("book name is empty")
        if not book.author:
            self.ctx.warning("author name is empty")
        return book

    def options_from_config(self, config: BookConfig) -> SplitOptions:
        trigger = (
            TriggerMode.MARKER
            if config.get_bool("/split/bydiv", False)
            else TriggerMode.HEADING
        )
        version = self.epub_version
        if version is None:
            version = self._int_option(config, "/output/version")
        extension = self.extension
        if extension is None:
            extension = config.get_bool("/output/duokan", True)

        return SplitOptions.clamped(
            self.ctx,
            toc_depth=self._int_option(config, "/book/toc"),
            split_level=self._int_option(config, "/split/atlevel"),
            trigger=trigger,
            epub_version=version,
            extension=extension,
        )

    def _int_option(self, config: BookConfig, key: str) -> int | None:
        if key not in config:
            return None
        value = config.get_int(key)
        if value is None:
            self.ctx.warning("'%s' is not a number, using the default", key)
        return value

    def add_files(self, book: Book, folder: SourceFolder) -> None:
        """Add every non-reserved file of the source tree to the book."""
        for path in folder.walk():
            path = path.replace("\\", "/")
            lower = path.lower()
            if lower in RESERVED_NAMES:
                continue
            if lower in INTERNAL_NAMES:
                self.ctx.warning("'%s' is generated by makeepub, source file ignored", path)
                continue

            if lower in COVER_IMAGE_NAMES and not book.cover:
                book.cover = path

            entry = FileEntry(path=path, data=folder.read(path))
            if not book.add_file(entry):
                self.ctx.warning("duplicate file '%s' dropped", path)


def make_book(
    input_path: Path,
    output: Path | None = None,
    ctx: JobContext | None = None,
    epub_version: int | None = None,
    extension: bool | None = None,
) -> Path | None:
    """Convert a folder or zip and write the EPUB.

    Args:
        input_path: Source directory or zip archive
        output: Target file, or a directory receiving the configured file
            name; defaults to output/path from book.ini
        ctx: Job context, one is created from the input name when omitted

    Returns:
        Path of the written EPUB, or None when no output path is known

    Raises:
        ConfigError: If the source cannot be opened or lacks book.ini/book.html
        BuildError: If rendering or writing fails
    """
    ctx = ctx or JobContext(name=str(input_path))
    try:
        folder = open_folder(input_path)
    except (OSError, zipfile.BadZipFile) as e:
        ctx.error("failed to open source folder/file")
        raise ConfigError(f"failed to open '{input_path}': {e}") from e

    with folder:
        result = EpubMaker(ctx, epub_version=epub_version, extension=extension).process(folder)

    if output is None:
        if not result.output_path:
            ctx.warning("output path is empty, no file will be created")
            return None
        target = Path(result.output_path)
    elif output.is_dir():
        target = output / result.name
    else:
        target = output

    written = write_atomic(result.data, target)
    ctx.info("wrote %s", written)
    return written
