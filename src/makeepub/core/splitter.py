"""Split the main HTML document into chapter fragments."""

import re
import warnings
from dataclasses import dataclass

from bs4 import (
    BeautifulSoup,
    Comment,
    Declaration,
    NavigableString,
    ProcessingInstruction,
    Tag,
    XMLParsedAsHTMLWarning,
)

from makeepub.core.context import JobContext
from makeepub.core.errors import BuildError
from makeepub.models.book import Book, ChapterRef, FileAttribute, FileEntry
from makeepub.models.options import MAX_LEVEL, SplitOptions, TriggerMode

# book.html may carry an XML declaration
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

XHTML_NS = "http://www.w3.org/1999/xhtml"
XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'

MARKER_CLASS = "epub-chapter"
FULLSCREEN_CLASS = "epub-fullscreen"
LEVEL_ATTR = "data-level"
TITLE_ATTR = "data-title"

CHAPTER_FILE = "chapter_{:04d}.html"
ANCHOR_ID = "chapter-{}"

# "no boundary yet": deeper than any real level
NO_LEVEL = MAX_LEVEL + 1

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
_HEADING_RE = re.compile(r"h([1-6])")


@dataclass
class Boundary:
    """A detected chapter start."""

    level: int
    title: str
    anchor: Tag | None  # element receiving the TOC anchor id


def parse_document(data: bytes | str) -> BeautifulSoup:
    """Parse the main document and make sure html/head/body exist."""
    soup = BeautifulSoup(data, "lxml")
    for node in list(soup.contents):
        if isinstance(node, (ProcessingInstruction, Declaration)):
            node.extract()

    html = soup.find("html")
    if html is None:
        html = soup.new_tag("html")
        soup.append(html)
    if html.find("head", recursive=False) is None:
        html.insert(0, soup.new_tag("head"))
    if html.find("body", recursive=False) is None:
        html.append(soup.new_tag("body"))
    if not html.get("xmlns"):
        html["xmlns"] = XHTML_NS
    return soup


def heading_level(node: Tag) -> int | None:
    match = _HEADING_RE.fullmatch(node.name or "")
    return int(match.group(1)) if match else None


def has_class(node: Tag, name: str) -> bool:
    classes = node.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return name in classes


def node_title(node: Tag) -> str:
    return " ".join(node.get_text(" ").split())


def _level_attr(node: Tag) -> int | None:
    value = node.get(LEVEL_ATTR)
    if value is None:
        return None
    try:
        level = int(str(value).strip())
    except ValueError:
        return None
    return level if 0 <= level <= MAX_LEVEL else None


def _is_blank(node: object) -> bool:
    if isinstance(node, Comment):
        return True
    return isinstance(node, NavigableString) and not node.strip()


class ChapterSplitter:
    """Move the body of one document into per-chapter fragment files.

    The pass is destructive: every body child is moved into the fragment
    being filled, and the emptied document serves as the skeleton each
    fragment is rendered with.
    """

    def __init__(self, book: Book, options: SplitOptions, ctx: JobContext):
        self.book = book
        self.options = options
        self.ctx = ctx
        self._soup: BeautifulSoup | None = None
        self._body: Tag | None = None
        self._current: Tag | None = None
        self._pending: list[ChapterRef] = []
        self._claimed: set[int] = set()
        self._used_ids: set[str] = set()
        self._anchor_count = 0
        self._file_count = 0
        self._emitted: list[FileEntry] = []

    def split(self, soup: BeautifulSoup) -> list[FileEntry]:
        """Split the document and add the fragments to the book.

        Args:
            soup: Document returned by parse_document(); it is emptied

        Returns:
            The fragment entries, in reading order
        """
        self._soup = soup
        self._body = soup.find("body")
        self._current = self._new_body()
        self._pending = []
        self._emitted = []
        self._used_ids = {str(tag["id"]) for tag in soup.find_all(id=True)}

        last_level = NO_LEVEL
        for node in list(self._body.contents):
            if _is_blank(node):
                continue

            if self._is_fullscreen_image(node):
                self._flush()
                self._emit_image_page(node)
                last_level = NO_LEVEL
                continue

            boundary = self._detect(node) if isinstance(node, Tag) else None
            if boundary is None:
                # a claimed title donor belongs to the marker before it
                if id(node) not in self._claimed:
                    last_level = NO_LEVEL
            else:
                anchor = self._ensure_anchor(boundary.anchor)
                level = boundary.level
                if level <= self.options.split_level and level <= last_level:
                    self._flush()
                if 1 <= level <= self.options.toc_depth and boundary.title:
                    self._pending.append(
                        ChapterRef(level=level, title=boundary.title, anchor=anchor)
                    )
                last_level = level

            self._current.append(node.extract())

        self._flush()
        self.ctx.debug("split into %d file(s)", len(self._emitted))
        return self._emitted

    def _detect(self, node: Tag) -> Boundary | None:
        if self.options.trigger is TriggerMode.MARKER:
            return self._detect_marker(node)
        return self._detect_heading(node)

    def _detect_heading(self, node: Tag) -> Boundary | None:
        level = heading_level(node)
        if level is None:
            return None
        return Boundary(level=level, title=node_title(node), anchor=node)

    def _detect_marker(self, node: Tag) -> Boundary | None:
        if not has_class(node, MARKER_CLASS):
            return None

        level = _level_attr(node)
        if level == 0:
            return Boundary(level=0, title="", anchor=None)

        title = " ".join(str(node.get(TITLE_ATTR) or "").split())
        if level is not None and title:
            return Boundary(level=level, title=title, anchor=node)

        donor = self._claim_donor(node)
        if donor is None:
            # nothing names this marker: its content joins the open fragment
            return None

        if level is None:
            level = heading_level(donor)
        return Boundary(level=level, title=node_title(donor), anchor=donor)

    def _claim_donor(self, marker: Tag) -> Tag | None:
        """Find the heading that names a marker, claiming it for good.

        Headings inside the marker are tried first, then the following
        siblings up to the next marker or fullscreen image page.
        """
        for tag in marker.find_all(HEADING_TAGS):
            if id(tag) not in self._claimed:
                self._claimed.add(id(tag))
                return tag

        for sibling in marker.next_siblings:
            if not isinstance(sibling, Tag):
                continue
            if has_class(sibling, MARKER_CLASS) or self._is_fullscreen_image(sibling):
                break
            if heading_level(sibling) is not None and id(sibling) not in self._claimed:
                self._claimed.add(id(sibling))
                return sibling
        return None

    def _is_fullscreen_image(self, node: object) -> bool:
        return (
            self.options.extension
            and isinstance(node, Tag)
            and node.name == "img"
            and has_class(node, FULLSCREEN_CLASS)
        )

    def _ensure_anchor(self, node: Tag | None) -> str:
        if node is None:
            return ""
        anchor = node.get("id")
        if not anchor:
            while True:
                self._anchor_count += 1
                anchor = ANCHOR_ID.format(self._anchor_count)
                if anchor not in self._used_ids:
                    break
            node["id"] = anchor
            self._used_ids.add(anchor)
        return f"#{anchor}"

    def _new_body(self) -> Tag:
        return self._soup.new_tag("body", attrs=dict(self._body.attrs))

    def _flush(self) -> None:
        if not self._current.contents:
            return
        self._emit(self._current, self._pending, {FileAttribute.CONTENT})
        self._pending = []
        self._current = self._new_body()

    def _emit_image_page(self, image: Tag) -> None:
        chapters = self._pending
        self._pending = []

        level = _level_attr(image)
        title = " ".join(str(image.get(TITLE_ATTR) or "").split())
        if level and level <= self.options.toc_depth and title:
            chapters.append(ChapterRef(level=level, title=title))

        body = self._new_body()
        wrapper = self._soup.new_tag("div", attrs={"class": "fullscreen"})
        wrapper.append(image.extract())
        body.append(wrapper)
        self._emit(
            body,
            chapters,
            {FileAttribute.CONTENT, FileAttribute.FULLSCREEN_PAGE},
        )

    def _emit(
        self,
        body: Tag,
        chapters: list[ChapterRef],
        attributes: set[FileAttribute],
    ) -> None:
        self._file_count += 1
        entry = FileEntry(
            path=CHAPTER_FILE.format(self._file_count),
            data=self._render(body),
            attributes=attributes,
            chapters=list(chapters),
        )
        if self.book.add_file(entry):
            self._emitted.append(entry)
        else:
            self.ctx.warning("duplicate file '%s' dropped", entry.path)

    def _render(self, body: Tag) -> bytes:
        self._body.replace_with(body)
        try:
            text = self._soup.decode()
        finally:
            body.replace_with(self._body)
        try:
            return (XML_DECLARATION + text).encode("utf-8")
        except UnicodeError as e:
            raise BuildError(f"cannot encode chapter file: {e}") from e


def split_document(
    data: bytes | str,
    book: Book,
    options: SplitOptions,
    ctx: JobContext,
) -> list[FileEntry]:
    """Parse a document and split it into the book."""
    return ChapterSplitter(book, options, ctx).split(parse_document(data))
