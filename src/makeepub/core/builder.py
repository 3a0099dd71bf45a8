"""Render the structural files of the EPUB package."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Iterator
from urllib.parse import quote

from lxml import etree

from makeepub.core.context import JobContext
from makeepub.core.errors import BuildError
from makeepub.core.media_types import media_type
from makeepub.models.book import Book, FileAttribute, FileEntry

MIMETYPE = "mimetype"
CONTAINER_XML = "META-INF/container.xml"
CONTENT_OPF = "content.opf"
TOC_NCX = "toc.ncx"
NAV_XHTML = "nav.xhtml"
COVER_HTML = "cover.html"

INTERNAL_NAMES = frozenset(
    name.lower()
    for name in (MIMETYPE, CONTAINER_XML, CONTENT_OPF, TOC_NCX, NAV_XHTML, COVER_HTML)
)

CONTAINER_NS = "urn:oasis:names:tc:opendocument:xmlns:container"
OPF_NS = "http://www.idpf.org/2007/opf"
DC_NS = "http://purl.org/dc/elements/1.1/"
NCX_NS = "http://www.daisy.org/z3986/2005/ncx/"
XHTML_NS = "http://www.w3.org/1999/xhtml"
OPS_NS = "http://www.idpf.org/2007/ops"
XML_NS = "http://www.w3.org/XML/1998/namespace"

XHTML11_DOCTYPE = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" '
    '"http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">'
)
HTML5_DOCTYPE = "<!DOCTYPE html>"

FULLSCREEN_PROPERTY = "duokan-page-fullscreen"
BOOK_ID = "uuid_id"
COVER_PAGE_ID = "cover"
COVER_IMAGE_ID = "cover-image"


def _q(ns: str, tag: str) -> str:
    return f"{{{ns}}}{tag}"


def _serialize(root: etree._Element, doctype: str | None = None) -> bytes:
    try:
        return etree.tostring(
            root,
            xml_declaration=True,
            encoding="utf-8",
            pretty_print=True,
            doctype=doctype,
        )
    except (UnicodeError, ValueError) as e:
        raise BuildError(f"cannot serialize '{etree.QName(root).localname}': {e}") from e


def _text(parent: etree._Element, tag: str, text: str, **attrib: str) -> etree._Element:
    """Append a child with text, rejecting strings XML cannot carry."""
    element = etree.SubElement(parent, tag, attrib)
    try:
        element.text = text
    except ValueError as e:
        raise BuildError(f"invalid text for <{etree.QName(tag).localname}>: {e}") from e
    return element


@dataclass(frozen=True)
class TocEntry:
    """A chapter reference resolved to a package href."""

    level: int
    title: str
    href: str


class TocEvent(str, Enum):
    OPEN = "open"
    CLOSE = "close"


def toc_entries(book: Book) -> list[TocEntry]:
    """All chapter references of the content files, in reading order.

    A book without any reference gets a single entry pointing at its first
    content file, since navMap and the toc nav may not be empty.
    """
    entries = [
        TocEntry(level=ref.level, title=ref.title, href=entry.path + ref.anchor)
        for entry in book.content_files()
        for ref in entry.chapters
    ]
    if not entries:
        content = book.content_files()
        if content:
            entries.append(
                TocEntry(level=1, title=book.title or "Start", href=content[0].path)
            )
    return entries


def toc_events(entries: Iterable[TocEntry]) -> Iterator[tuple[TocEvent, TocEntry | None]]:
    """Turn flat leveled entries into balanced open/close events.

    An entry closes every open level at or below its own level, then opens
    exactly one level, so nesting never deepens by more than one step. All
    levels still open at the end are closed.
    """
    stack: list[int] = []
    for entry in entries:
        while stack and stack[-1] >= entry.level:
            stack.pop()
            yield TocEvent.CLOSE, None
        stack.append(entry.level)
        yield TocEvent.OPEN, entry
    while stack:
        stack.pop()
        yield TocEvent.CLOSE, None


class ContainerBuilder:
    """Produce container.xml, content.opf, the navigation document and the
    cover page for a populated book.

    The book is only read; build() returns the generated entries and can be
    called again with identical results (apart from the EPUB 3 modification
    time).
    """

    def __init__(
        self,
        book: Book,
        version: int = 2,
        ctx: JobContext | None = None,
        now: datetime | None = None,
    ):
        if version not in (2, 3):
            raise ValueError(f"unsupported EPUB version: {version}")
        self.book = book
        self.version = version
        self.ctx = ctx or JobContext()
        self.now = now

    @property
    def nav_path(self) -> str:
        return TOC_NCX if self.version == 2 else NAV_XHTML

    def cover_entry(self) -> FileEntry | None:
        """The cover image, if it was set and really is in the book."""
        if not self.book.cover:
            return None
        entry = self.book.find_file(self.book.cover)
        if entry is None or not entry.data:
            return None
        return entry

    def build(self) -> list[FileEntry]:
        """Render every internal file.

        Returns:
            Entries flagged INTERNAL, in the order they go into the zip

        Raises:
            BuildError: If any of the files cannot be serialized
        """
        internal = {FileAttribute.INTERNAL}
        try:
            files = [
                FileEntry(path=CONTAINER_XML, data=self.container_xml(), attributes=internal)
            ]
            if self.cover_entry() is not None:
                files.append(
                    FileEntry(path=COVER_HTML, data=self.cover_page(), attributes=internal)
                )
            elif self.book.cover:
                self.ctx.warning("cover image '%s' not found, no cover page", self.book.cover)

            files.append(
                FileEntry(path=CONTENT_OPF, data=self.content_opf(), attributes=internal)
            )
            nav = self.toc_ncx() if self.version == 2 else self.nav_xhtml()
            files.append(FileEntry(path=self.nav_path, data=nav, attributes=internal))
        except (UnicodeError, ValueError) as e:
            # lxml rejects attribute values XML cannot carry
            raise BuildError(f"cannot render package files: {e}") from e
        return files

    def container_xml(self) -> bytes:
        root = etree.Element(
            _q(CONTAINER_NS, "container"), nsmap={None: CONTAINER_NS}, version="1.0"
        )
        rootfiles = etree.SubElement(root, _q(CONTAINER_NS, "rootfiles"))
        etree.SubElement(
            rootfiles,
            _q(CONTAINER_NS, "rootfile"),
            {"full-path": CONTENT_OPF, "media-type": "application/oebps-package+xml"},
        )
        return _serialize(root)

    def content_opf(self) -> bytes:
        book = self.book
        cover = self.cover_entry()

        package = etree.Element(
            _q(OPF_NS, "package"),
            nsmap={None: OPF_NS},
            version=f"{self.version}.0",
            **{"unique-identifier": BOOK_ID},
        )

        nsmap = {"dc": DC_NS}
        if self.version == 2:
            nsmap["opf"] = OPF_NS
        metadata = etree.SubElement(package, _q(OPF_NS, "metadata"), nsmap=nsmap)
        _text(metadata, _q(DC_NS, "identifier"), book.id, id=BOOK_ID)
        _text(metadata, _q(DC_NS, "title"), book.title)
        _text(metadata, _q(DC_NS, "language"), book.language)
        if self.version == 2:
            _text(metadata, _q(DC_NS, "creator"), book.author, **{_q(OPF_NS, "role"): "aut"})
        else:
            _text(metadata, _q(DC_NS, "creator"), book.author, id="creator")
            _text(
                metadata,
                _q(OPF_NS, "meta"),
                "aut",
                refines="#creator",
                property="role",
                scheme="marc:relators",
            )
        if book.publisher:
            _text(metadata, _q(DC_NS, "publisher"), book.publisher)
        if book.description:
            _text(metadata, _q(DC_NS, "description"), book.description)
        if cover is not None:
            etree.SubElement(metadata, _q(OPF_NS, "meta"), name="cover", content=COVER_IMAGE_ID)
        if self.version == 3:
            now = self.now or datetime.now(timezone.utc)
            _text(
                metadata,
                _q(OPF_NS, "meta"),
                now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
                property="dcterms:modified",
            )

        manifest = etree.SubElement(package, _q(OPF_NS, "manifest"))
        item_ids: dict[str, str] = {}
        for index, entry in enumerate(book.files):
            if entry.is_internal:
                continue
            attrib = {
                "id": f"item{index:04d}",
                "href": quote(entry.path),
                "media-type": media_type(entry.path),
            }
            if entry is cover:
                attrib["id"] = COVER_IMAGE_ID
                if self.version == 3:
                    attrib["properties"] = "cover-image"
            item_ids[entry.path] = attrib["id"]
            etree.SubElement(manifest, _q(OPF_NS, "item"), attrib)
        if cover is not None:
            etree.SubElement(
                manifest,
                _q(OPF_NS, "item"),
                {"id": COVER_PAGE_ID, "href": COVER_HTML, "media-type": media_type(COVER_HTML)},
            )
        if self.version == 2:
            etree.SubElement(
                manifest,
                _q(OPF_NS, "item"),
                {"id": "ncx", "href": TOC_NCX, "media-type": media_type(TOC_NCX)},
            )
        else:
            etree.SubElement(
                manifest,
                _q(OPF_NS, "item"),
                {
                    "id": "nav",
                    "href": NAV_XHTML,
                    "media-type": media_type(NAV_XHTML),
                    "properties": "nav",
                },
            )

        spine = etree.SubElement(package, _q(OPF_NS, "spine"))
        if self.version == 2:
            spine.set("toc", "ncx")
        if cover is not None:
            itemref = etree.SubElement(spine, _q(OPF_NS, "itemref"), idref=COVER_PAGE_ID, linear="no")
            if book.extension:
                itemref.set("properties", FULLSCREEN_PROPERTY)
        for entry in book.content_files():
            itemref = etree.SubElement(spine, _q(OPF_NS, "itemref"), idref=item_ids[entry.path])
            if book.extension and entry.is_fullscreen:
                itemref.set("properties", FULLSCREEN_PROPERTY)

        if self.version == 2 and cover is not None:
            guide = etree.SubElement(package, _q(OPF_NS, "guide"))
            etree.SubElement(
                guide, _q(OPF_NS, "reference"), href=COVER_HTML, type="cover", title="Cover"
            )

        return _serialize(package)

    def toc_ncx(self) -> bytes:
        book = self.book
        root = etree.Element(_q(NCX_NS, "ncx"), nsmap={None: NCX_NS}, version="2005-1")
        root.set(_q(XML_NS, "lang"), book.language)

        head = etree.SubElement(root, _q(NCX_NS, "head"))
        etree.SubElement(head, _q(NCX_NS, "meta"), name="dtb:uid", content=book.id)
        depth_meta = etree.SubElement(head, _q(NCX_NS, "meta"), name="dtb:depth", content="1")
        etree.SubElement(head, _q(NCX_NS, "meta"), name="dtb:totalPageCount", content="0")
        etree.SubElement(head, _q(NCX_NS, "meta"), name="dtb:maxPageNumber", content="0")

        doc_title = etree.SubElement(root, _q(NCX_NS, "docTitle"))
        _text(doc_title, _q(NCX_NS, "text"), book.title)
        nav_map = etree.SubElement(root, _q(NCX_NS, "navMap"))

        parents = [nav_map]
        play_order = 0
        max_depth = 1
        for event, entry in toc_events(toc_entries(book)):
            if event is TocEvent.CLOSE:
                parents.pop()
                continue
            play_order += 1
            point = etree.SubElement(
                parents[-1],
                _q(NCX_NS, "navPoint"),
                id=f"navPoint-{play_order}",
                playOrder=str(play_order),
            )
            label = etree.SubElement(point, _q(NCX_NS, "navLabel"))
            _text(label, _q(NCX_NS, "text"), entry.title)
            etree.SubElement(point, _q(NCX_NS, "content"), src=entry.href)
            parents.append(point)
            max_depth = max(max_depth, len(parents) - 1)

        depth_meta.set("content", str(max_depth))
        return _serialize(root)

    def nav_xhtml(self) -> bytes:
        book = self.book
        html = etree.Element(_q(XHTML_NS, "html"), nsmap={None: XHTML_NS, "epub": OPS_NS})
        html.set(_q(XML_NS, "lang"), book.language)
        head = etree.SubElement(html, _q(XHTML_NS, "head"))
        _text(head, _q(XHTML_NS, "title"), book.title)
        body = etree.SubElement(html, _q(XHTML_NS, "body"))
        nav = etree.SubElement(body, _q(XHTML_NS, "nav"), id="toc")
        nav.set(_q(OPS_NS, "type"), "toc")
        _text(nav, _q(XHTML_NS, "h1"), book.title or "Contents")
        root_list = etree.SubElement(nav, _q(XHTML_NS, "ol"))

        items: list[etree._Element] = []
        for event, entry in toc_events(toc_entries(book)):
            if event is TocEvent.CLOSE:
                items.pop()
                continue
            parent = self._child_list(items[-1]) if items else root_list
            item = etree.SubElement(parent, _q(XHTML_NS, "li"))
            _text(item, _q(XHTML_NS, "a"), entry.title, href=entry.href)
            items.append(item)

        return _serialize(html, doctype=HTML5_DOCTYPE)

    @staticmethod
    def _child_list(item: etree._Element) -> etree._Element:
        last = item[-1]
        if last.tag == _q(XHTML_NS, "ol"):
            return last
        return etree.SubElement(item, _q(XHTML_NS, "ol"))

    def cover_page(self) -> bytes:
        cover = self.cover_entry()
        if cover is None:
            raise BuildError("book has no cover image")

        html = etree.Element(_q(XHTML_NS, "html"), nsmap={None: XHTML_NS})
        head = etree.SubElement(html, _q(XHTML_NS, "head"))
        _text(head, _q(XHTML_NS, "title"), "Cover")
        body = etree.SubElement(html, _q(XHTML_NS, "body"))
        wrapper = etree.SubElement(body, _q(XHTML_NS, "div"), style="text-align: center;")
        etree.SubElement(wrapper, _q(XHTML_NS, "img"), alt="cover", src=quote(cover.path))
        doctype = XHTML11_DOCTYPE if self.version == 2 else HTML5_DOCTYPE
        return _serialize(html, doctype=doctype)
