"""Read a produced EPUB back using ebooklib."""

import warnings
from pathlib import Path

from ebooklib import epub

from makeepub.models.epub import BookMetadata, EpubSummary, TOCEntry

# ebooklib warns about its own upcoming default changes on every read
warnings.filterwarnings("ignore", category=UserWarning, module="ebooklib")
warnings.filterwarnings("ignore", category=FutureWarning, module="ebooklib")


class EpubReader:
    """Summarize the package structure of an EPUB file."""

    def __init__(self, epub_path: Path):
        self.path = epub_path
        self.book = epub.read_epub(str(epub_path))

    def read(self) -> EpubSummary:
        return EpubSummary(
            metadata=self._get_metadata(),
            version=str(getattr(self.book, "version", "") or ""),
            toc=self._parse_toc_recursive(self.book.toc),
            spine_order=[item[0] for item in self.book.spine],
            files=[item.get_name() for item in self.book.get_items()],
        )

    def _first(self, name: str) -> str | None:
        values = self.book.get_metadata("DC", name)
        return values[0][0] if values else None

    def _get_metadata(self) -> BookMetadata:
        authors = self.book.get_metadata("DC", "creator")
        return BookMetadata(
            identifier=self._first("identifier") or "",
            title=self._first("title") or "Unknown Title",
            authors=[a[0] for a in authors if a[0]],
            language=self._first("language"),
            publisher=self._first("publisher"),
            description=self._first("description"),
        )

    def _parse_toc_recursive(self, toc_items: list, level: int = 0) -> list[TOCEntry]:
        """Recursively parse TOC structure."""
        entries = []
        for item in toc_items:
            if isinstance(item, tuple):
                # Section with children: (Section, [children])
                section, children = item
                entries.append(
                    TOCEntry(
                        title=section.title or "",
                        href=section.href or "",
                        level=level,
                        children=self._parse_toc_recursive(children, level + 1),
                    )
                )
            else:
                entries.append(
                    TOCEntry(title=item.title or "", href=item.href or "", level=level)
                )
        return entries


def flatten_toc(entries: list[TOCEntry]) -> list[TOCEntry]:
    """Depth-first list of all entries."""
    flat: list[TOCEntry] = []
    for entry in entries:
        flat.append(entry)
        flat.extend(flatten_toc(entry.children))
    return flat
