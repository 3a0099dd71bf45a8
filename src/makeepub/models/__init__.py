"""Data models."""

from makeepub.models.book import (
    Book,
    ChapterRef,
    FileAttribute,
    FileEntry,
)
from makeepub.models.epub import (
    BookMetadata,
    EpubSummary,
    TOCEntry,
)
from makeepub.models.options import (
    SplitOptions,
    TriggerMode,
)

__all__ = [
    # Book being assembled
    "Book",
    "ChapterRef",
    "FileAttribute",
    "FileEntry",
    # EPUB read back
    "BookMetadata",
    "EpubSummary",
    "TOCEntry",
    # Options
    "SplitOptions",
    "TriggerMode",
]
