"""Data models for the EPUB book being assembled."""

import socket
import time
from enum import Enum

from pydantic import BaseModel, Field


class FileAttribute(str, Enum):
    """Role of a file inside the package."""

    CONTENT = "content"
    FULLSCREEN_PAGE = "fullscreen_page"
    INTERNAL = "internal"


class ChapterRef(BaseModel):
    """Single table of contents entry attached to a fragment."""

    level: int = Field(ge=1, le=6)
    title: str
    anchor: str = ""  # "#id", or empty to link the fragment itself


class FileEntry(BaseModel):
    """A file stored in the package."""

    path: str
    data: bytes = b""
    attributes: set[FileAttribute] = Field(default_factory=set)
    chapters: list[ChapterRef] = Field(default_factory=list)

    @property
    def is_content(self) -> bool:
        return FileAttribute.CONTENT in self.attributes

    @property
    def is_fullscreen(self) -> bool:
        return FileAttribute.FULLSCREEN_PAGE in self.attributes

    @property
    def is_internal(self) -> bool:
        return FileAttribute.INTERNAL in self.attributes


def generate_book_id() -> str:
    """Build a best effort unique package identifier."""
    return f"{socket.gethostname()}-book-{int(time.time()) & 0xFFFFFFFF:08x}"


class Book(BaseModel):
    """Logical representation of the EPUB."""

    id: str = Field(default_factory=generate_book_id)
    title: str = ""
    author: str = ""
    publisher: str = ""
    description: str = ""
    language: str = "zh"
    cover: str = ""
    extension: bool = True
    files: list[FileEntry] = Field(default_factory=list)

    def find_file(self, path: str) -> FileEntry | None:
        """Look up a file by path, ignoring case."""
        key = path.lower()
        for entry in self.files:
            if entry.path.lower() == key:
                return entry
        return None

    def has_file(self, path: str) -> bool:
        return self.find_file(path) is not None

    def add_file(self, entry: FileEntry) -> bool:
        """Append a file unless its path is already taken.

        Returns:
            False if a file with the same path (ignoring case) exists
        """
        if self.has_file(entry.path):
            return False
        self.files.append(entry)
        return True

    def content_files(self) -> list[FileEntry]:
        """Files that belong to the spine, in reading order."""
        return [entry for entry in self.files if entry.is_content]
