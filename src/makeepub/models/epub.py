"""Data models for an EPUB read back from disk."""

from pydantic import BaseModel, Field


class TOCEntry(BaseModel):
    """Single entry in table of contents."""

    title: str
    href: str
    level: int = 0
    children: list["TOCEntry"] = Field(default_factory=list)


class BookMetadata(BaseModel):
    """Book-level metadata."""

    identifier: str = ""
    title: str
    authors: list[str] = Field(default_factory=list)
    language: str | None = None
    publisher: str | None = None
    description: str | None = None


class EpubSummary(BaseModel):
    """Structure of a packaged EPUB."""

    metadata: BookMetadata
    version: str = ""
    toc: list[TOCEntry] = Field(default_factory=list)
    spine_order: list[str] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list)
