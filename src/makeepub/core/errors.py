"""Exceptions raised while making a book."""


class MakeEpubError(Exception):
    """Base error for a failed conversion job."""


class ConfigError(MakeEpubError):
    """Input folder, book.ini or book.html cannot be used."""


class BuildError(MakeEpubError):
    """A package file could not be rendered or written."""
