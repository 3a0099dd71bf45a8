"""Write package files into an EPUB zip container."""

import io
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Iterable

from makeepub.core.builder import MIMETYPE
from makeepub.core.errors import BuildError
from makeepub.models.book import FileEntry

EPUB_MIMETYPE = b"application/epub+zip"


class EpubPackager:
    """Zip writer that keeps the EPUB mimetype rule.

    The stored (uncompressed) mimetype entry is written on creation, so it
    is always the first entry of the archive; everything else is deflated
    in the order it is added.
    """

    def __init__(self):
        self._buffer = io.BytesIO()
        self._zip = zipfile.ZipFile(self._buffer, "w", zipfile.ZIP_DEFLATED)
        self._zip.writestr(MIMETYPE, EPUB_MIMETYPE, compress_type=zipfile.ZIP_STORED)
        self._names: set[str] = {MIMETYPE}
        self._closed = False

    def add(self, path: str, data: bytes) -> bool:
        """Add one file.

        Returns:
            False if the name (ignoring case) was already written
        """
        if self._closed:
            raise BuildError("package is already closed")
        name = path.replace("\\", "/").lstrip("/")
        if name.lower() in self._names:
            return False
        try:
            self._zip.writestr(name, data)
        except (OSError, ValueError, zipfile.LargeZipFile) as e:
            raise BuildError(f"failed to pack '{name}': {e}") from e
        self._names.add(name.lower())
        return True

    def add_files(self, files: Iterable[FileEntry]) -> None:
        for entry in files:
            self.add(entry.path, entry.data)

    def close(self) -> None:
        if not self._closed:
            self._zip.close()
            self._closed = True

    def getvalue(self) -> bytes:
        """The finished archive."""
        self.close()
        return self._buffer.getvalue()

    def save(self, path: Path) -> Path:
        """Write the archive to path."""
        return write_atomic(self.getvalue(), path)


def write_atomic(data: bytes, path: Path) -> Path:
    """Write data to path through a temporary file in the same directory.

    A failed write never leaves a partial file at path.

    Raises:
        BuildError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = tempfile.NamedTemporaryFile(
            prefix=f".{path.stem}.", suffix=".tmp", dir=str(path.parent), delete=False
        )
    except OSError as e:
        raise BuildError(f"failed to write '{path}': {e}") from e

    tmp_path = Path(handle.name)
    try:
        with handle:
            handle.write(data)
        os.replace(tmp_path, path)
    except OSError as e:
        raise BuildError(f"failed to write '{path}': {e}") from e
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
    return path


def pack_files(files: Iterable[FileEntry]) -> bytes:
    """Zip the given files into EPUB bytes."""
    packager = EpubPackager()
    packager.add_files(files)
    return packager.getvalue()
