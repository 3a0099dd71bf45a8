"""Uniform read access to a source tree stored as a directory or a zip."""

import io
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator


class SourceFolder(ABC):
    """Abstract base class for a source tree."""

    name: str = ""

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Read a file by its forward-slash relative path.

        Raises:
            FileNotFoundError: If the folder has no such file
        """

    @abstractmethod
    def walk(self) -> Iterator[str]:
        """Yield the relative path of every file, directories excluded."""

    def exists(self, path: str) -> bool:
        try:
            self.read(path)
        except FileNotFoundError:
            return False
        return True

    def close(self) -> None:
        pass

    def __enter__(self) -> "SourceFolder":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class DirectoryFolder(SourceFolder):
    """Source tree in a directory of the file system."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.name = str(root)

    def read(self, path: str) -> bytes:
        target = self.root / path
        if target.is_file():
            return target.read_bytes()
        # reserved names are matched without regard to case
        wanted = path.replace("\\", "/").lower()
        for rel in self.walk():
            if rel.lower() == wanted:
                return (self.root / rel).read_bytes()
        raise FileNotFoundError(f"{path} not found in {self.root}")

    def walk(self) -> Iterator[str]:
        for path in sorted(self.root.rglob("*")):
            if path.is_file():
                yield path.relative_to(self.root).as_posix()


class ZipFolder(SourceFolder):
    """Source tree packed in a zip archive."""

    def __init__(self, source: Path | bytes, name: str = ""):
        if isinstance(source, (bytes, bytearray)):
            self._zip = zipfile.ZipFile(io.BytesIO(source))
            self.name = name or "upload.zip"
        else:
            self._zip = zipfile.ZipFile(source)
            self.name = name or str(source)
        self._index = {
            info.filename.lower(): info for info in self._zip.infolist() if not info.is_dir()
        }

    def read(self, path: str) -> bytes:
        info = self._index.get(path.replace("\\", "/").lower())
        if info is None:
            raise FileNotFoundError(f"{path} not found in {self.name}")
        return self._zip.read(info)

    def walk(self) -> Iterator[str]:
        for info in self._zip.infolist():
            if not info.is_dir():
                yield info.filename

    def close(self) -> None:
        self._zip.close()


def open_folder(path: Path) -> SourceFolder:
    """Open a directory or a zip file as a source tree.

    Raises:
        FileNotFoundError: If path does not exist
        zipfile.BadZipFile: If path is a file but not a zip archive
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if path.is_dir():
        return DirectoryFolder(path)
    return ZipFolder(path)
