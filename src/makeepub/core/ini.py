"""Reader for the sectioned key/value book.ini format.

Keys and section names are case-insensitive and addressed as
"/section/key". A line with an empty key ("= more") continues the value of
the previous key, even across a section header. A line without "=" is an
empty continuation and starts a new line. ASCII fragments are joined with a
space unless the value ends in "-", anything else (CJK text) is joined
directly.
"""

from pathlib import Path

_TRUE = {"1", "t", "true", "y", "yes", "on"}
_FALSE = {"0", "f", "false", "n", "no", "off"}


def _join(value: str, more: str) -> str:
    if not more:
        return value + "\n"
    if value and value[-1].isascii() and value[-1] != "-" and more[0].isascii():
        return value + " " + more
    return value + more


class BookConfig:
    """Parsed book.ini values."""

    def __init__(self, data: dict[str, str] | None = None):
        self._data = dict(data or {})

    @classmethod
    def parse(cls, text: str | bytes) -> "BookConfig":
        if isinstance(text, bytes):
            text = text.decode("utf-8-sig")
        text = text.lstrip("\ufeff")

        data: dict[str, str] = {}
        section = ""
        last_key = ""
        for raw in text.splitlines():
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            if line.startswith("[") and line.endswith("]"):
                section = line[1:-1].strip().lower()
                continue

            key, sep, value = line.partition("=")
            # a line without "=" has an empty key and value
            key = key.strip().lower() if sep else ""
            if key:
                last_key = f"/{section}/{key}"
                data[last_key] = value.strip()
            elif last_key:
                # "= more text" (or a bare line) continues the previous value
                data[last_key] = _join(data[last_key], value.strip())

        return cls(data)

    @classmethod
    def load(cls, path: Path) -> "BookConfig":
        return cls.parse(Path(path).read_bytes())

    @staticmethod
    def _key(path: str) -> str:
        path = path.lower()
        return path if path.startswith("/") else "/" + path

    def __contains__(self, path: str) -> bool:
        return self._key(path) in self._data

    def get_str(self, path: str, default: str = "") -> str:
        return self._data.get(self._key(path), default)

    def get_int(self, path: str, default: int | None = None) -> int | None:
        value = self._data.get(self._key(path))
        if value is None:
            return default
        try:
            return int(value.strip())
        except ValueError:
            return default

    def get_bool(self, path: str, default: bool = False) -> bool:
        value = self._data.get(self._key(path))
        if value is None:
            return default
        value = value.strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        return default
