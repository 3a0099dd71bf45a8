"""File extension to media type mapping for the OPF manifest."""

from posixpath import splitext

DEFAULT_MEDIA_TYPE = "application/octet-stream"

MEDIA_TYPES = {
    ".html": "application/xhtml+xml",
    ".htm": "application/xhtml+xml",
    ".xhtml": "application/xhtml+xml",
    ".css": "text/css",
    ".txt": "text/plain",
    ".xml": "text/xml",
    ".ncx": "application/x-dtbncx+xml",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".png": "image/png",
    ".bmp": "image/bmp",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".otf": "application/x-font-opentype",
    ".ttf": "application/x-font-ttf",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".js": "application/javascript",
    ".mp3": "audio/mpeg",
}


def media_type(path: str) -> str:
    """Media type of a package file, by extension."""
    _, ext = splitext(path.replace("\\", "/"))
    return MEDIA_TYPES.get(ext.lower(), DEFAULT_MEDIA_TYPE)