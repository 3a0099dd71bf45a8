"""Merge several HTML files into one book.html."""

from pathlib import Path

from bs4 import BeautifulSoup

from makeepub.core.splitter import XML_DECLARATION, parse_document

HTML_SUFFIXES = {".html", ".htm", ".xhtml"}


def find_html_files(folder: Path) -> list[Path]:
    """HTML files directly inside folder, sorted by name."""
    return sorted(
        (path for path in folder.iterdir() if path.is_file() and path.suffix.lower() in HTML_SUFFIXES),
        key=lambda path: path.name,
    )


def merge_documents(documents: list[bytes | str]) -> bytes:
    """Concatenate the bodies of documents.

    The head (and body attributes) of the first document are kept.
    """
    if not documents:
        raise ValueError("nothing to merge")

    merged: BeautifulSoup = parse_document(documents[0])
    body = merged.find("body")
    for data in documents[1:]:
        other = parse_document(data).find("body")
        for node in list(other.contents):
            body.append(node.extract())
    return (XML_DECLARATION + merged.decode()).encode("utf-8")


def merge_folder(folder: Path, output: Path) -> int:
    """Merge every HTML file of folder into output.

    Returns:
        Number of merged files, 0 if the folder had none
    """
    files = find_html_files(folder)
    if not files:
        return 0
    output.write_bytes(merge_documents([path.read_bytes() for path in files]))
    return len(files)
