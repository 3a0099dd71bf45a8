"""Extract command implementation."""

import zipfile
from pathlib import Path

from rich.console import Console


def extract_epub(epub_path: Path, output_dir: Path) -> int:
    """Unzip an EPUB (or any zip) into output_dir.

    Member names that would escape output_dir are sanitized by zipfile.

    Returns:
        Number of extracted files
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(epub_path) as archive:
        members = [info for info in archive.infolist() if not info.is_dir()]
        archive.extractall(output_dir)
    return len(members)


def execute_extract(
    epub_path: Path, output_dir: Path, quiet: bool, console: Console
) -> int:
    """Execute the extract command."""
    count = extract_epub(epub_path, output_dir)
    if not quiet:
        console.print(f"[green]Extracted {count} file(s) to {output_dir}[/]")
    return count
