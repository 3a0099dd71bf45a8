"""Pack command implementation."""

from pathlib import Path

from rich.console import Console

from makeepub.core.folder import open_folder
from makeepub.core.packager import EpubPackager


def pack_folder(folder_path: Path, output: Path) -> int:
    """Zip an unpacked EPUB tree as is, keeping the mimetype rule.

    Returns:
        Number of packed files, the mimetype entry excluded
    """
    packager = EpubPackager()
    count = 0
    with open_folder(folder_path) as folder:
        for path in folder.walk():
            if packager.add(path, folder.read(path)):
                count += 1
    packager.save(output)
    return count


def execute_pack(folder_path: Path, output: Path, quiet: bool, console: Console) -> int:
    """Execute the pack command."""
    count = pack_folder(folder_path, output)
    if not quiet:
        console.print(f"[green]Packed {count} file(s) into {output}[/]")
    return count
