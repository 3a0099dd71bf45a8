"""Merge command implementation."""

from pathlib import Path

from rich.console import Console

from makeepub.core.merge import merge_folder


def execute_merge(folder: Path, output: Path, quiet: bool, console: Console) -> int:
    """Execute the merge command."""
    count = merge_folder(folder, output)
    if count == 0:
        console.print(f"[yellow]No HTML files in {folder}[/]")
    elif not quiet:
        console.print(f"[green]Merged {count} file(s) into {output}[/]")
    return count
