"""Info command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from makeepub.core.reader import EpubReader, flatten_toc
from makeepub.models.epub import EpubSummary


def execute_info(epub_path: Path, console: Console) -> EpubSummary:
    """Display book metadata and table of contents."""
    summary = EpubReader(epub_path).read()
    metadata = summary.metadata

    info_lines = [
        f"[bold]{metadata.title}[/]",
        "",
        f"[dim]Author(s):[/] {', '.join(metadata.authors) or 'Unknown'}",
        f"[dim]Language:[/] {metadata.language or 'Unknown'}",
        f"[dim]Publisher:[/] {metadata.publisher or 'Unknown'}",
        f"[dim]Identifier:[/] {metadata.identifier or 'Unknown'}",
        f"[dim]EPUB version:[/] {summary.version or 'Unknown'}",
        f"[dim]Spine items:[/] {len(summary.spine_order)}",
        f"[dim]Files:[/] {len(summary.files)}",
    ]

    console.print()
    console.print(
        Panel(
            "\n".join(info_lines),
            title="Book Information",
            border_style="green",
        )
    )

    console.print()
    table = Table(title="Table of Contents", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="white")
    table.add_column("Target", style="dim")

    for index, entry in enumerate(flatten_toc(summary.toc), start=1):
        indent = "  " * entry.level
        table.add_row(str(index), f"{indent}{entry.title}", entry.href)

    console.print(table)
    console.print()
    return summary
