"""Make command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from makeepub.core.context import JobContext
from makeepub.core.maker import make_book


def execute_make(
    input_path: Path,
    output: Path | None,
    epub_version: int | None,
    extension: bool | None,
    quiet: bool,
    console: Console,
) -> Path | None:
    """Execute the make command."""
    ctx = JobContext(name=input_path.name or str(input_path))
    written = make_book(
        input_path,
        output,
        ctx=ctx,
        epub_version=epub_version,
        extension=extension,
    )

    if quiet:
        return written

    lines = []
    if written is not None:
        lines.append(f"[green]Created {written}[/]")
    else:
        lines.append("[yellow]No output path configured, nothing written[/]")
    if ctx.messages:
        lines.append("")
        for message in ctx.messages:
            lines.append(f"[yellow]⚠ {message}[/]")

    console.print(
        Panel(
            "\n".join(lines),
            title=input_path.name,
            border_style="green" if written is not None else "yellow",
        )
    )
    return written
