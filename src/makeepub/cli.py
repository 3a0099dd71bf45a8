"""Main CLI application."""

import logging
import zipfile
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from makeepub.core.errors import MakeEpubError

app = typer.Typer(
    name="makeepub",
    help="Make EPUB books from a folder (or zip) of HTML and assets.",
    add_completion=False,
)

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug messages"),
    ] = False,
) -> None:
    """Make EPUB books from a folder (or zip) of HTML and assets."""
    _setup_logging(verbose)


@app.command()
def make(
    input_path: Annotated[
        Path,
        typer.Argument(
            help="Source folder or zip containing book.ini and book.html",
            exists=True,
            resolve_path=True,
        ),
    ],
    output: Annotated[
        Optional[Path],
        typer.Argument(
            help="Output file or folder (default: output/path from book.ini)",
        ),
    ] = None,
    epub_version: Annotated[
        Optional[int],
        typer.Option(
            "--epub-version",
            "-e",
            help="EPUB version, 2 or 3 (default: output/version from book.ini)",
            min=2,
            max=3,
        ),
    ] = None,
    no_duokan: Annotated[
        bool,
        typer.Option(
            "--no-duokan",
            help="Leave out the Duokan fullscreen properties (overrides output/duokan)",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress output"),
    ] = False,
) -> None:
    """Make one EPUB book."""
    try:
        from makeepub.commands.make import execute_make

        execute_make(
            input_path=input_path,
            output=output,
            epub_version=epub_version,
            extension=False if no_duokan else None,
            quiet=quiet,
            console=console,
        )
    except (MakeEpubError, OSError) as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def batch(
    source: Annotated[
        Path,
        typer.Argument(
            help="Folder of source folders/zips, or a text file listing inputs",
            exists=True,
            resolve_path=True,
        ),
    ],
    outdir: Annotated[
        Optional[Path],
        typer.Argument(help="Output folder (default: output/path of each book)"),
    ] = None,
    workers: Annotated[
        Optional[int],
        typer.Option("--workers", "-w", help="Number of parallel jobs", min=1),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress output"),
    ] = False,
) -> None:
    """Make many EPUB books in parallel."""
    from makeepub.commands.batch import execute_batch

    try:
        results = execute_batch(
            source=source,
            outdir=outdir,
            workers=workers,
            quiet=quiet,
            console=console,
        )
    except OSError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    if any(not result.ok for result in results):
        raise typer.Exit(1)


@app.command()
def pack(
    folder: Annotated[
        Path,
        typer.Argument(
            help="Unpacked EPUB folder",
            exists=True,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ],
    output: Annotated[Path, typer.Argument(help="EPUB file to create")],
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress output"),
    ] = False,
) -> None:
    """Pack a folder into an EPUB without generating anything."""
    try:
        from makeepub.commands.pack import execute_pack

        execute_pack(folder, output, quiet=quiet, console=console)
    except (MakeEpubError, OSError) as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def extract(
    epub_path: Annotated[
        Path,
        typer.Argument(
            help="EPUB (or zip) file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    output_dir: Annotated[Path, typer.Argument(help="Folder to extract into")],
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress output"),
    ] = False,
) -> None:
    """Extract an EPUB into a folder."""
    try:
        from makeepub.commands.extract import execute_extract

        execute_extract(epub_path, output_dir, quiet=quiet, console=console)
    except (OSError, zipfile.BadZipFile) as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def merge(
    folder: Annotated[
        Path,
        typer.Argument(
            help="Folder of HTML files, merged in name order",
            exists=True,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ],
    output: Annotated[Path, typer.Argument(help="Merged HTML file to create")],
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress output"),
    ] = False,
) -> None:
    """Merge the bodies of several HTML files into one book.html."""
    try:
        from makeepub.commands.merge import execute_merge

        execute_merge(folder, output, quiet=quiet, console=console)
    except OSError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def info(
    epub_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the EPUB file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
) -> None:
    """Display book metadata and table of contents."""
    try:
        from makeepub.commands.info import execute_info

        execute_info(epub_path, console=console)
    except Exception as e:
        console.print(f"[red]Error reading file: {e}[/]")
        raise typer.Exit(1)


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Address to listen on")] = "0.0.0.0",
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port to listen on", min=1, max=65535),
    ] = 8080,
) -> None:
    """Run the upload-and-convert web server."""
    from makeepub.server import run

    console.print(f"Web server started, listening at port {port}")
    console.print("Press Ctrl+C to exit.")
    run(host=host, port=port)


if __name__ == "__main__":
    app()
