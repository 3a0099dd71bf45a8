"""Batch command implementation."""

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.progress import Progress
from rich.table import Table

from makeepub.core.context import JobContext
from makeepub.core.errors import MakeEpubError
from makeepub.core.maker import make_book


@dataclass
class JobResult:
    """Outcome of one batch item."""

    input_path: Path
    output_path: Path | None = None
    error: str | None = None
    messages: list[str] | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def collect_inputs(source: Path) -> list[Path]:
    """Inputs named by a batch source.

    A directory contributes its sub-directories and .zip files; a text file
    lists one input per line.
    """
    if source.is_dir():
        return [
            path
            for path in sorted(source.iterdir())
            if path.is_dir() or path.suffix.lower() == ".zip"
        ]

    inputs = []
    for line in source.read_text(encoding="utf-8-sig").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            inputs.append(Path(line))
    return inputs


def run_job(input_path: Path, outdir: Path | None) -> JobResult:
    """Convert one input; errors are captured, never raised."""
    ctx = JobContext(name=str(input_path))
    try:
        written = make_book(input_path, outdir, ctx=ctx)
    except (MakeEpubError, OSError) as e:
        ctx.error("%s", e)
        return JobResult(input_path=input_path, error=str(e), messages=ctx.messages)
    except Exception as e:
        # failures stay inside their own job
        ctx.error("unexpected error: %s", e)
        return JobResult(input_path=input_path, error=str(e), messages=ctx.messages)
    return JobResult(input_path=input_path, output_path=written, messages=ctx.messages)


def run_batch(
    inputs: list[Path],
    outdir: Path | None,
    workers: int | None = None,
    progress: Progress | None = None,
) -> list[JobResult]:
    """Convert inputs concurrently, one independent job per input.

    Returns:
        Results in the order of inputs
    """
    if outdir is not None:
        outdir.mkdir(parents=True, exist_ok=True)
    workers = workers or min(32, (os.cpu_count() or 1) + 1)

    task = progress.add_task("Converting...", total=len(inputs)) if progress else None
    results: list[JobResult | None] = [None] * len(inputs)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(run_job, path, outdir): index for index, path in enumerate(inputs)
        }
        for future in as_completed(futures):
            result = future.result()
            results[futures[future]] = result
            if progress is not None:
                progress.update(task, advance=1, description=f"Done: {result.input_path.name}")
    return results


def execute_batch(
    source: Path,
    outdir: Path | None,
    workers: int | None,
    quiet: bool,
    console: Console,
) -> list[JobResult]:
    """Execute the batch command."""
    inputs = collect_inputs(source)
    if not inputs:
        console.print("[yellow]No inputs found.[/]")
        return []

    if quiet:
        results = run_batch(inputs, outdir, workers)
    else:
        with Progress(console=console) as progress:
            results = run_batch(inputs, outdir, workers, progress)

    failed = sum(1 for result in results if not result.ok)
    if not quiet:
        table = Table(title="Batch Results", show_header=True, header_style="bold cyan")
        table.add_column("Input", style="white")
        table.add_column("Status")
        table.add_column("Output / Error", style="dim")
        for result in results:
            if result.ok:
                status = "[green]ok[/]"
                detail = str(result.output_path or "-")
            else:
                status = "[red]failed[/]"
                detail = result.error or ""
            table.add_row(str(result.input_path), status, detail)
        console.print(table)

    console.print(
        f"total: {len(results)}   succeeded: {len(results) - failed}   failed: {failed}"
    )
    return results
