"""Inspection commands: folders, show, demo.

Provides commands for listing the diagnostics folders of past runs,
reading their per-thread log files and producing a sample run.
"""

import datetime
import threading
from pathlib import Path

import typer
from rich.table import Table

from thread_diagnostics.cli.utils import (
    console,
    exit_with_error,
    format_age,
    format_size,
    print_info,
    print_success,
    resolve_data_dir,
)
from thread_diagnostics.config import get_settings
from thread_diagnostics.core.console import ConsoleColor
from thread_diagnostics.core.diagnostics import Diagnostics
from thread_diagnostics.core.folders import list_diagnostics_folders

app = typer.Typer(help="Inspection commands")


@app.command()
def folders(
    data_dir: Path | None = typer.Option(
        None, "--data-dir", "-d", help="Directory holding diagnostics folders."
    ),
) -> None:
    """List diagnostics folders of previous runs.

    Shows each folder's age, number of log files and size. Folders
    older than the retention window are marked as expired.
    """
    settings = get_settings()
    base = resolve_data_dir(data_dir, settings)
    infos = list_diagnostics_folders(base, settings.folder_prefix)

    if not infos:
        print_info(f"No diagnostics folders in {base}")
        return

    now = datetime.datetime.now()
    table = Table(title=f"Diagnostics folders in {base}")
    table.add_column("Folder", style="cyan")
    table.add_column("Age", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Status")

    for info in infos:
        expired = info.age(now) > settings.retention
        status = "[yellow]expired[/yellow]" if expired else "[green]kept[/green]"
        table.add_row(
            info.name,
            format_age(info.age(now)),
            str(info.file_count),
            format_size(info.size_bytes),
            status,
        )

    console.print(table)


@app.command()
def show(
    folder: str = typer.Argument(..., help="Folder name (or path) to show."),
    lines: int = typer.Option(20, "--lines", "-n", min=0, help="Trailing lines per log file."),
    data_dir: Path | None = typer.Option(
        None, "--data-dir", "-d", help="Directory holding diagnostics folders."
    ),
) -> None:
    """Show the per-thread log files of a diagnostics folder.

    Examples:
        thread-diagnostics show Diagnostics-14h3m27s
        thread-diagnostics show Diagnostics-14h3m27s --lines 100
    """
    path = Path(folder)
    if not path.is_dir():
        path = resolve_data_dir(data_dir) / folder
    if not path.is_dir():
        exit_with_error(f"Diagnostics folder not found: {folder}")

    log_files = sorted(path.glob("*.log"))
    if not log_files:
        print_info(f"No log files in {path}")
        return

    for log_file in log_files:
        content = log_file.read_text(encoding="utf-8", errors="replace").splitlines()
        console.print()
        console.print(f"[bold]{log_file.name}[/bold] [dim]({len(content)} lines)[/dim]")
        tail = content[-lines:] if lines else []
        for line in tail:
            console.print(line, markup=False, highlight=False)


@app.command()
def demo(
    threads: int = typer.Option(3, "--threads", "-t", min=0, help="Worker threads to start."),
    messages: int = typer.Option(5, "--messages", "-m", min=1, help="Lines per thread."),
    data_dir: Path | None = typer.Option(
        None, "--data-dir", "-d", help="Directory holding diagnostics folders."
    ),
) -> None:
    """Produce a sample diagnostics run.

    The main thread and every worker log a few lines; only main-thread
    lines are echoed here, all of them land in per-thread log files.
    """
    settings = get_settings()
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": data_dir})

    with Diagnostics.create(settings) as diagnostics:
        diagnostics.log("Demo started with {0} worker threads", threads, color=ConsoleColor.GREEN)

        def work(index: int) -> None:
            for number in range(messages):
                diagnostics.log("Worker {0} message {1}", index, number)

        workers = [
            threading.Thread(target=work, args=(index,), name=f"Worker-{index}")
            for index in range(1, threads + 1)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        summaries = diagnostics.summaries()
        folder_path = diagnostics.folder_path

    table = Table(title="Per-thread sinks")
    table.add_column("Name", style="cyan")
    table.add_column("Thread", justify="right")
    table.add_column("Lines", justify="right")
    table.add_column("File")
    for summary in summaries:
        table.add_row(
            summary.name,
            str(summary.thread_id),
            str(summary.line_count),
            summary.log_file_path.name if summary.log_file_path else "-",
        )

    console.print()
    console.print(table)
    print_success(f"Diagnostics written to {folder_path}")
