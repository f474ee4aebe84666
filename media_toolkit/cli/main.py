"""
CLI interface for Media Toolkit.

A thin debugging front end over ProcessRunner using Typer and Rich: run a
tool once, watch its output and progress, and get its exit code back.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..config import RunnerConfig, get_config_manager
from ..executor import ProcessRunner, install_shutdown_hook
from ..models import OutputLine, ProgressReport, ToolResult
from ..progress import ffmpeg_progress_parser
from ..utils import MediaToolkitError, get_logger, setup_logger

app = typer.Typer(
    name="media-toolkit",
    help="Run external media tools with streamed output and progress",
    add_completion=False,
)

# Console for rich output
console = Console()

logger = get_logger(__name__)


@app.command()
def run(
    program: Path = typer.Argument(
        ...,
        help="Resolved path to the tool executable",
    ),
    arguments: str = typer.Argument(
        "",
        help="Argument string passed to the tool as-is (quote it as one shell word)",
    ),
    cwd: Optional[Path] = typer.Option(
        None,
        "--cwd",
        "-C",
        file_okay=False,
        help="Working directory for the tool (default: temp directory)",
    ),
    ffmpeg_progress: bool = typer.Option(
        False,
        "--ffmpeg-progress",
        "-p",
        help="Show a progress bar from FFmpeg-style 'Duration:' / 'time=' lines",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Do not echo tool output",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        help="Custom configuration file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log",
        help="Log file path",
    ),
) -> None:
    """
    Run a tool once and exit with its exit code.
    """
    setup_logger(level="DEBUG" if verbose else "INFO", log_file=log_file, verbose=verbose)

    try:
        config = get_config_manager().load(config_file)
        install_shutdown_hook()
        result = asyncio.run(
            _run_async(program, arguments, cwd, config, ffmpeg_progress, quiet)
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠ Cancelled by user[/yellow]")
        sys.exit(130)
    except MediaToolkitError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        sys.exit(1)

    style = "green" if result.succeeded else "red"
    console.print(f"[{style}]{program.name} exited with code {result.exit_code}[/{style}]")
    sys.exit(exit_status(result.exit_code))


def exit_status(exit_code: int) -> int:
    """
    Map a tool exit code to a shell exit status.

    A negative code means the tool was killed by that signal; shells report
    this as 128 + signal number.
    """
    if exit_code < 0:
        return 128 + abs(exit_code)
    return exit_code


async def _run_async(
    program: Path,
    arguments: str,
    cwd: Optional[Path],
    config: RunnerConfig,
    ffmpeg_progress: bool,
    quiet: bool,
) -> ToolResult:
    """
    Async implementation of the run command.
    """
    runner = ProcessRunner(program, config=config)

    with Progress(
        TextColumn("[cyan]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>5.1f}%"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
        disable=not ffmpeg_progress,
    ) as progress:
        task_id = progress.add_task(runner.tool_name, total=1.0)

        def on_line(line: OutputLine) -> None:
            if not quiet:
                style = "dim" if line.is_stderr else None
                progress.console.print(line.text, style=style, markup=False, highlight=False)

        def on_progress(event: ProgressReport) -> None:
            # Tools may overshoot their announced duration
            progress.update(task_id, completed=min(max(event.progress, 0.0), 1.0))

        return await runner.execute(
            arguments,
            working_directory=cwd,
            on_line=on_line,
            progress_parser=ffmpeg_progress_parser() if ffmpeg_progress else None,
            on_progress=on_progress,
        )


@app.command("config")
def config_command(
    action: str = typer.Argument(..., help="Action: init, show"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for 'init' action",
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """
    Manage configuration files.

    Actions:
    - init: Create a default configuration file
    - show: Display current configuration
    """
    config_manager = get_config_manager()

    if action == "init":
        output_path = output or Path(".media-toolkit.yaml")
        if output_path.exists() and not force:
            console.print(f"[red]✗ Error:[/red] {output_path} already exists (use --force)")
            sys.exit(1)

        try:
            config_manager.save(output_path, RunnerConfig.create_default())
        except MediaToolkitError as e:
            console.print(f"[red]✗ Error:[/red] {e}")
            sys.exit(1)
        console.print(f"[green]✓[/green] Created config file: {output_path}")

    elif action == "show":
        try:
            config = config_manager.config
        except MediaToolkitError as e:
            console.print(f"[red]✗ Error:[/red] {e}")
            sys.exit(1)

        table = Table(title="Runner Settings", show_header=True)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")
        for name, value in config.model_dump(mode="json").items():
            table.add_row(name, "(temp directory)" if value is None else str(value))
        console.print(table)

    else:
        console.print(f"[red]✗ Unknown action:[/red] {action}")
        console.print("Valid actions: init, show")
        sys.exit(1)


@app.command("version")
def version_command() -> None:
    """
    Display version information.
    """
    from .. import __version__

    console.print(
        Panel.fit(
            f"[bold cyan]Media Toolkit[/bold cyan]\n[dim]Version {__version__}[/dim]",
            border_style="cyan",
        )
    )


def main() -> None:
    """
    Main entry point for CLI.
    """
    app()


if __name__ == "__main__":
    main()
