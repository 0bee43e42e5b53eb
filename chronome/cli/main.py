"""CLI entry point for Chronome minute allocation.

Usage:
    chronome allocate request.json
    chronome allocate request.yaml --output json --save results/run.json
    chronome allocate --total 480 --task review:2 --task deploy:1::120
    chronome validate request.yaml
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ..allocation.engine import validate_input
from ..allocation.normalizer import normalize_request, read_request_file
from ..allocation.service import AllocationService
from ..core.config import get_config
from ..core.exceptions import AllocationError, ChronomeError, ConfigurationError
from ..core.types import AllocationErrorKind, ErrorCategory, OUTPUT_FORMATS
from ..output.formatters import JSONFormatter, get_formatter

# Initialize app
app = typer.Typer(
    name="chronome",
    help="Split a fixed number of minutes across weighted tasks",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else get_config().log_level_value
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def parse_task_option(raw: str) -> dict[str, Any]:
    """
    Parse a --task value of the form ID:RATIO[:MIN[:MAX]].

    Empty MIN or MAX fields are left unset, so 'deploy:1::120' has
    a maximum but no minimum.
    """
    parts = raw.split(":")
    if len(parts) < 2 or len(parts) > 4:
        raise AllocationError(
            AllocationErrorKind.MALFORMED_REQUEST,
            f"invalid task '{raw}', expected ID:RATIO[:MIN[:MAX]]",
            {"field": "task", "value": raw},
        )

    task: dict[str, Any] = {"task_id": parts[0]}
    try:
        task["ratio"] = float(parts[1])
        if len(parts) > 2 and parts[2]:
            task["min_minutes"] = int(parts[2])
        if len(parts) > 3 and parts[3]:
            task["max_minutes"] = int(parts[3])
    except ValueError:
        raise AllocationError(
            AllocationErrorKind.MALFORMED_REQUEST,
            f"invalid number in task '{raw}'",
            {"field": "task", "value": raw},
        ) from None

    return task


def _build_payload(
    request_file: Optional[Path],
    total: Optional[int],
    tasks: Optional[List[str]],
) -> Any:
    if request_file is not None:
        if total is not None or tasks:
            err_console.print("[red]Use either a request file or --total/--task, not both[/]")
            raise typer.Exit(ErrorCategory.VALIDATION.exit_code)
        return read_request_file(request_file)

    if total is None or not tasks:
        err_console.print("[red]Provide a request file, or --total with at least one --task[/]")
        raise typer.Exit(ErrorCategory.VALIDATION.exit_code)

    return {
        "total_minutes": total,
        "tasks": [parse_task_option(raw) for raw in tasks],
    }


def _fail(error: ChronomeError, verbose: bool) -> typer.Exit:
    """Report an error and return the Exit to raise."""
    err_console.print(f"[red]Error: {escape(str(error))}[/]")
    if verbose and error.details:
        err_console.print(error.details)
    return typer.Exit(error.category.exit_code)


@app.command("allocate")
def allocate_command(
    request_file: Optional[Path] = typer.Argument(
        None,
        help="Allocation request file (.json, .yaml, .yml)",
    ),
    total: Optional[int] = typer.Option(
        None,
        "--total", "-t",
        help="Total minutes to split (instead of a request file)",
    ),
    task: Optional[List[str]] = typer.Option(
        None,
        "--task",
        help="Task as ID:RATIO[:MIN[:MAX]], repeatable",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output", "-o",
        help="Output format: table, json, csv (default: CHRONOME_OUTPUT_FORMAT)",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save", "-s",
        help="Save output to file",
    ),
    bounds: bool = typer.Option(
        False,
        "--bounds", "-b",
        help="Echo min/max minutes in JSON output",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Allocate minutes across tasks in proportion to their ratios.

    Examples:
        chronome allocate request.json
        chronome allocate --total 480 --task review:2 --task deploy:1::120 -o json
    """
    try:
        setup_logging(verbose)
        output_format = (output or get_config().output_format).lower()
    except ConfigurationError as e:
        raise _fail(e, verbose)

    if output_format not in OUTPUT_FORMATS:
        err_console.print(f"[red]Invalid output format: {output_format}[/]")
        err_console.print(f"Valid formats: {', '.join(OUTPUT_FORMATS)}")
        raise typer.Exit(ErrorCategory.VALIDATION.exit_code)

    try:
        payload = _build_payload(request_file, total, task)
        result = AllocationService().allocate(payload)
    except FileNotFoundError as e:
        err_console.print(f"[red]Error: request file not found: {escape(str(e.filename))}[/]")
        raise typer.Exit(ErrorCategory.VALIDATION.exit_code)
    except ChronomeError as e:
        raise _fail(e, verbose)

    if output_format == "json" and bounds:
        formatter = JSONFormatter(include_bounds=True)
    else:
        formatter = get_formatter(output_format)

    formatted = formatter.format(result)

    # Table output is already rendered, print it as is
    print(formatted.rstrip("\n"))

    # Save if requested
    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        if output_format == "table":
            save_path = save.with_suffix(".txt")
        else:
            save_path = save.with_suffix(f".{output_format}")
        formatter.format_to_file(result, str(save_path))
        console.print(f"[green]Saved to {save_path}[/]")


@app.command("validate")
def validate_command(
    request_file: Path = typer.Argument(..., help="Allocation request file (.json, .yaml, .yml)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Check a request file, including its bounds, without allocating it."""
    try:
        setup_logging(verbose)
        data = normalize_request(read_request_file(request_file))
        validate_input(data)
    except FileNotFoundError as e:
        err_console.print(f"[red]Error: request file not found: {escape(str(e.filename))}[/]")
        raise typer.Exit(ErrorCategory.VALIDATION.exit_code)
    except ChronomeError as e:
        raise _fail(e, verbose)

    console.print(
        f"[green]OK[/] {data.total_units} minutes across {len(data.tasks)} tasks: "
        f"{', '.join(data.task_ids)}"
    )


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    console.print(f"Chronome allocator v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
