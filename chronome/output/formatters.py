"""Output formatters for allocation results.

Provides multiple output formats:
- JSON: Machine-readable, matches the allocation API response
- CSV: Spreadsheet-compatible, one row per task
- Table: Human-readable CLI output
"""

import csv
import io
import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.models import AllocationResult
from ..core.types import OUTPUT_FORMATS

logger = logging.getLogger(__name__)


def _format_minutes(minutes: int) -> str:
    """Render minutes as e.g. '2h 05m'."""
    hours, rest = divmod(minutes, 60)
    if hours:
        return f"{hours}h {rest:02d}m"
    return f"{rest}m"


def _bound(value: int | None) -> str:
    return str(value) if value is not None else ""


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, result: AllocationResult) -> str:
        """Format the result as a string."""
        pass

    def format_to_file(self, result: AllocationResult, filepath: str) -> None:
        """Write formatted result to a file."""
        with open(filepath, "w", encoding="utf-8", newline="") as f:
            f.write(self.format(result))


class JSONFormatter(OutputFormatter):
    """Formats results as JSON, in the shape the allocation API returns."""

    def __init__(self, indent: int = 2, include_bounds: bool = False):
        """
        Initialize JSON formatter.

        Args:
            indent: JSON indentation level
            include_bounds: Echo min/max minutes for each task
        """
        self.indent = indent
        self.include_bounds = include_bounds

    def to_dict(self, result: AllocationResult) -> dict[str, Any]:
        """Build the response body for a result."""
        allocations = []
        for alloc in result.allocations:
            item: dict[str, Any] = {
                "task_id": alloc.task_id,
                "ratio": alloc.ratio,
                "allocated_minutes": alloc.allocated_units,
            }
            if self.include_bounds:
                if alloc.min_units is not None:
                    item["min_minutes"] = alloc.min_units
                if alloc.max_units is not None:
                    item["max_minutes"] = alloc.max_units
            allocations.append(item)

        return {
            "request_id": str(result.request_id),
            "total_minutes": result.total_units,
            "created_at": result.created_at.isoformat(),
            "allocations": allocations,
        }

    def format(self, result: AllocationResult) -> str:
        """Format result as JSON string."""
        return json.dumps(self.to_dict(result), indent=self.indent)


class CSVFormatter(OutputFormatter):
    """Formats allocations as CSV."""

    HEADER = ["task_id", "ratio", "allocated_minutes", "min_minutes", "max_minutes"]

    def __init__(self, delimiter: str = ",", include_total: bool = True):
        """
        Initialize CSV formatter.

        Args:
            delimiter: CSV delimiter
            include_total: Append a TOTAL row
        """
        self.delimiter = delimiter
        self.include_total = include_total

    def format(self, result: AllocationResult) -> str:
        """Format result as CSV string."""
        output = io.StringIO()
        writer = csv.writer(output, delimiter=self.delimiter, lineterminator="\n")

        writer.writerow(self.HEADER)
        for alloc in result.allocations:
            writer.writerow([
                alloc.task_id,
                f"{alloc.ratio:g}",
                alloc.allocated_units,
                _bound(alloc.min_units),
                _bound(alloc.max_units),
            ])

        if self.include_total:
            writer.writerow(["TOTAL", "", result.allocated_total, "", ""])

        return output.getvalue()


class TableFormatter(OutputFormatter):
    """Formats results as human-readable tables for CLI output."""

    def __init__(self, use_rich: bool = True, width: int = 100):
        """
        Initialize table formatter.

        Args:
            use_rich: Use rich for colored output
            width: Maximum table width
        """
        self.use_rich = use_rich
        self.width = width

    def format(self, result: AllocationResult) -> str:
        """Format result as readable tables."""
        if self.use_rich:
            return self._format_rich(result)
        return self._format_plain(result)

    def _format_plain(self, result: AllocationResult) -> str:
        """Plain text formatting without colors."""
        lines = []
        sep = "=" * 60

        lines.append(sep)
        lines.append(f"  MINUTE ALLOCATION: {result.total_units} minutes ({_format_minutes(result.total_units)})")
        lines.append(f"  Request: {result.request_id}")
        lines.append(sep)
        lines.append("")

        lines.append(f"  {'Task':<24} {'Ratio':>8} {'Minutes':>8}  {'Bounds':<14}")
        lines.append("  " + "-" * 58)
        for alloc in result.allocations:
            bounds = f"{_bound(alloc.min_units) or '0'}..{_bound(alloc.max_units) or '*'}"
            lines.append(
                f"  {alloc.task_id:<24} {alloc.ratio:>8g} {alloc.allocated_units:>8}  {bounds:<14}"
            )
        lines.append("  " + "-" * 58)
        lines.append(f"  {'TOTAL':<24} {'':>8} {result.allocated_total:>8}")
        lines.append("")

        lines.append(sep)
        lines.append(f"  Created: {result.created_at.strftime('%Y-%m-%d %H:%M UTC')}")
        lines.append(sep)

        return "\n".join(lines)

    def _format_rich(self, result: AllocationResult) -> str:
        """Rich formatting with colors."""
        output = io.StringIO()
        console = Console(file=output, force_terminal=True, width=self.width)

        console.print(Panel(
            f"[bold cyan]{result.total_units}[/] minutes "
            f"({_format_minutes(result.total_units)})\n"
            f"[dim]Request: {result.request_id}[/]",
            title="Minute Allocation",
            expand=False,
        ))

        table = Table(title="Allocations")
        table.add_column("Task", style="cyan")
        table.add_column("Ratio", justify="right")
        table.add_column("Minutes", justify="right", style="green")
        table.add_column("Time", justify="right", style="dim")
        table.add_column("Min", justify="right", style="dim")
        table.add_column("Max", justify="right", style="dim")

        for alloc in result.allocations:
            table.add_row(
                alloc.task_id,
                f"{alloc.ratio:g}",
                str(alloc.allocated_units),
                _format_minutes(alloc.allocated_units),
                _bound(alloc.min_units) or "-",
                _bound(alloc.max_units) or "-",
            )

        table.add_row("", "", "", "", "", "", end_section=True)
        table.add_row("[bold]TOTAL[/]", "", f"[bold]{result.allocated_total}[/]", "", "", "")
        console.print(table)

        return output.getvalue()

    def format_to_file(self, result: AllocationResult, filepath: str) -> None:
        """Write formatted output to file."""
        # Plain format for files (no ANSI codes)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self._format_plain(result))


def get_formatter(output_format: str) -> OutputFormatter:
    """Return the formatter for an output format name."""
    name = output_format.lower()
    if name == "json":
        return JSONFormatter()
    if name == "csv":
        return CSVFormatter()
    if name == "table":
        return TableFormatter()
    raise ValueError(f"Unknown output format '{output_format}', expected one of {', '.join(OUTPUT_FORMATS)}")
