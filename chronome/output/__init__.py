"""Output formatting module."""

from .formatters import (
    CSVFormatter,
    JSONFormatter,
    OutputFormatter,
    TableFormatter,
    get_formatter,
)

__all__ = [
    "OutputFormatter",
    "JSONFormatter",
    "CSVFormatter",
    "TableFormatter",
    "get_formatter",
]
