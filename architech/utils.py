"""Shared utility functions for the Architech blueprint engine.

Provides document loading (JSON or YAML), file-shape classification used by
both the template resolver and the merge strategies, duration formatting, and
the Rich-based console helpers every other module prints through.
"""

from __future__ import annotations

import json
from pathlib import Path, PurePosixPath
from typing import Any

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# File shapes
# ---------------------------------------------------------------------------

SOURCE_EXTENSIONS: frozenset[str] = frozenset({".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"})
STRUCTURED_EXTENSIONS: frozenset[str] = frozenset({".json"})

SHAPE_STRUCTURED = "structured"
SHAPE_SOURCE = "source"
SHAPE_ENV = "env"
SHAPE_TEXT = "text"


def is_source_path(path: str | None) -> bool:
    """Return ``True`` if *path* names a JavaScript/TypeScript source file."""
    if not path:
        return False
    return PurePosixPath(path).suffix.lower() in SOURCE_EXTENSIONS


def file_shape(path: str) -> str:
    """Classify a target path by the merge semantics its format needs.

    Examples::

        file_shape("package.json")      -> "structured"
        file_shape("src/lib/stripe.ts") -> "source"
        file_shape(".env.local")        -> "env"
        file_shape("README.md")         -> "text"
    """
    pure = PurePosixPath(path)
    if pure.suffix.lower() in STRUCTURED_EXTENSIONS:
        return SHAPE_STRUCTURED
    if is_source_path(path):
        return SHAPE_SOURCE
    if pure.name == ".env" or pure.name.startswith(".env."):
        return SHAPE_ENV
    return SHAPE_TEXT


# ---------------------------------------------------------------------------
# Document I/O
# ---------------------------------------------------------------------------


def load_document(path: str | Path) -> dict[str, Any]:
    """Load a JSON or YAML mapping from disk.

    The format is chosen by extension: ``.yaml``/``.yml`` are parsed with
    PyYAML, everything else as JSON.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the document is not a mapping.
    """
    file_path = Path(path)
    raw = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(raw)
    else:
        data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"{file_path} must contain a mapping at the top level")
    return data


def dump_json(data: Any) -> str:
    """Serialise *data* the way project manifests are written (2-space indent, trailing newline)."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str, subtitle: str = "") -> None:
    """Print a boxed header for the start of a run."""
    body = f"[bold]{title}[/bold]"
    if subtitle:
        body += f"\n[dim]{subtitle}[/dim]"
    console.print(Panel(body, border_style="cyan"))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
