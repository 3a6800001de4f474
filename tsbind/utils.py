"""Shared helpers for tsbind.

Provides the Rich console used for all user-facing output, the coloured
message helpers, a summary table printer, and the path helpers used when
computing import specifiers.
"""

from __future__ import annotations

import os
from pathlib import Path

from rich.console import Console
from rich.table import Table

console = Console()


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Concurrent callers racing to create the same directory all succeed.

    Returns:
        The ``Path`` object.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def same_path(a: str | Path, b: str | Path) -> bool:
    """``True`` if *a* and *b* name the same file once made absolute."""
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))


def relative_import(from_file: str | Path, to_file: str | Path, suffix: str = "") -> str:
    """Module specifier for importing *to_file* from *from_file*.

    The ``.ts`` extension is dropped (and replaced by *suffix*), separators are
    always ``/``, and specifiers inside the same directory start with ``./``.

    Examples::

        relative_import("bindings/A.ts", "bindings/B.ts")        -> "./B"
        relative_import("bindings/a/A.ts", "bindings/B.ts")      -> "../B"
        relative_import("out/A.ts", "out/x/B.ts", suffix=".js")  -> "./x/B.js"
    """
    start = os.path.dirname(os.path.abspath(from_file))
    rel = os.path.relpath(os.path.abspath(to_file), start).replace(os.sep, "/")
    if rel.endswith(".ts"):
        rel = rel[: -len(".ts")]
    if not rel.startswith("../"):
        rel = f"./{rel}"
    return f"{rel}{suffix}"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(rows: list[tuple[str, str, str]], title: str = "Exported bindings") -> None:
    """Print a three-column (type, path, status) table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Type", style="bold", no_wrap=True)
    table.add_column("Path", style="dim")
    table.add_column("Status")

    for name, path, status in rows:
        table.add_row(name, path, status)

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
