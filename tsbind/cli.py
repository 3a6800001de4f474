"""Command-line entry point: export the descriptors defined in a Python module.

Usage::

    python -m tsbind myapp.api_types
    python -m tsbind myapp.api_types:PUBLIC_TYPES --out web/src/bindings --esm
    python -m tsbind myapp.api_types:Order --recursive
"""

from __future__ import annotations

import asyncio
import importlib
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Optional

from rich.markup import escape

from tsbind.config import ExportConfig, ImportExtension
from tsbind.errors import TSBindError
from tsbind.export import ExportResult, ExportState, Exporter
from tsbind.models import TypeDescriptor
from tsbind.utils import console, print_error, print_success, print_summary_table, print_warning


def load_descriptors(target: str) -> list[TypeDescriptor]:
    """Import ``module[:attribute]`` and return the descriptors it names.

    With an attribute, it must hold a descriptor or an iterable of them.
    Without one, every module-level descriptor is returned; if any of them
    sets ``export=True`` only those are returned.

    Raises:
        ImportError: If the module cannot be imported.
        AttributeError: If the attribute does not exist.
        TypeError: If the attribute holds something other than descriptors.
    """
    module_name, _, attribute = target.partition(":")
    module = importlib.import_module(module_name)

    if attribute:
        value: Any = getattr(module, attribute)
        if isinstance(value, TypeDescriptor):
            return [value]
        if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
            items = list(value)
            if all(isinstance(item, TypeDescriptor) for item in items):
                return items
        raise TypeError(f"{target} is neither a TypeDescriptor nor an iterable of them")

    found: list[TypeDescriptor] = []
    seen: set[str] = set()
    for value in vars(module).values():
        if isinstance(value, TypeDescriptor) and value.type_id not in seen:
            seen.add(value.type_id)
            found.append(value)
    flagged = [descriptor for descriptor in found if descriptor.attrs.export]
    return flagged or found


def _status(result: ExportResult) -> str:
    if result.state is ExportState.DONE:
        return "[green]written[/green]"
    return f"[red]{escape(str(result.error))}[/red]"


def _rows(results: list[ExportResult]) -> list[tuple[str, str, str]]:
    return [
        (result.name, result.path.as_posix() if result.path else "-", _status(result))
        for result in results
    ]


def run_export(
    descriptors: list[TypeDescriptor],
    config: ExportConfig,
    recursive: bool = False,
) -> list[ExportResult]:
    """Export *descriptors* and return one result per written (or failed) type."""
    exporter = Exporter(config)
    if not recursive:
        return asyncio.run(exporter.export_many(descriptors))

    results: list[ExportResult] = []
    for descriptor in descriptors:
        try:
            results.extend(exporter.export_all(descriptor))
        except TSBindError as exc:
            failed = ExportResult(name=descriptor.ts_name)
            failed.fail(exc)
            results.append(failed)
    return results


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``python -m tsbind``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="tsbind",
        description="tsbind -- export TypeScript bindings for type descriptors",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m tsbind myapp.api_types\n"
            "  python -m tsbind myapp.api_types:PUBLIC_TYPES --out web/src/bindings\n"
            "  python -m tsbind myapp.api_types:Order --recursive --esm\n"
        ),
    )

    parser.add_argument(
        "target",
        help="Module to scan, optionally with ':attribute' naming a descriptor or a list of them",
    )
    parser.add_argument(
        "--out", "-o",
        default=None,
        help="Export directory (default: $TSBIND_EXPORT_DIR or ./bindings)",
    )
    parser.add_argument(
        "--esm",
        action="store_true",
        help="Append '.js' to import paths for ES module resolution",
    )
    parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Also export every type the selected types depend on",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print every written file",
    )

    args = parser.parse_args(argv)

    # Make modules in the working directory importable, as `python -m` does.
    if "" not in sys.path and str(Path.cwd()) not in sys.path:
        sys.path.insert(0, str(Path.cwd()))

    try:
        descriptors = load_descriptors(args.target)
    except (ImportError, AttributeError, TypeError) as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    if not descriptors:
        print_warning(f"No type descriptors found in {args.target}")
        return

    try:
        config = ExportConfig.from_env()
    except ValueError as exc:
        print_error(f"Invalid TSBIND_* environment setting: {exc}")
        sys.exit(1)
    if args.out:
        config.export_dir = Path(args.out)
    if args.esm:
        config.import_extension = ImportExtension.JS
    if args.verbose:
        config.verbose = True

    results = run_export(descriptors, config, recursive=args.recursive)
    print_summary_table(_rows(results))

    failures = [result for result in results if result.state is ExportState.FAILED]
    if failures:
        print_error(f"{len(failures)} of {len(results)} export(s) failed.")
        sys.exit(1)
    print_success(f"Exported {len(results)} type(s) to {escape(config.export_dir.as_posix())}")
    console.print()


if __name__ == "__main__":
    main()
