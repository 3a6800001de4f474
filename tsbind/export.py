"""Export resolver: output paths, imports, collision checks and file writes.

Each export runs through a small state machine::

    PENDING -> RESOLVING_PATH -> COLLECTING_DEPENDENCIES
            -> RENDERING_IMPORTS -> WRITING -> DONE | FAILED

Everything before ``WRITING`` is pure.  The write phase locks the single
output path (see :mod:`tsbind.locks`), merges the new declaration into any
declarations other types already wrote to the same file, and replaces the
file atomically.

Usage::

    from tsbind import Exporter, ExportConfig

    exporter = Exporter(ExportConfig(export_dir=Path("frontend/src/bindings")))
    exporter.export(user_descriptor)
    exporter.export_all(order_descriptor)   # plus every dependency
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from rich.markup import escape

from .config import ExportConfig
from .deps import Dependency
from .errors import CollisionError, ExportIOError, TSBindError
from .locks import PathLock, name_registry, write_atomic
from .models import TypeDescriptor
from .renderer import TypeRenderer
from .templates import HEADER, TemplateRenderer
from .utils import console, ensure_dir, relative_import, same_path

_IMPORT_PATTERN = re.compile(r'^import(?: type)? \{\s*(?P<names>[^}]*)\}\s*from\s*"(?P<source>[^"]+)";\s*$')
_DECLARED_NAME_PATTERN = re.compile(r"^export type (?P<name>[A-Za-z_$][A-Za-z0-9_$]*)", re.MULTILINE)
_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)
_STRING_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"')


def _strip_comments_and_strings(block: str) -> str:
    return _STRING_PATTERN.sub('""', _COMMENT_PATTERN.sub("", block))


# ---------------------------------------------------------------------------
# Export state & results
# ---------------------------------------------------------------------------

class ExportState(str, Enum):
    """Lifecycle of a single export call."""
    PENDING = "pending"
    RESOLVING_PATH = "resolving_path"
    COLLECTING_DEPENDENCIES = "collecting_dependencies"
    RENDERING_IMPORTS = "rendering_imports"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


_TERMINAL = (ExportState.DONE, ExportState.FAILED)


@dataclass
class ExportTarget:
    """Resolved output path plus the dependencies that need an import."""

    path: Path
    dependencies: list[Dependency] = field(default_factory=list)


@dataclass
class ExportResult:
    """Outcome of one export call."""

    name: str
    state: ExportState = ExportState.PENDING
    path: Optional[Path] = None
    error: Optional[BaseException] = None
    history: list[ExportState] = field(default_factory=lambda: [ExportState.PENDING])

    def advance(self, state: ExportState) -> None:
        if self.state in _TERMINAL:
            raise RuntimeError(f"export of {self.name} already finished as {self.state.value}")
        self.state = state
        self.history.append(state)

    def fail(self, error: BaseException) -> None:
        self.error = error
        self.advance(ExportState.FAILED)

    @property
    def ok(self) -> bool:
        return self.state is ExportState.DONE

    def raise_for_error(self) -> "ExportResult":
        """Re-raise the originating error of a failed export."""
        if self.error is not None:
            raise self.error
        return self


# ---------------------------------------------------------------------------
# Parsed binding files
# ---------------------------------------------------------------------------

@dataclass
class BindingFile:
    """The import lines and declaration blocks of one generated file."""

    imports: dict[str, list[str]] = field(default_factory=dict)
    declarations: dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, text: str) -> "BindingFile":
        """Parse a file previously written by tsbind."""
        parsed = cls()
        block: list[str] = []

        def flush() -> None:
            if block:
                parsed.add_declaration("\n".join(block))
                block.clear()

        for line in text.splitlines():
            if line == HEADER:
                continue
            match = _IMPORT_PATTERN.match(line)
            if match and not block:
                names = [n.strip() for n in match.group("names").split(",") if n.strip()]
                for name in names:
                    parsed.add_import(match.group("source"), name)
                continue
            if not line.strip():
                flush()
                continue
            block.append(line)
        flush()
        return parsed

    def add_import(self, source: str, name: str) -> None:
        names = self.imports.setdefault(source, [])
        if name not in names:
            names.append(name)

    def add_declaration(self, block: str) -> None:
        match = _DECLARED_NAME_PATTERN.search(block)
        key = match.group("name") if match else block
        self.declarations[key] = block

    def drop_unused_imports(self) -> None:
        """Forget imported names that no declaration in the file refers to."""
        code = "\n".join(_strip_comments_and_strings(block) for block in self.declarations.values())
        for source in list(self.imports):
            used = [
                name
                for name in self.imports[source]
                if re.search(rf"(?<![\w$]){re.escape(name)}(?![\w$])", code)
            ]
            if used:
                self.imports[source] = used
            else:
                del self.imports[source]

    def import_lines(self) -> list[str]:
        declared = set(self.declarations)
        lines = []
        for source, names in self.imports.items():
            wanted = [name for name in names if name not in declared]
            if wanted:
                lines.append(f'import type {{ {", ".join(wanted)} }} from "{source}";')
        return lines


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------

class Exporter:
    """Renders descriptors and writes them to binding files.

    Every exporter in the process shares one record of which type owns each
    declared name, so exporting two distinct types with the same name fails
    with a :class:`~tsbind.errors.CollisionError` instead of silently
    overwriting, even when the two exports go through different exporters.

    Attributes:
        config: Export configuration, threaded into every call.
        renderer: The type renderer sharing that configuration.
    """

    def __init__(self, config: ExportConfig | None = None) -> None:
        self.config = config or ExportConfig()
        self.renderer = TypeRenderer(self.config)
        self.templates = TemplateRenderer()
        self.locks = PathLock(self.config.lock_timeout, self.config.lock_poll_interval)

    # -- Pure entry points -------------------------------------------------

    def declaration_of(self, descriptor: TypeDescriptor) -> str:
        return self.renderer.declaration_of(descriptor)

    def inline_of(self, descriptor: TypeDescriptor) -> str:
        return self.renderer.inline_of(descriptor)

    def dependencies_of(self, descriptor: TypeDescriptor) -> list[Dependency]:
        return self.renderer.dependencies_of(descriptor)

    def resolve_path(self, descriptor: TypeDescriptor, path: str | Path | None = None) -> Path:
        """Explicit *path* wins, then the type's ``export_to``, then the export dir."""
        if path is not None:
            return Path(path)
        return self.config.output_path(descriptor)

    def target_for(self, descriptor: TypeDescriptor, path: str | Path | None = None) -> ExportTarget:
        """Resolve the output path and the dependencies that need importing.

        Raises:
            CollisionError: If two distinct dependencies (or a dependency and
                the type itself) share a declared name.
        """
        target_path = self.resolve_path(descriptor, path)
        owners: dict[str, tuple[str, str]] = {
            descriptor.ts_name: (descriptor.type_id, target_path.as_posix())
        }
        imported: list[Dependency] = []
        seen_files: set[tuple[str, str]] = set()
        for dependency in self.dependencies_of(descriptor):
            declaration_id = dependency.descriptor.type_id
            known = owners.setdefault(dependency.ts_name, (declaration_id, dependency.exported_to))
            if known[0] != declaration_id:
                raise CollisionError(dependency.ts_name, known[1], dependency.exported_to)
            if declaration_id == descriptor.type_id or same_path(dependency.path, target_path):
                continue
            key = (dependency.ts_name, dependency.exported_to)
            if key in seen_files:
                continue
            seen_files.add(key)
            imported.append(dependency)
        return ExportTarget(path=target_path, dependencies=imported)

    def render_imports(self, target: ExportTarget) -> list[str]:
        """``import type { A, B } from "./x";`` lines, grouped per source file."""
        binding = BindingFile()
        self._add_imports(binding, target)
        return binding.import_lines()

    def export_to_string(self, descriptor: TypeDescriptor) -> str:
        """The complete file content *descriptor* would be exported as, on its own."""
        target = self.target_for(descriptor)
        binding = BindingFile()
        self._add_imports(binding, target)
        binding.add_declaration(self._declaration_block(descriptor))
        return self.templates.render_bindings(binding.import_lines(), list(binding.declarations.values()))

    # -- Writing -----------------------------------------------------------

    def export(self, descriptor: TypeDescriptor, path: str | Path | None = None) -> ExportResult:
        """Export *descriptor* to its resolved path (or the explicit *path*).

        Returns:
            The finished :class:`ExportResult`.

        Raises:
            TSBindError: The originating error when the export fails.
        """
        return self.run(descriptor, path).raise_for_error()

    def run(self, descriptor: TypeDescriptor, path: str | Path | None = None) -> ExportResult:
        """Export *descriptor* and report failure in the result instead of raising."""
        result = ExportResult(name=descriptor.ts_name)
        try:
            result.advance(ExportState.RESOLVING_PATH)
            target_path = self.resolve_path(descriptor, path)
            result.path = target_path
            self._claim(descriptor.ts_name, descriptor.type_id, target_path)

            result.advance(ExportState.COLLECTING_DEPENDENCIES)
            target = self.target_for(descriptor, target_path)
            for dependency in target.dependencies:
                self._claim(dependency.ts_name, dependency.descriptor.type_id, dependency.path)

            result.advance(ExportState.RENDERING_IMPORTS)
            update = BindingFile()
            self._add_imports(update, target)
            block = self._declaration_block(descriptor)

            result.advance(ExportState.WRITING)
            self._write(target.path, update, block)
            result.advance(ExportState.DONE)
        except TSBindError as exc:
            result.fail(exc)
        return result

    def export_all(self, descriptor: TypeDescriptor) -> list[ExportResult]:
        """Export *descriptor* and, recursively, every type it depends on.

        Each declaration is exported once even if the graph has cycles.

        Raises:
            TSBindError: The first failure, after which nothing else is written.
        """
        results: list[ExportResult] = []
        visited: set[str] = set()
        pending = [descriptor]
        while pending:
            current = pending.pop(0)
            if current.type_id in visited:
                continue
            visited.add(current.type_id)
            results.append(self.export(current))
            for dependency in self.dependencies_of(current):
                if dependency.descriptor.type_id not in visited:
                    pending.append(dependency.descriptor)
        return results

    async def export_many(self, descriptors: Iterable[TypeDescriptor]) -> list[ExportResult]:
        """Export several types concurrently from worker threads.

        Failures do not cancel the other exports; inspect each result's
        ``state`` and ``error``.
        """
        return list(
            await asyncio.gather(
                *(asyncio.to_thread(self.run, descriptor) for descriptor in descriptors)
            )
        )

    # -- Internal helpers --------------------------------------------------

    def _claim(self, name: str, type_id: str, path: Path) -> None:
        name_registry.claim(name, type_id, path)

    def _declaration_block(self, descriptor: TypeDescriptor) -> str:
        declaration = f"export {self.renderer.declaration_of(descriptor)}"
        docs = self.renderer.format_docs(descriptor.docs)
        return f"{docs}\n{declaration}" if docs else declaration

    def _add_imports(self, binding: BindingFile, target: ExportTarget) -> None:
        for dependency in target.dependencies:
            source = relative_import(target.path, dependency.path, self.config.import_suffix)
            binding.add_import(source, dependency.ts_name)

    def _write(self, path: Path, update: BindingFile, block: str) -> None:
        try:
            ensure_dir(path.parent)
        except OSError as exc:
            raise ExportIOError(path.parent, f"Cannot create output directory ({exc.strerror})") from exc

        with self.locks.hold(path):
            try:
                existing = path.read_text(encoding="utf-8") if path.exists() else ""
            except OSError as exc:
                raise ExportIOError(path, f"Cannot read existing bindings ({exc.strerror})") from exc
            except UnicodeDecodeError as exc:
                raise ExportIOError(path, "Cannot read existing bindings (not valid UTF-8)") from exc

            merged = BindingFile.parse(existing)
            for source, names in update.imports.items():
                for name in names:
                    merged.add_import(source, name)
            merged.add_declaration(block)
            merged.drop_unused_imports()
            content = self.templates.render_bindings(
                merged.import_lines(), list(merged.declarations.values())
            )
            try:
                write_atomic(path, content)
            except OSError as exc:
                raise ExportIOError(path, f"Cannot write bindings ({exc.strerror})") from exc

        if self.config.verbose:
            console.print(f"[dim]wrote[/dim] {escape(path.as_posix())}")
