"""tsbind -- TypeScript declarations from type descriptors.

Describes structs and enums as Pydantic descriptors and renders them as
TypeScript type declarations, one ``.ts`` file per type, with the imports
needed between files.

Usage::

    from tsbind import TypeDescriptor, field, export_to_string
    from tsbind.types import NUMBER, STRING, Option

    user = TypeDescriptor.struct("User", [
        field("id", NUMBER),
        field("nickname", Option(STRING)),
    ])
    print(export_to_string(user))
    # export type User = { id: number, nickname: string | null };
"""

from __future__ import annotations

from pathlib import Path

from tsbind.attrs import ContainerAttrs, FieldAttrs, OptionalMode, RenameRule, VariantAttrs
from tsbind.config import ExportConfig, ImportExtension
from tsbind.deps import Dependency, DependencyCollector
from tsbind.errors import (
    CollisionError,
    ConfigurationError,
    ExportIOError,
    RepresentationError,
    TSBindError,
)
from tsbind.export import ExportResult, ExportState, ExportTarget, Exporter
from tsbind.models import (
    FieldDescriptor,
    GenericParameter,
    Shape,
    TypeDescriptor,
    VariantDescriptor,
    field,
    variant,
)
from tsbind.renderer import Representation, TypeRenderer, select_representation

__version__ = "0.1.0"


def _exporter(config: ExportConfig | None) -> Exporter:
    return Exporter(config or ExportConfig.from_env())


def declaration_of(descriptor: TypeDescriptor, config: ExportConfig | None = None) -> str:
    """``type Name = ...;`` for *descriptor*."""
    return _exporter(config).declaration_of(descriptor)


def inline_of(descriptor: TypeDescriptor, config: ExportConfig | None = None) -> str:
    """The body of *descriptor*'s declaration."""
    return _exporter(config).inline_of(descriptor)


def dependencies_of(descriptor: TypeDescriptor, config: ExportConfig | None = None) -> list[Dependency]:
    """Exportable types mentioned by *descriptor*'s declaration."""
    return _exporter(config).dependencies_of(descriptor)


def export(
    descriptor: TypeDescriptor,
    path: str | Path | None = None,
    config: ExportConfig | None = None,
) -> ExportResult:
    """Write *descriptor* to its binding file (or to *path*)."""
    return _exporter(config).export(descriptor, path)


def export_to_string(descriptor: TypeDescriptor, config: ExportConfig | None = None) -> str:
    """The file content :func:`export` would write, without touching the disk."""
    return _exporter(config).export_to_string(descriptor)


def export_all(descriptor: TypeDescriptor, config: ExportConfig | None = None) -> list[ExportResult]:
    """Export *descriptor* together with all of its dependencies."""
    return _exporter(config).export_all(descriptor)


__all__ = [
    "CollisionError",
    "ConfigurationError",
    "ContainerAttrs",
    "Dependency",
    "DependencyCollector",
    "ExportConfig",
    "ExportIOError",
    "ExportResult",
    "ExportState",
    "ExportTarget",
    "Exporter",
    "FieldAttrs",
    "FieldDescriptor",
    "GenericParameter",
    "ImportExtension",
    "OptionalMode",
    "RenameRule",
    "Representation",
    "RepresentationError",
    "Shape",
    "TSBindError",
    "TypeDescriptor",
    "TypeRenderer",
    "VariantAttrs",
    "VariantDescriptor",
    "declaration_of",
    "dependencies_of",
    "export",
    "export_all",
    "export_to_string",
    "field",
    "inline_of",
    "select_representation",
    "variant",
]
