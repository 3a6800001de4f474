"""Dependency collection.

A dependency is a separately declared type whose name appears in another
type's declaration and therefore needs an ``import`` when the two live in
different files.  The collector is fed by the renderer with every type
reference it emits as a *named reference*; it decides what actually becomes a
dependency:

* generic parameters never do;
* transparent wrappers (option, sequences, maps, tuples, pointers...) don't,
  but their element types are walked in their place;
* opaque external names don't, but their type arguments are walked;
* references to declared types do, and their type arguments are walked too
  because they appear in the reference text.

Order is first encounter; identity (not name) is the deduplication key.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .types import GenericParam, Named, TypeRef

if TYPE_CHECKING:
    from .config import ExportConfig
    from .models import TypeDescriptor


@dataclass(frozen=True)
class Dependency:
    """A declared type referenced by another declaration."""

    type_id: str
    ts_name: str
    exported_to: str
    descriptor: "TypeDescriptor" = field(compare=False, repr=False)

    @property
    def path(self) -> Path:
        return Path(self.exported_to)


class DependencyCollector:
    """Ordered, deduplicated, cycle-safe dependency set."""

    def __init__(self, config: "ExportConfig") -> None:
        self.config = config
        self._visited: set[str] = set()
        self._items: list[Dependency] = []

    def push(self, ty: TypeRef) -> None:
        """Record *ty* (used as a named reference) and everything its text mentions."""
        if isinstance(ty, GenericParam):
            return
        identity = ty.identity()
        if identity in self._visited:
            return
        self._visited.add(identity)

        if isinstance(ty, Named):
            descriptor = ty.descriptor
            self._items.append(
                Dependency(
                    type_id=identity,
                    ts_name=descriptor.ts_name,
                    exported_to=self.config.output_path(descriptor).as_posix(),
                    descriptor=descriptor,
                )
            )
        for child in ty.children():
            self.push(child)

    def to_list(self) -> list[Dependency]:
        return list(self._items)

    def __iter__(self) -> Iterator[Dependency]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)
