"""Exception hierarchy for tsbind.

Every error raised by the library derives from :class:`TSBindError` so callers
can catch the whole family at once.  Configuration and representation errors
are raised eagerly while descriptors are built or rendered; I/O errors only
ever come out of the export phase.
"""

from __future__ import annotations

from pathlib import Path


class TSBindError(Exception):
    """Base class for all tsbind errors."""


class ConfigurationError(TSBindError):
    """Raised when container, field or variant attributes are combined illegally."""


class RepresentationError(TSBindError):
    """Raised when a shape cannot be rendered under the requested representation.

    Examples are internally tagging a tuple variant or flattening a field whose
    type is not record-shaped.
    """


class CollisionError(TSBindError):
    """Raised when two distinct types resolve to the same declared name."""

    def __init__(self, name: str, first_path: str, second_path: str) -> None:
        self.name = name
        self.first_path = first_path
        self.second_path = second_path
        if first_path == second_path:
            detail = f"both would be written to {first_path}"
        else:
            detail = f"one exports to {first_path}, the other to {second_path}"
        super().__init__(f"Two distinct types are named '{name}': {detail}")


class ExportIOError(TSBindError):
    """Raised when an output directory or file cannot be created or written."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{message}: {self.path}")
