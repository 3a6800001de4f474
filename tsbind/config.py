"""tsbind export configuration.

Typed configuration for the export layer.  Settings use a Pydantic v2 model so
they are validated at construction time and can be built from environment
variables without boiler-plate.  A config instance is passed explicitly into
every export call; there is no process-wide mutable default.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .models import TypeDescriptor


class ImportExtension(str, Enum):
    """Suffix appended to the module path in generated ``import`` lines."""
    NONE = "none"
    JS = "js"


class ExportConfig(BaseModel):
    """Settings consumed by the renderer and the export resolver."""

    export_dir: Path = Field(
        default=Path("bindings"),
        description="Base directory for types without an explicit export path",
    )
    import_extension: ImportExtension = Field(
        default=ImportExtension.NONE,
        description="Whether import paths end in '.js' (ES modules) or carry no suffix",
    )
    array_tuple_limit: int = Field(
        default=64,
        ge=0,
        description="Fixed-size arrays longer than this render as Array<T> instead of a tuple",
    )
    lock_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to keep retrying the per-file write lock before giving up",
    )
    lock_poll_interval: float = Field(
        default=0.01,
        gt=0,
        description="Initial backoff between lock attempts; doubled after every miss",
    )
    verbose: bool = Field(default=False, description="Print a line for every written file")

    @property
    def import_suffix(self) -> str:
        """Text appended to every relative import path."""
        return ".js" if self.import_extension is ImportExtension.JS else ""

    @classmethod
    def from_env(cls) -> "ExportConfig":
        """Build an ``ExportConfig`` from environment variables.

        Recognised variables (all optional):
            TSBIND_EXPORT_DIR, TSBIND_IMPORT_EXTENSION,
            TSBIND_ARRAY_TUPLE_LIMIT, TSBIND_LOCK_TIMEOUT, TSBIND_VERBOSE.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("TSBIND_EXPORT_DIR"):
            kwargs["export_dir"] = Path(os.environ["TSBIND_EXPORT_DIR"])
        if os.environ.get("TSBIND_IMPORT_EXTENSION"):
            kwargs["import_extension"] = os.environ["TSBIND_IMPORT_EXTENSION"].lower()
        if os.environ.get("TSBIND_ARRAY_TUPLE_LIMIT"):
            kwargs["array_tuple_limit"] = int(os.environ["TSBIND_ARRAY_TUPLE_LIMIT"])
        if os.environ.get("TSBIND_LOCK_TIMEOUT"):
            kwargs["lock_timeout"] = float(os.environ["TSBIND_LOCK_TIMEOUT"])
        if os.environ.get("TSBIND_VERBOSE"):
            kwargs["verbose"] = os.environ["TSBIND_VERBOSE"].lower() in ("1", "true", "yes")
        return cls(**kwargs)

    def output_path(self, descriptor: "TypeDescriptor") -> Path:
        """Where *descriptor* is written unless an explicit path is given.

        A per-type ``export_to`` wins over ``export_dir``.  An ``export_to``
        ending in a path separator names a directory that receives
        ``<Name>.ts``.
        """
        file_name = f"{descriptor.ts_name}.ts"
        export_to = descriptor.attrs.export_to
        if export_to is None:
            return self.export_dir / file_name
        if export_to.endswith(("/", "\\")):
            return Path(export_to) / file_name
        return Path(export_to)
