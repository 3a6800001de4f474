"""Shared pytest fixtures for the tsbind test suite.

Provides reusable fixtures for:
- Export configurations rooted in a temporary directory
- Exporters built from those configurations
- A small descriptor graph (structs, a generic wrapper, an enum) that
  references itself across files
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tsbind.attrs import ContainerAttrs
from tsbind.config import ExportConfig
from tsbind.export import Exporter
from tsbind.locks import name_registry
from tsbind.models import GenericParameter, Shape, TypeDescriptor, field, variant
from tsbind.renderer import TypeRenderer
from tsbind.types import NUMBER, STRING, GenericParam, Option, Vec


# ---------------------------------------------------------------------------
# Configuration & exporters
# ---------------------------------------------------------------------------

@pytest.fixture
def bindings_dir(tmp_path: Path) -> Path:
    """Directory that receives generated ``.ts`` files (auto-cleanup)."""
    return tmp_path / "bindings"


@pytest.fixture
def export_config(bindings_dir: Path) -> ExportConfig:
    """ExportConfig writing into the temporary bindings directory."""
    return ExportConfig(export_dir=bindings_dir, lock_timeout=2.0)


@pytest.fixture
def exporter(export_config: ExportConfig) -> Exporter:
    return Exporter(export_config)


@pytest.fixture
def renderer() -> TypeRenderer:
    return TypeRenderer(ExportConfig())


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep TSBIND_* settings from the developer's shell out of the tests."""
    for name in (
        "TSBIND_EXPORT_DIR",
        "TSBIND_IMPORT_EXTENSION",
        "TSBIND_ARRAY_TUPLE_LIMIT",
        "TSBIND_LOCK_TIMEOUT",
        "TSBIND_VERBOSE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _fresh_name_registry() -> None:
    """Each test starts with no declared names claimed."""
    name_registry.clear()


# ---------------------------------------------------------------------------
# Sample descriptor graph
# ---------------------------------------------------------------------------

@pytest.fixture
def address() -> TypeDescriptor:
    """``Address { street: String, city: String }``"""
    return TypeDescriptor.struct(
        "Address",
        [field("street", STRING), field("city", STRING)],
    )


@pytest.fixture
def user(address: TypeDescriptor) -> TypeDescriptor:
    """``User { id: i32, name: String, address: Option<Address> }`` with docs."""
    return TypeDescriptor.struct(
        "User",
        [
            field("id", NUMBER),
            field("name", STRING),
            field("address", Option(address.ref())),
        ],
        docs="A registered user.",
    )


@pytest.fixture
def page() -> TypeDescriptor:
    """``Page<T> { items: Vec<T>, total: i32 }``"""
    return TypeDescriptor.struct(
        "Page",
        [field("items", Vec(GenericParam("T"))), field("total", NUMBER)],
        generics=[GenericParameter(name="T")],
    )


@pytest.fixture
def event(user: TypeDescriptor) -> TypeDescriptor:
    """Adjacently tagged ``Event`` enum, exported into a sub-directory."""
    return TypeDescriptor.enum(
        "Event",
        [
            variant("Created", Shape.NEWTYPE, [field(None, user)]),
            variant("Deleted", Shape.STRUCT, [field("id", NUMBER)]),
            variant("Ping"),
        ],
        attrs=ContainerAttrs(tag="type", content="data", export_to="events/"),
    )
