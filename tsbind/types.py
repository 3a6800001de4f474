"""Type references used by field and variant descriptors.

A field's declared type is one of a small, closed set of immutable reference
objects.  They carry no rendering logic: the :mod:`tsbind.renderer` module
dispatches over the concrete class to produce text, and
:mod:`tsbind.deps` walks :meth:`TypeRef.children` to collect dependencies.

Only :class:`Named` points at a declared :class:`~tsbind.models.TypeDescriptor`;
everything else is either a primitive, a generic parameter, an opaque external
name, or a *transparent* wrapper that is always inlined at its use site.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import ConfigurationError

if TYPE_CHECKING:
    from .models import TypeDescriptor


class TypeRef:
    """Base class for every type reference."""

    def identity(self) -> str:
        """Stable token identifying this (monomorphized) type."""
        raise NotImplementedError

    def children(self) -> tuple["TypeRef", ...]:
        """Element types that appear inside this reference's text."""
        return ()


# ---------------------------------------------------------------------------
# Leaves
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Primitive(TypeRef):
    """A built-in TypeScript type such as ``number`` or ``string``."""

    ts: str

    def identity(self) -> str:
        return f"primitive:{self.ts}"


@dataclass(frozen=True)
class GenericParam(TypeRef):
    """An occurrence of a generic parameter of the enclosing declaration."""

    name: str

    def identity(self) -> str:
        return f"generic:{self.name}"


@dataclass(frozen=True)
class Opaque(TypeRef):
    """A named TypeScript type that tsbind never declares (``Date``, ``Blob``...).

    Opaque references are not exportable: they are never imported, but their
    type arguments are still walked for dependencies.
    """

    name: str
    args: tuple[TypeRef, ...] = ()

    def identity(self) -> str:
        return _with_args(f"opaque:{self.name}", self.args)

    def children(self) -> tuple[TypeRef, ...]:
        return self.args


@dataclass(frozen=True, eq=False)
class Named(TypeRef):
    """A reference to a declared type, optionally with concrete type arguments.

    Missing trailing arguments are filled from the parameters' defaults.
    """

    descriptor: "TypeDescriptor"
    args: tuple[TypeRef, ...] = ()

    def __post_init__(self) -> None:
        params = self.descriptor.generics
        if len(self.args) > len(params):
            raise ConfigurationError(
                f"{self.descriptor.name} takes {len(params)} type argument(s), "
                f"got {len(self.args)}"
            )
        filled = list(self.args)
        for param in params[len(self.args):]:
            if param.default is None:
                raise ConfigurationError(
                    f"{self.descriptor.name}: missing type argument for '{param.name}'"
                )
            filled.append(param.default)
        object.__setattr__(self, "args", tuple(filled))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Named):
            return NotImplemented
        return self.identity() == other.identity()

    def __hash__(self) -> int:
        return hash(self.identity())

    def identity(self) -> str:
        return _with_args(self.descriptor.type_id, self.args)

    def children(self) -> tuple[TypeRef, ...]:
        return self.args


# ---------------------------------------------------------------------------
# Transparent wrappers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Option(TypeRef):
    """An optional value: ``T | null``."""

    inner: TypeRef

    def identity(self) -> str:
        return _with_args("option", (self.inner,))

    def children(self) -> tuple[TypeRef, ...]:
        return (self.inner,)


@dataclass(frozen=True)
class Vec(TypeRef):
    """A growable sequence or set: ``Array<T>``."""

    inner: TypeRef

    def identity(self) -> str:
        return _with_args("vec", (self.inner,))

    def children(self) -> tuple[TypeRef, ...]:
        return (self.inner,)


@dataclass(frozen=True)
class FixedArray(TypeRef):
    """A fixed-length array, rendered as a tuple up to the configured limit."""

    inner: TypeRef
    length: int

    def __post_init__(self) -> None:
        if self.length < 0:
            raise ConfigurationError(f"array length must be >= 0, got {self.length}")

    def identity(self) -> str:
        return _with_args(f"array{self.length}", (self.inner,))

    def children(self) -> tuple[TypeRef, ...]:
        return (self.inner,)


@dataclass(frozen=True)
class Map(TypeRef):
    """A key/value mapping: ``Record<K, V>``."""

    key: TypeRef
    value: TypeRef

    def identity(self) -> str:
        return _with_args("map", (self.key, self.value))

    def children(self) -> tuple[TypeRef, ...]:
        return (self.key, self.value)


@dataclass(frozen=True)
class Tuple(TypeRef):
    """An anonymous tuple: ``[A, B, C]``."""

    items: tuple[TypeRef, ...]

    def identity(self) -> str:
        return _with_args("tuple", self.items)

    def children(self) -> tuple[TypeRef, ...]:
        return self.items


@dataclass(frozen=True)
class Result(TypeRef):
    """A success-or-failure value: ``{ Ok : T } | { Err : E }``."""

    ok: TypeRef
    err: TypeRef

    def identity(self) -> str:
        return _with_args("result", (self.ok, self.err))

    def children(self) -> tuple[TypeRef, ...]:
        return (self.ok, self.err)


@dataclass(frozen=True)
class Range(TypeRef):
    """A half-open or inclusive range: ``{ start: T, end: T, }``."""

    inner: TypeRef

    def identity(self) -> str:
        return _with_args("range", (self.inner,))

    def children(self) -> tuple[TypeRef, ...]:
        return (self.inner,)


@dataclass(frozen=True)
class Pointer(TypeRef):
    """An owning or shared pointer (box, rc, arc, cell...), rendered as its pointee."""

    inner: TypeRef

    def identity(self) -> str:
        return _with_args("pointer", (self.inner,))

    def children(self) -> tuple[TypeRef, ...]:
        return (self.inner,)


# ---------------------------------------------------------------------------
# Prelude
# ---------------------------------------------------------------------------

NUMBER = Primitive("number")
BIGINT = Primitive("bigint")
STRING = Primitive("string")
BOOLEAN = Primitive("boolean")
NULL = Primitive("null")

PRIMITIVES: dict[str, Primitive] = {
    **{name: NUMBER for name in (
        "u8", "i8", "u16", "i16", "u32", "i32", "usize", "isize", "f32", "f64",
        "NonZeroU8", "NonZeroI8", "NonZeroU16", "NonZeroI16", "NonZeroU32",
        "NonZeroI32", "NonZeroUsize", "NonZeroIsize",
    )},
    **{name: BIGINT for name in (
        "u64", "i64", "u128", "i128",
        "NonZeroU64", "NonZeroI64", "NonZeroU128", "NonZeroI128",
    )},
    **{name: STRING for name in (
        "char", "str", "String", "Path", "PathBuf",
        "IpAddr", "Ipv4Addr", "Ipv6Addr", "SocketAddr", "SocketAddrV4", "SocketAddrV6",
        "Uuid", "Url", "BigDecimal", "Version",
    )},
    "bool": BOOLEAN,
    "()": NULL,
}


def primitive(source_name: str) -> Primitive:
    """Look up the TypeScript primitive for a source-language type name.

    Raises:
        ConfigurationError: If the name has no primitive mapping.
    """
    try:
        return PRIMITIVES[source_name]
    except KeyError:
        raise ConfigurationError(f"No TypeScript primitive is known for '{source_name}'") from None


def _with_args(head: str, args: tuple[TypeRef, ...]) -> str:
    if not args:
        return head
    return f"{head}<{','.join(arg.identity() for arg in args)}>"
