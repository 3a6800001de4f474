"""Generic parameter formatting and substitution.

Generic parameters never become dependencies.  When a generic declaration is
used with concrete arguments (for inlining or flattening), every occurrence of
a parameter inside its field types is replaced with the positional argument
via :func:`substitute` before rendering.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import TYPE_CHECKING

from .types import (
    FixedArray,
    GenericParam,
    Map,
    Named,
    Opaque,
    Option,
    Pointer,
    Range,
    Result,
    Tuple,
    TypeRef,
    Vec,
)

if TYPE_CHECKING:
    from .models import GenericParameter, TypeDescriptor


def format_generic_params(
    params: list["GenericParameter"],
    render: Callable[[TypeRef], str],
) -> str:
    """Render a declaration-site parameter list such as ``<T, U = number>``.

    Args:
        params: The declaration's generic parameters.
        render: Renders a default type as a named reference.

    Returns:
        An empty string when there are no parameters.
    """
    if not params:
        return ""
    parts = []
    for param in params:
        if param.default is None:
            parts.append(param.name)
        else:
            parts.append(f"{param.name} = {render(param.default)}")
    return f"<{', '.join(parts)}>"


def bindings_for(descriptor: "TypeDescriptor", args: tuple[TypeRef, ...]) -> dict[str, TypeRef]:
    """Map a descriptor's parameter names to concrete arguments."""
    return {param.name: arg for param, arg in zip(descriptor.generics, args)}


def substitute(ty: TypeRef, bindings: Mapping[str, TypeRef]) -> TypeRef:
    """Replace generic parameter occurrences in *ty* with their bound arguments."""
    if not bindings:
        return ty
    if isinstance(ty, GenericParam):
        return bindings.get(ty.name, ty)
    if isinstance(ty, Named):
        if not ty.args:
            return ty
        return Named(ty.descriptor, tuple(substitute(arg, bindings) for arg in ty.args))
    if isinstance(ty, Opaque):
        return replace(ty, args=tuple(substitute(arg, bindings) for arg in ty.args))
    if isinstance(ty, (Option, Vec, FixedArray, Range, Pointer)):
        return replace(ty, inner=substitute(ty.inner, bindings))
    if isinstance(ty, Map):
        return Map(substitute(ty.key, bindings), substitute(ty.value, bindings))
    if isinstance(ty, Result):
        return Result(substitute(ty.ok, bindings), substitute(ty.err, bindings))
    if isinstance(ty, Tuple):
        return Tuple(tuple(substitute(item, bindings) for item in ty.items))
    return ty


def is_own_generic(ty: TypeRef, generic_names: list[str]) -> bool:
    """``True`` if *ty* is a bare occurrence of one of the enclosing type's parameters."""
    return isinstance(ty, GenericParam) and ty.name in generic_names
