"""TypeScript rendering for type references and declarations.

:class:`TypeRenderer` turns a :class:`~tsbind.models.TypeDescriptor` into

* its *declaration* (``type Name<T> = body;``),
* its *inline* text (the body alone, with generic arguments substituted when
  the type is used with concrete arguments), and
* the dependencies its declaration mentions, collected while the text is
  produced so the two can never disagree.

Enums are rendered according to the representation selected by
:func:`select_representation` from the container's ``tag`` / ``content`` /
``untagged`` attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .attrs import ContainerAttrs, OptionalMode, RenameRule
from .casing import apply_rule, property_name, string_literal
from .config import ExportConfig
from .deps import Dependency, DependencyCollector
from .errors import RepresentationError
from .generics import bindings_for, format_generic_params, is_own_generic, substitute
from .models import FieldDescriptor, Shape, TypeDescriptor, VariantDescriptor
from .types import (
    FixedArray,
    GenericParam,
    Map,
    Named,
    Opaque,
    Option,
    Pointer,
    Primitive,
    Range,
    Result,
    Tuple,
    TypeRef,
    Vec,
)


# ---------------------------------------------------------------------------
# Enum representation
# ---------------------------------------------------------------------------

class Representation(str, Enum):
    """How an enum encodes which variant a value holds."""
    EXTERNAL = "external"
    INTERNAL = "internal"
    ADJACENT = "adjacent"
    UNTAGGED = "untagged"


def select_representation(attrs: ContainerAttrs) -> Representation:
    """Pick the enum representation from the tagging attributes."""
    if attrs.untagged:
        return Representation.UNTAGGED
    if attrs.tag is None:
        return Representation.EXTERNAL
    if attrs.content is None:
        return Representation.INTERNAL
    return Representation.ADJACENT


# ---------------------------------------------------------------------------
# Render pass state
# ---------------------------------------------------------------------------

@dataclass
class _Pass:
    """Per-call state: the dependency sink and the chain of types being inlined."""

    deps: Optional[DependencyCollector]
    inlining: list[str] = field(default_factory=list)


@dataclass
class _Members:
    """Properties of an object type plus intersected parts from flattening."""

    props: list[str] = field(default_factory=list)
    intersections: list[str] = field(default_factory=list)

    def render(self) -> str:
        parts = []
        if self.props:
            parts.append("{ " + ", ".join(self.props) + " }")
        parts.extend(self.intersections)
        if not parts:
            return "Record<string, never>"
        return " & ".join(parts)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class TypeRenderer:
    """Renders descriptors and type references as TypeScript text."""

    def __init__(self, config: ExportConfig | None = None) -> None:
        self.config = config or ExportConfig()

    # -- Public API --------------------------------------------------------

    def declaration_of(self, descriptor: TypeDescriptor) -> str:
        """``type Name<Params> = Body;`` for *descriptor*."""
        body = self._body(descriptor, (), _Pass(deps=None))
        generics = format_generic_params(descriptor.generics, self.name_of)
        return f"type {descriptor.ts_name}{generics} = {body};"

    def inline_of(self, descriptor: TypeDescriptor, args: tuple[TypeRef, ...] = ()) -> str:
        """The body of *descriptor*, with *args* bound to its generic parameters."""
        if args:
            return self.inline_type(Named(descriptor, args))
        return self._body(descriptor, (), _Pass(deps=None))

    def dependencies_of(self, descriptor: TypeDescriptor) -> list[Dependency]:
        """Every exportable type mentioned by the declaration of *descriptor*."""
        collector = DependencyCollector(self.config)
        self._body(descriptor, (), _Pass(deps=collector))
        for param in descriptor.generics:
            if param.default is not None:
                collector.push(param.default)
        return collector.to_list()

    def name_of(self, ty: TypeRef) -> str:
        """Text of *ty* used as a named reference (declared types by name)."""
        return self._type_text(ty, inline=False, ctx=_Pass(deps=None))

    def inline_type(self, ty: TypeRef) -> str:
        """Text of *ty* with every declared type fully inlined."""
        return self._type_text(ty, inline=True, ctx=_Pass(deps=None))

    def format_docs(self, docs: str) -> str:
        """Format documentation text as a JSDoc block (empty string for no docs)."""
        if not docs.strip():
            return ""
        lines = []
        for line in docs.strip("\n").splitlines():
            line = line.rstrip()
            lines.append(f" * {line}" if line else " *")
        return "/**\n" + "\n".join(lines) + "\n */"

    # -- Type references ---------------------------------------------------

    def _reference(self, ty: TypeRef, own_generics: list[str], ctx: _Pass) -> str:
        """A field type used by name; pushes it as a dependency."""
        if is_own_generic(ty, own_generics):
            return ty.name
        if ctx.deps is not None:
            ctx.deps.push(ty)
        return self._type_text(ty, inline=False, ctx=ctx)

    def _inlined(self, ty: TypeRef, ctx: _Pass) -> str:
        """A field type spliced in place; its own dependencies are collected."""
        return self._type_text(ty, inline=True, ctx=ctx)

    def _type_text(self, ty: TypeRef, inline: bool, ctx: _Pass) -> str:
        def sub(child: TypeRef) -> str:
            return self._type_text(child, inline, ctx)

        if isinstance(ty, Primitive):
            return ty.ts
        if isinstance(ty, GenericParam):
            return ty.name
        if isinstance(ty, Named):
            if inline:
                return self._body(ty.descriptor, ty.args, ctx)
            return _with_args(ty.descriptor.ts_name, [sub(arg) for arg in ty.args])
        if isinstance(ty, Opaque):
            return _with_args(ty.name, [sub(arg) for arg in ty.args])
        if isinstance(ty, Option):
            return f"{sub(ty.inner)} | null"
        if isinstance(ty, Vec):
            return f"Array<{sub(ty.inner)}>"
        if isinstance(ty, FixedArray):
            if ty.length > self.config.array_tuple_limit:
                return f"Array<{sub(ty.inner)}>"
            element = sub(ty.inner)
            return "[" + ", ".join([element] * ty.length) + "]"
        if isinstance(ty, Map):
            return f"Record<{sub(ty.key)}, {sub(ty.value)}>"
        if isinstance(ty, Tuple):
            return "[" + ", ".join(sub(item) for item in ty.items) + "]"
        if isinstance(ty, Result):
            return f"{{ Ok : {sub(ty.ok)} }} | {{ Err : {sub(ty.err)} }}"
        if isinstance(ty, Range):
            inner = sub(ty.inner)
            return f"{{ start: {inner}, end: {inner}, }}"
        if isinstance(ty, Pointer):
            return sub(ty.inner)
        raise RepresentationError(f"Cannot render type reference {ty!r}")

    # -- Declarations ------------------------------------------------------

    def _body(self, descriptor: TypeDescriptor, args: tuple[TypeRef, ...], ctx: _Pass) -> str:
        key = Named(descriptor, args).identity() if args else descriptor.type_id
        if key in ctx.inlining:
            raise RepresentationError(
                f"{descriptor.name} is recursive and cannot be inlined into itself"
            )
        ctx.inlining.append(key)
        try:
            bindings = bindings_for(descriptor, args) if args else {}
            own = [] if bindings else descriptor.generic_names
            return self._shape_body(descriptor, bindings, own, ctx)
        finally:
            ctx.inlining.pop()

    def _shape_body(
        self,
        descriptor: TypeDescriptor,
        bindings: dict[str, TypeRef],
        own: list[str],
        ctx: _Pass,
    ) -> str:
        shape = descriptor.shape
        if shape is Shape.UNIT:
            return "null"
        if shape is Shape.NEWTYPE:
            inner = descriptor.fields[0]
            if inner.attrs.skip:
                return "null"
            return self._element(inner, bindings, own, ctx)
        if shape is Shape.TUPLE:
            return self._tuple(descriptor.fields, bindings, own, ctx)
        if shape is Shape.STRUCT:
            members = _Members()
            if descriptor.attrs.tag is not None:
                members.props.append(
                    f"{property_name(descriptor.attrs.tag)}: {string_literal(descriptor.ts_name)}"
                )
            self._collect_members(
                descriptor.fields, descriptor.attrs.rename_all, bindings, own, ctx, members
            )
            return members.render()
        return self._enum(descriptor, bindings, own, ctx)

    def _element(
        self,
        element: FieldDescriptor,
        bindings: dict[str, TypeRef],
        own: list[str],
        ctx: _Pass,
    ) -> str:
        """Text of an unnamed element (newtype or tuple field)."""
        attrs = element.attrs
        if attrs.type_override is not None:
            return attrs.type_override
        ty = substitute(element.effective_type, bindings)
        if attrs.inline:
            return self._inlined(ty, ctx)
        return self._reference(ty, own, ctx)

    def _tuple(
        self,
        elements: list[FieldDescriptor],
        bindings: dict[str, TypeRef],
        own: list[str],
        ctx: _Pass,
    ) -> str:
        texts = [
            self._element(element, bindings, own, ctx)
            for element in elements
            if not element.attrs.skip
        ]
        return "[" + ", ".join(texts) + "]"

    def _collect_members(
        self,
        fields: list[FieldDescriptor],
        rule: Optional[RenameRule],
        bindings: dict[str, TypeRef],
        own: list[str],
        ctx: _Pass,
        members: _Members,
    ) -> None:
        for member in fields:
            attrs = member.attrs
            if attrs.skip:
                continue
            if attrs.flatten:
                self._flatten(member, bindings, own, ctx, members)
                continue

            name = property_name(attrs.rename or apply_rule(member.name or "", rule))
            ty = substitute(member.effective_type, bindings)
            optional_marker = ""
            if attrs.type_override is not None:
                text = attrs.type_override
                if attrs.optional is not OptionalMode.NONE:
                    optional_marker = "?"
            elif attrs.optional is not OptionalMode.NONE and isinstance(ty, Option):
                optional_marker = "?"
                text = self._inlined(ty.inner, ctx) if attrs.inline else self._reference(ty.inner, own, ctx)
                if attrs.optional is OptionalMode.NULLABLE:
                    text = f"{text} | null"
            elif attrs.inline:
                text = self._inlined(ty, ctx)
            else:
                text = self._reference(ty, own, ctx)

            prop = f"{name}{optional_marker}: {text}"
            if attrs.docs.strip():
                prop = f"/** {' '.join(attrs.docs.split())} */ {prop}"
            members.props.append(prop)

    def _flatten(
        self,
        member: FieldDescriptor,
        bindings: dict[str, TypeRef],
        own: list[str],
        ctx: _Pass,
        members: _Members,
    ) -> None:
        ty = substitute(member.effective_type, bindings)
        while isinstance(ty, Pointer):
            ty = ty.inner
        label = member.name or "<unnamed>"

        if isinstance(ty, Map):
            members.intersections.append(self._reference(ty, own, ctx))
            return
        if not isinstance(ty, Named):
            kind = "a generic parameter" if isinstance(ty, GenericParam) else f"'{self.name_of(ty)}'"
            raise RepresentationError(
                f"field '{label}' cannot be flattened: {kind} is not a record type"
            )

        target = ty.descriptor
        if target.shape is Shape.STRUCT:
            key = ty.identity()
            if key in ctx.inlining:
                raise RepresentationError(f"field '{label}' flattens {target.name} into itself")
            ctx.inlining.append(key)
            try:
                inner_bindings = bindings_for(target, ty.args)
                inner_own = [] if inner_bindings else target.generic_names
                if target.attrs.tag is not None:
                    members.props.append(
                        f"{property_name(target.attrs.tag)}: {string_literal(target.ts_name)}"
                    )
                self._collect_members(
                    target.fields, target.attrs.rename_all, inner_bindings, inner_own, ctx, members
                )
            finally:
                ctx.inlining.pop()
            return
        if target.shape is Shape.ENUM:
            union = self._inlined(ty, ctx)
            members.intersections.append(f"({union})" if " | " in union else union)
            return
        if target.shape is Shape.UNIT:
            return
        raise RepresentationError(
            f"field '{label}' cannot be flattened: {target.name} is a {target.shape.value} type"
        )

    # -- Enums -------------------------------------------------------------

    def _enum(
        self,
        descriptor: TypeDescriptor,
        bindings: dict[str, TypeRef],
        own: list[str],
        ctx: _Pass,
    ) -> str:
        representation = select_representation(descriptor.attrs)
        texts = [
            self._variant(descriptor, item, representation, bindings, own, ctx)
            for item in descriptor.variants
            if not item.attrs.skip
        ]
        if not texts:
            return "never"
        return " | ".join(texts)

    def _variant(
        self,
        descriptor: TypeDescriptor,
        item: VariantDescriptor,
        representation: Representation,
        bindings: dict[str, TypeRef],
        own: list[str],
        ctx: _Pass,
    ) -> str:
        attrs = descriptor.attrs
        name = item.attrs.rename or apply_rule(item.name, attrs.rename_all)
        literal = string_literal(name)
        shape = item.shape
        if shape is Shape.NEWTYPE and item.fields[0].attrs.skip:
            shape = Shape.UNIT

        tag_prop = f"{property_name(attrs.tag)}: {literal}" if attrs.tag is not None else ""

        if shape is Shape.UNIT:
            if representation is Representation.EXTERNAL:
                return literal
            if representation is Representation.UNTAGGED:
                return "null"
            return "{ " + tag_prop + " }"

        if shape is Shape.STRUCT:
            members = _Members()
            if representation is Representation.INTERNAL:
                members.props.append(tag_prop)
            rule = item.attrs.rename_all or attrs.rename_all_fields
            self._collect_members(item.fields, rule, bindings, own, ctx, members)
            if representation is Representation.INTERNAL:
                return members.render()
            payload = members.render()
        elif shape is Shape.NEWTYPE:
            payload = self._element(item.fields[0], bindings, own, ctx)
            if representation is Representation.INTERNAL:
                self._require_record(descriptor, item, bindings)
                return "{ " + tag_prop + " } & " + _parenthesize(payload)
        else:
            if representation is Representation.INTERNAL:
                raise RepresentationError(
                    f"{descriptor.name}::{item.name}: tuple variants cannot be internally tagged"
                )
            payload = self._tuple(item.fields, bindings, own, ctx)

        if representation is Representation.EXTERNAL:
            return "{ " + f"{property_name(name)}: {payload}" + " }"
        if representation is Representation.ADJACENT:
            return "{ " + f"{tag_prop}, {property_name(attrs.content)}: {payload}" + " }"
        return payload

    def _require_record(
        self,
        descriptor: TypeDescriptor,
        item: VariantDescriptor,
        bindings: dict[str, TypeRef],
    ) -> None:
        element = item.fields[0]
        if element.attrs.type_override is not None:
            return
        ty = substitute(element.effective_type, bindings)
        while isinstance(ty, Pointer):
            ty = ty.inner
        if isinstance(ty, Map):
            return
        if isinstance(ty, Named) and ty.descriptor.shape in (Shape.STRUCT, Shape.UNIT, Shape.ENUM):
            return
        raise RepresentationError(
            f"{descriptor.name}::{item.name}: internally tagged newtype variants must wrap a "
            f"record type, got '{self.name_of(ty)}'"
        )


def _with_args(name: str, args: list[str]) -> str:
    if not args:
        return name
    return f"{name}<{', '.join(args)}>"


def _parenthesize(text: str) -> str:
    return f"({text})" if " | " in text else text
