"""Pydantic v2 descriptors for declarable types.

A :class:`TypeDescriptor` is the already-parsed description of one struct or
enum.  Descriptors are built once per declared type and are treated as
immutable while rendering; construction runs the attribute rules from
:mod:`tsbind.attrs`, so an invalid combination never reaches the renderer.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .attrs import (
    ContainerAttrs,
    FieldAttrs,
    VariantAttrs,
    check_container,
    check_field,
    check_unnamed_field,
)
from .errors import ConfigurationError
from .types import Named, TypeRef


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Shape(str, Enum):
    """Structural shape of a declaration or a variant payload."""
    UNIT = "unit"
    NEWTYPE = "newtype"
    TUPLE = "tuple"
    STRUCT = "struct"
    ENUM = "enum"


# ---------------------------------------------------------------------------
# Fields, variants, generics
# ---------------------------------------------------------------------------

class GenericParameter(BaseModel):
    """A generic parameter of a declaration, with an optional default type."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., description="Parameter name, e.g. 'T'")
    default: Optional[TypeRef] = Field(default=None, description="Default type argument")


class FieldDescriptor(BaseModel):
    """A struct, tuple or variant field."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: Optional[str] = Field(default=None, description="Field name; None for tuple elements")
    type: TypeRef = Field(..., description="Declared type of the field")
    attrs: FieldAttrs = Field(default_factory=FieldAttrs)

    @field_validator("type", mode="before")
    @classmethod
    def _wrap_descriptor(cls, value: Any) -> Any:
        if isinstance(value, TypeDescriptor):
            return Named(value)
        return value

    @model_validator(mode="after")
    def _check_attrs(self) -> "FieldDescriptor":
        check_field(self.attrs, self.type, f"field '{self.name or '<unnamed>'}'")
        return self

    @property
    def effective_type(self) -> TypeRef:
        """The declared type, or the ``as`` substitute when one is configured."""
        return self.attrs.type_as if self.attrs.type_as is not None else self.type


class VariantDescriptor(BaseModel):
    """One variant of an enum."""
    name: str = Field(..., description="Variant name as declared")
    shape: Shape = Field(default=Shape.UNIT, description="Payload shape")
    fields: list[FieldDescriptor] = Field(default_factory=list)
    attrs: VariantAttrs = Field(default_factory=VariantAttrs)

    @model_validator(mode="after")
    def _check_shape(self) -> "VariantDescriptor":
        owner = f"variant '{self.name}'"
        if self.shape is Shape.ENUM:
            raise ConfigurationError(f"{owner}: a variant payload cannot be an enum")
        _check_fields(self.shape, self.fields, owner)
        return self


# ---------------------------------------------------------------------------
# Type descriptor
# ---------------------------------------------------------------------------

class TypeDescriptor(BaseModel):
    """Description of one declarable type."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., description="Declared name")
    shape: Shape = Field(..., description="Exactly one shape per declaration")
    fields: list[FieldDescriptor] = Field(default_factory=list)
    variants: list[VariantDescriptor] = Field(default_factory=list)
    generics: list[GenericParameter] = Field(default_factory=list)
    docs: str = Field(default="", description="Documentation text, one line per line")
    attrs: ContainerAttrs = Field(default_factory=ContainerAttrs)
    type_id: str = Field(
        default_factory=lambda: uuid.uuid4().hex,
        description="Identity token; two descriptors are the same type only if these match",
    )

    @model_validator(mode="after")
    def _check(self) -> "TypeDescriptor":
        owner = f"type '{self.name}'"
        seen: set[str] = set()
        for param in self.generics:
            if param.name in seen:
                raise ConfigurationError(f"{owner}: duplicate generic parameter '{param.name}'")
            seen.add(param.name)

        if self.shape is Shape.ENUM:
            if self.fields:
                raise ConfigurationError(f"{owner}: an enum has variants, not fields")
        else:
            if self.variants:
                raise ConfigurationError(f"{owner}: only enums have variants")
            _check_fields(self.shape, self.fields, owner)
        check_container(self.attrs, self.shape, owner)
        return self

    # -- Convenience constructors ------------------------------------------

    @classmethod
    def unit(cls, name: str, **kwargs: Any) -> "TypeDescriptor":
        return cls(name=name, shape=Shape.UNIT, **kwargs)

    @classmethod
    def newtype(cls, name: str, inner: FieldDescriptor | TypeRef, **kwargs: Any) -> "TypeDescriptor":
        if not isinstance(inner, FieldDescriptor):
            inner = FieldDescriptor(type=inner)
        return cls(name=name, shape=Shape.NEWTYPE, fields=[inner], **kwargs)

    @classmethod
    def tuple_struct(cls, name: str, fields: list[FieldDescriptor], **kwargs: Any) -> "TypeDescriptor":
        return cls(name=name, shape=Shape.TUPLE, fields=fields, **kwargs)

    @classmethod
    def struct(cls, name: str, fields: list[FieldDescriptor], **kwargs: Any) -> "TypeDescriptor":
        return cls(name=name, shape=Shape.STRUCT, fields=fields, **kwargs)

    @classmethod
    def enum(cls, name: str, variants: list[VariantDescriptor], **kwargs: Any) -> "TypeDescriptor":
        return cls(name=name, shape=Shape.ENUM, variants=variants, **kwargs)

    # -- Derived values ----------------------------------------------------

    @property
    def ts_name(self) -> str:
        """Name of the declaration in TypeScript."""
        return self.attrs.rename or self.name

    @property
    def generic_names(self) -> list[str]:
        return [param.name for param in self.generics]

    def ref(self, *args: TypeRef) -> Named:
        """A reference to this type with the given type arguments."""
        return Named(self, tuple(args))


# ---------------------------------------------------------------------------
# Shorthand builders
# ---------------------------------------------------------------------------

def field(name: Optional[str], type: TypeRef | TypeDescriptor, **attrs: Any) -> FieldDescriptor:
    """Build a field; keyword arguments become :class:`FieldAttrs`."""
    return FieldDescriptor(name=name, type=type, attrs=FieldAttrs(**attrs))


def variant(
    name: str,
    shape: Shape = Shape.UNIT,
    fields: Optional[list[FieldDescriptor]] = None,
    **attrs: Any,
) -> VariantDescriptor:
    """Build a variant; keyword arguments become :class:`VariantAttrs`."""
    return VariantDescriptor(name=name, shape=shape, fields=fields or [], attrs=VariantAttrs(**attrs))


def _check_fields(shape: Shape, fields: list[FieldDescriptor], owner: str) -> None:
    if shape is Shape.UNIT:
        if fields:
            raise ConfigurationError(f"{owner}: a unit shape has no fields")
    elif shape is Shape.NEWTYPE:
        if len(fields) != 1 or fields[0].name is not None:
            raise ConfigurationError(f"{owner}: a newtype has exactly one unnamed field")
        check_unnamed_field(fields[0], owner, newtype=True)
    elif shape is Shape.TUPLE:
        for element in fields:
            if element.name is not None:
                raise ConfigurationError(f"{owner}: tuple fields cannot be named")
            check_unnamed_field(element, owner, newtype=False)
    elif shape is Shape.STRUCT:
        names: set[str] = set()
        for member in fields:
            if member.name is None:
                raise ConfigurationError(f"{owner}: every struct field needs a name")
            if member.name in names:
                raise ConfigurationError(f"{owner}: duplicate field '{member.name}'")
            names.add(member.name)
