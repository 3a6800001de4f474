"""Attribute model for containers, fields and variants.

The attribute records are plain Pydantic v2 models; the ``check_*`` functions
enforce the combination rules that depend on the shape the attributes are
attached to.  They are called from the descriptor validators in
:mod:`tsbind.models`, so an illegal combination is reported as soon as a
descriptor is built.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigurationError
from .types import Option, TypeRef

if TYPE_CHECKING:
    from .models import FieldDescriptor, Shape


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class RenameRule(str, Enum):
    """Case conversion applied by ``rename_all`` / ``rename_all_fields``."""
    LOWERCASE = "lowercase"
    UPPERCASE = "UPPERCASE"
    CAMEL_CASE = "camelCase"
    SNAKE_CASE = "snake_case"
    PASCAL_CASE = "PascalCase"
    SCREAMING_SNAKE_CASE = "SCREAMING_SNAKE_CASE"
    KEBAB_CASE = "kebab-case"
    SCREAMING_KEBAB_CASE = "SCREAMING-KEBAB-CASE"

    @classmethod
    def parse(cls, value: Any) -> Optional["RenameRule"]:
        """Convert user input to a rule, raising ``ConfigurationError`` on junk."""
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(rule.value for rule in cls)
            raise ConfigurationError(
                f"Unknown rename rule {value!r}; expected one of: {valid}"
            ) from None


class OptionalMode(str, Enum):
    """How an option-typed field is rendered.

    NONE renders ``a: T | null``; OPTIONAL renders ``a?: T``; NULLABLE renders
    ``a?: T | null``.
    """
    NONE = "none"
    OPTIONAL = "optional"
    NULLABLE = "nullable"


# ---------------------------------------------------------------------------
# Attribute records
# ---------------------------------------------------------------------------

class ContainerAttrs(BaseModel):
    """Options attached to a struct or enum declaration."""
    export: bool = Field(default=False, description="Export this type when exporting a batch")
    export_to: Optional[str] = Field(
        default=None,
        description="Output path override; a trailing '/' names a directory",
    )
    rename: Optional[str] = Field(default=None, description="TypeScript name of the type")
    rename_all: Optional[RenameRule] = Field(
        default=None, description="Case rule for struct fields or enum variant names"
    )
    rename_all_fields: Optional[RenameRule] = Field(
        default=None, description="Case rule for fields inside struct variants"
    )
    tag: Optional[str] = Field(default=None, description="Discriminant property name")
    content: Optional[str] = Field(default=None, description="Payload property name")
    untagged: bool = Field(default=False, description="Emit no discriminant at all")

    @field_validator("rename_all", "rename_all_fields", mode="before")
    @classmethod
    def _parse_rule(cls, value: Any) -> Optional[RenameRule]:
        return RenameRule.parse(value)


class FieldAttrs(BaseModel):
    """Options attached to a single struct, tuple or variant field."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    rename: Optional[str] = Field(default=None, description="TypeScript property name")
    type_override: Optional[str] = Field(
        default=None, description="Raw TypeScript text used instead of the field type"
    )
    type_as: Optional[TypeRef] = Field(
        default=None, description="Substitute type rendered instead of the declared one"
    )
    inline: bool = Field(default=False, description="Inline the field type's definition")
    skip: bool = Field(default=False, description="Leave the field out entirely")
    optional: OptionalMode = Field(default=OptionalMode.NONE)
    flatten: bool = Field(default=False, description="Splice the field type's properties in")
    docs: str = Field(default="", description="Documentation text for the field")


class VariantAttrs(BaseModel):
    """Options attached to an enum variant."""
    rename: Optional[str] = Field(default=None, description="Variant name used as the tag")
    rename_all: Optional[RenameRule] = Field(
        default=None, description="Case rule for this variant's own fields"
    )
    skip: bool = Field(default=False, description="Leave the variant out of the union")

    @field_validator("rename_all", mode="before")
    @classmethod
    def _parse_rule(cls, value: Any) -> Optional[RenameRule]:
        return RenameRule.parse(value)


# ---------------------------------------------------------------------------
# Combination rules
# ---------------------------------------------------------------------------

def check_field(attrs: FieldAttrs, declared: TypeRef, owner: str) -> None:
    """Validate field attributes that do not depend on the enclosing shape."""
    if attrs.type_override is not None:
        if attrs.inline:
            raise ConfigurationError(f"{owner}: `type` is not compatible with `inline`")
        if attrs.flatten:
            raise ConfigurationError(f"{owner}: `type` is not compatible with `flatten`")
        if attrs.type_as is not None:
            raise ConfigurationError(f"{owner}: `type` is not compatible with `as`")
    if attrs.optional is not OptionalMode.NONE:
        if attrs.flatten:
            raise ConfigurationError(f"{owner}: `optional` is not compatible with `flatten`")
        effective = attrs.type_as if attrs.type_as is not None else declared
        if attrs.type_override is None and not isinstance(effective, Option):
            raise ConfigurationError(
                f"{owner}: `optional` can only be used on an optional field"
            )


def check_unnamed_field(field: "FieldDescriptor", owner: str, newtype: bool) -> None:
    """Validate the element of a newtype or tuple shape."""
    kind = "newtype" if newtype else "tuple"
    attrs = field.attrs
    if attrs.rename is not None:
        raise ConfigurationError(f"{owner}: `rename` is not applicable to {kind} fields")
    if attrs.skip and newtype:
        # A skipped newtype element degrades the type to unit; nothing else applies.
        return
    if attrs.optional is not OptionalMode.NONE:
        raise ConfigurationError(f"{owner}: `optional` is not applicable to {kind} fields")
    if attrs.flatten:
        raise ConfigurationError(f"{owner}: `flatten` is not applicable to {kind} fields")


def check_container(attrs: ContainerAttrs, shape: "Shape", owner: str) -> None:
    """Validate container attributes against the declaration's shape."""
    from .models import Shape

    if shape is Shape.ENUM:
        if attrs.content is not None and attrs.tag is None and not attrs.untagged:
            raise ConfigurationError(f"{owner}: `content` requires `tag`")
        return

    kind = {
        Shape.UNIT: "unit structs",
        Shape.NEWTYPE: "newtype structs",
        Shape.TUPLE: "tuple structs",
        Shape.STRUCT: "structs",
    }[shape]
    if attrs.rename_all_fields is not None:
        raise ConfigurationError(f"{owner}: `rename_all_fields` is only applicable to enums")
    if attrs.content is not None:
        raise ConfigurationError(f"{owner}: `content` is not applicable to {kind}")
    if attrs.untagged:
        raise ConfigurationError(f"{owner}: `untagged` is not applicable to {kind}")
    if shape is not Shape.STRUCT:
        if attrs.rename_all is not None:
            raise ConfigurationError(f"{owner}: `rename_all` is not applicable to {kind}")
        if attrs.tag is not None:
            raise ConfigurationError(f"{owner}: `tag` is not applicable to {kind}")
