"""Case conversion for ``rename_all`` rules and TypeScript property names."""

from __future__ import annotations

import json
import re

from .attrs import RenameRule

_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9]|$|[^A-Za-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+")
_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def split_words(name: str) -> list[str]:
    """Split ``snake_case``, ``kebab-case`` or ``PascalCase`` into lowercase words.

    Examples::

        split_words("user_id")    -> ["user", "id"]
        split_words("HTTPServer") -> ["http", "server"]
        split_words("first-name") -> ["first", "name"]
    """
    return [word.lower() for word in _WORD_PATTERN.findall(name)]


def apply_rule(name: str, rule: RenameRule | None) -> str:
    """Rename a field or variant according to *rule* (``None`` leaves it alone)."""
    if rule is None:
        return name
    # r#ident raw identifiers keep their bare name.
    name = name.removeprefix("r#")
    if rule is RenameRule.LOWERCASE:
        return name.lower()
    if rule is RenameRule.UPPERCASE:
        return name.upper()

    words = split_words(name)
    if not words:
        return name
    if rule is RenameRule.SNAKE_CASE:
        return "_".join(words)
    if rule is RenameRule.SCREAMING_SNAKE_CASE:
        return "_".join(words).upper()
    if rule is RenameRule.KEBAB_CASE:
        return "-".join(words)
    if rule is RenameRule.SCREAMING_KEBAB_CASE:
        return "-".join(words).upper()
    pascal = "".join(word.capitalize() for word in words)
    if rule is RenameRule.PASCAL_CASE:
        return pascal
    return pascal[0].lower() + pascal[1:]


def property_name(name: str) -> str:
    """Return *name* as a TypeScript property key, quoting it when necessary."""
    name = name.removeprefix("r#")
    if _IDENTIFIER_PATTERN.match(name):
        return name
    return json.dumps(name)


def string_literal(value: str) -> str:
    """Return *value* as a double-quoted TypeScript string literal type."""
    return json.dumps(value)
