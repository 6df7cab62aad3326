"""Naming utilities for Java code generation."""

from __future__ import annotations

import re
from functools import lru_cache

JAVA_KEYWORDS: frozenset[str] = frozenset({
    "abstract",
    "assert",
    "boolean",
    "break",
    "byte",
    "case",
    "catch",
    "char",
    "class",
    "const",
    "continue",
    "default",
    "do",
    "double",
    "else",
    "enum",
    "extends",
    "false",
    "final",
    "finally",
    "float",
    "for",
    "goto",
    "if",
    "implements",
    "import",
    "instanceof",
    "int",
    "interface",
    "long",
    "native",
    "new",
    "null",
    "package",
    "private",
    "protected",
    "public",
    "return",
    "short",
    "static",
    "strictfp",
    "super",
    "switch",
    "synchronized",
    "this",
    "throw",
    "throws",
    "transient",
    "true",
    "try",
    "void",
    "volatile",
    "while",
})

# Simple names the generated classes refer to unqualified
RESERVED_CLASS_NAMES: frozenset[str] = frozenset({
    "Arrays",
    "BigDecimal",
    "Boolean",
    "Byte",
    "Character",
    "Class",
    "Date",
    "Double",
    "Float",
    "Integer",
    "Long",
    "Math",
    "Number",
    "Object",
    "Override",
    "Serializable",
    "Short",
    "String",
    "System",
    "Time",
    "Timestamp",
})

_PACKAGE_SEGMENT = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


@lru_cache(maxsize=1024)
def to_pascal_case(value: str) -> str:
    """Convert a table or column name to PascalCase.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> to_pascal_case("PRIMITIVES")
        'Primitives'
        >>> to_pascal_case("order_items")
        'OrderItems'
        >>> to_pascal_case("boolCol")
        'BoolCol'
    """
    # Handle already camelCase/PascalCase by inserting underscores before caps
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", value)
    value = re.sub(r"[^A-Za-z0-9]+", "_", value)

    parts = [part for part in value.split("_") if part]
    return "".join(part.capitalize() for part in parts)


@lru_cache(maxsize=1024)
def to_camel_case(value: str) -> str:
    """Convert a column name to lowerCamelCase.

    Examples:
        >>> to_camel_case("BOOL_COL")
        'boolCol'
        >>> to_camel_case("strCol")
        'strCol'
    """
    pascal = to_pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


@lru_cache(maxsize=1024)
def sanitize_field_name(value: str) -> str:
    """Sanitize a column name for use as a Java field name.

    Uses caching for repeated calls with the same input.
    """
    name = to_camel_case(value) or "field"
    if name[0].isdigit():
        name = f"_{name}"
    if name in JAVA_KEYWORDS:
        return f"{name}_"
    return name


def class_name_for_table(table_name: str, suffix: str = "") -> str:
    """Derive a Java class name from a table name."""
    base = to_pascal_case(table_name) or "Table"
    if base[0].isdigit():
        base = f"_{base}"
    name = f"{base}{suffix}"
    if name in RESERVED_CLASS_NAMES:
        return f"{name}_"
    return name


def is_valid_package(package: str) -> bool:
    """Check that a dotted package name is a legal Java package."""
    if not package:
        return False
    return all(
        _PACKAGE_SEGMENT.match(segment) and segment not in JAVA_KEYWORDS
        for segment in package.split(".")
    )


def package_to_path(package: str) -> str:
    """Convert a dotted package name into a relative directory path."""
    return "/".join(segment for segment in package.split(".") if segment)
