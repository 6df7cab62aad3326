"""POJO Generator - Generates Java key/value classes from schema descriptors."""

from .main import (
    GEN_MARKER,
    GeneratedFile,
    GenerationOptions,
    GenerationResult,
    GeneratorContext,
    JavaField,
    check,
    diff_ignoring_marker,
    generate,
    generate_all,
    main,
    render,
)
from .overwrite import (
    OverwriteAnswer,
    OverwritePolicy,
    OverwriteState,
    always_no,
    always_yes,
    ask_console,
    decide,
)

__all__ = [
    "GEN_MARKER",
    "GeneratedFile",
    "GenerationOptions",
    "GenerationResult",
    "GeneratorContext",
    "JavaField",
    "check",
    "diff_ignoring_marker",
    "generate",
    "generate_all",
    "main",
    "render",
    "OverwriteAnswer",
    "OverwritePolicy",
    "OverwriteState",
    "always_no",
    "always_yes",
    "ask_console",
    "decide",
]
