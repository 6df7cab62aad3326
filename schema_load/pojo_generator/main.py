"""
POJO Generator - Generates Java key/value classes from schema descriptors.

This module provides deterministic code generation with:
- Template pre-compilation
- Rendering fully in memory before any file is touched
- Atomic per-file writes
- Overwrite confirmation threaded through a whole batch
"""

from __future__ import annotations

import argparse
import difflib
import logging
import os
import stat
import tempfile
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Final, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..metadata_parser import load_descriptors
from ..shared import (
    Column,
    FileWriteError,
    JavaKind,
    JavaType,
    NamingOptions,
    OverwriteAborted,
    SchemaDescriptor,
    SchemaError,
    SchemaValidationError,
    UnsupportedSqlTypeError,
    is_valid_package,
    load_config,
    package_to_path,
)
from .overwrite import POLICIES, OverwritePolicy, OverwriteState, decide

logger = logging.getLogger(__name__)

# Marker recognizing generated files; its line is the only one that varies
GEN_MARKER: Final[str] = "Code generated by Schema Load utility"

SOURCE_EXTENSION: Final[str] = ".java"

# Template configuration
TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"


@dataclass(frozen=True, slots=True)
class JavaField:
    """A field of a generated class with its pre-rendered expressions."""

    name: str
    type: str
    getter: str
    setter: str
    differs: str
    hash: str
    text: str


@dataclass(frozen=True, slots=True)
class GeneratedFile:
    """Rendered source text and where it goes under the output directory."""

    relative_path: Path
    class_name: str
    content: str


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    """Options shared by every table of a generation run."""

    output_dir: Path
    package: str
    generate_key_class: bool = True
    include_constructor: bool = True
    include_key_fields: bool = False
    generated_on: date | None = None

    def __post_init__(self) -> None:
        if not is_valid_package(self.package):
            raise SchemaValidationError(
                f"'{self.package}' is not a valid Java package name",
                field="package",
            )


@dataclass
class GenerationResult:
    """Outcome of a generation run, accumulated across tables."""

    state: OverwriteState = OverwriteState.ASK_EACH
    written: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failed: list[tuple[str, SchemaError]] = field(default_factory=list)
    aborted_at: Path | None = None

    @property
    def aborted(self) -> bool:
        return self.state is OverwriteState.ABORTED


@dataclass
class GeneratorContext:
    """Context for code generation with cached resources."""

    template_env: Environment = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,
        )
        # Pre-compile templates
        self._pojo_template = self.template_env.get_template("pojo.java.j2")

    @property
    def pojo_template(self):
        return self._pojo_template


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def _differs(name: str, java_type: JavaType) -> str:
    """Java condition that is true when a field differs from ``that``."""
    ours, theirs = f"this.{name}", f"that.{name}"
    if java_type.kind is JavaKind.FLOAT:
        return f"Float.compare({ours}, {theirs}) != 0"
    if java_type.kind is JavaKind.DOUBLE:
        return f"Double.compare({ours}, {theirs}) != 0"
    if java_type.kind is JavaKind.ARRAY:
        return f"!Arrays.equals({ours}, {theirs})"
    if java_type.kind is JavaKind.OBJECT:
        return f"{ours} != null ? !{ours}.equals({theirs}) : {theirs} != null"
    return f"{ours} != {theirs}"


def _hash(name: str, java_type: JavaType) -> str:
    """Java expression folding a field into ``hashCode``."""
    ours = f"this.{name}"
    if java_type.kind is JavaKind.BOOLEAN:
        return f"({ours} ? 1 : 0)"
    if java_type.kind is JavaKind.LONG:
        return f"(int)({ours} ^ ({ours} >>> 32))"
    if java_type.kind is JavaKind.FLOAT:
        return f"Float.floatToIntBits({ours})"
    if java_type.kind is JavaKind.DOUBLE:
        return f"Double.hashCode({ours})"
    if java_type.kind is JavaKind.ARRAY:
        return f"Arrays.hashCode({ours})"
    if java_type.kind is JavaKind.OBJECT:
        return f"({ours} != null ? {ours}.hashCode() : 0)"
    return ours


def _java_field(column: Column, java_type: JavaType) -> JavaField:
    name = column.field_name
    text = f"Arrays.toString(this.{name})" if java_type.kind is JavaKind.ARRAY else f"this.{name}"
    return JavaField(
        name=name,
        type=java_type.name,
        getter=f"get{_capitalize(name)}",
        setter=f"set{_capitalize(name)}",
        differs=_differs(name, java_type),
        hash=_hash(name, java_type),
        text=text,
    )


def _comment_safe(value: str) -> str:
    return value.replace("*/", "*_/")


def _render_class(
    ctx: GeneratorContext,
    class_name: str,
    columns: Sequence[tuple[Column, JavaType]],
    descriptor: SchemaDescriptor,
    options: GenerationOptions,
) -> str:
    """Render one class. Output depends only on the inputs and the date."""
    imports = {"java.io.Serializable"}
    imports.update(t.import_name for _, t in columns if t.import_name)

    generated_on = options.generated_on or date.today()
    return ctx.pojo_template.render(
        marker=GEN_MARKER,
        generated_on=generated_on.isoformat(),
        table=_comment_safe(descriptor.qualified_name),
        package=options.package,
        imports=sorted(imports),
        class_name=class_name,
        fields=[_java_field(col, t) for col, t in columns],
        include_constructor=options.include_constructor,
    )


def render(
    descriptor: SchemaDescriptor,
    options: GenerationOptions,
    ctx: GeneratorContext | None = None,
) -> list[GeneratedFile]:
    """Render the key and/or value class of a table without writing anything.

    Raises:
        UnsupportedSqlTypeError: If any column of the table cannot be mapped.
    """
    ctx = ctx or GeneratorContext()
    # Map every column up front so a bad type fails before any file is written
    typed = {col.name: (col, col.java_type(descriptor.qualified_name)) for col in descriptor.columns}

    package_dir = Path(package_to_path(options.package))
    files: list[GeneratedFile] = []

    emit_key = descriptor.has_key_class and options.generate_key_class
    if emit_key:
        key_columns = [typed[col.name] for col in descriptor.key_columns]
        files.append(
            GeneratedFile(
                relative_path=package_dir / f"{descriptor.key_class_name}{SOURCE_EXTENSION}",
                class_name=descriptor.key_class_name,
                content=_render_class(ctx, descriptor.key_class_name, key_columns, descriptor, options),
            )
        )

    if descriptor.value_class_name:
        inline_keys = options.include_key_fields or not emit_key
        source_columns = descriptor.columns if inline_keys else descriptor.value_columns
        value_columns = [typed[col.name] for col in source_columns]
        files.append(
            GeneratedFile(
                relative_path=package_dir / f"{descriptor.value_class_name}{SOURCE_EXTENSION}",
                class_name=descriptor.value_class_name,
                content=_render_class(ctx, descriptor.value_class_name, value_columns, descriptor, options),
            )
        )

    return files


def _target_mode(path: Path) -> int:
    """Mode of the file being replaced, else what a plain write would get."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _write_atomic(path: Path, content: str) -> None:
    """Write a file so that it is either fully replaced or left untouched.

    Raises:
        FileWriteError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as e:
        raise FileWriteError(str(path), str(e)) from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(content)
        # mkstemp creates the file as 0600
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    except OSError as e:
        raise FileWriteError(str(path), str(e)) from e
    finally:
        tmp_path.unlink(missing_ok=True)


def generate(
    descriptor: SchemaDescriptor,
    options: GenerationOptions,
    policy: OverwritePolicy,
    result: GenerationResult | None = None,
    ctx: GeneratorContext | None = None,
) -> GenerationResult:
    """Generate the classes of one table into the output directory.

    Args:
        descriptor: Table to generate.
        options: Run options.
        policy: Consulted for every target file that already exists.
        result: Result of the run so far; its overwrite state carries over
            from earlier tables of the same run.
        ctx: Generator context, created when omitted.

    Returns:
        The updated run result.

    Raises:
        UnsupportedSqlTypeError: If a column type cannot be mapped; nothing
            of this table is written.
        FileWriteError: If a file cannot be written.
        OverwriteAborted: If the user cancelled, now or earlier in the run.
    """
    result = result if result is not None else GenerationResult()
    if result.aborted:
        raise OverwriteAborted(str(result.aborted_at) if result.aborted_at else None)

    for generated in render(descriptor, options, ctx):
        path = options.output_dir / generated.relative_path

        if path.exists():
            try:
                result.state, write = decide(result.state, str(path), policy)
            except OverwriteAborted:
                result.state = OverwriteState.ABORTED
                result.aborted_at = path
                raise
            if not write:
                logger.info("Skipped %s", path)
                result.skipped.append(path)
                continue

        _write_atomic(path, generated.content)
        logger.info("Generated %s", path)
        result.written.append(path)

    return result


def generate_all(
    descriptors: Sequence[SchemaDescriptor],
    options: GenerationOptions,
    policy: OverwritePolicy,
    *,
    continue_on_error: bool = False,
    ctx: GeneratorContext | None = None,
) -> GenerationResult:
    """Generate classes for a batch of tables as one run.

    "To all" answers hold for the rest of the batch, and a cancel stops it
    before any further file is touched. Files already written stay.

    Args:
        descriptors: Tables to generate, in order.
        options: Run options.
        policy: Overwrite confirmation callback.
        continue_on_error: Record tables with unmappable types in
            ``failed`` and go on instead of raising.
        ctx: Generator context, created when omitted.

    Returns:
        The run result; ``aborted`` is set when the user cancelled.
    """
    ctx = ctx or GeneratorContext()
    result = GenerationResult()

    for descriptor in descriptors:
        try:
            generate(descriptor, options, policy, result, ctx)
        except OverwriteAborted:
            logger.info("Generation cancelled at %s", result.aborted_at)
            break
        except UnsupportedSqlTypeError as e:
            if not continue_on_error:
                raise
            logger.warning("Skipping table %s: %s", descriptor.qualified_name, e)
            result.failed.append((descriptor.qualified_name, e))

    return result


def diff_ignoring_marker(
    expected: str,
    actual: str,
    fromfile: str = "expected",
    tofile: str = "actual",
) -> list[str]:
    """Unified diff of two generated texts, ignoring marker lines."""

    def _lines(text: str) -> list[str]:
        return [line for line in text.splitlines(keepends=True) if GEN_MARKER not in line]

    return list(
        difflib.unified_diff(_lines(expected), _lines(actual), fromfile=fromfile, tofile=tofile)
    )


def check(
    descriptors: Sequence[SchemaDescriptor],
    options: GenerationOptions,
    ctx: GeneratorContext | None = None,
) -> dict[Path, list[str]]:
    """Compare freshly rendered classes with the files on disk.

    Returns:
        Diff lines per file that is missing or differs; empty when the
        output directory is up to date.
    """
    ctx = ctx or GeneratorContext()
    differences: dict[Path, list[str]] = {}

    for descriptor in descriptors:
        for generated in render(descriptor, options, ctx):
            path = options.output_dir / generated.relative_path
            try:
                existing = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                existing = ""
            except OSError as e:
                raise SchemaError(f"Failed to read generated file: {e}", str(path)) from e
            diff = diff_ignoring_marker(existing, generated.content, str(path), "generated")
            if diff:
                differences[path] = diff

    return differences


def _setting(args: argparse.Namespace, config: dict[str, Any], key: str, default: Any) -> Any:
    """Command-line value, else configuration value, else default."""
    value = getattr(args, key, None)
    if value is not None:
        return value
    return config.get(key, default)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schema-load generate",
        description="Generate Java key/value classes from database metadata",
    )
    parser.add_argument(
        "paths",
        type=Path,
        nargs="*",
        help="Schema file(s) or directories containing schema YAML files",
    )
    parser.add_argument("--url", default=None, help="SQLAlchemy database URL to introspect")
    parser.add_argument(
        "--schema",
        dest="schemas",
        action="append",
        default=None,
        help="Database schema to introspect (repeatable, default schema if omitted)",
    )
    parser.add_argument(
        "--include-views",
        dest="include_views",
        action="store_true",
        default=None,
        help="Generate classes for views too",
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--out", dest="output_dir", default=None, help="Output directory")
    parser.add_argument("--package", default=None, help="Java package of generated classes")
    parser.add_argument(
        "--no-key-class",
        dest="generate_key_class",
        action="store_false",
        default=None,
        help="Do not emit key classes; key fields go into value classes",
    )
    parser.add_argument(
        "--no-constructor",
        dest="include_constructor",
        action="store_false",
        default=None,
        help="Do not emit the all-fields constructor",
    )
    parser.add_argument(
        "--include-key-fields",
        dest="include_key_fields",
        action="store_true",
        default=None,
        help="Also declare key fields in value classes",
    )
    parser.add_argument(
        "--scalar-key",
        dest="single_key_as_scalar",
        action="store_true",
        default=None,
        help="Map single-column primary keys to their boxed Java type",
    )
    parser.add_argument("--key-suffix", default=None, help="Key class name suffix (default: Key)")
    parser.add_argument("--value-suffix", default=None, help="Value class name suffix")
    parser.add_argument(
        "--overwrite",
        choices=sorted(POLICIES),
        default=None,
        help="What to do with existing files (default: ask)",
    )
    parser.add_argument(
        "--continue-on-error",
        dest="continue_on_error",
        action="store_true",
        default=None,
        help="Skip tables with unsupported column types instead of stopping",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Report differences with existing files instead of writing",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else {}

        output_dir = _setting(args, config, "output_dir", None)
        package = _setting(args, config, "package", None)
        if not output_dir or not package:
            raise SystemExit("Error: both an output directory (--out) and --package are required")

        options = GenerationOptions(
            output_dir=Path(output_dir).resolve(),
            package=package,
            generate_key_class=_setting(args, config, "generate_key_class", True),
            include_constructor=_setting(args, config, "include_constructor", True),
            include_key_fields=_setting(args, config, "include_key_fields", False),
        )
        naming = NamingOptions(
            key_suffix=_setting(args, config, "key_suffix", "Key"),
            value_suffix=_setting(args, config, "value_suffix", ""),
            single_key_as_scalar=_setting(args, config, "single_key_as_scalar", False),
        )

        descriptors = load_descriptors(
            args.paths,
            url=_setting(args, config, "url", None),
            schemas=_setting(args, config, "schemas", None),
            include_views=_setting(args, config, "include_views", False),
            naming=naming,
        )

        if args.check:
            differences = check(descriptors, options)
            for diff in differences.values():
                print("".join(diff), end="")
            if differences:
                raise SystemExit(f"{len(differences)} generated file(s) out of date")
            print(f"All generated files in {options.output_dir} are up to date")
            return

        policy = POLICIES[_setting(args, config, "overwrite", "ask")]
        result = generate_all(
            descriptors,
            options,
            policy,
            continue_on_error=_setting(args, config, "continue_on_error", False),
        )
    except (SchemaError, FileNotFoundError) as e:
        raise SystemExit(f"Error: {e}") from e

    print(
        f"Generated {len(result.written)} file(s), skipped {len(result.skipped)}, "
        f"from {len(descriptors)} table(s) into {options.output_dir}"
    )
    for table, error in result.failed:
        print(f"  Failed {table}: {error}")
    if result.aborted:
        print(f"Generation cancelled at {result.aborted_at}")
    if result.failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
