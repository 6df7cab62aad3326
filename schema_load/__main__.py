#!/usr/bin/env python3
"""
Schema Load CLI.

Usage:
    python -m schema_load <command> [options]
    schema-load <command> [options]

Commands:
    generate    Generate Java key/value classes from database metadata
    inspect     Dump parsed database metadata as a YAML schema

Examples:
    schema-load generate --url sqlite:///app.db --out src/main/java --package com.example.model
    schema-load generate schemas/ --out build/gen --package com.example.model --overwrite yes
    schema-load generate schemas/ --config schema-load.yaml --check
    schema-load inspect --url postgresql://localhost/app -o schemas/app.yaml
"""

from __future__ import annotations

import sys


def _run(entry, args: list[str]) -> int:
    try:
        entry(args)
        return 0
    except SystemExit as e:
        if e.code is None or isinstance(e.code, int):
            return e.code or 0
        print(e.code, file=sys.stderr)
        return 1


def cmd_generate(args: list[str]) -> int:
    """Generate Java classes."""
    from schema_load.pojo_generator import main as generate_main

    return _run(generate_main, args)


def cmd_inspect(args: list[str]) -> int:
    """Dump the parsed schema."""
    from schema_load.metadata_parser import main as inspect_main

    return _run(inspect_main, args)


COMMANDS = {
    "generate": (cmd_generate, "Generate Java key/value classes from database metadata"),
    "inspect": (cmd_inspect, "Dump parsed database metadata as a YAML schema"),
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("-h", "--help"):
        print(__doc__)
        print("Available commands:")
        for name, (_, desc) in COMMANDS.items():
            print(f"  {name:12} {desc}")
        print("\nUse '<command> --help' for command-specific options.")
        return 0

    command = argv[0]
    args = argv[1:]

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS.keys())}")
        return 1

    handler, _ = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
