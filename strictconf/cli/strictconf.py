"""strictconf CLI entrypoint.

Subcommands:
    describe  list every declared key with its default, current value and description
    check     report environment variables / file keys that are not declared

The schema is located with --schema module:attribute, where the attribute is a
Schema, a mapping of key to default, a pydantic model class or a Registry.
"""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, TextIO

from strictconf.adapters.env_source import EnvSource
from strictconf.adapters.yaml_source import YamlFileSource
from strictconf.core.registry import Registry
from strictconf.core.schema import Schema
from strictconf.errors.errors import RegistryError
from strictconf.ports.value_source import ValueSource

_LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """
    Return the top-level CLI argument parser.
    """
    p = argparse.ArgumentParser(prog="strictconf")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    def add_common(sp: argparse.ArgumentParser) -> None:
        """Add arguments shared across all subcommands."""
        sp.add_argument(
            "--schema",
            required=True,
            metavar="MODULE:ATTR",
            help="Import path of the schema, mapping, pydantic model or registry",
        )
        sp.add_argument("--separator", default="_", help="Separator between prefix and key")

    describe = sub.add_parser("describe", help="List declared keys and their values")
    add_common(describe)
    source = describe.add_mutually_exclusive_group()
    source.add_argument("--env-prefix", help="Populate from environment variables with this prefix")
    source.add_argument("--file", type=Path, help="Populate from a YAML file")
    describe.add_argument("--json", action="store_true", help="Emit JSON instead of text")

    check = sub.add_parser("check", help="Report configuration that is not declared")
    add_common(check)
    check.add_argument("--env-prefix", help="Check environment variables with this prefix")
    check.add_argument("--file", type=Path, help="Check keys of a YAML file")
    return p


def load_schema(target: str) -> Schema:
    """Resolve ``module:attr`` into a Schema."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"--schema requires MODULE:ATTR format (got {target!r})")

    obj: Any = importlib.import_module(module_name)
    for part in attr.split("."):
        obj = getattr(obj, part)

    if isinstance(obj, Registry):
        return obj.schema
    return Registry(obj).schema


def run_describe(
    schema: Schema,
    *,
    env_prefix: Optional[str] = None,
    separator: str = "_",
    file: Optional[Path] = None,
    as_json: bool = False,
    out: Optional[TextIO] = None,
) -> int:
    out = out or sys.stdout
    registry = Registry(schema, name="strictconf.cli")
    if env_prefix:
        registry.populate_from_env(env_prefix, separator=separator)
    elif file is not None:
        registry.populate_from_file(file)

    rows = [
        {
            "key": spec.key,
            "value": registry.get(spec.key),
            "default": spec.default,
            "description": spec.description,
        }
        for spec in schema.specs()
    ]

    if as_json:
        out.write(json.dumps(rows, indent=2) + "\n")
        return 0

    width = max((len(row["key"]) for row in rows), default=0)
    for row in rows:
        line = f"{row['key']:<{width}} = {_display(row['value'])}"
        if row["value"] != row["default"]:
            line += f"  (default: {_display(row['default'])})"
        if row["description"]:
            line += f"  # {row['description']}"
        out.write(line + "\n")
    return 0


def run_check(
    schema: Schema,
    *,
    env_prefix: Optional[str] = None,
    separator: str = "_",
    file: Optional[Path] = None,
    out: Optional[TextIO] = None,
) -> int:
    """Print undeclared configuration; exit code 1 when any is found."""
    out = out or sys.stdout
    sources: list[tuple[str, ValueSource]] = []
    if env_prefix:
        sources.append(("env", EnvSource(env_prefix, separator=separator)))
    if file is not None:
        sources.append((str(file), YamlFileSource(file)))
    if not sources:
        raise ValueError("check requires --env-prefix and/or --file")

    found = 0
    for label, source in sources:
        for name in source.unknown_keys(schema):
            out.write(f"{label}: undeclared '{name}'\n")
            found += 1

    _LOGGER.debug("check_completed", extra={"event": "check_completed", "undeclared": found})
    return 1 if found else 0


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint wrapper compatible with setuptools scripts."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        schema = load_schema(args.schema)
        if args.command == "describe":
            return run_describe(
                schema,
                env_prefix=args.env_prefix,
                separator=args.separator,
                file=args.file,
                as_json=args.json,
            )
        return run_check(
            schema, env_prefix=args.env_prefix, separator=args.separator, file=args.file
        )
    except (RegistryError, FileNotFoundError, ValueError, ImportError, AttributeError) as exc:
        print(f"strictconf: {exc}", file=sys.stderr)
        return 2


def _display(value: Optional[str]) -> str:
    return "<unset>" if value is None else repr(value)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
