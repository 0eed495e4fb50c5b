"""
YAML file adapter.

Only top-level scalar pairs are consumed. PyYAML follows YAML 1.1, so unquoted
yes/no/on/off/true/false arrive here as booleans and end up as "true"/"false"
after coercion. Quote the word in the file to keep it literally.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from strictconf.core.schema import Schema
from strictconf.errors.errors import ParseError

_LOGGER = logging.getLogger(__name__)


class YamlFileSource:
    def __init__(self, path: Union[str, Path]) -> None:
        self._path = path if isinstance(path, Path) else Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Mapping[str, Any]:
        """Parse the file into a flat mapping; an empty document is an empty mapping."""
        if not self._path.exists():
            raise FileNotFoundError(f"Config file not found: {self._path}")

        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise ParseError(f"Invalid YAML in {self._path}: {exc}", path=str(self._path)) from exc

        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise ParseError(
                f"Top level of {self._path} must be a mapping (got {type(data).__name__})",
                path=str(self._path),
            )
        return data

    def read(self, schema: Schema) -> dict[str, Any]:
        """Return declared key -> raw value; undeclared keys in the file are skipped."""
        data = self.load()
        values = {key: value for key, value in data.items() if schema.is_valid(key)}

        _LOGGER.debug(
            "yaml_source_read",
            extra={
                "event": "yaml_source_read",
                "path": str(self._path),
                "keys_found": sorted(values),
                "keys_ignored": len(data) - len(values),
            },
        )
        return values

    def unknown_keys(self, schema: Schema) -> list[str]:
        return sorted(str(key) for key in self.load() if not schema.is_valid(key))
