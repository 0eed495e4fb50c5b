"""
Declared configuration keys and their defaults.

A Schema is immutable once built. Keys are plain strings compared
case-sensitively; defaults are already coerced to their canonical string form
(or None when a key has no default).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional, Union

from pydantic import BaseModel

from strictconf.core.coercion import coerce
from strictconf.errors.errors import UnknownVariableError

SchemaSource = Union["Schema", Mapping[str, Any], Iterable[str]]


@dataclass(frozen=True)
class VariableSpec:
    """One declared key: its default and an optional human description."""

    key: str
    default: Optional[str] = None
    description: str = ""


class Schema:
    """
    Immutable set of declared keys.

    Example:
        schema = Schema.declare({"lang": "en", "debug": False, "api_token": None})
        schema.is_valid("lang")     # True
        schema.default_of("debug")  # "false"
    """

    __slots__ = ("_specs",)

    def __init__(self, specs: Iterable[VariableSpec] = ()) -> None:
        table: dict[str, VariableSpec] = {}
        for spec in specs:
            if not isinstance(spec.key, str) or not spec.key:
                raise TypeError(f"Configuration keys must be non-empty strings (got {spec.key!r})")
            table[spec.key] = spec
        self._specs: Mapping[str, VariableSpec] = MappingProxyType(table)

    # --- constructors -----------------------------------------------------

    @classmethod
    def declare(
        cls,
        keys_with_defaults: SchemaSource,
        descriptions: Optional[Mapping[str, str]] = None,
    ) -> "Schema":
        """
        Build a schema from a mapping of key to default, or from bare keys.

        Defaults go through the same coercion as runtime values, so a default of
        False is stored as "false". Composite defaults are rejected.
        """
        if isinstance(keys_with_defaults, Schema):
            return keys_with_defaults

        descriptions = descriptions or {}
        if isinstance(keys_with_defaults, (str, bytes)):
            raise TypeError(
                f"Expected a mapping or an iterable of keys, got {type(keys_with_defaults).__name__}"
            )
        if isinstance(keys_with_defaults, Mapping):
            items = keys_with_defaults.items()
        else:
            items = ((key, None) for key in keys_with_defaults)

        return cls(
            VariableSpec(
                key=key,
                default=coerce(default, key=key),
                description=descriptions.get(key, ""),
            )
            for key, default in items
        )

    @classmethod
    def from_model(cls, model: type[BaseModel]) -> "Schema":
        """
        Derive a schema from the fields of a pydantic model class.

        Field names become keys, field defaults become defaults and field
        descriptions are carried along. Required fields have no default.
        """
        specs = []
        for name, field in model.model_fields.items():
            default = None if field.is_required() else field.get_default(call_default_factory=True)
            specs.append(
                VariableSpec(
                    key=name,
                    default=coerce(default, key=name),
                    description=field.description or "",
                )
            )
        return cls(specs)

    # --- queries ----------------------------------------------------------

    def is_valid(self, key: Any) -> bool:
        return isinstance(key, str) and key in self._specs

    def default_of(self, key: str) -> Optional[str]:
        """Return the declared default; raises UnknownVariableError for undeclared keys."""
        try:
            return self._specs[key].default
        except KeyError:
            raise UnknownVariableError(key) from None

    def describe(self, key: str) -> str:
        try:
            return self._specs[key].description
        except KeyError:
            raise UnknownVariableError(key) from None

    def keys(self) -> Iterator[str]:
        return iter(self._specs)

    def specs(self) -> Iterator[VariableSpec]:
        return iter(self._specs.values())

    def defaults(self) -> dict[str, Optional[str]]:
        return {key: spec.default for key, spec in self._specs.items()}

    def __contains__(self, key: object) -> bool:
        return self.is_valid(key)

    def __iter__(self) -> Iterator[str]:
        return self.keys()

    def __len__(self) -> int:
        return len(self._specs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return dict(self._specs) == dict(other._specs)

    def __hash__(self) -> int:
        return hash(tuple(self._specs.values()))

    def __repr__(self) -> str:
        return f"Schema(keys={list(self._specs)!r})"
