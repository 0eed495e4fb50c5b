"""
Exceptions raised by the configuration registry.

Exception hierarchy:
- RegistryError (base)
  - UnknownVariableError: key is not declared in the schema
  - UnsupportedTypeError: composite value where a scalar is expected
  - DuplicateSchemaError: schema declared twice on one registry
  - SchemaNotDeclaredError: registry used before any schema exists
  - AlreadyInitializedError: registry populated twice
  - ParseError: configuration file could not be parsed
  - AmbiguousVariableError: declared keys collide once case is folded

Missing configuration files raise the builtin FileNotFoundError.
"""

from __future__ import annotations

from typing import Any, Optional


class RegistryError(Exception):
    """Base exception for all registry errors."""

    def __init__(
        self,
        message: str,
        *,
        registry: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.registry = registry
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [str(self.args[0]) if self.args else ""]
        if self.registry:
            parts.append(f"[registry={self.registry}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


class UnknownVariableError(RegistryError, KeyError):
    """Raised when a key that was never declared is read, stored or overridden."""

    def __init__(
        self,
        key: str,
        *,
        registry: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.key = key
        super().__init__(
            f"Unknown configuration variable '{key}'", registry=registry, details=details
        )


class UnsupportedTypeError(RegistryError, TypeError):
    """Raised when a list, mapping or other composite value is given for a key."""

    def __init__(
        self,
        value_type: type,
        *,
        key: Optional[str] = None,
        registry: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.value_type = value_type
        self.key = key
        details = details or {}
        details["value_type"] = value_type.__name__
        if key:
            details["key"] = key
        super().__init__(
            f"Composite values are not supported (got {value_type.__name__})",
            registry=registry,
            details=details,
        )


class DuplicateSchemaError(RegistryError):
    """Raised when a schema is declared on a registry that already has one."""


class SchemaNotDeclaredError(RegistryError):
    """Raised when a registry is used before a schema was declared."""


class AlreadyInitializedError(RegistryError):
    """Raised when an initializer runs against an initialized registry."""


class ParseError(RegistryError, ValueError):
    """Raised when a configuration file is malformed or not a flat mapping."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        registry: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.path = path
        details = details or {}
        if path:
            details["path"] = path
        super().__init__(message, registry=registry, details=details)


class AmbiguousVariableError(RegistryError, ValueError):
    """Raised when declared keys cannot be told apart by a case-insensitive source."""

    def __init__(
        self,
        keys: list[str],
        *,
        registry: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.keys = sorted(keys)
        details = details or {}
        details["keys"] = self.keys
        super().__init__(
            f"Declared keys differ only by case: {', '.join(self.keys)}",
            registry=registry,
            details=details,
        )
