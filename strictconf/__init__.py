"""
Strict configuration registry.

Every key an application reads must be declared up front; reading anything
else fails loudly. Values from the environment, YAML files and in-memory
mappings are all coerced to one canonical string form, and scoped overrides
make temporary changes in tests safe.

Components:
- Schema: declared keys, defaults and descriptions
- Registry: current values, validation, deferred initialization, overrides
- EnvSource / YamlFileSource / MappingSource: population strategies
- ConfigStub: stub/restore helper for tests

Usage:
    from strictconf import Registry

    config = Registry({"lang": "en", "debug": False}, name="myapp")
    config.populate_from_env("MYAPP")

    config.get("lang")
    config.is_true("debug")
    config.get("langg")  # UnknownVariableError
"""

from strictconf.adapters.env_source import EnvSource
from strictconf.adapters.mapping_source import MappingSource
from strictconf.adapters.yaml_source import YamlFileSource
from strictconf.core.coercion import TRUTHY_VALUES, coerce, is_falsy, is_truthy
from strictconf.core.hooks import RegistryHooks
from strictconf.core.registry import Registry
from strictconf.core.schema import Schema, VariableSpec
from strictconf.core.state import InitializationState
from strictconf.errors.errors import (
    AlreadyInitializedError,
    AmbiguousVariableError,
    DuplicateSchemaError,
    ParseError,
    RegistryError,
    SchemaNotDeclaredError,
    UnknownVariableError,
    UnsupportedTypeError,
)
from strictconf.testing.harness import ConfigStub

__all__ = [
    # Main entry point
    "Registry",
    "RegistryHooks",
    "Schema",
    "VariableSpec",
    "InitializationState",
    # Coercion
    "TRUTHY_VALUES",
    "coerce",
    "is_truthy",
    "is_falsy",
    # Sources
    "EnvSource",
    "YamlFileSource",
    "MappingSource",
    # Testing
    "ConfigStub",
    # Errors
    "RegistryError",
    "UnknownVariableError",
    "UnsupportedTypeError",
    "DuplicateSchemaError",
    "SchemaNotDeclaredError",
    "AlreadyInitializedError",
    "ParseError",
    "AmbiguousVariableError",
]
