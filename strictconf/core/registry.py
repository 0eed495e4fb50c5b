"""
The configuration registry.

A Registry owns one schema, the current values for its keys, the stack of
active scoped overrides and the initialization state machine:

    uninitialized    --initialize_deferred-->  deferred_pending
    uninitialized    --populate_*-->           initialized
    deferred_pending --first read-->           initialized (routine runs once)
    deferred_pending --initialize_deferred-->  deferred_pending (routine replaced)
    initialized      --any initializer-->      AlreadyInitializedError

Every read validates the key against the schema; an undeclared key raises
UnknownVariableError instead of quietly returning None.

Usage:
    config = Registry({"lang": "en", "debug": False}, name="myapp")
    config.initialize_deferred("populate_from_env", "MYAPP")

    config.get("lang")       # populates from MYAPP_* on first read
    config.is_true("debug")

    with config.with_config({"lang": "pt"}):
        ...
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional, Union

from pydantic import BaseModel

from strictconf.adapters.env_source import EnvSource
from strictconf.adapters.mapping_source import MappingSource
from strictconf.adapters.yaml_source import YamlFileSource
from strictconf.core.coercion import coerce, is_falsy, is_truthy
from strictconf.core.schema import Schema, SchemaSource
from strictconf.core.state import DeferredRoutine, InitializationState
from strictconf.errors.errors import (
    AlreadyInitializedError,
    DuplicateSchemaError,
    SchemaNotDeclaredError,
    UnknownVariableError,
)
from strictconf.ports.hooks import InitializationHooks
from strictconf.ports.value_source import ValueSource

_LOGGER = logging.getLogger(__name__)

# sentinel for "key not in the value store", distinct from a stored None
_MISSING: Any = object()

# names accepted by initialize_deferred in place of a callable
DEFERRABLE_INITIALIZERS: frozenset[str] = frozenset(
    {"populate", "populate_from", "populate_from_env", "populate_from_file"}
)

SchemaInput = Union[SchemaSource, type[BaseModel], Callable[[], Any]]


class Registry:
    def __init__(
        self,
        schema: Optional[SchemaInput] = None,
        *,
        hooks: Optional[InitializationHooks] = None,
        name: str = "config",
    ) -> None:
        """
        Create a registry.

        Args:
            schema: a Schema, a mapping of key to default, an iterable of keys,
                a pydantic model class, or a zero-argument factory returning
                any of those. Factories are called on first use and cached.
                May be omitted and supplied later through declare_schema().
            hooks: optional object exposing after_initialize() and/or
                should_run_deferred_initialization().
            name: label used in log records and error messages.
        """
        self._name = name
        self._schema_input = schema
        self._schema: Optional[Schema] = None
        self._hooks = hooks

        self._lock = threading.RLock()
        self._values: dict[str, Optional[str]] = {}
        self._overrides: list[dict[str, Any]] = []
        self._state = InitializationState.UNINITIALIZED
        self._deferred: Optional[DeferredRoutine] = None
        self._hook_fired = False
        self._deferring = False
        self._deferred_result: Optional[tuple[str, Optional[int]]] = None

    # --- schema -----------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> InitializationState:
        return self._state

    @property
    def schema(self) -> Schema:
        """The declared schema, built from the constructor input on first access."""
        schema = self._schema
        if schema is not None:
            return schema
        with self._lock:
            if self._schema is None:
                if self._schema_input is None:
                    raise SchemaNotDeclaredError(
                        "No schema declared for this registry", registry=self._name
                    )
                self._schema = _build_schema(self._schema_input)
                _LOGGER.debug(
                    "schema_resolved",
                    extra={
                        "event": "schema_resolved",
                        "registry": self._name,
                        "keys_total": len(self._schema),
                    },
                )
            return self._schema

    def declare_schema(
        self,
        keys_with_defaults: SchemaInput,
        descriptions: Optional[Mapping[str, str]] = None,
    ) -> Schema:
        """Declare the schema once; a second declaration raises DuplicateSchemaError."""
        with self._lock:
            if self._schema is not None or self._schema_input is not None:
                raise DuplicateSchemaError(
                    "Schema already declared for this registry", registry=self._name
                )
            if descriptions:
                self._schema_input = Schema.declare(keys_with_defaults, descriptions)
            else:
                self._schema_input = keys_with_defaults
            return self.schema

    def is_declared(self, key: str) -> bool:
        return self.schema.is_valid(key)

    # --- reads ------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        """
        Return the value for a declared key.

        Runs a pending deferred initializer first. Falls back to the schema
        default when nothing was stored, and to None when there is no default.
        """
        schema = self.schema
        self._validate(key)
        if self._state is InitializationState.DEFERRED_PENDING:
            self._run_deferred()

        value = self._values.get(key, _MISSING)
        if value is _MISSING:
            return schema.default_of(key)
        return value

    def is_true(self, key: str) -> bool:
        return is_truthy(self.get(key))

    def is_false(self, key: str) -> bool:
        return is_falsy(self.get(key))

    def snapshot(self) -> dict[str, Optional[str]]:
        """Return every declared key with its effective value."""
        return {key: self.get(key) for key in self.schema.keys()}

    def __getitem__(self, key: str) -> Optional[str]:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.is_declared(key)

    # --- writes -----------------------------------------------------------

    def store(self, key: str, value: Any) -> None:
        """
        Coerce and store a value for a declared key.

        Low-level mutator for tests and wiring code. Application code should
        treat configuration as read-only and use with_config() for
        temporary changes.
        """
        self._validate(key)
        coerced = coerce(value, key=key)
        if self._state is InitializationState.DEFERRED_PENDING:
            self._run_deferred()
        with self._lock:
            self._values[key] = coerced

    @contextmanager
    def with_config(
        self, overrides: Optional[Mapping[str, Any]] = None, **kwargs: Any
    ) -> Iterator["Registry"]:
        """
        Temporarily override values for the duration of a with-block.

        All keys are validated and all values coerced before anything is
        written. Prior values, including "never stored", are restored on exit
        whether the block returns or raises. Blocks may be nested.
        """
        requested = dict(overrides or {})
        requested.update(kwargs)

        for key in requested:
            self._validate(key)
        coerced = {key: coerce(value, key=key) for key, value in requested.items()}

        # populate first so the deferred routine can't clobber the overrides later
        if self._state is InitializationState.DEFERRED_PENDING:
            self._run_deferred()

        with self._lock:
            snapshot = {key: self._values.get(key, _MISSING) for key in coerced}
            self._overrides.append(snapshot)
            self._values.update(coerced)
        try:
            yield self
        finally:
            self._restore(snapshot)

    def _restore(self, snapshot: dict[str, Any]) -> None:
        with self._lock:
            for index in range(len(self._overrides) - 1, -1, -1):
                if self._overrides[index] is snapshot:
                    del self._overrides[index]
                    break
            else:
                # dropped by reset() while the block was open
                return
            for key, previous in snapshot.items():
                if previous is _MISSING:
                    self._values.pop(key, None)
                else:
                    self._values[key] = previous

    @property
    def override_depth(self) -> int:
        return len(self._overrides)

    # --- population -------------------------------------------------------

    def populate_from(self, source: ValueSource) -> None:
        """
        Populate from any ValueSource and mark the registry initialized.

        Values are validated and coerced before any is written, so a failing
        source leaves the registry untouched.
        """
        schema = self.schema
        with self._lock:
            self._ensure_not_initialized()
            raw_values = source.read(schema)
            coerced: dict[str, Optional[str]] = {}
            for key, raw in raw_values.items():
                self._validate(key)
                coerced[key] = coerce(raw, key=key)

            self._values.update(coerced)
            self._deferred = None
            self._mark_initialized(source=type(source).__name__, keys_set=len(coerced))

    def populate_from_env(
        self,
        prefix: str,
        separator: str = "_",
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.populate_from(EnvSource(prefix, separator=separator, environ=environ))

    def populate_from_file(self, path: Union[str, Path]) -> None:
        self.populate_from(YamlFileSource(path))

    def populate(self, values: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        """Populate from explicit values; every key must be declared."""
        merged = dict(values or {})
        merged.update(kwargs)
        self.populate_from(MappingSource(merged))

    def initialize_deferred(
        self, routine: Union[str, Callable[..., Any]], *args: Any, **kwargs: Any
    ) -> None:
        """
        Record an initializer to run on the first read instead of now.

        ``routine`` is a callable or the name of one of this registry's
        initializers ("populate_from_env", "populate_from_file", "populate",
        "populate_from"). Calling again while still pending replaces the
        recorded routine.
        """
        if isinstance(routine, str):
            if routine not in DEFERRABLE_INITIALIZERS:
                raise ValueError(
                    f"Unknown initializer '{routine}' "
                    f"(expected one of {sorted(DEFERRABLE_INITIALIZERS)})"
                )
            func = getattr(self, routine)
            routine_name = routine
        else:
            func = routine
            routine_name = getattr(routine, "__name__", repr(routine))

        with self._lock:
            self._ensure_not_initialized()
            if self._deferred is not None:
                _LOGGER.debug(
                    "deferred_routine_replaced",
                    extra={
                        "event": "deferred_routine_replaced",
                        "registry": self._name,
                        "previous": self._deferred.name,
                        "routine": routine_name,
                    },
                )
            self._deferred = DeferredRoutine(routine_name, func, args, dict(kwargs))
            self._state = InitializationState.DEFERRED_PENDING

        _LOGGER.debug(
            "deferred_routine_recorded",
            extra={
                "event": "deferred_routine_recorded",
                "registry": self._name,
                "routine": routine_name,
            },
        )

    def reset(self) -> None:
        """
        Forget all values, overrides and pending routines.

        Intended for tests that share one registry across scenarios. The
        after_initialize hook fires again on the next initialization. A
        with_config block still open when reset() runs restores nothing on
        exit.
        """
        with self._lock:
            self._values.clear()
            self._overrides.clear()
            self._deferred = None
            self._state = InitializationState.UNINITIALIZED
            self._hook_fired = False

    # --- internals --------------------------------------------------------

    def _validate(self, key: str) -> None:
        if not self.schema.is_valid(key):
            raise UnknownVariableError(key, registry=self._name)

    def _ensure_not_initialized(self) -> None:
        if self._state is InitializationState.INITIALIZED:
            raise AlreadyInitializedError(
                "Registry is already initialized; call reset() first", registry=self._name
            )

    def _should_run_deferred(self) -> bool:
        gate = getattr(self._hooks, "should_run_deferred_initialization", None)
        if gate is None:
            return True
        return bool(gate())

    def _run_deferred(self) -> None:
        with self._lock:
            routine = self._deferred
            if self._state is not InitializationState.DEFERRED_PENDING or routine is None:
                return
            if not self._should_run_deferred():
                return

            # detach first: reads made by the routine itself must not re-enter it
            self._deferred = None
            # the routine populates an empty layer; values stored or overridden
            # while pending are merged back on top of it afterwards
            explicit = self._values
            self._values = {}
            self._deferring = True
            self._deferred_result = None
            try:
                routine()
            except Exception:
                self._values = explicit
                if self._deferred is None:
                    self._deferred = routine
                raise
            finally:
                self._deferring = False

            populated = self._values
            self._values = explicit
            self._merge_populated(populated)

            # a plain callable may not have gone through an initializer
            source, keys_set = self._deferred_result or (routine.name, None)
            self._mark_initialized(source=source, keys_set=keys_set)

    def _merge_populated(self, populated: dict[str, Optional[str]]) -> None:
        """
        Lay values written by a deferred routine underneath explicit writes.

        A key under an active override becomes that override's restore value
        when the override had nothing to restore. A key stored explicitly
        while pending keeps its stored value.
        """
        for key, value in populated.items():
            outermost = next((snap for snap in self._overrides if key in snap), None)
            if outermost is not None:
                if outermost[key] is _MISSING:
                    outermost[key] = value
            elif key not in self._values:
                self._values[key] = value

    def _mark_initialized(self, *, source: str, keys_set: Optional[int]) -> None:
        if self._deferring:
            # _run_deferred finishes the transition once the layers are merged
            self._deferred_result = (source, keys_set)
            return
        self._state = InitializationState.INITIALIZED
        _LOGGER.info(
            "registry_initialized",
            extra={
                "event": "registry_initialized",
                "registry": self._name,
                "source": source,
                "keys_set": keys_set,
            },
        )
        if self._hook_fired:
            return
        self._hook_fired = True
        after_initialize = getattr(self._hooks, "after_initialize", None)
        if after_initialize is not None:
            after_initialize()

    def __repr__(self) -> str:
        return f"Registry(name={self._name!r}, state={self._state.value!r})"


def _build_schema(source: SchemaInput) -> Schema:
    if isinstance(source, Schema):
        return source
    if isinstance(source, type) and issubclass(source, BaseModel):
        return Schema.from_model(source)
    if callable(source):
        return _build_schema(source())
    return Schema.declare(source)
