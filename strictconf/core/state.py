"""
Shared state types for the registry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class InitializationState(str, Enum):
    """State machine for Registry population."""

    UNINITIALIZED = "uninitialized"
    DEFERRED_PENDING = "deferred_pending"
    INITIALIZED = "initialized"


@dataclass(frozen=True)
class DeferredRoutine:
    """An initializer recorded by initialize_deferred, run on first read."""

    name: str
    func: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)

    def __call__(self) -> Any:
        return self.func(*self.args, **self.kwargs)
