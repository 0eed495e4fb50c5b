from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class RegistryHooks:
    """
    Plain-callable implementation of the InitializationHooks port.

    Example:
        hooks = RegistryHooks(on_initialized=lambda: log.info("config ready"))
        registry = Registry(schema, hooks=hooks)
    """

    on_initialized: Optional[Callable[[], Any]] = None
    deferred_gate: Optional[Callable[[], bool]] = None

    def after_initialize(self) -> None:
        if self.on_initialized is not None:
            self.on_initialized()

    def should_run_deferred_initialization(self) -> bool:
        if self.deferred_gate is None:
            return True
        return bool(self.deferred_gate())
