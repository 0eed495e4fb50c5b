"""InitializationHooks Port Interface.

Contract: Optional callbacks a registry consults around population. Both
methods are optional; a hooks object may implement either, both or neither.
"""

from __future__ import annotations

from typing import Protocol


class InitializationHooks(Protocol):
    def after_initialize(self) -> None: ...

    """
    Called with no arguments the first time the registry becomes initialized.
    The return value is ignored.
    """

    def should_run_deferred_initialization(self) -> bool: ...

    """
    Consulted before every read while a deferred routine is pending. Returning
    False skips the routine for that read; the read then sees defaults and any
    stored values.
    """
