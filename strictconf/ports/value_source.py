"""ValueSource Port Interface.

Contract: Read raw configuration values for the keys a schema declares. Values
are returned as the source produced them; coercion happens in the registry.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from strictconf.core.schema import Schema


class ValueSource(Protocol):
    def read(self, schema: Schema) -> Mapping[str, Any]: ...

    """
    Return a mapping of declared key to raw value for every declared key the
    source provides. Keys the source does not provide are left out so their
    defaults stand.
    """

    def unknown_keys(self, schema: Schema) -> list[str]: ...

    """
    Return the source-side names that look like configuration for this
    schema but are not declared in it.
    """
