from __future__ import annotations

from typing import Any, Mapping

from strictconf.core.schema import Schema


class MappingSource:
    """
    In-memory source for explicit values (tests, scripts, manual wiring).

    Every key is explicitly referenced, so read() returns all of them and the
    registry rejects any key that was never declared.
    """

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values = dict(values)

    def read(self, schema: Schema) -> dict[str, Any]:
        return dict(self._values)

    def unknown_keys(self, schema: Schema) -> list[str]:
        return sorted(str(key) for key in self._values if not schema.is_valid(key))
