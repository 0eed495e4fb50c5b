from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from strictconf.core.schema import Schema
from strictconf.errors.errors import AmbiguousVariableError

_LOGGER = logging.getLogger(__name__)


class EnvSource:
    """
    Read configuration from prefixed environment variables.

    A variable named ``<PREFIX><SEPARATOR><KEY>`` populates the declared key
    whose lower-cased name equals the lower-cased ``<KEY>``. The whole variable
    name is matched case-insensitively, so ``myapp_lang`` and ``MYAPP_LANG``
    both populate ``lang``. Prefixed variables with no declared key are ignored.

    When several spellings of one name are set, the all upper-case one is used,
    otherwise the lexicographically last; the others are logged as shadowed.
    Declared keys that only differ by case raise ``AmbiguousVariableError``.
    """

    def __init__(
        self,
        prefix: str,
        separator: str = "_",
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        if not prefix:
            raise ValueError("Environment prefix must be a non-empty string")
        # "MYAPP_" with separator "_" must not turn into "MYAPP__"
        if separator and prefix.endswith(separator):
            full_prefix = prefix
        else:
            full_prefix = f"{prefix}{separator}"
        self._prefix = prefix
        self._full_prefix = full_prefix.lower()
        self._environ = environ

    @property
    def prefix(self) -> str:
        return self._prefix

    def read(self, schema: Schema) -> dict[str, str]:
        """Return declared key -> raw value for every matching variable."""
        by_folded_key = _fold_keys(schema)
        values: dict[str, str] = {}
        chosen: dict[str, str] = {}
        for env_var, name, raw in self._prefixed_items():
            key = by_folded_key.get(name)
            if key is None:
                _LOGGER.debug(
                    "env_variable_ignored",
                    extra={
                        "event": "env_variable_ignored",
                        "prefix": self._prefix,
                        "suffix": name,
                    },
                )
                continue
            if key in chosen:
                _LOGGER.warning(
                    "env_variable_shadowed",
                    extra={
                        "event": "env_variable_shadowed",
                        "key": key,
                        "used": env_var,
                        "shadowed": chosen[key],
                    },
                )
            chosen[key] = env_var
            values[key] = raw

        _LOGGER.debug(
            "env_source_read",
            extra={
                "event": "env_source_read",
                "prefix": self._prefix,
                "keys_found": sorted(values),
            },
        )
        return values

    def unknown_keys(self, schema: Schema) -> list[str]:
        """Return the full names of prefixed variables with no declared key."""
        folded = _fold_keys(schema)
        unknown = []
        for env_var in self._environment():
            suffix = self._strip_prefix(env_var)
            if suffix is not None and suffix not in folded:
                unknown.append(env_var)
        return sorted(unknown)

    def _environment(self) -> Mapping[str, str]:
        # read lazily so monkeypatched / deferred environments are honoured
        return os.environ if self._environ is None else self._environ

    def _prefixed_items(self) -> list[tuple[str, str, str]]:
        """Matching (env_var, suffix, raw) triples; the preferred spelling of a name comes last."""
        items = []
        for env_var, raw in self._environment().items():
            suffix = self._strip_prefix(env_var)
            if suffix is not None:
                items.append((env_var, suffix, raw))
        # upper-case spelling wins, otherwise the lexicographically last one
        items.sort(key=lambda item: (item[0] == item[0].upper(), item[0]))
        return items

    def _strip_prefix(self, env_var: str) -> Optional[str]:
        folded = env_var.lower()
        if not folded.startswith(self._full_prefix):
            return None
        suffix = folded[len(self._full_prefix) :]
        return suffix or None


def _fold_keys(schema: Schema) -> dict[str, str]:
    """Map lower-cased key -> declared key, refusing keys that only differ by case."""
    by_folded_key: dict[str, str] = {}
    clashes: set[str] = set()
    for key in schema.keys():
        folded = key.lower()
        if folded in by_folded_key:
            clashes.update((key, by_folded_key[folded]))
        by_folded_key[folded] = key
    if clashes:
        raise AmbiguousVariableError(sorted(clashes))
    return by_folded_key
