"""
Canonical string coercion for configuration values.

Every value that enters a registry, whether it came from the environment, a
YAML file or a test override, is reduced to a string or None. Native types are
lost on purpose: a value reads the same no matter which source produced it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from strictconf.errors.errors import UnsupportedTypeError

TRUTHY_VALUES: frozenset[str] = frozenset({"on", "1", "yes", "true"})

_COMPOSITE_TYPES = (list, tuple, set, frozenset, Mapping)


def coerce(raw: Any, *, key: Optional[str] = None) -> Optional[str]:
    """
    Convert a scalar into its canonical string form.

    None stays None, booleans become "true"/"false", anything else goes
    through str(). Lists, tuples, sets and mappings raise UnsupportedTypeError.
    """
    if raw is None:
        return None
    # bool before str(): str(True) would give "True"
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, str):
        return raw
    if isinstance(raw, _COMPOSITE_TYPES):
        raise UnsupportedTypeError(type(raw), key=key)
    return str(raw)


def is_truthy(value: Any) -> bool:
    """Return True for "on", "1", "yes" and "true", in any letter case."""
    text = coerce(value)
    if text is None:
        return False
    return text.lower() in TRUTHY_VALUES


def is_falsy(value: Any) -> bool:
    return not is_truthy(value)
