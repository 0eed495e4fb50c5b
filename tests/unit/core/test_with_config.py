"""
Unit tests for scoped overrides.
"""

import pytest

from strictconf.core.hooks import RegistryHooks
from strictconf.core.registry import Registry
from strictconf.core.state import InitializationState
from strictconf.errors.errors import UnknownVariableError, UnsupportedTypeError
from tests.fixtures.fixtures import registry, registry_for  # noqa: F401


class TestWithConfig:
    """Tests for Registry.with_config()."""

    def test_override_and_restore(self, registry: Registry) -> None:
        registry.store("lang", "en-GB")
        with registry.with_config({"lang": "pt"}):
            assert registry.get("lang") == "pt"
        assert registry.get("lang") == "en-GB"

    def test_values_are_coerced(self, registry: Registry) -> None:
        with registry.with_config(debug=True, workers=2):
            assert registry.get("debug") == "true"
            assert registry.get("workers") == "2"
            assert registry.is_true("debug")

    def test_restores_after_exception(self, registry: Registry) -> None:
        registry.store("lang", "en-GB")
        with pytest.raises(RuntimeError, match="inside block"):
            with registry.with_config({"lang": "pt"}):
                raise RuntimeError("inside block")
        assert registry.get("lang") == "en-GB"
        assert registry.override_depth == 0

    def test_restores_never_stored_key_to_default(self, registry: Registry) -> None:
        with registry.with_config(lang="pt"):
            assert registry.get("lang") == "pt"
        assert registry.get("lang") == "en"
        registry.store("lang", "de")
        assert registry.get("lang") == "de"

    def test_restores_stored_absent(self, registry: Registry) -> None:
        registry.store("lang", None)
        with registry.with_config(lang="pt"):
            pass
        assert registry.get("lang") is None

    def test_override_with_none(self, registry: Registry) -> None:
        with registry.with_config(lang=None):
            assert registry.get("lang") is None
        assert registry.get("lang") == "en"

    def test_nested_same_key(self, registry: Registry) -> None:
        registry.store("lang", "en")
        with registry.with_config(lang="pt"):
            with registry.with_config(lang="de"):
                assert registry.get("lang") == "de"
                assert registry.override_depth == 2
            assert registry.get("lang") == "pt"
        assert registry.get("lang") == "en"
        assert registry.override_depth == 0

    def test_nested_failure_restores_each_level(self, registry: Registry) -> None:
        with registry.with_config(lang="pt", workers=1):
            with pytest.raises(ValueError):
                with registry.with_config(lang="de"):
                    raise ValueError("inner")
            assert registry.get("lang") == "pt"
            assert registry.get("workers") == "1"
        assert registry.get("lang") == "en"
        assert registry.get("workers") == "4"

    def test_store_inside_block_is_reverted(self, registry: Registry) -> None:
        with registry.with_config(lang="pt"):
            registry.store("lang", "fr")
        assert registry.get("lang") == "en"

    def test_yields_registry(self, registry: Registry) -> None:
        with registry.with_config(lang="pt") as cfg:
            assert cfg is registry

    def test_as_decorator(self, registry: Registry) -> None:
        @registry.with_config(lang="pt")
        def read_lang():
            return registry.get("lang")

        assert read_lang() == "pt"
        assert read_lang() == "pt"
        assert registry.get("lang") == "en"


class TestWithConfigValidation:
    """Invalid overrides fail before anything is written."""

    def test_unknown_key(self, registry: Registry) -> None:
        with pytest.raises(UnknownVariableError):
            with registry.with_config({"lang": "pt", "nope": "x"}):
                pytest.fail("block must not run")
        assert registry.get("lang") == "en"
        assert registry.override_depth == 0

    def test_composite_value(self, registry: Registry) -> None:
        with pytest.raises(UnsupportedTypeError):
            with registry.with_config({"lang": "pt", "workers": [1, 2]}):
                pytest.fail("block must not run")
        assert registry.get("lang") == "en"


class TestWithConfigDeferred:
    """Overrides on a registry that is still waiting to populate."""

    def test_deferred_population_runs_before_override(self, registry: Registry) -> None:
        registry.initialize_deferred("populate", lang="de", workers=8)
        with registry.with_config(lang="pt"):
            assert registry.get("lang") == "pt"
            assert registry.get("workers") == "8"
        assert registry.get("lang") == "de"

    def test_override_behind_closed_gate_survives_population(self) -> None:
        gate_open = []
        reg = registry_for(hooks=RegistryHooks(deferred_gate=lambda: bool(gate_open)))
        reg.initialize_deferred("populate", lang="de", workers=8)

        with reg.with_config(lang="pt"):
            gate_open.append(True)
            assert reg.get("lang") == "pt"
            assert reg.get("workers") == "8"
            assert reg.state is InitializationState.INITIALIZED
        assert reg.get("lang") == "de"
        assert reg.override_depth == 0

    def test_nested_overrides_restore_populated_value(self) -> None:
        gate_open = []
        reg = registry_for(hooks=RegistryHooks(deferred_gate=lambda: bool(gate_open)))
        reg.initialize_deferred("populate", lang="de")

        with reg.with_config(lang="pt"):
            with reg.with_config(lang="fr"):
                gate_open.append(True)
                assert reg.get("lang") == "fr"
            assert reg.get("lang") == "pt"
        assert reg.get("lang") == "de"
