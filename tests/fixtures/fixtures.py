from pathlib import Path
from typing import Iterable

import pytest
from pydantic import BaseModel, Field

from strictconf.core.registry import Registry
from strictconf.core.schema import Schema

APP_DEFAULTS = {
    "lang": "en",
    "debug": False,
    "workers": 4,
    "api_token": None,
}

APP_DESCRIPTIONS = {
    "lang": "UI language code",
    "workers": "Number of worker processes",
}

APP_SCHEMA = Schema.declare(APP_DEFAULTS, APP_DESCRIPTIONS)


class AppSettings(BaseModel):
    lang: str = Field(default="en", description="UI language code")
    debug: bool = Field(default=False)
    timeout_s: float = Field(default=2.5, description="Request timeout in seconds")
    api_token: str = Field(description="Token for the upstream API")


def registry_for(defaults=APP_DEFAULTS, **kwargs) -> Registry:
    """
    Lazy factory to avoid sharing registries between tests.
    Prefer using the pytest fixtures below in tests.
    """
    return Registry(defaults, name="test", **kwargs)


@pytest.fixture
def registry() -> Iterable[Registry]:
    """
    Provides a fresh registry declared with APP_DEFAULTS.
    """
    reg = registry_for()
    try:
        yield reg
    finally:
        reg.reset()


def write_yaml(directory: Path, text: str, name: str = "config.yml") -> Path:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path
