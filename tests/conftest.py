"""Pytest configuration and fixtures for textsynth tests."""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from textsynth import config
from textsynth.core import TextSynth
from test_helpers import TEST_API_KEY


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path) -> None:
    """Keep tests away from the user's config file and TEXTSYNTH_* variables."""
    for name in (
        "TEXTSYNTH_API_KEY",
        "TEXTSYNTH_BASE_URL",
        "TEXTSYNTH_ENGINE",
        "TEXTSYNTH_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)

    config_dir = tmp_path / "config"
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_dir / "config.toml")
    monkeypatch.setattr(config, "_cached_config", None)


@pytest_asyncio.fixture
async def text_synth() -> AsyncIterator[TextSynth]:
    """Client with a fake key, for use with respx routes."""
    async with TextSynth(api_key=TEST_API_KEY) as client:
        yield client
