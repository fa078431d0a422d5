"""Fixtures for tests against the live TextSynth API.

The API key is read from TEXTSYNTH_API_KEY, or from a .env file in the
working directory. Tests are skipped when it is absent. TIMEOUT optionally
bounds each request, in seconds.
"""

import os
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from dotenv import load_dotenv

from textsynth.core import TextSynth

load_dotenv()

# Captured at import, before the autouse fixture clears TEXTSYNTH_* variables.
LIVE_API_KEY = os.getenv("TEXTSYNTH_API_KEY")
LIVE_TIMEOUT = float(os.environ["TIMEOUT"]) if os.getenv("TIMEOUT") else None


def pytest_collection_modifyitems(config, items) -> None:
    if LIVE_API_KEY:
        return
    skip = pytest.mark.skip(reason="TEXTSYNTH_API_KEY not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest_asyncio.fixture
async def live_text_synth() -> AsyncIterator[TextSynth]:
    async with TextSynth(api_key=LIVE_API_KEY, timeout=LIVE_TIMEOUT) as client:
        yield client
