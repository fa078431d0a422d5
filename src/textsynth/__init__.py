"""textsynth - unofficial async client for the TextSynth text synthesis API."""

from .core import TextSynth
from .engine import (
    CustomEngineDefinition,
    Engine,
    EngineDefinition,
    LogProbabilities,
    TextCompletion,
)
from .errors import (
    APIError,
    InvalidResponseError,
    TextSynthAuthError,
    TextSynthConnectionError,
    TextSynthError,
)

__version__ = "0.1.0"
__all__ = [
    "APIError",
    "CustomEngineDefinition",
    "Engine",
    "EngineDefinition",
    "InvalidResponseError",
    "LogProbabilities",
    "TextCompletion",
    "TextSynth",
    "TextSynthAuthError",
    "TextSynthConnectionError",
    "TextSynthError",
    "complete",
    "log_probabilities",
]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name in ("complete", "log_probabilities"):
        from . import api

        return getattr(api, name)
    raise AttributeError(f"module 'textsynth' has no attribute {name!r}")
