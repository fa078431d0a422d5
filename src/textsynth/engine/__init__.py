"""Engines used for synthesizing text.

An ``Engine`` binds a ``TextSynth`` client to an engine definition and is
the entry point for completion and log probability requests.
"""

import logging
from typing import TYPE_CHECKING

from ..core import parse_model
from .definition import (
    CustomEngineDefinition,
    Definition,
    EngineDefinition,
    EngineRegistry,
)
from .log_probabilities import (
    LogProbabilities,
    LogProbabilitiesRequest,
    NonEmptyString,
)
from .text_completion import (
    MaxTokens,
    Stop,
    TextCompletion,
    TextCompletionBuilder,
    TopK,
    TopP,
)

if TYPE_CHECKING:
    from ..core import TextSynth

logger = logging.getLogger(__name__)

__all__ = [
    "CustomEngineDefinition",
    "Engine",
    "EngineDefinition",
    "EngineRegistry",
    "LogProbabilities",
    "MaxTokens",
    "NonEmptyString",
    "Stop",
    "TextCompletion",
    "TextCompletionBuilder",
    "TopK",
    "TopP",
]


class Engine:
    """An engine which will be used for synthesizing text."""

    def __init__(self, text_synth: "TextSynth", definition: Definition) -> None:
        """Initialize engine.

        Args:
            text_synth: Client used to make HTTP requests to the API
            definition: Definition of the engine
        """
        self.text_synth = text_synth
        self.definition = definition

    def __repr__(self) -> str:
        return f"Engine(definition={self.definition!r})"

    async def log_probabilities(
        self, context: str, continuation: str
    ) -> LogProbabilities:
        """Compute the log probability of ``continuation`` following ``context``.

        Args:
            context: Preceding text. If empty, the End-Of-Text token is used
            continuation: Text to score, must not be empty

        Returns:
            LogProbabilities of the continuation

        Raises:
            ValueError: If continuation is empty
            APIError: If the API returned an error
            TextSynthConnectionError: If the API could not be reached
        """
        request = LogProbabilitiesRequest(context, NonEmptyString(continuation))
        path = f"engines/{self.definition.id}/logprob"
        logger.debug(f"Requesting log probabilities from {path}")
        data = await self.text_synth.post(path, request.to_dict())
        return parse_model(LogProbabilities, data)

    def text_completion(self, prompt: str) -> TextCompletionBuilder:
        """Create a builder for text completion."""
        return TextCompletionBuilder(self, prompt)
