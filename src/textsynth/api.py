"""High-level API for one-off textsynth requests."""

from collections.abc import Iterable

from .core import TextSynth
from .engine import LogProbabilities, TextCompletion
from .engine.definition import Definition


async def complete(
    prompt: str,
    engine: Definition | str = "gptj_6B",
    api_key: str | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
    top_k: int | None = None,
    top_p: float | None = None,
    stop: str | Iterable[str] | None = None,
) -> TextCompletion:
    """Complete a prompt with a single request.

    Args:
        prompt: Text to complete
        engine: Engine definition or id
        api_key: TextSynth API key (falls back to TEXTSYNTH_API_KEY)
        max_tokens: Maximum number of tokens to generate
        temperature: Sampling temperature
        top_k: Sample among the top_k most likely tokens (1-1000)
        top_p: Nucleus sampling threshold (0.0-1.0)
        stop: Up to 5 strings which stop the generation

    Returns:
        The generated TextCompletion

    Raises:
        TextSynthAuthError: If API key is not configured or rejected
        APIError: If the API returned an error
        TextSynthConnectionError: If the API could not be reached
        ValueError: If a sampling parameter is out of range
        KeyError: If the engine id is unknown
    """
    async with TextSynth(api_key=api_key) as text_synth:
        builder = text_synth.engine(engine).text_completion(prompt)
        if max_tokens is not None:
            builder = builder.max_tokens(max_tokens)
        if temperature is not None:
            builder = builder.temperature(temperature)
        if top_k is not None:
            builder = builder.top_k(top_k)
        if top_p is not None:
            builder = builder.top_p(top_p)

        if stop is not None:
            return await builder.now_until(stop)
        return await builder.now()


async def log_probabilities(
    context: str,
    continuation: str,
    engine: Definition | str = "gptj_6B",
    api_key: str | None = None,
) -> LogProbabilities:
    """Score ``continuation`` after ``context`` with a single request.

    Raises:
        TextSynthAuthError: If API key is not configured or rejected
        APIError: If the API returned an error
        ValueError: If continuation is empty
    """
    async with TextSynth(api_key=api_key) as text_synth:
        return await text_synth.engine(engine).log_probabilities(context, continuation)
