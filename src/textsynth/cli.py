"""Typer CLI definition for textsynth."""

import asyncio
import logging
import sys
from typing import NoReturn

import typer

from .config import load_config
from .core import TextSynth
from .engine import Engine, LogProbabilities, TextCompletion
from .engine.definition import EngineRegistry
from .errors import (
    APIError,
    InvalidResponseError,
    TextSynthAuthError,
    TextSynthConnectionError,
)

app = typer.Typer(help="Synthesize text with the TextSynth API")

API_KEY_OPTION = typer.Option(
    None, "--api-key", help="TextSynth API key (TEXTSYNTH_API_KEY if omitted)"
)
ENGINE_OPTION = typer.Option(
    None, "-e", "--engine", help="Engine id (from config if omitted)"
)
DEBUG_OPTION = typer.Option(
    False, "--debug", help="Show verbose error messages and request logging"
)


def configure_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


def join_prompt(words: list[str] | None) -> str:
    """Join prompt words from the command line, falling back to stdin.

    Raises:
        ValueError: If no prompt is provided
    """
    if words:
        return " ".join(words)
    if not sys.stdin.isatty():
        text = sys.stdin.read().strip()
        if text:
            return text
    raise ValueError("No prompt provided")


def format_completion_summary(completion: TextCompletion) -> str:
    return (
        f"reached end = {completion.reached_end}, "
        f"total tokens = {completion.total_tokens}, "
        f"truncated prompt = {completion.truncated_prompt}"
    )


def format_log_probabilities(log_probabilities: LogProbabilities) -> str:
    return (
        f"log probability = {log_probabilities.log_probability}, "
        f"is greedy = {log_probabilities.is_greedy}, "
        f"total tokens = {log_probabilities.total_tokens}"
    )


def open_client(api_key: str | None, engine: str | None) -> tuple[TextSynth, Engine]:
    """Create a client and engine from flags, falling back to the config file."""
    config = load_config()
    definition = EngineRegistry.resolve(engine or config.completion.engine)
    text_synth = TextSynth(
        api_key=api_key or config.api_key,
        base_url=config.api.base_url,
        timeout=config.api.timeout,
    )
    return text_synth, text_synth.engine(definition)


def report_error(error: Exception, debug: bool) -> NoReturn:
    """Print an error the way every command reports failures, then exit 1."""
    if isinstance(error, TextSynthAuthError):
        label, message = "Authentication error", f"Error: {error}"
    elif isinstance(error, APIError):
        label, message = "TextSynth API error", f"Error: {error}"
    elif isinstance(error, TextSynthConnectionError):
        label, message = "Connection error", f"Error: {error}"
    elif isinstance(error, InvalidResponseError):
        label, message = "Invalid response", f"Error: {error}"
    elif isinstance(error, (ValueError, KeyError)):
        label, message = "Invalid input", f"Error: {error}"
    else:
        label, message = "Unexpected error", "Error: An unexpected error occurred"

    if debug:
        typer.echo(f"Debug - {label}: {error!r}", err=True)
    else:
        typer.echo(message, err=True)
    raise typer.Exit(1)


async def run_complete(
    text_synth: TextSynth,
    engine: Engine,
    prompt: str,
    max_tokens: int | None,
    temperature: float | None,
    top_k: int | None,
    top_p: float | None,
    stop: list[str] | None,
) -> TextCompletion:
    config = load_config().completion

    max_tokens = max_tokens if max_tokens is not None else config.max_tokens
    temperature = temperature if temperature is not None else config.temperature
    top_k = top_k if top_k is not None else config.top_k
    top_p = top_p if top_p is not None else config.top_p

    async with text_synth:
        builder = engine.text_completion(prompt)
        if max_tokens is not None:
            builder = builder.max_tokens(max_tokens)
        if temperature is not None:
            builder = builder.temperature(temperature)
        if top_k is not None:
            builder = builder.top_k(top_k)
        if top_p is not None:
            builder = builder.top_p(top_p)

        if stop:
            return await builder.now_until(stop)
        return await builder.now()


async def run_stream(
    text_synth: TextSynth, engine: Engine, prompt: str
) -> list[TextCompletion]:
    completions = []
    async with text_synth:
        async for completion in engine.text_completion(prompt).stream():
            typer.echo(completion.text, nl=False)
            completions.append(completion)
    typer.echo()
    return completions


async def run_logprob(
    text_synth: TextSynth, engine: Engine, context: str, continuation: str
) -> LogProbabilities:
    async with text_synth:
        return await engine.log_probabilities(context, continuation)


@app.command()
def complete(
    prompt: list[str] | None = typer.Argument(None, help="Prompt to complete"),
    max_tokens: int | None = typer.Option(
        None, "-n", "--max-tokens", help="Maximum number of tokens to generate"
    ),
    temperature: float | None = typer.Option(
        None, "-t", "--temperature", help="Sampling temperature"
    ),
    top_k: int | None = typer.Option(None, "--top-k", help="Top-k sampling (1-1000)"),
    top_p: float | None = typer.Option(
        None, "--top-p", help="Nucleus sampling threshold (0.0-1.0)"
    ),
    stop: list[str] | None = typer.Option(
        None, "-s", "--stop", help="Stop generating at this string (up to 5)"
    ),
    engine: str | None = ENGINE_OPTION,
    api_key: str | None = API_KEY_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Complete a prompt and print the result."""
    configure_logging(debug)
    try:
        text = join_prompt(prompt)
        text_synth, bound_engine = open_client(api_key, engine)
        typer.echo(text, nl=False)
        completion = asyncio.run(
            run_complete(
                text_synth,
                bound_engine,
                text,
                max_tokens,
                temperature,
                top_k,
                top_p,
                stop,
            )
        )
    except Exception as e:
        report_error(e, debug)

    typer.echo(completion.text)
    typer.echo(format_completion_summary(completion))


@app.command()
def stream(
    prompt: list[str] | None = typer.Argument(None, help="Prompt to complete"),
    engine: str | None = ENGINE_OPTION,
    api_key: str | None = API_KEY_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Complete a prompt, printing the text as it is generated."""
    configure_logging(debug)
    try:
        text = join_prompt(prompt)
        text_synth, bound_engine = open_client(api_key, engine)
        typer.echo(text, nl=False)
        completions = asyncio.run(run_stream(text_synth, bound_engine, text))
    except Exception as e:
        report_error(e, debug)

    for index, completion in enumerate(completions, 1):
        typer.echo(f"{index}. {format_completion_summary(completion)}")


@app.command()
def logprob(
    context: str = typer.Argument(..., help="Context, empty for End-Of-Text"),
    continuation: str = typer.Argument(..., help="Continuation to score"),
    engine: str | None = ENGINE_OPTION,
    api_key: str | None = API_KEY_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Print the log probability of a continuation after a context."""
    configure_logging(debug)
    try:
        text_synth, bound_engine = open_client(api_key, engine)
        result = asyncio.run(
            run_logprob(text_synth, bound_engine, context, continuation)
        )
    except Exception as e:
        report_error(e, debug)

    typer.echo(format_log_probabilities(result))


@app.command()
def engines() -> None:
    """List the engines known to textsynth."""
    for definition in EngineRegistry.list():
        typer.echo(f"{definition.id}: {definition.max_tokens}")
