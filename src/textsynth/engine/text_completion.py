"""Text completion requests, including streamed completions."""

import logging
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from ..core import decode_json, parse_model
from .definition import Definition

if TYPE_CHECKING:
    from . import Engine

logger = logging.getLogger(__name__)

TOP_K_MIN = 1
TOP_K_MAX = 1000
MAX_STOP_STRINGS = 5
STREAM_SEPARATOR = b"\n\n"


def require_int(name: str, value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")


def require_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{name} must be a boolean, got {type(value).__name__}")
    return value


@dataclass(frozen=True, order=True)
class MaxTokens:
    """Maximum number of tokens to generate.

    A token is typically 4 or 5 characters for latin scripts. The prompt
    plus the generated text cannot exceed the engine's context length, so
    the valid range depends on the engine definition.

    Args:
        value: Number of tokens, between 1 and the engine's max_tokens
        engine_definition: Engine the value is checked against
    """

    value: int
    engine_definition: Definition = field(compare=False, repr=False)

    def __post_init__(self) -> None:
        """Validate max tokens against the engine definition."""
        require_int("max_tokens", self.value)
        limit = self.engine_definition.max_tokens
        if not 1 <= self.value <= limit:
            raise ValueError(f"max_tokens must be between 1 and {limit}")

    def inner(self) -> int:
        return self.value


@dataclass(frozen=True, order=True)
class TopP:
    """Nucleus sampling threshold.

    The next token is picked among the most probable ones whose cumulative
    probability exceeds ``top_p``. Higher values give more diversity but
    potentially less relevant output.
    """

    value: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.value <= 1.0:
            raise ValueError("top_p must be between 0.0 and 1.0")


@dataclass(frozen=True, order=True)
class TopK:
    """Pick the next token among the ``top_k`` most likely ones."""

    value: int

    def __post_init__(self) -> None:
        require_int("top_k", self.value)
        if not TOP_K_MIN <= self.value <= TOP_K_MAX:
            raise ValueError(f"top_k must be between {TOP_K_MIN} and {TOP_K_MAX}")


@dataclass(frozen=True)
class Stop:
    """Strings which stop the generation when encountered.

    The generated text does not contain the stop string itself.
    """

    strings: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "strings", tuple(self.strings))
        if not self.strings:
            raise ValueError("stop must contain at least one string")
        if len(self.strings) > MAX_STOP_STRINGS:
            raise ValueError(
                f"stop cannot contain more than {MAX_STOP_STRINGS} strings"
            )

    @classmethod
    def of(cls, value: "Stop | str | Iterable[str]") -> "Stop":
        if isinstance(value, Stop):
            return value
        if isinstance(value, str):
            return cls((value,))
        return cls(tuple(value))


@dataclass(frozen=True)
class TextCompletionRequest:
    prompt: str
    max_tokens: MaxTokens | None = None
    temperature: float | None = None
    top_k: TopK | None = None
    top_p: TopP | None = None
    stream: bool | None = None
    stop: Stop | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON body, leaving out unset fields."""
        body: dict[str, Any] = {"prompt": self.prompt}
        if self.max_tokens is not None:
            body["max_tokens"] = self.max_tokens.value
        if self.temperature is not None:
            body["temperature"] = self.temperature
        if self.top_k is not None:
            body["top_k"] = self.top_k.value
        if self.top_p is not None:
            body["top_p"] = self.top_p.value
        if self.stream is not None:
            body["stream"] = self.stream
        if self.stop is not None:
            body["stop"] = list(self.stop.strings)
        return body


@dataclass(frozen=True)
class TextCompletion:
    """A text completion response from the API.

    Args:
        text: Generated text
        reached_end: True if this is the last answer, only meaningful for
            streamed completions
        truncated_prompt: True if the prompt was longer than the engine's
            context length and only its end was used
        total_tokens: Prompt plus generated tokens. None on streamed chunks
            before the final one
    """

    text: str
    reached_end: bool
    truncated_prompt: bool = False
    total_tokens: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TextCompletion":
        total_tokens = data.get("total_tokens")
        return cls(
            text=str(data["text"]),
            reached_end=require_bool("reached_end", data["reached_end"]),
            truncated_prompt=require_bool(
                "truncated_prompt", data.get("truncated_prompt") or False
            ),
            total_tokens=int(total_tokens) if total_tokens is not None else None,
        )


async def split_stream(chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """Reassemble blank-line separated JSON documents from raw network reads."""
    buffer = b""
    async for data in chunks:
        buffer += data
        while STREAM_SEPARATOR in buffer:
            document, buffer = buffer.split(STREAM_SEPARATOR, 1)
            if document.strip():
                yield document
    if buffer.strip():
        yield buffer


@dataclass
class TextCompletionBuilder:
    """Builder for a text completion request.

    Setters return a new builder, leaving this one untouched.

    Example:
        completion = await (
            engine.text_completion("fn main() {")
            .max_tokens(128)
            .temperature(0.5)
            .now()
        )
    """

    engine: "Engine"
    prompt: str
    max_tokens_: MaxTokens | None = None
    temperature_: float | None = None
    top_k_: TopK | None = None
    top_p_: TopP | None = None

    def max_tokens(self, max_tokens: "MaxTokens | int") -> "TextCompletionBuilder":
        """Set the maximum number of tokens to generate. See ``MaxTokens``."""
        if not isinstance(max_tokens, MaxTokens):
            max_tokens = MaxTokens(max_tokens, self.engine.definition)
        return replace(self, max_tokens_=max_tokens)

    def temperature(self, temperature: float) -> "TextCompletionBuilder":
        """Set the sampling temperature.

        A higher temperature selects less common tokens, giving more
        diversity but potentially less relevant output. Tuning top_p or
        top_k is usually better.
        """
        return replace(self, temperature_=float(temperature))

    def top_k(self, top_k: "TopK | int") -> "TextCompletionBuilder":
        if not isinstance(top_k, TopK):
            top_k = TopK(top_k)
        return replace(self, top_k_=top_k)

    def top_p(self, top_p: "TopP | float") -> "TextCompletionBuilder":
        if not isinstance(top_p, TopP):
            top_p = TopP(top_p)
        return replace(self, top_p_=top_p)

    @property
    def path(self) -> str:
        return f"engines/{self.engine.definition.id}/completions"

    def request(
        self, stream: bool | None = None, stop: Stop | None = None
    ) -> TextCompletionRequest:
        return TextCompletionRequest(
            prompt=self.prompt,
            max_tokens=self.max_tokens_,
            temperature=self.temperature_,
            top_k=self.top_k_,
            top_p=self.top_p_,
            stream=stream,
            stop=stop,
        )

    async def _now(self, stop: Stop | None) -> TextCompletion:
        data = await self.engine.text_synth.post(
            self.path, self.request(stop=stop).to_dict()
        )
        return parse_model(TextCompletion, data)

    async def now(self) -> TextCompletion:
        """Generate a text completion now.

        Raises:
            APIError: If the API returned an error
            TextSynthAuthError: If the API key was rejected
            TextSynthConnectionError: If the API could not be reached
            InvalidResponseError: If the response could not be decoded
        """
        return await self._now(None)

    async def now_until(self, stop: "Stop | str | Iterable[str]") -> TextCompletion:
        """Generate a text completion now, stopping at any of the given strings."""
        return await self._now(Stop.of(stop))

    async def stream(self) -> AsyncIterator[TextCompletion]:
        """Stream a text completion chunk by chunk.

        The request is sent when iteration starts. Every chunk but the
        last has ``total_tokens`` set to None.

        Raises:
            APIError: If the API returned an error, before or mid-stream
            TextSynthConnectionError: If the connection failed
            InvalidResponseError: If a chunk could not be decoded
        """
        text_synth = self.engine.text_synth
        count = 0
        async with text_synth.stream_post(
            self.path, self.request(stream=True).to_dict()
        ) as response:
            async for document in split_stream(response.aiter_bytes()):
                count += 1
                yield parse_model(TextCompletion, decode_json(200, document))
        logger.debug(f"Received {count} streamed completions from {self.path}")
