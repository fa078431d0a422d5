"""Log probability scoring of a continuation given a context."""

from dataclasses import dataclass
from typing import Any

from .text_completion import require_bool


class NonEmptyString(str):
    """A string which is guaranteed not to be empty."""

    def __new__(cls, value: str) -> "NonEmptyString":
        if not value:
            raise ValueError("string cannot be empty")
        return super().__new__(cls, value)


@dataclass(frozen=True)
class LogProbabilitiesRequest:
    """Body of a ``logprob`` request.

    Args:
        context: If empty, the context is the End-Of-Text token
        continuation: Text to score, must not be empty
    """

    context: str
    continuation: NonEmptyString

    def __post_init__(self) -> None:
        if not isinstance(self.continuation, NonEmptyString):
            object.__setattr__(
                self, "continuation", NonEmptyString(self.continuation)
            )

    def to_dict(self) -> dict[str, Any]:
        return {"context": self.context, "continuation": str(self.continuation)}


@dataclass(frozen=True)
class LogProbabilities:
    """Log probability of a continuation.

    Args:
        log_probability: Logarithm of the probability of generating the
            continuation after the context
        is_greedy: True if the continuation would be generated by greedy
            sampling from the context
        total_tokens: Total number of tokens of the context and continuation
    """

    log_probability: float
    is_greedy: bool
    total_tokens: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogProbabilities":
        """Build from the API response, where the log probability is ``logprob``."""
        return cls(
            log_probability=float(data["logprob"]),
            is_greedy=require_bool("is_greedy", data["is_greedy"]),
            total_tokens=int(data["total_tokens"]),
        )
