"""Engine definitions.

An engine is a hosted language model addressed by its id in the request URL.
The engines known to this package are exposed through ``EngineDefinition``;
anything else can be described with a ``CustomEngineDefinition``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Protocol

DEFAULT_MAX_TOKENS = 1024


class Definition(Protocol):
    """Anything that names an engine and its context length."""

    @property
    def id(self) -> str: ...

    @property
    def max_tokens(self) -> int: ...


@dataclass(frozen=True, order=True)
class CustomEngineDefinition:
    """A custom engine definition which may or may not exist.

    Args:
        id: Engine id used in the request URL
        max_tokens: Maximum context length of the engine in tokens
    """

    id: str
    max_tokens: int = DEFAULT_MAX_TOKENS

    def __post_init__(self) -> None:
        """Validate engine definition."""
        if not self.id or not self.id.strip():
            raise ValueError("id cannot be empty")
        if self.max_tokens < 1:
            raise ValueError("max_tokens must be positive")

    def to_custom_engine_definition(self) -> "CustomEngineDefinition":
        return self


class EngineDefinition(Enum):
    """Engine definitions supported by this package."""

    # GPT-J is a 6 billion parameter model trained on the Pile by EleutherAI.
    # Mainly English, fluent in several other natural and computer languages.
    GPTJ_6B = CustomEngineDefinition("gptj_6B", 2048)

    # Boris is a fine tuned GPT-J for French.
    BORIS_6B = CustomEngineDefinition("boris_6B")

    # Fairseq GPT 13B, English only. Support is experimental upstream and
    # may stop working without notice.
    FAIRSEQ_GPT_13B = CustomEngineDefinition("fairseq_gpt_13B")

    @property
    def id(self) -> str:
        return self.value.id

    @property
    def max_tokens(self) -> int:
        return self.value.max_tokens

    def to_custom_engine_definition(self) -> CustomEngineDefinition:
        """Convert this engine definition into a ``CustomEngineDefinition``."""
        return self.value


class EngineRegistry:
    """Registry of engine definitions addressable by id."""

    _definitions: ClassVar[dict[str, Definition]] = {}

    @classmethod
    def register(cls, definition: Definition) -> None:
        """Register an engine definition under its id.

        Args:
            definition: Known or custom engine definition
        """
        cls._definitions[definition.id] = definition

    @classmethod
    def get(cls, engine_id: str) -> Definition:
        """Get an engine definition by id.

        Raises:
            KeyError: If the id is not registered
        """
        if engine_id not in cls._definitions:
            available = (
                ", ".join(cls._definitions.keys()) if cls._definitions else "none"
            )
            raise KeyError(
                f"Engine '{engine_id}' not found. Available engines: {available}"
            )
        return cls._definitions[engine_id]

    @classmethod
    def list(cls) -> list[Definition]:
        return list(cls._definitions.values())

    @classmethod
    def resolve(
        cls, value: "str | Definition", max_tokens: int | None = None
    ) -> Definition:
        """Turn an engine id or definition into a definition object.

        Unregistered ids are accepted only when ``max_tokens`` is given, in
        which case a ``CustomEngineDefinition`` is built for them.

        Raises:
            KeyError: If ``value`` is an unknown id and no max_tokens is given
        """
        if not isinstance(value, str):
            return value
        if max_tokens is not None:
            return CustomEngineDefinition(value, max_tokens)
        return cls.get(value)


for _known in EngineDefinition:
    EngineRegistry.register(_known)
