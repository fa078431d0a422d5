"""Unit tests for the one-shot API helpers."""

import json

import httpx
import pytest
from respx import MockRouter

import textsynth
from textsynth.api import complete, log_probabilities
from textsynth.errors import TextSynthAuthError

from test_helpers import BASE_URL


class TestComplete:
    """Test complete() parameter handling."""

    @pytest.mark.asyncio
    async def test_complete_with_defaults(self, respx_mock: MockRouter) -> None:
        route = respx_mock.post(f"{BASE_URL}/engines/gptj_6B/completions").mock(
            return_value=httpx.Response(
                200, json={"text": "!", "reached_end": True, "total_tokens": 3}
            )
        )

        completion = await complete("Hello", api_key="test_key")

        assert completion.text == "!"
        assert json.loads(route.calls.last.request.content) == {"prompt": "Hello"}

    @pytest.mark.asyncio
    async def test_complete_passes_parameters(self, respx_mock: MockRouter) -> None:
        route = respx_mock.post(f"{BASE_URL}/engines/boris_6B/completions").mock(
            return_value=httpx.Response(
                200, json={"text": " monde", "reached_end": True, "total_tokens": 4}
            )
        )

        await complete(
            "Bonjour le",
            engine="boris_6B",
            api_key="test_key",
            max_tokens=10,
            temperature=0.7,
            top_k=20,
            top_p=0.8,
            stop="\n",
        )

        assert json.loads(route.calls.last.request.content) == {
            "prompt": "Bonjour le",
            "max_tokens": 10,
            "temperature": 0.7,
            "top_k": 20,
            "top_p": 0.8,
            "stop": ["\n"],
        }

    @pytest.mark.asyncio
    async def test_complete_without_api_key_raises_auth_error(self) -> None:
        with pytest.raises(TextSynthAuthError):
            await complete("Hello")

    @pytest.mark.asyncio
    async def test_complete_validates_max_tokens_for_engine(self) -> None:
        with pytest.raises(ValueError):
            await complete("Hello", engine="boris_6B", api_key="test_key", max_tokens=2048)


class TestLogProbabilities:
    """Test log_probabilities() helper."""

    @pytest.mark.asyncio
    async def test_log_probabilities(self, respx_mock: MockRouter) -> None:
        respx_mock.post(f"{BASE_URL}/engines/gptj_6B/logprob").mock(
            return_value=httpx.Response(
                200, json={"logprob": -0.5, "is_greedy": True, "total_tokens": 5}
            )
        )

        result = await log_probabilities("The quick brown", " fox", api_key="test_key")

        assert result.is_greedy is True
        assert result.log_probability == -0.5


def test_helpers_are_exported_lazily() -> None:
    assert textsynth.complete is complete
    assert textsynth.log_probabilities is log_probabilities


def test_unknown_attribute_raises() -> None:
    with pytest.raises(AttributeError):
        textsynth.missing  # noqa: B018
