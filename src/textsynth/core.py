"""Core functionality for textsynth - the HTTP client bound to an API key."""

import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

import httpx

from .errors import (
    APIError,
    InvalidResponseError,
    TextSynthAuthError,
    TextSynthConnectionError,
    TextSynthError,
)

if TYPE_CHECKING:
    from .engine import Engine
    from .engine.definition import Definition

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.textsynth.com"
DEFAULT_TIMEOUT = 60.0
AUTH_STATUS_CODES = (401, 403)


class _FromDict(Protocol):
    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Any: ...


M = TypeVar("M", bound=_FromDict)


def api_error(status_code: int, payload: dict[str, Any] | None = None) -> TextSynthError:
    """Map an error status, and the error object of the API if any, to an exception."""
    if payload is not None and "error" in payload:
        status = payload.get("status")
        if not isinstance(status, int) or isinstance(status, bool):
            status = status_code
        error = APIError(str(payload["error"]), status)
    else:
        error = APIError(httpx.codes.get_reason_phrase(status_code), status_code)

    if error.status_code in AUTH_STATUS_CODES:
        return TextSynthAuthError(f"Authentication failed: {error}", error)
    return error


def decode_json(status_code: int, body: bytes) -> dict[str, Any]:
    """Decode a response body, raising for error objects and error statuses.

    Raises:
        APIError: If the body is an error object or the status is an error
        TextSynthAuthError: If the API key was rejected
        InvalidResponseError: If a successful response is not a JSON object
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        if status_code >= 400:
            raise api_error(status_code) from e
        raise InvalidResponseError(f"Invalid JSON from TextSynth API: {e}", e) from e

    if isinstance(data, dict) and "error" in data:
        logger.debug(f"API returned error object: {data}")
        raise api_error(status_code, data)
    if status_code >= 400:
        raise api_error(status_code)
    if not isinstance(data, dict):
        raise InvalidResponseError(
            f"Expected a JSON object from TextSynth API, got {type(data).__name__}"
        )
    return data


def parse_model(model: type[M], data: dict[str, Any]) -> M:
    """Build a response model, reporting missing or mistyped keys."""
    try:
        return model.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidResponseError(
            f"Unexpected {model.__name__} response from TextSynth API: {e!r}", e
        ) from e


class TextSynth:
    """Client for the TextSynth API.

    Holds the API key and the HTTP client used for every request. Use it as
    an async context manager, or call ``aclose()`` when done.

    Example:
        async with TextSynth() as text_synth:
            engine = text_synth.engine(EngineDefinition.GPTJ_6B)
            completion = await engine.text_completion("Hello").now()
    """

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize TextSynth client.

        Args:
            api_key: TextSynth API key. If not provided, reads from
                    TEXTSYNTH_API_KEY environment variable.
            client: HTTP client to make requests with. If not provided, one
                    is created and closed together with this instance.
            base_url: API root. Defaults to TEXTSYNTH_BASE_URL or the
                    public endpoint.
            timeout: Request timeout in seconds for the created client,
                    DEFAULT_TIMEOUT if not provided. Ignored when a client
                    is given, configure the timeout on that client instead.

        Raises:
            TextSynthAuthError: If API key is not provided.
            TextSynthError: If the HTTP client cannot be created.
        """
        self._api_key = api_key or os.getenv("TEXTSYNTH_API_KEY")
        if not self._api_key:
            raise TextSynthAuthError(
                "TextSynth API key not found. Set TEXTSYNTH_API_KEY environment "
                "variable or provide api_key parameter."
            )

        self.base_url = (
            base_url or os.getenv("TEXTSYNTH_BASE_URL") or DEFAULT_BASE_URL
        ).rstrip("/")

        self._owns_client = client is None
        if client is None:
            try:
                client = httpx.AsyncClient(
                    timeout=timeout if timeout is not None else DEFAULT_TIMEOUT
                )
            except Exception as e:
                raise TextSynthError(f"Failed to create HTTP client: {e}", e) from e
        self.client = client

    @property
    def api_key(self) -> str:
        return self._api_key

    def __repr__(self) -> str:
        return f"TextSynth(base_url={self.base_url!r})"

    async def __aenter__(self) -> "TextSynth":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if it was created by this instance."""
        if self._owns_client:
            await self.client.aclose()

    def engine(
        self,
        definition: "Definition | str",
        max_tokens: int | None = None,
    ) -> "Engine":
        """Create an engine from a definition or an engine id.

        Args:
            definition: Known or custom engine definition, or an engine id
            max_tokens: Context length, required for unregistered ids

        Raises:
            KeyError: If an unregistered id is given without max_tokens
        """
        from .engine import Engine
        from .engine.definition import EngineRegistry

        return Engine(self, EngineRegistry.resolve(definition, max_tokens))

    def url(self, path: str) -> str:
        return f"{self.base_url}/v1/{path.lstrip('/')}"

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    async def post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON payload and return the decoded JSON object.

        Raises:
            APIError: If the API returned an error
            TextSynthAuthError: If the API key was rejected
            TextSynthConnectionError: If the request failed on the network level
            InvalidResponseError: If the response is not a JSON object
        """
        url = self.url(path)
        logger.debug(f"POST {url}")
        try:
            response = await self.client.post(url, json=payload, headers=self.headers)
        except httpx.HTTPError as e:
            raise TextSynthConnectionError(
                f"Failed to connect to TextSynth API: {e}", e
            ) from e

        logger.debug(f"POST {url} -> {response.status_code}")
        return decode_json(response.status_code, response.content)

    @asynccontextmanager
    async def stream_post(
        self, path: str, payload: dict[str, Any]
    ) -> AsyncIterator[httpx.Response]:
        """POST a JSON payload and yield the response while it is streamed.

        Error statuses are decoded and raised before anything is yielded.
        Network failures while reading the body raise
        ``TextSynthConnectionError``.
        """
        url = self.url(path)
        logger.debug(f"POST {url} (streamed)")
        try:
            async with self.client.stream(
                "POST", url, json=payload, headers=self.headers
            ) as response:
                logger.debug(f"POST {url} -> {response.status_code}")
                if response.is_error:
                    decode_json(response.status_code, await response.aread())
                yield response
        except httpx.HTTPError as e:
            raise TextSynthConnectionError(
                f"Failed to connect to TextSynth API: {e}", e
            ) from e
