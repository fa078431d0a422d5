"""Custom TextSynth exceptions."""

import httpx


class TextSynthError(Exception):
    """Base exception for TextSynth-related errors."""

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class TextSynthAuthError(TextSynthError):
    """Exception raised for authentication failures.

    This typically occurs when:
    - API key is missing
    - API key is rejected by the service (401/403)
    """

    pass


class TextSynthConnectionError(TextSynthError):
    """Exception raised when the API could not be reached on the network level."""

    pass


class InvalidResponseError(TextSynthError):
    """Exception raised when the API answered with something that is not
    the expected JSON document."""

    pass


class APIError(TextSynthError):
    """Exception raised when the API returned an error payload.

    The service reports failures as ``{"status": <int>, "error": <str>}``.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.status_code = status_code
        self.message = message

    @property
    def reason(self) -> str:
        """HTTP reason phrase for the status code, e.g. ``Bad Request``."""
        return httpx.codes.get_reason_phrase(self.status_code)

    def __str__(self) -> str:
        status = f"{self.status_code} {self.reason}".rstrip()
        return f"{status}, {self.message}"

    def __repr__(self) -> str:
        return f"APIError(status_code={self.status_code}, error={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, APIError):
            return NotImplemented
        return (self.status_code, self.message) == (other.status_code, other.message)

    def __hash__(self) -> int:
        return hash((self.status_code, self.message))
