"""Result values, token accounting and errors for the OpenAI Responses bridge."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token accounting for a single response.

    Every field is ``None`` when the response did not report it.
    """

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    thinking_tokens: int | None = None
    cached_tokens: int | None = None
    remaining_tokens: int | None = None
    total_tokens: int | None = None


@dataclass(frozen=True, slots=True)
class TextResult:
    content: str


@dataclass(frozen=True, slots=True)
class ToolCall:
    """Function call requested by the model, with decoded arguments."""

    id: str
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise ValueError("tool call id cannot be empty")
        if not self.name.strip():
            raise ValueError("tool call name cannot be empty")


@dataclass(frozen=True, slots=True)
class ToolCallResult:
    content: tuple[ToolCall, ...]

    def __post_init__(self) -> None:
        if not self.content:
            raise ValueError("tool call result needs at least one tool call")


@dataclass(frozen=True, slots=True)
class ChoiceResult:
    """Several output items returned by one response, in response order."""

    content: tuple[TextResult | ToolCallResult, ...]

    def __post_init__(self) -> None:
        if len(self.content) < 2:
            raise ValueError("choice result needs at least two choices")


StreamChunk: TypeAlias = str | ToolCallResult | TokenUsage


class StreamResult:
    """Single-pass async sequence of text fragments and a terminal TokenUsage."""

    __slots__ = ("_content", "_consumed")

    def __init__(self, content: AsyncIterator[StreamChunk]) -> None:
        self._content = content
        self._consumed = False

    @property
    def content(self) -> AsyncIterator[StreamChunk]:
        if self._consumed:
            raise RuntimeError("stream result can only be iterated once")
        self._consumed = True
        return self._content

    def __aiter__(self) -> AsyncIterator[StreamChunk]:
        return self.content

    async def aclose(self) -> None:
        """Stop the stream without pulling further events."""

        self._consumed = True
        aclose = getattr(self._content, "aclose", None)
        if callable(aclose):
            await aclose()


Result: TypeAlias = TextResult | ToolCallResult | ChoiceResult | StreamResult


class ApiError(Exception):
    """Base class for API-related errors."""


class ApiAuthError(ApiError):
    """Authentication failed (HTTP 401)."""


class ApiBadRequestError(ApiError):
    """Request rejected as malformed (HTTP 400)."""


class ContentFilterError(ApiError):
    """Upstream content filter rejected the prompt or the completion."""


class ApiRuntimeError(ApiError, RuntimeError):
    """Any other API error, or a response without usable output."""


class ResponseDecodeError(ApiError):
    """Raised by an eager decode when the body is an error or not JSON."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StreamingParseError(ApiError):
    """Raised when a streaming chunk cannot be parsed."""


__all__ = [
    "ApiAuthError",
    "ApiBadRequestError",
    "ApiError",
    "ApiRuntimeError",
    "ChoiceResult",
    "ContentFilterError",
    "Result",
    "ResponseDecodeError",
    "StreamChunk",
    "StreamResult",
    "StreamingParseError",
    "TextResult",
    "TokenUsage",
    "ToolCall",
    "ToolCallResult",
]
