"""Token usage extraction from Responses API bodies and rate-limit headers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from gptbridge.config import ConvertOptions
from gptbridge.openai_client.raw import RawResult, TransportResponse
from gptbridge.openai_client.types import TokenUsage

REMAINING_TOKENS_HEADER = "x-ratelimit-remaining-tokens"


def first_header(headers: Mapping[str, Sequence[str]], name: str) -> str | None:
    values = headers.get(name.lower())
    if not values:
        return None
    return values[0]


def _dig(data: Mapping[str, Any], *path: str) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, Mapping) or key not in current:
            return None
        current = current[key]
    return current


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


class TokenUsageExtractor:
    """Build TokenUsage records from non-streaming results or raw usage data."""

    def extract(
        self, raw_result: RawResult, options: ConvertOptions | Mapping[str, Any] | None = None
    ) -> TokenUsage | None:
        # Streaming usage arrives inside the stream's completion event.
        if ConvertOptions.coerce(options).stream:
            return None

        response = raw_result.get_object()
        if not isinstance(response, TransportResponse):
            return None

        content = raw_result.get_data()
        if "usage" not in content:
            return None

        remaining_tokens = first_header(response.get_headers(), REMAINING_TOKENS_HEADER)
        return self.from_data(content, remaining_tokens)

    def from_data(self, data: Mapping[str, Any], remaining_tokens: str | None = None) -> TokenUsage:
        """Map a body holding a ``usage`` sub-document onto TokenUsage."""

        return TokenUsage(
            prompt_tokens=_dig(data, "usage", "input_tokens"),
            completion_tokens=_dig(data, "usage", "output_tokens"),
            thinking_tokens=_dig(data, "usage", "output_tokens_details", "reasoning_tokens"),
            cached_tokens=_dig(data, "usage", "input_tokens_details", "cached_tokens"),
            remaining_tokens=_to_int(remaining_tokens),
            total_tokens=_dig(data, "usage", "total_tokens"),
        )


__all__ = ["REMAINING_TOKENS_HEADER", "TokenUsageExtractor", "first_header"]
