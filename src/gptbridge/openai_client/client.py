"""OpenAI Responses client: send, convert, and attach token usage."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from gptbridge.config import ConvertOptions, Settings
from gptbridge.openai_client.converter import ResultConverter
from gptbridge.openai_client.transport import HttpResponsesTransport, ResponsesTransport
from gptbridge.openai_client.types import ApiError, Result, TokenUsage
from gptbridge.openai_client.usage import TokenUsageExtractor

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConversionOutcome:
    """Converted result plus usage; streams report usage inside the stream."""

    result: Result
    usage: TokenUsage | None = None


class OpenAIResponsesClient:
    """Async client that sends prepared payloads and returns typed results."""

    def __init__(
        self,
        transport: ResponsesTransport,
        *,
        converter: ResultConverter | None = None,
        usage_extractor: TokenUsageExtractor | None = None,
    ) -> None:
        self._transport = transport
        self._usage_extractor = usage_extractor or TokenUsageExtractor()
        self._converter = converter or ResultConverter(self._usage_extractor)

    @classmethod
    def from_settings(cls, settings: Settings) -> OpenAIResponsesClient:
        if not settings.api_key:
            raise ApiError("api_key is required")
        transport = HttpResponsesTransport(settings.api_key, base_url=settings.base_url, timeout=settings.timeout)
        return cls(transport)

    async def create(
        self, payload: Mapping[str, Any], options: ConvertOptions | Mapping[str, Any] | None = None
    ) -> ConversionOutcome:
        convert_options = ConvertOptions.coerce(options)
        raw_result = await self._transport.send(payload, stream=convert_options.stream)

        try:
            result = self._converter.convert(raw_result, convert_options)
        except ApiError as exc:
            _LOGGER.warning("responses call failed: %s: %s", type(exc).__name__, exc)
            raise

        usage = self._usage_extractor.extract(raw_result, convert_options)
        _LOGGER.debug("converted response into %s (usage=%s)", type(result).__name__, usage)
        return ConversionOutcome(result=result, usage=usage)


__all__ = ["ConversionOutcome", "OpenAIResponsesClient"]
