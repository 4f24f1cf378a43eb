"""Conversion of raw Responses API results into typed result values."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from gptbridge.config import ConvertOptions
from gptbridge.openai_client.errors import classify_error, classify_error_body
from gptbridge.openai_client.raw import RawResult, TransportResponse
from gptbridge.openai_client.types import (
    ApiRuntimeError,
    ChoiceResult,
    ResponseDecodeError,
    Result,
    StreamChunk,
    StreamResult,
    TextResult,
    ToolCall,
    ToolCallResult,
)
from gptbridge.openai_client.usage import REMAINING_TOKENS_HEADER, TokenUsageExtractor, first_header

_LOGGER = logging.getLogger(__name__)

TEXT_DELTA_EVENTS = frozenset({"message.delta.output_text.delta", "response.output_text.delta"})
COMPLETED_EVENT = "response.completed"
NO_OUTPUT_MESSAGE = "Response does not contain output"


class MessageItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["message"]
    role: str | None = None
    content: list[dict[str, Any]] = Field(default_factory=list)


class FunctionCallItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["function_call"]
    id: str
    name: str
    arguments: str = ""
    call_id: str | None = None

    @field_validator("id", "name")
    @classmethod
    def _require_value(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class ReasoningItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["reasoning"]
    summary: list[dict[str, Any]] = Field(default_factory=list)


OutputItem = Annotated[MessageItem | FunctionCallItem | ReasoningItem, Field(discriminator="type")]

_OUTPUT_ITEM_ADAPTER: TypeAdapter[MessageItem | FunctionCallItem | ReasoningItem] = TypeAdapter(OutputItem)
SUPPORTED_OUTPUT_TYPES = frozenset({"message", "function_call", "reasoning"})


class ResultConverter:
    """Turn a RawResult into TextResult, ToolCallResult, ChoiceResult or StreamResult."""

    def __init__(self, usage_extractor: TokenUsageExtractor | None = None) -> None:
        self._usage_extractor = usage_extractor or TokenUsageExtractor()

    def convert(self, raw_result: RawResult, options: ConvertOptions | Mapping[str, Any] | None = None) -> Result:
        if ConvertOptions.coerce(options).stream:
            return StreamResult(self._convert_stream(raw_result))

        response = raw_result.get_object()
        try:
            data = response.to_dict()
        except ResponseDecodeError as exc:
            error = classify_error(response.status_code, response.to_dict(throw=False))
            _LOGGER.debug("response decode failed with status %s: %s", response.status_code, exc)
            raise error from exc

        # Successful bodies carry "error": null.
        if data.get("error") is not None:
            raise classify_error_body(data["error"])

        if "output" not in data:
            raise ApiRuntimeError(NO_OUTPUT_MESSAGE)

        results = self.convert_output(data["output"])
        if not results:
            raise ApiRuntimeError(NO_OUTPUT_MESSAGE)
        if len(results) == 1:
            return results[0]
        return ChoiceResult(tuple(results))

    def convert_output(self, output: Any) -> list[TextResult | ToolCallResult]:
        """Convert each output item in order; skipped items produce nothing."""

        if not isinstance(output, list):
            raise ApiRuntimeError("Response output must be a list")

        results: list[TextResult | ToolCallResult] = []
        for raw_item in output:
            result = self._convert_item(_validate_item(raw_item))
            if result is not None:
                results.append(result)
        return results

    def _convert_item(self, item: MessageItem | FunctionCallItem | ReasoningItem) -> TextResult | ToolCallResult | None:
        if isinstance(item, MessageItem):
            return _convert_message(item)
        if isinstance(item, FunctionCallItem):
            return ToolCallResult((_convert_function_call(item),))
        return _convert_reasoning(item)

    async def _convert_stream(self, raw_result: RawResult) -> AsyncIterator[StreamChunk]:
        events = raw_result.get_data_stream()
        try:
            async for event in events:
                event_type = event.get("type")

                if event_type in TEXT_DELTA_EVENTS:
                    delta = event.get("delta")
                    if isinstance(delta, str):
                        yield delta
                    continue

                if event_type != COMPLETED_EVENT:
                    continue

                completed = event.get("response")
                if not isinstance(completed, Mapping):
                    completed = {}
                function_calls = [
                    _validate_item(item)
                    for item in completed.get("output") or []
                    if isinstance(item, Mapping) and item.get("type") == "function_call"
                ]
                tool_calls = [
                    _convert_function_call(item) for item in function_calls if isinstance(item, FunctionCallItem)
                ]
                if tool_calls:
                    yield ToolCallResult(tuple(tool_calls))

                headers = _response_headers(raw_result)
                yield self._usage_extractor.from_data(completed, first_header(headers, REMAINING_TOKENS_HEADER))
                return
        finally:
            aclose = getattr(events, "aclose", None)
            if callable(aclose):
                await aclose()


def _validate_item(raw_item: Any) -> MessageItem | FunctionCallItem | ReasoningItem:
    if not isinstance(raw_item, Mapping):
        raise ApiRuntimeError("Output item must be an object")

    item_type = raw_item.get("type")
    if item_type not in SUPPORTED_OUTPUT_TYPES:
        raise ApiRuntimeError(f'Unsupported output type "{item_type}".')

    try:
        return _OUTPUT_ITEM_ADAPTER.validate_python(dict(raw_item))
    except ValidationError as exc:
        raise ApiRuntimeError(f'Malformed "{item_type}" output item: {exc.error_count()} validation error(s)') from exc


def _convert_message(item: MessageItem) -> TextResult:
    texts = [str(part.get("text", "")) for part in item.content if part.get("type") == "output_text"]
    if texts:
        return TextResult("".join(texts))

    for part in item.content:
        if part.get("type") == "refusal":
            return TextResult(f"Model refused to generate output: {part.get('refusal', '')}")
    return TextResult("")


def _convert_function_call(item: FunctionCallItem) -> ToolCall:
    if not item.arguments.strip():
        return ToolCall(id=item.id, name=item.name, arguments={})
    try:
        arguments = json.loads(item.arguments)
    except json.JSONDecodeError as exc:
        raise ApiRuntimeError(f'Invalid arguments for function call "{item.name}": {exc}') from exc
    if not isinstance(arguments, dict):
        raise ApiRuntimeError(f'Arguments for function call "{item.name}" must be a JSON object')
    return ToolCall(id=item.id, name=item.name, arguments=arguments)


def _convert_reasoning(item: ReasoningItem) -> TextResult | None:
    # Summaries are omitted when the model was not asked for them.
    texts = [str(part.get("text", "")) for part in item.summary if part.get("type") == "summary_text"]
    summary = "\n\n".join(text for text in texts if text)
    return TextResult(summary) if summary else None


def _response_headers(raw_result: RawResult) -> dict[str, list[str]]:
    response = raw_result.get_object()
    if not isinstance(response, TransportResponse):
        return {}
    return response.get_headers()


__all__ = [
    "COMPLETED_EVENT",
    "FunctionCallItem",
    "MessageItem",
    "NO_OUTPUT_MESSAGE",
    "OutputItem",
    "ReasoningItem",
    "ResultConverter",
    "TEXT_DELTA_EVENTS",
]
