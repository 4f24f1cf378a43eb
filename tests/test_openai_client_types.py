import dataclasses
import typing

import pytest

from gptbridge.openai_client.types import (
    ApiError,
    ApiRuntimeError,
    ChoiceResult,
    ResponseDecodeError,
    Result,
    StreamingParseError,
    StreamResult,
    TextResult,
    TokenUsage,
    ToolCall,
    ToolCallResult,
)


def test_token_usage_defaults_to_absent() -> None:
    usage = TokenUsage()

    assert all(getattr(usage, f.name) is None for f in dataclasses.fields(usage))
    with pytest.raises(dataclasses.FrozenInstanceError):
        usage.prompt_tokens = 1  # type: ignore[misc]


def test_tool_call_validation() -> None:
    with pytest.raises(ValueError):
        ToolCall(id=" ", name="run")
    with pytest.raises(ValueError):
        ToolCall(id="call_1", name=" ")

    call = ToolCall(id="call_1", name="run", arguments={"a": 1})
    assert call.arguments == {"a": 1}
    assert ToolCall(id="call_2", name="run").arguments == {}


def test_tool_call_result_requires_calls() -> None:
    with pytest.raises(ValueError):
        ToolCallResult(())


def test_choice_result_requires_two_choices() -> None:
    with pytest.raises(ValueError):
        ChoiceResult((TextResult("only"),))

    choice = ChoiceResult((TextResult("a"), TextResult("b")))
    assert len(choice.content) == 2


def test_result_union() -> None:
    args = typing.get_args(Result)
    assert TextResult in args
    assert ToolCallResult in args
    assert ChoiceResult in args
    assert StreamResult in args


@pytest.mark.asyncio
async def test_stream_result_content_is_single_use() -> None:
    async def gen():
        yield "x"

    result = StreamResult(gen())

    assert [chunk async for chunk in result.content] == ["x"]
    with pytest.raises(RuntimeError):
        result.content


@pytest.mark.asyncio
async def test_stream_result_aclose_marks_consumed() -> None:
    async def gen():
        yield "x"

    result = StreamResult(gen())
    await result.aclose()

    with pytest.raises(RuntimeError):
        result.content


def test_error_hierarchy() -> None:
    assert issubclass(ApiRuntimeError, RuntimeError)
    assert issubclass(ResponseDecodeError, ApiError)
    assert issubclass(StreamingParseError, ApiError)
    assert ResponseDecodeError("x", status_code=418).status_code == 418
