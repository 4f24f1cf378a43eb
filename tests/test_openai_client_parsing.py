import pytest

from gptbridge.openai_client.parsing import parse_event_line, parse_stream
from gptbridge.openai_client.types import StreamingParseError


async def collect_events(chunks: list[str | bytes]) -> list[dict]:
    async def gen():
        for chunk in chunks:
            yield chunk

    return [event async for event in parse_stream(gen())]


@pytest.mark.asyncio
async def test_data_lines_are_decoded() -> None:
    chunks = [
        'event: response.output_text.delta\ndata: {"type":"response.output_text.delta","delta":"hi"}\n\n',
        b'data: {"type":"response.completed","response":{}}\n',
    ]

    events = await collect_events(chunks)

    assert events == [
        {"type": "response.output_text.delta", "delta": "hi"},
        {"type": "response.completed", "response": {}},
    ]


@pytest.mark.asyncio
async def test_done_sentinel_stops_the_stream() -> None:
    chunks = [
        'data: {"type":"a"}',
        "data: [DONE]",
        'data: {"type":"never"}',
    ]

    assert await collect_events(chunks) == [{"type": "a"}]


@pytest.mark.asyncio
async def test_comments_and_blank_lines_are_skipped() -> None:
    chunks = [": keep-alive\n\n", "\n", 'data: {"type":"x"}\n']

    assert await collect_events(chunks) == [{"type": "x"}]


@pytest.mark.asyncio
async def test_invalid_json_raises_streaming_parse_error() -> None:
    with pytest.raises(StreamingParseError):
        await collect_events(['data: {"type": "text_delta", }'])


@pytest.mark.asyncio
async def test_non_object_payload_raises() -> None:
    with pytest.raises(StreamingParseError):
        await collect_events(["data: [1, 2, 3]"])


def test_parse_event_line_without_prefix() -> None:
    assert parse_event_line('{"type":"bare"}') == {"type": "bare"}
    assert parse_event_line("id: 7") is None
    assert parse_event_line("retry: 1000") is None
    assert parse_event_line("   ") is None
