"""Streaming parser that turns raw SSE lines into decoded event mappings."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable
from typing import Any

from gptbridge.openai_client.types import StreamingParseError

DONE_SENTINELS = frozenset({"data: [DONE]", "data:[DONE]", "[DONE]"})


def _iter_lines(chunk: str) -> Iterable[str]:
    """Split an SSE chunk into individual lines."""

    for line in chunk.splitlines():
        if line:
            yield line


def parse_event_line(line: str) -> dict[str, Any] | None:
    """Decode one SSE line; ``None`` for lines that carry no event payload."""

    stripped = line.strip()
    if not stripped or stripped.startswith(":"):
        return None
    # The event name is repeated in the payload's "type" field.
    if stripped.startswith(("event:", "id:", "retry:")):
        return None

    if stripped.startswith("data:"):
        content = stripped[len("data:") :].strip()
    else:
        content = stripped

    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise StreamingParseError(f"invalid JSON chunk: {content}") from exc

    if not isinstance(payload, dict):
        raise StreamingParseError(f"event payload must be a JSON object: {content}")
    return payload


async def parse_stream(chunks: AsyncIterator[str | bytes]) -> AsyncIterator[dict[str, Any]]:
    """Parse SSE-style chunks into event mappings, stopping at ``[DONE]``."""

    async for raw in chunks:
        text = raw.decode("utf-8") if isinstance(raw, (bytes | bytearray)) else raw
        for line in _iter_lines(text):
            if line.strip() in DONE_SENTINELS:
                return
            payload = parse_event_line(line)
            if payload is not None:
                yield payload


__all__ = ["DONE_SENTINELS", "parse_event_line", "parse_stream"]
