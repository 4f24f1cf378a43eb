"""Raw result carriers produced by transports and consumed by the converter."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable

import httpx

from gptbridge.openai_client.parsing import parse_stream
from gptbridge.openai_client.types import ResponseDecodeError


@runtime_checkable
class TransportResponse(Protocol):
    """HTTP response capabilities the converter and usage extractor rely on."""

    @property
    def status_code(self) -> int: ...

    def get_content(self) -> str: ...

    def get_headers(self) -> dict[str, list[str]]: ...

    def to_dict(self, *, throw: bool = True) -> dict[str, Any]: ...


class RawResult(Protocol):
    """Protocol for a transport result that has not been converted yet."""

    def get_data(self) -> dict[str, Any]: ...

    def get_data_stream(self) -> AsyncIterator[dict[str, Any]]: ...

    def get_object(self) -> Any: ...


class HttpResponse:
    """TransportResponse backed by an ``httpx.Response``."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def response(self) -> httpx.Response:
        return self._response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def get_content(self) -> str:
        return self._response.text

    def get_headers(self) -> dict[str, list[str]]:
        headers: dict[str, list[str]] = {}
        for name, value in self._response.headers.multi_items():
            headers.setdefault(name.lower(), []).append(value)
        return headers

    def to_dict(self, *, throw: bool = True) -> dict[str, Any]:
        """Decode the JSON body.

        With ``throw`` set, error statuses and undecodable bodies raise
        ResponseDecodeError; otherwise they decode to an empty dict.
        """

        status = self.status_code
        if throw and status >= 400:
            raise ResponseDecodeError(f"HTTP {status} returned by the API", status_code=status)

        content = self.get_content()
        if not content.strip():
            if throw:
                raise ResponseDecodeError("Response body is empty", status_code=status)
            return {}

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            if throw:
                raise ResponseDecodeError(f"Response body is not valid JSON: {exc}", status_code=status) from exc
            return {}

        if not isinstance(payload, dict):
            if throw:
                raise ResponseDecodeError("Response body is not a JSON object", status_code=status)
            return {}
        return payload


class RawHttpResult:
    """RawResult over an httpx response, either fully read or still streaming."""

    def __init__(self, response: httpx.Response | HttpResponse) -> None:
        self._response = response if isinstance(response, HttpResponse) else HttpResponse(response)

    def get_data(self) -> dict[str, Any]:
        return self._response.to_dict(throw=False)

    async def get_data_stream(self) -> AsyncIterator[dict[str, Any]]:
        response = self._response.response
        try:
            async for event in parse_stream(response.aiter_lines()):
                yield event
        finally:
            await response.aclose()

    def get_object(self) -> HttpResponse:
        return self._response


__all__ = ["HttpResponse", "RawHttpResult", "RawResult", "TransportResponse"]
