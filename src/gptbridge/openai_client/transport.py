"""Transports that send a prepared payload and hand back a RawHttpResult."""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol

import httpx
from openai import APIStatusError, AsyncOpenAI

from gptbridge.config import DEFAULT_BASE_URL
from gptbridge.openai_client.raw import RawHttpResult

DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=5.0)
DEFAULT_USER_AGENT = "gptbridge/0.1.0"


class ResponsesTransport(Protocol):
    """Protocol for sending Responses API payloads."""

    async def send(self, payload: Mapping[str, Any], *, stream: bool = False) -> RawHttpResult:
        """Send the payload and return the unconverted result."""


class HttpResponsesTransport:
    """httpx-based transport for the real OpenAI Responses API.

    Status codes are not checked here; the result converter classifies them.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: httpx.Timeout | float | None = None,
        client: httpx.AsyncClient | None = None,
        user_agent: str | None = DEFAULT_USER_AGENT,
        logger: Callable[[str, dict[str, object]], None] | None = None,
    ) -> None:
        if not api_key.strip():
            raise ValueError("api_key cannot be empty")

        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        self._user_agent = user_agent
        self._logger = logger

    async def send(self, payload: Mapping[str, Any], *, stream: bool = False) -> RawHttpResult:
        url = f"{self.base_url}/responses"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self._user_agent:
            headers["User-Agent"] = self._user_agent

        body = dict(payload)
        if stream:
            body["stream"] = True
            headers["Accept"] = "text/event-stream"

        start = time.perf_counter()
        request = self._client.build_request("POST", url, json=body, headers=headers, timeout=self.timeout)
        response = await self._client.send(request, stream=stream)
        if self._logger:
            self._logger(
                "response_received",
                {
                    "status": response.status_code,
                    "request_id": response.headers.get("x-request-id"),
                    "duration_sec": time.perf_counter() - start,
                    "base_url": self.base_url,
                    "stream": stream,
                },
            )
        return RawHttpResult(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpResponsesTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class MockResponsesTransport:
    """In-memory transport that answers every call with one canned response."""

    def __init__(
        self,
        body: Mapping[str, Any] | str | None = None,
        *,
        status_code: int = 200,
        events: Sequence[Mapping[str, Any]] = (),
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.body = body
        self.status_code = status_code
        self.events = list(events)
        self.headers = dict(headers or {})
        self.last_payload: dict[str, Any] | None = None

    async def send(self, payload: Mapping[str, Any], *, stream: bool = False) -> RawHttpResult:
        self.last_payload = dict(payload)
        request = httpx.Request("POST", "mock://responses")
        if stream:
            lines = [f"data: {json.dumps(event)}\n\n" for event in self.events]
            lines.append("data: [DONE]\n\n")
            content = "".join(lines)
        elif self.body is None:
            content = ""
        elif isinstance(self.body, str):
            content = self.body
        else:
            content = json.dumps(self.body)
        response = httpx.Response(self.status_code, text=content, headers=self.headers, request=request)
        return RawHttpResult(response)


class OpenAISDKResponsesTransport:
    """Transport backed by the official openai Python SDK (Responses API).

    The SDK's raw-response mode exposes the underlying ``httpx.Response``;
    error statuses are unwrapped from ``APIStatusError`` so the converter
    sees them like any other response.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        organization: str | None = None,
        project: str | None = None,
        client: Any | None = None,
    ) -> None:
        if not api_key.strip():
            raise ValueError("api_key cannot be empty")

        self._client = client or AsyncOpenAI(
            api_key=api_key.strip(),
            base_url=base_url,
            organization=organization,
            project=project,
            max_retries=0,
        )

    async def send(self, payload: Mapping[str, Any], *, stream: bool = False) -> RawHttpResult:
        request_payload = dict(payload)
        request_payload.pop("stream", None)
        if stream:
            request_payload["stream"] = True
        try:
            raw = await self._client.responses.with_raw_response.create(**request_payload)
        except APIStatusError as exc:
            return RawHttpResult(exc.response)
        return RawHttpResult(raw.http_response)


__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "HttpResponsesTransport",
    "MockResponsesTransport",
    "OpenAISDKResponsesTransport",
    "ResponsesTransport",
]
