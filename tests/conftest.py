import json
import pathlib
import sys
from collections.abc import AsyncIterator, Mapping, Sequence
from pathlib import Path
from typing import Any

import httpx
import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"

# Ensure src/ is importable when running tests without installing the package.
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from gptbridge.openai_client.types import ResponseDecodeError  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_gptbridge_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Point GPTBRIDGE_HOME at a per-test sandbox so we never touch the real FS."""

    home = tmp_path / "gptbridge-home"
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("GPTBRIDGE_HOME", str(home))
    yield


class FakeResponse:
    """In-memory TransportResponse.

    ``to_dict()`` raises when ``decode_error`` is set or the status is an
    error; ``to_dict(throw=False)`` returns ``data`` or the decoded ``content``.
    """

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        *,
        status_code: int = 200,
        content: str | None = None,
        headers: Mapping[str, Sequence[str]] | None = None,
        decode_error: bool = False,
    ) -> None:
        self.data = dict(data) if data is not None else None
        self.status_code = status_code
        self.content = content
        self.headers = {name: list(values) for name, values in (headers or {}).items()}
        self.decode_error = decode_error
        self.to_dict_calls: list[bool] = []

    def get_content(self) -> str:
        if self.content is not None:
            return self.content
        return json.dumps(self.data) if self.data is not None else ""

    def get_headers(self) -> dict[str, list[str]]:
        return self.headers

    def to_dict(self, *, throw: bool = True) -> dict[str, Any]:
        self.to_dict_calls.append(throw)
        if throw and (self.decode_error or self.status_code >= 400):
            raise ResponseDecodeError("decode failed", status_code=self.status_code)
        if self.data is not None:
            return dict(self.data)
        if self.content:
            try:
                return json.loads(self.content)
            except json.JSONDecodeError:
                return {}
        return {}


class FakeRawResult:
    """Value implementing the RawResult capability set over a FakeResponse."""

    def __init__(self, response: Any, events: Sequence[Mapping[str, Any]] = ()) -> None:
        self.response = response
        self.events = list(events)
        self.pulled = 0
        self.closed = False

    def get_data(self) -> dict[str, Any]:
        return self.response.to_dict(throw=False)

    async def get_data_stream(self) -> AsyncIterator[dict[str, Any]]:
        try:
            for event in self.events:
                self.pulled += 1
                yield dict(event)
        finally:
            self.closed = True

    def get_object(self) -> Any:
        return self.response


@pytest.fixture
def fake_response() -> type[FakeResponse]:
    """Provide FakeResponse class for building transport responses."""
    return FakeResponse


@pytest.fixture
def fake_raw_result() -> type[FakeRawResult]:
    """Provide FakeRawResult class for wrapping responses and stream events."""
    return FakeRawResult


@pytest.fixture
def raw_result_for(fake_response, fake_raw_result):
    """Factory fixture wrapping a decoded body into a successful raw result."""

    def _raw(data: Mapping[str, Any], **kwargs: Any) -> FakeRawResult:
        return fake_raw_result(fake_response(data, **kwargs))

    return _raw


@pytest.fixture
def mock_http_handler():
    """Factory fixture for creating httpx request handlers with custom responses."""

    def _handler(
        status_code: int = 200,
        text: str = "",
        headers: dict[str, str] | None = None,
        record_request: dict[str, Any] | None = None,
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            if record_request is not None:
                record_request["method"] = request.method
                record_request["headers"] = dict(request.headers)
                record_request["url"] = str(request.url)
                record_request["payload"] = json.loads(request.content.decode()) if request.content else None
            return httpx.Response(status_code, text=text, headers=headers or {}, request=request)

        return handler

    return _handler


@pytest.fixture
def mock_http_client(mock_http_handler):
    """Fixture factory that provides an httpx.AsyncClient with MockTransport."""

    def _client(handler=None):
        if handler is None:
            handler = mock_http_handler()
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _client
