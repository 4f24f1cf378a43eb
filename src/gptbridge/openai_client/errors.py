"""Classification of failed Responses API calls into typed errors."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from gptbridge.openai_client.types import (
    ApiAuthError,
    ApiBadRequestError,
    ApiError,
    ApiRuntimeError,
    ContentFilterError,
)

CONTENT_FILTER_CODE = "content_filter"
DEFAULT_BAD_REQUEST_MESSAGE = "Bad Request"
DEFAULT_UNAUTHORIZED_MESSAGE = "Unauthorized"


class ErrorDetail(BaseModel):
    """The ``error`` sub-document of a Responses API body."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    code: str | None = None
    type: str | None = None
    param: str | None = None
    message: str | None = None

    @field_validator("code", "type", "param", "message", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        return str(value)


def parse_error_detail(error: Any) -> ErrorDetail:
    if isinstance(error, ErrorDetail):
        return error
    if isinstance(error, str):
        return ErrorDetail(message=error)
    if not isinstance(error, Mapping):
        return ErrorDetail()
    try:
        return ErrorDetail.model_validate(dict(error))
    except ValidationError:
        return ErrorDetail()


def format_error_message(error: Any) -> str:
    detail = parse_error_detail(error)
    return 'Error "{}"-{} ({}): "{}".'.format(
        detail.code or "",
        detail.type or "",
        detail.param or "",
        detail.message or "",
    )


def classify_error_body(error: Any) -> ApiError:
    """Map an ``error`` sub-document to ContentFilterError or ApiRuntimeError."""

    detail = parse_error_detail(error)
    if detail.code == CONTENT_FILTER_CODE:
        return ContentFilterError(detail.message or "")
    return ApiRuntimeError(format_error_message(detail))


def classify_error(status_code: int | None, body: Mapping[str, Any] | None) -> ApiError:
    """Map an HTTP status and an optionally decoded body to one typed error.

    400 and 401 win over the body; otherwise the body's ``error`` sub-document
    decides, and a body without one produces a status diagnostic.
    """

    body = body or {}
    error = body.get("error")
    message = _error_message(error)

    if status_code == 400:
        return ApiBadRequestError(message or DEFAULT_BAD_REQUEST_MESSAGE)
    if status_code == 401:
        return ApiAuthError(message or DEFAULT_UNAUTHORIZED_MESSAGE)
    if error is not None:
        return classify_error_body(error)
    return ApiRuntimeError(f"Unexpected response status {status_code}")


def _error_message(error: Any) -> str | None:
    if error is None:
        return None
    return parse_error_detail(error).message


__all__ = [
    "CONTENT_FILTER_CODE",
    "DEFAULT_BAD_REQUEST_MESSAGE",
    "DEFAULT_UNAUTHORIZED_MESSAGE",
    "ErrorDetail",
    "classify_error",
    "classify_error_body",
    "format_error_message",
    "parse_error_detail",
]
