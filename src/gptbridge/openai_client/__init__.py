"""OpenAI Responses result conversion package."""

from __future__ import annotations

from .client import ConversionOutcome, OpenAIResponsesClient  # noqa: F401
from .converter import ResultConverter  # noqa: F401
from .errors import classify_error, classify_error_body, format_error_message  # noqa: F401
from .parsing import parse_stream  # noqa: F401
from .raw import HttpResponse, RawHttpResult, RawResult, TransportResponse  # noqa: F401
from .transport import (  # noqa: F401
    HttpResponsesTransport,
    MockResponsesTransport,
    OpenAISDKResponsesTransport,
    ResponsesTransport,
)
from .types import (  # noqa: F401
    ApiAuthError,
    ApiBadRequestError,
    ApiError,
    ApiRuntimeError,
    ChoiceResult,
    ContentFilterError,
    ResponseDecodeError,
    Result,
    StreamingParseError,
    StreamResult,
    TextResult,
    TokenUsage,
    ToolCall,
    ToolCallResult,
)
from .usage import TokenUsageExtractor  # noqa: F401
