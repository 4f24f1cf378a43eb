"""gptbridge: typed results, token usage and errors for the OpenAI Responses API."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
