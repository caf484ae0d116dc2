"""
explain.py - Serialization of tool results.

This module converts a `ToolResult` into:
- MCP-style content (`{"content": [{"type": "text", "text": ...}]}`) for
  conversational clients
- a plain dictionary for logging and storage
- terminal text for CLI usage
"""

from __future__ import annotations

import json
from typing import Any

from logging_config import get_logger
from models import ToolResult

logger = get_logger(__name__)

INDENT = 2


def _dump(data: Any) -> str:
    return json.dumps(data, indent=INDENT, ensure_ascii=False, default=str)


def format_result_text(result: ToolResult | None) -> str:
    """The text a client sees: pretty JSON on success, the message on error."""
    if result is None:
        logger.error("explain_input_error | result_none=True | fallback=error_text")
        return "Error: No result available"
    if result.is_error:
        return result.message or "Error: Unknown error"
    return _dump(result.data)


def format_result_content(result: ToolResult | None) -> dict[str, Any]:
    """MCP-style content envelope; `isError` is present only on errors."""
    content: dict[str, Any] = {
        "content": [{"type": "text", "text": format_result_text(result)}],
    }
    if result is None or result.is_error:
        content["isError"] = True
    return content


def format_result_json(result: ToolResult | None) -> dict[str, Any]:
    """Machine-friendly dictionary for logs and storage."""
    if result is None:
        return {"error": True, "message": "No result available"}
    if result.is_error:
        return {"error": True, "message": result.message}
    return {"error": False, "data": result.data}
