"""
tools.py - Tool registry and dispatch.

Each tool pairs a name and description with the pydantic model that validates
its arguments; the JSON input schema published by `list_tools()` is generated
from that model, so the schema and the validation rules cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel

from handlers import (
    handle_aggregate_transactions,
    handle_list_grantees,
    handle_list_transactions,
    handle_show_grantee,
)
from logging_config import get_logger
from metadata import GranteeMetadata
from models import (
    AggregateTransactionsParams,
    ListGranteesParams,
    ListTransactionsParams,
    ShowGranteeParams,
    ToolResult,
)
from normalize import Transaction

logger = get_logger(__name__)

Handler = Callable[[list[Transaction], Mapping[str, Any], Optional[GranteeMetadata]], ToolResult]


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    params_model: type[BaseModel]
    handler: Handler

    def definition(self) -> dict[str, Any]:
        schema = self.params_model.model_json_schema()
        schema.pop("title", None)
        return {"name": self.name, "description": self.description, "inputSchema": schema}


TOOLS: dict[str, Tool] = {
    tool.name: tool
    for tool in (
        Tool(
            name="list_transactions",
            description=(
                "List grant transactions with optional filtering, fuzzy search, sorting, "
                "field selection and grouping. Every record is annotated with Category, "
                "International and Is Beloved from the grantee metadata."
            ),
            params_model=ListTransactionsParams,
            handler=handle_list_transactions,
        ),
        Tool(
            name="list_grantees",
            description=(
                "List unique grantees with transaction counts, totals and the most recent "
                "grant note. Filtering by year scopes counts and totals to that year."
            ),
            params_model=ListGranteesParams,
            handler=handle_list_grantees,
        ),
        Tool(
            name="show_grantee",
            description=(
                "Show one grantee's full profile: metadata, status breakdown, yearly totals "
                "of cleared grants and the complete grant history."
            ),
            params_model=ShowGranteeParams,
            handler=handle_show_grantee,
        ),
        Tool(
            name="aggregate_transactions",
            description=(
                "Count and total grants per category, grantee, year, international flag, "
                "is_beloved flag or status. Only 'Payment Cleared' grants are included "
                "unless grouping by status."
            ),
            params_model=AggregateTransactionsParams,
            handler=handle_aggregate_transactions,
        ),
    )
}


def list_tools() -> list[dict[str, Any]]:
    """Definitions of every tool: name, description and JSON input schema."""
    return [tool.definition() for tool in TOOLS.values()]


def call_tool(
    name: str,
    arguments: Optional[Mapping[str, Any]],
    transactions: list[Transaction],
    metadata: Optional[GranteeMetadata] = None,
) -> ToolResult:
    """Run the named tool. Always returns a ToolResult, never raises."""
    tool = TOOLS.get(name)
    if tool is None:
        logger.warning("tool_unknown | name=%r", name)
        return ToolResult.failure(f"Unknown tool: {name}")

    if arguments is not None and not isinstance(arguments, Mapping):
        return ToolResult.failure("Tool arguments must be a JSON object")

    logger.debug("tool_call | name=%s | arguments=%s", name, dict(arguments or {}))
    try:
        return tool.handler(transactions, arguments or {}, metadata)
    except Exception as exc:
        logger.error(
            "tool_error | name=%s | error_type=%s | error=%s",
            name,
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        return ToolResult.failure(f"Internal error executing tool: {exc}")
