"""
models.py - Data models for the grants query engine.

Every orchestrator communicates through these models:

    tools.py     ->  *Params          (validated tool arguments)
    handlers.py  ->  ToolResult       (success payload or tagged error)
    metadata.py  ->  GranteeMetadataEntry

Transactions themselves are NOT modelled here: they are schema-flexible
records (plain dicts, see `normalize.Transaction`) so that any field name can
be used for sorting, grouping and projection.

Validation principles:
1. Wrong types and out-of-range values are rejected, never coerced
2. Error messages are human-readable and name the offending parameter
3. Unknown extra arguments are ignored
"""

from __future__ import annotations

import math
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

MIN_YEAR = 1900
MAX_YEAR = 2100

SortOrder = Literal["asc", "desc"]
GranteeSortField = Literal["name", "ein", "recent_date", "total_amount"]
AggregateGroupBy = Literal["category", "grantee", "year", "international", "is_beloved", "status"]
AggregateSortField = Literal["count", "total_amount", "name"]

GRANTEE_SORT_FIELDS: tuple[str, ...] = ("name", "ein", "recent_date", "total_amount")
AGGREGATE_GROUP_BY: tuple[str, ...] = (
    "category",
    "grantee",
    "year",
    "international",
    "is_beloved",
    "status",
)
AGGREGATE_SORT_FIELDS: tuple[str, ...] = ("count", "total_amount", "name")

# Messages for required tool arguments that were omitted entirely.
MISSING_MESSAGES: dict[str, str] = {
    "charity": "charity is required and must be a string",
    "group_by": f"group_by must be one of: {', '.join(AGGREGATE_GROUP_BY)}",
}


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _optional_string(value: Any, name: str) -> Any:
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{name} must be a string if provided")
    return value


def _optional_year(value: Any, name: str) -> Any:
    if value is None:
        return None
    if not _is_number(value) or value != int(value) or not MIN_YEAR <= value <= MAX_YEAR:
        raise ValueError(f"{name} must be a valid number between {MIN_YEAR} and {MAX_YEAR}")
    return int(value)


def _optional_amount(value: Any, name: str) -> Any:
    if value is None:
        return None
    if not _is_number(value) or value < 0:
        raise ValueError(f"{name} must be a non-negative number")
    return value


def _optional_choice(value: Any, name: str, choices: tuple[str, ...]) -> Any:
    if value is None:
        return None
    if not isinstance(value, str) or value not in choices:
        raise ValueError(f"{name} must be one of: {', '.join(choices)}")
    return value


def validation_message(exc: ValidationError) -> str:
    """Human-readable message for the first error in a ValidationError."""
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    if first.get("type") == "missing" and first.get("loc"):
        field = str(first["loc"][-1])
        if field in MISSING_MESSAGES:
            return MISSING_MESSAGES[field]
        return f"{field} is required"
    ctx_error = (first.get("ctx") or {}).get("error")
    if first.get("type") == "value_error" and ctx_error is not None:
        return str(ctx_error)
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid value')}" if location else str(first.get("msg"))


class GranteeMetadataEntry(BaseModel):
    """One row of the static grantee lookup table (grantees.json).

    The table is authoritative for `is_beloved` and for `international`
    whenever it says True; a missing or False `international` lets the
    heuristic classifier decide.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    ein: str = ""
    category: Optional[str] = Field(
        default=None,
        description=(
            "Grantee category, e.g. 'Evangelism', 'Matthew 25', "
            "'Education/Schools', 'Churches/Offerings'."
        ),
    )
    notes: Optional[str] = None
    international: Optional[bool] = None
    is_beloved: Optional[bool] = Field(
        default=False,
        description="Internal-operations flag: grants to the funder's own ministries.",
    )

    @field_validator("name", "ein", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("is_beloved", mode="before")
    @classmethod
    def _null_to_false(cls, value: Any) -> Any:
        return False if value is None else value


class ToolResult(BaseModel):
    """Outcome of one orchestrator call: a payload or a tagged error."""

    is_error: bool = False
    data: Any = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Any) -> "ToolResult":
        return cls(is_error=False, data=data)

    @classmethod
    def failure(cls, message: str) -> "ToolResult":
        text = message if message.startswith("Error:") else f"Error: {message}"
        return cls(is_error=True, message=text)


class _ToolParams(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _RangeFilterParams(_ToolParams):
    """Year and amount filters shared by list_transactions and aggregate_transactions."""

    year: Optional[int] = Field(default=None, description="Exact year (e.g. 2025). Checks all date fields.")
    min_year: Optional[int] = Field(default=None, description="Transactions from this year onwards.")
    max_year: Optional[int] = Field(default=None, description="Transactions up to this year.")
    min_amount: Optional[float] = Field(default=None, description="Amount greater than or equal to this value.")
    max_amount: Optional[float] = Field(default=None, description="Amount less than or equal to this value.")
    charity: Optional[str] = Field(default=None, description="Exact charity name (case-insensitive).")
    category: Optional[str] = Field(default=None, description="Grantee category from the metadata table.")
    is_beloved: Optional[bool] = Field(
        default=None,
        description="Filter by the internal-operations flag; omit to include all grantees.",
    )

    @field_validator("year", "min_year", "max_year", mode="before")
    @classmethod
    def _check_year(cls, value: Any, info: ValidationInfo) -> Any:
        return _optional_year(value, info.field_name)

    @field_validator("min_amount", "max_amount", mode="before")
    @classmethod
    def _check_amount(cls, value: Any, info: ValidationInfo) -> Any:
        return _optional_amount(value, info.field_name)

    @field_validator("charity", "category", mode="before")
    @classmethod
    def _check_string(cls, value: Any, info: ValidationInfo) -> Any:
        return _optional_string(value, info.field_name)

    @field_validator("is_beloved", mode="before")
    @classmethod
    def _check_bool(cls, value: Any, info: ValidationInfo) -> Any:
        if value is not None and not isinstance(value, bool):
            raise ValueError(f"{info.field_name} must be a boolean if provided")
        return value


class ListTransactionsParams(_RangeFilterParams):
    """Arguments of the list_transactions tool."""

    search_term: Optional[str] = Field(
        default=None,
        description="Fuzzy, case-insensitive search across all fields.",
    )
    grant_status: Optional[str] = Field(
        default=None,
        description="Grant status, e.g. 'Payment Cleared', 'Pending'. Case-insensitive.",
    )
    sort_by: Optional[str] = Field(default=None, description="Field to sort by, e.g. 'Sent Date', 'Amount'.")
    sort_order: SortOrder = "asc"
    group_by: Optional[str] = Field(
        default=None,
        description="'year' (derived from date fields) or any field name.",
    )
    fields: Optional[list[str]] = Field(default=None, description="Field names to include in each record.")

    @field_validator("search_term", "grant_status", "sort_by", "group_by", mode="before")
    @classmethod
    def _check_text(cls, value: Any, info: ValidationInfo) -> Any:
        return _optional_string(value, info.field_name)

    @field_validator("sort_order", mode="before")
    @classmethod
    def _check_sort_order(cls, value: Any) -> Any:
        return _optional_choice(value, "sort_order", ("asc", "desc")) or "asc"

    @field_validator("fields", mode="before")
    @classmethod
    def _check_fields(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ValueError("fields must be an array of strings")
        return value


class ListGranteesParams(_ToolParams):
    """Arguments of the list_grantees tool."""

    year: Optional[int] = Field(
        default=None,
        description="Only grantees with grants in this year; counts and totals are scoped to it.",
    )
    category: Optional[str] = None
    is_beloved: Optional[bool] = None
    sort_by: GranteeSortField = "name"
    sort_order: SortOrder = "asc"

    @field_validator("year", mode="before")
    @classmethod
    def _check_year(cls, value: Any) -> Any:
        return _optional_year(value, "year")

    @field_validator("category", mode="before")
    @classmethod
    def _check_category(cls, value: Any) -> Any:
        return _optional_string(value, "category")

    @field_validator("is_beloved", mode="before")
    @classmethod
    def _check_bool(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, bool):
            raise ValueError("is_beloved must be a boolean if provided")
        return value

    @field_validator("sort_by", mode="before")
    @classmethod
    def _check_sort_by(cls, value: Any) -> Any:
        return _optional_choice(value, "sort_by", GRANTEE_SORT_FIELDS) or "name"

    @field_validator("sort_order", mode="before")
    @classmethod
    def _check_sort_order(cls, value: Any) -> Any:
        return _optional_choice(value, "sort_order", ("asc", "desc")) or "asc"


class ShowGranteeParams(_ToolParams):
    """Arguments of the show_grantee tool."""

    charity: str = Field(..., description="Charity name to look up.")
    ein: Optional[str] = Field(default=None, description="EIN to disambiguate grantees sharing a name.")

    @field_validator("charity", mode="before")
    @classmethod
    def _check_charity(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value:
            raise ValueError("charity is required and must be a string")
        return value

    @field_validator("ein", mode="before")
    @classmethod
    def _check_ein(cls, value: Any) -> Any:
        return _optional_string(value, "ein")


class AggregateTransactionsParams(_RangeFilterParams):
    """Arguments of the aggregate_transactions tool."""

    group_by: AggregateGroupBy = Field(
        ...,
        description="Aggregation key. Grouping by status includes every status.",
    )
    sort_by: AggregateSortField = "total_amount"
    sort_order: SortOrder = "desc"

    @field_validator("group_by", mode="before")
    @classmethod
    def _check_group_by(cls, value: Any) -> Any:
        if not isinstance(value, str) or value not in AGGREGATE_GROUP_BY:
            raise ValueError(f"group_by must be one of: {', '.join(AGGREGATE_GROUP_BY)}")
        return value

    @field_validator("sort_by", mode="before")
    @classmethod
    def _check_sort_by(cls, value: Any) -> Any:
        return _optional_choice(value, "sort_by", AGGREGATE_SORT_FIELDS) or "total_amount"

    @field_validator("sort_order", mode="before")
    @classmethod
    def _check_sort_order(cls, value: Any) -> Any:
        return _optional_choice(value, "sort_order", ("asc", "desc")) or "desc"
