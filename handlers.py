"""
handlers.py - The four query orchestrators.

Each orchestrator validates its arguments, runs the pipeline stages in a fixed
order and returns a `ToolResult`. Validation failures and unknown grantees
come back as error results; nothing is raised across this boundary for them.

    list_transactions       filter -> fuzzy search -> annotate -> sort -> project -> group
    list_grantees           resolve -> scope to year -> summarize -> sort
    show_grantee            resolve one -> totals, status and yearly breakdown, history
    aggregate_transactions  see aggregate.py
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from aggregate import aggregate_transactions
from config import DEFAULT_KEYWORDS, ClassifierKeywords
from filters import (
    ANNOTATION_FIELDS,
    annotate_transaction,
    matches_category,
    matches_charity,
    matches_grant_status,
    matches_is_beloved,
    matches_max_amount,
    matches_min_amount,
    matches_year,
    matches_year_range,
    select_fields,
)
from grantees import find_grantee, get_all_grantees, get_most_recent_grant_note
from grouping import group_transactions
from logging_config import get_logger
from match import fuzzy_search
from metadata import GranteeMetadata
from models import (
    AggregateTransactionsParams,
    ListGranteesParams,
    ListTransactionsParams,
    ShowGranteeParams,
    ToolResult,
    validation_message,
)
from normalize import (
    AMOUNT_FIELD,
    NO_EIN,
    STATUS_FIELD,
    Transaction,
    as_string,
    is_cleared,
    parse_amount,
    sent_date_year,
)
from sorting import most_recent_first, sort_transactions, text_key

logger = get_logger(__name__)

P = TypeVar("P", bound=BaseModel)
Arguments = Union[Mapping[str, Any], BaseModel, None]

NO_NOTES = "(no notes)"
NO_ADDRESS = "(no address)"
NO_STATUS = "(no status)"


def _parse(model: type[P], arguments: Arguments) -> P:
    if isinstance(arguments, model):
        return arguments
    if isinstance(arguments, BaseModel):
        arguments = arguments.model_dump()
    return model.model_validate(dict(arguments or {}))


def _invalid(tool: str, exc: ValidationError) -> ToolResult:
    message = validation_message(exc)
    logger.warning("tool_validation_error | tool=%s | error=%s", tool, message)
    return ToolResult.failure(message)


def _total(transactions: list[Transaction]) -> float:
    return sum(parse_amount(t.get(AMOUNT_FIELD)) for t in transactions)


def handle_list_transactions(
    transactions: list[Transaction],
    arguments: Arguments = None,
    metadata: Optional[GranteeMetadata] = None,
) -> ToolResult:
    """Filtered, annotated, sorted, projected and optionally grouped records."""
    try:
        params = _parse(ListTransactionsParams, arguments)
    except ValidationError as exc:
        return _invalid("list_transactions", exc)

    metadata = metadata or GranteeMetadata.empty()
    matches = transactions

    if params.charity is not None:
        matches = [t for t in matches if matches_charity(t, params.charity)]
    if params.grant_status is not None:
        matches = [t for t in matches if matches_grant_status(t, params.grant_status)]
    if params.year is not None:
        matches = [t for t in matches if matches_year(t, params.year)]
    if params.min_year is not None or params.max_year is not None:
        matches = [t for t in matches if matches_year_range(t, params.min_year, params.max_year)]
    if params.min_amount is not None:
        matches = [t for t in matches if matches_min_amount(t, params.min_amount)]
    if params.max_amount is not None:
        matches = [t for t in matches if matches_max_amount(t, params.max_amount)]

    if params.search_term:
        matches = fuzzy_search(matches, params.search_term)

    if params.category is not None:
        matches = [t for t in matches if matches_category(t, params.category, metadata)]
    if params.is_beloved is not None:
        matches = [t for t in matches if matches_is_beloved(t, params.is_beloved, metadata)]

    records = [annotate_transaction(t, metadata) for t in matches]
    records = sort_transactions(records, params.sort_by, params.sort_order)
    records = select_fields(records, params.fields, always_include=ANNOTATION_FIELDS)

    result: Any = records
    if params.group_by:
        result = group_transactions(records, params.group_by)

    logger.info(
        "tool_complete | tool=list_transactions | input=%s | matched=%s | grouped=%s",
        len(transactions),
        len(records),
        bool(params.group_by),
    )
    return ToolResult.success(result)


def handle_list_grantees(
    transactions: list[Transaction],
    arguments: Arguments = None,
    metadata: Optional[GranteeMetadata] = None,
    keywords: ClassifierKeywords = DEFAULT_KEYWORDS,
) -> ToolResult:
    """One summary row per grantee, optionally scoped to a single year."""
    try:
        params = _parse(ListGranteesParams, arguments)
    except ValidationError as exc:
        return _invalid("list_grantees", exc)

    metadata = metadata or GranteeMetadata.empty()
    grantees = get_all_grantees(transactions, metadata, keywords)

    summaries: list[tuple[dict[str, Any], list[Transaction]]] = []
    for grantee in grantees:
        scoped = grantee.transactions
        if params.year is not None:
            scoped = [t for t in scoped if matches_year(t, params.year)]
        if not scoped:
            continue

        if params.category is not None:
            category = metadata.category(grantee.name, grantee.ein)
            if category is None or category.lower() != params.category.lower():
                continue

        if params.is_beloved is not None and grantee.is_beloved is not params.is_beloved:
            continue

        row = {
            "name": grantee.name,
            "ein": grantee.ein or NO_EIN,
            "international": grantee.international,
            "is_beloved": grantee.is_beloved,
            "most_recent_grant_note": get_most_recent_grant_note(scoped) or NO_NOTES,
            "transaction_count": len(scoped),
            "total_amount": _total(scoped),
        }
        summaries.append((row, scoped))

    if params.sort_by == "name":
        key = lambda item: text_key(item[0]["name"].lower())
    elif params.sort_by == "ein":
        key = lambda item: text_key(item[0]["ein"])
    elif params.sort_by == "total_amount":
        key = lambda item: item[0]["total_amount"]
    else:
        key = lambda item: sent_date_year(most_recent_first(item[1])[0]) or 0
    summaries.sort(key=key, reverse=params.sort_order == "desc")

    rows = [row for row, _ in summaries]
    logger.info(
        "tool_complete | tool=list_grantees | grantees=%s | listed=%s | year=%s | sort_by=%s",
        len(grantees),
        len(rows),
        params.year,
        params.sort_by,
    )
    return ToolResult.success(rows)


def handle_show_grantee(
    transactions: list[Transaction],
    arguments: Arguments = None,
    metadata: Optional[GranteeMetadata] = None,
    keywords: ClassifierKeywords = DEFAULT_KEYWORDS,
) -> ToolResult:
    """Full profile of one grantee: metadata, breakdowns and grant history."""
    try:
        params = _parse(ShowGranteeParams, arguments)
    except ValidationError as exc:
        return _invalid("show_grantee", exc)

    metadata = metadata or GranteeMetadata.empty()
    grantee = find_grantee(transactions, params.charity, params.ein, metadata, keywords)
    if grantee is None:
        suffix = f" with EIN {params.ein}" if params.ein else ""
        return ToolResult.failure(f'Grantee "{params.charity}" not found{suffix}')

    cleared = [t for t in grantee.transactions if is_cleared(t)]
    non_cleared_count = len(grantee.transactions) - len(cleared)

    cleared_years = sorted(
        year for year in (sent_date_year(t) for t in cleared) if year is not None
    )

    yearly: dict[int, dict[str, Any]] = {}
    for transaction in cleared:
        year = sent_date_year(transaction)
        if not year:
            continue
        entry = yearly.setdefault(year, {"year": year, "count": 0, "total_amount": 0.0})
        entry["count"] += 1
        entry["total_amount"] += parse_amount(transaction.get(AMOUNT_FIELD))

    statuses: dict[str, dict[str, Any]] = {}
    for transaction in grantee.transactions:
        status = as_string(transaction.get(STATUS_FIELD)) or NO_STATUS
        entry = statuses.setdefault(status, {"status": status, "count": 0, "total_amount": 0.0})
        entry["count"] += 1
        entry["total_amount"] += parse_amount(transaction.get(AMOUNT_FIELD))

    payload = {
        "metadata": {
            "name": grantee.name,
            "ein": grantee.ein or NO_EIN,
            "address": grantee.address or NO_ADDRESS,
            "category": metadata.category(grantee.name, grantee.ein),
            "notes": metadata.notes(grantee.name, grantee.ein),
            "international": grantee.international,
            "is_beloved": grantee.is_beloved,
            "total_grants": len(grantee.transactions),
            "cleared_grants": len(cleared),
            "non_cleared_grants": non_cleared_count,
            "total_amount": _total(cleared),
            "first_grant_year": cleared_years[0] if cleared_years else None,
            "last_grant_year": cleared_years[-1] if cleared_years else None,
        },
        "status_breakdown": sorted(statuses.values(), key=lambda entry: text_key(entry["status"])),
        "yearly_totals": sorted(yearly.values(), key=lambda entry: entry["year"], reverse=True),
        "transactions": most_recent_first(grantee.transactions),
    }

    logger.info(
        "tool_complete | tool=show_grantee | grantee=%r | ein=%r | grants=%s | cleared=%s",
        grantee.name,
        grantee.ein,
        len(grantee.transactions),
        len(cleared),
    )
    return ToolResult.success(payload)


def handle_aggregate_transactions(
    transactions: list[Transaction],
    arguments: Arguments = None,
    metadata: Optional[GranteeMetadata] = None,
) -> ToolResult:
    """Count and total per group; cleared grants only unless grouping by status."""
    try:
        params = _parse(AggregateTransactionsParams, arguments)
    except ValidationError as exc:
        return _invalid("aggregate_transactions", exc)

    return ToolResult.success(aggregate_transactions(transactions, params, metadata))
