"""
aggregate.py - Group + count + sum over a filtered, status-scoped subset.

Pipeline:
1. standard filters (year, year range, amount, charity, category, is_beloved)
2. keep only 'Payment Cleared' grants, unless grouping by status
3. bucket by the group key and accumulate count / total_amount
4. order the buckets: year-like keys ascending first, then the requested
   sort (default: total_amount descending, stable)

The category and is_beloved filters are skipped when they are also the
grouping key.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from filters import (
    matches_category,
    matches_charity,
    matches_is_beloved,
    matches_max_amount,
    matches_min_amount,
    matches_year,
    matches_year_range,
)
from grouping import ordered_groups
from logging_config import get_logger
from metadata import GranteeMetadata
from models import AggregateTransactionsParams
from normalize import (
    AMOUNT_FIELD,
    NO_EIN,
    STATUS_FIELD,
    Transaction,
    as_string,
    charity_and_ein,
    is_cleared,
    parse_amount,
    sent_date_year,
)
from sorting import text_key

logger = get_logger(__name__)

NO_STATUS = "(no status)"
UNKNOWN_KEY = "Unknown"

# Groupings whose rows can be ordered by sort_by='name'.
NAME_SORTABLE = {"grantee", "category", "status"}


def _flag(value: bool) -> str:
    return "true" if value else "false"


def aggregation_key(
    transaction: Transaction,
    group_by: str,
    metadata: GranteeMetadata,
) -> tuple[str, Optional[str]]:
    """(group key, display name) for one transaction."""
    name, ein = charity_and_ein(transaction)

    if group_by == "category":
        return metadata.category(name, ein) or UNKNOWN_KEY, None
    if group_by == "grantee":
        return f"{name}|{ein or NO_EIN}", name
    if group_by == "year":
        year = sent_date_year(transaction)
        return (str(year) if year else UNKNOWN_KEY), None
    if group_by == "international":
        return _flag(metadata.international(name, ein)), None
    if group_by == "is_beloved":
        return _flag(metadata.is_beloved(name, ein)), None
    if group_by == "status":
        return as_string(transaction.get(STATUS_FIELD)).strip() or NO_STATUS, None
    return UNKNOWN_KEY, None


def filter_for_aggregation(
    transactions: list[Transaction],
    params: AggregateTransactionsParams,
    metadata: GranteeMetadata,
) -> list[Transaction]:
    """Apply the standard filter set and the cleared-status restriction."""
    group_by = params.group_by
    matches = [
        t
        for t in transactions
        if matches_year(t, params.year)
        and matches_year_range(t, params.min_year, params.max_year)
        and matches_min_amount(t, params.min_amount)
        and matches_max_amount(t, params.max_amount)
        and matches_charity(t, params.charity)
    ]

    if params.category is not None and group_by != "category":
        matches = [t for t in matches if matches_category(t, params.category, metadata)]

    if params.is_beloved is not None and group_by != "is_beloved":
        matches = [t for t in matches if matches_is_beloved(t, params.is_beloved, metadata)]

    if group_by != "status":
        matches = [t for t in matches if is_cleared(t)]

    return matches


def _row_sort_key(group_by: str, sort_by: str) -> Optional[Callable[[dict[str, Any]], Any]]:
    if sort_by == "count":
        return lambda row: row["count"]
    if sort_by == "total_amount":
        return lambda row: row["total_amount"]
    if sort_by == "name" and group_by in NAME_SORTABLE:
        field = "name" if group_by == "grantee" else group_by
        return lambda row: text_key(str(row.get(field) or "").lower())
    return None


def aggregate_transactions(
    transactions: list[Transaction],
    params: AggregateTransactionsParams,
    metadata: Optional[GranteeMetadata] = None,
) -> list[dict[str, Any]]:
    """Aggregate rows: {<group_by>: key, [name,] count, total_amount}."""
    metadata = metadata or GranteeMetadata.empty()
    group_by = params.group_by or ""
    matches = filter_for_aggregation(transactions, params, metadata)

    buckets: dict[str, dict[str, Any]] = {}
    for transaction in matches:
        key, name = aggregation_key(transaction, group_by, metadata)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = {group_by: key}
            if group_by == "grantee" and name:
                bucket["name"] = name
            bucket["count"] = 0
            bucket["total_amount"] = 0.0
            buckets[key] = bucket
        bucket["count"] += 1
        bucket["total_amount"] += parse_amount(transaction.get(AMOUNT_FIELD))

    rows = list(ordered_groups(buckets).values())
    sort_key = _row_sort_key(group_by, params.sort_by)
    if sort_key is not None:
        rows.sort(key=sort_key, reverse=params.sort_order == "desc")

    logger.info(
        "aggregate_complete | group_by=%s | input=%s | in_scope=%s | groups=%s | sort_by=%s | sort_order=%s",
        group_by,
        len(transactions),
        len(matches),
        len(rows),
        params.sort_by,
        params.sort_order,
    )
    return rows
