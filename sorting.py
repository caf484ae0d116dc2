"""
sorting.py - Field-aware transaction ordering.

sort_transactions(list, field, order) dispatches on the field name:
- 'Amount'           numeric, via parse_amount
- any '...Date' field extracted year first, then the raw date string
- everything else    locale-style text comparison

The raw-string tie-break on dates is lexicographic ('9/1/23' sorts after
'12/1/23'), not chronological.
"""

from __future__ import annotations

from typing import Any, Callable

from logging_config import get_logger
from normalize import AMOUNT_FIELD, SENT_DATE_FIELD, Transaction, as_string, extract_year, parse_amount

logger = get_logger(__name__)


def text_key(value: str) -> tuple[str, str]:
    """Case-insensitive ordering; among case variants lowercase sorts first."""
    return (value.casefold(), value.swapcase())


def date_key(value: Any) -> tuple[int, tuple[str, str]]:
    text = as_string(value)
    return (extract_year(text) or 0, text_key(text))


def _key_for(field: str) -> Callable[[Transaction], Any]:
    if field == AMOUNT_FIELD:
        return lambda transaction: parse_amount(transaction.get(field))
    if "Date" in field:
        return lambda transaction: date_key(transaction.get(field))
    return lambda transaction: text_key(as_string(transaction.get(field)))


def sort_transactions(
    transactions: list[Transaction],
    field: str | None,
    order: str = "asc",
) -> list[Transaction]:
    """Return a new, sorted list; the input is never reordered.

    With no field the original list object is returned unchanged.
    """
    if not field:
        return transactions

    result = sorted(transactions, key=_key_for(field), reverse=order == "desc")
    logger.debug("sort_transactions | field=%r | order=%s | records=%s", field, order, len(result))
    return result


def recency_key(transaction: Transaction) -> tuple[int, tuple[str, str]]:
    """Sent Date year, then the raw Sent Date string."""
    return date_key(transaction.get(SENT_DATE_FIELD))


def most_recent_first(transactions: list[Transaction]) -> list[Transaction]:
    """Copy of the list ordered by Sent Date, newest first."""
    return sorted(transactions, key=recency_key, reverse=True)
