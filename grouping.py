"""
grouping.py - Partition transactions by a raw or derived key.

'year' groups by the latest year across the date fields; any other key
groups by the record's raw value. Records without a value land in 'Unknown'.
Records keep their input order inside a group.

Group order: integer-like keys ('2022', '2023', ...) come first in ascending
numeric order, every other key follows in order of first appearance.
"""

from __future__ import annotations

from typing import Iterable, TypeVar

from logging_config import get_logger
from normalize import Transaction, transaction_year

logger = get_logger(__name__)

UNKNOWN_GROUP = "Unknown"
MAX_INDEX_KEY = 2**32 - 2

V = TypeVar("V")


def is_index_key(key: str) -> bool:
    """Canonical non-negative integer string ('0', '2024'; not '007' or '-1')."""
    if not key.isdigit() or not key.isascii():
        return False
    if len(key) > 1 and key.startswith("0"):
        return False
    return int(key) <= MAX_INDEX_KEY


def order_group_keys(keys: Iterable[str]) -> list[str]:
    """Integer-like keys ascending, then the remaining keys in their given order."""
    keys = list(keys)
    numeric = sorted((key for key in keys if is_index_key(key)), key=int)
    return numeric + [key for key in keys if not is_index_key(key)]


def ordered_groups(groups: dict[str, V]) -> dict[str, V]:
    """Copy of `groups` re-keyed in group order."""
    return {key: groups[key] for key in order_group_keys(groups)}


def _group_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def group_key(transaction: Transaction, key: str) -> str:
    if key == "year":
        year = transaction_year(transaction)
        return str(year) if year is not None else UNKNOWN_GROUP

    value = transaction.get(key)
    return _group_value(value) if value is not None else UNKNOWN_GROUP


def group_transactions(transactions: list[Transaction], key: str | None) -> dict[str, list[Transaction]]:
    """Partition `transactions` into {group key: records}.

    An empty key yields an empty mapping; callers skip grouping in that case.
    """
    if not key:
        return {}

    grouped: dict[str, list[Transaction]] = {}
    for transaction in transactions:
        grouped.setdefault(group_key(transaction, key), []).append(transaction)

    logger.debug(
        "group_transactions | key=%r | records=%s | groups=%s",
        key,
        len(transactions),
        len(grouped),
    )
    return ordered_groups(grouped)
