"""
filters.py - Single-field transaction predicates and record projection.

Every predicate takes a transaction and one constraint. A missing or falsy
constraint makes the predicate vacuously true, so orchestrators can apply the
whole filter set unconditionally.

Predicates:
    matches_charity       exact, case- and trim-insensitive Charity equality
    matches_year          any date field ends in the year's two-digit suffix
    matches_year_range    latest parsed year within [min_year, max_year]
    matches_min_amount    parsed Amount >= bound
    matches_max_amount    parsed Amount <= bound
    matches_grant_status  case- and trim-insensitive Grant Status equality
    matches_category      grantee category from the metadata table
    matches_is_beloved    internal-operations flag from the metadata table

Projection helpers:
    annotate_transaction  copy of a record with Category/International/Is Beloved
    select_fields         keep only requested fields (plus forced annotations)
"""

from __future__ import annotations

from typing import Iterable, Optional

from logging_config import get_logger
from metadata import GranteeMetadata
from normalize import (
    AMOUNT_FIELD,
    CHARITY_FIELD,
    DATE_FIELDS,
    STATUS_FIELD,
    Transaction,
    as_string,
    charity_and_ein,
    parse_amount,
    transaction_year,
    year_suffix,
)

logger = get_logger(__name__)

CATEGORY_FIELD = "Category"
INTERNATIONAL_FIELD = "International"
IS_BELOVED_FIELD = "Is Beloved"
ANNOTATION_FIELDS: tuple[str, ...] = (CATEGORY_FIELD, INTERNATIONAL_FIELD, IS_BELOVED_FIELD)


def matches_charity(transaction: Transaction, charity_name: Optional[str]) -> bool:
    if not charity_name:
        return True
    charity = as_string(transaction.get(CHARITY_FIELD)).lower().strip()
    return charity == charity_name.lower().strip()


def matches_year(transaction: Transaction, year: Optional[int]) -> bool:
    """True when any date field carries the year's two-digit suffix.

    This compares suffixes, not extracted years: 1924 and 2024 both match
    '.../24'.
    """
    if not year:
        return True

    wanted = str(year)[-2:]
    for field in DATE_FIELDS:
        date = as_string(transaction.get(field)).strip()
        if date and year_suffix(date) == wanted:
            return True
    return False


def matches_year_range(
    transaction: Transaction,
    min_year: Optional[int] = None,
    max_year: Optional[int] = None,
) -> bool:
    """True when the transaction's latest date falls in the (open) range.

    A transaction without any parseable date never matches a range.
    """
    if not min_year and not max_year:
        return True

    year = transaction_year(transaction)
    if year is None:
        return False
    if min_year and year < min_year:
        return False
    if max_year and year > max_year:
        return False
    return True


def matches_min_amount(transaction: Transaction, min_amount: Optional[float]) -> bool:
    if not min_amount:
        return True
    return parse_amount(transaction.get(AMOUNT_FIELD)) >= min_amount


def matches_max_amount(transaction: Transaction, max_amount: Optional[float]) -> bool:
    if not max_amount:
        return True
    return parse_amount(transaction.get(AMOUNT_FIELD)) <= max_amount


def matches_grant_status(transaction: Transaction, grant_status: Optional[str]) -> bool:
    if not grant_status:
        return True
    status = as_string(transaction.get(STATUS_FIELD)).lower().strip()
    return status == grant_status.lower().strip()


def matches_category(
    transaction: Transaction,
    category: Optional[str],
    metadata: GranteeMetadata,
) -> bool:
    """Compare against the grantee's category from the metadata table."""
    if not category:
        return True
    name, ein = charity_and_ein(transaction)
    grantee_category = metadata.category(name, ein)
    return grantee_category is not None and grantee_category.lower() == category.lower()


def matches_is_beloved(
    transaction: Transaction,
    is_beloved: Optional[bool],
    metadata: GranteeMetadata,
) -> bool:
    """Tri-state filter: None keeps everything, True/False must match the table."""
    if is_beloved is None:
        return True
    name, ein = charity_and_ein(transaction)
    return metadata.is_beloved(name, ein) is is_beloved


def annotate_transaction(transaction: Transaction, metadata: GranteeMetadata) -> Transaction:
    """Return a new record carrying the grantee's derived attributes."""
    name, ein = charity_and_ein(transaction)
    annotated = dict(transaction)
    annotated[CATEGORY_FIELD] = metadata.category(name, ein)
    annotated[INTERNATIONAL_FIELD] = metadata.international(name, ein)
    annotated[IS_BELOVED_FIELD] = metadata.is_beloved(name, ein)
    return annotated


def select_fields(
    transactions: list[Transaction],
    fields: Optional[list[str]],
    always_include: Iterable[str] = (),
) -> list[Transaction]:
    """Project each record onto `fields`; fields absent from a record are skipped.

    Keys in `always_include` are copied from the source record even when not
    requested. With no fields requested the input list is returned as-is.
    """
    if not fields:
        return transactions

    forced = tuple(always_include)
    projected: list[Transaction] = []
    for transaction in transactions:
        selected = {field: transaction[field] for field in fields if field in transaction}
        for field in forced:
            if field in transaction and field not in selected:
                selected[field] = transaction[field]
        projected.append(selected)

    logger.debug(
        "select_fields | records=%s | fields=%s | forced=%s",
        len(projected),
        fields,
        list(forced),
    )
    return projected
