"""
normalize.py - Field coercion helpers shared by every query stage.

Core normalizers:
    as_string(value)          -> field value as str ('' for null/non-string)
    extract_year(date_str)    -> four-digit year from an M/D/YY date, or None
    parse_amount(amount_str)  -> float, 0.0 when unparseable

Record helpers:
    transaction_year(t)       -> latest year across the known date fields
    sent_date_year(t)         -> year of the 'Sent Date' field only
    charity_and_ein(t)        -> trimmed (Charity, EIN) pair
    grantee_key(name, ein)    -> composite "name|ein" identity key

Design principles:
    - The SAME two-digit year window is used everywhere a year is derived
    - Pure transformations, no I/O
    - Invalid input degrades to neutral defaults, never raises
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional

from logging_config import get_logger

logger = get_logger(__name__)

# A transaction is a flat record: field name -> str | bool | None.
Transaction = dict[str, Any]

DATE_FIELDS: tuple[str, ...] = (
    "Sent Date",
    "Requested Payment Date",
    "Recommendation Submitted Date",
    "Cleared Date",
)

CHARITY_FIELD = "Charity"
EIN_FIELD = "EIN"
ADDRESS_FIELD = "Charity Address"
AMOUNT_FIELD = "Amount"
STATUS_FIELD = "Grant Status"
PURPOSE_FIELD = "Grant Purpose"
NOTE_FIELD = "Special Note"
SENT_DATE_FIELD = "Sent Date"

CLEARED_STATUS = "Payment Cleared"
NO_EIN = "(no EIN)"

# Two-digit suffixes below this pivot belong to the 2000s, the rest to the 1900s.
CENTURY_PIVOT = 31

_YEAR_SUFFIX = re.compile(r"/([0-9]{2})\Z")
_LEADING_NUMBER = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def as_string(value: Any) -> str:
    """Return the value when it is a string, otherwise ''."""
    if isinstance(value, str):
        return value
    return ""


def year_suffix(date_str: Any) -> Optional[str]:
    """Return the trailing two-digit year segment of a date string, if any."""
    match = _YEAR_SUFFIX.search(as_string(date_str))
    return match.group(1) if match else None


def extract_year(date_str: Any) -> Optional[int]:
    """Extract the year from an M/D/YY or MM/DD/YY date string.

    '00'-'30' map to 2000-2030 and '31'-'99' map to 1931-1999. Four-digit
    years, missing year segments and non-numeric suffixes yield None.
    """
    suffix = year_suffix(date_str)
    if suffix is None:
        return None
    value = int(suffix)
    return 2000 + value if value < CENTURY_PIVOT else 1900 + value


def parse_amount(amount_str: Any) -> float:
    """Parse a formatted amount such as '25,000.00 ' into a float.

    Commas and whitespace are removed and the leading numeric portion is read.
    Anything unparseable (or non-finite) becomes 0.0.
    """
    cleaned = re.sub(r"[,\s]", "", as_string(amount_str))
    if not cleaned:
        return 0.0

    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        logger.debug("parse_amount | parse_failed | raw=%r | fallback=0.0", amount_str)
        return 0.0

    try:
        value = float(match.group(0))
    except (ValueError, OverflowError):
        return 0.0

    if not math.isfinite(value) or value == 0:
        return 0.0
    return value


def transaction_years(transaction: Transaction) -> list[int]:
    """Years parsed from every known date field that carries one."""
    years: list[int] = []
    for field in DATE_FIELDS:
        year = extract_year(transaction.get(field))
        if year is not None:
            years.append(year)
    return years


def transaction_year(transaction: Transaction) -> Optional[int]:
    """The transaction's year: the latest year found across its date fields."""
    years = transaction_years(transaction)
    return max(years) if years else None


def sent_date_year(transaction: Transaction) -> Optional[int]:
    """Year of the 'Sent Date' field."""
    return extract_year(transaction.get(SENT_DATE_FIELD))


def charity_and_ein(transaction: Transaction) -> tuple[str, str]:
    """Trimmed charity name and EIN of a transaction."""
    return (
        as_string(transaction.get(CHARITY_FIELD)).strip(),
        as_string(transaction.get(EIN_FIELD)).strip(),
    )


def grantee_key(name: str, ein: str) -> str:
    """Composite grantee identity key; an empty EIN is a valid component."""
    return f"{name.strip()}|{ein.strip()}"


def is_cleared(transaction: Transaction) -> bool:
    """Whether the grant has status 'Payment Cleared'."""
    return as_string(transaction.get(STATUS_FIELD)) == CLEARED_STATUS
