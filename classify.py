"""
classify.py - Derived grantee classification.

Two-tier resolution for the international flag:
1. the metadata table, when it explicitly says True
2. otherwise a keyword heuristic over name, address and grant notes

The internal-operations flag (is_beloved) has a single tier: the table.

The heuristic is plain substring matching and will both over-
and under-classify (e.g. 'uk' matches inside 'Milwaukee'). Keyword lists are
data in config.ClassifierKeywords, never branches here.
"""

from __future__ import annotations

from typing import Iterable, Optional

from config import DEFAULT_KEYWORDS, ClassifierKeywords
from logging_config import get_logger
from metadata import GranteeMetadata
from normalize import NOTE_FIELD, PURPOSE_FIELD, Transaction, as_string

logger = get_logger(__name__)


def _first_contained(text: str, keywords: Iterable[str]) -> Optional[str]:
    for keyword in keywords:
        if keyword and keyword in text:
            return keyword
    return None


def known_org_hit(name: str, keywords: ClassifierKeywords = DEFAULT_KEYWORDS) -> Optional[str]:
    """Known international organization whose name appears in `name`."""
    return _first_contained(name.lower(), keywords.international_orgs)


def address_hit(address: str, keywords: ClassifierKeywords = DEFAULT_KEYWORDS) -> Optional[str]:
    """Non-US location keyword found in the trimmed address."""
    return _first_contained(address.strip().lower(), keywords.non_us_address_keywords)


def purpose_hit(
    transactions: Iterable[Transaction],
    keywords: ClassifierKeywords = DEFAULT_KEYWORDS,
) -> Optional[str]:
    """Region/country keyword found in any Grant Purpose or Special Note."""
    for transaction in transactions:
        combined = (
            f"{as_string(transaction.get(PURPOSE_FIELD))} "
            f"{as_string(transaction.get(NOTE_FIELD))}"
        ).lower()
        hit = _first_contained(combined, keywords.purpose_keywords)
        if hit:
            return hit
    return None


def is_international_heuristic(
    name: str,
    address: str,
    transactions: Iterable[Transaction],
    keywords: ClassifierKeywords = DEFAULT_KEYWORDS,
) -> bool:
    """Best-effort guess used only when the metadata table is silent."""
    for rule, hit in (
        ("known_org", known_org_hit(name, keywords)),
        ("address", address_hit(address, keywords)),
        ("purpose", purpose_hit(transactions, keywords)),
    ):
        if hit:
            logger.debug(
                "international_heuristic | name=%r | rule=%s | keyword=%r | result=True",
                name,
                rule,
                hit,
            )
            return True
    return False


def resolve_international(
    name: str,
    ein: str,
    address: str,
    transactions: Iterable[Transaction],
    metadata: GranteeMetadata,
    keywords: ClassifierKeywords = DEFAULT_KEYWORDS,
) -> bool:
    """Metadata True wins; a missing or False entry defers to the heuristic."""
    if metadata.international(name, ein):
        return True
    return is_international_heuristic(name, address, transactions, keywords)


def resolve_is_beloved(name: str, ein: str, metadata: GranteeMetadata) -> bool:
    return metadata.is_beloved(name, ein)
