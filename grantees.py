"""
grantees.py - Grantee identity resolution.

A grantee is a distinct organization identified by trimmed charity name plus
trimmed EIN. The registry is rebuilt from the full transaction list on every
call, in two passes:

1. collect: bucket transactions by "name|ein", keeping the first address seen
2. classify: resolve is_beloved (metadata only) and international (metadata,
   then heuristic) per bucket

Grantee.transactions references the caller's transaction dicts; nothing is
copied or mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from classify import resolve_international, resolve_is_beloved
from config import DEFAULT_KEYWORDS, ClassifierKeywords
from logging_config import get_logger
from metadata import GranteeMetadata
from normalize import (
    ADDRESS_FIELD,
    NOTE_FIELD,
    PURPOSE_FIELD,
    Transaction,
    as_string,
    charity_and_ein,
    grantee_key,
)
from sorting import most_recent_first

logger = get_logger(__name__)


@dataclass
class Grantee:
    """A distinct organization receiving grants."""
    name: str
    ein: str
    address: str
    international: bool = False
    is_beloved: bool = False
    transactions: list[Transaction] = field(default_factory=list)

    @property
    def key(self) -> str:
        return grantee_key(self.name, self.ein)


def get_all_grantees(
    transactions: list[Transaction],
    metadata: Optional[GranteeMetadata] = None,
    keywords: ClassifierKeywords = DEFAULT_KEYWORDS,
) -> list[Grantee]:
    """Build the deduplicated grantee registry in first-seen order."""
    metadata = metadata or GranteeMetadata.empty()
    registry: dict[str, Grantee] = {}
    skipped = 0

    for transaction in transactions:
        name, ein = charity_and_ein(transaction)
        if not name:
            skipped += 1
            continue

        key = grantee_key(name, ein)
        grantee = registry.get(key)
        if grantee is None:
            grantee = Grantee(
                name=name,
                ein=ein,
                address=as_string(transaction.get(ADDRESS_FIELD)).strip(),
            )
            registry[key] = grantee
        grantee.transactions.append(transaction)

    for grantee in registry.values():
        grantee.is_beloved = resolve_is_beloved(grantee.name, grantee.ein, metadata)
        grantee.international = resolve_international(
            grantee.name,
            grantee.ein,
            grantee.address,
            grantee.transactions,
            metadata,
            keywords,
        )

    logger.debug(
        "grantees_resolved | transactions=%s | grantees=%s | skipped_no_charity=%s",
        len(transactions),
        len(registry),
        skipped,
    )
    return list(registry.values())


def get_most_recent_grant_note(transactions: list[Transaction]) -> Optional[str]:
    """Grant Purpose (or Special Note) of the most recently sent grant."""
    if not transactions:
        return None

    latest = most_recent_first(transactions)[0]
    purpose = as_string(latest.get(PURPOSE_FIELD))
    note = as_string(latest.get(NOTE_FIELD))
    return purpose or note or None


def find_grantee(
    transactions: list[Transaction],
    charity_name: str,
    ein: Optional[str] = None,
    metadata: Optional[GranteeMetadata] = None,
    keywords: ClassifierKeywords = DEFAULT_KEYWORDS,
) -> Optional[Grantee]:
    """Resolve one grantee by name, optionally disambiguated by EIN.

    Resolution order: name + EIN, exact case-insensitive name, then the first
    grantee whose name contains the query or is contained in it.
    """
    grantees = get_all_grantees(transactions, metadata, keywords)
    wanted = charity_name.strip().lower()

    if ein:
        wanted_ein = ein.strip()
        for grantee in grantees:
            if grantee.name.lower() == wanted and grantee.ein == wanted_ein:
                logger.debug("find_grantee | query=%r | ein=%r | rule=name_and_ein", charity_name, ein)
                return grantee

    for grantee in grantees:
        if grantee.name.lower() == wanted:
            logger.debug("find_grantee | query=%r | rule=exact_name", charity_name)
            return grantee

    if wanted:
        for grantee in grantees:
            candidate = grantee.name.lower()
            if wanted in candidate or candidate in wanted:
                logger.debug(
                    "find_grantee | query=%r | rule=substring | matched=%r",
                    charity_name,
                    grantee.name,
                )
                return grantee

    logger.info("find_grantee | query=%r | ein=%r | result=not_found", charity_name, ein)
    return None
