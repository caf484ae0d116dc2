"""
match.py - Fuzzy whole-record search and ranking.

Each transaction is turned into an all-string projection and scored against
the search term field by field. A record's score is its best field's
dissimilarity (0.0 = exact, 1.0 = unrelated); records under the threshold are
returned best-match-first. Where the term occurs inside a field does not
matter.

Scoring uses RapidFuzz:
- term contained in the field        -> 0.0
- field at least as long as the term -> 1 - partial_ratio / 100
- shorter field                      -> 1 - ratio / 100
"""

from __future__ import annotations

from rapidfuzz import fuzz

from logging_config import get_logger
from normalize import Transaction, as_string

logger = get_logger(__name__)

FUZZY_THRESHOLD = 0.4
# 0.0 = exact match only, 1.0 = match anything.


def to_search_record(transaction: Transaction) -> dict[str, str]:
    """All-string view of a record; missing or null fields become ''."""
    return {key: as_string(value) for key, value in transaction.items()}


def score_field(term: str, text: str) -> float:
    """Dissimilarity between a lowercase search term and one field value."""
    if not term or not text:
        return 1.0

    value = text.lower()
    if term in value:
        return 0.0

    if len(value) >= len(term):
        similarity = fuzz.partial_ratio(term, value)
    else:
        similarity = fuzz.ratio(term, value)
    return round(max(0.0, min(1.0, 1.0 - similarity / 100.0)), 4)


def score_record(term: str, record: dict[str, str], keys: list[str]) -> float:
    """Best (lowest) field dissimilarity of a record over the indexed keys."""
    needle = term.lower().strip()
    best = 1.0
    for key in keys:
        score = score_field(needle, record.get(key, ""))
        if score < best:
            best = score
            if best == 0.0:
                break
    return best


def fuzzy_search(
    transactions: list[Transaction],
    search_term: str | None,
    threshold: float = FUZZY_THRESHOLD,
) -> list[Transaction]:
    """Return the transactions matching `search_term`, best match first.

    The index covers the field names of the first record. An empty term or
    an empty list is returned unchanged.
    """
    if not search_term or not transactions:
        return transactions

    records = [to_search_record(transaction) for transaction in transactions]
    keys = list(records[0].keys())

    scored: list[tuple[float, int]] = []
    for index, record in enumerate(records):
        score = score_record(search_term, record, keys)
        if score < threshold:
            scored.append((score, index))

    scored.sort()
    result = [transactions[index] for _, index in scored]

    logger.info(
        "fuzzy_search_complete | term=%r | candidates=%s | matched=%s | indexed_fields=%s | best_score=%s",
        search_term,
        len(transactions),
        len(result),
        len(keys),
        scored[0][0] if scored else None,
    )
    return result
