"""
test_grantees.py - Grantee Resolution and Classification Tests

Validation for:
- get_all_grantees (dedup by name + EIN, first address wins)
- get_most_recent_grant_note
- find_grantee (name + EIN, exact name, substring fallback)
- classify: metadata tier, heuristic tier, keyword configuration

Usage: python test_grantees.py
"""

from __future__ import annotations

import os
import sys

# Ensure we can import from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from classify import (
    address_hit,
    is_international_heuristic,
    known_org_hit,
    purpose_hit,
    resolve_international,
    resolve_is_beloved,
)
from config import ClassifierKeywords
from grantees import find_grantee, get_all_grantees, get_most_recent_grant_note
from metadata import GranteeMetadata, metadata_key


def _configure_output_symbols() -> tuple[str, str, str]:
    try:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

    try:
        "✓✗═".encode(sys.stdout.encoding or "utf-8")
        return "✓", "✗", "═"
    except Exception:
        return "[OK]", "[FAIL]", "="


PASS, FAIL, LINE = _configure_output_symbols()


def main() -> int:
    passed = 0
    failed = 0

    def check(name: str, condition: bool) -> None:
        nonlocal passed, failed
        if condition:
            print(f"    {PASS} {name}")
            passed += 1
        else:
            print(f"    {FAIL} {name}")
            failed += 1

    print(LINE * 62)
    print("  Grantee Resolution Tests")
    print(LINE * 62)

    transactions = [
        {"Charity": "Hope Academy", "EIN": "", "Charity Address": "55 School Rd, Toronto", "Sent Date": "6/10/24", "Grant Purpose": "Scholarships"},
        {"Charity": " Hope Academy ", "EIN": " ", "Charity Address": "Other address", "Sent Date": "8/10/23", "Special Note": "Books"},
        {"Charity": "Hope Academy", "EIN": "55-5", "Charity Address": "9 Elm St, Austin, TX", "Sent Date": "4/10/22"},
        {"Charity": "Test Charity", "EIN": "99-9", "Charity Address": "1 Test Way, Reno, NV", "Sent Date": "1/1/20"},
        {"Charity": "", "EIN": "11-1", "Sent Date": "1/1/20"},
        {"Charity": "Young Life", "EIN": "22-1", "Charity Address": "Colorado Springs, CO", "Sent Date": "1/15/24"},
    ]
    metadata = GranteeMetadata.from_dict(
        {
            "Young Life|22-1": {"international": True, "is_beloved": False},
            "Test Charity|99-9": {"is_beloved": True, "international": False},
        }
    )

    print("\n  get_all_grantees:")
    grantees = get_all_grantees(transactions, metadata)
    check("Records without a charity are skipped", all(g.name for g in grantees))
    check("Four distinct grantees", len(grantees) == 4)
    hope_no_ein = [g for g in grantees if g.name == "Hope Academy" and g.ein == ""]
    check("Same name, both-empty EIN -> one grantee", len(hope_no_ein) == 1)
    check("That grantee holds two transactions", len(hope_no_ein[0].transactions) == 2)
    check("Same name, different EIN -> distinct grantees", sum(g.name == "Hope Academy" for g in grantees) == 2)
    check("First address seen wins", hope_no_ein[0].address == "55 School Rd, Toronto")
    check("Registry in first-seen order", [g.name for g in grantees][:2] == ["Hope Academy", "Hope Academy"])
    check("Transactions are shared, not copied", hope_no_ein[0].transactions[0] is transactions[0])
    check("Composite key", hope_no_ein[0].key == "Hope Academy|")
    check("Empty input -> []", get_all_grantees([]) == [])

    print("\n  classification tiers:")
    by_name = {(g.name, g.ein): g for g in grantees}
    check("Metadata True is authoritative", by_name[("Young Life", "22-1")].international is True)
    check("Heuristic fills in when metadata is silent (Toronto)", hope_no_ein[0].international is True)
    check("Heuristic negative for a US address", by_name[("Hope Academy", "55-5")].international is False)
    check("is_beloved from metadata", by_name[("Test Charity", "99-9")].is_beloved is True)
    check("is_beloved defaults False", hope_no_ein[0].is_beloved is False)
    check(
        "Metadata False defers to the heuristic",
        resolve_international("Test Charity", "99-9", "London, England", [], metadata) is True,
    )
    check(
        "resolve_is_beloved has no heuristic",
        resolve_is_beloved("Volunteers for Ukraine", "", metadata) is False,
    )

    print("\n  heuristic predicates:")
    check("Known organization", known_org_hit("Cure International Inc") == "cure international")
    check("Non-US address", address_hit("  12 King St, Vancouver BC ") == "vancouver")
    check("Purpose keyword", purpose_hit([{"Grant Purpose": "Relief work in Haiti"}]) == "haiti")
    check("Special Note is searched too", purpose_hit([{"Special Note": "Balkans outreach"}]) == "balkans")
    check("No hit -> None", purpose_hit([{"Grant Purpose": "General support"}]) is None)
    check(
        "Substring heuristic over-classifies ('uk' in Milwaukee)",
        is_international_heuristic("City Mission", "Milwaukee, WI", []) is True,
    )
    custom = ClassifierKeywords(international_orgs=[], non_us_address_keywords=["reno"], purpose_keywords=[])
    check(
        "Keyword lists are configuration",
        is_international_heuristic("Test Charity", "1 Test Way, Reno, NV", [], custom) is True
        and is_international_heuristic("Young Life", "", [], custom) is False,
    )

    print("\n  metadata keys:")
    check("HTML entities decoded", metadata_key("Smith &amp; Sons", "1") == "Smith & Sons|1")
    check("Empty EIN -> (no EIN)", metadata_key(" Hope Academy ", " ") == "Hope Academy|(no EIN)")

    print("\n  get_most_recent_grant_note:")
    check("Most recent Grant Purpose", get_most_recent_grant_note(transactions[:2]) == "Scholarships")
    check(
        "Falls back to Special Note",
        get_most_recent_grant_note([{"Sent Date": "1/1/24", "Special Note": "Books"}]) == "Books",
    )
    check("No notes -> None", get_most_recent_grant_note([{"Sent Date": "1/1/24"}]) is None)
    check("No transactions -> None", get_most_recent_grant_note([]) is None)

    print("\n  find_grantee:")
    found = find_grantee(transactions, "Hope Academy", "55-5")
    check("Name + EIN disambiguates", found is not None and found.ein == "55-5")
    found = find_grantee(transactions, "hope academy")
    check("Exact name: first registered grantee", found is not None and found.ein == "")
    found = find_grantee(transactions, "Hope Academy", "00-0")
    check("Unknown EIN falls back to exact name", found is not None and found.name == "Hope Academy")
    found = find_grantee(transactions, "test")
    check("Substring fallback: 'test' finds 'Test Charity'", found is not None and found.name == "Test Charity")
    found = find_grantee(transactions, "Young Life Ministries Worldwide")
    check("Reverse containment: query contains the name", found is not None and found.name == "Young Life")
    check("Query is trimmed", find_grantee(transactions, "  Young Life  ") is not None)
    check("No match -> None", find_grantee(transactions, "Nobody Here") is None)
    check("Empty query -> None", find_grantee(transactions, "") is None)

    print(f"\n{LINE * 62}")
    print(f"  Results: {passed}/{passed + failed} passed")
    if failed == 0:
        print(f"  Grantee resolution: COMPLETE {PASS}")
    else:
        print(f"  Grantee resolution: {failed} FAILED")
    print(f"{LINE * 62}")
    return failed


def test_grantees() -> None:
    assert main() == 0


if __name__ == "__main__":
    raise SystemExit(1 if main() else 0)
