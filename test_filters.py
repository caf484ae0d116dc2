"""
test_filters.py - Predicate and Projection Tests

Validation for:
- matches_charity / matches_grant_status
- matches_year (suffix matching) / matches_year_range
- matches_min_amount / matches_max_amount
- matches_category / matches_is_beloved
- annotate_transaction / select_fields

Usage: python test_filters.py
"""

from __future__ import annotations

import os
import sys

# Ensure we can import from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

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
from metadata import GranteeMetadata


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

METADATA = GranteeMetadata.from_dict(
    {
        "Young Life|22-1": {"category": "Evangelism", "international": True},
        "Beloved Ministries|44-3": {"category": "Evangelism", "is_beloved": True},
        "Smith & Sons|(no EIN)": {"category": "Community"},
    }
)


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
    print("  Predicate Library Tests")
    print(LINE * 62)

    young_life = {
        "Charity": "Young Life ",
        "EIN": "22-1",
        "Amount": "25,000.00 ",
        "Grant Status": " Payment Cleared",
        "Sent Date": "1/15/24",
        "Cleared Date": "1/20/24",
    }
    beloved = {
        "Charity": "Beloved Ministries",
        "EIN": "44-3",
        "Amount": "abc",
        "Grant Status": "Pending",
        "Recommendation Submitted Date": "3/1/21",
    }
    smith = {"Charity": "Smith &amp; Sons", "EIN": "", "Amount": "3,000.00"}
    undated = {"Charity": "Nobody", "Amount": "100"}

    print("\n  matches_charity:")
    check("Exact, case- and trim-insensitive", matches_charity(young_life, "  young LIFE"))
    check("Substring does not match", not matches_charity(young_life, "Young"))
    check("No constraint matches everything", matches_charity(young_life, None))
    check("Empty constraint matches everything", matches_charity(young_life, ""))
    check("Missing Charity field does not match", not matches_charity({}, "Young Life"))

    print("\n  matches_grant_status:")
    check("Case- and trim-insensitive", matches_grant_status(young_life, "payment cleared "))
    check("Different status rejected", not matches_grant_status(beloved, "Payment Cleared"))
    check("No constraint matches", matches_grant_status(beloved, None))

    print("\n  matches_year:")
    check("Sent Date suffix '24' matches 2024", matches_year(young_life, 2024))
    check("Suffix matching: 1924 also matches '/24'", matches_year(young_life, 1924))
    check("Any date field is checked", matches_year(beloved, 2021))
    check("Different year rejected", not matches_year(young_life, 2023))
    check("Undated record rejected", not matches_year(undated, 2024))
    check("No year matches everything", matches_year(undated, None))

    print("\n  matches_year_range:")
    check("Within [2023, 2025]", matches_year_range(young_life, 2023, 2025))
    check("Open upper bound", matches_year_range(young_life, 2024, None))
    check("Open lower bound", matches_year_range(young_life, None, 2024))
    check("Below min rejected", not matches_year_range(beloved, 2022, None))
    check("Above max rejected", not matches_year_range(young_life, None, 2023))
    check("Undated never matches a range", not matches_year_range(undated, 1900, 2100))
    check("No bounds matches undated", matches_year_range(undated))

    print("\n  amount bounds:")
    check("min 25000 inclusive", matches_min_amount(young_life, 25000))
    check("max 25000 inclusive", matches_max_amount(young_life, 25000))
    check("min 25000.01 rejected", not matches_min_amount(young_life, 25000.01))
    check("max 24999.99 rejected", not matches_max_amount(young_life, 24999.99))
    check("Malformed amount behaves as 0 for min", not matches_min_amount(beloved, 1))
    check("Malformed amount behaves as 0 for max", matches_max_amount(beloved, 1))
    check("Bounds together bracket the parsed amount", all(
        matches_min_amount(t, 100) and matches_max_amount(t, 30000)
        for t in (young_life, smith, undated)
    ))

    print("\n  metadata-backed filters:")
    check("Category from metadata, case-insensitive", matches_category(young_life, "evangelism", METADATA))
    check("Category via HTML-decoded name and (no EIN)", matches_category(smith, "Community", METADATA))
    check("No metadata entry never matches a category", not matches_category(undated, "Evangelism", METADATA))
    check("is_beloved True", matches_is_beloved(beloved, True, METADATA))
    check("is_beloved False excludes beloved", not matches_is_beloved(beloved, False, METADATA))
    check("is_beloved False keeps others", matches_is_beloved(young_life, False, METADATA))
    check("is_beloved None keeps everything", matches_is_beloved(beloved, None, METADATA))

    print("\n  annotate_transaction:")
    annotated = annotate_transaction(young_life, METADATA)
    check("Adds Category", annotated["Category"] == "Evangelism")
    check("Adds International from metadata", annotated["International"] is True)
    check("Adds Is Beloved", annotated["Is Beloved"] is False)
    check("Input record not mutated", "Category" not in young_life)
    unknown = annotate_transaction(undated, METADATA)
    check("Unknown grantee: Category None", unknown["Category"] is None)
    check("Unknown grantee: flags False", unknown["International"] is False and unknown["Is Beloved"] is False)

    print("\n  select_fields:")
    records = [annotate_transaction(t, METADATA) for t in (young_life, smith)]
    projected = select_fields(records, ["Charity", "Amount", "Missing"], always_include=ANNOTATION_FIELDS)
    check(
        "Requested fields plus annotations",
        set(projected[0]) == {"Charity", "Amount", "Category", "International", "Is Beloved"},
    )
    check("Absent requested field skipped", all("Missing" not in record for record in projected))
    check("Requested order first", list(projected[0])[:2] == ["Charity", "Amount"])
    check("No fields returns the same list", select_fields(records, None) is records)
    check("Empty fields returns the same list", select_fields(records, []) is records)
    check(
        "Without always_include only requested fields",
        select_fields(records, ["EIN"]) == [{"EIN": "22-1"}, {"EIN": ""}],
    )

    print(f"\n{LINE * 62}")
    print(f"  Results: {passed}/{passed + failed} passed")
    if failed == 0:
        print(f"  Predicates: COMPLETE {PASS}")
    else:
        print(f"  Predicates: {failed} FAILED")
    print(f"{LINE * 62}")
    return failed


def test_filters() -> None:
    assert main() == 0


if __name__ == "__main__":
    raise SystemExit(1 if main() else 0)
