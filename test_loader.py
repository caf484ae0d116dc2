"""
test_loader.py - Ingestion Boundary Tests

Validation for:
- load_transactions_from_file (preamble skipping, string cells, blank rows)
- load_transactions (directory concatenation, error cases)
- load_grantee_metadata (valid, missing, corrupt)

Usage: python test_loader.py
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from pathlib import Path

# Ensure we can import from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from loader import find_header_row, load_grantee_metadata, load_transactions, load_transactions_from_file


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
    print("  Ingestion Tests")
    print(LINE * 62)

    data_dir = Path(__file__).resolve().parent / "test_data"
    csv_path = data_dir / "transactions.csv"

    print("\n  load_transactions_from_file:")
    records = load_transactions_from_file(csv_path)
    check("Ten records (preamble and blank row skipped)", len(records) == 10)
    check("Header row found", records[0]["Transaction ID"] == "T001")
    check("Amount kept as formatted string", records[0]["Amount"] == "25,000.00 ")
    check("Empty EIN is ''", records[5]["EIN"] == "")
    check("Empty dates are ''", records[3]["Sent Date"] == "")
    check("Quoted address with commas", records[0]["Charity Address"] == "420 N Cascade Ave, Colorado Springs, CO")
    check("Every value is a string", all(isinstance(v, str) for r in records for v in r.values()))
    check("find_header_row", find_header_row(["Table 1", "x,y", "Transaction ID,Charity"]) == 2)
    check("find_header_row miss", find_header_row(["a", "b"]) == -1)

    print("\n  load_transactions:")
    check("Directory load", len(load_transactions(data_dir)) == 10)

    raised = False
    try:
        load_transactions(data_dir / "missing")
    except FileNotFoundError:
        raised = True
    check("Missing directory raises FileNotFoundError", raised)

    with tempfile.TemporaryDirectory() as tmp:
        raised = False
        try:
            load_transactions(tmp)
        except ValueError:
            raised = True
        check("Directory without CSV raises ValueError", raised)

        (Path(tmp) / "a.csv").write_text(
            "Transaction ID,Charity,Amount\nX1,First,100\n", encoding="utf-8"
        )
        (Path(tmp) / "b.csv").write_text("no header here\n1,2,3\n", encoding="utf-8")
        (Path(tmp) / "c.csv").write_text(
            "Report\nTransaction ID,Charity,Amount\nX2,Second,200\n", encoding="utf-8"
        )
        combined = load_transactions(tmp)
        check("Unreadable file skipped, others concatenated in name order", [r["Transaction ID"] for r in combined] == ["X1", "X2"])

    print("\n  load_grantee_metadata:")
    metadata = load_grantee_metadata(data_dir / "grantees.json")
    check("Entries loaded, non-object entry skipped", len(metadata) == 5)
    check("Lookup by name and EIN", metadata.category("Young Life", "22-1111111") == "Evangelism")
    check("HTML-encoded name resolves", metadata.category("Smith &amp; Sons Foundation", "77-7777777") == "Community")
    check("Empty EIN resolves via (no EIN)", metadata.category("Hope Academy", "") == "Education/Schools")
    check("is_beloved flag", metadata.is_beloved("Beloved Ministries", "44-3333333") is True)
    check("Missing file -> empty table", len(load_grantee_metadata(data_dir / "missing.json")) == 0)
    check("No path -> empty table", len(load_grantee_metadata(None)) == 0)

    with tempfile.TemporaryDirectory() as tmp:
        corrupt = Path(tmp) / "grantees.json"
        corrupt.write_text("{not json", encoding="utf-8")
        check("Corrupt file -> empty table", len(load_grantee_metadata(corrupt)) == 0)
        wrong_shape = Path(tmp) / "list.json"
        wrong_shape.write_text("[1, 2, 3]", encoding="utf-8")
        check("Non-object JSON -> empty table", len(load_grantee_metadata(wrong_shape)) == 0)

        mixed = Path(tmp) / "mixed.json"
        mixed.write_text(
            json.dumps(
                {
                    "Young Life|22-1": {"category": "Evangelism", "is_beloved": None},
                    "Grace Church|33-2": {"category": 5},
                    "Hope Academy|(no EIN)": {"name": None, "category": "Education/Schools", "is_beloved": True},
                }
            ),
            encoding="utf-8",
        )
        partial = load_grantee_metadata(mixed)
        check("Bad-typed entry skipped, others kept", len(partial) == 2)
        check("Null is_beloved reads as False", partial.category("Young Life", "22-1") == "Evangelism" and partial.is_beloved("Young Life", "22-1") is False)
        check("Null name tolerated", partial.is_beloved("Hope Academy", "") is True)
        check("Skipped entry has no category", partial.category("Grace Church", "33-2") is None)

    print(f"\n{LINE * 62}")
    print(f"  Results: {passed}/{passed + failed} passed")
    if failed == 0:
        print(f"  Ingestion: COMPLETE {PASS}")
    else:
        print(f"  Ingestion: {failed} FAILED")
    print(f"{LINE * 62}")
    return failed


def test_loader() -> None:
    assert main() == 0


if __name__ == "__main__":
    raise SystemExit(1 if main() else 0)
