"""
loader.py - Ingestion boundary: grant activity CSVs and grantee metadata.

The funder's exports carry a short preamble ("Table 1", a title row) before
the real header, so the header is located by searching for the line that
names the `Transaction ID` column. Every cell is kept as a string; numeric and
date interpretation happens lazily in normalize.py.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import pandas as pd

from logging_config import get_logger, graceful
from metadata import GranteeMetadata
from normalize import Transaction

logger = get_logger(__name__)

HEADER_MARKER = "Transaction ID"


def _read_lines(path: Path) -> tuple[list[str], str]:
    try:
        return path.read_text(encoding="utf-8-sig").splitlines(), "utf-8-sig"
    except UnicodeDecodeError:
        logger.warning(
            "csv_encoding_warning | path=%s | reason='utf-8 decode failed' | fallback=latin-1",
            path,
        )
        return path.read_text(encoding="latin-1").splitlines(), "latin-1"


def find_header_row(lines: list[str]) -> int:
    """Index of the first line that contains the Transaction ID column name."""
    for index, line in enumerate(lines):
        if HEADER_MARKER in line:
            return index
    return -1


def load_transactions_from_file(path: str | Path) -> list[Transaction]:
    """Read one grant activity export into a list of string-valued records."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Transactions CSV not found: {path}")

    lines, encoding = _read_lines(path)
    header_row = find_header_row(lines)
    if header_row < 0:
        raise ValueError(f"No '{HEADER_MARKER}' header row found in {path}")

    try:
        df = pd.read_csv(
            path,
            skiprows=header_row,
            dtype=str,
            keep_default_na=False,
            encoding=encoding,
            skip_blank_lines=True,
        )
    except Exception as exc:
        raise ValueError(f"Failed to read CSV '{path}': {exc}") from exc

    df.columns = [str(column).strip() for column in df.columns]
    if df.empty:
        logger.warning("csv_empty | path=%s", path)
        return []

    first_column = df.columns[0]
    populated = df[df[first_column].str.strip() != ""]
    skipped = len(df) - len(populated)

    records: list[Transaction] = populated.to_dict(orient="records")
    logger.info(
        "csv_loaded | path=%s | rows=%s | skipped_empty=%s | columns=%s",
        path,
        len(records),
        skipped,
        len(df.columns),
    )
    return records


def load_transactions(data_dir: str | Path) -> list[Transaction]:
    """Concatenate every *.csv file in `data_dir`, in file-name order.

    Files that cannot be parsed are logged and skipped; a missing directory or
    a directory with no CSV files is an error.
    """
    directory = Path(data_dir)
    if not directory.is_dir():
        raise FileNotFoundError(
            f"Data directory not found: {directory}\n"
            "Provide a valid directory with --data-dir or GRANTS_DATA_DIR"
        )

    files = sorted(directory.glob("*.csv"))
    if not files:
        raise ValueError(f"No CSV files found in {directory}")

    transactions: list[Transaction] = []
    for file in files:
        try:
            transactions.extend(load_transactions_from_file(file))
        except ValueError as exc:
            logger.error("csv_skipped | path=%s | error=%s", file, exc)

    logger.info(
        "transactions_loaded | directory=%s | files=%s | transactions=%s",
        directory,
        len(files),
        len(transactions),
    )
    return transactions


@graceful(GranteeMetadata.empty)
def load_grantee_metadata(path: str | Path | None) -> GranteeMetadata:
    """Load grantees.json. A missing or corrupt file yields an empty table."""
    if not path or not os.path.exists(path):
        logger.warning("metadata_missing | path=%s | fallback=empty_table", path)
        return GranteeMetadata.empty()

    with open(path, encoding="utf-8") as handle:
        raw: Any = json.load(handle)

    metadata = GranteeMetadata.from_dict(raw)
    logger.info("metadata_loaded | path=%s | entries=%s", path, len(metadata))
    return metadata
