"""
main.py - CLI orchestration for the grants query engine.

This module is orchestration-only:
1. load configuration
2. load transactions and grantee metadata
3. run one tool
4. print the serialized result
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

from config import load_config
from explain import format_result_content, format_result_text
from loader import load_grantee_metadata, load_transactions
from logging_config import get_logger, level_from_name, setup_logging
from tools import TOOLS, call_tool, list_tools

logger = get_logger("grants-query")


def resolve_metadata_path(metadata_file: str, data_dir: str) -> Path:
    """Use the metadata path as given, or look for it inside the data directory."""
    path = Path(metadata_file)
    if path.is_absolute() or path.exists():
        return path
    return Path(data_dir) / path


def parse_arguments(raw: str | None) -> dict[str, Any]:
    """Parse the --args JSON object."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"--args is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise ValueError("--args must be a JSON object")
    return value


def run_tool(
    tool: str,
    arguments: dict[str, Any],
    data_dir: str,
    metadata_file: str,
    as_content: bool = False,
) -> tuple[bool, str]:
    """Load data, run one tool and return (is_error, printable output)."""
    start = time.time()
    transactions = load_transactions(data_dir)
    metadata = load_grantee_metadata(resolve_metadata_path(metadata_file, data_dir))

    result = call_tool(tool, arguments, transactions, metadata)
    elapsed = time.time() - start
    logger.info(
        "cli_tool_complete | tool=%s | is_error=%s | transactions=%s | metadata_entries=%s | duration_s=%.2f",
        tool,
        result.is_error,
        len(transactions),
        len(metadata),
        elapsed,
    )

    if as_content:
        return result.is_error, json.dumps(format_result_content(result), indent=2, ensure_ascii=False)
    return result.is_error, format_result_text(result)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the grants query engine."""
    config = load_config()

    parser = argparse.ArgumentParser(
        prog="grants-query",
        description=(
            "Grants Query Engine\n"
            "Answers questions about a foundation's grant history: filter, search, "
            "summarize grantees and aggregate totals."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s --list-tools\n"
            "  %(prog)s list_transactions --args '{\"year\": 2024, \"sort_by\": \"Amount\"}'\n"
            "  %(prog)s show_grantee --args '{\"charity\": \"Young Life\"}' --data-dir test_data\n"
            "  %(prog)s aggregate_transactions --args '{\"group_by\": \"category\"}'\n"
        ),
    )
    parser.add_argument(
        "tool",
        nargs="?",
        choices=sorted(TOOLS),
        help="Tool to run",
    )
    parser.add_argument(
        "--data-dir",
        "-d",
        type=str,
        default=config.data_dir,
        help=f"Directory holding the grant activity CSV files (default: {config.data_dir})",
    )
    parser.add_argument(
        "--metadata",
        "-m",
        type=str,
        default=config.metadata_file,
        help="Grantee metadata JSON; relative names are also looked up in the data directory",
    )
    parser.add_argument(
        "--args",
        "-a",
        type=str,
        default=None,
        help="Tool arguments as a JSON object",
    )
    parser.add_argument(
        "--list-tools",
        action="store_true",
        help="Print the tool definitions with their JSON input schemas and exit",
    )
    parser.add_argument(
        "--content",
        action="store_true",
        help="Print the MCP-style content envelope instead of the bare result text",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG-level) logging",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs as JSON lines (for production/log aggregation)",
    )
    args = parser.parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else level_from_name(config.log_level),
        json_format=args.log_json or config.log_json,
    )

    if args.list_tools:
        print(json.dumps(list_tools(), indent=2))
        return
    if not args.tool:
        parser.error("Provide a tool name or --list-tools")

    try:
        arguments = parse_arguments(args.args)
        logger.info("cli_mode | tool=%s | data_dir=%s | metadata=%s", args.tool, args.data_dir, args.metadata)
        is_error, output = run_tool(args.tool, arguments, args.data_dir, args.metadata, args.content)
        print(output)
        if is_error:
            raise SystemExit(1)
    except FileNotFoundError as exc:
        logger.error("cli_error | type=FileNotFoundError | error=%s", exc)
        print(f"\nError: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    except ValueError as exc:
        logger.error("cli_error | type=ValueError | error=%s", exc)
        print(f"\nError: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        raise SystemExit(130)


if __name__ == "__main__":
    main()
