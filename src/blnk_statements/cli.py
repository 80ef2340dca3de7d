"""Command line entry point for generating customer statements.

Usage:
    blnk-statement --balance-id bln_123 \\
        --start 2026-01-01T00:00:00Z --end 2026-02-01T00:00:00Z --format pdf

Every flag falls back to its STATEMENT_* environment variable.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from blnk_statements.clients.blnk_api import BlnkAPIClient
from blnk_statements.config import configure_logging, get_settings
from blnk_statements.db import TransactionStore
from blnk_statements.errors import StatementError
from blnk_statements.exporters import ExportFormat
from blnk_statements.statements.service import StatementRequest, StatementService

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blnk-statement",
        description="Generate a customer statement for a Blnk balance",
    )
    parser.add_argument("--balance-id", help="Balance to report on (STATEMENT_BALANCE_ID)")
    parser.add_argument("--currency", help="Currency code (STATEMENT_CURRENCY, default USD)")
    parser.add_argument("--start", help="ISO-8601 period start, inclusive")
    parser.add_argument("--end", help="ISO-8601 period end, exclusive")
    parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in ExportFormat],
        default=ExportFormat.CSV.value,
        help="Output format (default: csv)",
    )
    parser.add_argument("--output-dir", help="Directory for the output file")
    return parser


def request_from_args(args: argparse.Namespace) -> StatementRequest:
    settings = get_settings()
    return StatementRequest.build(
        balance_id=args.balance_id or settings.statement_balance_id,
        period_start=args.start or settings.statement_period_start,
        period_end=args.end or settings.statement_period_end,
        currency=args.currency or settings.statement_currency,
        export_format=args.format,
        output_dir=args.output_dir or settings.statement_output_dir,
    )


async def generate(request: StatementRequest) -> Path:
    """Run one request with freshly opened clients, closing them afterwards."""
    store = TransactionStore()
    try:
        async with BlnkAPIClient() as client:
            service = StatementService.from_clients(client, store)
            return await service.export(request)
    finally:
        store.close()


def report_error(error: StatementError) -> None:
    phase = f" ({error.phase})" if error.phase else ""
    print(f"Error generating statement{phase}: {error}", file=sys.stderr)
    if error.details:
        print("API Error:", json.dumps(error.details, indent=2, default=str), file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        # Validation happens here, before any connection is opened
        request = request_from_args(args)
        logger.info(
            "starting_statement",
            balance_id=request.balance_id,
            currency=request.currency,
            period_start=request.period_start,
            period_end=request.period_end,
            format=request.export_format.value,
        )
        path = asyncio.run(generate(request))
    except StatementError as e:
        logger.error("statement_failed", phase=e.phase, error=str(e))
        report_error(e)
        return 1
    except KeyboardInterrupt:
        logger.info("statement_interrupted")
        return 1

    print(path)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
