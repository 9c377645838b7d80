"""Command-line interface for the statement generation engine."""

import argparse
import logging
import sys
from pathlib import Path

from .assets import FileAssetProvider
from .config import EngineConfig, load_config
from .errors import CustomerNotFoundError, PeriodValidationError
from .generator import StatementRequest, generate_statement_sync
from .models import Period
from .sample_data import generate_store
from .sources import CUSTOMERS, InMemoryDocumentStore


def cmd_generate(args: argparse.Namespace) -> int:
    """Render one statement from a YAML document-store file."""
    config = load_config(args.config) if args.config else EngineConfig()
    if args.origin:
        config.payment_origin = args.origin
    if args.assets:
        config.asset_dir = args.assets

    store = InMemoryDocumentStore.from_yaml(args.data)
    request = StatementRequest(account_number=args.account, month=args.month, year=args.year)

    try:
        statement = generate_statement_sync(
            request,
            store,
            config=config,
            assets=FileAssetProvider(config.asset_dir),
        )
    except PeriodValidationError as exc:
        print(f"Invalid period: {exc}", file=sys.stderr)
        return 2
    except CustomerNotFoundError as exc:
        print(exc.user_message, file=sys.stderr)
        return 1

    args.out_dir.mkdir(parents=True, exist_ok=True)
    pdf_path = args.out_dir / statement.filename
    pdf_path.write_bytes(statement.content)

    print(f"Statement written: {pdf_path}")
    print(f"  Pages: {statement.page_count}")
    print(f"  Closing balance: R {statement.model.closing_balance:.2f}")
    print(f"  Payment link: {statement.payment_link.url}")
    return 0


def cmd_sample(args: argparse.Namespace) -> int:
    """Write a synthetic document-store file."""
    try:
        period = Period(year=args.year, month=args.month)
    except PeriodValidationError as exc:
        print(f"Invalid period: {exc}", file=sys.stderr)
        return 2

    store = generate_store(period, num_accounts=args.num_accounts, seed=args.seed)
    args.out.parent.mkdir(parents=True, exist_ok=True)
    store.to_yaml(args.out)

    accounts = sorted(store.collections.get(CUSTOMERS, {}))
    print(f"Sample data written: {args.out}")
    print(f"  Period: {period}")
    print(f"  Accounts: {', '.join(accounts)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Municipal statement generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Render a statement PDF")
    generate.add_argument("--data", type=Path, required=True,
                          help="YAML document-store file")
    generate.add_argument("--account", required=True, help="Account number")
    generate.add_argument("--year", required=True, help="Billing year (YYYY)")
    generate.add_argument("--month", required=True, help="Billing month (MM)")
    generate.add_argument("--config", type=Path, help="Path to YAML configuration file")
    generate.add_argument("--out-dir", type=Path, default=Path("out"),
                          help="Output directory for PDFs")
    generate.add_argument("--assets", type=Path, help="Directory holding logo images")
    generate.add_argument("--origin", help="Payment portal origin (overrides config)")
    generate.set_defaults(func=cmd_generate)

    sample = subparsers.add_parser("sample", help="Write synthetic source data")
    sample.add_argument("--out", type=Path, required=True, help="Output YAML file")
    sample.add_argument("--num-accounts", type=int, default=5,
                        help="Number of accounts to generate")
    sample.add_argument("--seed", type=int, default=42, help="Random seed")
    sample.add_argument("--year", default="2024", help="Billing year (YYYY)")
    sample.add_argument("--month", default="10", help="Billing month (MM)")
    sample.set_defaults(func=cmd_sample)

    return parser


def main(argv=None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
