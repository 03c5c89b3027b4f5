"""Scan every launch account of the launchpad program and print a summary.

For each decodable launch prints category, status, resolved token mint and,
for instant launches with curve state, the current bonding-curve price.
Undecodable accounts are counted and logged, never fatal.

Usage:
    python scripts/scan_launches.py
    python scripts/scan_launches.py --schema auto --verify-owner --json
"""

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger  # noqa: E402

from config.settings import settings  # noqa: E402
from src.parsers.launchpad.client import LaunchpadClient  # noqa: E402
from src.parsers.launchpad.constants import LaunchCategory, SchemaVersion  # noqa: E402
from src.parsers.launchpad.models import LaunchRecord  # noqa: E402
from src.pricing.bonding_curve import (  # noqa: E402
    BondingCurveState,
    CurveParameters,
    quote_buy,
)
from src.pricing.exceptions import InvalidCurveInputError  # noqa: E402
from src.utils.logger import setup_logger  # noqa: E402


def _schema_arg(value: str) -> SchemaVersion | None:
    return None if value == "auto" else SchemaVersion(value)


def _curve_quote(record: LaunchRecord, decimals: int, sol_amount: float) -> dict | None:
    if record.category != LaunchCategory.INSTANT or record.tokens_sold is None:
        return None
    try:
        state = BondingCurveState.from_launch_record(record, decimals)
        params = CurveParameters.for_supply(
            state.total_supply, settings.curve_reference_supply
        )
        quote = quote_buy(
            state,
            sol_amount,
            params,
            max_price_impact_pct=settings.quote_max_price_impact_pct,
        )
    except InvalidCurveInputError as e:
        logger.debug(f"[SCAN] No curve quote for {record.address}: {e}")
        return None
    return {
        "price_sol": quote.current_price,
        "progress_pct": state.progress_pct,
        "buy_sol": sol_amount,
        "buy_tokens": quote.output_amount,
        "price_impact_pct": quote.price_impact_pct,
        "warning": quote.validation_message,
    }


async def scan(
    schema: SchemaVersion | None, verify_owner: bool, decimals: int, quote_sol: float
) -> dict:
    client = LaunchpadClient(
        settings.solana_rpc_url,
        settings.launchpad_program_id,
        timeout=settings.rpc_timeout_sec,
    )
    try:
        batch = await client.fetch_launches(
            schema=schema, max_field_length=settings.max_field_length
        )
        now = time.time()
        launches = []
        for record in batch.records:
            identity = await client.resolve_identity(record, verify_owner=verify_owner)
            launches.append(
                {
                    "address": record.address,
                    "name": record.name or record.page_name,
                    "symbol": record.symbol,
                    "category": record.category.value,
                    "status": record.status(now).value,
                    "token_mint": identity.mint,
                    "mint_source": identity.source,
                    "tickets_sold": record.tickets_sold,
                    "num_mints": record.num_mints,
                    "curve": _curve_quote(record, decimals, quote_sol),
                }
            )
    finally:
        await client.close()

    return {
        "total_accounts": batch.total,
        "decoded": len(batch.records),
        "skipped": [
            {"address": f.address, "error": type(f.error).__name__, "detail": str(f.error)}
            for f in batch.failures
        ],
        "launches": launches,
    }


def _print_table(report: dict) -> None:
    print(
        f"Decoded {report['decoded']}/{report['total_accounts']} accounts "
        f"({len(report['skipped'])} skipped)"
    )
    for launch in report["launches"]:
        curve = launch["curve"]
        price_str = (
            f"{curve['price_sol']:.3e} SOL ({curve['progress_pct']:.1f}% sold)"
            if curve
            else "-"
        )
        print(
            f"  {launch['address'][:12]:<12} {launch['category']:<8} {launch['status']:<9} "
            f"{(launch['symbol'] or '?'):<10} mint={launch['token_mint'][:12]} "
            f"({launch['mint_source']}) price={price_str}"
        )


async def main() -> None:
    parser = argparse.ArgumentParser(description="Scan launchpad launch accounts")
    parser.add_argument(
        "--schema",
        choices=["current", "legacy", "auto"],
        default=settings.launch_schema,
        help="Account layout to decode with (auto = infer per account)",
    )
    parser.add_argument(
        "--verify-owner",
        action="store_true",
        default=settings.verify_token_owner,
        help="Confirm token mints via getAccountInfo owner check",
    )
    parser.add_argument("--decimals", type=int, default=9, help="Token decimals for curve prices")
    parser.add_argument(
        "--quote-sol", type=float, default=1.0, help="SOL amount to quote on each curve"
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    args = parser.parse_args()

    setup_logger(json_logs=settings.json_logs, level=settings.log_level)
    report = await scan(
        _schema_arg(args.schema), args.verify_owner, args.decimals, args.quote_sol
    )

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        _print_table(report)


if __name__ == "__main__":
    asyncio.run(main())
