#!/usr/bin/env python3
"""
Import every tournament of one Liquipedia tier in one year.

Tournaments are discovered from the wiki's tier/year category, filtered
(qualifiers and non-tournament pages are dropped) and imported one at a
time. Already-imported tournaments are skipped unless --force is given.

Usage:
    python scripts/import_by_tier_year.py 1 2024
    python scripts/import_by_tier_year.py 1 2024 --list-only
    python scripts/import_by_tier_year.py 2 2023 --limit 20 --skip-logos
    python scripts/import_by_tier_year.py 1 2024 --dry-run --verbose
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aegis.config import settings
from aegis.services.batch import discover_tier_year, run_batch
from aegis.services.runtime import add_import_flags, configure_logging, import_runtime, options_from_settings


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import all tournaments of a tier and year")
    parser.add_argument("tier", type=int, choices=range(1, 5), metavar="TIER", help="Liquipedia tier (1-4)")
    parser.add_argument("year", type=int, choices=range(2011, 2031), metavar="YEAR", help="Year (2011-2030)")
    parser.add_argument("--limit", type=int, default=50, help="Max category members to read (default: 50)")
    parser.add_argument("--list-only", action="store_true", help="List the tournaments without importing")
    add_import_flags(parser)
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    options = options_from_settings(
        settings,
        dry_run=args.dry_run,
        verbose=args.verbose,
        skip_matches=args.skip_matches,
        skip_logos=args.skip_logos,
    )

    async with import_runtime(options) as runtime:
        pages = await discover_tier_year(runtime.wiki, args.tier, args.year, args.limit)
        if not pages:
            print(f"No tier {args.tier} tournaments found for {args.year}")
            return 0

        print(f"\nTier {args.tier} tournaments in {args.year} ({len(pages)}):")
        for page in pages[:20]:
            print(f"  - {page}")
        if len(pages) > 20:
            print(f"  ... and {len(pages) - 20} more")

        if args.list_only:
            return 0

        summary = await run_batch(
            runtime.orchestrator,
            pages,
            runtime.storage,
            force=args.force,
            delay=settings.import_batch_delay,
        )

    print()
    print(summary.summary())
    return summary.exit_code


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
