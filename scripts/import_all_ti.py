#!/usr/bin/env python3
"""
Import every edition of The International.

Usage:
    python scripts/import_all_ti.py                  # 2011-2025 (no TI in 2020)
    python scripts/import_all_ti.py --start 2021     # TIs from 2021 onwards
    python scripts/import_all_ti.py --start 2019 --end 2019 --skip-logos
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aegis.config import settings
from aegis.services.batch import TI_FIRST_YEAR, TI_LAST_YEAR, run_batch, the_international_pages
from aegis.services.runtime import add_import_flags, configure_logging, import_runtime, options_from_settings


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import all editions of The International")
    parser.add_argument("--start", type=int, default=TI_FIRST_YEAR, help=f"First year (default: {TI_FIRST_YEAR})")
    parser.add_argument("--end", type=int, default=TI_LAST_YEAR, help=f"Last year (default: {TI_LAST_YEAR})")
    add_import_flags(parser)
    args = parser.parse_args(argv)
    if args.start > args.end:
        parser.error("--start must not be after --end")
    return args


async def run(args: argparse.Namespace) -> int:
    pages = the_international_pages(args.start, args.end)
    if not pages:
        print(f"No editions between {args.start} and {args.end}")
        return 0

    print(f"Importing {len(pages)} editions of The International:")
    for page in pages:
        print(f"  - {page}")

    options = options_from_settings(
        settings,
        dry_run=args.dry_run,
        verbose=args.verbose,
        skip_matches=args.skip_matches,
        skip_logos=args.skip_logos,
    )
    async with import_runtime(options) as runtime:
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
