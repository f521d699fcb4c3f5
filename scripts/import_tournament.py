#!/usr/bin/env python3
"""
Import a single tournament from Liquipedia (and its matches from STRATZ).

Usage:
    python scripts/import_tournament.py The_International/2024
    python scripts/import_tournament.py The_International/2024 --dry-run --verbose
    python scripts/import_tournament.py Riyadh_Masters/2024 --skip-matches --skip-logos
    python scripts/import_tournament.py The_International/2024 --force
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aegis.config import settings
from aegis.services.mapping import tournament_id
from aegis.services.runtime import add_import_flags, configure_logging, import_runtime, options_from_settings


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import one tournament from Liquipedia")
    parser.add_argument("page", help="Liquipedia page name, e.g. The_International/2024")
    add_import_flags(parser)
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    page = "_".join(args.page.split())
    options = options_from_settings(
        settings,
        dry_run=args.dry_run,
        verbose=args.verbose,
        skip_matches=args.skip_matches,
        skip_logos=args.skip_logos,
    )

    async with import_runtime(options) as runtime:
        if not args.force and runtime.storage.exists(tournament_id(page)):
            print(f"{page} is already imported (use --force to re-import)")
            return 0

        result = await runtime.orchestrator.import_tournament(page)

    print()
    print(result.summary())
    return 0 if result.success else 1


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
