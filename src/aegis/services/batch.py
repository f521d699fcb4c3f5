"""
Batch drivers: many tournaments, one at a time.

Tournaments are imported strictly in sequence with a fixed pause between
them; every import draws on the same wiki rate limits. A failure is
recorded and the batch moves on; already-imported tournaments are skipped
unless forced, so an interrupted run can simply be started again.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable

from aegis.db.storage import Storage
from aegis.services.importer import ImportOrchestrator
from aegis.services.mapping import tournament_id
from aegis.sources.wiki import WikiSource

logger = logging.getLogger(__name__)

_EXCLUDED_PAGES = [
    re.compile(r"^User:", re.IGNORECASE),
    re.compile(r"^Talk:", re.IGNORECASE),
    re.compile(r"^Template:", re.IGNORECASE),
    re.compile(r"^Category:", re.IGNORECASE),
    re.compile(r"^File:", re.IGNORECASE),
    # Qualifiers are imported as part of their main event
    re.compile(r"Qualifier", re.IGNORECASE),
    re.compile(r"_Wildcard", re.IGNORECASE),
    re.compile(r"Regional_Final", re.IGNORECASE),
]

TI_FIRST_YEAR = 2011
TI_LAST_YEAR = 2025
# No International was held in 2020
TI_SKIPPED_YEARS = {2020}


@dataclass
class BatchSummary:
    """Totals over a batch run."""
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    teams: int = 0
    players: int = 0
    matches: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def summary(self) -> str:
        """Return a human-readable summary of the batch."""
        lines = [
            "Batch import complete:",
            f"  Succeeded:          {self.succeeded}",
            f"  Skipped (existing): {self.skipped}",
            f"  Failed:             {self.failed}",
            f"  Teams imported:     {self.teams}",
            f"  Players imported:   {self.players}",
            f"  Matches imported:   {self.matches}",
        ]
        for page, error in self.failures:
            lines.append(f"    - {page}: {error}")
        return "\n".join(lines)


def normalize_page_name(title: str) -> str:
    """Page title to API page name: spaces become underscores."""
    return re.sub(r"\s+", "_", title.strip())


def filter_tournament_pages(titles: Iterable[str]) -> list[str]:
    """Drop non-tournament and qualifier pages; normalize and dedupe the rest."""
    pages: list[str] = []
    for title in titles:
        if any(pattern.search(title) for pattern in _EXCLUDED_PAGES):
            continue
        page = normalize_page_name(title)
        if page and page not in pages:
            pages.append(page)
    return pages


async def discover_tier_year(wiki: WikiSource, tier: int, year: int, limit: int = 50) -> list[str]:
    """
    Tournament pages for one tier and year.

    Reads ``Category:Tier_<n>_Tournaments_in_<year>``, falling back to the
    unfiltered ``Category:Tournaments_in_<year>`` when that is empty or
    unavailable.
    """
    category = f"Tier_{tier}_Tournaments_in_{year}"
    titles: list[str] = []
    try:
        titles = await wiki.fetch_category_members(category, limit)
    except Exception as e:
        logger.warning("Category %s unavailable: %s", category, e)

    if not titles:
        fallback = f"Tournaments_in_{year}"
        logger.warning("No pages in %s, trying %s", category, fallback)
        try:
            titles = await wiki.fetch_category_members(fallback, limit)
        except Exception as e:
            logger.error("Category %s unavailable: %s", fallback, e)
            return []

    pages = filter_tournament_pages(titles)
    logger.info("Found %d tournaments (%d before filtering)", len(pages), len(titles))
    return pages


def the_international_pages(start: int = TI_FIRST_YEAR, end: int = TI_LAST_YEAR) -> list[str]:
    """
    Examples:
        >>> the_international_pages(2019, 2021)
        ['The_International/2019', 'The_International/2021']
    """
    start = max(start, TI_FIRST_YEAR)
    end = min(end, TI_LAST_YEAR)
    return [
        f"The_International/{year}"
        for year in range(start, end + 1)
        if year not in TI_SKIPPED_YEARS
    ]


async def run_batch(
    orchestrator: ImportOrchestrator,
    pages: list[str],
    storage: Storage,
    force: bool = False,
    delay: float = 3.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> BatchSummary:
    """
    Import ``pages`` in order.

    Args:
        force: Re-import tournaments that already exist
        delay: Seconds to wait between two imports (skips don't count)

    Returns:
        Totals; ``exit_code`` is non-zero when any page failed
    """
    summary = BatchSummary()
    imported_before = False

    for index, page in enumerate(pages, start=1):
        logger.info("[%d/%d] %s", index, len(pages), page)

        if not force:
            try:
                if storage.exists(tournament_id(page)):
                    logger.info("Already imported, skipping: %s", page)
                    summary.skipped += 1
                    continue
            except Exception as e:
                logger.warning("Existence check failed for %s: %s", page, e)

        if imported_before:
            await sleep(delay)
        imported_before = True

        try:
            result = await orchestrator.import_tournament(page)
        except Exception as e:
            logger.exception("Unexpected failure importing %s", page)
            summary.failed += 1
            summary.failures.append((page, str(e)))
            continue

        if result.success:
            summary.succeeded += 1
            summary.teams += result.teams_imported
            summary.players += result.players_imported
            summary.matches += result.matches_imported
        else:
            summary.failed += 1
            summary.failures.append((page, "; ".join(result.errors) or "unknown error"))

    logger.info(
        "Batch done: %d succeeded, %d skipped, %d failed",
        summary.succeeded,
        summary.skipped,
        summary.failed,
    )
    return summary
