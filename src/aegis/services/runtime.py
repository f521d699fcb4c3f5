"""Wiring shared by the import scripts: logging and the live collaborators."""

from __future__ import annotations

import argparse
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx

from aegis.config import Settings, settings as default_settings
from aegis.db.session import get_session_factory
from aegis.db.storage import SqlStorage
from aegis.services.importer import ImportOptions, ImportOrchestrator
from aegis.sources.stats import StatsSource
from aegis.sources.wiki import WikiSource


def add_import_flags(parser: argparse.ArgumentParser) -> None:
    """Flags shared by every import script."""
    parser.add_argument("--dry-run", action="store_true", help="Log writes instead of performing them")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--skip-matches", action="store_true", help="Skip importing matches from STRATZ")
    parser.add_argument("--skip-logos", action="store_true", help="Skip fetching tournament and team logos")
    parser.add_argument("--force", action="store_true", help="Re-import tournaments that already exist")


def configure_logging(verbose: bool = False, settings: Optional[Settings] = None) -> None:
    settings = settings or default_settings
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level),
        format=settings.log_format,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def options_from_settings(settings: Settings, **overrides) -> ImportOptions:
    return ImportOptions(
        match_batch_size=settings.import_match_page_size,
        match_batch_delay=settings.import_match_page_delay,
        logo_delay=settings.import_logo_delay,
        **overrides,
    )


@dataclass(frozen=True)
class ImportRuntime:
    wiki: WikiSource
    stats: StatsSource
    storage: SqlStorage
    orchestrator: ImportOrchestrator


@asynccontextmanager
async def import_runtime(
    options: ImportOptions,
    settings: Optional[Settings] = None,
) -> AsyncIterator[ImportRuntime]:
    """Open HTTP clients and storage for one script run."""
    settings = settings or default_settings
    timeout = httpx.Timeout(settings.http_timeout)
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as wiki_client, \
            httpx.AsyncClient(timeout=timeout) as stats_client:
        wiki = WikiSource(wiki_client, settings=settings)
        stats = StatsSource(stats_client, settings=settings)
        storage = SqlStorage(get_session_factory())
        orchestrator = ImportOrchestrator(wiki, stats, storage, options=options)
        yield ImportRuntime(wiki=wiki, stats=stats, storage=storage, orchestrator=orchestrator)
