"""
StageMapper: match id -> stage/round placement for one tournament.

Liquipedia splits a tournament over sub-pages, and their shape varies by
year and organizer. Three strategies are tried, each only when the
previous ones found nothing:

1. Structured templates on ``<page>/Group_Stage`` and ``<page>/Main_Event``
2. Rendered HTML of the same two sub-pages (LPDB-generated pages)
3. Wikitext of alternative sub-pages (``/Group_Stage_1``, ``/Playoffs``, ...)

Every fetch is isolated: a sub-page that is missing or errors only costs
the series it would have contributed.

Usage:
    mapper = StageMapper(wiki_source)
    mapping = await mapper.build_mapping("The_International/2024")
    info = mapping.get(7921378840)
"""

import logging
import re
from typing import Callable, Optional, Protocol

from aegis.stages.base import SeriesStageInfo, TournamentStageMapping
from aegis.stages.html import parse_group_stage_html, parse_main_event_html
from aegis.stages.wikitext import parse_group_stage, parse_main_event

logger = logging.getLogger(__name__)

LEAGUE_ID_FIELD = re.compile(r"\|leagueid\s*=\s*(\d+)", re.IGNORECASE)

GROUP_STAGE_PATH = "/Group_Stage"
MAIN_EVENT_PATH = "/Main_Event"
ALTERNATIVE_PATHS = ("/Group_Stage_1", "/Group_Stage_2", "/Playoffs", "/Bracket")


class StagePageSource(Protocol):
    """The part of the wiki source the mapper needs."""

    async def fetch_wikitext(self, page_name: str) -> str: ...

    async def fetch_rendered_html(self, page_name: str) -> str: ...


Parser = Callable[[str, str], list[SeriesStageInfo]]


class StageMapper:
    """Builds a TournamentStageMapping from a tournament's stage sub-pages."""

    def __init__(self, wiki: StagePageSource):
        self.wiki = wiki

    async def build_mapping(self, page_name: str) -> TournamentStageMapping:
        mapping = TournamentStageMapping(page_name=page_name)
        mapping.league_id = await self._league_id(page_name)

        # Strategy 1: structured templates
        await self._apply_wikitext(mapping, page_name + GROUP_STAGE_PATH, parse_group_stage)
        await self._apply_wikitext(mapping, page_name + MAIN_EVENT_PATH, parse_main_event)

        # Strategy 2: rendered HTML
        if not mapping.matches:
            logger.info("No template matches for %s, trying rendered HTML", page_name)
            await self._apply_html(mapping, page_name + GROUP_STAGE_PATH, parse_group_stage_html)
            await self._apply_html(mapping, page_name + MAIN_EVENT_PATH, parse_main_event_html)

        # Strategy 3: alternative sub-pages
        if not mapping.matches:
            logger.info("No HTML matches for %s, probing alternative pages", page_name)
            for path in ALTERNATIVE_PATHS:
                parser = parse_group_stage if "group" in path.lower() else parse_main_event
                await self._apply_wikitext(mapping, page_name + path, parser, require_match_ids=True)

        logger.info(
            "Stage mapping for %s: %d matches (%d group stage, %d playoffs)",
            page_name,
            len(mapping.matches),
            mapping.group_stage_match_count,
            mapping.playoff_match_count,
        )
        return mapping

    async def _league_id(self, page_name: str) -> Optional[int]:
        try:
            wikitext = await self.wiki.fetch_wikitext(page_name)
        except Exception as e:
            logger.warning("Could not fetch %s for its league id: %s", page_name, e)
            return None
        found = LEAGUE_ID_FIELD.search(wikitext or "")
        return int(found.group(1)) if found else None

    async def _apply_wikitext(
        self,
        mapping: TournamentStageMapping,
        sub_page: str,
        parser: Parser,
        require_match_ids: bool = False,
    ) -> None:
        try:
            wikitext = await self.wiki.fetch_wikitext(sub_page)
        except Exception as e:
            logger.warning("Could not fetch %s: %s", sub_page, e)
            return
        if not wikitext:
            logger.debug("%s does not exist", sub_page)
            return
        if require_match_ids and "matchid" not in wikitext.lower():
            return
        self._add_all(mapping, parser(wikitext, sub_page), sub_page)

    async def _apply_html(self, mapping: TournamentStageMapping, sub_page: str, parser: Parser) -> None:
        try:
            html = await self.wiki.fetch_rendered_html(sub_page)
        except Exception as e:
            logger.warning("Could not render %s: %s", sub_page, e)
            return
        self._add_all(mapping, parser(html, sub_page), sub_page)

    @staticmethod
    def _add_all(mapping: TournamentStageMapping, series: list[SeriesStageInfo], sub_page: str) -> None:
        added = sum(mapping.add_series(info) for info in series)
        if series:
            logger.info("%s: %d series, %d new matches", sub_page, len(series), added)
