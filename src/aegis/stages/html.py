"""
Rendered-HTML strategy for stage pages.

Some tournaments (the LPDB-based ones) are generated from the wiki's match
database, so their wikitext holds no inline match ids. The rendered page
still does: every game links out to datdota.com/matches/<id>, grouped
under section headings with predictable anchors (``id="Round_1"``,
``id="Upper_Bracket_Final"``, ...).

We walk the parsed document in order. A known anchor opens a section, and
every match link up to the next known anchor belongs to it. When a page
has none of the anchors, all its links form a single series.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup

from aegis.stages.base import SeriesStageInfo
from aegis.stages.rounds import Round, series_format

logger = logging.getLogger(__name__)

MATCH_LINK = re.compile(r"datdota\.com/matches/(\d+)")


@dataclass(frozen=True)
class SectionAnchor:
    anchor: str
    label: str
    round: Optional[Round] = None


GROUP_STAGE_SECTIONS = (
    SectionAnchor("Round_1", "Round 1"),
    SectionAnchor("Round_2", "Round 2"),
    SectionAnchor("Round_3", "Round 3"),
    SectionAnchor("Round_4", "Round 4"),
    SectionAnchor("Round_5", "Round 5"),
    SectionAnchor("Elimination_Round", "Elimination Round", "tiebreaker"),
    SectionAnchor("Group_A", "Group A"),
    SectionAnchor("Group_B", "Group B"),
    SectionAnchor("Group_C", "Group C"),
    SectionAnchor("Group_D", "Group D"),
)

PLAYOFF_SECTIONS = (
    SectionAnchor("Upper_Bracket_Quarterfinals", "Upper Bracket Quarterfinals", "upper_bracket_qf"),
    SectionAnchor("Upper_Bracket_Semifinals", "Upper Bracket Semifinals", "upper_bracket_sf"),
    SectionAnchor("Upper_Bracket_Final", "Upper Bracket Final", "upper_bracket_final"),
    SectionAnchor("Lower_Bracket_Round_1", "Lower Bracket Round 1", "lower_bracket_r1"),
    SectionAnchor("Lower_Bracket_Round_2", "Lower Bracket Round 2", "lower_bracket_r2"),
    SectionAnchor("Lower_Bracket_Quarterfinals", "Lower Bracket Quarterfinals", "lower_bracket_qf"),
    SectionAnchor("Lower_Bracket_Semifinal", "Lower Bracket Semifinal", "lower_bracket_sf"),
    SectionAnchor("Lower_Bracket_Final", "Lower Bracket Final", "lower_bracket_final"),
    SectionAnchor("Grand_Final", "Grand Final", "grand_final"),
)


def _append_unique(bucket: list[int], match_id: int) -> None:
    if match_id > 0 and match_id not in bucket:
        bucket.append(match_id)


def collect_section_match_ids(
    html: str,
    sections: tuple[SectionAnchor, ...],
) -> tuple[list[tuple[SectionAnchor, list[int]]], list[int]]:
    """
    Group outbound match links by the known section they fall under.

    Returns:
        (sections found in document order with their ids, every id on the
        page). Ids before the first found section only appear in the second.
    """
    soup = BeautifulSoup(html, "lxml")
    by_anchor = {s.anchor.lower(): s for s in sections}

    found: list[tuple[SectionAnchor, list[int]]] = []
    seen_anchors: set[str] = set()
    all_ids: list[int] = []
    current: Optional[list[int]] = None

    for tag in soup.find_all(True):
        tag_id = tag.get("id")
        if tag_id:
            key = tag_id.lower()
            if key in by_anchor and key not in seen_anchors:
                seen_anchors.add(key)
                current = []
                found.append((by_anchor[key], current))

        if tag.name == "a":
            link = MATCH_LINK.search(tag.get("href") or "")
            if link:
                match_id = int(link.group(1))
                _append_unique(all_ids, match_id)
                if current is not None:
                    _append_unique(current, match_id)

    return found, all_ids


def _parse(
    html: str,
    page_source: str,
    stage: str,
    sections: tuple[SectionAnchor, ...],
    fallback_substage: str,
    fallback_format: str,
    fallback_round: Optional[Round],
) -> list[SeriesStageInfo]:
    if not html:
        return []
    found, all_ids = collect_section_match_ids(html, sections)

    if not found:
        if not all_ids:
            return []
        return [
            SeriesStageInfo(
                stage=stage,
                substage=fallback_substage,
                round=fallback_round,
                series_format=fallback_format,
                match_ids=all_ids,
                page_source=page_source,
            )
        ]

    series = []
    for section, match_ids in found:
        if not match_ids:
            continue
        series.append(
            SeriesStageInfo(
                stage=stage,
                substage=section.label,
                round=section.round,
                series_format=series_format(None, len(match_ids)),
                match_ids=match_ids,
                page_source=page_source,
            )
        )
    logger.debug("HTML sections on %s: %s", page_source, [s.label for s, _ in found])
    return series


def parse_group_stage_html(html: str, page_source: str) -> list[SeriesStageInfo]:
    return _parse(html, page_source, "group_stage", GROUP_STAGE_SECTIONS, "Group Stage", "bo2", None)


def parse_main_event_html(html: str, page_source: str) -> list[SeriesStageInfo]:
    return _parse(html, page_source, "playoffs", PLAYOFF_SECTIONS, "Playoffs", "bo3", "unknown")
