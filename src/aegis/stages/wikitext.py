"""
Structured-template strategy for stage pages.

Authored stage pages describe matches with three template shapes:

1. Match lists (group stage rounds, tiebreakers, placement matches):

       {{Matchlist|id=abc|title=Group A
       |M1={{Match
           |opponent1={{TeamOpponent|Team Spirit}}
           |opponent2={{TeamOpponent|Tundra Esports}}
           |bestof=2 |date=2024-09-04
           |matchid1=7921378840 |matchid2=7921451234
       }}
       }}

2. Brackets, where the round is only given by an HTML comment placed
   above the slots that belong to it:

       {{Bracket|Bracket/8U8L
       <!-- Upper Bracket Quarterfinals -->
       |R2M1={{Match ... }}

3. An elimination bracket embedded in the group-stage page under an
   "Elimination Round" heading. Those series are always tiebreakers.

Templates are read with mwparserfromhell, so parameters sharing a line and
nested {{TeamOpponent}} forms parse like any other. Everything here is a
pure function of the wikitext; fetching and the fallback chain live in
aegis.stages.mapper.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, Optional

import mwparserfromhell
from mwparserfromhell.nodes import Comment, Template

from aegis.stages.base import ParsedMatch, SeriesStageInfo
from aegis.stages.rounds import normalize_round, round_code_to_name, series_format
from aegis.wiki.sanitize import sanitize
from aegis.wiki.templates import find_all_templates, template_name, template_params

logger = logging.getLogger(__name__)

_MATCH_ID_KEY = re.compile(r"matchid\d*", re.IGNORECASE)
_MATCHLIST_SLOT_KEY = re.compile(r"M\d+", re.IGNORECASE)
_BRACKET_SLOT_KEY = re.compile(r"R\d+M\d+")

_ELIMINATION_HEADING = re.compile(
    r"={2,}\s*\{\{Stage\|Elimination Round\}\}\s*={2,}|={2,}\s*Elimination Round\s*={2,}",
    re.IGNORECASE,
)
_NEXT_LEVEL2_HEADING = re.compile(r"\n==[^=]")

OPPONENT_TEMPLATE = "teamopponent"
ELIMINATION_SUBSTAGE = "Elimination Round"
GROUP_STAGE_SUBSTAGE = "Group Stage"


@dataclass
class ParsedMatchlist:
    title: str
    id: str
    matches: list[ParsedMatch] = field(default_factory=list)


def _first_template(wikicode, name: str) -> Optional[Template]:
    for template in wikicode.filter_templates(recursive=False):
        if template_name(template) == name:
            return template
    return None


def opponent_name(raw: Optional[str]) -> Optional[str]:
    """
    Team name from an ``opponentN`` value.

    ``{{TeamOpponent|Team Spirit}}`` carries it positionally; the
    ``template=`` and ``name=`` forms are read as well.
    """
    if not raw:
        return None
    opponent = _first_template(mwparserfromhell.parse(raw), OPPONENT_TEMPLATE)
    if opponent is None:
        return None
    for key in ("1", "template", "name"):
        if opponent.has(key):
            name = sanitize(str(opponent.get(key).value))
            if name:
                return name
    return None


def _match_ids(content: str) -> list[int]:
    # Ids may also sit in nested {{Map}} templates, so search every level
    match_ids: list[int] = []
    for template in mwparserfromhell.parse(content).filter_templates():
        for param in template.params:
            if not _MATCH_ID_KEY.fullmatch(str(param.name).strip()):
                continue
            value = param.value.strip_code().strip()
            if value.isdigit() and int(value) > 0 and int(value) not in match_ids:
                match_ids.append(int(value))
    return match_ids


def parse_match_template(content: str) -> ParsedMatch:
    """Read ids, teams, date and best-of from one ``{{Match}}`` span."""
    params = template_params(content)
    best_of = params.get("bestof", "")
    date = sanitize(params.get("date", ""))

    return ParsedMatch(
        match_ids=_match_ids(content),
        team1=opponent_name(params.get("opponent1")),
        team2=opponent_name(params.get("opponent2")),
        date=date or None,
        best_of=int(best_of) if best_of.isdigit() else None,
    )


def parse_matchlists(wikitext: str) -> list[ParsedMatchlist]:
    """Every ``{{Matchlist}}`` with at least one identified match."""
    matchlists = []
    for template in find_all_templates(wikitext, "Matchlist"):
        params = template_params(template.body)
        matchlist = ParsedMatchlist(
            title=sanitize(params.get("title", "")) or "Unknown",
            id=sanitize(params.get("id", "")),
        )
        for key, value in params.items():
            if not _MATCHLIST_SLOT_KEY.fullmatch(key):
                continue
            slot = _first_template(mwparserfromhell.parse(value), "match")
            if slot is None:
                continue
            parsed = parse_match_template(str(slot))
            if parsed.match_ids:
                matchlist.matches.append(parsed)
        if matchlist.matches:
            matchlists.append(matchlist)
    return matchlists


def iter_bracket_slots(bracket_text: str) -> Iterator[tuple[str, str, ParsedMatch]]:
    """
    Yield (slot code, round label, match) for each identified bracket slot.

    The label is the most recent comment before the slot, or "" when the
    bracket has none. Comments inside a slot's own template are ignored.
    """
    for bracket in mwparserfromhell.parse(bracket_text).filter_templates(recursive=False):
        if template_name(bracket) != "bracket":
            continue
        label = ""
        for param in bracket.params:
            code = str(param.name).strip()
            is_slot = bool(_BRACKET_SLOT_KEY.fullmatch(code))
            for node in param.value.nodes:
                if isinstance(node, Comment):
                    label = str(node.contents).strip()
                elif is_slot and isinstance(node, Template) and template_name(node) == "match":
                    is_slot = False
                    match = parse_match_template(str(node))
                    if match.match_ids:
                        yield code, label, match


def parse_standalone_matches(wikitext: str) -> list[ParsedMatch]:
    """Top-level ``{{Match}}`` templates carrying at least one match id."""
    matches = []
    for template in find_all_templates(wikitext, "Match"):
        if "matchid" not in template.body.lower():
            continue
        parsed = parse_match_template(template.body)
        if parsed.match_ids:
            matches.append(parsed)
    return matches


def _series(
    match: ParsedMatch,
    stage: str,
    substage: str,
    page_source: str,
    round_=None,
) -> SeriesStageInfo:
    return SeriesStageInfo(
        stage=stage,
        substage=substage,
        round=round_,
        series_format=series_format(match.best_of, len(match.match_ids)),
        match_ids=list(match.match_ids),
        page_source=page_source,
        team1=match.team1,
        team2=match.team2,
        date=match.date,
    )


def elimination_section(wikitext: str) -> Optional[str]:
    """Text of the "Elimination Round" section, up to the next level-2 heading."""
    heading = _ELIMINATION_HEADING.search(wikitext)
    if heading is None:
        return None
    following = _NEXT_LEVEL2_HEADING.search(wikitext, heading.end())
    end = following.start() if following else len(wikitext)
    return wikitext[heading.start():end]


def parse_elimination_round(wikitext: str, page_source: str) -> list[SeriesStageInfo]:
    """Tiebreaker series from the elimination bracket of a group-stage page."""
    section = elimination_section(wikitext)
    if section is None:
        return []

    series = []
    for bracket in find_all_templates(section, "Bracket"):
        for _code, _label, match in iter_bracket_slots(bracket.body):
            series.append(_series(match, "group_stage", ELIMINATION_SUBSTAGE, page_source, "tiebreaker"))

    logger.info("Parsed %d elimination round series from %s", len(series), page_source)
    return series


def parse_group_stage(wikitext: str, page_source: str) -> list[SeriesStageInfo]:
    """
    All series on a group-stage page.

    Order: elimination bracket, then match lists, then stray standalone
    matches. A series sharing any match id with an earlier one is skipped.
    """
    series = parse_elimination_round(wikitext, page_source)
    claimed = {mid for s in series for mid in s.match_ids}

    for matchlist in parse_matchlists(wikitext):
        for match in matchlist.matches:
            if claimed.intersection(match.match_ids):
                continue
            series.append(_series(match, "group_stage", matchlist.title, page_source))
            claimed.update(match.match_ids)

    for match in parse_standalone_matches(wikitext):
        if claimed.intersection(match.match_ids):
            continue
        series.append(_series(match, "group_stage", GROUP_STAGE_SUBSTAGE, page_source))
        claimed.update(match.match_ids)

    return series


def parse_main_event(wikitext: str, page_source: str) -> list[SeriesStageInfo]:
    """
    All series on a playoff page: bracket slots first, then match lists
    (tiebreakers, placement deciders) not already covered by the bracket.
    """
    series = []
    claimed: set[int] = set()

    for bracket in find_all_templates(wikitext, "Bracket"):
        for code, label, match in iter_bracket_slots(bracket.body):
            if claimed.intersection(match.match_ids):
                continue
            substage = label or round_code_to_name(code)
            series.append(_series(match, "playoffs", substage, page_source, normalize_round(label)))
            claimed.update(match.match_ids)

    for matchlist in parse_matchlists(wikitext):
        for match in matchlist.matches:
            if claimed.intersection(match.match_ids):
                continue
            series.append(
                _series(match, "playoffs", matchlist.title, page_source, normalize_round(matchlist.title))
            )
            claimed.update(match.match_ids)

    return series
