"""
Prize pool tables.

Two shapes appear on tournament pages:

    {{Slot|place=1|usdprize=...|freetext=45.5%|...}}
    {{prize pool slot|place=2|...|Team Liquid}}

The first describes how the pot is split; the second records which team
finished where. Both are read with mwparserfromhell.

apply_prize_results() folds both tables into the participant records:
a card without its own placement takes the one from the placement table,
and a placed team gets its share of the pot when the total is known.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

import mwparserfromhell

from aegis.teams.identity import TeamIdentityResolver
from aegis.wiki.roster import ParticipantRecord
from aegis.wiki.sanitize import sanitize
from aegis.wiki.templates import template_name

logger = logging.getLogger(__name__)

DISTRIBUTION_TEMPLATE = "slot"
PLACEMENT_TEMPLATE = "prize pool slot"

_PERCENT = re.compile(r"(\d+(?:\.\d+)?)%?")
_LEADING_NUMBER = re.compile(r"\d+")


@dataclass
class PrizeSlot:
    place: str
    percentage: Optional[str] = None
    usd_prize: Optional[int] = None


@dataclass
class TeamPlacement:
    team_name: str
    placement: str


def ordinal(n: int) -> str:
    """1 -> '1st', 12 -> '12th', 23 -> '23rd'."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _first_place(value: Optional[str]) -> Optional[int]:
    found = _LEADING_NUMBER.search(value or "")
    return int(found.group(0)) if found else None


def _templates(wikitext: str, name: str):
    for template in mwparserfromhell.parse(wikitext or "").filter_templates():
        if template_name(template) == name:
            yield template


def _param(template, key: str) -> str:
    return str(template.get(key).value).strip() if template.has(key) else ""


def parse_prize_distribution(wikitext: str, total: Optional[float] = None) -> list[PrizeSlot]:
    """
    Parse ``{{Slot}}`` rows.

    When the total prize pool is known, each slot's USD share is computed
    from its percentage.
    """
    slots = []
    for template in _templates(wikitext, DISTRIBUTION_TEMPLATE):
        place = sanitize(_param(template, "place"))
        if not place:
            continue
        slot = PrizeSlot(place=place, percentage=sanitize(_param(template, "freetext")) or None)
        if total and slot.percentage:
            pct = _PERCENT.match(slot.percentage)
            if pct:
                slot.usd_prize = round(total * float(pct.group(1)) / 100)
        slots.append(slot)
    return slots


def parse_team_placements(wikitext: str) -> list[TeamPlacement]:
    """Parse ``{{prize pool slot}}`` rows into ordinal team placements."""
    placements = []
    for template in _templates(wikitext, PLACEMENT_TEMPLATE):
        place = _first_place(_param(template, "place"))
        positional = [p for p in template.params if not p.showkey]
        if place is None or not positional:
            continue
        team_name = sanitize(str(positional[0].value))
        if team_name:
            placements.append(TeamPlacement(team_name=team_name, placement=ordinal(place)))
    return placements


def apply_prize_results(
    participants: list[ParticipantRecord],
    wikitext: str,
    total: Optional[float] = None,
) -> int:
    """
    Fill placements and prize money from the page's prize tables.

    A placement authored on the TeamCard is kept. Placement table names are
    matched to participants with the same ladder used for match teams.

    Returns:
        Number of participants that gained a placement
    """
    filled = 0
    placements = parse_team_placements(wikitext)
    if placements and participants:
        resolver = TeamIdentityResolver({p.team_name: p for p in participants})
        for row in placements:
            found = resolver.resolve(row.team_name)
            if found is None:
                logger.debug("Placement for unknown team %s ignored", row.team_name)
                continue
            if found.value.placement is None:
                found.value.placement = row.placement
                filled += 1

    prizes = {}
    for slot in parse_prize_distribution(wikitext, total):
        place = _first_place(slot.place)
        if place is not None and slot.usd_prize is not None:
            prizes.setdefault(place, slot.usd_prize)

    for participant in participants:
        place = _first_place(participant.placement)
        if place in prizes:
            participant.prize_won = float(prizes[place])

    return filled
