"""
Mapping of parsed wiki/statistics records onto storage rows.

Row ids are deterministic (uuid5 over a lowercased natural key), which is
what makes a re-import land on the same rows instead of duplicating them:

    tournament:<page name>
    team:<team name>
    player:<team name>:<nickname>

Every builder returns a plain dict keyed by column name, ready for
Storage.upsert / Storage.replace_links.
"""

import math
import re
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import quote

from aegis.sources.stats import MatchSummary
from aegis.stages.base import MatchStageInfo
from aegis.wiki.infobox import TournamentMetadata, prize_pool_reference
from aegis.wiki.roster import ParticipantRecord, PlayerSlot

TEAM_PAGE_BASE = "https://liquipedia.net/dota2/"
DEFAULT_FANTASY_VALUE = 100

# =============================================================================
# Deterministic ids
# =============================================================================


def deterministic_id(key: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_DNS, key))


def tournament_id(page_name: str) -> str:
    return deterministic_id(f"tournament:{page_name.lower()}")


def team_id(team_name: str) -> str:
    return deterministic_id(f"team:{team_name.lower()}")


def player_id(team_name: str, nickname: str) -> str:
    return deterministic_id(f"player:{team_name.lower()}:{nickname.lower()}")


# =============================================================================
# Field helpers
# =============================================================================


def map_tier(page_name: str, liquipedia_tier: Optional[str]) -> str:
    """
    Storage tier for a tournament.

    Examples:
        >>> map_tier("The_International/2024", "1")
        'ti'
        >>> map_tier("Riyadh_Masters/2024", "1")
        'tier1'
        >>> map_tier("DPC/Major", "Major")
        'major'
    """
    if "the_international" in page_name.lower():
        return "ti"
    if not liquipedia_tier:
        return "tier2"
    tier = liquipedia_tier.strip().lower()
    if tier in {"1", "2", "3", "4"}:
        return f"tier{tier}"
    if "major" in tier:
        return "major"
    return "tier2"


POSITION_ROLES = {1: "carry", 2: "mid", 3: "offlane", 4: "support4", 5: "support5"}


def position_to_role(position: Optional[int]) -> Optional[str]:
    return POSITION_ROLES.get(position) if position is not None else None


# Checked in order; short codes only match as whole words
REGION_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Western Europe", ("western europe", "weu")),
    ("Eastern Europe", ("eastern europe", "eeu", "cis")),
    ("China", ("china", "cn")),
    ("Southeast Asia", ("southeast asia", "sea")),
    ("North America", ("north america", "na")),
    ("South America", ("south america", "sa")),
    ("International", ("invited",)),
]


def infer_region(qualifier: Optional[str], notes: Optional[str] = None) -> Optional[str]:
    """
    Region of a team from its qualifier path and notes.

    Examples:
        >>> infer_region("Western Europe Qualifier")
        'Western Europe'
        >>> infer_region("Invited")
        'International'
        >>> infer_region("Regional Finals")
    """
    text = f"{qualifier or ''} {notes or ''}".lower()
    for region, keywords in REGION_KEYWORDS:
        for keyword in keywords:
            if re.search(rf"\b{re.escape(keyword)}\b", text):
                return region
    return None


SPECIAL_TEAM_TAGS = {
    "Team Liquid": "TL",
    "Team Secret": "TS",
    "Team Spirit": "TS",
    "Tundra Esports": "TUN",
    "Gaimin Gladiators": "GG",
    "OG": "OG",
    "Nigma Galaxy": "NGX",
    "BetBoom Team": "BB",
    "Team Falcons": "TF",
    "Xtreme Gaming": "XG",
}


def team_tag(team_name: str) -> str:
    """
    Short tag for a team: known tags first, else initials (max 4).

    Examples:
        >>> team_tag("Tundra Esports")
        'TUN'
        >>> team_tag("Azure Ray")
        'AR'
    """
    if team_name in SPECIAL_TEAM_TAGS:
        return SPECIAL_TEAM_TAGS[team_name]
    return "".join(word[0] for word in team_name.split()).upper()[:4]


_AMOUNT = re.compile(r"\d+(?:\.\d+)?")


def parse_prize_pool(value: Optional[str]) -> Optional[float]:
    """
    Number in a prize pool string.

    Examples:
        >>> parse_prize_pool("$2,776,566")
        2776566.0
        >>> parse_prize_pool("TBA")
    """
    if not value:
        return None
    found = _AMOUNT.search(value.replace("$", "").replace(",", ""))
    return float(found.group(0)) if found else None


_DATE_FORMATS = ("%Y-%m-%d", "%B %d, %Y", "%b %d, %Y", "%d %B %Y", "%d %b %Y")


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an infobox date. Returns None for partial ("2024-09-??") or
    unparseable values.
    """
    if not value:
        return None
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def tournament_status(start: Optional[date], end: Optional[date], today: Optional[date] = None) -> str:
    """
    upcoming / ongoing / completed relative to ``today``.

    Tournaments without dates are historical imports, so completed.
    """
    today = today or datetime.now(timezone.utc).date()
    if start and start > today:
        return "upcoming"
    if end and end < today:
        return "completed"
    if start and start <= today:
        return "ongoing"
    return "completed"


def first_int(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    found = re.search(r"\d+", value)
    return int(found.group(0)) if found else None


def team_page_url(team_name: str) -> str:
    return TEAM_PAGE_BASE + quote(team_name.replace(" ", "_"))


# =============================================================================
# Row builders
# =============================================================================


def prize_pool_amount(metadata: TournamentMetadata) -> Optional[float]:
    """USD prize pool: the resolved amount, else a number in the authored value."""
    if metadata.prize_pool_usd.status == "resolved":
        return metadata.prize_pool_usd.amount
    # An unresolved transclusion has no usable number in it
    if prize_pool_reference(metadata.prize_pool) is not None:
        return None
    return parse_prize_pool(metadata.prize_pool)


def tournament_row(
    metadata: TournamentMetadata,
    logo_url: Optional[str] = None,
    logo_dark_url: Optional[str] = None,
    today: Optional[date] = None,
) -> dict[str, Any]:
    start = parse_date(metadata.start_date)
    end = parse_date(metadata.end_date)
    region = metadata.location.split(",")[0].strip() if metadata.location else None

    prize_pool = prize_pool_amount(metadata)

    return {
        "id": tournament_id(metadata.page_name),
        "name": metadata.name,
        "tier": map_tier(metadata.page_name, metadata.tier),
        "region": region or None,
        "status": tournament_status(start, end, today),
        "prize_pool": prize_pool,
        "start_date": start,
        "end_date": end,
        "logo_url": logo_url,
        "logo_dark_url": logo_dark_url,
        "liquipedia_url": metadata.source_url,
        "format": metadata.format,
        "league_id": metadata.league_id,
    }


def team_row(participant: ParticipantRecord, team_name: Optional[str] = None) -> dict[str, Any]:
    """Team row; ``team_name`` overrides the card name (renamed orgs)."""
    name = team_name or participant.team_name
    logo = participant.logo
    return {
        "id": team_id(participant.team_name),
        "name": name,
        "tag": team_tag(name),
        "logo_url": logo.url if logo.found else None,
        "logo_dark_url": logo.dark_url if logo.found else None,
        "region": infer_region(participant.qualifier, participant.notes),
        "liquipedia_url": team_page_url(name),
    }


def tournament_team_row(
    tournament_id_: str,
    participant: ParticipantRecord,
    index: int,
    total: int,
) -> dict[str, Any]:
    """
    Participation row. Seed follows card order; the two-group split by
    card order is provisional and gets overwritten by real group data.
    """
    return {
        "tournament_id": tournament_id_,
        "team_id": team_id(participant.team_name),
        "seed": index + 1,
        "group_name": "Group A" if index < math.ceil(total / 2) else "Group B",
        "placement": first_int(participant.placement),
        "prize_won": participant.prize_won,
        "qualifier": participant.qualifier,
    }


def player_row(player: PlayerSlot, team_name: str) -> dict[str, Any]:
    return {
        "id": player_id(team_name, player.nickname),
        "nickname": player.nickname,
        "role": position_to_role(player.position),
        "team_id": team_id(team_name),
        "country": player.country,
    }


def tournament_player_row(tournament_id_: str, player: PlayerSlot, team_name: str) -> dict[str, Any]:
    return {
        "tournament_id": tournament_id_,
        "player_id": player_id(team_name, player.nickname),
        "team_id": team_id(team_name),
        "is_active": True,
        "fantasy_value": DEFAULT_FANTASY_VALUE,
    }


def match_row(
    tournament_id_: str,
    summary: MatchSummary,
    team1_id: str,
    team2_id: str,
    stage: Optional[MatchStageInfo] = None,
) -> dict[str, Any]:
    """
    Row for one game. team1 is radiant, team2 is dire; scores are the
    single-game result (1/0).
    """
    started_at = None
    ended_at = None
    if summary.start_time:
        started_at = datetime.fromtimestamp(summary.start_time, tz=timezone.utc).replace(tzinfo=None)
        ended_at = started_at
        if summary.duration_seconds:
            ended_at = started_at + timedelta(seconds=summary.duration_seconds)

    winner = None
    team1_score = team2_score = None
    if summary.radiant_win is not None:
        winner = team1_id if summary.radiant_win else team2_id
        team1_score = 1 if summary.radiant_win else 0
        team2_score = 0 if summary.radiant_win else 1

    row = {
        "id": summary.match_id,
        "tournament_id": tournament_id_,
        "team1_id": team1_id,
        "team2_id": team2_id,
        "winner_id": winner,
        "team1_score": team1_score,
        "team2_score": team2_score,
        "started_at": started_at,
        "ended_at": ended_at,
        "duration_seconds": summary.duration_seconds,
        "series_id": summary.series_id,
        "status": "completed",
        "stage": None,
        "substage": None,
        "round": None,
        "series_format": None,
        "best_of": None,
        "game_number": None,
    }
    if stage is not None:
        row.update(
            stage=stage.stage,
            substage=stage.substage,
            round=stage.round,
            series_format=stage.series_format,
            best_of=int(stage.series_format[2:]),
            game_number=stage.game_number,
        )
    return row
