"""
STRATZ GraphQL statistics source.

Two queries are used by the importer:
- league matches, paginated with take/skip, for the match rows
- league structure (node groups), for group-stage team membership

Requests are POSTed as ``{"query": ..., "variables": ...}`` with a Bearer
token. A response carrying GraphQL ``errors`` raises SourceError even when
the HTTP status is 200.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

import httpx
from tenacity.wait import wait_base

from aegis.config import Settings, settings as default_settings
from aegis.sources.base import SourceError, decode_json, request_with_retry
from aegis.sources.throttle import RateLimiter

logger = logging.getLogger(__name__)

SOURCE_NAME = "stratz"

LEAGUE_MATCHES_QUERY = """
query GetLeagueMatches($leagueId: Int!, $take: Int!, $skip: Int!) {
  league(id: $leagueId) {
    id
    matches(request: { take: $take, skip: $skip }) {
      id
      didRadiantWin
      durationSeconds
      startDateTime
      series { id type }
      radiantTeam { id name tag }
      direTeam { id name tag }
    }
  }
}
"""

LEAGUE_STRUCTURE_QUERY = """
query GetLeagueStructure($leagueId: Int!) {
  league(id: $leagueId) {
    id
    nodeGroups {
      id
      name
      nodeGroupType
      nodes {
        id
        name
        nodeType
        teamOneId
        teamTwoId
        seriesId
      }
    }
  }
}
"""

# nodeType -> games in the series
NODE_TYPE_BEST_OF = {
    "BEST_OF_ONE": 1,
    "BEST_OF_TWO": 2,
    "BEST_OF_THREE": 3,
    "BEST_OF_FIVE": 5,
}


@dataclass
class TeamRef:
    id: int
    name: str
    tag: Optional[str] = None


@dataclass
class MatchSummary:
    """One game of a league, as listed by the statistics service."""
    match_id: int
    radiant: Optional[TeamRef]
    dire: Optional[TeamRef]
    radiant_win: Optional[bool]
    start_time: Optional[int]
    duration_seconds: Optional[int]
    series_id: Optional[int] = None

    def __repr__(self) -> str:
        radiant = self.radiant.name if self.radiant else "?"
        dire = self.dire.name if self.dire else "?"
        return f"<MatchSummary({self.match_id}, '{radiant}' vs '{dire}')>"


@dataclass
class LeagueNode:
    id: int
    name: Optional[str]
    node_type: Optional[str]
    team_one_id: Optional[int]
    team_two_id: Optional[int]
    series_id: Optional[int] = None

    @property
    def best_of(self) -> Optional[int]:
        return NODE_TYPE_BEST_OF.get(self.node_type or "")

    @property
    def team_ids(self) -> list[int]:
        return [tid for tid in (self.team_one_id, self.team_two_id) if tid]


@dataclass
class LeagueNodeGroup:
    id: int
    name: str
    node_group_type: str
    nodes: list[LeagueNode] = field(default_factory=list)

    @property
    def is_round_robin(self) -> bool:
        return self.node_group_type == "ROUND_ROBIN"


def _team(data: Optional[dict[str, Any]]) -> Optional[TeamRef]:
    if not data or data.get("id") is None:
        return None
    return TeamRef(id=int(data["id"]), name=data.get("name") or "", tag=data.get("tag"))


def _match_summary(data: dict[str, Any]) -> MatchSummary:
    series = data.get("series") or {}
    return MatchSummary(
        match_id=int(data["id"]),
        radiant=_team(data.get("radiantTeam")),
        dire=_team(data.get("direTeam")),
        radiant_win=data.get("didRadiantWin"),
        start_time=data.get("startDateTime"),
        duration_seconds=data.get("durationSeconds"),
        series_id=series.get("id"),
    )


def _node_group(data: dict[str, Any]) -> LeagueNodeGroup:
    return LeagueNodeGroup(
        id=int(data.get("id") or 0),
        name=data.get("name") or "",
        node_group_type=data.get("nodeGroupType") or "",
        nodes=[
            LeagueNode(
                id=int(node.get("id") or 0),
                name=node.get("name"),
                node_type=node.get("nodeType"),
                team_one_id=node.get("teamOneId"),
                team_two_id=node.get("teamTwoId"),
                series_id=node.get("seriesId"),
            )
            for node in data.get("nodes") or []
        ],
    )


class StatsSource:
    """Rate-limited client for the statistics GraphQL API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        limiter: Optional[RateLimiter] = None,
        settings: Optional[Settings] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        self.client = client
        self.settings = settings or default_settings
        self.limiter = limiter or RateLimiter({"standard": self.settings.stratz_min_interval})
        self.retry_wait = retry_wait

    async def _query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        headers = {"Content-Type": "application/json", "User-Agent": "STRATZ_API"}
        if self.settings.stratz_api_token:
            headers["Authorization"] = f"Bearer {self.settings.stratz_api_token}"

        await self.limiter.wait("standard")
        response = await request_with_retry(
            self.client,
            "POST",
            self.settings.stratz_api_url,
            source=SOURCE_NAME,
            max_attempts=self.settings.http_max_retries,
            json={"query": query, "variables": variables},
            headers=headers,
            wait=self.retry_wait,
        )
        payload = decode_json(response, SOURCE_NAME)
        if not isinstance(payload, dict):
            raise SourceError("stratz returned an unexpected payload")

        errors = payload.get("errors")
        if errors:
            messages = ", ".join(str(e.get("message", e)) for e in errors)
            raise SourceError(f"stratz GraphQL errors: {messages}")
        return payload.get("data") or {}

    async def _league_match_rows(self, league_id: int, take: int, skip: int) -> list[dict[str, Any]]:
        data = await self._query(LEAGUE_MATCHES_QUERY, {"leagueId": league_id, "take": take, "skip": skip})
        league = data.get("league") or {}
        return league.get("matches") or []

    async def fetch_league_matches(self, league_id: int, take: int = 100, skip: int = 0) -> list[MatchSummary]:
        rows = await self._league_match_rows(league_id, take, skip)
        return [_match_summary(m) for m in rows if m.get("id")]

    async def fetch_league_structure(self, league_id: int) -> list[LeagueNodeGroup]:
        data = await self._query(LEAGUE_STRUCTURE_QUERY, {"leagueId": league_id})
        league = data.get("league") or {}
        return [_node_group(g) for g in league.get("nodeGroups") or []]

    async def fetch_all_league_matches(
        self,
        league_id: int,
        batch: int = 100,
        delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> list[MatchSummary]:
        """
        Every match of a league, page by page.

        Stops at the first page that returned fewer than ``batch`` rows.
        Rows without an id are dropped but still count towards the page.
        """
        matches: list[MatchSummary] = []
        skip = 0
        while True:
            rows = await self._league_match_rows(league_id, take=batch, skip=skip)
            page = [_match_summary(m) for m in rows if m.get("id")]
            matches.extend(page)
            logger.info("Fetched %d matches for league %d (total: %d)", len(page), league_id, len(matches))
            if len(rows) < batch:
                break
            skip += batch
            await sleep(delay)
        return matches
