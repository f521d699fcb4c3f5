"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests: an in-memory store, in-process fakes for
the two remote sources, and a small but complete example tournament
("Example_Cup/2024") spread over its main page and stage sub-pages.
"""

from datetime import date
from types import SimpleNamespace
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aegis.db.models import Base
from aegis.db.storage import SqlStorage
from aegis.sources.base import SourceError
from aegis.sources.stats import LeagueNode, LeagueNodeGroup, MatchSummary, TeamRef

EXAMPLE_PAGE = "Example_Cup/2024"
EXAMPLE_LEAGUE_ID = 16935
EXAMPLE_TODAY = date(2025, 1, 1)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def test_engine():
    """
    In-memory SQLite engine shared by every connection of one test.

    StaticPool keeps a single connection, so the schema created here is
    visible to every session the storage opens.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine)


@pytest.fixture
def storage(session_factory):
    return SqlStorage(session_factory)


# =============================================================================
# Source fakes
# =============================================================================


class FakeWiki:
    """Wiki source serving pages from dicts. Pages in ``failing`` raise."""

    def __init__(
        self,
        pages: Optional[dict[str, str]] = None,
        html: Optional[dict[str, str]] = None,
        images: Optional[dict[str, list[str]]] = None,
        image_urls: Optional[dict[str, str]] = None,
        categories: Optional[dict[str, list[str]]] = None,
        failing: tuple[str, ...] = (),
    ):
        self.pages = pages or {}
        self.html = html or {}
        self.images = images or {}
        self.image_urls = image_urls or {}
        self.categories = categories or {}
        self.failing = set(failing)
        self.requests: list[tuple[str, str]] = []

    def _check(self, kind: str, name: str) -> None:
        self.requests.append((kind, name))
        if name in self.failing:
            raise SourceError(f"wiki returned HTTP 500 for {name}")

    async def fetch_wikitext(self, page_name: str) -> str:
        self._check("wikitext", page_name)
        return self.pages.get(page_name, "")

    async def fetch_team_page_wikitext(self, team_name: str) -> str:
        page_name = "_".join(team_name.split())
        self._check("team", page_name)
        return self.pages.get(page_name, "")

    async def fetch_rendered_html(self, page_name: str) -> str:
        self._check("html", page_name)
        return self.html.get(page_name, "")

    async def fetch_page_image_names(self, page_name: str) -> list[str]:
        self._check("images", page_name)
        return list(self.images.get(page_name, []))

    async def resolve_image_url(self, image_name: str) -> Optional[str]:
        self._check("image_url", image_name)
        return self.image_urls.get(image_name)

    async def fetch_category_members(self, category: str, limit: int = 50) -> list[str]:
        self._check("category", category)
        return list(self.categories.get(category, []))[:limit]


class FakeStats:
    """Statistics source returning canned matches and node groups."""

    def __init__(
        self,
        matches: Optional[list[MatchSummary]] = None,
        structure: Optional[list[LeagueNodeGroup]] = None,
        fail_matches: bool = False,
        fail_structure: bool = False,
    ):
        self.matches = matches or []
        self.structure = structure or []
        self.fail_matches = fail_matches
        self.fail_structure = fail_structure
        self.match_calls: list[int] = []

    async def fetch_league_structure(self, league_id: int) -> list[LeagueNodeGroup]:
        if self.fail_structure:
            raise SourceError("stratz returned HTTP 500")
        return list(self.structure)

    async def fetch_all_league_matches(self, league_id, batch=100, delay=1.0, sleep=None):
        self.match_calls.append(league_id)
        if self.fail_matches:
            raise SourceError("stratz returned HTTP 503")
        return list(self.matches)


class RecordingSleep:
    """Async stand-in for asyncio.sleep that records the requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def no_sleep():
    return RecordingSleep()


# =============================================================================
# Example tournament
# =============================================================================

EXAMPLE_WIKITEXT = """{{Infobox league
|name=Example Cup 2024
|shortname=EC 2024
|liquipediatier=1
|organizer=[[Example Org]]
|city=Seattle
|country=United States
|type=Offline
|prizepoolusd={{:Example_Cup/2024/prizepool}}
|sdate=2024-09-04
|edate=2024-09-15
|leagueid=16935
|format=Group stage: {{Abbr/Bo2}}
 Playoffs: Double elimination
|team_number=4
}}
==Participants==
{{TeamCard
|team=Team Spirit
|p1=Yatoro |p1flag=ua
|p2=Larl |p2flag=ru
|p3=Collapse |p3flag=ru
|p4=rue |p4flag=ru
|p5=Miposhka |p5flag=ru
|c=Silent
|qualifier=Invited
}}
{{TeamCard
|team=PSG.Quest
|p1=Nine |p1flag=fi
|p2=Noob |p2flag=ua
|p3=Ghost |p3flag=bg
|p4=Kataomi |p4flag=ro
|p5=Fishman |p5flag=sr
|qualifier=[[/Western Europe|Western Europe]]
}}
{{TeamCard
|team=Gaimin Gladiators
|p1=watson |p1flag=ca
|p2=Quinn |p2flag=us
|p3=Ace |p3flag=dk
|p4=tOfu |p4flag=de
|p5=Seleri |p5flag=dk
|s1=Malik |s1flag=dk
|qualifier=[[/Western Europe|Western Europe]]
|inotes=Replaced [[Dyrachyo]]<ref>{{cite web|url=https://example.com/roster}}</ref>
}}
{{TeamCard
|team=Tundra Esports
|p1=Pure |p1flag=gb
|p2=bzm |p2flag=ua
|p3=33 |p3flag=il
|p4=Saksa |p4flag=mk
|p5=Whitemon |p5flag=id
|qualifier=[[/Western Europe]]
}}
"""

GROUP_STAGE_WIKITEXT = """==Group Stage==
{{Matchlist|id=AbCdEf|title=Group A
|M1={{Match
    |opponent1={{TeamOpponent|Team Spirit}}
    |opponent2={{TeamOpponent|PSG.Quest}}
    |bestof=2 |date=2024-09-04
    |matchid1=7001 |matchid2=7002
}}
}}
{{Matchlist|id=GhIjKl|title=Group B
|M1={{Match
    |opponent1={{TeamOpponent|Gaimin Gladiators}}
    |opponent2={{TeamOpponent|Tundra Esports}}
    |bestof=2 |date=2024-09-05
    |matchid1=7003 |matchid2=7004
}}
}}
"""

MAIN_EVENT_WIKITEXT = """==Playoffs==
{{Bracket|Bracket/2
<!-- Upper Bracket Final -->
|R1M1={{Match
    |opponent1={{TeamOpponent|Team Spirit}}
    |opponent2={{TeamOpponent|Gaimin Gladiators}}
    |bestof=3
    |matchid1=7005 |matchid2=7006
}}
<!-- Grand Final -->
|R2M1={{Match
    |opponent1={{TeamOpponent|Team Spirit}}
    |opponent2={{TeamOpponent|Tundra Esports}}
    |bestof=5
    |matchid1=7007 |matchid2=7008 |matchid3=7009
}}
}}
"""

SPIRIT = TeamRef(id=7119388, name="Team Spirit", tag="TSpirit")
QUEST = TeamRef(id=8893303, name="PSG Quest", tag="PSG.Q")
GLADIATORS = TeamRef(id=8599101, name="Gaimin Gladiators", tag="GG")
TUNDRA = TeamRef(id=8291895, name="Tundra", tag="Tundra")
STACK = TeamRef(id=9999999, name="Random Stack", tag=None)

_GAMES = [
    (7001, SPIRIT, QUEST, True),
    (7002, QUEST, SPIRIT, True),
    (7003, GLADIATORS, TUNDRA, False),
    (7004, TUNDRA, GLADIATORS, False),
    (7005, SPIRIT, GLADIATORS, True),
    (7006, GLADIATORS, SPIRIT, False),
    (7007, TUNDRA, SPIRIT, True),
    (7008, SPIRIT, TUNDRA, True),
    (7009, TUNDRA, SPIRIT, False),
    (7010, STACK, SPIRIT, False),
]


def example_pages() -> dict[str, str]:
    return {
        EXAMPLE_PAGE: EXAMPLE_WIKITEXT,
        EXAMPLE_PAGE + "/prizepool": "$1,000,000",
        EXAMPLE_PAGE + "/Group_Stage": GROUP_STAGE_WIKITEXT,
        EXAMPLE_PAGE + "/Main_Event": MAIN_EVENT_WIKITEXT,
    }


def example_matches() -> list[MatchSummary]:
    start = 1725451200  # 2024-09-04 12:00 UTC
    return [
        MatchSummary(
            match_id=match_id,
            radiant=radiant,
            dire=dire,
            radiant_win=radiant_win,
            start_time=start + index * 3600,
            duration_seconds=2400,
            series_id=900 + index // 2,
        )
        for index, (match_id, radiant, dire, radiant_win) in enumerate(_GAMES)
    ]


def example_structure() -> list[LeagueNodeGroup]:
    return [
        LeagueNodeGroup(
            id=1,
            name="Group Alpha",
            node_group_type="ROUND_ROBIN",
            nodes=[LeagueNode(11, "A1", "BEST_OF_TWO", SPIRIT.id, TUNDRA.id)],
        ),
        LeagueNodeGroup(
            id=2,
            name="Group Beta",
            node_group_type="ROUND_ROBIN",
            nodes=[LeagueNode(21, "B1", "BEST_OF_TWO", QUEST.id, GLADIATORS.id)],
        ),
        LeagueNodeGroup(
            id=3,
            name="Playoffs",
            node_group_type="BRACKET_DOUBLE_SEED_LOSER",
            nodes=[LeagueNode(31, "UBF", "BEST_OF_THREE", SPIRIT.id, GLADIATORS.id)],
        ),
    ]


@pytest.fixture
def example_wiki():
    return FakeWiki(pages=example_pages())


@pytest.fixture
def example_stats():
    return FakeStats(matches=example_matches(), structure=example_structure())


@pytest.fixture
def fake_wiki_cls():
    return FakeWiki


@pytest.fixture
def fake_stats_cls():
    return FakeStats


@pytest.fixture
def example():
    """The example tournament's constants and builders, for tests that vary them."""
    return SimpleNamespace(
        page=EXAMPLE_PAGE,
        league_id=EXAMPLE_LEAGUE_ID,
        today=EXAMPLE_TODAY,
        wikitext=EXAMPLE_WIKITEXT,
        group_stage=GROUP_STAGE_WIKITEXT,
        main_event=MAIN_EVENT_WIKITEXT,
        pages=example_pages,
        matches=example_matches,
        structure=example_structure,
        teams=SimpleNamespace(spirit=SPIRIT, quest=QUEST, gladiators=GLADIATORS, tundra=TUNDRA, stack=STACK),
    )
