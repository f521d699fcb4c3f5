"""
Participant roster extraction from ``{{TeamCard}}`` templates.

A tournament page lists one TeamCard per team:

    {{TeamCard
    |team=Team Spirit
    |p1=Yatoro |p1flag=ua
    |p2=Larl |p2flag=ru
    ...
    |s1=Mira |s1flag=ua
    |c=Silent
    |qualifier=[[/Eastern Europe|Eastern Europe]]
    |inotes=Replaced [[Collapse]]<ref>{{cite web|url=...}}</ref>
    }}

Starters use the numeric suffixes p1..p5 (the suffix is the position),
substitutes s1..s3. Team-level fields get targeted cleanup on top of the
generic sanitizer: self-referential qualifier links collapse to their
label and citation sub-templates are stripped from notes. Cards are read
with mwparserfromhell, so a whole card on one line parses the same way.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Literal, Optional

import mwparserfromhell
from mwparserfromhell.nodes import Tag, Template

from aegis.wiki.sanitize import sanitize
from aegis.wiki.templates import find_all_templates, template_name, template_params

logger = logging.getLogger(__name__)

ROSTER_TEMPLATE = "TeamCard"
STARTER_SLOTS = 5
SUBSTITUTE_SLOTS = 3


LogoStatus = Literal["found", "absent", "unresolved"]


@dataclass(frozen=True)
class LogoResolution:
    """Outcome of a best-effort logo lookup."""

    status: LogoStatus
    url: Optional[str] = None
    dark_url: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def absent(cls) -> LogoResolution:
        return cls(status="absent")

    @property
    def found(self) -> bool:
        return self.status == "found"


@dataclass
class PlayerSlot:
    """One roster entry: a starter (position 1-5) or a substitute."""
    nickname: str
    position: Optional[int] = None
    country: Optional[str] = None
    is_substitute: bool = False

    def __repr__(self) -> str:
        slot = "sub" if self.is_substitute else f"pos{self.position}"
        return f"<PlayerSlot('{self.nickname}', {slot})>"


@dataclass
class ParticipantRecord:
    """A team entered in a tournament, with its roster."""
    team_name: str
    players: list[PlayerSlot] = field(default_factory=list)
    coach: Optional[str] = None
    qualifier: Optional[str] = None
    placement: Optional[str] = None
    prize_won: Optional[float] = None
    notes: Optional[str] = None
    logo: LogoResolution = field(default_factory=LogoResolution.absent)

    @property
    def starters(self) -> list[PlayerSlot]:
        return [p for p in self.players if not p.is_substitute]

    @property
    def is_direct_invite(self) -> bool:
        qualifier = (self.qualifier or "").lower()
        return qualifier == "invited" or "replacement" in qualifier

    def __repr__(self) -> str:
        return f"<ParticipantRecord('{self.team_name}', players={len(self.players)})>"


def clean_qualifier(raw: str) -> str:
    """Collapse ``[[/Region|Text]]`` and ``[[/Region]]`` to their display text."""
    for link in mwparserfromhell.parse(raw).filter_wikilinks():
        title = str(link.title).strip()
        if title.startswith("/"):
            raw = str(link.text) if link.text is not None and str(link.text).strip() else title[1:]
            break
    return sanitize(raw)


def _is_note_noise(node) -> bool:
    if isinstance(node, Tag):
        return str(node.tag).strip().lower() == "ref"
    if isinstance(node, Template):
        name = template_name(node)
        return name.startswith("cite web") or name == "player"
    return False


def clean_notes(raw: str) -> str:
    """Remove citation and reference sub-templates, then sanitize."""
    code = mwparserfromhell.parse(raw)
    for node in code.filter(matches=_is_note_noise):
        # Citations inside a ref go with it
        if code.contains(node):
            code.remove(node)
    return sanitize(str(code))


def _slot(data: dict[str, str], key: str, position: Optional[int], substitute: bool) -> Optional[PlayerSlot]:
    raw = data.get(key)
    if not raw:
        return None
    nickname = sanitize(raw)
    if not nickname:
        return None
    return PlayerSlot(
        nickname=nickname,
        position=position,
        country=sanitize(data.get(f"{key}flag", "")) or None,
        is_substitute=substitute,
    )


def parse_team_card(body: str) -> Optional[ParticipantRecord]:
    """Parse one TeamCard span. Returns None when the card names no team."""
    data = template_params(body)
    team_name = sanitize(data.get("team", ""))
    if not team_name:
        return None

    players = []
    for i in range(1, STARTER_SLOTS + 1):
        slot = _slot(data, f"p{i}", position=i, substitute=False)
        if slot:
            players.append(slot)
    for i in range(1, SUBSTITUTE_SLOTS + 1):
        slot = _slot(data, f"s{i}", position=None, substitute=True)
        if slot:
            players.append(slot)

    coach = sanitize(data.get("c", "")) or None
    qualifier = clean_qualifier(data["qualifier"]) if data.get("qualifier") else None
    notes = clean_notes(data["inotes"]) if data.get("inotes") else None

    return ParticipantRecord(
        team_name=team_name,
        players=players,
        coach=coach,
        qualifier=qualifier or None,
        placement=sanitize(data.get("placement", "")) or None,
        notes=notes or None,
    )


def extract_participants(wikitext: str) -> list[ParticipantRecord]:
    """
    Extract one ParticipantRecord per distinct team from a tournament page.

    The first card for a team wins; later duplicates are logged and dropped.
    """
    participants: list[ParticipantRecord] = []
    seen: set[str] = set()

    for card in find_all_templates(wikitext or "", ROSTER_TEMPLATE):
        record = parse_team_card(card.body)
        if record is None:
            continue
        key = record.team_name.lower()
        if key in seen:
            logger.warning("Duplicate TeamCard for %s ignored", record.team_name)
            continue
        seen.add(key)
        participants.append(record)

    return participants


def split_invites(
    participants: list[ParticipantRecord],
) -> tuple[list[ParticipantRecord], list[ParticipantRecord]]:
    """Split into (direct invites, everyone else)."""
    invited = [p for p in participants if p.is_direct_invite]
    qualified = [p for p in participants if not p.is_direct_invite]
    return invited, qualified


_COMPETED_UNDER = (
    re.compile(r"^\[\[([^\]|]+)(?:\|[^\]]*)?\]\] competed under", re.IGNORECASE),
    re.compile(r"^([A-Za-z0-9 ]+?) competed under", re.IGNORECASE),
)


def competed_under_name(raw_notes: Optional[str]) -> Optional[str]:
    """
    Original team name from a note like "Nouns competed under ...".

    Used as a logo lookup fallback when a team plays under a temporary name.
    """
    if not raw_notes:
        return None
    for pattern in _COMPETED_UNDER:
        match = pattern.match(raw_notes.strip())
        if match:
            return match.group(1).strip()
    return None
