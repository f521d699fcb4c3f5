"""
Tournament infobox extraction.

Every tournament page opens with an ``{{Infobox league}}`` template. This
module projects it onto a typed TournamentMetadata record; fields we do
not model explicitly are kept in ``extra`` so nothing is silently lost.

The prize pool needs special care. On recent pages the USD figure is not
written inline but transcluded from a sub-page:

    |prizepoolusd={{:The_International/2024/prizepool}}

so the raw value is preserved through sanitization and resolved by a
second fetch in resolve_prize_pool(). That lookup is best-effort: a failed
fetch leaves the amount unresolved but never fails the extraction.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Literal, Optional
from urllib.parse import quote

from aegis.config import settings
from aegis.wiki.templates import parse_template

logger = logging.getLogger(__name__)

INFOBOX_TEMPLATE = "Infobox league"

_TRANSCLUSION_REF = re.compile(r"\{\{:([^}]+)\}\}")

# Infobox keys projected onto typed attributes; everything else -> extra
_KNOWN_KEYS = {
    "name", "shortname", "tickername", "liquipediatier", "publishertier",
    "type", "organizer", "organizer2", "sponsor", "series", "city", "country",
    "venue", "venue1", "venue2", "format", "prizepool", "prizepoolusd",
    "sdate", "date", "edate", "patch", "leagueid", "team_number", "winner",
    "1st", "runnerup", "2nd",
}

PrizePoolStatus = Literal["resolved", "absent", "unresolved"]


@dataclass(frozen=True)
class PrizePoolResolution:
    """Outcome of resolving a prize pool to a USD amount."""

    status: PrizePoolStatus
    amount: Optional[float] = None
    reason: Optional[str] = None

    @classmethod
    def absent(cls) -> PrizePoolResolution:
        return cls(status="absent")

    @classmethod
    def unresolved(cls, reason: str) -> PrizePoolResolution:
        return cls(status="unresolved", reason=reason)

    @classmethod
    def resolved(cls, amount: float) -> PrizePoolResolution:
        return cls(status="resolved", amount=amount)


@dataclass
class TournamentMetadata:
    """
    Structured view of a tournament's infobox.

    Attributes:
        page_name: Wiki page the data came from (e.g. "The_International/2024")
        league_id: Statistics-service league id; when None, match sync for
            this tournament is skipped rather than failed
        prize_pool: Display prize pool as authored (may be a raw transclusion)
        prize_pool_usd: Resolution of the USD amount
        extra: Infobox fields without a typed attribute
    """
    page_name: str
    name: str
    source_url: str
    tier: Optional[str] = None
    valve_tier: Optional[str] = None
    short_name: Optional[str] = None
    ticker_name: Optional[str] = None
    type: Optional[str] = None
    organizer: Optional[str] = None
    sponsor: Optional[str] = None
    series: Optional[str] = None
    location: Optional[str] = None
    venue: Optional[str] = None
    format: Optional[str] = None
    prize_pool: Optional[str] = None
    prize_pool_raw_usd: Optional[str] = None
    prize_pool_usd: PrizePoolResolution = field(default_factory=PrizePoolResolution.absent)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    patch: Optional[str] = None
    league_id: Optional[int] = None
    team_number: Optional[int] = None
    winner: Optional[str] = None
    runner_up: Optional[str] = None
    extra: dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"<TournamentMetadata(page='{self.page_name}', name='{self.name}', league_id={self.league_id})>"


def page_url(page_name: str) -> str:
    """Human-facing URL for a wiki page."""
    return settings.wiki_page_url + quote(page_name, safe="/:")


def _join(values: list[Optional[str]], separator: str) -> Optional[str]:
    joined = separator.join(v for v in values if v)
    return joined or None


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    match = re.match(r"\s*(\d+)", value)
    return int(match.group(1)) if match else None


def extract_infobox(page_name: str, wikitext: str) -> TournamentMetadata:
    """
    Build TournamentMetadata from a tournament page.

    A page without an infobox still yields a record (named after the page)
    so callers can proceed with rosters and logos.
    """
    infobox = parse_template(wikitext, INFOBOX_TEMPLATE, preserve_raw=("prizepoolusd",))
    fields = infobox.fields if infobox else {}
    if infobox is None:
        logger.warning("No %s template on %s", INFOBOX_TEMPLATE, page_name)

    def get(key: str) -> Optional[str]:
        return fields.get(key) or None

    raw_usd = get("prizepoolusd")
    league_id = _int_or_none(get("leagueid"))
    if get("leagueid") and league_id is None:
        logger.warning("Ignoring non-numeric leagueid %r on %s", get("leagueid"), page_name)

    metadata = TournamentMetadata(
        page_name=page_name,
        name=get("name") or page_name.replace("_", " "),
        source_url=page_url(page_name),
        tier=get("liquipediatier"),
        valve_tier=get("publishertier"),
        short_name=get("shortname"),
        ticker_name=get("tickername"),
        type=get("type"),
        organizer=_join([get("organizer"), get("organizer2")], ", "),
        sponsor=get("sponsor"),
        series=get("series"),
        location=_join([get("city"), get("country")], ", "),
        venue=_join([get("venue"), get("venue1"), get("venue2")], "; "),
        format=get("format"),
        prize_pool=get("prizepool") or raw_usd,
        prize_pool_raw_usd=raw_usd,
        start_date=get("sdate") or get("date"),
        end_date=get("edate"),
        patch=get("patch"),
        league_id=league_id,
        team_number=_int_or_none(get("team_number")),
        winner=get("winner") or get("1st"),
        runner_up=get("runnerup") or get("2nd"),
        extra={k: v for k, v in fields.items() if k not in _KNOWN_KEYS and v},
    )
    logger.debug("Parsed infobox fields for %s: %s", page_name, ", ".join(fields))
    return metadata


def prize_pool_reference(raw: Optional[str]) -> Optional[str]:
    """Return the transcluded page name in ``{{:Page}}``, if any."""
    if not raw or ":" not in raw:
        return None
    match = _TRANSCLUSION_REF.search(raw)
    return match.group(1).strip() if match else None


def _parse_amount(text: str) -> Optional[float]:
    cleaned = text.replace(",", "").replace("$", "").strip()
    match = re.match(r"\d+(?:\.\d+)?", cleaned)
    return float(match.group(0)) if match else None


async def resolve_prize_pool(
    metadata: TournamentMetadata,
    fetch_wikitext: Callable[[str], Awaitable[str]],
) -> PrizePoolResolution:
    """
    Resolve the USD prize pool, following a transcluded sub-page if needed.

    Never raises: any failure is reported as an unresolved result.
    """
    raw = metadata.prize_pool_raw_usd
    if not raw:
        return PrizePoolResolution.absent()

    reference = prize_pool_reference(raw)
    if reference is None:
        amount = _parse_amount(raw)
        if amount is None:
            return PrizePoolResolution.unresolved(f"not a number: {raw!r}")
        return PrizePoolResolution.resolved(amount)

    try:
        content = await fetch_wikitext(reference)
    except Exception as exc:
        logger.warning("Failed to fetch prize pool page %s: %s", reference, exc)
        return PrizePoolResolution.unresolved(f"fetch failed: {exc}")

    amount = _parse_amount(content or "")
    if amount is None:
        return PrizePoolResolution.unresolved(f"no number on {reference}")
    return PrizePoolResolution.resolved(amount)
