"""
Liquipedia MediaWiki API source.

All reads go through ``_request``, which checks the response cache, waits
on the rate limiter for the operation class ("parse" for action=parse,
"standard" for everything else), performs the request with retries and
stores the decoded JSON. A cache hit never touches the limiter.

Pages that do not exist come back as empty values; only transport and
API failures raise SourceError.

Usage:
    async with httpx.AsyncClient() as client:
        wiki = WikiSource(client)
        wikitext = await wiki.fetch_wikitext("The_International/2024")
"""

import logging
from typing import Any, Optional

import httpx
from tenacity.wait import wait_base

from aegis.config import Settings, settings as default_settings
from aegis.sources.base import SourceError, decode_json, request_with_retry
from aegis.sources.throttle import RateLimiter, ResponseCache

logger = logging.getLogger(__name__)

SOURCE_NAME = "wiki"

# API error codes that mean "no such page" rather than a failure
_MISSING_PAGE_CODES = {"missingtitle", "invalidtitle"}


def _first_page(data: dict[str, Any]) -> Optional[dict[str, Any]]:
    pages = (data.get("query") or {}).get("pages") or {}
    for page in pages.values():
        return page
    return None


class WikiSource:
    """Rate-limited, cached client for the wiki API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        limiter: Optional[RateLimiter] = None,
        cache: Optional[ResponseCache] = None,
        settings: Optional[Settings] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        self.client = client
        self.settings = settings or default_settings
        self.limiter = limiter or RateLimiter(
            {
                "standard": self.settings.wiki_standard_interval,
                "parse": self.settings.wiki_parse_interval,
            }
        )
        self.cache = cache if cache is not None else ResponseCache(ttl=self.settings.wiki_cache_ttl)
        self.retry_wait = retry_wait
        self.request_count = 0

    async def _request(self, params: dict[str, str]) -> dict[str, Any]:
        params = {**params, "format": "json"}
        cached = self.cache.get(params)
        if cached is not None:
            return cached

        op_class = "parse" if params.get("action") == "parse" else "standard"
        await self.limiter.wait(op_class)

        response = await request_with_retry(
            self.client,
            "GET",
            self.settings.wiki_api_url,
            source=SOURCE_NAME,
            max_attempts=self.settings.http_max_retries,
            params=params,
            headers={
                "User-Agent": self.settings.wiki_user_agent,
                "Accept-Encoding": "gzip",
                "Accept": "application/json",
            },
            wait=self.retry_wait,
        )
        self.request_count += 1
        data = decode_json(response, SOURCE_NAME)
        if not isinstance(data, dict):
            raise SourceError("wiki returned an unexpected payload")

        error = data.get("error")
        if error:
            code = error.get("code", "unknown")
            if code in _MISSING_PAGE_CODES:
                logger.debug("Wiki page missing (%s): %s", code, params)
                data = {}
            else:
                raise SourceError(f"wiki API error: {code} - {error.get('info', '')}")

        self.cache.set(params, data)
        return data

    # =========================================================================
    # Page content
    # =========================================================================

    async def fetch_wikitext(self, page_name: str) -> str:
        """Raw wikitext of the latest revision, "" when the page is missing."""
        data = await self._request(
            {"action": "query", "titles": page_name, "prop": "revisions", "rvprop": "content"}
        )
        page = _first_page(data)
        if not page or "missing" in page:
            return ""
        revisions = page.get("revisions") or []
        return revisions[0].get("*", "") if revisions else ""

    async def fetch_team_page_wikitext(self, team_name: str) -> str:
        """Wikitext of a team's page, following redirects (renamed orgs)."""
        page_name = "_".join(team_name.split())
        data = await self._request(
            {
                "action": "query",
                "titles": page_name,
                "prop": "revisions",
                "rvprop": "content",
                "redirects": "1",
            }
        )
        page = _first_page(data)
        if not page or "missing" in page:
            return ""
        revisions = page.get("revisions") or []
        return revisions[0].get("*", "") if revisions else ""

    async def fetch_rendered_html(self, page_name: str) -> str:
        """Rendered HTML of a page. Uses the slow "parse" rate class."""
        data = await self._request({"action": "parse", "page": page_name})
        return ((data.get("parse") or {}).get("text") or {}).get("*", "")

    # =========================================================================
    # Images
    # =========================================================================

    async def fetch_page_image_names(self, page_name: str) -> list[str]:
        """File names of every image used on a page."""
        data = await self._request({"action": "parse", "page": page_name, "prop": "images"})
        return list((data.get("parse") or {}).get("images") or [])

    async def resolve_image_url(self, image_name: str) -> Optional[str]:
        """Direct URL of an uploaded file, None when the file does not exist."""
        if not image_name:
            return None
        data = await self._request(
            {"action": "query", "titles": f"File:{image_name}", "prop": "imageinfo", "iiprop": "url"}
        )
        page = _first_page(data)
        if not page:
            return None
        info = page.get("imageinfo") or []
        return info[0].get("url") if info else None

    # =========================================================================
    # Discovery
    # =========================================================================

    async def fetch_category_members(self, category: str, limit: int = 50) -> list[str]:
        """Page titles in ``Category:<category>``, "" -> []."""
        data = await self._request(
            {
                "action": "query",
                "list": "categorymembers",
                "cmtitle": f"Category:{category}",
                "cmlimit": str(limit),
            }
        )
        members = (data.get("query") or {}).get("categorymembers") or []
        return [member["title"] for member in members if "title" in member]
