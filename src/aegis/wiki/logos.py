"""
Logo discovery.

Tournament logos are not named in the infobox; the page simply embeds a
file such as ``The_International_2024_allmode.png`` among dozens of team
logos and medal icons. We pick it by name: an exact ``<Page_Name>.png``
first, then light/dark variants of the page or series name, after
filtering out team logos and utility images.

Team logos live on the team's own page in ``{{Infobox team}}``.
"""

import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from aegis.wiki.templates import parse_template

TEAM_INFOBOX_TEMPLATE = "Infobox team"

_TEAM_IMAGE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^team_", r"_team_", r"^aurora_gaming", r"^betboom_team", r"^heroic",
        r"^nigma", r"^tundra", r"^xtreme_gaming", r"^parivision", r"^gaimin",
        r"^falcons", r"_esports_", r"_gaming_", r"^og_", r"^eg_", r"^liquid_",
        r"^secret_", r"^spirit_", r"_brothers_", r"^yakutou", r"^g2\.",
        r"^cloud9", r"^nouns", r"^1win", r"^talon", r"^beastcoast", r"^gladiators",
    )
]
_UTILITY_MARKERS = (
    "_hd.png", "icon_dota2", "gold.png", "silver.png", "bronze.png",
    "copper.png", "vod-", "valve_logo", "aegis_", "_win_the_",
)


@dataclass
class LogoChoice:
    light: Optional[str] = None
    dark: Optional[str] = None


def _is_team_image(name: str) -> bool:
    return any(p.search(name) for p in _TEAM_IMAGE_PATTERNS)


def _is_utility_image(name: str) -> bool:
    lower = name.lower()
    return any(marker in lower for marker in _UTILITY_MARKERS)


def candidate_logo_images(page_name: str, images: list[str]) -> tuple[list[str], list[str]]:
    """
    Rank page images that could be the tournament logo.

    Returns:
        (light candidates, dark candidates), each in priority order and
        without duplicates.
    """
    page_pattern = re.escape(page_name.replace("/", "_"))
    series = re.escape(page_name.split("/")[0])

    light_patterns = [
        rf"^{page_pattern}\.png$",
        rf"^{page_pattern}_padded_allmode\.png$",
        rf"^{page_pattern}_allmode\.png$",
        rf"^{page_pattern}_lightmode\.png$",
        rf"^{series}_\d{{4}}_lightmode\.png$",
        rf"^{series}_\d{{4}}_allmode\.png$",
        rf"^{series}.*_lightmode\.png$",
        rf"^{series}.*_padded_allmode\.png$",
    ]
    dark_patterns = [
        rf"^{page_pattern}_darkmode\.png$",
        rf"^{series}_\d{{4}}_darkmode\.png$",
        rf"^{series}.*_darkmode\.png$",
    ]

    usable = [
        img for img in images
        if img.lower().endswith(".png") and not _is_team_image(img) and not _is_utility_image(img)
    ]

    def rank(patterns: list[str]) -> list[str]:
        ranked: list[str] = []
        for pattern in patterns:
            regex = re.compile(pattern, re.IGNORECASE)
            for img in usable:
                if regex.match(img) and img not in ranked:
                    ranked.append(img)
        return ranked

    return rank(light_patterns), rank(dark_patterns)


async def choose_tournament_logo(
    page_name: str,
    images: list[str],
    resolve_image_url: Callable[[str], Awaitable[Optional[str]]],
) -> LogoChoice:
    """Resolve the first light and dark candidates that have a file URL."""
    light_candidates, dark_candidates = candidate_logo_images(page_name, images)
    choice = LogoChoice()
    for name in light_candidates:
        choice.light = await resolve_image_url(name)
        if choice.light:
            break
    for name in dark_candidates:
        choice.dark = await resolve_image_url(name)
        if choice.dark:
            break
    return choice


def team_logo_images(team_wikitext: str) -> LogoChoice:
    """Image file names from a team page's infobox."""
    infobox = parse_template(team_wikitext or "", TEAM_INFOBOX_TEMPLATE)
    if infobox is None:
        return LogoChoice()
    return LogoChoice(light=infobox.get("image"), dark=infobox.get("imagedark"))
