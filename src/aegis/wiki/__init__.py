"""
Wiki markup parsing.

Turns raw tournament-page wikitext into typed records:
- templates: brace-balanced template location, field and parameter extraction
- sanitize: wiki markup -> plain text
- infobox: tournament metadata from {{Infobox league}}
- roster: participants from {{TeamCard}}
- prizes: prize distribution and placement tables, folded into participants
- logos: tournament/team logo selection
"""

from aegis.wiki.infobox import PrizePoolResolution, TournamentMetadata, extract_infobox
from aegis.wiki.roster import LogoResolution, ParticipantRecord, PlayerSlot, extract_participants
from aegis.wiki.sanitize import sanitize
from aegis.wiki.templates import TemplateInvocation, extract_fields, find_template, parse_template, template_params

__all__ = [
    "LogoResolution",
    "ParticipantRecord",
    "PlayerSlot",
    "PrizePoolResolution",
    "TemplateInvocation",
    "TournamentMetadata",
    "extract_fields",
    "extract_infobox",
    "extract_participants",
    "find_template",
    "parse_template",
    "sanitize",
    "template_params",
]
