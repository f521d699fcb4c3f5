"""
Team identity: name normalization and resolution across sources.
"""

from aegis.teams.aliases import compare_team_names, normalize_team_name
from aegis.teams.identity import TeamIdentityResolver, TeamMatch

__all__ = [
    "TeamIdentityResolver",
    "TeamMatch",
    "compare_team_names",
    "normalize_team_name",
]
