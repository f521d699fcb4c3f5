"""
Remote data sources: the tournament wiki and the match statistics API.
"""

from aegis.sources.base import RateLimitedError, SourceError
from aegis.sources.stats import LeagueNode, LeagueNodeGroup, MatchSummary, StatsSource, TeamRef
from aegis.sources.throttle import RateLimiter, ResponseCache
from aegis.sources.wiki import WikiSource

__all__ = [
    "LeagueNode",
    "LeagueNodeGroup",
    "MatchSummary",
    "RateLimitedError",
    "RateLimiter",
    "ResponseCache",
    "SourceError",
    "StatsSource",
    "TeamRef",
    "WikiSource",
]
