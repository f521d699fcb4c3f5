"""
Team identity resolution between the wiki and the statistics service.

Match rows from the statistics service name their teams in its own way,
and each one has to be tied back to a tournament participant read from the
wiki. The resolver tries a ladder of increasingly loose rules and stops at
the first rung that finds a candidate:

1. exact: raw names are equal
2. normalized: equal after normalize_team_name ("PSG.Quest" / "PSG Quest")
3. containment: one normalized name contains the other ("Spirit" / "Team Spirit")
4. token_overlap: enough significant words shared ("Gaimin Gladiators" / "Gladiators Gaimin")

Within a rung, candidates are tried in insertion order. A name that fails
every rung is unresolved; the caller drops the row and counts it.
"""

import logging
from dataclasses import dataclass
from typing import Generic, Literal, Mapping, Optional, TypeVar

from aegis.teams.aliases import compare_team_names, normalize_team_name, tokens_overlap

logger = logging.getLogger(__name__)

V = TypeVar("V")

MatchType = Literal["exact", "normalized", "containment", "token_overlap"]


@dataclass(frozen=True)
class TeamMatch(Generic[V]):
    """
    Result of a successful resolution.

    Attributes:
        candidate: The participant name that matched
        value: What the caller attached to that name (usually a team id)
        match_type: Which rung matched
    """
    candidate: str
    value: V
    match_type: MatchType

    def __repr__(self) -> str:
        return f"<TeamMatch('{self.candidate}', type='{self.match_type}')>"


class TeamIdentityResolver(Generic[V]):
    """
    Resolves free-form team names against a fixed set of candidates.

    Results (including failures) are memoized for the lifetime of the
    instance, which is one tournament import.

    Usage:
        resolver = TeamIdentityResolver({"Team Spirit": spirit_id, "PSG.Quest": quest_id})
        match = resolver.resolve("PSG Quest")
        if match is None:
            ...  # unresolved
    """

    def __init__(self, candidates: Mapping[str, V]):
        self._candidates = list(candidates.items())
        self._normalized = [(normalize_team_name(name), name, value) for name, value in self._candidates]
        self._cache: dict[str, Optional[TeamMatch[V]]] = {}
        self.unresolved: list[str] = []

    def resolve(self, name: Optional[str]) -> Optional[TeamMatch[V]]:
        if not name:
            return None
        if name in self._cache:
            return self._cache[name]

        match = self._resolve_uncached(name)
        self._cache[name] = match
        if match is None:
            self.unresolved.append(name)
            closest = self.closest(name)
            if closest:
                logger.debug("Unresolved team '%s' (closest: '%s' %.2f)", name, closest[0], closest[1])
            else:
                logger.debug("Unresolved team '%s'", name)
        return match

    def _resolve_uncached(self, name: str) -> Optional[TeamMatch[V]]:
        # Rung 1: exact
        for candidate, value in self._candidates:
            if candidate == name:
                return TeamMatch(candidate, value, "exact")

        target = normalize_team_name(name)
        if not target:
            return None

        # Rung 2: normalized
        for normalized, candidate, value in self._normalized:
            if normalized == target:
                return TeamMatch(candidate, value, "normalized")

        # Rung 3: containment
        for normalized, candidate, value in self._normalized:
            if normalized and (target in normalized or normalized in target):
                return TeamMatch(candidate, value, "containment")

        # Rung 4: token overlap
        for normalized, candidate, value in self._normalized:
            if tokens_overlap(target, normalized):
                return TeamMatch(candidate, value, "token_overlap")

        return None

    def closest(self, name: str) -> Optional[tuple[str, float]]:
        """Best-scoring candidate by fuzzy similarity, for diagnostics only."""
        best: Optional[tuple[str, float]] = None
        for candidate, _value in self._candidates:
            score = compare_team_names(name, candidate)
            if best is None or score > best[1]:
                best = (candidate, score)
        return best
