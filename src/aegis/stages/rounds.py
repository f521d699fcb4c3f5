"""
Stage/round vocabulary and label normalization.

Round labels on the wiki are free text written by hand ("Upper Bracket
Quarterfinals", "LB R2", "Lower Bracket Grand Final", ...). They are mapped
onto a closed set with ordered substring tests. Two orderings matter:

- Bracket side (upper/lower) is decided before the round tier, so a
  "Lower Bracket ... Final" never falls through to a generic final.
- Quarter and semi are checked before "final", since "quarterfinal"
  contains "final".

Anything unrecognised becomes ``unknown``; the match is still mapped.
"""

from __future__ import annotations

from typing import Literal, Optional

Stage = Literal["group_stage", "playoffs"]
SeriesFormat = Literal["bo1", "bo2", "bo3", "bo5"]
Round = Literal[
    "upper_bracket_r1",
    "upper_bracket_qf",
    "upper_bracket_sf",
    "upper_bracket_final",
    "lower_bracket_r1",
    "lower_bracket_r2",
    "lower_bracket_r3",
    "lower_bracket_qf",
    "lower_bracket_sf",
    "lower_bracket_final",
    "grand_final",
    "placement",
    "tiebreaker",
    "unknown",
]

# Bracket slot code -> label for the common 8-upper/8-lower layout, used
# when a bracket has no round comment above a slot.
ROUND_CODE_NAMES: dict[str, str] = {
    "R1M1": "Lower Bracket Round 1",
    "R1M2": "Lower Bracket Round 1",
    "R1M3": "Lower Bracket Round 1",
    "R1M4": "Lower Bracket Round 1",
    "R2M1": "Upper Bracket Quarterfinals",
    "R2M2": "Upper Bracket Quarterfinals",
    "R2M3": "Upper Bracket Quarterfinals",
    "R2M4": "Upper Bracket Quarterfinals",
    "R2M5": "Lower Bracket Round 2",
    "R2M6": "Lower Bracket Round 2",
    "R2M7": "Lower Bracket Round 2",
    "R2M8": "Lower Bracket Round 2",
    "R3M1": "Lower Bracket Round 3",
    "R3M2": "Lower Bracket Round 3",
    "R4M1": "Upper Bracket Semifinals",
    "R4M2": "Upper Bracket Semifinals",
    "R4M3": "Lower Bracket Quarterfinals",
    "R4M4": "Lower Bracket Quarterfinals",
    "R5M1": "Lower Bracket Semifinal",
    "R6M1": "Upper Bracket Final",
    "R6M2": "Lower Bracket Final",
    "R7M1": "Grand Final",
}


def round_code_to_name(code: str) -> str:
    return ROUND_CODE_NAMES.get(code.upper(), f"Round {code}")


def _has_any(text: str, *needles: str) -> bool:
    return any(n in text for n in needles)


def normalize_round(label: Optional[str]) -> Round:
    """
    Map a free-text round label to the closed Round set.

    Examples:
        >>> normalize_round("Upper Bracket Quarterfinals")
        'upper_bracket_qf'
        >>> normalize_round("Lower Bracket Grand Final")
        'lower_bracket_final'
        >>> normalize_round("Grand Final")
        'grand_final'
        >>> normalize_round("")
        'unknown'
    """
    if not label:
        return "unknown"
    lower = label.lower()

    if _has_any(lower, "placement", "3rd place"):
        return "placement"
    if "tiebreaker" in lower:
        return "tiebreaker"

    if _has_any(lower, "lower", "loser"):
        if "quarter" in lower:
            return "lower_bracket_qf"
        if "semi" in lower:
            return "lower_bracket_sf"
        if "final" in lower:
            return "lower_bracket_final"
        if _has_any(lower, "round 3", "r3"):
            return "lower_bracket_r3"
        if _has_any(lower, "round 2", "r2"):
            return "lower_bracket_r2"
        return "lower_bracket_r1"

    if _has_any(lower, "upper", "winner"):
        if "quarter" in lower:
            return "upper_bracket_qf"
        if "semi" in lower:
            return "upper_bracket_sf"
        if "final" in lower:
            return "upper_bracket_final"
        if _has_any(lower, "round 1", "r1"):
            return "upper_bracket_r1"
        return "upper_bracket_qf"

    if "grand final" in lower:
        return "grand_final"

    return "unknown"


_FORMATS: dict[int, SeriesFormat] = {1: "bo1", 2: "bo2", 3: "bo3", 5: "bo5"}


def series_format(best_of: Optional[int], game_count: int = 0) -> SeriesFormat:
    """
    Series format from an explicit best-of, else from the number of games.

    Examples:
        >>> series_format(5)
        'bo5'
        >>> series_format(None, 2)
        'bo2'
        >>> series_format(None, 4)
        'bo3'
    """
    value = best_of or game_count
    if value in _FORMATS:
        return _FORMATS[value]
    return "bo2" if value <= 2 else "bo3"
