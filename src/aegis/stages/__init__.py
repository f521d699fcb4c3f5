"""
Stage and round classification.

Maps every match id of a tournament to its stage (group stage or
playoffs), substage label, normalized round, series format and game
number, using the tournament's stage sub-pages on the wiki.
"""

from aegis.stages.base import MatchStageInfo, SeriesStageInfo, TournamentStageMapping
from aegis.stages.mapper import StageMapper
from aegis.stages.rounds import normalize_round, round_code_to_name, series_format

__all__ = [
    "MatchStageInfo",
    "SeriesStageInfo",
    "StageMapper",
    "TournamentStageMapping",
    "normalize_round",
    "round_code_to_name",
    "series_format",
]
