"""
Data classes shared by the stage parsers and the StageMapper.

A SeriesStageInfo is what a parser finds: one best-of-N set between two
teams with its ordered match ids. The mapper flattens series into one
MatchStageInfo per match id, numbering games in series order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from aegis.stages.rounds import Round, SeriesFormat, Stage


@dataclass
class ParsedMatch:
    """Fields read from one ``{{Match}}`` template."""
    match_ids: list[int] = field(default_factory=list)
    team1: Optional[str] = None
    team2: Optional[str] = None
    date: Optional[str] = None
    best_of: Optional[int] = None


@dataclass
class SeriesStageInfo:
    """
    One series as found on a stage page.

    Attributes:
        stage: group_stage or playoffs
        substage: Free-text label ("Group A", "Upper Bracket Semifinals")
        round: Normalized round, None for ordinary group-stage series
        series_format: bo1/bo2/bo3/bo5
        match_ids: Underlying match ids in game order
        page_source: Sub-page the series was read from
    """
    stage: Stage
    substage: str
    series_format: SeriesFormat
    match_ids: list[int]
    page_source: str
    round: Optional[Round] = None
    team1: Optional[str] = None
    team2: Optional[str] = None
    date: Optional[str] = None


@dataclass
class MatchStageInfo:
    """Stage placement of a single match id."""
    match_id: int
    stage: Stage
    substage: str
    series_format: SeriesFormat
    game_number: int
    page_source: str
    round: Optional[Round] = None
    team1: Optional[str] = None
    team2: Optional[str] = None
    date: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"<MatchStageInfo({self.match_id}, {self.stage}/{self.round or '-'}, "
            f"'{self.substage}', game {self.game_number})>"
        )


@dataclass
class TournamentStageMapping:
    """Union of everything any strategy found for one tournament."""
    page_name: str
    league_id: Optional[int] = None
    matches: dict[int, MatchStageInfo] = field(default_factory=dict)
    series: list[SeriesStageInfo] = field(default_factory=list)
    group_stage_match_count: int = 0
    playoff_match_count: int = 0

    def add_series(self, info: SeriesStageInfo) -> int:
        """
        Record a series and its matches.

        Match ids already mapped keep their first mapping.

        Returns:
            Number of newly mapped match ids
        """
        self.series.append(info)
        added = 0
        for index, match_id in enumerate(info.match_ids):
            if match_id in self.matches:
                continue
            self.matches[match_id] = MatchStageInfo(
                match_id=match_id,
                stage=info.stage,
                substage=info.substage,
                series_format=info.series_format,
                game_number=index + 1,
                page_source=info.page_source,
                round=info.round,
                team1=info.team1,
                team2=info.team2,
                date=info.date,
            )
            if info.stage == "group_stage":
                self.group_stage_match_count += 1
            else:
                self.playoff_match_count += 1
            added += 1
        return added

    def get(self, match_id: int) -> Optional[MatchStageInfo]:
        return self.matches.get(match_id)
