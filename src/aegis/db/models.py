"""
SQLAlchemy ORM models for Aegis.

The schema mirrors what the importer writes: entity tables keyed by
deterministic UUIDs (so re-importing a tournament lands on the same rows)
and link tables that are replaced wholesale per tournament.

Tables:
- tournaments: One row per wiki tournament page
- teams: Organisations, shared across tournaments
- players: Rostered players, with their current team
- tournament_teams: Participation (seed, group, placement)
- tournament_players: Roster membership per tournament
- matches: Individual games from the statistics service, with stage/round
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Entity Models
# =============================================================================

class Tournament(Base):
    """
    A tournament as described by its wiki page.

    The id is uuid5 over the page name, so the same page always maps to
    the same row. league_id links to the statistics service, when known.
    """
    __tablename__ = "tournaments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # 'ti', 'major', 'tier1'..'tier4'
    tier: Mapped[str] = mapped_column(String(20), nullable=False)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    # 'upcoming', 'ongoing', 'completed'
    status: Mapped[str] = mapped_column(String(15), nullable=False, default="completed")

    prize_pool: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    logo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    logo_dark_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    liquipedia_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    format: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    league_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Tournament(id='{self.id}', name='{self.name}', tier='{self.tier}')>"


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tag: Mapped[str] = mapped_column(String(20), nullable=False)
    logo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    logo_dark_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    liquipedia_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Team(id='{self.id}', name='{self.name}', tag='{self.tag}')>"


class Player(Base):
    """
    A rostered player.

    Keyed on (team, nickname), so a player who changes teams gets a new
    row; team_id is the team of the most recent import.
    """
    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    nickname: Mapped[str] = mapped_column(String(100), nullable=False)
    real_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # 'carry', 'mid', 'offlane', 'support4', 'support5'
    role: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    team_id: Mapped[Optional[str]] = mapped_column(ForeignKey("teams.id"), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Player(id='{self.id}', nickname='{self.nickname}')>"


# =============================================================================
# Link Models
# =============================================================================

class TournamentTeam(Base):
    __tablename__ = "tournament_teams"

    tournament_id: Mapped[str] = mapped_column(ForeignKey("tournaments.id"), primary_key=True)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), primary_key=True)
    seed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    group_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    placement: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    prize_won: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    qualifier: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<TournamentTeam({self.tournament_id}, {self.team_id}, group='{self.group_name}')>"


class TournamentPlayer(Base):
    __tablename__ = "tournament_players"

    tournament_id: Mapped[str] = mapped_column(ForeignKey("tournaments.id"), primary_key=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), primary_key=True)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    fantasy_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class Match(Base):
    """
    One game, keyed by the statistics service's match id.

    team1 is the radiant side and team2 the dire side. Stage columns are
    filled from the tournament's stage mapping when the game appears on
    a stage page, and left empty otherwise.
    """
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    tournament_id: Mapped[str] = mapped_column(ForeignKey("tournaments.id"), nullable=False)

    team1_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    team2_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    winner_id: Mapped[Optional[str]] = mapped_column(ForeignKey("teams.id"), nullable=True)
    team1_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    team2_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    duration_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Stage placement: 'group_stage' / 'playoffs', free-text substage, normalized round
    stage: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    substage: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    round: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    series_format: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    best_of: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    game_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    series_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    # 'scheduled', 'live', 'completed'
    status: Mapped[str] = mapped_column(String(15), nullable=False, default="completed")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        Index("idx_matches_tournament", "tournament_id"),
        Index("idx_matches_stage_round", "tournament_id", "stage", "round"),
    )

    def __repr__(self) -> str:
        return f"<Match(id={self.id}, {self.team1_id} vs {self.team2_id}, {self.stage}/{self.round})>"
