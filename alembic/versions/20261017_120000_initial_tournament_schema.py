"""Initial tournament, team, player and match tables

Revision ID: 3c9e41d7a2b0
Revises:
Create Date: 2026-10-17 12:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic
revision: str = '3c9e41d7a2b0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        'tournaments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('tier', sa.String(length=20), nullable=False),
        sa.Column('region', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=15), nullable=False),
        sa.Column('prize_pool', sa.Float(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('logo_dark_url', sa.Text(), nullable=True),
        sa.Column('liquipedia_url', sa.Text(), nullable=True),
        sa.Column('format', sa.Text(), nullable=True),
        sa.Column('league_id', sa.Integer(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'teams',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('tag', sa.String(length=20), nullable=False),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('logo_dark_url', sa.Text(), nullable=True),
        sa.Column('region', sa.String(length=100), nullable=True),
        sa.Column('liquipedia_url', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'players',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('nickname', sa.String(length=100), nullable=False),
        sa.Column('real_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=True),
        sa.Column('team_id', sa.String(length=36), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'tournament_teams',
        sa.Column('tournament_id', sa.String(length=36), sa.ForeignKey('tournaments.id'), primary_key=True),
        sa.Column('team_id', sa.String(length=36), sa.ForeignKey('teams.id'), primary_key=True),
        sa.Column('seed', sa.Integer(), nullable=True),
        sa.Column('group_name', sa.String(length=100), nullable=True),
        sa.Column('placement', sa.Integer(), nullable=True),
        sa.Column('prize_won', sa.Float(), nullable=True),
        sa.Column('qualifier', sa.String(length=255), nullable=True),
    )

    op.create_table(
        'tournament_players',
        sa.Column('tournament_id', sa.String(length=36), sa.ForeignKey('tournaments.id'), primary_key=True),
        sa.Column('player_id', sa.String(length=36), sa.ForeignKey('players.id'), primary_key=True),
        sa.Column('team_id', sa.String(length=36), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('fantasy_value', sa.Float(), nullable=True),
    )

    op.create_table(
        'matches',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('tournament_id', sa.String(length=36), sa.ForeignKey('tournaments.id'), nullable=False),
        sa.Column('team1_id', sa.String(length=36), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('team2_id', sa.String(length=36), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('winner_id', sa.String(length=36), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('team1_score', sa.Integer(), nullable=True),
        sa.Column('team2_score', sa.Integer(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('stage', sa.String(length=20), nullable=True),
        sa.Column('substage', sa.String(length=255), nullable=True),
        sa.Column('round', sa.String(length=30), nullable=True),
        sa.Column('series_format', sa.String(length=5), nullable=True),
        sa.Column('best_of', sa.Integer(), nullable=True),
        sa.Column('game_number', sa.Integer(), nullable=True),
        sa.Column('series_id', sa.BigInteger(), nullable=True),
        sa.Column('status', sa.String(length=15), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_matches_tournament', 'matches', ['tournament_id'])
    op.create_index('idx_matches_stage_round', 'matches', ['tournament_id', 'stage', 'round'])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index('idx_matches_stage_round', table_name='matches')
    op.drop_index('idx_matches_tournament', table_name='matches')
    op.drop_table('matches')
    op.drop_table('tournament_players')
    op.drop_table('tournament_teams')
    op.drop_table('players')
    op.drop_table('teams')
    op.drop_table('tournaments')
