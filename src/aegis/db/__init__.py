"""
Database module for Aegis.

Provides SQLAlchemy ORM models, session management, and the storage
collaborator used by the importer.

Usage:
    from aegis.db import SqlStorage, get_session_factory

    storage = SqlStorage(get_session_factory())
"""

from aegis.db.models import (
    Base,
    Match,
    Player,
    Team,
    Tournament,
    TournamentPlayer,
    TournamentTeam,
)
from aegis.db.session import get_engine, get_session, get_session_factory
from aegis.db.storage import SqlStorage, Storage, StorageError

__all__ = [
    # Base
    "Base",
    # Models
    "Match",
    "Player",
    "Team",
    "Tournament",
    "TournamentPlayer",
    "TournamentTeam",
    # Session
    "get_engine",
    "get_session",
    "get_session_factory",
    # Storage
    "SqlStorage",
    "Storage",
    "StorageError",
]
