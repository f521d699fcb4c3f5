"""
Storage collaborator used by the importer.

The importer only ever writes whole records (plain dicts keyed by column
name) and asks one question: has this tournament been imported already?
That surface is the ``Storage`` protocol; ``SqlStorage`` implements it on
top of the SQLAlchemy models.

Writes are idempotent:
- upsert merges on a conflict key, so re-importing updates rows in place
- replace_links deletes every child row of a parent and inserts the new
  set in the same transaction, so readers never see a tournament with
  its links missing
"""

import logging
from typing import Any, Callable, Protocol, Sequence, Union

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aegis.db.models import Base, Match, Player, Team, Tournament, TournamentPlayer, TournamentTeam

logger = logging.getLogger(__name__)

Record = dict[str, Any]
ConflictKey = Union[str, Sequence[str]]

MODELS: dict[str, type[Base]] = {
    "tournaments": Tournament,
    "teams": Team,
    "players": Player,
    "tournament_teams": TournamentTeam,
    "tournament_players": TournamentPlayer,
    "matches": Match,
}

# Link table -> column holding the parent id
LINK_PARENT_KEYS: dict[str, str] = {
    "tournament_teams": "tournament_id",
    "tournament_players": "tournament_id",
    "matches": "tournament_id",
}


class StorageError(Exception):
    """A write was rejected by the store."""


class Storage(Protocol):
    def upsert(self, table: str, records: list[Record], conflict_key: ConflictKey) -> int: ...

    def replace_links(self, parent_table: str, parent_id: str, child_records: list[Record]) -> int: ...

    def exists(self, tournament_id: str) -> bool: ...

    def update_group(self, tournament_id: str, team_id: str, group_name: str) -> bool: ...


def _model(table: str) -> type[Base]:
    try:
        return MODELS[table]
    except KeyError:
        raise StorageError(f"Unknown table: {table}") from None


class SqlStorage:
    """
    Storage backed by a SQLAlchemy session factory.

    Usage:
        storage = SqlStorage(get_session_factory())
        storage.upsert("teams", [team_row], "id")
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def upsert(self, table: str, records: list[Record], conflict_key: ConflictKey) -> int:
        """
        Insert or update records matched on ``conflict_key``.

        Returns:
            Number of records written
        """
        model = _model(table)
        keys = [conflict_key] if isinstance(conflict_key, str) else list(conflict_key)
        if not records:
            return 0

        try:
            with self.session_factory() as session, session.begin():
                for record in records:
                    criteria = {key: record[key] for key in keys}
                    existing = session.scalars(select(model).filter_by(**criteria)).first()
                    if existing is None:
                        session.add(model(**record))
                    else:
                        for column, value in record.items():
                            setattr(existing, column, value)
                    session.flush()
        except (SQLAlchemyError, KeyError, TypeError) as e:
            raise StorageError(f"Upsert into {table} failed: {e}") from e

        logger.debug("Upserted %d rows into %s", len(records), table)
        return len(records)

    def replace_links(self, parent_table: str, parent_id: str, child_records: list[Record]) -> int:
        """
        Replace every row of ``parent_table`` belonging to ``parent_id``.

        The delete and the inserts share one transaction.

        Returns:
            Number of rows inserted
        """
        model = _model(parent_table)
        parent_key = LINK_PARENT_KEYS.get(parent_table)
        if parent_key is None:
            raise StorageError(f"{parent_table} is not a link table")

        try:
            with self.session_factory() as session, session.begin():
                session.execute(delete(model).where(getattr(model, parent_key) == parent_id))
                for record in child_records:
                    session.add(model(**{**record, parent_key: parent_id}))
        except (SQLAlchemyError, TypeError) as e:
            raise StorageError(f"Replacing {parent_table} for {parent_id} failed: {e}") from e

        logger.debug("Replaced %s for %s with %d rows", parent_table, parent_id, len(child_records))
        return len(child_records)

    def exists(self, tournament_id: str) -> bool:
        with self.session_factory() as session:
            return session.get(Tournament, tournament_id) is not None

    def update_group(self, tournament_id: str, team_id: str, group_name: str) -> bool:
        """Set a participant's group. Returns False when the team is not linked."""
        try:
            with self.session_factory() as session, session.begin():
                link = session.get(TournamentTeam, (tournament_id, team_id))
                if link is None:
                    return False
                link.group_name = group_name
        except SQLAlchemyError as e:
            raise StorageError(f"Group update for {team_id} failed: {e}") from e
        return True
