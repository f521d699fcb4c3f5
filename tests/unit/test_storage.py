"""
Unit tests for SqlStorage on an in-memory SQLite database.
"""

from datetime import datetime

import pytest
from sqlalchemy import func, select

from aegis.db.models import Match, Team, Tournament, TournamentTeam
from aegis.db.storage import StorageError


def _count(session_factory, model):
    with session_factory() as session:
        return session.scalar(select(func.count()).select_from(model))


def _tournament(tid="t1", name="Example Cup"):
    return {"id": tid, "name": name, "tier": "tier1", "status": "completed"}


def _team(tid, name):
    return {"id": tid, "name": name, "tag": name[:3].upper()}


class TestUpsert:
    """Tests for insert-or-update on a conflict key."""

    def test_insert_then_update(self, storage, session_factory):
        assert storage.upsert("teams", [_team("a", "Team Spirit"), _team("b", "OG")], "id") == 2
        storage.upsert("teams", [{**_team("a", "Team Spirit"), "region": "Eastern Europe"}], "id")

        assert _count(session_factory, Team) == 2
        with session_factory() as session:
            assert session.get(Team, "a").region == "Eastern Europe"

    def test_composite_conflict_key(self, storage, session_factory):
        storage.upsert("tournaments", [_tournament()], "id")
        storage.upsert("teams", [_team("a", "Team Spirit")], "id")
        link = {"tournament_id": "t1", "team_id": "a", "seed": 1}

        storage.upsert("tournament_teams", [link], ["tournament_id", "team_id"])
        storage.upsert("tournament_teams", [{**link, "seed": 4}], ("tournament_id", "team_id"))

        with session_factory() as session:
            rows = session.scalars(select(TournamentTeam)).all()
            assert [(r.team_id, r.seed) for r in rows] == [("a", 4)]

    def test_empty_records(self, storage):
        assert storage.upsert("teams", [], "id") == 0

    def test_unknown_table(self, storage):
        with pytest.raises(StorageError, match="Unknown table"):
            storage.upsert("leagues", [{"id": 1}], "id")

    def test_missing_conflict_key(self, storage):
        with pytest.raises(StorageError):
            storage.upsert("teams", [{"name": "No Id", "tag": "NI"}], "id")

    def test_unknown_column(self, storage):
        with pytest.raises(StorageError):
            storage.upsert("teams", [{"id": "x", "name": "X", "tag": "X", "not_a_column": 1}], "id")

    def test_failed_batch_is_rolled_back(self, storage, session_factory):
        with pytest.raises(StorageError):
            storage.upsert("teams", [_team("a", "Team Spirit"), {"id": "b", "name": "B", "bogus": 1}], "id")
        assert _count(session_factory, Team) == 0


class TestReplaceLinks:
    """Tests for delete-and-insert of a tournament's child rows."""

    def _match(self, match_id, tid="t1"):
        return {
            "id": match_id,
            "tournament_id": tid,
            "team1_id": "a",
            "team2_id": "b",
            "started_at": datetime(2024, 9, 4, 12, 0),
            "status": "completed",
        }

    def test_replace_leaves_no_duplicates(self, storage, session_factory):
        storage.replace_links("matches", "t1", [self._match(1), self._match(2)])
        storage.replace_links("matches", "t1", [self._match(2), self._match(3)])

        with session_factory() as session:
            ids = session.scalars(select(Match.id).order_by(Match.id)).all()
        assert ids == [2, 3]

    def test_other_parents_untouched(self, storage, session_factory):
        storage.replace_links("matches", "t1", [self._match(1)])
        storage.replace_links("matches", "t2", [self._match(2, tid="t2")])
        storage.replace_links("matches", "t1", [])

        with session_factory() as session:
            remaining = session.scalars(select(Match)).all()
        assert [(m.id, m.tournament_id) for m in remaining] == [(2, "t2")]

    def test_parent_key_is_forced(self, storage, session_factory):
        storage.replace_links("matches", "t1", [self._match(1, tid="other")])
        with session_factory() as session:
            assert session.get(Match, 1).tournament_id == "t1"

    def test_not_a_link_table(self, storage):
        with pytest.raises(StorageError, match="not a link table"):
            storage.replace_links("teams", "t1", [])

    def test_failed_insert_keeps_previous_rows(self, storage, session_factory):
        storage.replace_links("matches", "t1", [self._match(1)])
        with pytest.raises(StorageError):
            storage.replace_links("matches", "t1", [self._match(2), self._match(2)])

        with session_factory() as session:
            assert session.scalars(select(Match.id)).all() == [1]


class TestQueries:
    def test_exists(self, storage):
        assert storage.exists("t1") is False
        storage.upsert("tournaments", [_tournament()], "id")
        assert storage.exists("t1") is True

    def test_update_group(self, storage, session_factory):
        storage.upsert("tournaments", [_tournament()], "id")
        storage.replace_links("tournament_teams", "t1", [{"team_id": "a", "group_name": "Group A"}])

        assert storage.update_group("t1", "a", "Group Beta") is True
        assert storage.update_group("t1", "missing", "Group Beta") is False

        with session_factory() as session:
            assert session.get(TournamentTeam, ("t1", "a")).group_name == "Group Beta"

    def test_default_status(self, storage, session_factory):
        storage.upsert("tournaments", [{"id": "t9", "name": "Cup", "tier": "tier2"}], "id")
        with session_factory() as session:
            assert session.get(Tournament, "t9").status == "completed"
