"""
Unit tests for settings loading and the session context manager.
"""

import pytest
from pydantic import ValidationError

from aegis.config import Settings
from aegis.db import session as db_session
from aegis.db.models import Team


class TestSettings:
    def test_defaults(self):
        config = Settings(_env_file=None)
        assert config.wiki_standard_interval == 2.0
        assert config.wiki_parse_interval == 30.0
        assert config.wiki_cache_ttl == 300.0
        assert config.import_batch_delay == 3.0
        assert config.wiki_user_agent.startswith("AegisTournamentSync")

    def test_log_level_is_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("STRATZ_API_TOKEN", "from-env")
        assert Settings(_env_file=None).stratz_api_token == "from-env"


class TestGetSession:
    """Tests for the commit/rollback session context manager."""

    @pytest.fixture(autouse=True)
    def bind_factory(self, monkeypatch, session_factory):
        monkeypatch.setattr(db_session, "_session_factory", session_factory)

    def test_commits_on_success(self, session_factory):
        with db_session.get_session() as session:
            session.add(Team(id="a", name="Team Spirit", tag="TS"))

        with session_factory() as session:
            assert session.get(Team, "a") is not None

    def test_rolls_back_on_error(self, session_factory):
        with pytest.raises(RuntimeError):
            with db_session.get_session() as session:
                session.add(Team(id="b", name="OG", tag="OG"))
                session.flush()
                raise RuntimeError("abort")

        with session_factory() as session:
            assert session.get(Team, "b") is None
