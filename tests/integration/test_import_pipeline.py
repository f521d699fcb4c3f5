"""
End-to-end import runs: wiki pages and league matches in, SQLite rows out.

Remote services are the in-process fakes from conftest; everything between
them and the database is the real pipeline.
"""

import pytest
from sqlalchemy import select

from aegis.db.models import Match, Tournament, TournamentPlayer, TournamentTeam
from aegis.services import mapping
from aegis.services.batch import run_batch
from aegis.services.importer import ImportOptions, ImportOrchestrator

PLAYOFF_HTML = """
<div class="mw-parser-output">
<h3><span class="mw-headline" id="Grand_Final">Grand Final</span></h3>
<a href="https://www.datdota.com/matches/7007">7007</a>
<a href="https://www.datdota.com/matches/7008">7008</a>
<a href="https://www.datdota.com/matches/7009">7009</a>
</div>
"""


def _orchestrator(wiki, stats, storage, no_sleep, today, **options):
    options.setdefault("skip_logos", True)
    return ImportOrchestrator(wiki, stats, storage, options=ImportOptions(**options), sleep=no_sleep, today=today)


@pytest.mark.asyncio
async def test_example_cup_end_to_end(example_wiki, example_stats, storage, session_factory, no_sleep, example):
    result = await _orchestrator(example_wiki, example_stats, storage, no_sleep, example.today).import_tournament(
        example.page
    )

    assert result.success, result.errors
    tid = mapping.tournament_id(example.page)

    with session_factory() as session:
        tournament = session.get(Tournament, tid)
        assert tournament.name == "Example Cup 2024"
        assert tournament.tier == "tier1"

        matches = {m.id: m for m in session.scalars(select(Match).filter_by(tournament_id=tid))}
        assert sorted(matches) == [7001, 7002, 7003, 7004, 7005, 7006, 7007, 7008, 7009]

        group_games = [m for m in matches.values() if m.stage == "group_stage"]
        assert sorted(m.id for m in group_games) == [7001, 7002, 7003, 7004]
        assert {m.substage for m in group_games} == {"Group A", "Group B"}
        assert all(m.best_of == 2 for m in group_games)

        assert matches[7005].round == "upper_bracket_final"
        assert matches[7006].game_number == 2
        assert [matches[i].game_number for i in (7007, 7008, 7009)] == [1, 2, 3]

        # PSG Quest and Tundra come from the stats service under different names
        assert matches[7001].team2_id == mapping.team_id("PSG.Quest")
        assert matches[7003].team2_id == mapping.team_id("Tundra Esports")

        rosters = session.scalars(select(TournamentPlayer).filter_by(tournament_id=tid)).all()
        assert len(rosters) == 20
        links = session.scalars(select(TournamentTeam).filter_by(tournament_id=tid)).all()
        assert {link.group_name for link in links} == {"Group Alpha", "Group Beta"}


@pytest.mark.asyncio
async def test_html_fallback_stages_matches(fake_wiki_cls, example_stats, storage, session_factory, no_sleep, example):
    pages = example.pages()
    del pages[example.page + "/Group_Stage"]
    del pages[example.page + "/Main_Event"]
    wiki = fake_wiki_cls(pages=pages, html={example.page + "/Main_Event": PLAYOFF_HTML})

    result = await _orchestrator(wiki, example_stats, storage, no_sleep, example.today).import_tournament(example.page)

    assert result.success
    with session_factory() as session:
        final = session.get(Match, 7008)
        assert final.stage == "playoffs"
        assert final.round == "grand_final"
        assert session.get(Match, 7001).stage is None


@pytest.mark.asyncio
async def test_tournament_without_league_id(fake_wiki_cls, fake_stats_cls, storage, session_factory, no_sleep, example):
    wikitext = example.wikitext.replace("|leagueid=16935\n", "").replace(
        "|prizepoolusd={{:Example_Cup/2024/prizepool}}", "|prizepoolusd=$250,000"
    )
    wiki = fake_wiki_cls(pages={"Example_Cup": wikitext})
    stats = fake_stats_cls(matches=example.matches())

    result = await _orchestrator(wiki, stats, storage, no_sleep, example.today).import_tournament("Example_Cup")

    assert result.success
    assert result.errors == []
    assert result.matches_imported == 0
    assert result.skipped_matches_step
    with session_factory() as session:
        tournament = session.get(Tournament, mapping.tournament_id("Example_Cup"))
        assert tournament.prize_pool == 250000.0
        assert tournament.league_id is None


@pytest.mark.asyncio
async def test_batch_resumes_after_partial_run(example_wiki, example_stats, storage, no_sleep, example):
    orchestrator = _orchestrator(example_wiki, example_stats, storage, no_sleep, example.today)
    pages = [example.page, "Missing_Cup/2024"]

    first = await run_batch(orchestrator, pages, storage, delay=2.0, sleep=no_sleep)
    assert (first.succeeded, first.failed, first.skipped) == (1, 1, 0)
    assert first.exit_code == 1

    second = await run_batch(orchestrator, pages, storage, delay=2.0, sleep=no_sleep)
    assert (second.succeeded, second.failed, second.skipped) == (0, 1, 1)
