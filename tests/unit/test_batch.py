"""
Unit tests for the batch drivers: page discovery and sequential runs.
"""

import pytest

from aegis.services.batch import (
    discover_tier_year,
    filter_tournament_pages,
    normalize_page_name,
    run_batch,
    the_international_pages,
)
from aegis.services.importer import ImportResult
from aegis.services.mapping import tournament_id


class FakeOrchestrator:
    """Returns canned results per page; pages in ``raising`` blow up."""

    def __init__(self, failing=(), raising=()):
        self.failing = set(failing)
        self.raising = set(raising)
        self.pages: list[str] = []

    async def import_tournament(self, page):
        self.pages.append(page)
        if page in self.raising:
            raise RuntimeError("boom")
        if page in self.failing:
            return ImportResult(page_name=page, errors=["Failed to fetch tournament data"])
        return ImportResult(
            page_name=page,
            success=True,
            teams_imported=2,
            players_imported=10,
            matches_imported=5,
        )


class ExistingStorage:
    def __init__(self, existing=()):
        self.existing = {tournament_id(page) for page in existing}

    def exists(self, tid):
        return tid in self.existing


class TestPageDiscovery:
    """Tests for page filtering and discovery."""

    def test_normalize_page_name(self):
        assert normalize_page_name("  The International 2024 ") == "The_International_2024"

    def test_filter_tournament_pages(self):
        titles = [
            "The International 2024",
            "The International 2024 Western Europe Qualifier",
            "User:Someone/Sandbox",
            "Category:Tier 1 Tournaments",
            "Riyadh Masters 2024",
            "Riyadh_Masters_2024",
            "DreamLeague Season 22/Regional_Final",
        ]
        assert filter_tournament_pages(titles) == ["The_International_2024", "Riyadh_Masters_2024"]

    def test_the_international_pages(self):
        pages = the_international_pages(2018, 2022)
        assert pages == [
            "The_International/2018",
            "The_International/2019",
            "The_International/2021",
            "The_International/2022",
        ]

    def test_the_international_pages_clamped(self):
        pages = the_international_pages(2000, 2100)
        assert pages[0] == "The_International/2011"
        assert pages[-1] == "The_International/2025"
        assert "The_International/2020" not in pages
        assert the_international_pages(2030, 2031) == []

    @pytest.mark.asyncio
    async def test_discover_tier_year(self, fake_wiki_cls):
        wiki = fake_wiki_cls(
            categories={"Tier_1_Tournaments_in_2024": ["Riyadh Masters 2024", "Riyadh Masters 2024 Qualifier"]}
        )
        assert await discover_tier_year(wiki, 1, 2024) == ["Riyadh_Masters_2024"]
        assert wiki.requests == [("category", "Tier_1_Tournaments_in_2024")]

    @pytest.mark.asyncio
    async def test_discover_falls_back_to_year_category(self, fake_wiki_cls):
        wiki = fake_wiki_cls(categories={"Tournaments_in_2024": ["PGL Wallachia Season 1"]})
        assert await discover_tier_year(wiki, 2, 2024) == ["PGL_Wallachia_Season_1"]
        assert [name for _, name in wiki.requests] == ["Tier_2_Tournaments_in_2024", "Tournaments_in_2024"]

    @pytest.mark.asyncio
    async def test_discover_after_category_error(self, fake_wiki_cls):
        wiki = fake_wiki_cls(
            categories={"Tournaments_in_2023": ["Bali Major 2023"]},
            failing=("Tier_1_Tournaments_in_2023",),
        )
        assert await discover_tier_year(wiki, 1, 2023) == ["Bali_Major_2023"]

    @pytest.mark.asyncio
    async def test_discover_nothing(self, fake_wiki_cls):
        wiki = fake_wiki_cls(failing=("Tier_1_Tournaments_in_2011", "Tournaments_in_2011"))
        assert await discover_tier_year(wiki, 1, 2011) == []


class TestRunBatch:
    """Tests for sequential batch imports."""

    @pytest.mark.asyncio
    async def test_imports_in_order(self, no_sleep):
        orchestrator = FakeOrchestrator()
        pages = ["A/2024", "B/2024", "C/2024"]

        summary = await run_batch(orchestrator, pages, ExistingStorage(), delay=3.0, sleep=no_sleep)

        assert orchestrator.pages == pages
        assert summary.succeeded == 3
        assert (summary.teams, summary.players, summary.matches) == (6, 30, 15)
        assert summary.exit_code == 0
        assert no_sleep.delays == [3.0, 3.0]

    @pytest.mark.asyncio
    async def test_skips_existing_without_sleeping(self, no_sleep):
        orchestrator = FakeOrchestrator()
        storage = ExistingStorage(existing=["A/2024", "C/2024"])

        summary = await run_batch(orchestrator, ["A/2024", "B/2024", "C/2024"], storage, sleep=no_sleep)

        assert orchestrator.pages == ["B/2024"]
        assert summary.skipped == 2
        assert summary.succeeded == 1
        assert no_sleep.delays == []

    @pytest.mark.asyncio
    async def test_force_reimports_existing(self, no_sleep):
        orchestrator = FakeOrchestrator()
        storage = ExistingStorage(existing=["A/2024"])

        summary = await run_batch(orchestrator, ["A/2024"], storage, force=True, sleep=no_sleep)

        assert orchestrator.pages == ["A/2024"]
        assert summary.skipped == 0
        assert summary.succeeded == 1

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_the_batch(self, no_sleep):
        orchestrator = FakeOrchestrator(failing=["B/2024"], raising=["C/2024"])

        summary = await run_batch(
            orchestrator, ["A/2024", "B/2024", "C/2024", "D/2024"], ExistingStorage(), sleep=no_sleep
        )

        assert orchestrator.pages == ["A/2024", "B/2024", "C/2024", "D/2024"]
        assert summary.succeeded == 2
        assert summary.failed == 2
        assert summary.failures == [
            ("B/2024", "Failed to fetch tournament data"),
            ("C/2024", "boom"),
        ]
        assert summary.exit_code == 1
        assert "B/2024: Failed to fetch tournament data" in summary.summary()

    @pytest.mark.asyncio
    async def test_empty_batch(self, no_sleep):
        summary = await run_batch(FakeOrchestrator(), [], ExistingStorage(), sleep=no_sleep)
        assert summary.exit_code == 0
        assert summary.succeeded == 0
