"""
Unit tests for prize tables and logo selection.
"""

import pytest

from aegis.wiki.logos import candidate_logo_images, choose_tournament_logo, team_logo_images
from aegis.wiki.prizes import apply_prize_results, ordinal, parse_prize_distribution, parse_team_placements
from aegis.wiki.roster import ParticipantRecord


class TestOrdinal:
    def test_suffixes(self):
        assert [ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22, 23, 101)] == [
            "1st", "2nd", "3rd", "4th", "11th", "12th", "13th", "21st", "22nd", "23rd", "101st",
        ]


class TestPrizeDistribution:
    def test_percentages(self):
        text = (
            "{{Slot|place=1|usdprize=0|freetext=45.5%}}\n"
            "{{Slot|place=2|usdprize=0|freetext=15%}}\n"
            "{{Slot|place=3|usdprize=0}}\n"
        )
        slots = parse_prize_distribution(text)
        assert [(s.place, s.percentage) for s in slots] == [("1", "45.5%"), ("2", "15%"), ("3", None)]
        assert all(s.usd_prize is None for s in slots)

    def test_amounts_from_total(self):
        slots = parse_prize_distribution("{{Slot|place=1|usdprize=0|freetext=45.5%}}", total=1_000_000)
        assert slots[0].usd_prize == 455000

    def test_empty(self):
        assert parse_prize_distribution("") == []


class TestTeamPlacements:
    def test_placements(self):
        text = (
            "{{prize pool slot|place=1|usdprize=1000000|Team Liquid}}\n"
            "{{prize pool slot|place=2|usdprize=500000|[[Gaimin Gladiators]]}}\n"
        )
        placements = parse_team_placements(text)
        assert [(p.team_name, p.placement) for p in placements] == [
            ("Team Liquid", "1st"),
            ("Gaimin Gladiators", "2nd"),
        ]

    def test_shared_place_and_single_line_table(self):
        text = "{{prize pool slot|place=3-4|usdprize=0|OG}}{{prize pool slot|place=3-4|usdprize=0|Nouns}}"
        placements = parse_team_placements(text)
        assert [(p.team_name, p.placement) for p in placements] == [("OG", "3rd"), ("Nouns", "3rd")]

    def test_slot_without_team_is_skipped(self):
        assert parse_team_placements("{{prize pool slot|place=5|usdprize=0}}") == []


PRIZE_TABLE = """==Prize Pool==
{{Slot|place=1|usdprize=0|freetext=50%}}
{{Slot|place=2|usdprize=0|freetext=25%}}
{{Slot|place=3-4|usdprize=0|freetext=10%}}
{{prize pool slot|place=1|usdprize=0|Team Spirit}}
{{prize pool slot|place=2|usdprize=0|[[Tundra Esports|Tundra]]}}
{{prize pool slot|place=3-4|usdprize=0|Gaimin Gladiators}}
{{prize pool slot|place=5|usdprize=0|Random Stack}}
"""


class TestApplyPrizeResults:
    """Tests for folding prize tables into participant records."""

    def _participants(self):
        return [
            ParticipantRecord(team_name="Team Spirit"),
            ParticipantRecord(team_name="Tundra Esports"),
            ParticipantRecord(team_name="Gaimin Gladiators", placement="4"),
            ParticipantRecord(team_name="PSG.Quest"),
        ]

    def test_placements_and_prize_money(self):
        participants = self._participants()

        filled = apply_prize_results(participants, PRIZE_TABLE, total=1_000_000)

        assert filled == 2
        by_name = {p.team_name: p for p in participants}
        assert by_name["Team Spirit"].placement == "1st"
        assert by_name["Team Spirit"].prize_won == 500000.0
        assert by_name["Tundra Esports"].placement == "2nd"
        assert by_name["Tundra Esports"].prize_won == 250000.0
        assert by_name["PSG.Quest"].placement is None
        assert by_name["PSG.Quest"].prize_won is None

    def test_card_placement_is_kept(self):
        participants = self._participants()
        apply_prize_results(participants, PRIZE_TABLE, total=1_000_000)
        gladiators = participants[2]
        assert gladiators.placement == "4"
        assert gladiators.prize_won is None

    def test_unknown_total_leaves_prize_money_empty(self):
        participants = self._participants()
        apply_prize_results(participants, PRIZE_TABLE)
        assert participants[0].placement == "1st"
        assert all(p.prize_won is None for p in participants)

    def test_page_without_tables(self):
        participants = self._participants()
        assert apply_prize_results(participants, "no tables here", total=1_000_000) == 0
        assert participants[0].placement is None


PAGE_IMAGES = [
    "Team_Spirit_2022_allmode.png",
    "Gold.png",
    "Icon_Dota2.png",
    "The_International_2024_darkmode.png",
    "The_International_2024_allmode.png",
    "The_International_2024_hd.png",
    "Tundra_Esports_2020_allmode.png",
    "The_International_2024_banner.jpg",
]


class TestCandidateLogoImages:
    """Tests for picking the tournament logo among page images."""

    def test_ranking_and_filtering(self):
        light, dark = candidate_logo_images("The_International/2024", PAGE_IMAGES)
        assert light == ["The_International_2024_allmode.png"]
        assert dark == ["The_International_2024_darkmode.png"]

    def test_exact_page_image_first(self):
        images = ["The_International_2024_lightmode.png", "The_International_2024.png"]
        light, _dark = candidate_logo_images("The_International/2024", images)
        assert light == ["The_International_2024.png", "The_International_2024_lightmode.png"]

    def test_no_candidates(self):
        assert candidate_logo_images("Example_Cup/2024", ["Gold.png"]) == ([], [])


class TestChooseTournamentLogo:
    @pytest.mark.asyncio
    async def test_first_resolvable_candidate(self):
        urls = {"The_International_2024_darkmode.png": "https://img.test/dark.png"}
        resolved = []

        async def resolve(name):
            resolved.append(name)
            return urls.get(name)

        images = ["The_International_2024.png", "The_International_2024_allmode.png",
                  "The_International_2024_darkmode.png"]
        urls["The_International_2024_allmode.png"] = "https://img.test/light.png"

        choice = await choose_tournament_logo("The_International/2024", images, resolve)
        assert choice.light == "https://img.test/light.png"
        assert choice.dark == "https://img.test/dark.png"
        assert resolved[:2] == ["The_International_2024.png", "The_International_2024_allmode.png"]


class TestTeamLogoImages:
    def test_infobox_images(self):
        text = "{{Infobox team\n|name=Team Spirit\n|image=Team Spirit 2022 lightmode.png\n|imagedark=Team Spirit 2022 darkmode.png\n}}"
        choice = team_logo_images(text)
        assert choice.light == "Team Spirit 2022 lightmode.png"
        assert choice.dark == "Team Spirit 2022 darkmode.png"

    def test_no_infobox(self):
        choice = team_logo_images("")
        assert choice.light is None and choice.dark is None
