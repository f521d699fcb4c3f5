"""
Single-tournament import: wiki page -> storage.

The orchestrator runs the import as a fixed sequence of awaited steps,
since each step needs the previous one's output (teams must exist before
their links, participants before match teams can be resolved):

     1. Fetch the tournament page
     2. Extract the infobox and resolve the prize pool
     3. Extract participants, with placements and prize money from the
        prize tables
     4. Logos (tournament, then each team)
     5. Upsert the tournament
     6. Upsert teams
     7. Replace tournament <-> team links
     8. Upsert players (starters only)
     9. Replace tournament <-> player links
    10. Matches from the statistics service, staged by the StageMapper
    11. Group assignments from the league's round-robin node groups

Failure handling follows the kind of failure:
- a source failure in an optional step (logos, stage mapping, league
  structure, match fetch) degrades that step only
- a team that cannot be resolved drops its match and is counted
- a storage failure ends the import with success=False

Usage:
    orchestrator = ImportOrchestrator(wiki, stats, storage)
    result = await orchestrator.import_tournament("The_International/2024")
    print(result.summary())
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Callable, Optional

from aegis.db.storage import Storage, StorageError
from aegis.services import mapping
from aegis.sources.stats import LeagueNodeGroup, MatchSummary, StatsSource
from aegis.sources.wiki import WikiSource
from aegis.stages.base import TournamentStageMapping
from aegis.stages.mapper import StageMapper
from aegis.teams.identity import TeamIdentityResolver
from aegis.wiki.infobox import TournamentMetadata, extract_infobox, resolve_prize_pool
from aegis.wiki.logos import choose_tournament_logo, team_logo_images
from aegis.wiki.prizes import apply_prize_results
from aegis.wiki.roster import (
    LogoResolution,
    ParticipantRecord,
    competed_under_name,
    extract_participants,
    split_invites,
)

logger = logging.getLogger(__name__)

FETCH_FAILED = "Failed to fetch tournament data"


@dataclass
class ImportOptions:
    """
    Switches for one import run.

    Attributes:
        dry_run: Log every write as [DRY RUN] instead of performing it
        skip_matches: Skip the statistics-service steps (10 and 11)
        skip_logos: Skip logo lookups (saves many wiki requests)
    """
    dry_run: bool = False
    skip_matches: bool = False
    skip_logos: bool = False
    verbose: bool = False
    match_batch_size: int = 100
    match_batch_delay: float = 1.0
    logo_delay: float = 0.5


@dataclass
class ImportResult:
    """Outcome of importing one tournament."""
    page_name: str
    tournament_id: Optional[str] = None
    tournament_name: Optional[str] = None
    success: bool = False
    teams_imported: int = 0
    players_imported: int = 0
    matches_imported: int = 0
    unresolved_matches: int = 0
    skipped_matches_step: bool = False
    errors: list[str] = field(default_factory=list)

    def summary(self) -> str:
        """Return a human-readable summary of the import."""
        status = "OK" if self.success else "FAILED"
        lines = [
            f"Import {status}: {self.tournament_name or self.page_name}",
            f"  Teams:              {self.teams_imported}",
            f"  Players:            {self.players_imported}",
            f"  Matches:            {self.matches_imported}",
            f"  Unresolved matches: {self.unresolved_matches}",
        ]
        if self.skipped_matches_step:
            lines.append("  Match import skipped")
        if self.errors:
            lines.append(f"  Errors: {len(self.errors)}")
            for err in self.errors[:5]:
                lines.append(f"    - {err}")
            if len(self.errors) > 5:
                lines.append(f"    ... and {len(self.errors) - 5} more")
        return "\n".join(lines)


class ImportOrchestrator:
    """Imports tournaments one page at a time."""

    def __init__(
        self,
        wiki: WikiSource,
        stats: StatsSource,
        storage: Storage,
        stage_mapper: Optional[StageMapper] = None,
        options: Optional[ImportOptions] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        today: Optional[date] = None,
    ):
        self.wiki = wiki
        self.stats = stats
        self.storage = storage
        self.stage_mapper = stage_mapper or StageMapper(wiki)
        self.options = options or ImportOptions()
        self.sleep = sleep
        self.today = today

    # =========================================================================
    # Entry point
    # =========================================================================

    async def import_tournament(self, page_name: str) -> ImportResult:
        result = ImportResult(page_name=page_name)
        logger.info("Importing tournament: %s", page_name)

        try:
            wikitext = await self.wiki.fetch_wikitext(page_name)
        except Exception as e:
            logger.error("Could not fetch %s: %s", page_name, e)
            wikitext = ""
        if not wikitext:
            result.errors.append(FETCH_FAILED)
            return result

        try:
            await self._import(page_name, wikitext, result)
        except StorageError as e:
            logger.error("Storage write failed for %s: %s", page_name, e)
            result.errors.append(str(e))
            return result
        except Exception as e:
            logger.exception("Import of %s failed", page_name)
            result.errors.append(f"{type(e).__name__}: {e}")
            return result

        result.success = True
        logger.info(
            "Imported %s: %d teams, %d players, %d matches (%d unresolved)",
            page_name,
            result.teams_imported,
            result.players_imported,
            result.matches_imported,
            result.unresolved_matches,
        )
        return result

    async def _import(self, page_name: str, wikitext: str, result: ImportResult) -> None:
        metadata = extract_infobox(page_name, wikitext)
        metadata.prize_pool_usd = await resolve_prize_pool(metadata, self.wiki.fetch_wikitext)
        tournament_id = mapping.tournament_id(page_name)
        result.tournament_id = tournament_id
        result.tournament_name = metadata.name

        participants = extract_participants(wikitext)
        prize_total = mapping.prize_pool_amount(metadata)
        placed = apply_prize_results(participants, wikitext, prize_total)
        invited, qualified = split_invites(participants)
        logger.info(
            "%s: %d participants (%d invited, %d qualified, %d placed from prize table), league id %s",
            metadata.name,
            len(participants),
            len(invited),
            len(qualified),
            placed,
            metadata.league_id,
        )

        tournament_logo = LogoResolution.absent()
        if not self.options.skip_logos:
            tournament_logo = await self._tournament_logo(page_name)
            await self._team_logos(participants)

        # Tournament
        tournament = mapping.tournament_row(
            metadata,
            logo_url=tournament_logo.url,
            logo_dark_url=tournament_logo.dark_url,
            today=self.today,
        )
        self._write("upsert", "tournaments", [tournament], "id")

        # Teams and participation
        teams = [mapping.team_row(p) for p in participants]
        self._write("upsert", "teams", teams, "id")
        result.teams_imported = len(teams)

        links = [
            mapping.tournament_team_row(tournament_id, p, index, len(participants))
            for index, p in enumerate(participants)
        ]
        self._write("replace_links", "tournament_teams", tournament_id, links)

        # Players
        players: dict[str, dict[str, Any]] = {}
        roster_links: dict[str, dict[str, Any]] = {}
        for participant in participants:
            for slot in participant.starters:
                row = mapping.player_row(slot, participant.team_name)
                players.setdefault(row["id"], row)
                roster_links.setdefault(
                    row["id"], mapping.tournament_player_row(tournament_id, slot, participant.team_name)
                )
        self._write("upsert", "players", list(players.values()), "id")
        result.players_imported = len(players)
        self._write("replace_links", "tournament_players", tournament_id, list(roster_links.values()))

        # Matches
        if self.options.skip_matches:
            logger.info("Skipping matches (--skip-matches)")
            result.skipped_matches_step = True
            return
        if metadata.league_id is None:
            logger.info("No league id on %s, skipping matches", page_name)
            result.skipped_matches_step = True
            return

        await self._import_matches(page_name, tournament_id, metadata, participants, result)

    # =========================================================================
    # Writes
    # =========================================================================

    def _write(self, operation: str, table: str, *args: Any) -> None:
        records = args[1] if operation == "replace_links" else args[0]
        if self.options.dry_run:
            logger.info("[DRY RUN] Would %s %d rows in %s", operation, len(records), table)
            return
        getattr(self.storage, operation)(table, *args)

    # =========================================================================
    # Logos
    # =========================================================================

    async def _tournament_logo(self, page_name: str) -> LogoResolution:
        try:
            images = await self.wiki.fetch_page_image_names(page_name)
            choice = await choose_tournament_logo(page_name, images, self.wiki.resolve_image_url)
        except Exception as e:
            logger.warning("Tournament logo lookup failed for %s: %s", page_name, e)
            return LogoResolution(status="unresolved", reason=str(e))
        if not choice.light and not choice.dark:
            return LogoResolution.absent()
        return LogoResolution(status="found", url=choice.light, dark_url=choice.dark)

    async def _team_logos(self, participants: list[ParticipantRecord]) -> None:
        for index, participant in enumerate(participants):
            if index:
                await self.sleep(self.options.logo_delay)
            participant.logo = await self._team_logo(participant)

    async def _team_logo(self, participant: ParticipantRecord) -> LogoResolution:
        names = [participant.team_name]
        original = competed_under_name(participant.notes)
        if original and original != participant.team_name:
            names.append(original)

        try:
            for name in names:
                choice = team_logo_images(await self.wiki.fetch_team_page_wikitext(name))
                if not choice.light and not choice.dark:
                    continue
                light = await self.wiki.resolve_image_url(choice.light) if choice.light else None
                dark = await self.wiki.resolve_image_url(choice.dark) if choice.dark else None
                if light or dark:
                    return LogoResolution(status="found", url=light, dark_url=dark)
        except Exception as e:
            logger.warning("Logo lookup failed for %s: %s", participant.team_name, e)
            return LogoResolution(status="unresolved", reason=str(e))
        return LogoResolution.absent()

    # =========================================================================
    # Matches and groups
    # =========================================================================

    async def _import_matches(
        self,
        page_name: str,
        tournament_id: str,
        metadata: TournamentMetadata,
        participants: list[ParticipantRecord],
        result: ImportResult,
    ) -> None:
        league_id = metadata.league_id

        stage_mapping: Optional[TournamentStageMapping] = None
        try:
            stage_mapping = await self.stage_mapper.build_mapping(page_name)
        except Exception as e:
            logger.warning("Stage mapping failed for %s: %s", page_name, e)

        structure: list[LeagueNodeGroup] = []
        try:
            structure = await self.stats.fetch_league_structure(league_id)
        except Exception as e:
            logger.warning("League structure unavailable for %s: %s", league_id, e)

        try:
            summaries = await self.stats.fetch_all_league_matches(
                league_id,
                batch=self.options.match_batch_size,
                delay=self.options.match_batch_delay,
                sleep=self.sleep,
            )
        except Exception as e:
            logger.warning("Match fetch failed for league %s: %s", league_id, e)
            return

        resolver = TeamIdentityResolver({p.team_name: mapping.team_id(p.team_name) for p in participants})
        stats_team_ids: dict[int, str] = {}
        rows: dict[int, dict[str, Any]] = {}

        for summary in summaries:
            team1 = resolver.resolve(summary.radiant.name if summary.radiant else None)
            team2 = resolver.resolve(summary.dire.name if summary.dire else None)
            if team1 is None or team2 is None:
                result.unresolved_matches += 1
                logger.debug("Dropping %r: team not in participants", summary)
                continue
            self._remember_stats_ids(summary, team1.value, team2.value, stats_team_ids)

            stage = stage_mapping.get(summary.match_id) if stage_mapping else None
            rows[summary.match_id] = mapping.match_row(tournament_id, summary, team1.value, team2.value, stage)

        if resolver.unresolved:
            logger.info("Unresolved teams: %s", ", ".join(sorted(set(resolver.unresolved))))
        logger.info(
            "Matches for %s: %d resolved, %d dropped, %d staged",
            page_name,
            len(rows),
            result.unresolved_matches,
            sum(1 for r in rows.values() if r["stage"]),
        )

        if rows:
            self._write("replace_links", "matches", tournament_id, list(rows.values()))
        result.matches_imported = len(rows)

        self._update_groups(tournament_id, structure, stats_team_ids)

    @staticmethod
    def _remember_stats_ids(summary: MatchSummary, team1_id: str, team2_id: str, known: dict[int, str]) -> None:
        if summary.radiant:
            known.setdefault(summary.radiant.id, team1_id)
        if summary.dire:
            known.setdefault(summary.dire.id, team2_id)

    def _update_groups(
        self,
        tournament_id: str,
        structure: list[LeagueNodeGroup],
        stats_team_ids: dict[int, str],
    ) -> int:
        assignments: dict[str, str] = {}
        for group in structure:
            if not group.is_round_robin:
                continue
            for node in group.nodes:
                for stats_id in node.team_ids:
                    team = stats_team_ids.get(stats_id)
                    if team:
                        assignments.setdefault(team, group.name)

        if not assignments:
            return 0
        if self.options.dry_run:
            logger.info("[DRY RUN] Would update %d team group assignments", len(assignments))
            return len(assignments)

        updated = sum(
            1 for team, group_name in assignments.items()
            if self.storage.update_group(tournament_id, team, group_name)
        )
        logger.info("Updated %d team group assignments", updated)
        return updated
