"""
Aegis - Dota 2 Tournament Sync

Extracts tournament structure from the Liquipedia wiki, reconciles it with
match data from the STRATZ statistics service, and persists tournaments,
teams, players and staged matches.

Main components:
- wiki: Wikitext template parsing (infobox, rosters, prizes, logos)
- stages: Match id -> stage/round classification
- teams: Team identity resolution across sources
- sources: Rate-limited wiki and statistics API clients
- db: Storage models and the storage collaborator
- services: Record mapping, single-tournament import and batch drivers
"""

__version__ = "1.0.0"
