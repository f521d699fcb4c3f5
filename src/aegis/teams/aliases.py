"""
Team name normalization and comparison utilities.

The same team is written differently by the wiki and the statistics
service:
- Wiki: "PSG.Quest", "Team Spirit", "BetBoom Team"
- Stats: "PSG Quest", "Spirit", "BetBoom"

This module folds names into a comparable form and scores how close two
names are. Resolution decisions live in aegis.teams.identity; the fuzzy
score here is only used to explain a failed resolution in the logs.
"""

import re
import unicodedata

import jellyfish
from rapidfuzz import fuzz

_PUNCTUATION = re.compile(r"[^\w\s]|_")

SIGNIFICANT_TOKEN_LENGTH = 3

# Words shared by many unrelated organisations
FILLER_TOKENS = frozenset({"team", "gaming", "esports", "esport", "club", "clan", "the"})


def normalize_team_name(name: str) -> str:
    """
    Normalize a team name for comparison.

    Normalization steps:
    1. Convert to lowercase
    2. Remove accents
    3. Fold punctuation (".", "-", "_", ...) to spaces
    4. Collapse whitespace

    Examples:
        >>> normalize_team_name("PSG.Quest")
        'psg quest'
        >>> normalize_team_name("  Team_Spirit ")
        'team spirit'
        >>> normalize_team_name("Nigma Galaxy SEA")
        'nigma galaxy sea'
    """
    if not name:
        return ""

    normalized = unicodedata.normalize("NFD", name.lower())
    normalized = "".join(char for char in normalized if unicodedata.category(char) != "Mn")
    normalized = _PUNCTUATION.sub(" ", normalized)
    return " ".join(normalized.split())


def significant_tokens(normalized: str) -> list[str]:
    """Words that carry identity: long enough and not organisational filler."""
    return [
        token
        for token in normalized.split()
        if len(token) >= SIGNIFICANT_TOKEN_LENGTH and token not in FILLER_TOKENS
    ]


def tokens_overlap(name1: str, name2: str) -> bool:
    """
    True when enough of the shorter name's significant words appear in the
    other name, either exactly or as a substring of one of its words.

    At least max(1, n/2) of the n words must have a counterpart.
    """
    tokens1 = significant_tokens(normalize_team_name(name1))
    tokens2 = significant_tokens(normalize_team_name(name2))
    if not tokens1 or not tokens2:
        return False

    shorter, longer = (tokens1, tokens2) if len(tokens1) <= len(tokens2) else (tokens2, tokens1)
    hits = 0
    for token in shorter:
        if any(token == other or token in other or other in token for other in longer):
            hits += 1
    return hits >= max(1, len(shorter) / 2)


def compare_team_names(name1: str, name2: str) -> float:
    """
    Similarity score between two team names, 0.0 to 1.0.

    Takes the best of Jaro-Winkler, token sort ratio and partial ratio,
    the same blend used for player names.
    """
    n1 = normalize_team_name(name1)
    n2 = normalize_team_name(name2)

    if n1 == n2:
        return 1.0 if n1 else 0.0
    if not n1 or not n2:
        return 0.0

    jw_score = jellyfish.jaro_winkler_similarity(n1, n2)
    token_sort = fuzz.token_sort_ratio(n1, n2) / 100.0
    partial = fuzz.partial_ratio(n1, n2) / 100.0
    return max(jw_score, token_sort, partial)
