"""
Score parser for tennis-style score strings, home games first.

Supports formats like:
  "8-4"             → 1 set (pro set), games 8-4
  "6-4,6-3"         → 2 sets
  "6-3 4-6 10-7"    → 3 sets, third is a match tiebreak
  "7-6(5), 6-4"     → tiebreak points in parentheses are ignored

Returns None on parse failure (non-fatal). Strict result recording treats
None as an invalid score.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from tennis_coach.services.entities import Outcome, Side

_TIEBREAK_SUFFIX = re.compile(r"\(\d+\)")


@dataclass
class ParsedScore:
    sets: List[Tuple[int, int]]  # (home_games, away_games) per set
    home_sets_won: int
    away_sets_won: int
    home_games: int
    away_games: int

    @property
    def leader(self) -> Outcome:
        """Side ahead on sets, then on games."""
        if self.home_sets_won != self.away_sets_won:
            return Outcome.home if self.home_sets_won > self.away_sets_won else Outcome.away
        if self.home_games != self.away_games:
            return Outcome.home if self.home_games > self.away_games else Outcome.away
        return Outcome.tie

    def swapped(self) -> "ParsedScore":
        return ParsedScore(
            sets=[(a, h) for h, a in self.sets],
            home_sets_won=self.away_sets_won,
            away_sets_won=self.home_sets_won,
            home_games=self.away_games,
            away_games=self.home_games,
        )

    def oriented_for(self, winner: Optional[Side]) -> "ParsedScore":
        """
        Read a score written winner-first as home-first.

        Only flips when the score clearly favours the side that lost; a level
        score or one that agrees with the winner is returned as is.
        """
        if winner is None or self.leader in (Outcome.tie, Outcome(Side(winner).value)):
            return self
        return self.swapped()


def parse_score(raw: Optional[str]) -> Optional[ParsedScore]:
    """Parse a score string into set/game counts, or None."""
    if not raw or not raw.strip():
        return None

    # Normalize: drop tiebreak points, commas to spaces, collapse whitespace
    normalized = _TIEBREAK_SUFFIX.sub("", raw).replace(",", " ").strip()
    parts = normalized.split()

    sets: List[Tuple[int, int]] = []
    for part in parts:
        pair = part.split("-")
        if len(pair) != 2:
            return None
        try:
            home = int(pair[0])
            away = int(pair[1])
        except ValueError:
            return None
        if home < 0 or away < 0:
            return None
        sets.append((home, away))

    if not sets:
        return None

    return ParsedScore(
        sets=sets,
        home_sets_won=sum(1 for h, a in sets if h > a),
        away_sets_won=sum(1 for h, a in sets if a > h),
        home_games=sum(h for h, _ in sets),
        away_games=sum(a for _, a in sets),
    )
