"""
Individual Match Result Recorder.

Applies a result (winner side + score string) to one match and returns a new
match tuple; every other match is passed through untouched.

Two policies decide what happens at the edges:

- permissive (default): an unknown match id is reported as NOT_FOUND and the
  input comes back unchanged; recording over a completed match overwrites it.
- strict: an unknown match id raises MatchNotFoundError; a different result on
  a completed match raises MatchAlreadyCompletedError; the score must parse
  and, read home games first, show the declared winner ahead.

Under both policies, recording the same winner and score again is UNCHANGED
and keeps the original completed_at.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from tennis_coach.services.entities import IndividualMatch, MatchStatus, Side
from tennis_coach.services.errors import (
    InvalidResultError,
    InvalidTransitionError,
    MatchAlreadyCompletedError,
    MatchNotFoundError,
)
from tennis_coach.services.score_parser import parse_score

logger = logging.getLogger(__name__)


class RecordingPolicy(str, Enum):
    permissive = "permissive"
    strict = "strict"


class RecordOutcome(str, Enum):
    applied = "applied"
    unchanged = "unchanged"
    not_found = "not_found"


@dataclass(frozen=True)
class RecordResult:
    matches: Tuple[IndividualMatch, ...]
    outcome: RecordOutcome
    match: Optional[IndividualMatch] = None

    @property
    def found(self) -> bool:
        return self.outcome != RecordOutcome.not_found


def _coerce_winner(winner: Union[Side, str]) -> Side:
    try:
        return Side(winner)
    except ValueError:
        raise InvalidResultError(f"winner must be 'home' or 'away', got {winner!r}") from None


def _validate_score(score: str, side: Side, policy: RecordingPolicy) -> str:
    if score is None or not str(score).strip():
        raise InvalidResultError("score is required")
    score = str(score).strip()
    if policy == RecordingPolicy.strict:
        parsed = parse_score(score)
        if parsed is None:
            raise InvalidResultError(f"Unparseable score: {score!r}")
        if parsed.leader.value != side.value:
            raise InvalidResultError(f"Score {score!r} (home games first) does not show a {side.value} win")
    return score


def record_result(
    matches: Sequence[IndividualMatch],
    match_id: str,
    winner: Union[Side, str],
    score: str,
    policy: RecordingPolicy = RecordingPolicy.permissive,
    completed_at: Optional[datetime] = None,
) -> RecordResult:
    """
    Record the result of one match.

    Args:
        matches: Current match set
        match_id: Target match
        winner: "home" or "away"
        score: Score string, home games first, e.g. "6-4,6-3"
        policy: RecordingPolicy for unknown ids and re-recording
        completed_at: Completion time (defaults to now, UTC)

    Returns:
        RecordResult with the new match tuple, the outcome and the target match

    Raises:
        InvalidResultError: bad winner or empty score; if strict, also an
            unparseable score or one that does not favour the winner
        MatchNotFoundError: strict policy, unknown match_id
        MatchAlreadyCompletedError: strict policy, different result on a completed match
    """
    policy = RecordingPolicy(policy)
    side = _coerce_winner(winner)
    score = _validate_score(score, side, policy)

    index = next((i for i, m in enumerate(matches) if m.id == match_id), None)
    if index is None:
        if policy == RecordingPolicy.strict:
            raise MatchNotFoundError(match_id)
        logger.warning("Result for unknown match %s ignored", match_id)
        return RecordResult(matches=tuple(matches), outcome=RecordOutcome.not_found)

    current = matches[index]
    if current.status == MatchStatus.completed:
        if current.winner == side and current.score == score:
            return RecordResult(matches=tuple(matches), outcome=RecordOutcome.unchanged, match=current)
        if policy == RecordingPolicy.strict:
            raise MatchAlreadyCompletedError(match_id)
        logger.info(
            "Overwriting result of match %s: %s %s -> %s %s",
            match_id,
            current.winner.value if current.winner else None,
            current.score,
            side.value,
            score,
        )

    updated = replace(
        current,
        winner=side,
        score=score,
        status=MatchStatus.completed,
        completed_at=completed_at or datetime.utcnow(),
    )
    result: List[IndividualMatch] = list(matches)
    result[index] = updated
    logger.info("Recorded %s win (%s) for match %s", side.value, score, match_id)
    return RecordResult(matches=tuple(result), outcome=RecordOutcome.applied, match=updated)


def start_match(
    matches: Sequence[IndividualMatch],
    match_id: str,
    started_at: Optional[datetime] = None,
) -> Tuple[IndividualMatch, ...]:
    """
    Move a pending match to in_progress and stamp started_at.

    Raises:
        MatchNotFoundError: match_id not in the set
        InvalidTransitionError: match is not pending
    """
    index = next((i for i, m in enumerate(matches) if m.id == match_id), None)
    if index is None:
        raise MatchNotFoundError(match_id)

    current = matches[index]
    if current.status != MatchStatus.pending:
        raise InvalidTransitionError(f"Match {match_id} is {current.status.value}; only pending matches can start")

    result: List[IndividualMatch] = list(matches)
    result[index] = replace(current, status=MatchStatus.in_progress, started_at=started_at or datetime.utcnow())
    return tuple(result)
