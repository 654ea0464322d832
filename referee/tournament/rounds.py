"""
Round execution and bracket progression.

Resolution policy for one match:
- exactly one side is a BYE: the other side advances, nothing is played
- both sides are BYEs: player1 (a BYE) advances, nothing is played
- both sides are real players: match_fn decides; a draw, a missing winner
  or an exception advances player1
- one side is still empty: the filled side advances

advance_winners() is the round barrier: it only accepts the complete,
ordered winners list of a round and returns a new bracket snapshot.
"""

import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from referee.utils.async_utils import gather_bounded
from referee.utils.errors import BracketError, TournamentCancelledError

from .bracket import calculate_total_matches
from .models import (
    Bracket,
    Match,
    MatchOutcome,
    MatchRecord,
    MatchResult,
    Player,
    Progress,
    Round,
    RoundInfo,
    TournamentWinners,
)

logger = logging.getLogger(__name__)

MatchFunction = Callable[[Match], Awaitable[Any]]


def resolve_without_play(match: Match) -> Optional[MatchRecord]:
    """
    Resolve a match that needs no arbitrator.

    Returns:
        The record, or None when both sides are real players.

    Raises:
        BracketError: both slots are still empty
    """
    player1, player2 = match.player1, match.player2

    if player1 is None and player2 is None:
        raise BracketError("Match has no players; previous round not resolved")

    if player1 is None or player2 is None:
        winner = player1 if player1 is not None else player2
        return MatchRecord(
            match=match,
            result=MatchResult(result=MatchOutcome.BYE, winner=winner),
            winner=winner,
        )

    if player1.is_bye:
        # BYE vs BYE keeps a BYE in the bracket; it loses to the next real player
        winner = player1 if player2.is_bye else player2
    elif player2.is_bye:
        winner = player1
    else:
        return None

    return MatchRecord(
        match=match,
        result=MatchResult(result=MatchOutcome.BYE, winner=winner),
        winner=winner,
    )


async def _play(match: Match, match_fn: MatchFunction) -> MatchRecord:
    try:
        reply = await match_fn(match)
        result = (
            MatchResult.from_value(reply)
            if reply is not None
            else MatchResult(result=MatchOutcome.DRAW)
        )
    except TournamentCancelledError:
        raise
    except Exception as e:
        logger.warning(
            f"Match {match.player1.name} vs {match.player2.name} failed, "
            f"{match.player1.name} advances: {e}"
        )
        return MatchRecord(
            match=match,
            result=MatchResult(result=MatchOutcome.ERROR, error=str(e)),
            winner=match.player1,
        )

    winner = result.winner if result.winner is not None else match.player1
    return MatchRecord(match=match, result=result, winner=winner)


async def execute_round(
    round_: Round,
    match_fn: MatchFunction,
    *,
    max_concurrency: int = 1,
) -> Tuple[MatchRecord, ...]:
    """
    Resolve every match of a round.

    BYE and half-empty matches resolve immediately; real matches run through
    match_fn with at most max_concurrency in flight. Records come back in
    bracket order.
    """
    records: List[Optional[MatchRecord]] = []
    pending: List[Tuple[int, Match]] = []

    for index, match in enumerate(round_.matches):
        try:
            record = resolve_without_play(match)
        except BracketError as e:
            raise BracketError(e.message, round_number=round_.round) from e
        records.append(record)
        if record is None:
            pending.append((index, match))

    played = await gather_bounded(
        [lambda m=match: _play(m, match_fn) for _, match in pending],
        limit=max_concurrency,
    )
    for (index, _), record in zip(pending, played):
        records[index] = record

    return tuple(records)


def round_winners(records: Sequence[MatchRecord]) -> List[Optional[Player]]:
    """Ordered winners of a resolved round."""
    return [record.winner for record in records]


def advance_winners(
    bracket: Bracket,
    round_number: int,
    winners: Sequence[Optional[Player]],
) -> Bracket:
    """
    Write a round's winners into the next round's slots.

    matches[i] of round_number + 1 receives winners[2i] and winners[2i + 1].

    Returns:
        A new bracket; the input is left untouched.
    """
    if round_number < 1 or round_number >= len(bracket):
        raise BracketError(
            f"Round {round_number} has no following round",
            round_number=round_number,
        )

    current = bracket[round_number - 1]
    if len(winners) != len(current.matches):
        raise BracketError(
            f"Round {round_number} produced {len(winners)} winners "
            f"for {len(current.matches)} matches",
            round_number=round_number,
        )

    next_round = bracket[round_number]
    filled = tuple(
        match.with_players(winners[2 * i], winners[2 * i + 1])
        for i, match in enumerate(next_round.matches)
    )

    return (
        bracket[:round_number]
        + (next_round.with_matches(filled),)
        + bracket[round_number + 1:]
    )


def is_tournament_complete(bracket: Bracket) -> bool:
    """The final has exactly one match and both its slots are filled."""
    if not bracket:
        return False
    last_round = bracket[-1]
    if len(last_round.matches) != 1:
        return False
    final_match = last_round.matches[0]
    return final_match.player1 is not None and final_match.player2 is not None


def get_tournament_winners(
    players: Sequence[Player],
    bracket: Bracket,
) -> TournamentWinners:
    """
    Winner and runner-up read from the final's slots.

    The final's recorded result is not consulted: player1 is reported as
    winner even when the match went to player2.
    """
    final_match = bracket[-1].matches[0]
    return TournamentWinners(
        winner=final_match.player1,
        runner_up=final_match.player2,
    )


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Get the display name of a round."""
    players_in_round = 2 ** (total_rounds - round_number + 1)
    if players_in_round == 2:
        return "Final"
    elif players_in_round == 4:
        return "Semifinal"
    elif players_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {players_in_round}"


def get_round_info(round_number: int, total_rounds: int) -> RoundInfo:
    return RoundInfo(
        round=round_number,
        total_rounds=total_rounds,
        is_first_round=round_number == 1,
        is_final_round=round_number == total_rounds,
        is_semi_final=round_number == total_rounds - 1,
        name=get_round_name(round_number, total_rounds),
    )


def calculate_progress(bracket: Bracket, completed_matches: int) -> Progress:
    """Completion metadata over the padded bracket."""
    total_matches = calculate_total_matches(len(bracket[0].matches) * 2)
    percentage = round(completed_matches / total_matches * 100) if total_matches else 100
    return Progress(
        completed_matches=completed_matches,
        total_matches=total_matches,
        percentage=percentage,
        remaining_matches=total_matches - completed_matches,
    )
