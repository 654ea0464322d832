"""
Single elimination bracket construction.

Pure functions: roster validation, seeding shuffle and bracket layout with
BYE padding for rosters that are not a power of two.
"""

import math
import random
from typing import Any, List, Mapping, Optional, Sequence

from referee.utils.errors import ValidationError

from .models import BYE_PLAYER, Bracket, Match, Player, Round

MIN_PLAYERS = 2
MAX_PLAYERS = 12
MIN_PORT = 3000
MAX_PORT = 9999


def is_power_of_two(n: int) -> bool:
    """Check whether n is a positive power of two."""
    return n > 0 and (n & (n - 1)) == 0


def next_power_of_two(n: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if n <= 1:
        return 1
    return 2 ** math.ceil(math.log2(n))


def calculate_byes(num_players: int) -> int:
    """Calculate number of byes needed."""
    return next_power_of_two(num_players) - num_players


def calculate_total_matches(num_players: int) -> int:
    """Single elimination plays one match per eliminated player."""
    return num_players - 1


def _field(entry: Any, key: str, default: Any = None) -> Any:
    if isinstance(entry, Player):
        return getattr(entry, key, default)
    return entry.get(key, default)


def _is_bye(entry: Any) -> bool:
    if isinstance(entry, Player):
        return entry.is_bye
    return bool(entry.get("isBye", entry.get("is_bye", False)))


def validate_tournament_players(
    players: Any,
    min_players: int = MIN_PLAYERS,
    max_players: int = MAX_PLAYERS,
    min_port: int = MIN_PORT,
    max_port: int = MAX_PORT,
) -> List[Player]:
    """
    Validate a tournament roster.

    Entries may be Player instances or their dict form. BYE entries are
    exempt from the port check.

    Returns:
        The roster as Player instances, in input order.

    Raises:
        ValidationError: on the first offending entry
    """
    if not isinstance(players, (list, tuple)):
        raise ValidationError("Players must be a list")

    if len(players) < min_players:
        raise ValidationError(
            f"A tournament needs at least {min_players} players",
            details={"count": len(players)},
        )

    if len(players) > max_players:
        raise ValidationError(
            f"A tournament can have at most {max_players} players",
            details={"count": len(players)},
        )

    normalized: List[Player] = []
    for index, entry in enumerate(players, start=1):
        if not isinstance(entry, (Player, Mapping)):
            raise ValidationError(
                f"Player {index} must be an object",
                details={"index": index},
            )

        name = _field(entry, "name")
        if not isinstance(name, str) or not name:
            raise ValidationError(
                f"Player {index} must have a valid name",
                details={"index": index},
            )

        if not _is_bye(entry):
            port = _field(entry, "port")
            # bool is an int subclass; a flag is never a port
            if (
                not isinstance(port, int)
                or isinstance(port, bool)
                or port < min_port
                or port > max_port
            ):
                raise ValidationError(
                    f"Player {index} must have a port between {min_port}-{max_port}",
                    details={"index": index, "port": port},
                )

        normalized.append(entry if isinstance(entry, Player) else Player.from_dict(entry))

    return normalized


def shuffle_players(
    players: Sequence[Player],
    rng: Optional[random.Random] = None,
) -> List[Player]:
    """
    Return a shuffled copy of the roster.

    random.Random.shuffle is a Fisher-Yates shuffle; pass a seeded
    random.Random for a reproducible draw.
    """
    shuffled = list(players)
    (rng or random).shuffle(shuffled)
    return shuffled


def _build_rounds(seeded: Sequence[Player]) -> Bracket:
    """Pair consecutive slots into round 1 and pre-allocate the rest."""
    size = len(seeded)
    total_rounds = int(math.log2(size))

    first_round = Round(
        round=1,
        matches=tuple(
            Match(player1=seeded[i], player2=seeded[i + 1])
            for i in range(0, size, 2)
        ),
    )

    rounds = [first_round]
    for round_number in range(2, total_rounds + 1):
        match_count = 2 ** (total_rounds - round_number)
        rounds.append(
            Round(
                round=round_number,
                matches=tuple(Match() for _ in range(match_count)),
            )
        )

    return tuple(rounds)


def create_bracket_with_byes(
    players: Sequence[Player],
    rng: Optional[random.Random] = None,
) -> Bracket:
    """
    Create a bracket padded with BYE sentinels.

    The padded roster is shuffled so BYEs spread across the bracket
    instead of bunching at the end.
    """
    bracket_size = next_power_of_two(len(players))
    padded = list(players) + [BYE_PLAYER] * (bracket_size - len(players))
    return _build_rounds(shuffle_players(padded, rng))


def create_bracket(
    players: Sequence[Player],
    rng: Optional[random.Random] = None,
) -> Bracket:
    """
    Create a single elimination bracket.

    Power-of-two rosters are paired in the given order. Anything else is
    padded with BYEs by create_bracket_with_byes.
    """
    if len(players) < 2:
        raise ValidationError("A bracket needs at least 2 players")

    if is_power_of_two(len(players)):
        return _build_rounds(list(players))

    return create_bracket_with_byes(players, rng)


def count_byes(round_: Round) -> int:
    """Count BYE-marked slots in a round."""
    return sum(
        1
        for match in round_.matches
        for player in match.players
        if player is not None and player.is_bye
    )
