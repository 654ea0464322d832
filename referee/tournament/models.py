"""
Tournament Data Models.

Immutable state representations for bracket entities.
Every round transition produces a new bracket snapshot instead of
mutating the previous one.
"""

from enum import Enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Wire spelling of the supported boards
BOARD_SIZES: Dict[str, int] = {"3x3": 3, "5x5": 5}


class MatchOutcome(Enum):
    """How a match was resolved."""

    WIN = "win"
    DRAW = "draw"
    ERROR = "error"
    BYE = "bye"  # resolved without play


@dataclass(frozen=True)
class Player:
    """
    A player service taking part in a tournament.

    BYE sentinels pad the bracket to a power of two and never have a port.
    """

    name: str
    port: Optional[int] = None
    host: Optional[str] = None
    protocol: Optional[str] = None
    is_bye: bool = False
    is_human: bool = False

    @classmethod
    def bye(cls) -> "Player":
        return cls(name="BYE", port=None, is_bye=True)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Player":
        """Build a player from its wire form (camelCase or snake_case flags)."""
        return cls(
            name=data.get("name"),
            port=data.get("port"),
            host=data.get("host"),
            protocol=data.get("protocol"),
            is_bye=bool(data.get("isBye", data.get("is_bye", False))),
            is_human=bool(data.get("isHuman", data.get("is_human", False))),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "port": self.port}
        if self.host is not None:
            data["host"] = self.host
        if self.protocol is not None:
            data["protocol"] = self.protocol
        if self.is_bye:
            data["isBye"] = True
        if self.is_human:
            data["isHuman"] = True
        return data


BYE_PLAYER = Player.bye()


def _player_dict(player: Optional[Player]) -> Optional[Dict[str, Any]]:
    return player.to_dict() if player is not None else None


@dataclass(frozen=True)
class Match:
    """Two bracket slots. Later-round slots stay None until filled."""

    player1: Optional[Player] = None
    player2: Optional[Player] = None

    @property
    def players(self) -> Tuple[Optional[Player], Optional[Player]]:
        return (self.player1, self.player2)

    @property
    def is_playable(self) -> bool:
        """Both sides are real players, so the arbitrator has to decide."""
        return (
            self.player1 is not None
            and self.player2 is not None
            and not self.player1.is_bye
            and not self.player2.is_bye
        )

    def with_players(
        self,
        player1: Optional[Player],
        player2: Optional[Player],
    ) -> "Match":
        """Return new instance with both slots replaced."""
        return Match(player1=player1, player2=player2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player1": _player_dict(self.player1),
            "player2": _player_dict(self.player2),
        }


@dataclass(frozen=True)
class Round:
    """One bracket round."""

    round: int
    matches: Tuple[Match, ...] = ()

    def with_matches(self, matches: Tuple[Match, ...]) -> "Round":
        """Return new instance with replaced matches."""
        return Round(round=self.round, matches=tuple(matches))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round": self.round,
            "matches": [match.to_dict() for match in self.matches],
        }


# Ordered list of rounds, round 1 first.
Bracket = Tuple[Round, ...]


def bracket_to_dict(bracket: Bracket) -> List[Dict[str, Any]]:
    return [round_.to_dict() for round_ in bracket]


@dataclass(frozen=True)
class MatchResult:
    """Outcome reported by the arbitrator (or produced for a BYE)."""

    result: MatchOutcome
    winner: Optional[Player] = None
    moves: Optional[List[Any]] = None
    duration: Optional[float] = None
    error: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> "MatchResult":
        """Accept a MatchResult or the arbitrator's dict reply."""
        if isinstance(value, MatchResult):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(f"Unexpected match result: {value!r}")

        winner = value.get("winner")
        if isinstance(winner, Mapping):
            winner = Player.from_dict(winner)

        outcome = value.get("result")
        if outcome is None:
            outcome = MatchOutcome.WIN if winner is not None else MatchOutcome.DRAW

        return cls(
            result=MatchOutcome(outcome),
            winner=winner,
            moves=value.get("moves"),
            duration=value.get("duration"),
            error=value.get("error"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "result": self.result.value,
            "winner": _player_dict(self.winner),
        }
        if self.moves is not None:
            data["moves"] = self.moves
        if self.duration is not None:
            data["duration"] = self.duration
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class MatchRecord:
    """A resolved match: the pairing, how it ended and who advances."""

    match: Match
    result: MatchResult
    winner: Optional[Player]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match": self.match.to_dict(),
            "result": self.result.to_dict(),
            "winner": _player_dict(self.winner),
        }


@dataclass(frozen=True)
class RoundResult:
    round: int
    matches: Tuple[MatchRecord, ...] = ()

    @property
    def winners(self) -> List[Optional[Player]]:
        return [record.winner for record in self.matches]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round": self.round,
            "matches": [record.to_dict() for record in self.matches],
        }


@dataclass(frozen=True)
class TournamentWinners:
    winner: Optional[Player]
    runner_up: Optional[Player]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winner": _player_dict(self.winner),
            "runnerUp": _player_dict(self.runner_up),
        }


@dataclass(frozen=True)
class TournamentOptions:
    """
    Per-run tournament options.

    board_size is normalised: 5 selects the 5x5 board, anything else 3x3.
    """

    timeout_ms: int = 3000
    no_tie: bool = False
    board_size: int = 3
    max_concurrent_matches: int = 1
    match_delay_ms: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "board_size", 5 if self.board_size == 5 else 3)
        if self.max_concurrent_matches < 1:
            raise ValueError("max_concurrent_matches must be at least 1")

    def match_options(self) -> Dict[str, Any]:
        """Options handed to the arbitrator for every match."""
        return {
            "timeout_ms": self.timeout_ms,
            "board_size": self.board_size,
            "no_tie": self.no_tie,
        }

    def with_overrides(self, **changes: Any) -> "TournamentOptions":
        return replace(self, **changes)


@dataclass(frozen=True)
class TournamentResult:
    """Aggregate returned by a tournament run."""

    bracket: Bracket
    results: Tuple[RoundResult, ...]
    winners: TournamentWinners
    total_rounds: int
    completed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bracket": bracket_to_dict(self.bracket),
            "results": [round_result.to_dict() for round_result in self.results],
            "winners": self.winners.to_dict(),
            "totalRounds": self.total_rounds,
            "completed": self.completed,
        }


@dataclass(frozen=True)
class RoundInfo:
    round: int
    total_rounds: int
    is_first_round: bool
    is_final_round: bool
    is_semi_final: bool
    name: str = field(default="")


@dataclass(frozen=True)
class Progress:
    completed_matches: int
    total_matches: int
    percentage: int
    remaining_matches: int
