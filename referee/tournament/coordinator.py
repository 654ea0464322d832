"""
Tournament Coordinator - runs a full single elimination tournament.

Flow per run:
1. Validate the roster (fatal, before any network call)
2. Shuffle and build the bracket
3. Broadcast tournament:start
4. Play rounds in order; within a round matches may fan out
5. Round barrier, then winners fill the next round's slots
6. Broadcast tournament:complete and return the aggregate result
"""

import asyncio
import random
from dataclasses import fields
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence, Union
from uuid import uuid4

from referee.config import Settings, get_settings
from referee.logging_config import bind_round, tournament_context
from referee.utils.errors import (
    ErrorCode,
    MatchExecutionError,
    TournamentCancelledError,
    ValidationError,
)

from . import bracket as bracket_builder
from . import rounds as round_executor
from .contracts import Arbitrator, Clock, EventsPublisher, SystemClock, get_speed_delay, sleep_ms
from .models import (
    BOARD_SIZES,
    Bracket,
    Match,
    MatchOutcome,
    MatchRecord,
    MatchResult,
    Player,
    Progress,
    RoundInfo,
    RoundResult,
    TournamentOptions,
    TournamentResult,
    TournamentWinners,
    bracket_to_dict,
)

BOT_NAME_POOL = tuple(f"Bot{i}" for i in range(1, 11))
HUMAN_PORT = 3000  # the frontend answers for the human player
RANDOM_PORT = 3001
BOT_BASE_PORT = 3002

# camelCase spellings accepted in an options dict, as sent by clients
OPTION_ALIASES = {
    "timeoutMs": "timeout_ms",
    "boardSize": "board_size",
    "noTie": "no_tie",
    "maxConcurrentMatches": "max_concurrent_matches",
    "matchDelayMs": "match_delay_ms",
}
OPTION_FIELDS = frozenset(f.name for f in fields(TournamentOptions))


class TournamentCoordinator:
    """
    Orchestrates tournaments over an external arbitrator.

    The coordinator holds no per-tournament state; each run works on its
    own immutable bracket snapshots, so one instance can run several
    tournaments concurrently.
    """

    def __init__(
        self,
        arbitrator: Arbitrator,
        events_adapter: EventsPublisher,
        logger: Any,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        delay: Optional[Callable[[int], Awaitable[None]]] = None,
        settings: Optional[Settings] = None,
    ):
        if arbitrator is None:
            raise ValueError("arbitrator is required")
        if events_adapter is None:
            raise ValueError("events_adapter is required")
        if logger is None:
            raise ValueError("logger is required")

        self.arbitrator = arbitrator
        self.events_adapter = events_adapter
        self.logger = logger
        self.clock = clock or SystemClock()
        self.rng = rng
        self.delay = delay or sleep_ms
        self.settings = settings or get_settings()

    # =========================================================================
    # Pure function wrappers
    # =========================================================================

    def validate_players(self, players: Any) -> List[Player]:
        return bracket_builder.validate_tournament_players(
            players,
            min_players=self.settings.min_players,
            max_players=self.settings.max_players,
            min_port=self.settings.min_player_port,
            max_port=self.settings.max_player_port,
        )

    def shuffle_players(self, players: Sequence[Player]) -> List[Player]:
        return bracket_builder.shuffle_players(players, self.rng)

    def create_bracket(self, players: Sequence[Player]) -> Bracket:
        return bracket_builder.create_bracket(players, self.rng)

    def create_bracket_with_byes(self, players: Sequence[Player]) -> Bracket:
        return bracket_builder.create_bracket_with_byes(players, self.rng)

    def is_power_of_two(self, n: int) -> bool:
        return bracket_builder.is_power_of_two(n)

    def calculate_total_matches(self, player_count: int) -> int:
        return bracket_builder.calculate_total_matches(player_count)

    def is_tournament_complete(self, bracket: Bracket) -> bool:
        return round_executor.is_tournament_complete(bracket)

    def get_tournament_winners(
        self,
        players: Sequence[Player],
        bracket: Bracket,
    ) -> TournamentWinners:
        return round_executor.get_tournament_winners(players, bracket)

    def get_round_info(self, round_number: int, total_rounds: int) -> RoundInfo:
        return round_executor.get_round_info(round_number, total_rounds)

    def calculate_progress(self, bracket: Bracket, completed_matches: int) -> Progress:
        return round_executor.calculate_progress(bracket, completed_matches)

    # =========================================================================
    # Roster
    # =========================================================================

    def build_player_list(
        self,
        total_players: int,
        include_random: bool = False,
        human_name: Optional[str] = None,
    ) -> List[Player]:
        """
        Build a roster from the setup screen's choices.

        Order: optional human, optional Random bot, then Bot1..Bot10 and
        generic BotN names after the pool runs out.
        """
        if (
            not isinstance(total_players, int)
            or isinstance(total_players, bool)
            or total_players < self.settings.min_players
            or total_players > self.settings.max_players
        ):
            raise ValidationError(
                f"total_players must be between "
                f"{self.settings.min_players}-{self.settings.max_players}",
                details={"totalPlayers": total_players},
            )

        players: List[Player] = []

        if human_name:
            players.append(Player(name=human_name, port=HUMAN_PORT, is_human=True))

        if include_random:
            players.append(Player(name="Random", port=RANDOM_PORT))

        for i in range(total_players - len(players)):
            name = BOT_NAME_POOL[i] if i < len(BOT_NAME_POOL) else f"Bot{i + 1}"
            players.append(Player(name=name, port=BOT_BASE_PORT + i))

        return players

    # =========================================================================
    # Tournament run
    # =========================================================================

    async def run_tournament(
        self,
        players: Sequence[Union[Player, Mapping[str, Any]]],
        options: Optional[Union[TournamentOptions, Mapping[str, Any]]] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TournamentResult:
        """
        Run a tournament to completion.

        Args:
            players: Roster as Player instances or dicts
            options: TournamentOptions, or a dict of its fields in snake_case
                or camelCase (timeoutMs, boardSize, noTie, speed, ...)
            cancel_event: Set it to stop before the next match or round

        Raises:
            ValidationError: bad roster or options, nothing was played
            TournamentCancelledError: cancel_event was set
        """
        roster = self.validate_players(players)
        options = self._resolve_options(options)

        with tournament_context(uuid4().hex[:12]):
            return await self._run(roster, options, cancel_event)

    async def _run(
        self,
        roster: List[Player],
        options: TournamentOptions,
        cancel_event: Optional[asyncio.Event],
    ) -> TournamentResult:
        shuffled = self.shuffle_players(roster)
        bracket = self.create_bracket(shuffled)
        total_rounds = len(bracket)

        self.logger.info(
            "tournament_start",
            players=[p.name for p in shuffled],
            board_size=f"{options.board_size}x{options.board_size}",
            no_tie=options.no_tie,
            timeout_ms=options.timeout_ms,
            total_rounds=total_rounds,
        )

        self.events_adapter.broadcast_tournament_start({
            "players": [p.to_dict() for p in shuffled],
            "bracket": bracket_to_dict(bracket),
            "timestamp": self.clock.isoformat(),
        })

        results: List[RoundResult] = []
        completed_matches = 0

        for round_number in range(1, total_rounds + 1):
            self._check_cancelled(cancel_event, round_number - 1)

            current = bracket[round_number - 1]
            info = self.get_round_info(round_number, total_rounds)
            bind_round(round_number, info.name)
            self.logger.info(
                "tournament_round",
                round=round_number,
                name=info.name,
                matches=len(current.matches),
            )

            async def play(match: Match, _round: int = round_number) -> MatchResult:
                self._check_cancelled(cancel_event, _round - 1)
                return await self._play_match(match, options)

            records = await round_executor.execute_round(
                current,
                play,
                max_concurrency=options.max_concurrent_matches,
            )
            for record in records:
                self._log_record(round_number, record)

            results.append(RoundResult(round=round_number, matches=records))
            completed_matches += len(records)

            progress = self.calculate_progress(bracket, completed_matches)
            self.logger.debug(
                "tournament_progress",
                round=round_number,
                percentage=progress.percentage,
                remaining_matches=progress.remaining_matches,
            )

            if round_number < total_rounds:
                bracket = round_executor.advance_winners(
                    bracket,
                    round_number,
                    round_executor.round_winners(records),
                )
                if options.match_delay_ms > 0:
                    await self.delay(options.match_delay_ms)

        winners = self.get_tournament_winners(shuffled, bracket)
        self._check_final(results[-1].matches[0], winners)

        self.logger.info(
            "tournament_complete",
            winner=winners.winner.name if winners.winner else "N/A",
            runner_up=winners.runner_up.name if winners.runner_up else "N/A",
            total_rounds=total_rounds,
        )

        result = TournamentResult(
            bracket=bracket,
            results=tuple(results),
            winners=winners,
            total_rounds=total_rounds,
            completed=self.is_tournament_complete(bracket),
        )

        self.events_adapter.broadcast_tournament_complete({
            "winners": winners.to_dict(),
            "bracket": bracket_to_dict(bracket),
            "results": [r.to_dict() for r in results],
            "timestamp": self.clock.isoformat(),
        })

        return result

    def _resolve_options(
        self,
        options: Optional[Union[TournamentOptions, Mapping[str, Any]]],
    ) -> TournamentOptions:
        """
        Merge an options dict over the settings defaults.

        Raises:
            ValidationError: unknown key or out-of-range value
        """
        if isinstance(options, TournamentOptions):
            return options
        if options is not None and not isinstance(options, Mapping):
            raise ValidationError("Options must be an object", code=ErrorCode.INVALID_REQUEST)

        values = {
            "timeout_ms": self.settings.default_timeout_ms,
            "max_concurrent_matches": self.settings.max_concurrent_matches,
        }
        unknown = []
        for key, value in (options or {}).items():
            if key == "speed":
                values["match_delay_ms"] = get_speed_delay(value)
                continue
            name = OPTION_ALIASES.get(key, key)
            if name not in OPTION_FIELDS:
                unknown.append(key)
                continue
            values[name] = value

        if unknown:
            raise ValidationError(
                f"Unknown tournament options: {', '.join(sorted(unknown))}",
                code=ErrorCode.INVALID_REQUEST,
                details={"options": sorted(unknown)},
            )

        # boardSize arrives as "3x3" / "5x5" from clients
        board_size = values.get("board_size")
        if isinstance(board_size, str):
            if board_size not in BOARD_SIZES:
                raise ValidationError(
                    "boardSize must be 3x3 or 5x5",
                    code=ErrorCode.INVALID_REQUEST,
                    details={"boardSize": board_size},
                )
            values["board_size"] = BOARD_SIZES[board_size]

        try:
            return TournamentOptions(**values)
        except ValueError as e:
            raise ValidationError(str(e), code=ErrorCode.INVALID_REQUEST) from e

    def _check_cancelled(
        self,
        cancel_event: Optional[asyncio.Event],
        completed_rounds: int,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self.logger.warning("tournament_cancelled", completed_rounds=completed_rounds)
            raise TournamentCancelledError(completed_rounds)

    def _check_final(self, final: MatchRecord, winners: TournamentWinners) -> None:
        """Warn when the declared winner is not who won the final."""
        final_name = final.winner.name if final.winner else None
        declared_name = winners.winner.name if winners.winner else None
        if final_name == declared_name:
            return
        self.logger.warning(
            "tournament_winner_mismatch",
            declared_winner=declared_name,
            final_winner=final_name,
            final_result=final.result.result.value,
        )

    async def _play_match(self, match: Match, options: TournamentOptions) -> MatchResult:
        """One arbitrator call; failures surface as MatchExecutionError."""
        player1, player2 = match.player1, match.player2
        try:
            reply = await self.arbitrator.run_match(
                [player1, player2],
                options.match_options(),
            )
            return MatchResult.from_value(reply)
        except Exception as e:
            self.logger.error(
                "tournament_match_failed",
                player1=player1.name,
                player2=player2.name,
                error=str(e),
            )
            raise MatchExecutionError(player1.name, player2.name, e) from e

    def _log_record(self, round_number: int, record: MatchRecord) -> None:
        match = record.match
        outcome = record.result.result
        if outcome == MatchOutcome.BYE:
            self.logger.debug(
                "tournament_bye",
                round=round_number,
                advances=record.winner.name if record.winner else None,
            )
            return

        self.logger.info(
            "tournament_match",
            round=round_number,
            player1=match.player1.name,
            player2=match.player2.name,
            winner=record.result.winner.name if record.result.winner else outcome.value,
            advances=record.winner.name,
            result=outcome.value,
        )
