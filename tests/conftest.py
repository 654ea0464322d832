"""Shared tournament test fixtures."""

from __future__ import annotations

import random
from typing import Any, Mapping, Sequence
from unittest.mock import AsyncMock, MagicMock

import pytest

from referee.config import Settings
from referee.tournament.models import MatchOutcome, MatchResult, Player


# =============================================================================
# Test Doubles
# =============================================================================


class FakeClock:
    """Clock frozen at a fixed instant."""

    def __init__(self, now_ms: float = 1_700_000_000_000.0):
        self._now = now_ms

    def now(self) -> float:
        return self._now

    def isoformat(self) -> str:
        return "2023-11-14T22:13:20+00:00"


class IdentityRandom(random.Random):
    """Random whose shuffle leaves the roster in input order."""

    def shuffle(self, x, *args, **kwargs) -> None:
        return None


class Player1Arbitrator:
    """Arbitrator that always declares player1 the winner."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    async def run_match(
        self,
        players: Sequence[Player],
        options: Mapping[str, Any],
    ) -> MatchResult:
        self.calls.append((players[0].name, players[1].name))
        return MatchResult(result=MatchOutcome.WIN, winner=players[0])


def make_players(count: int, base_port: int = 3001) -> list[Player]:
    """P1..Pn on consecutive ports."""
    return [Player(name=f"P{i + 1}", port=base_port + i) for i in range(count)]


def make_events_adapter() -> MagicMock:
    events = MagicMock()
    for name in (
        "broadcast_match_start",
        "broadcast_match_move",
        "broadcast_match_win",
        "broadcast_match_draw",
        "broadcast_match_error",
        "broadcast_move_removal",
        "broadcast_tournament_start",
        "broadcast_tournament_complete",
    ):
        setattr(events, name, MagicMock(return_value=None))
    return events


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def referee_settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def four_players() -> list[Player]:
    return make_players(4)


@pytest.fixture
def events_adapter() -> MagicMock:
    return make_events_adapter()


@pytest.fixture
def mock_logger() -> MagicMock:
    return MagicMock()


@pytest.fixture
def player1_arbitrator() -> Player1Arbitrator:
    return Player1Arbitrator()


@pytest.fixture
def failing_arbitrator() -> MagicMock:
    arbitrator = MagicMock()
    arbitrator.run_match = AsyncMock(side_effect=RuntimeError("arbitrator down"))
    return arbitrator


@pytest.fixture
def no_delay() -> AsyncMock:
    return AsyncMock(return_value=None)
