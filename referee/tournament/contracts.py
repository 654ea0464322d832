"""
Contracts of the collaborators the coordinator is wired with.

The arbitrator and the events publisher live outside the tournament core;
only these shapes are relied on.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Protocol, Sequence, Union, runtime_checkable

from .models import MatchResult, Player

# Pacing between moves/matches for the UI, in milliseconds
SPEED_DELAYS_MS: Dict[str, int] = {
    "slow": 2000,
    "normal": 1000,
    "fast": 200,
}


def get_speed_delay(speed: str | None) -> int:
    """Map a speed setting to a delay; unknown settings play at normal speed."""
    return SPEED_DELAYS_MS.get(speed or "normal", SPEED_DELAYS_MS["normal"])


@runtime_checkable
class Arbitrator(Protocol):
    """Plays one match between two real players."""

    async def run_match(
        self,
        players: Sequence[Player],
        options: Mapping[str, Any],
    ) -> Union[MatchResult, Mapping[str, Any]]:
        """
        Returns {result: win|draw|error, winner, moves?, duration?, error?}.
        """
        ...


@runtime_checkable
class EventsPublisher(Protocol):
    """Fire-and-forget lifecycle broadcaster."""

    def broadcast_match_start(self, payload: Dict[str, Any]) -> None: ...

    def broadcast_match_move(self, payload: Dict[str, Any]) -> None: ...

    def broadcast_match_win(self, payload: Dict[str, Any]) -> None: ...

    def broadcast_match_draw(self, payload: Dict[str, Any]) -> None: ...

    def broadcast_match_error(self, payload: Dict[str, Any]) -> None: ...

    def broadcast_move_removal(self, payload: Dict[str, Any]) -> None: ...

    def broadcast_tournament_start(self, payload: Dict[str, Any]) -> None: ...

    def broadcast_tournament_complete(self, payload: Dict[str, Any]) -> None: ...


class Clock(Protocol):
    def now(self) -> float:
        """Milliseconds since the epoch."""
        ...

    def isoformat(self) -> str: ...


class SystemClock:
    """Wall clock."""

    def now(self) -> float:
        return time.time() * 1000

    def isoformat(self) -> str:
        return datetime.now(timezone.utc).isoformat()


async def sleep_ms(ms: int) -> None:
    """Default delay function."""
    await asyncio.sleep(ms / 1000)
