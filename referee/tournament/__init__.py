"""
Single Elimination Tournament Engine.

This module provides:
- Bracket construction with BYE padding for any roster of 2-12 players
- Round execution with bounded fan-out behind a round barrier
- Tournament orchestration over an external arbitrator
- In-process lifecycle event broadcasting
"""

from .coordinator import TournamentCoordinator
from .contracts import Arbitrator, EventsPublisher, SystemClock, get_speed_delay
from .event_bus import BusEvent, EventBus, EventStream, EventType
from .events import EventsAdapter
from .models import (
    BYE_PLAYER,
    Bracket,
    Match,
    MatchOutcome,
    MatchRecord,
    MatchResult,
    Player,
    Progress,
    Round,
    RoundInfo,
    RoundResult,
    TournamentOptions,
    TournamentResult,
    TournamentWinners,
)

__all__ = [
    "TournamentCoordinator",
    "Arbitrator",
    "EventsPublisher",
    "SystemClock",
    "get_speed_delay",
    "BusEvent",
    "EventBus",
    "EventStream",
    "EventType",
    "EventsAdapter",
    "BYE_PLAYER",
    "Bracket",
    "Match",
    "MatchOutcome",
    "MatchRecord",
    "MatchResult",
    "Player",
    "Progress",
    "Round",
    "RoundInfo",
    "RoundResult",
    "TournamentOptions",
    "TournamentResult",
    "TournamentWinners",
]
