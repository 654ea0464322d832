"""
Player communication adapter.

Turns a board state into an HTTP request for a player service and the
reply into a move. The request/response shaping is kept in pure functions
so it can be tested without a transport; PlayerCommunicationAdapter only
adds the network call.

request_move() never raises: every failure comes back as MoveResult.error.
"""

import asyncio
import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from referee.config import Settings, get_settings
from referee.schemas.responses import MoveReply, PlayerHealth, PlayerInfo
from referee.tournament.models import Player
from referee.utils.errors import ErrorCode, TransportError, ValidationError
from referee.utils.http_client import AsyncHttpClient

# Observable error strings; clients match on them
TIMEOUT_MESSAGE = "Tiempo de espera agotado"
UNREACHABLE_MESSAGE = "No fue posible contactar al jugador."
INVALID_MOVE_MESSAGE = "Movimiento inválido recibido del jugador"
OUT_OF_RANGE_MESSAGE = "Movimiento fuera de rango"

DEFAULT_REQUEST_TIMEOUT_MS = 30000

# Where bots put the move, in priority order. Everything is normalised to
# MoveReply; new bots should answer {"move": n}.
MOVE_FIELD_PATHS: Tuple[Tuple[str, ...], ...] = (
    ("move",),
    ("movimiento",),
    ("data", "move"),
    ("data", "movimiento"),
)

_MISSING = object()

PlayerLike = Union[Player, Mapping[str, Any]]


@dataclass(frozen=True)
class MoveResult:
    """Either a move or an error message, never both."""

    move: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"error": self.error}
        return {"move": self.move}


def _as_player(player: PlayerLike) -> Player:
    return player if isinstance(player, Player) else Player.from_dict(player)


# =============================================================================
# Pure request/response shaping
# =============================================================================


def build_url(player: PlayerLike, endpoint: str) -> str:
    """Build the URL of a player endpoint; http and localhost by default."""
    player = _as_player(player)
    protocol = player.protocol or "http"
    host = player.host or "localhost"
    return f"{protocol}://{host}:{player.port}{endpoint}"


def build_request_data(
    board: List[int],
    symbol: Optional[str],
    timeout_ms: Optional[int] = None,
) -> Dict[str, Any]:
    return {
        "board": board,
        "symbol": symbol,
        "timeout": timeout_ms or DEFAULT_REQUEST_TIMEOUT_MS,
    }


def build_query_params(board: List[int], symbol: Optional[str] = None) -> Dict[str, str]:
    """Query string for GET /move: the board travels as a JSON array."""
    params = {"board": json.dumps(list(board))}
    if symbol is not None:
        params["symbol"] = str(symbol)
    return params


def _lookup(data: Any, path: Tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(data, Mapping) or key not in data:
            return _MISSING
        data = data[key]
    return data


def find_move_field(data: Any) -> Any:
    """First move value found along MOVE_FIELD_PATHS, or _MISSING."""
    for path in MOVE_FIELD_PATHS:
        value = _lookup(data, path)
        if value is not _MISSING:
            return value
    return _MISSING


def extract_move_from_response(data: Any) -> MoveResult:
    """Extract a move from a reply body without raising."""
    raw = find_move_field(data)
    if raw is _MISSING:
        return MoveResult(error=UNREACHABLE_MESSAGE)

    try:
        reply = MoveReply.model_validate({"move": raw})
    except PydanticValidationError:
        return MoveResult(error=INVALID_MOVE_MESSAGE)

    return MoveResult(move=reply.move)


def parse_move_response(data: Any) -> int:
    """
    Strict variant of extract_move_from_response.

    Raises:
        ValidationError: no move field, or not a number
    """
    raw = find_move_field(data)
    if raw is _MISSING:
        raise ValidationError(
            "Invalid reply from player",
            code=ErrorCode.INVALID_RESPONSE,
        )

    try:
        return MoveReply.model_validate({"move": raw}).move
    except PydanticValidationError as e:
        raise ValidationError(
            "Move must be a number",
            code=ErrorCode.INVALID_RESPONSE,
            details={"move": raw},
        ) from e


def validate_move(move: int, board_size: int) -> None:
    """
    Raises:
        ValidationError: move is not a cell of a board_size x board_size board
    """
    if move < 0 or move >= board_size * board_size:
        raise ValidationError(
            OUT_OF_RANGE_MESSAGE,
            code=ErrorCode.INVALID_MOVE,
            details={"move": move, "boardSize": board_size},
        )


def classify_request_error(error: BaseException, player: Optional[str] = None) -> TransportError:
    """Map a transport failure onto one of three observable errors."""
    if isinstance(error, httpx.TimeoutException):
        return TransportError(TIMEOUT_MESSAGE, code=ErrorCode.PLAYER_TIMEOUT, player=player)

    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return TransportError(
            f"Respuesta {status}",
            code=ErrorCode.PLAYER_HTTP_ERROR,
            status_code=status,
            player=player,
        )

    # connection refused, DNS failure, undecodable body, ...
    return TransportError(UNREACHABLE_MESSAGE, code=ErrorCode.PLAYER_UNREACHABLE, player=player)


def handle_request_error(error: BaseException) -> MoveResult:
    return MoveResult(error=classify_request_error(error).message)


def board_dimension(board: List[int]) -> Optional[int]:
    """3 for a 9-cell board, 5 for 25 cells, None for anything else."""
    side = math.isqrt(len(board))
    return side if side * side == len(board) and side > 0 else None


# =============================================================================
# Adapter
# =============================================================================


class PlayerCommunicationAdapter:
    """
    Talks to player services over HTTP.

    Usage:
        async with PlayerCommunicationAdapter() as players:
            result = await players.request_board_move(bot, board, "X")
    """

    def __init__(
        self,
        client: Optional[AsyncHttpClient] = None,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = logger or structlog.get_logger(__name__)
        self._owns_client = client is None
        self._client = client or AsyncHttpClient(max_retries=self.settings.http_max_retries)

    async def __aenter__(self) -> "PlayerCommunicationAdapter":
        if self._owns_client:
            await self._client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_client:
            await self._client.__aexit__(exc_type, exc_val, exc_tb)

    def _player_defaults(self, player: PlayerLike) -> Player:
        player = _as_player(player)
        if player.host is None or player.protocol is None:
            player = Player(
                name=player.name,
                port=player.port,
                host=player.host or self.settings.default_player_host,
                protocol=player.protocol or self.settings.default_player_protocol,
                is_bye=player.is_bye,
                is_human=player.is_human,
            )
        return player

    # Pure helpers exposed on the adapter for callers holding only an instance
    build_url = staticmethod(build_url)
    build_request_data = staticmethod(build_request_data)
    parse_move_response = staticmethod(parse_move_response)
    validate_move = staticmethod(validate_move)
    handle_request_error = staticmethod(handle_request_error)

    async def request_move(
        self,
        player: PlayerLike,
        endpoint: str = "/move",
        *,
        params: Optional[Mapping[str, Any]] = None,
        timeout_ms: Optional[int] = None,
        board_size: Optional[int] = None,
    ) -> MoveResult:
        """
        Ask a player service for a move.

        Args:
            player: Target player
            endpoint: Path on the player service
            params: Query parameters (see build_query_params)
            timeout_ms: Request timeout; settings fallback when omitted
            board_size: When given, moves off the board are rejected

        Returns:
            MoveResult with either move or error set
        """
        player = self._player_defaults(player)
        url = build_url(player, endpoint)
        timeout = (timeout_ms or self.settings.move_request_timeout_ms) / 1000

        self.logger.debug(
            "player_move_requested",
            player=player.name,
            url=url,
            timeout_ms=int(timeout * 1000),
        )

        try:
            response = await self._client.get(url, params=dict(params or {}), timeout=timeout)
            data = response.json()
        except Exception as e:
            transport_error = classify_request_error(e, player=player.name)
            self.logger.error(
                "player_request_failed",
                player=player.name,
                error=transport_error.message,
                error_code=transport_error.code,
                cause=type(e).__name__,
            )
            return MoveResult(error=transport_error.message)

        result = extract_move_from_response(data)
        if not result.ok:
            self.logger.warning("player_invalid_reply", player=player.name, error=result.error)
            return result

        if board_size:
            try:
                validate_move(result.move, board_size)
            except ValidationError as e:
                self.logger.warning(
                    "player_move_out_of_range",
                    player=player.name,
                    move=result.move,
                    board_size=board_size,
                )
                return MoveResult(error=e.message)

        return result

    async def request_board_move(
        self,
        player: PlayerLike,
        board: List[int],
        symbol: Optional[str] = None,
        *,
        timeout_ms: Optional[int] = None,
        endpoint: str = "/move",
    ) -> MoveResult:
        """request_move for a board; the board size is read off the board."""
        return await self.request_move(
            player,
            endpoint,
            params=build_query_params(board, symbol),
            timeout_ms=timeout_ms,
            board_size=board_dimension(board),
        )

    async def check_health(self, player: PlayerLike) -> PlayerHealth:
        """
        GET /health.

        Raises:
            TransportError: unreachable, timed out, non-2xx or malformed reply
        """
        return PlayerHealth.model_validate(await self._probe(player, "/health"))

    async def fetch_info(self, player: PlayerLike) -> PlayerInfo:
        """
        GET /info.

        Raises:
            TransportError: unreachable, timed out, non-2xx or malformed reply
        """
        return PlayerInfo.model_validate(await self._probe(player, "/info"))

    async def _probe(self, player: PlayerLike, endpoint: str) -> Mapping[str, Any]:
        player = self._player_defaults(player)
        url = build_url(player, endpoint)
        try:
            data = await self._client.get_json(
                url,
                max_retries=self.settings.probe_max_retries,
            )
        except Exception as e:
            raise classify_request_error(e, player=player.name) from e

        if not isinstance(data, Mapping):
            raise TransportError(
                UNREACHABLE_MESSAGE,
                code=ErrorCode.PLAYER_UNREACHABLE,
                player=player.name,
            )
        return data

    async def discover(self, players: Iterable[PlayerLike]) -> Dict[str, bool]:
        """Probe every player's /health concurrently; name -> healthy."""
        players = [self._player_defaults(p) for p in players]

        async def probe(player: Player) -> bool:
            try:
                health = await self.check_health(player)
            except (TransportError, PydanticValidationError) as e:
                self.logger.warning("player_unavailable", player=player.name, error=str(e))
                return False
            return health.is_healthy

        results = await asyncio.gather(*(probe(p) for p in players))
        return {player.name: healthy for player, healthy in zip(players, results)}
