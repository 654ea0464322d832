"""Player service communication."""

from .http_adapter import (
    MOVE_FIELD_PATHS,
    MoveResult,
    PlayerCommunicationAdapter,
    build_query_params,
    build_request_data,
    build_url,
    extract_move_from_response,
    handle_request_error,
    parse_move_response,
    validate_move,
)

__all__ = [
    "MOVE_FIELD_PATHS",
    "MoveResult",
    "PlayerCommunicationAdapter",
    "build_query_params",
    "build_request_data",
    "build_url",
    "extract_move_from_response",
    "handle_request_error",
    "parse_move_response",
    "validate_move",
]
