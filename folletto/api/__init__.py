"""
API Module - Browser interface.

Exposes the engine over a WebSocket intent channel plus a few
REST endpoints. Browsers:
1. Create or join a room by code
2. Claim a seat
3. Send turn intents (roll, confirm sum, act)
4. Receive state snapshots after every change

All state is room-scoped and in memory.
"""

from .schemas import (
    IntentType,
    MessageType,
    RoomSnapshot,
    SeatInfo,
    DiceInfo,
    MoveInfo,
    ErrorResponse,
    HealthResponse,
)
from .service import GameService, Outcome, build_snapshot
from .app import create_app, ConnectionManager

__all__ = [
    "IntentType",
    "MessageType",
    "RoomSnapshot",
    "SeatInfo",
    "DiceInfo",
    "MoveInfo",
    "ErrorResponse",
    "HealthResponse",
    "GameService",
    "Outcome",
    "build_snapshot",
    "create_app",
    "ConnectionManager",
]
