"""
Pydantic Schemas - The wire contract between browsers and the engine.

Inbound intents are JSON objects with a "type" key:
    createRoom   {"playersCount": 4}
    joinRoom     {"code": "ABC234"}
    claimSeat    {"seat": 0, "nick": "Ada", "avatar": "🦊"}
    rename       {"seat": 0, "nick": "Ada L."}
    startGame    {}
    roll         {}
    confirmSum   {"sum": 7}
    doAction     {}
    hostControl  {"action": "pause" | "resume" | "reset"}
    ping         {}

Outbound messages are {"type": ..., "payload": ...} with types
state, gameOver, roomCreated, errorMsg, pong.

Field names are camelCase on the wire and snake_case in Python.
"""

from enum import Enum
from typing import Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class MessageType(str, Enum):
    """Server -> client message types."""
    STATE = "state"
    GAME_OVER = "gameOver"
    ROOM_CREATED = "roomCreated"
    ERROR = "errorMsg"
    PONG = "pong"


class IntentType(str, Enum):
    """Client -> server intent types."""
    CREATE_ROOM = "createRoom"
    JOIN_ROOM = "joinRoom"
    CLAIM_SEAT = "claimSeat"
    RENAME = "rename"
    START_GAME = "startGame"
    ROLL = "roll"
    CONFIRM_SUM = "confirmSum"
    DO_ACTION = "doAction"
    HOST_CONTROL = "hostControl"
    PING = "ping"


# =============================================================================
# Intents
# =============================================================================

class Intent(BaseModel):
    """Base for all inbound intents."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: IntentType


class CreateRoomIntent(Intent):
    # Clamped to [3, 6] by the manager, never rejected
    players_count: Optional[Union[int, str]] = Field(3, alias="playersCount")


class JoinRoomIntent(Intent):
    code: str = ""


class ClaimSeatIntent(Intent):
    seat: int
    nick: Optional[str] = None
    avatar: Optional[str] = None


class RenameIntent(Intent):
    seat: int
    nick: Optional[str] = None


class ConfirmSumIntent(Intent):
    # Checked against the dice by the engine; bad input is just a wrong sum
    sum: Optional[Union[int, str]] = None


class HostControlIntent(Intent):
    action: Literal["pause", "resume", "reset"]


INTENT_MODELS: dict[IntentType, type[Intent]] = {
    IntentType.CREATE_ROOM: CreateRoomIntent,
    IntentType.JOIN_ROOM: JoinRoomIntent,
    IntentType.CLAIM_SEAT: ClaimSeatIntent,
    IntentType.RENAME: RenameIntent,
    IntentType.CONFIRM_SUM: ConfirmSumIntent,
    IntentType.HOST_CONTROL: HostControlIntent,
}


# =============================================================================
# State snapshot
# =============================================================================

class SeatInfo(BaseModel):
    """Public view of a claimed seat. Connection ids are never exposed."""
    nick: str
    avatar: str


class DiceInfo(BaseModel):
    a: int = Field(ge=1, le=6)
    b: int = Field(ge=1, le=6)
    total: int


class MoveInfo(BaseModel):
    type: str = Field(description="deposit, withdraw, collect, collectAll")
    target: Optional[Union[int, str]] = Field(None, description="Slot number, 'center' or null")


class RoomSnapshot(BaseModel):
    """Full room state, pushed after every change."""
    model_config = ConfigDict(populate_by_name=True)

    code: str
    player_count: int = Field(alias="playerCount")
    coins: list[int]
    eliminated: list[bool]
    rolls: list[int]
    grace: list[str]
    current: int
    center_coins: int = Field(alias="centerCoins")
    borders: dict[str, bool]
    log: list[str]
    last_roll: Optional[DiceInfo] = Field(None, alias="lastRoll")
    required_move: Optional[MoveInfo] = Field(None, alias="requiredMove")
    paused: bool
    finished: bool
    winners: list[int]
    phase: str
    players: list[Optional[SeatInfo]]


class GameOverPayload(BaseModel):
    winners: list[int]
    coins: list[int]


class ErrorPayload(BaseModel):
    code: str
    message: str


class ServerMessage(BaseModel):
    """Envelope for every outbound message."""
    type: MessageType
    payload: Optional[Any] = None


# =============================================================================
# HTTP responses
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: str
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    rooms: int = 0
