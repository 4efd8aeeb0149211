"""
Room State - The authoritative state record of one room.

Design principles:
- One RoomState per room code, owned by that room only
- Mutated only by the reducer, always on a clone
- Serializable: snapshots are pushed to every participant
- Per-seat sequences always have exactly player_count entries
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from copy import deepcopy
from enum import Enum


BORDER_NUMBERS: tuple[int, ...] = (3, 4, 5, 6, 8, 9, 10, 11)
CENTER = "center"

STARTING_COINS = 4
MAX_ROLLS = 8
LOG_LIMIT = 160

MIN_PLAYERS = 3
MAX_PLAYERS = 6

NICK_MAX_LENGTH = 24
DEFAULT_AVATAR = "🧚"


class GraceStatus(Enum):
    """Last-chance status of a seat that ran out of coins."""
    NORMAL = "normal"
    PENDING = "pending"  # Gets one more chance next turn
    ACTIVE = "active"  # This turn is the last chance


class TurnPhase(Enum):
    """Where the current turn is in the roll -> confirm -> action cycle."""
    AWAITING_ROLL = "awaiting_roll"
    AWAITING_CONFIRM = "awaiting_confirm"
    AWAITING_ACTION = "awaiting_action"
    TERMINAL = "terminal"


class MoveType(Enum):
    """Mandatory moves implied by a confirmed dice total."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    COLLECT_BORDERS = "collect"
    COLLECT_ALL = "collectAll"


@dataclass(frozen=True)
class DiceRoll:
    """Two die faces, each in [1, 6]."""
    a: int
    b: int

    @property
    def total(self) -> int:
        return self.a + self.b

    def to_dict(self) -> dict[str, int]:
        return {"a": self.a, "b": self.b, "total": self.total}


@dataclass(frozen=True)
class RequiredMove:
    """
    The mandatory action derived from a confirmed roll.

    target is a border number, CENTER for center deposits,
    or None for the collect moves.
    """
    move_type: MoveType
    target: int | str | None = None

    @property
    def is_deposit(self) -> bool:
        return self.move_type == MoveType.DEPOSIT

    @property
    def to_center(self) -> bool:
        return self.target == CENTER

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.move_type.value, "target": self.target}


@dataclass
class Seat:
    """Occupancy of a seat: who sits there and how they look on the board."""
    nick: str
    avatar: str = DEFAULT_AVATAR
    connection_id: str | None = None

    @property
    def label(self) -> str:
        return f"{self.avatar} {self.nick}"


def default_nick(seat: int) -> str:
    """Fallback display name for a seat (1-based)."""
    return f"Player {seat + 1}"


def clamp_player_count(value: Any) -> int:
    """Clamp any requested player count into [MIN_PLAYERS, MAX_PLAYERS]."""
    try:
        count = int(str(value).strip())
    except (TypeError, ValueError):
        count = MIN_PLAYERS
    return max(MIN_PLAYERS, min(MAX_PLAYERS, count))


@dataclass
class RoomState:
    """
    Complete state of one room at a point in time.

    This is the canonical state that the engine operates on.
    All game state changes go through the reducer.
    """
    room_code: str
    player_count: int

    # Per-seat sequences
    coins: list[int] = field(default_factory=list)
    eliminated: list[bool] = field(default_factory=list)
    rolls_taken: list[int] = field(default_factory=list)
    grace: list[GraceStatus] = field(default_factory=list)
    seats: list[Seat | None] = field(default_factory=list)

    # Turn
    current_turn: int = 0
    last_roll: DiceRoll | None = None
    required_move: RequiredMove | None = None

    # Shared board
    center_pool: int = 0
    border_slots: dict[int, bool] = field(default_factory=dict)

    # Most recent entry first
    event_log: list[str] = field(default_factory=list)

    # Control
    paused: bool = False
    finished: bool = False
    winners: list[int] = field(default_factory=list)
    host_connection_id: str | None = None

    @classmethod
    def create(
        cls,
        room_code: str,
        player_count: int,
        host_connection_id: str | None = None,
    ) -> RoomState:
        """Create a fresh game: every seat vacant with STARTING_COINS."""
        count = clamp_player_count(player_count)
        return cls(
            room_code=room_code,
            player_count=count,
            coins=[STARTING_COINS] * count,
            eliminated=[False] * count,
            rolls_taken=[0] * count,
            grace=[GraceStatus.NORMAL] * count,
            seats=[None] * count,
            border_slots={n: False for n in BORDER_NUMBERS},
            event_log=[f"New game. Everyone has {STARTING_COINS} coins."],
            host_connection_id=host_connection_id,
        )

    @property
    def turn_phase(self) -> TurnPhase:
        if self.finished:
            return TurnPhase.TERMINAL
        if self.required_move is not None:
            return TurnPhase.AWAITING_ACTION
        if self.last_roll is not None:
            return TurnPhase.AWAITING_CONFIRM
        return TurnPhase.AWAITING_ROLL

    @property
    def alive_seats(self) -> list[int]:
        return [i for i, out in enumerate(self.eliminated) if not out]

    @property
    def occupied_borders(self) -> list[int]:
        return [n for n in BORDER_NUMBERS if self.border_slots.get(n)]

    @property
    def coins_in_play(self) -> int:
        """Coins held by players, in the center pool and on the borders."""
        return sum(self.coins) + self.center_pool + len(self.occupied_borders)

    def label(self, seat: int) -> str:
        """Human-readable name of a seat for log lines."""
        if 0 <= seat < self.player_count and self.seats[seat]:
            return self.seats[seat].label
        return default_nick(seat)

    def log(self, line: str) -> None:
        """Prepend a line to the event log, dropping the oldest past LOG_LIMIT."""
        self.event_log.insert(0, line)
        del self.event_log[LOG_LIMIT:]

    def seat_of(self, connection_id: str) -> int | None:
        """Seat index held by a connection, if any."""
        for i, seat in enumerate(self.seats):
            if seat and seat.connection_id == connection_id:
                return i
        return None

    def next_alive(self, seat: int) -> int:
        """Next non-eliminated seat after `seat`, wrapping; `seat` itself if none."""
        for step in range(1, self.player_count + 1):
            candidate = (seat + step) % self.player_count
            if not self.eliminated[candidate]:
                return candidate
        return seat

    def clone(self) -> RoomState:
        """Deep copy the state."""
        return deepcopy(self)
