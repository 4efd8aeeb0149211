"""
Action System - Turn actions, payloads, and results.

Actions represent the three turn intents of the current player:
roll the dice, confirm the sum, carry out the required move.

All turn state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .events import GameEvent


class ActionType(Enum):
    """Types of turn actions."""
    ROLL = "roll"
    CONFIRM_SUM = "confirm_sum"
    DO_ACTION = "do_action"


class ErrorCode(str, Enum):
    """Structured error codes returned instead of raising."""
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    NOT_IN_ROOM = "NOT_IN_ROOM"
    INVALID_SEAT = "INVALID_SEAT"
    SEAT_TAKEN = "SEAT_TAKEN"
    SEAT_VACANT = "SEAT_VACANT"
    NOT_HOST = "NOT_HOST"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    PAUSED = "PAUSED"
    GAME_OVER = "GAME_OVER"
    INVALID_PHASE = "INVALID_PHASE"
    NO_PENDING_MOVE = "NO_PENDING_MOVE"
    STALE_MOVE = "STALE_MOVE"
    INVALID_INTENT = "INVALID_INTENT"
    HANDLER_ERROR = "HANDLER_ERROR"


@dataclass
class ActionPayload:
    """
    Payload for an action.

    claimed_sum is whatever the client sent; the reducer parses it.
    """
    claimed_sum: Any | None = None


@dataclass
class Action:
    """A complete turn action to be applied to a room's state."""
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def roll(cls) -> Action:
        """Factory for a dice roll."""
        return cls(action_type=ActionType.ROLL)

    @classmethod
    def confirm_sum(cls, claimed_sum: Any) -> Action:
        """Factory for a sum confirmation."""
        return cls(
            action_type=ActionType.CONFIRM_SUM,
            payload=ActionPayload(claimed_sum=claimed_sum),
        )

    @classmethod
    def do_action(cls) -> Action:
        """Factory for executing the required move."""
        return cls(action_type=ActionType.DO_ACTION)


@dataclass
class ActionResult:
    """
    Result of applying an action or a room intent.

    Contains:
    - Whether it succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Events emitted on the way
    """
    success: bool
    new_state: Any | None = None  # RoomState
    error: str | None = None
    error_code: ErrorCode | None = None

    events: list[GameEvent] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        events: list[GameEvent] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, events=events or [])

    def events_of(self, event_type: str) -> list[GameEvent]:
        return [e for e in self.events if e.type == event_type]
