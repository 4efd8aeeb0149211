"""
Engine Core - Authoritative room state and turn resolution.

The engine is the runtime that:
1. Holds one RoomState per room
2. Rolls dice server-side
3. Derives the required move from the dice total
4. Applies turn actions via the reducer
5. Detects elimination and the end of the game
"""

from .state import (
    RoomState,
    Seat,
    DiceRoll,
    RequiredMove,
    MoveType,
    GraceStatus,
    TurnPhase,
    BORDER_NUMBERS,
    CENTER,
    MAX_ROLLS,
    STARTING_COINS,
)
from .action import Action, ActionType, ActionPayload, ActionResult, ErrorCode
from .dice import DiceRoller, roll_dice
from .rules import derive_required_move, describe_move
from .events import GameEvent
from .reducer import Reducer, apply_action

__all__ = [
    "RoomState",
    "Seat",
    "DiceRoll",
    "RequiredMove",
    "MoveType",
    "GraceStatus",
    "TurnPhase",
    "BORDER_NUMBERS",
    "CENTER",
    "MAX_ROLLS",
    "STARTING_COINS",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "DiceRoller",
    "roll_dice",
    "derive_required_move",
    "describe_move",
    "GameEvent",
    "Reducer",
    "apply_action",
]
