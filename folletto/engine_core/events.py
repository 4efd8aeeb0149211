"""
Game events emitted by the turn engine.

Events describe what happened while an action was processed.
The transport decides which of them reach clients.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}


# ===== Event Type Constants =====

DICE_ROLLED = "dice_rolled"
SUM_REJECTED = "sum_rejected"
MOVE_REQUIRED = "move_required"
COINS_MOVED = "coins_moved"
PLAYER_ELIMINATED = "player_eliminated"
GRACE_CHANGED = "grace_changed"
TURN_ADVANCED = "turn_advanced"
GAME_OVER = "game_over"


# ===== Event Factory Functions =====

def dice_rolled(seat: int, a: int, b: int) -> GameEvent:
    return GameEvent(DICE_ROLLED, {"seat": seat, "a": a, "b": b, "total": a + b})


def sum_rejected(seat: int, claimed: Any) -> GameEvent:
    return GameEvent(SUM_REJECTED, {"seat": seat, "claimed": claimed})


def move_required(seat: int, move: dict[str, Any]) -> GameEvent:
    return GameEvent(MOVE_REQUIRED, {"seat": seat, "move": move})


def coins_moved(seat: int, source: str, destination: str, amount: int) -> GameEvent:
    """source/destination are "player", "center", "borders" or a slot number as text."""
    return GameEvent(COINS_MOVED, {
        "seat": seat,
        "from": source,
        "to": destination,
        "amount": amount,
    })


def player_eliminated(seat: int, reason: str) -> GameEvent:
    return GameEvent(PLAYER_ELIMINATED, {"seat": seat, "reason": reason})


def grace_changed(seat: int, old_status: str, new_status: str) -> GameEvent:
    return GameEvent(GRACE_CHANGED, {"seat": seat, "old": old_status, "new": new_status})


def turn_advanced(from_seat: int, to_seat: int) -> GameEvent:
    return GameEvent(TURN_ADVANCED, {"from": from_seat, "to": to_seat})


def game_over(winners: list[int], coins: list[int], reason: str) -> GameEvent:
    return GameEvent(GAME_OVER, {"winners": winners, "coins": coins, "reason": reason})
