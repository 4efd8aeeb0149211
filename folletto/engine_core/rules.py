"""
Move Rules - Derive the mandatory move from a dice total.

Derivation is separate from application so the required move can be
announced and confirmed before any coin changes hands.

Rule table:
    3,4,5,6,8,9,10,11  deposit into the slot if empty, withdraw if occupied
    7                  deposit into the center pool
    2                  collect every occupied border slot
    12                 collect every occupied border slot and the center pool
"""

from __future__ import annotations
from typing import Mapping

from .state import BORDER_NUMBERS, CENTER, MoveType, RequiredMove


def derive_required_move(total: int, border_slots: Mapping[int, bool]) -> RequiredMove | None:
    """Return the move a total forces, or None if no rule covers it."""
    if total in BORDER_NUMBERS:
        if border_slots.get(total):
            return RequiredMove(MoveType.WITHDRAW, total)
        return RequiredMove(MoveType.DEPOSIT, total)
    if total == 7:
        return RequiredMove(MoveType.DEPOSIT, CENTER)
    if total == 2:
        return RequiredMove(MoveType.COLLECT_BORDERS)
    if total == 12:
        return RequiredMove(MoveType.COLLECT_ALL)
    return None


def describe_move(move: RequiredMove) -> str:
    """Announcement line for a pending move."""
    if move.move_type == MoveType.DEPOSIT:
        if move.to_center:
            return "Move: deposit 1 into the CENTER."
        return f"Move: deposit 1 into slot {move.target}."
    if move.move_type == MoveType.WITHDRAW:
        return f"Move: take 1 from slot {move.target}."
    if move.move_type == MoveType.COLLECT_BORDERS:
        return "Move: collect ALL border coins (press Action)."
    return "Move: collect EVERYTHING, borders and center (press Action)."
