"""
Room Store - The process-wide mapping from room code to room.

This is the only mutable shared resource. It holds no game logic:
the manager looks rooms up here and swaps in new states.

No persistence - rooms live for the lifetime of the process
or until they are forgotten explicitly.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator
import threading

from ..engine_core.state import RoomState


@dataclass
class Room:
    """
    One room: its current state and the lock that serializes its intents.

    The state object is replaced, not mutated, on every change.
    """
    code: str
    state: RoomState
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class RoomStore:
    """
    In-memory store of rooms keyed by code.

    Usage:
        store = RoomStore()
        room = store.create(RoomState.create("ABC234", 4))
        store.get("ABC234")
        store.remove("ABC234")
    """

    def __init__(self):
        self._rooms: dict[str, Room] = {}

    def create(self, state: RoomState) -> Room:
        """Register a new room under its state's code."""
        if state.room_code in self._rooms:
            raise ValueError(f"Room {state.room_code} already exists")
        room = Room(code=state.room_code, state=state)
        self._rooms[room.code] = room
        return room

    def get(self, code: str) -> Room | None:
        """Get a room by code."""
        return self._rooms.get(code)

    def remove(self, code: str) -> Room | None:
        """Forget a room. Returns it if it existed."""
        return self._rooms.pop(code, None)

    def __contains__(self, code: object) -> bool:
        return code in self._rooms

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    def __len__(self) -> int:
        return len(self._rooms)
