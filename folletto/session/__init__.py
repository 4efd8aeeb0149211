"""
Session Module - Manages ephemeral game rooms.

A room represents one play-through of the game:
- Created by a host with a fixed number of seats
- Holds the authoritative RoomState
- Admits intents from the connections that joined it
- Forgotten when the process ends or on request

Rooms are EPHEMERAL: nothing is persisted.
"""

from .store import Room, RoomStore
from .manager import RoomManager, generate_room_code, normalize_code

__all__ = [
    "Room",
    "RoomStore",
    "RoomManager",
    "generate_room_code",
    "normalize_code",
]
