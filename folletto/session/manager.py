"""
Room Manager - Creates rooms and admits intents into them.

Responsibilities:
- Create rooms with unique human-typeable codes
- Join by code (case-insensitive)
- Seat claims, renames, host controls
- Turn authority before handing actions to the reducer
- Vacate seats of disconnected connections

Every operation takes the caller's connection id explicitly and
returns an ActionResult; caller errors never raise and never
touch state.
"""

from __future__ import annotations
from typing import Any, Callable
import logging
import secrets

from ..engine_core.state import (
    RoomState, Seat, clamp_player_count, default_nick,
    NICK_MAX_LENGTH, DEFAULT_AVATAR,
)
from ..engine_core.action import Action, ActionResult, ErrorCode
from ..engine_core.reducer import Reducer
from .store import RoomStore

logger = logging.getLogger(__name__)

# No 0/O, 1/I to keep codes easy to read aloud
ROOM_CODE_CHARS = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6

HOST_ACTIONS = ("pause", "resume", "reset")


def generate_room_code() -> str:
    return "".join(secrets.choice(ROOM_CODE_CHARS) for _ in range(ROOM_CODE_LENGTH))


def normalize_code(code: Any) -> str:
    return str(code or "").strip().upper()


class RoomManager:
    """
    Manages rooms on top of a RoomStore.

    Usage:
        manager = RoomManager()
        result = manager.create_room(4, connection_id="conn-1")
        code = result.new_state.room_code

        manager.claim_seat(code, 0, "Ada", "🦊", connection_id="conn-1")
        manager.roll(code, connection_id="conn-1")
        manager.confirm_sum(code, 7, connection_id="conn-1")
        manager.do_action(code, connection_id="conn-1")
    """

    def __init__(
        self,
        store: RoomStore | None = None,
        reducer: Reducer | None = None,
        code_factory: Callable[[], str] = generate_room_code,
    ):
        self.store = store if store is not None else RoomStore()
        self.reducer = reducer or Reducer()
        self.code_factory = code_factory

    # =========================================================================
    # Rooms
    # =========================================================================

    def create_room(self, player_count: Any, connection_id: str) -> ActionResult:
        """Create a room; the creator becomes host."""
        code = self.code_factory()
        while code in self.store:
            code = self.code_factory()

        state = RoomState.create(code, clamp_player_count(player_count), host_connection_id=connection_id)
        self.store.create(state)
        logger.info("Room %s created for %d players", code, state.player_count)
        return ActionResult.success_with_state(state)

    def join_room(self, code: Any) -> ActionResult:
        room = self.store.get(normalize_code(code))
        if not room:
            return self._not_found(code)
        return ActionResult.success_with_state(room.state)

    def get_state(self, code: Any) -> RoomState | None:
        room = self.store.get(normalize_code(code))
        return room.state if room else None

    def forget_room(self, code: Any) -> bool:
        room = self.store.remove(normalize_code(code))
        if room:
            logger.info("Room %s forgotten", room.code)
        return room is not None

    # =========================================================================
    # Seats
    # =========================================================================

    def claim_seat(
        self,
        code: Any,
        seat: int,
        nick: str | None,
        avatar: str | None,
        connection_id: str,
    ) -> ActionResult:
        """
        Take a vacant seat.

        A seat held by another connection cannot be taken over;
        the holder itself may claim it again to change nick/avatar.
        """
        room = self.store.get(normalize_code(code))
        if not room:
            return self._not_found(code)

        with room.lock:
            state = room.state
            if not 0 <= seat < state.player_count:
                return ActionResult.failure(f"Seat {seat} does not exist", ErrorCode.INVALID_SEAT)
            holder = state.seats[seat]
            if holder and holder.connection_id != connection_id:
                return ActionResult.failure(f"Seat {seat + 1} is already taken", ErrorCode.SEAT_TAKEN)

            new_state = state.clone()
            new_state.seats[seat] = Seat(
                nick=(nick or default_nick(seat))[:NICK_MAX_LENGTH],
                avatar=avatar or DEFAULT_AVATAR,
                connection_id=connection_id,
            )
            room.state = new_state
            return ActionResult.success_with_state(new_state)

    def rename(self, code: Any, seat: int, nick: str | None) -> ActionResult:
        room = self.store.get(normalize_code(code))
        if not room:
            return self._not_found(code)

        with room.lock:
            state = room.state
            if not 0 <= seat < state.player_count:
                return ActionResult.failure(f"Seat {seat} does not exist", ErrorCode.INVALID_SEAT)
            if not state.seats[seat]:
                return ActionResult.failure(f"Seat {seat + 1} is vacant", ErrorCode.SEAT_VACANT)

            new_state = state.clone()
            occupant = new_state.seats[seat]
            old = occupant.nick
            occupant.nick = (nick or old)[:NICK_MAX_LENGTH]
            new_state.log(f"✏️ Renamed: {old} → {occupant.nick}")
            room.state = new_state
            return ActionResult.success_with_state(new_state)

    def disconnect(self, connection_id: str) -> list[str]:
        """
        Vacate every seat held by a connection, in every room.

        Returns the codes of the rooms that changed.
        """
        changed = []
        for room in self.store:
            with room.lock:
                if room.state.seat_of(connection_id) is None:
                    continue
                new_state = room.state.clone()
                new_state.seats = [
                    None if s and s.connection_id == connection_id else s
                    for s in new_state.seats
                ]
                room.state = new_state
                changed.append(room.code)
        if changed:
            logger.info("Connection %s left seats in %s", connection_id, ", ".join(changed))
        return changed

    # =========================================================================
    # Host controls
    # =========================================================================

    def start_game(self, code: Any, connection_id: str) -> ActionResult:
        return self.host_control(code, "resume", connection_id)

    def host_control(self, code: Any, action: str, connection_id: str) -> ActionResult:
        """Pause, resume or reset a room. Host only."""
        room = self.store.get(normalize_code(code))
        if not room:
            return self._not_found(code)
        if action not in HOST_ACTIONS:
            return ActionResult.failure(f"Unknown host action: {action}", ErrorCode.INVALID_INTENT)

        with room.lock:
            state = room.state
            if state.host_connection_id != connection_id:
                return ActionResult.failure("Only the host can do that", ErrorCode.NOT_HOST)

            if action == "reset":
                new_state = RoomState.create(room.code, state.player_count, host_connection_id=state.host_connection_id)
            elif action == "resume" and state.finished:
                return ActionResult.failure("Game is over - reset to play again", ErrorCode.GAME_OVER)
            else:
                new_state = state.clone()
                new_state.paused = action == "pause"

            room.state = new_state
            logger.info("Room %s: host %s", room.code, action)
            return ActionResult.success_with_state(new_state)

    # =========================================================================
    # Turn intents
    # =========================================================================

    def roll(self, code: Any, connection_id: str) -> ActionResult:
        return self.play(code, Action.roll(), connection_id)

    def confirm_sum(self, code: Any, claimed_sum: Any, connection_id: str) -> ActionResult:
        return self.play(code, Action.confirm_sum(claimed_sum), connection_id)

    def do_action(self, code: Any, connection_id: str) -> ActionResult:
        return self.play(code, Action.do_action(), connection_id)

    def play(self, code: Any, action: Action, connection_id: str) -> ActionResult:
        """
        Run a turn action for the current seat.

        A claimed seat is played only by its holder; a vacant
        seat can be played by anyone in the room. The host's
        extra powers stop at pause, resume and reset.
        """
        room = self.store.get(normalize_code(code))
        if not room:
            return self._not_found(code)

        with room.lock:
            state = room.state
            holder = state.seats[state.current_turn]
            if holder and holder.connection_id != connection_id:
                return ActionResult.failure(
                    f"It is {state.label(state.current_turn)}'s turn",
                    ErrorCode.NOT_YOUR_TURN,
                )

            result = self.reducer.apply(state, action)
            if result.success:
                room.state = result.new_state
            return result

    def _not_found(self, code: Any) -> ActionResult:
        return ActionResult.failure(f"Room {normalize_code(code) or '?'} not found", ErrorCode.ROOM_NOT_FOUND)
