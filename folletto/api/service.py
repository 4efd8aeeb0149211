"""
Game Service - Business logic layer between the transport and the engine.

The service:
1. Parses raw intent messages
2. Resolves which room a connection is bound to
3. Dispatches to the RoomManager
4. Formats outbound messages (room broadcast vs. caller only)

This layer is framework-agnostic; the FastAPI app only moves
messages between websockets and GameService.handle().
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import logging

from pydantic import ValidationError

from .schemas import (
    IntentType,
    Intent,
    INTENT_MODELS,
    MessageType,
    ServerMessage,
    RoomSnapshot,
    SeatInfo,
    DiceInfo,
    MoveInfo,
    GameOverPayload,
    ErrorPayload,
)
from ..engine_core.action import ActionResult, ErrorCode
from ..engine_core.events import GAME_OVER
from ..engine_core.state import RoomState
from ..session import RoomManager

logger = logging.getLogger(__name__)


def build_snapshot(state: RoomState) -> RoomSnapshot:
    """Convert a RoomState into its public snapshot."""
    return RoomSnapshot(
        code=state.room_code,
        player_count=state.player_count,
        coins=list(state.coins),
        eliminated=list(state.eliminated),
        rolls=list(state.rolls_taken),
        grace=[g.value for g in state.grace],
        current=state.current_turn,
        center_coins=state.center_pool,
        borders={str(n): occupied for n, occupied in state.border_slots.items()},
        log=list(state.event_log),
        last_roll=DiceInfo(**state.last_roll.to_dict()) if state.last_roll else None,
        required_move=MoveInfo(**state.required_move.to_dict()) if state.required_move else None,
        paused=state.paused,
        finished=state.finished,
        winners=list(state.winners),
        phase=state.turn_phase.value,
        players=[SeatInfo(nick=s.nick, avatar=s.avatar) if s else None for s in state.seats],
    )


def message(message_type: MessageType, payload: Any = None) -> dict[str, Any]:
    """Build an outbound message as plain JSON-ready data."""
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(by_alias=True)
    return ServerMessage(type=message_type, payload=payload).model_dump(mode="json")


def state_message(state: RoomState) -> dict[str, Any]:
    return message(MessageType.STATE, build_snapshot(state))


def error_message(code: ErrorCode | str, text: str) -> dict[str, Any]:
    code_value = code.value if isinstance(code, ErrorCode) else code
    return message(MessageType.ERROR, ErrorPayload(code=code_value, message=text))


@dataclass
class Outcome:
    """
    What the transport must deliver after one intent.

    broadcast goes to every connection watching room_code,
    direct goes to the calling connection only.
    """
    room_code: str | None = None
    broadcast: list[dict[str, Any]] = field(default_factory=list)
    direct: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(m["type"] == MessageType.ERROR.value for m in self.direct)


@dataclass
class GameService:
    """
    Main service for the browser clients.

    Usage:
        service = GameService()

        outcome = service.handle("conn-1", {"type": "createRoom", "playersCount": 4})
        # send outcome.direct to conn-1, outcome.broadcast to outcome.room_code
    """
    manager: RoomManager = field(default_factory=RoomManager)

    # connection id -> room code it joined
    _joined: dict[str, str] = field(default_factory=dict)

    def room_of(self, connection_id: str) -> str | None:
        return self._joined.get(connection_id)

    def handle(self, connection_id: str, raw: Any) -> Outcome:
        """Handle one raw intent message from a connection."""
        if not isinstance(raw, dict):
            return self._error(ErrorCode.INVALID_INTENT, "Message must be a JSON object")

        try:
            base = Intent.model_validate(raw)
            model = INTENT_MODELS.get(base.type, Intent)
            intent = model.model_validate(raw)
        except ValidationError as e:
            logger.debug("Rejected intent from %s: %s", connection_id, e)
            return self._error(ErrorCode.INVALID_INTENT, f"Invalid intent: {e.error_count()} error(s)")

        if intent.type == IntentType.PING:
            return Outcome(direct=[message(MessageType.PONG)])
        if intent.type == IntentType.CREATE_ROOM:
            return self.create_room(connection_id, intent.players_count)
        if intent.type == IntentType.JOIN_ROOM:
            return self.join_room(connection_id, intent.code)

        code = self._joined.get(connection_id)
        if code is None:
            return self._error(ErrorCode.NOT_IN_ROOM, "Join a room first")

        manager = self.manager
        if intent.type == IntentType.CLAIM_SEAT:
            result = manager.claim_seat(code, intent.seat, intent.nick, intent.avatar, connection_id)
        elif intent.type == IntentType.RENAME:
            result = manager.rename(code, intent.seat, intent.nick)
        elif intent.type == IntentType.START_GAME:
            result = manager.start_game(code, connection_id)
        elif intent.type == IntentType.HOST_CONTROL:
            result = manager.host_control(code, intent.action, connection_id)
        elif intent.type == IntentType.ROLL:
            result = manager.roll(code, connection_id)
        elif intent.type == IntentType.CONFIRM_SUM:
            result = manager.confirm_sum(code, intent.sum, connection_id)
        else:
            result = manager.do_action(code, connection_id)

        return self._room_outcome(code, result)

    def create_room(self, connection_id: str, players_count: Any) -> Outcome:
        result = self.manager.create_room(players_count, connection_id)
        state = result.new_state
        self._joined[connection_id] = state.room_code
        return Outcome(
            room_code=state.room_code,
            direct=[
                message(MessageType.ROOM_CREATED, {"code": state.room_code}),
                state_message(state),
            ],
        )

    def join_room(self, connection_id: str, code: Any) -> Outcome:
        result = self.manager.join_room(code)
        if not result.success:
            return self._error(result.error_code, result.error)
        state = result.new_state
        self._joined[connection_id] = state.room_code
        return Outcome(room_code=state.room_code, direct=[state_message(state)])

    def get_snapshot(self, code: Any) -> RoomSnapshot | None:
        state = self.manager.get_state(code)
        return build_snapshot(state) if state else None

    def disconnect(self, connection_id: str) -> list[Outcome]:
        """
        Forget a connection and vacate its seats.

        Returns one broadcast outcome per room whose seats changed,
        plus the room the connection was watching.
        """
        watched = self._joined.pop(connection_id, None)
        codes = self.manager.disconnect(connection_id)
        if watched and watched not in codes:
            codes.append(watched)

        outcomes = []
        for code in codes:
            state = self.manager.get_state(code)
            if state:
                outcomes.append(Outcome(room_code=code, broadcast=[state_message(state)]))
        return outcomes

    def _room_outcome(self, code: str, result: ActionResult) -> Outcome:
        if not result.success:
            if result.error_code == ErrorCode.ROOM_NOT_FOUND:
                self._forget_bindings(code)
            return self._error(result.error_code, result.error)

        broadcast = [state_message(result.new_state)]
        for event in result.events_of(GAME_OVER):
            broadcast.append(message(
                MessageType.GAME_OVER,
                GameOverPayload(winners=event.payload["winners"], coins=event.payload["coins"]),
            ))
            logger.info("Room %s finished: winners %s", code, event.payload["winners"])
        return Outcome(room_code=code, broadcast=broadcast)

    def _forget_bindings(self, code: str) -> None:
        for connection_id in [c for c, joined in self._joined.items() if joined == code]:
            del self._joined[connection_id]

    def _error(self, code: ErrorCode | None, text: str | None) -> Outcome:
        return Outcome(direct=[error_message(code or ErrorCode.INVALID_INTENT, text or "Request failed")])
