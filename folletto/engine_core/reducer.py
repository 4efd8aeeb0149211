"""
Reducer - Applies turn actions to a room's state.

The reducer is the single point of game state mutation.
All turn changes must go through apply_action().

Design principles:
- (state, action) -> (new_state, events); the input state is never touched
- Validates before applying
- Returns ActionResult with success/failure
- Publishing is left to the caller

Turn cycle:
    AWAITING_ROLL -> AWAITING_CONFIRM -> AWAITING_ACTION -> next seat
Every path that finishes a turn goes through _end_turn(), which resolves
grace expiry, checks for the end of the game and advances the turn.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import logging

from .state import (
    RoomState, GraceStatus, TurnPhase, MoveType, MAX_ROLLS,
)
from .action import Action, ActionType, ActionResult, ErrorCode
from .dice import DiceRoller
from .rules import derive_required_move, describe_move
from . import events as ev

logger = logging.getLogger(__name__)

EXPECTED_PHASE = {
    ActionType.ROLL: TurnPhase.AWAITING_ROLL,
    ActionType.CONFIRM_SUM: TurnPhase.AWAITING_CONFIRM,
    ActionType.DO_ACTION: TurnPhase.AWAITING_ACTION,
}


def parse_claimed_sum(value: Any) -> int | None:
    """Read a client-supplied sum; anything non-numeric is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


@dataclass
class Reducer:
    """
    Reducer applies turn actions to room state.

    Stateless apart from the dice source - all game state is in RoomState.
    """
    roller: DiceRoller = field(default_factory=DiceRoller)

    def apply(self, state: RoomState, action: Action) -> ActionResult:
        """
        Apply an action to the room state.

        Returns ActionResult with the new state and events, or an error.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            return validation_error

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code=ErrorCode.INVALID_INTENT,
            )

        new_state = state.clone()
        events: list[ev.GameEvent] = []
        try:
            return handler(new_state, action, events)
        except Exception as e:
            logger.exception("Action %s failed in room %s", action.action_type.value, state.room_code)
            return ActionResult.failure(str(e), error_code=ErrorCode.HANDLER_ERROR)

    def _validate_action(self, state: RoomState, action: Action) -> ActionResult | None:
        """
        Validate that an action is legal in the current state.

        Returns a failure result if invalid, None if valid.
        """
        if state.finished:
            return ActionResult.failure("Game is over - no actions allowed", ErrorCode.GAME_OVER)
        if state.paused:
            return ActionResult.failure("Game is paused", ErrorCode.PAUSED)

        expected = EXPECTED_PHASE.get(action.action_type)
        if expected and state.turn_phase != expected:
            if action.action_type == ActionType.DO_ACTION:
                return ActionResult.failure("No move to carry out", ErrorCode.NO_PENDING_MOVE)
            return ActionResult.failure(
                f"Cannot {action.action_type.value} while {state.turn_phase.value}",
                ErrorCode.INVALID_PHASE,
            )
        return None

    def _get_handler(self, action_type: ActionType) -> Callable | None:
        """Get the handler function for an action type."""
        handlers = {
            ActionType.ROLL: self._handle_roll,
            ActionType.CONFIRM_SUM: self._handle_confirm_sum,
            ActionType.DO_ACTION: self._handle_do_action,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handle_roll(self, state: RoomState, action: Action, events: list) -> ActionResult:
        me = state.current_turn
        dice = self.roller.roll()
        state.last_roll = dice
        state.rolls_taken[me] += 1
        state.log(f"{state.label(me)} rolls: {dice.a} + {dice.b}")
        events.append(ev.dice_rolled(me, dice.a, dice.b))
        return ActionResult.success_with_state(state, events)

    def _handle_confirm_sum(self, state: RoomState, action: Action, events: list) -> ActionResult:
        """
        Check the player's addition, then derive the required move.

        A wrong sum is only logged; the roll stays pending.
        """
        me = state.current_turn
        total = state.last_roll.total
        claimed = parse_claimed_sum(action.payload.claimed_sum)
        if claimed != total:
            state.log("Wrong sum.")
            events.append(ev.sum_rejected(me, action.payload.claimed_sum))
            return ActionResult.success_with_state(state, events)

        move = derive_required_move(total, state.border_slots)
        if move is None:
            state.log(f"No move for a total of {total}.")
            self._end_turn(state, events)
            return ActionResult.success_with_state(state, events)

        if move.is_deposit and state.coins[me] == 0:
            self._eliminate(
                state, me, "no_coins_to_deposit",
                f"❌ {state.label(me)} had to deposit but has no coins: eliminated.",
                events,
            )
            self._end_turn(state, events)
            return ActionResult.success_with_state(state, events)

        state.required_move = move
        state.log(describe_move(move))
        events.append(ev.move_required(me, move.to_dict()))
        return ActionResult.success_with_state(state, events)

    def _handle_do_action(self, state: RoomState, action: Action, events: list) -> ActionResult:
        move = state.required_move
        if move.move_type == MoveType.DEPOSIT:
            return self._deposit(state, events)
        if move.move_type == MoveType.WITHDRAW:
            return self._withdraw(state, events)
        return self._collect(state, events, include_center=move.move_type == MoveType.COLLECT_ALL)

    def _deposit(self, state: RoomState, events: list) -> ActionResult:
        me = state.current_turn
        move = state.required_move
        where = "the center" if move.to_center else f"slot {move.target}"

        if not move.to_center and state.border_slots[move.target]:
            return ActionResult.failure(f"Slot {move.target} is already occupied", ErrorCode.STALE_MOVE)

        if state.coins[me] <= 0:
            self._eliminate(
                state, me, "no_coins_to_deposit",
                f"❌ {state.label(me)} had to deposit into {where} but has no coins: eliminated.",
                events,
            )
            self._end_turn(state, events)
            return ActionResult.success_with_state(state, events)

        state.coins[me] -= 1
        if move.to_center:
            state.center_pool += 1
        else:
            state.border_slots[move.target] = True
        state.log(f"{state.label(me)} deposits 1 coin into {where}.")
        events.append(ev.coins_moved(me, "player", str(move.target), 1))

        if state.coins[me] == 0 and state.grace[me] == GraceStatus.NORMAL:
            self._set_grace(state, me, GraceStatus.PENDING, events)
            state.log(f"⚠️ {state.label(me)} has 0 coins: last chance next turn.")

        self._end_turn(state, events)
        return ActionResult.success_with_state(state, events)

    def _withdraw(self, state: RoomState, events: list) -> ActionResult:
        me = state.current_turn
        slot = state.required_move.target
        if not state.border_slots[slot]:
            return ActionResult.failure(f"Slot {slot} is already empty", ErrorCode.STALE_MOVE)

        state.border_slots[slot] = False
        state.coins[me] += 1
        self._restore_grace(state, me, events)
        state.log(f"{state.label(me)} takes 1 coin from slot {slot}.")
        events.append(ev.coins_moved(me, str(slot), "player", 1))

        self._end_turn(state, events)
        return ActionResult.success_with_state(state, events)

    def _collect(self, state: RoomState, events: list, include_center: bool) -> ActionResult:
        me = state.current_turn
        won = 0
        for slot in state.occupied_borders:
            state.border_slots[slot] = False
            won += 1
        if include_center:
            won += state.center_pool
            state.center_pool = 0

        state.coins[me] += won
        self._restore_grace(state, me, events)
        if include_center:
            state.log(f"🏆 {state.label(me)} wins ALL the coins: {won}.")
        else:
            state.log(f"🏆 {state.label(me)} wins {won} coin(s) from the borders.")
        events.append(ev.coins_moved(me, "center+borders" if include_center else "borders", "player", won))

        self._end_turn(state, events)
        return ActionResult.success_with_state(state, events)

    # =========================================================================
    # Turn end
    # =========================================================================

    def _end_turn(self, state: RoomState, events: list) -> None:
        state.required_move = None
        me = state.current_turn

        if state.grace[me] == GraceStatus.ACTIVE:
            if state.coins[me] == 0:
                self._eliminate(
                    state, me, "grace_expired",
                    f"❌ {state.label(me)} ended the turn without coins: eliminated (last chance used up).",
                    events,
                )
            else:
                self._set_grace(state, me, GraceStatus.NORMAL, events)

        if self._check_end(state, events):
            return

        nxt = state.next_alive(me)
        state.current_turn = nxt
        events.append(ev.turn_advanced(me, nxt))

        if state.grace[nxt] == GraceStatus.PENDING:
            self._set_grace(state, nxt, GraceStatus.ACTIVE, events)
            state.log(f"⚠️ {state.label(nxt)}: last chance this turn.")

        state.last_roll = None

    def _check_end(self, state: RoomState, events: list) -> bool:
        """
        Termination check, run at every turn end before advancing.

        Ends the game when at most one seat survives, or when every
        surviving seat has used up its MAX_ROLLS rolls.
        """
        alive = state.alive_seats

        if len(alive) <= 1:
            winners = alive
            if winners:
                reason = "sole_survivor"
                state.log(f"🎉 Game over: {state.label(winners[0])} wins.")
            else:
                reason = "no_contest"
                state.log("Game over: no contest.")
        elif all(state.rolls_taken[i] >= MAX_ROLLS for i in alive):
            reason = "turns_exhausted"
            best = max(state.coins[i] for i in alive)
            winners = [i for i in alive if state.coins[i] == best]
            names = ", ".join(state.label(i) for i in winners)
            state.log(f"⏱️ Turns are over ({MAX_ROLLS} each). Winner(s): {names} (with {best} coins).")
        else:
            return False

        state.finished = True
        state.paused = True
        state.winners = list(winners)
        events.append(ev.game_over(list(winners), list(state.coins), reason))
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    def _eliminate(self, state: RoomState, seat: int, reason: str, line: str, events: list) -> None:
        state.eliminated[seat] = True
        state.grace[seat] = GraceStatus.NORMAL
        state.log(line)
        events.append(ev.player_eliminated(seat, reason))

    def _restore_grace(self, state: RoomState, seat: int, events: list) -> None:
        """A player back above zero coins is no longer on a last chance."""
        if state.coins[seat] > 0 and state.grace[seat] != GraceStatus.NORMAL:
            self._set_grace(state, seat, GraceStatus.NORMAL, events)

    def _set_grace(self, state: RoomState, seat: int, status: GraceStatus, events: list) -> None:
        old = state.grace[seat]
        state.grace[seat] = status
        events.append(ev.grace_changed(seat, old.value, status.value))


def apply_action(state: RoomState, action: Action, roller: DiceRoller | None = None) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(roller=roller or DiceRoller())
    return reducer.apply(state, action)
