"""
Pytest fixtures for Folletto tests.
"""

import pytest

from ..engine_core.state import RoomState, DiceRoll, TurnPhase
from ..engine_core.action import Action
from ..engine_core.reducer import Reducer
from ..session import RoomManager


class ScriptedRoller:
    """Dice source that returns a fixed sequence of rolls."""

    def __init__(self, rolls=()):
        self.rolls = list(rolls)

    def push(self, *rolls):
        self.rolls.extend(rolls)

    def roll(self) -> DiceRoll:
        a, b = self.rolls.pop(0)
        return DiceRoll(a=a, b=b)


@pytest.fixture
def roller() -> ScriptedRoller:
    return ScriptedRoller()


@pytest.fixture
def reducer(roller: ScriptedRoller) -> Reducer:
    return Reducer(roller=roller)


@pytest.fixture
def three_player_state() -> RoomState:
    """Fresh 3-seat room, all seats vacant."""
    return RoomState.create("TEST01", 3, host_connection_id="host")


@pytest.fixture
def play_turn(reducer: Reducer, roller: ScriptedRoller):
    """
    Play one full turn with the given dice, confirming the right sum.

    Returns the final state and every result along the way.
    """
    def _play(state: RoomState, dice: tuple[int, int]):
        roller.push(dice)
        results = [reducer.apply(state, Action.roll())]
        state = results[-1].new_state
        results.append(reducer.apply(state, Action.confirm_sum(state.last_roll.total)))
        state = results[-1].new_state
        if state.turn_phase == TurnPhase.AWAITING_ACTION:
            results.append(reducer.apply(state, Action.do_action()))
            state = results[-1].new_state
        assert all(r.success for r in results), [r.error for r in results]
        return state, results

    return _play


@pytest.fixture
def manager(reducer: Reducer) -> RoomManager:
    codes = iter(f"ROOM{i:02d}" for i in range(100))
    return RoomManager(reducer=reducer, code_factory=lambda: next(codes))
