"""
Tests for dice and move derivation.

Tests:
- Dice faces and totals
- Rule table for every total
- Deposit/withdraw alternation on border slots
"""

import random

import pytest

from ..engine_core.state import BORDER_NUMBERS, CENTER, MoveType, RequiredMove, DiceRoll
from ..engine_core.dice import DiceRoller, roll_dice
from ..engine_core.rules import derive_required_move, describe_move


def empty_borders():
    return {n: False for n in BORDER_NUMBERS}


class TestDice:
    """Tests for the dice resolver."""

    def test_faces_in_range(self):
        rng = random.Random(7)
        for _ in range(500):
            dice = roll_dice(rng)
            assert 1 <= dice.a <= 6
            assert 1 <= dice.b <= 6
            assert dice.total == dice.a + dice.b

    def test_every_face_shows_up(self):
        rng = random.Random(3)
        faces = set()
        for _ in range(500):
            dice = roll_dice(rng)
            faces.update((dice.a, dice.b))
        assert faces == {1, 2, 3, 4, 5, 6}

    def test_seeded_roller_is_repeatable(self):
        a, b = DiceRoller(seed=42), DiceRoller(seed=42)
        assert [a.roll() for _ in range(20)] == [b.roll() for _ in range(20)]

    def test_roll_to_dict(self):
        assert DiceRoll(2, 5).to_dict() == {"a": 2, "b": 5, "total": 7}


class TestRequiredMove:
    """Tests for the rule table."""

    @pytest.mark.parametrize("total", BORDER_NUMBERS)
    def test_empty_slot_means_deposit(self, total):
        move = derive_required_move(total, empty_borders())
        assert move == RequiredMove(MoveType.DEPOSIT, total)

    @pytest.mark.parametrize("total", BORDER_NUMBERS)
    def test_occupied_slot_means_withdraw(self, total):
        borders = empty_borders()
        borders[total] = True
        move = derive_required_move(total, borders)
        assert move == RequiredMove(MoveType.WITHDRAW, total)

    def test_seven_deposits_to_center(self):
        move = derive_required_move(7, empty_borders())
        assert move.is_deposit
        assert move.to_center
        assert move.target == CENTER

    def test_seven_ignores_borders(self):
        borders = {n: True for n in BORDER_NUMBERS}
        assert derive_required_move(7, borders).target == CENTER

    def test_two_collects_borders(self):
        assert derive_required_move(2, empty_borders()).move_type == MoveType.COLLECT_BORDERS

    def test_twelve_collects_all(self):
        assert derive_required_move(12, empty_borders()).move_type == MoveType.COLLECT_ALL

    @pytest.mark.parametrize("total", [-1, 0, 1, 13, 99])
    def test_unmatched_total_has_no_move(self, total):
        assert derive_required_move(total, empty_borders()) is None

    @pytest.mark.parametrize("total", BORDER_NUMBERS)
    def test_alternates_as_slot_toggles(self, total):
        """Repeated visits to a slot alternate deposit and withdraw."""
        borders = empty_borders()
        seen = []
        for _ in range(4):
            move = derive_required_move(total, borders)
            seen.append(move.move_type)
            borders[total] = move.move_type == MoveType.DEPOSIT
        assert seen == [MoveType.DEPOSIT, MoveType.WITHDRAW] * 2

    def test_derivation_does_not_touch_borders(self):
        borders = empty_borders()
        derive_required_move(5, borders)
        assert borders == empty_borders()


class TestDescribeMove:

    def test_lines_by_move_type(self):
        assert describe_move(RequiredMove(MoveType.DEPOSIT, CENTER)) == "Move: deposit 1 into the CENTER."
        assert describe_move(RequiredMove(MoveType.DEPOSIT, 9)) == "Move: deposit 1 into slot 9."
        assert describe_move(RequiredMove(MoveType.WITHDRAW, 4)) == "Move: take 1 from slot 4."
        assert describe_move(RequiredMove(MoveType.COLLECT_BORDERS)) == (
            "Move: collect ALL border coins (press Action)."
        )
        assert describe_move(RequiredMove(MoveType.COLLECT_ALL)) == (
            "Move: collect EVERYTHING, borders and center (press Action)."
        )
