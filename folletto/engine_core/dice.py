"""
Dice Resolver - Server-side two-die rolls.

Randomness is injected so that tests and simulations can be
made deterministic with a seed or a scripted roller.
"""

from __future__ import annotations
import random

from .state import DiceRoll


DIE_FACES = 6


def roll_dice(rng: random.Random | None = None) -> DiceRoll:
    """Roll two independent six-sided dice."""
    source = rng or random
    return DiceRoll(a=source.randint(1, DIE_FACES), b=source.randint(1, DIE_FACES))


class DiceRoller:
    """
    Randomness source used by the turn engine.

    Usage:
        roller = DiceRoller(seed=42)
        dice = roller.roll()
    """

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self.rng = rng or random.Random(seed)

    def roll(self) -> DiceRoll:
        return roll_dice(self.rng)
