"""Rules engine helpers for the D&D Companion.

Submodules:
    dice: Dice rolling for ability scores and hit dice validation (d20 library)

Example:
    >>> from dnd_companion.engine import roll_ability_scores
    >>> scores = roll_ability_scores(seed=42)
    >>> len(scores)
    6
"""

from __future__ import annotations

from dnd_companion.engine.dice import (
    DiceExpression,
    DiceRoller,
    is_valid_dice_notation,
    roll_ability_scores,
)


__all__ = [
    "DiceExpression",
    "DiceRoller",
    "is_valid_dice_notation",
    "roll_ability_scores",
]
