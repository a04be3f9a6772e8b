"""Dice rolling for character creation.

Wraps the d20 library to roll ability scores (4d6, drop the lowest) and to
validate the hit dice notation stored on characters.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any

import d20

from dnd_companion.core.constants import ABILITY_SCORE_ROLL
from dnd_companion.core.exceptions import DiceRollError
from dnd_companion.core.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class DiceExpression:
    """A rolled dice expression.

    Attributes:
        expression: The original dice expression string.
        total: The total result of the roll.
        dice: Kept individual dice results.
    """

    expression: str
    total: int
    dice: list[int]


class DiceRoller:
    """Dice rolling backed by the d20 library.

    Example:
        >>> roller = DiceRoller(seed=7)
        >>> roller.roll_ability_scores()
        [16, 15, 13, 12, 10, 8]
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)

    def roll(self, expression: str) -> DiceExpression:
        """Roll dice according to the given expression.

        Args:
            expression: Dice expression (e.g., '4d6kh3', '2d6+3').

        Returns:
            DiceExpression containing roll results.

        Raises:
            DiceRollError: If the expression is invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        try:
            result = d20.roll(expression)
        except d20.RollError as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=expression,
            ) from exc

        return DiceExpression(
            expression=expression,
            total=result.total,
            dice=self._extract_dice_values(result.expr),
        )

    def _extract_dice_values(self, expr: Any) -> list[int]:
        """Extract the kept dice values from a d20 expression tree."""
        values: list[int] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                for die in node.values:
                    if die.kept:
                        values.append(die.number)
            elif hasattr(node, "children"):
                for child in node.children:
                    traverse(child)

        traverse(expr)
        return values

    def roll_ability_scores(self, count: int = 6) -> list[int]:
        """Roll a full set of ability scores, highest first.

        Args:
            count: Number of scores to roll.

        Returns:
            Scores sorted in descending order, ready to be assigned.
        """
        scores = sorted(
            (self.roll(ABILITY_SCORE_ROLL).total for _ in range(count)),
            reverse=True,
        )
        logger.debug("Ability scores rolled", scores=scores)
        return scores


def is_valid_dice_notation(expression: str) -> bool:
    """Check that ``expression`` parses as dice notation (e.g. '1d8', '3d10+2')."""
    if "d" not in expression.lower():
        return False
    try:
        d20.parse(expression)
    except d20.RollError:
        return False
    return True


def roll_ability_scores(*, seed: int | None = None) -> list[int]:
    """Convenience wrapper around DiceRoller.roll_ability_scores."""
    return DiceRoller(seed=seed).roll_ability_scores()


__all__ = [
    "DiceExpression",
    "DiceRoller",
    "is_valid_dice_notation",
    "roll_ability_scores",
]
