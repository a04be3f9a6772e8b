"""Derived D&D 5E values printed on the character sheet."""

from __future__ import annotations

from dnd_companion.models.character import Character
from dnd_companion.models.enums import Ability, Skill


def calculate_modifier(score: int) -> int:
    """Ability modifier, floor((score - 10) / 2).

    Example:
        >>> calculate_modifier(8)
        -1
    """
    return (score - 10) // 2


def format_modifier(modifier: int) -> str:
    """Render a modifier with an explicit sign ('+0', '+3', '-1')."""
    return f"+{modifier}" if modifier >= 0 else str(modifier)


def calculate_skill_modifier(ability_score: int, proficient: bool, proficiency_bonus: int) -> int:
    """Skill modifier: ability modifier plus the proficiency bonus when proficient."""
    return calculate_modifier(ability_score) + (proficiency_bonus if proficient else 0)


def ability_modifier(character: Character, ability: Ability) -> int:
    return calculate_modifier(character.ability_score(ability))


def skill_modifier(character: Character, skill: Skill) -> int:
    return calculate_skill_modifier(
        character.ability_score(skill.ability),
        character.is_proficient_in(skill),
        character.proficiency_bonus,
    )


__all__ = [
    "ability_modifier",
    "calculate_modifier",
    "calculate_skill_modifier",
    "format_modifier",
    "skill_modifier",
]
