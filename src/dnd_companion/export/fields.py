"""Mapping of character attributes to PDF form field names.

Fillable character sheets name their fields inconsistently ("DEXmod",
"Dexterity Mod", "Race " with a trailing space, ...). Each logical attribute
therefore carries an ordered tuple of candidate field names; the first one
present in the template with the expected kind receives the value. An
attribute with no matching field is left out of the export.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from dnd_companion.core.logging import get_logger
from dnd_companion.export.derived import ability_modifier, format_modifier, skill_modifier
from dnd_companion.models.character import Character
from dnd_companion.models.enums import Ability, Skill


logger = get_logger(__name__)

FieldValue = str | bool


class FieldKind(StrEnum):
    """Kind of PDF form field."""

    TEXT = "text"
    CHECKBOX = "checkbox"


@dataclass(frozen=True)
class FieldMapping:
    """One logical attribute and where it may live in a template.

    Attributes:
        attribute: Logical attribute name, used in logs.
        kind: Field kind the value needs.
        candidates: Field names to try, most likely first.
        value: Computes the field value from a character.
    """

    attribute: str
    kind: FieldKind
    candidates: tuple[str, ...]
    value: Callable[[Character], FieldValue]

    def resolve(self, schema: Mapping[str, FieldKind]) -> str | None:
        """Return the first candidate present in the schema with this kind."""
        for name in self.candidates:
            if schema.get(name) == self.kind:
                return name
        return None


@dataclass(frozen=True)
class MappingResult:
    """Field values resolved against one template.

    Attributes:
        values: Template field name mapped to the value to write.
        unmatched: Attributes for which no candidate field existed.
    """

    values: dict[str, FieldValue] = field(default_factory=dict)
    unmatched: tuple[str, ...] = ()


def _unique(*names: str) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


def _text(attribute: str, candidates: Iterable[str], value: Callable[[Character], object]) -> FieldMapping:
    return FieldMapping(
        attribute=attribute,
        kind=FieldKind.TEXT,
        candidates=_unique(*candidates),
        value=lambda character: str(value(character)),
    )


def _checkbox(attribute: str, candidates: Iterable[str], value: Callable[[Character], bool]) -> FieldMapping:
    return FieldMapping(
        attribute=attribute,
        kind=FieldKind.CHECKBOX,
        candidates=_unique(*candidates),
        value=value,
    )


# =============================================================================
# Candidate names
# =============================================================================

# Field names confirmed on the bundled sheet, tried before generic variants.
PREFERRED_MODIFIER_FIELDS: dict[Ability, tuple[str, ...]] = {
    Ability.DEX: (
        "DEXmod",
        "DEXMod",
        "DEXmod ",
        "Dexterity Mod",
        "DexterityMod",
        "Dexterity Modifier",
        "DexterityModifier",
        "DEX Mod",
        "DEX Modifier",
        "DEXModifier",
        "dex mod",
        "dexmod",
        "dex modifier",
        "dexmodifier",
        "dexterity mod",
        "dexteritymod",
        "dexterity modifier",
        "dexteritymodifier",
        "Dexterity Mod ",
        "dexterity mod ",
    ),
    Ability.CHA: ("CHamod",),
}

EXTRA_SKILL_BASES: dict[Skill, tuple[str, ...]] = {
    Skill.ANIMAL_HANDLING: ("Animal",),
}


def ability_score_candidates(ability: Ability) -> tuple[str, ...]:
    name = ability.full_name
    lower = name.lower()
    return _unique(
        f"{name}Score",
        name,
        f"{lower}score",
        lower,
        ability.value,
        ability.value.lower(),
        f"{name} ",
        f"{name}Score ",
    )


def ability_modifier_candidates(ability: Ability) -> tuple[str, ...]:
    name = ability.full_name
    lower = name.lower()
    abbr = ability.value
    return _unique(
        *PREFERRED_MODIFIER_FIELDS.get(ability, ()),
        f"{name}Mod",
        f"{name}Modifier",
        f"{name} Mod",
        f"{name} Modifier",
        f"{name}Mod ",
        f"{name} Mod ",
        f"{name}Modifier ",
        f"{name} Modifier ",
        f"{lower}mod",
        f"{lower}modifier",
        f"{lower} mod",
        f"{lower} modifier",
        f"{lower}mod ",
        f"{lower} modifier ",
        f"{abbr}Mod",
        f"{abbr}mod",
        f"{abbr} Mod",
        f"{abbr} mod",
        f"{abbr}Mod ",
        f"{abbr} Mod ",
    )


def saving_throw_candidates(ability: Ability) -> tuple[str, ...]:
    name = ability.full_name
    return _unique(
        f"{name}ST",
        f"{name}Save",
        f"{name.lower()}save",
        f"{ability.value}ST",
        f"{ability.value}Save",
    )


def skill_bases(skill: Skill) -> tuple[str, ...]:
    """Spellings of a skill name ('SleightofHand', 'sleight of hand', ...)."""
    name = skill.value
    compact = name.replace(" ", "")
    return _unique(
        compact,
        compact.lower(),
        name,
        f"{name} ",
        name.lower(),
        f"{name.lower()} ",
        f"{compact} ",
        *EXTRA_SKILL_BASES.get(skill, ()),
    )


def skill_modifier_candidates(skill: Skill) -> tuple[str, ...]:
    bases = skill_bases(skill)
    suffixes = ("", "Mod", " Mod", "Modifier", " Modifier", "Mod ", " Mod ")
    return _unique(*(f"{base}{suffix}" for suffix in suffixes for base in bases))


def skill_proficiency_candidates(skill: Skill) -> tuple[str, ...]:
    bases = [base for base in skill_bases(skill) if base == base.strip()]
    suffixes = ("Prof", "Check", " Prof", " Check")
    return _unique(*(f"{base}{suffix}" for suffix in suffixes for base in bases))


# =============================================================================
# Field table
# =============================================================================


def _class_and_level(character: Character) -> str:
    return f"{character.character_class} {character.level}"


def build_field_table() -> tuple[FieldMapping, ...]:
    """Build the attribute → candidate field table for the 5E sheet."""
    table: list[FieldMapping] = [
        # Basic information
        _text("character_name", ("CharacterName", "charname", "name", "Character Name"), lambda c: c.character_name),
        _text("class", ("Class", "class"), lambda c: c.character_class),
        _text("class_and_level", ("ClassLevel", "Class & Level", "classlevel"), _class_and_level),
        _text("level", ("Level", "level", "charlevel"), lambda c: c.level),
        _text("background", ("Background", "background"), lambda c: c.background),
        _text("player_name", ("PlayerName", "playername", "player", "Player Name"), lambda c: c.player_name),
        _text("race", ("Race", "race", "Race ", "race "), lambda c: c.race),
        _text("alignment", ("Alignment", "alignment"), lambda c: c.alignment),
        _text("experience_points", ("ExperiencePoints", "experience", "xp"), lambda c: c.experience_points),
    ]

    for ability in Ability:
        table.append(
            _text(
                f"{ability.score_field}_score",
                ability_score_candidates(ability),
                lambda c, a=ability: c.ability_score(a),
            )
        )
        table.append(
            _text(
                f"{ability.score_field}_modifier",
                ability_modifier_candidates(ability),
                lambda c, a=ability: format_modifier(ability_modifier(c, a)),
            )
        )
        table.append(
            _checkbox(
                f"{ability.score_field}_save_proficiency",
                saving_throw_candidates(ability),
                lambda c, a=ability: c.has_save_proficiency(a),
            )
        )

    for skill in Skill:
        key = skill.name.lower()
        table.append(
            _text(
                f"{key}_modifier",
                skill_modifier_candidates(skill),
                lambda c, s=skill: format_modifier(skill_modifier(c, s)),
            )
        )
        table.append(
            _checkbox(
                f"{key}_proficiency",
                skill_proficiency_candidates(skill),
                lambda c, s=skill: c.is_proficient_in(s),
            )
        )

    table.extend([
        # Combat
        _text("armor_class", ("ArmorClass", "AC", "armorclass", "ac"), lambda c: c.armor_class),
        _text("initiative", ("Initiative", "initiative", "init"), lambda c: format_modifier(c.initiative)),
        _text("speed", ("Speed", "speed"), lambda c: c.speed),
        _text(
            "max_hit_points",
            (
                "HitPointMaximum", "Hit Point Maximum", "Hit Point Maximum ", "HitPoint Maximum",
                "HP Maximum", "HP", "MaxHP", "Max HP", "hp", "maxhp", "HP Max",
            ),
            lambda c: c.max_hit_points,
        ),
        _text(
            "current_hit_points",
            (
                "CurrentHitPoints", "Current Hit Points", "Current Hit Points ", "CurrentHit Points",
                "CurrentHP", "Current HP", "currenthp", "HP Current",
            ),
            lambda c: c.current_hit_points,
        ),
        _text("temporary_hit_points", ("TemporaryHitPoints", "TempHP", "temphp"), lambda c: c.temporary_hit_points),
        _text("hit_dice", ("HitDice", "hitdice", "HD"), lambda c: c.hit_dice),
        _text(
            "proficiency_bonus",
            ("ProficiencyBonus", "proficiency", "prof"),
            lambda c: format_modifier(c.proficiency_bonus),
        ),
        # Personality and background
        _text("personality_traits", ("PersonalityTraits", "personality", "traits"), lambda c: c.personality_traits),
        _text("ideals", ("Ideals", "ideals"), lambda c: c.ideals),
        _text("bonds", ("Bonds", "bonds"), lambda c: c.bonds),
        _text("flaws", ("Flaws", "flaws"), lambda c: c.flaws),
        _text(
            "character_appearance",
            ("CharacterAppearance", "Appearance", "appearance"),
            lambda c: c.character_appearance,
        ),
        _text(
            "allies_and_organizations",
            ("Allies", "allies", "AlliesAndOrganizations"),
            lambda c: c.allies_and_organizations,
        ),
        # Features, equipment and spells
        _text(
            "additional_features_and_traits",
            ("Features", "features", "FeaturesAndTraits", "AdditionalFeatures"),
            lambda c: c.additional_features_and_traits,
        ),
        _text("equipment", ("Equipment", "equipment", "EquipmentAndInventory"), lambda c: c.equipment),
        _text("spells", ("Spells", "spells", "SpellList", "Spellcasting"), lambda c: c.spells),
    ])
    return tuple(table)


FIELD_TABLE: tuple[FieldMapping, ...] = build_field_table()


def map_character(
    character: Character,
    schema: Mapping[str, FieldKind],
    table: Iterable[FieldMapping] = FIELD_TABLE,
) -> MappingResult:
    """Resolve every attribute of a character against a template schema.

    Args:
        character: Character to export.
        schema: Template field name → kind, as returned by introspect_template.
        table: Field table to use.

    Returns:
        MappingResult with the values to write and the unmatched attributes.
    """
    values: dict[str, FieldValue] = {}
    unmatched: list[str] = []
    for mapping in table:
        name = mapping.resolve(schema)
        if name is None:
            logger.debug(
                "No template field for attribute",
                attribute=mapping.attribute,
                tried=list(mapping.candidates[:3]),
            )
            unmatched.append(mapping.attribute)
            continue
        values[name] = mapping.value(character)
    return MappingResult(values=values, unmatched=tuple(unmatched))


__all__ = [
    "EXTRA_SKILL_BASES",
    "FIELD_TABLE",
    "FieldKind",
    "FieldMapping",
    "FieldValue",
    "MappingResult",
    "PREFERRED_MODIFIER_FIELDS",
    "ability_modifier_candidates",
    "ability_score_candidates",
    "build_field_table",
    "map_character",
    "saving_throw_candidates",
    "skill_bases",
    "skill_modifier_candidates",
    "skill_proficiency_candidates",
]
