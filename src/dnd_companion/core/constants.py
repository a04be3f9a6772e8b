"""Application-wide constants for the D&D Companion."""

from __future__ import annotations

# =============================================================================
# Store Collections
# =============================================================================

CHARACTERS_COLLECTION = "characters"
"""Collection holding character documents."""

CAMPAIGNS_COLLECTION = "campaigns"
"""Collection holding campaign documents."""

# =============================================================================
# D&D 5E Rules Constants
# =============================================================================

MIN_ABILITY_SCORE = 1
"""Minimum ability score."""

MAX_ABILITY_SCORE = 30
"""Maximum ability score (RAW D&D 5E)."""

DEFAULT_ABILITY_SCORE = 10
"""Ability score used when a character omits one."""

MIN_CHARACTER_LEVEL = 1
"""Minimum character level."""

MAX_CHARACTER_LEVEL = 20
"""Maximum character level in D&D 5E."""

DEFAULT_PROFICIENCY_BONUS = 2
"""Default proficiency bonus for level 1 characters."""

DEFAULT_SPEED = 30
"""Default walking speed in feet."""

DEFAULT_HIT_DICE = "1d8"
"""Hit dice notation used when a character omits one."""

ABILITY_SCORE_ROLL = "4d6kh3"
"""Dice expression for one rolled ability score (4d6, drop lowest)."""

# =============================================================================
# Display Fallbacks
# =============================================================================

UNNAMED_CHARACTER = "Unnamed Character"
"""Snapshot name for characters without a name."""

UNNAMED_CAMPAIGN = "Unnamed Campaign"
"""Display name for campaigns without a name."""

CAMPAIGN_NOT_FOUND = "Campaign Not Found"
"""Display name for linked campaign ids that cannot be resolved."""

UNKNOWN_PLAYER = "Unknown Player"
"""Last entry of the player name fallback chain."""


__all__ = [
    "CHARACTERS_COLLECTION",
    "CAMPAIGNS_COLLECTION",
    "MIN_ABILITY_SCORE",
    "MAX_ABILITY_SCORE",
    "DEFAULT_ABILITY_SCORE",
    "MIN_CHARACTER_LEVEL",
    "MAX_CHARACTER_LEVEL",
    "DEFAULT_PROFICIENCY_BONUS",
    "DEFAULT_SPEED",
    "DEFAULT_HIT_DICE",
    "ABILITY_SCORE_ROLL",
    "UNNAMED_CHARACTER",
    "UNNAMED_CAMPAIGN",
    "CAMPAIGN_NOT_FOUND",
    "UNKNOWN_PLAYER",
]
