"""Access policy: derived roles and capability sets."""

from dnd_companion.access.policy import (
    CAMPAIGN_CAPABILITIES,
    CHARACTER_CAPABILITIES,
    Access,
    campaign_access,
    campaign_role,
    campaign_view_for,
    can_unlink,
    character_access,
    character_role,
    require_campaign_access,
    require_character_access,
)

__all__ = [
    "Access",
    "CHARACTER_CAPABILITIES",
    "CAMPAIGN_CAPABILITIES",
    "character_role",
    "character_access",
    "require_character_access",
    "campaign_role",
    "campaign_access",
    "require_campaign_access",
    "can_unlink",
    "campaign_view_for",
]
