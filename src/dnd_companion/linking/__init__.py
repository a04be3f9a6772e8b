"""Campaign/character relationship maintenance.

Submodules:
    manager: RelationshipManager (link, unlink, cascade delete, CRUD, views)
    results: Result and report types
"""

from dnd_companion.linking.manager import PROTECTED_CAMPAIGN_FIELDS, RelationshipManager
from dnd_companion.linking.results import (
    CascadeDeleteReport,
    CharacterCreation,
    LinkResult,
    LinkStatus,
    UnlinkResult,
)

__all__ = [
    "RelationshipManager",
    "PROTECTED_CAMPAIGN_FIELDS",
    "LinkStatus",
    "LinkResult",
    "UnlinkResult",
    "CascadeDeleteReport",
    "CharacterCreation",
]
