"""D&D Companion - campaigns, characters and character sheets.

Dungeon Masters create campaigns and share the campaign id as a join code;
players link their characters to campaigns. The link is kept on both
documents and every change goes through the RelationshipManager.

Example:
    >>> from dnd_companion import AuthUser, RelationshipManager, SessionState
    >>> from dnd_companion.storage import create_document_store
    >>>
    >>> session = SessionState()
    >>> session.sign_in(AuthUser(uid="dm-1", display_name="Mira"))
    >>> manager = RelationshipManager(create_document_store())
    >>> code = await manager.create_campaign({"campaignName": "Lost Mines"}, session.current_user)

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 documents and role-filtered views.
    access: Role and capability derivation.
    auth: Session state for the signed-in user.
    storage: Document store backends and portrait storage.
    linking: Campaign/character relationship manager.
    export: Fillable PDF character sheet export.
    engine: Dice rolling.
"""

from __future__ import annotations

# Core
from dnd_companion.core.config import Settings, get_settings
from dnd_companion.core.exceptions import DndCompanionError
from dnd_companion.core.logging import configure_logging, get_logger

# Models
from dnd_companion.models import (
    Campaign,
    CampaignView,
    Capability,
    Character,
    CharacterView,
    PlayerLink,
    Role,
)

# Services
from dnd_companion.auth.session import AuthUser, SessionState
from dnd_companion.export.exporter import CharacterSheetExporter, ExportedSheet
from dnd_companion.linking.manager import RelationshipManager
from dnd_companion.linking.results import LinkResult, LinkStatus, UnlinkResult


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "DndCompanionError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "Character",
    "Campaign",
    "PlayerLink",
    "Role",
    "Capability",
    "CharacterView",
    "CampaignView",
    # Services
    "AuthUser",
    "SessionState",
    "RelationshipManager",
    "LinkResult",
    "LinkStatus",
    "UnlinkResult",
    "CharacterSheetExporter",
    "ExportedSheet",
]
