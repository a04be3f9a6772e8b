"""Result types returned by the relationship manager."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class LinkStatus(StrEnum):
    """Outcome of a link request."""

    LINKED = "linked"
    ALREADY_LINKED = "already_linked"


@dataclass(frozen=True)
class LinkResult:
    """Outcome of linking a character to a campaign.

    Attributes:
        status: LINKED, or ALREADY_LINKED when nothing was written.
        character_id: Linked character.
        campaign_id: Target campaign (the share code).
        campaign_name: Campaign name for confirmation messages.
        message: User-facing summary.
    """

    status: LinkStatus
    character_id: str
    campaign_id: str
    campaign_name: str
    message: str

    @property
    def created(self) -> bool:
        """True when this call created the link."""
        return self.status == LinkStatus.LINKED


@dataclass(frozen=True)
class UnlinkResult:
    """Outcome of removing a character from a campaign.

    Attributes:
        changed: False when neither side referenced the other.
        lost_campaign_access: True when the acting user was a player and no
            longer has any character in the campaign. The caller should
            navigate away from the campaign view.
    """

    character_id: str
    campaign_id: str
    changed: bool = True
    lost_campaign_access: bool = False


@dataclass
class CascadeDeleteReport:
    """What a character deletion did to the documents around it.

    Attributes:
        cleaned: Campaigns whose player entry was removed.
        skipped: Campaigns that were missing or held no entry to remove.
        failed: Campaign id mapped to the last error, after retries.
        asset_deleted: None when the character had no portrait.
        asset_error: Error message when the portrait could not be deleted.
    """

    character_id: str
    cleaned: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    asset_deleted: bool | None = None
    asset_error: str | None = None

    @property
    def complete(self) -> bool:
        """True when every linked campaign was cleaned or skipped."""
        return not self.failed


@dataclass(frozen=True)
class CharacterCreation:
    """Outcome of creating a character with initial campaign links.

    Attributes:
        character_id: Id of the stored character.
        links: Successful (or already present) links per campaign id.
        failed_links: Campaign id mapped to the error that prevented linking.
    """

    character_id: str
    links: dict[str, LinkResult] = field(default_factory=dict)
    failed_links: dict[str, str] = field(default_factory=dict)


__all__ = [
    "CascadeDeleteReport",
    "CharacterCreation",
    "LinkResult",
    "LinkStatus",
    "UnlinkResult",
]
