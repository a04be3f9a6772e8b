"""Relationship manager for characters and campaigns.

A character and a campaign are linked when the character's ``campaignIds``
holds the campaign id AND the campaign's ``players`` holds a PlayerLink for
(character id, character owner). Every mutation writes both sides. The store
has no cross-document transactions, so the two writes run concurrently and a
one-sided failure is reported as a partial failure rather than hidden.

Example:
    >>> manager = RelationshipManager(store)
    >>> result = await manager.link(character_id, "campaign-code", session.current_user)
    >>> result.status
    <LinkStatus.LINKED: 'linked'>
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Generator, Iterable, Mapping
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, TypeVar

import pydantic
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from dnd_companion.access.policy import (
    campaign_view_for,
    can_unlink,
    require_character_access,
)
from dnd_companion.auth.session import AuthUser
from dnd_companion.core.config import LinkingSettings, get_settings
from dnd_companion.core.constants import (
    CAMPAIGN_NOT_FOUND,
    CAMPAIGNS_COLLECTION,
    CHARACTERS_COLLECTION,
    UNKNOWN_PLAYER,
    UNNAMED_CAMPAIGN,
    UNNAMED_CHARACTER,
)
from dnd_companion.core.exceptions import (
    AssetStorageError,
    DocumentStoreError,
    LinkPartiallyFailedError,
    MalformedDocumentError,
    NotFoundError,
    OperationInProgressError,
    PartialWriteError,
    PermissionDeniedError,
    UnlinkPartiallyFailedError,
    ValidationError,
)
from dnd_companion.core.logging import get_logger, operation_context
from dnd_companion.linking.results import (
    CascadeDeleteReport,
    CharacterCreation,
    LinkResult,
    LinkStatus,
    UnlinkResult,
)
from dnd_companion.models.campaign import Campaign, PlayerLink
from dnd_companion.models.character import RELATIONSHIP_FIELDS, Character
from dnd_companion.models.enums import LinkState
from dnd_companion.models.views import CampaignView, CharacterView, LinkedCampaignSummary
from dnd_companion.storage.assets import AssetStore, asset_path_from_url
from dnd_companion.storage.base import ArrayRemove, ArrayUnion, DocumentStore, Filter


logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)
DocumentT = TypeVar("DocumentT", Character, Campaign)

PROTECTED_CAMPAIGN_FIELDS = frozenset({"id", "user_id", "players", "created_at", "updated_at"})


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_user(user: AuthUser | None) -> AuthUser:
    if user is None:
        raise PermissionDeniedError("You must be signed in to do that")
    return user


def _parse(model: type[DocumentT], collection: str, document: dict[str, Any]) -> DocumentT:
    """Build a model from a stored document.

    Raises:
        MalformedDocumentError: If the document does not match the model.
    """
    try:
        return model.from_document(document)
    except pydantic.ValidationError as exc:
        raise MalformedDocumentError(
            f"Stored {model.__name__.lower()} is malformed: {exc.errors()[0].get('msg', 'invalid value')}",
            collection=collection,
            document_id=document.get("id"),
            details={"errors": exc.error_count()},
        ) from exc


def _parse_rows(model: type[DocumentT], collection: str, documents: Iterable[dict[str, Any]]) -> list[DocumentT]:
    """Parse query results, skipping malformed rows."""
    rows: list[DocumentT] = []
    for document in documents:
        try:
            rows.append(_parse(model, collection, document))
        except MalformedDocumentError as exc:
            logger.warning("Skipping malformed document", error=exc.message, **exc.details)
    return rows


def _validate(model: type[ModelT], payload: Mapping[str, Any]) -> ModelT:
    """Validate a payload, converting pydantic errors to ValidationError."""
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field_name = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Invalid {model.__name__.lower()} data: {first.get('msg', 'invalid value')}",
            field_name=field_name or None,
            details={"errors": exc.error_count()},
        ) from exc


def _normalize_changes(
    model: type[pydantic.BaseModel],
    changes: Mapping[str, Any],
    protected: frozenset[str],
) -> dict[str, Any]:
    """Map camelCase or snake_case keys to field names, dropping protected ones.

    Raises:
        ValidationError: On keys that are not model fields.
    """
    by_key: dict[str, str] = {}
    for name, info in model.model_fields.items():
        by_key[name] = name
        if info.alias:
            by_key[info.alias] = name

    normalized: dict[str, Any] = {}
    for key, value in changes.items():
        name = by_key.get(key)
        if name is None:
            raise ValidationError(f"Unknown field: {key}", field_name=key)
        if name in protected:
            logger.debug("Ignoring protected field in update", field=key)
            continue
        normalized[name] = value
    return normalized


class RelationshipManager:
    """Maintains the symmetric character/campaign relationship.

    Also owns the CRUD operations that touch relationship fields, so that
    ``campaignIds`` and ``players`` are never written anywhere else.

    Attributes:
        store: Document store holding both collections.
        assets: Portrait storage, used when deleting characters.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        assets: AssetStore | None = None,
        settings: LinkingSettings | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            store: Document store holding characters and campaigns.
            assets: Portrait storage. Portrait cleanup is skipped without one.
            settings: Retry settings; taken from application settings if omitted.
        """
        self.store = store
        self.assets = assets
        self.settings = settings or get_settings().linking
        self._states: dict[tuple[str, str], LinkState] = {}

    # =========================================================================
    # Loading helpers
    # =========================================================================

    async def _load_character(self, character_id: str) -> Character:
        document = await self.store.get(CHARACTERS_COLLECTION, character_id)
        if document is None:
            raise NotFoundError(
                "Character not found",
                collection=CHARACTERS_COLLECTION,
                document_id=character_id,
            )
        return _parse(Character, CHARACTERS_COLLECTION, document)

    async def _load_campaign(self, campaign_id: str) -> Campaign:
        document = await self.store.get(CAMPAIGNS_COLLECTION, campaign_id)
        if document is None:
            raise NotFoundError(
                "Campaign not found. Please check the campaign code.",
                collection=CAMPAIGNS_COLLECTION,
                document_id=campaign_id,
            )
        return _parse(Campaign, CAMPAIGNS_COLLECTION, document)

    async def _fetch_campaigns(self, campaign_ids: Iterable[str]) -> dict[str, Campaign | None]:
        """Fetch campaigns concurrently. Missing, failed or malformed ones map to None."""
        ids = list(dict.fromkeys(campaign_ids))
        results = await asyncio.gather(
            *(self.store.get(CAMPAIGNS_COLLECTION, cid) for cid in ids),
            return_exceptions=True,
        )
        campaigns: dict[str, Campaign | None] = {}
        for cid, result in zip(ids, results):
            if isinstance(result, BaseException):
                logger.warning("Campaign fetch failed", campaign_id=cid, error=str(result))
                campaigns[cid] = None
            elif result is None:
                campaigns[cid] = None
            else:
                try:
                    campaigns[cid] = _parse(Campaign, CAMPAIGNS_COLLECTION, result)
                except MalformedDocumentError as exc:
                    logger.warning("Campaign document malformed", campaign_id=cid, error=exc.message)
                    campaigns[cid] = None
        return campaigns

    # =========================================================================
    # Pair state
    # =========================================================================

    @contextmanager
    def _transition(self, character_id: str, campaign_id: str, state: LinkState) -> Generator[None, None, None]:
        pair = (character_id, campaign_id)
        current = self._states.get(pair)
        if current is not None:
            raise OperationInProgressError(
                f"Another change to this link is in progress ({current})",
                character_id=character_id,
                campaign_id=campaign_id,
            )
        self._states[pair] = state
        try:
            yield
        finally:
            self._states.pop(pair, None)

    async def link_state(self, character_id: str, campaign_id: str) -> LinkState:
        """Current state of a (character, campaign) pair.

        Transient states come from in-flight operations; otherwise the state
        is read from the character's ``campaignIds``.
        """
        transient = self._states.get((character_id, campaign_id))
        if transient is not None:
            return transient
        document = await self.store.get(CHARACTERS_COLLECTION, character_id)
        if document is None:
            return LinkState.UNLINKED
        if campaign_id in (document.get("campaignIds") or []):
            return LinkState.LINKED
        return LinkState.UNLINKED

    # =========================================================================
    # Symmetric writes
    # =========================================================================

    async def _write_pair(
        self,
        writes: dict[str, Awaitable[None]],
        *,
        error_cls: type[PartialWriteError],
        character_id: str,
        campaign_id: str,
        action: str,
    ) -> None:
        """Run the two sides of a relationship write concurrently.

        The writes are shielded so that cancelling the caller does not
        abandon a write that is already in flight.

        Raises:
            PartialWriteError: The error_cls subclass when exactly one side failed.
        """
        names = list(writes)
        results = await asyncio.shield(
            asyncio.gather(*writes.values(), return_exceptions=True)
        )
        failures = {
            name: result
            for name, result in zip(names, results)
            if isinstance(result, BaseException)
        }
        if not failures:
            return
        if len(failures) == len(names):
            logger.error(
                f"{action.capitalize()} failed on both documents",
                character_id=character_id,
                campaign_id=campaign_id,
            )
            raise failures.get(CAMPAIGNS_COLLECTION, next(iter(failures.values())))

        failed, error = next(iter(failures.items()))
        succeeded = next(name for name in names if name not in failures)
        logger.error(
            f"{action.capitalize()} partially failed",
            character_id=character_id,
            campaign_id=campaign_id,
            succeeded=succeeded,
            failed=failed,
            error=str(error),
        )
        raise error_cls(
            f"The {action} only partially completed: updating the {failed} document failed",
            character_id=character_id,
            campaign_id=campaign_id,
            succeeded=succeeded,
            failed=failed,
        ) from error

    # =========================================================================
    # Link / Unlink
    # =========================================================================

    async def link(
        self,
        character_id: str,
        campaign_id: str,
        user: AuthUser | None,
    ) -> LinkResult:
        """Add a character to a campaign.

        Args:
            character_id: Character owned by the acting user.
            campaign_id: Campaign share code.
            user: Acting user.

        Returns:
            LinkResult; status ALREADY_LINKED when the character already
            lists the campaign (nothing is written).

        Raises:
            ValidationError: If the campaign code is blank.
            NotFoundError: If the character or campaign does not exist.
            PermissionDeniedError: If the user does not own the character.
            OperationInProgressError: If the pair is already being changed.
            LinkPartiallyFailedError: If only one side was written.
        """
        actor = _require_user(user)
        campaign_id = campaign_id.strip()
        if not campaign_id:
            raise ValidationError("Please enter a campaign code", field_name="campaign_id")

        with operation_context(
            "link", user_id=actor.uid, character_id=character_id, campaign_id=campaign_id
        ), self._transition(character_id, campaign_id, LinkState.LINKING):
            character = await self._load_character(character_id)
            if character.user_id != actor.uid:
                raise PermissionDeniedError(
                    "You can only add your own characters to a campaign",
                    user_id=actor.uid,
                    resource=character_id,
                )
            campaign = await self._load_campaign(campaign_id)
            campaign_name = campaign.campaign_name or UNNAMED_CAMPAIGN

            if character.is_linked_to(campaign_id):
                return LinkResult(
                    status=LinkStatus.ALREADY_LINKED,
                    character_id=character_id,
                    campaign_id=campaign_id,
                    campaign_name=campaign_name,
                    message="This character is already in the campaign",
                )

            logger.info("Linking character", character_id=character_id, campaign_id=campaign_id)
            now = _timestamp()
            character_write = self.store.update(
                CHARACTERS_COLLECTION,
                character_id,
                {"campaignIds": ArrayUnion(campaign_id), "updatedAt": now},
            )

            if campaign.has_link(character_id, character.user_id):
                # Campaign side survived an earlier partial failure.
                await character_write
            else:
                entry = PlayerLink(
                    user_id=character.user_id,
                    character_id=character_id,
                    character_name=character.character_name or UNNAMED_CHARACTER,
                    player_name=(
                        character.player_name
                        or actor.display_name
                        or actor.email
                        or UNKNOWN_PLAYER
                    ),
                )
                await self._write_pair(
                    {
                        CAMPAIGNS_COLLECTION: self.store.update(
                            CAMPAIGNS_COLLECTION,
                            campaign_id,
                            {"players": ArrayUnion(entry.model_dump(by_alias=True)), "updatedAt": now},
                        ),
                        CHARACTERS_COLLECTION: character_write,
                    },
                    error_cls=LinkPartiallyFailedError,
                    character_id=character_id,
                    campaign_id=campaign_id,
                    action="link",
                )

            logger.info("Character linked", character_id=character_id, campaign_id=campaign_id)
            return LinkResult(
                status=LinkStatus.LINKED,
                character_id=character_id,
                campaign_id=campaign_id,
                campaign_name=campaign_name,
                message=f"Successfully joined {campaign_name}!",
            )

    async def unlink(
        self,
        character_id: str,
        campaign_id: str,
        user: AuthUser | None,
    ) -> UnlinkResult:
        """Remove a character from a campaign.

        The campaign owner may remove any player; a character owner may
        remove their own character. Both documents are re-read before the
        write. The method returns only after both writes committed.

        Raises:
            NotFoundError: If neither document exists.
            PermissionDeniedError: If the user may not remove this link.
            OperationInProgressError: If the pair is already being changed.
            UnlinkPartiallyFailedError: If only one side was written.
        """
        actor = _require_user(user)
        campaign_id = campaign_id.strip()
        if not campaign_id:
            raise ValidationError("Please enter a campaign code", field_name="campaign_id")

        with operation_context(
            "unlink", user_id=actor.uid, character_id=character_id, campaign_id=campaign_id
        ), self._transition(character_id, campaign_id, LinkState.UNLINKING):
            campaign_doc, character_doc = await asyncio.gather(
                self.store.get(CAMPAIGNS_COLLECTION, campaign_id),
                self.store.get(CHARACTERS_COLLECTION, character_id),
            )
            campaign = _parse(Campaign, CAMPAIGNS_COLLECTION, campaign_doc) if campaign_doc else None
            character = _parse(Character, CHARACTERS_COLLECTION, character_doc) if character_doc else None

            if campaign is None and character is None:
                raise NotFoundError(
                    "Neither the character nor the campaign exists",
                    collection=CAMPAIGNS_COLLECTION,
                    document_id=campaign_id,
                )
            if not can_unlink(actor.uid, character, campaign):
                raise PermissionDeniedError(
                    "You don't have permission to remove this character",
                    user_id=actor.uid,
                    resource=campaign_id,
                )

            writes: dict[str, Awaitable[None]] = {}
            remaining: list[PlayerLink] | None = None
            now = _timestamp()

            if campaign is not None:
                if character is not None:
                    remaining = campaign.players_without(character_id, character.user_id)
                else:
                    remaining = [p for p in campaign.players if p.character_id != character_id]
                if len(remaining) != len(campaign.players):
                    writes[CAMPAIGNS_COLLECTION] = self.store.update(
                        CAMPAIGNS_COLLECTION,
                        campaign_id,
                        {
                            "players": [p.model_dump(by_alias=True) for p in remaining],
                            "updatedAt": now,
                        },
                    )
            if character is not None and character.is_linked_to(campaign_id):
                writes[CHARACTERS_COLLECTION] = self.store.update(
                    CHARACTERS_COLLECTION,
                    character_id,
                    {"campaignIds": ArrayRemove(campaign_id), "updatedAt": now},
                )

            logger.info(
                "Unlinking character",
                character_id=character_id,
                campaign_id=campaign_id,
                sides=sorted(writes),
            )
            if len(writes) == 2:
                await self._write_pair(
                    writes,
                    error_cls=UnlinkPartiallyFailedError,
                    character_id=character_id,
                    campaign_id=campaign_id,
                    action="unlink",
                )
            elif writes:
                await next(iter(writes.values()))

            lost_access = (
                campaign is not None
                and remaining is not None
                and campaign.user_id != actor.uid
                and not any(p.user_id == actor.uid for p in remaining)
            )
            logger.info(
                "Character unlinked",
                character_id=character_id,
                campaign_id=campaign_id,
                lost_campaign_access=lost_access,
            )
            return UnlinkResult(
                character_id=character_id,
                campaign_id=campaign_id,
                changed=bool(writes),
                lost_campaign_access=lost_access,
            )

    # =========================================================================
    # Cascade delete
    # =========================================================================

    async def _strip_player_link(self, campaign_id: str, character: Character) -> bool:
        """Remove the character's PlayerLink from one campaign.

        Returns:
            True if a write happened, False if there was nothing to remove.
        """
        document = await self.store.get(CAMPAIGNS_COLLECTION, campaign_id)
        if document is None:
            return False
        campaign = _parse(Campaign, CAMPAIGNS_COLLECTION, document)
        # Match on character id alone: no row may outlive the character, whoever owns it.
        remaining = [p for p in campaign.players if p.character_id != character.id]
        if len(remaining) == len(campaign.players):
            return False
        try:
            await self.store.update(
                CAMPAIGNS_COLLECTION,
                campaign_id,
                {"players": [p.model_dump(by_alias=True) for p in remaining], "updatedAt": _timestamp()},
            )
        except NotFoundError:
            return False
        return True

    async def _cleanup_campaign(self, campaign_id: str, character: Character) -> bool:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.settings.cleanup_max_attempts),
            wait=wait_exponential(
                multiplier=self.settings.cleanup_backoff_seconds,
                max=self.settings.cleanup_backoff_max_seconds,
            ),
            retry=(
                retry_if_exception_type(DocumentStoreError)
                & retry_if_not_exception_type((NotFoundError, MalformedDocumentError))
            ),
            reraise=True,
        ):
            with attempt:
                return await self._strip_player_link(campaign_id, character)
        return False

    async def cascade_delete_character(
        self,
        character_id: str,
        user: AuthUser | None,
        *,
        confirm_name: str | None = None,
    ) -> CascadeDeleteReport:
        """Delete a character and remove it from every linked campaign.

        Campaign cleanups run concurrently and each is retried on store
        errors. A campaign that still fails is reported, never aborts the
        others. The portrait is deleted next (failures are non-fatal) and
        the character document last.

        Args:
            character_id: Character to delete.
            user: Acting user; must own the character.
            confirm_name: When given, must equal the character name exactly.

        Returns:
            CascadeDeleteReport describing every campaign.

        Raises:
            NotFoundError: If the character does not exist.
            PermissionDeniedError: If the user does not own the character.
            ValidationError: If confirm_name does not match.
        """
        actor = _require_user(user)
        with operation_context("cascade_delete", user_id=actor.uid, character_id=character_id):
            character = await self._load_character(character_id)
            if character.user_id != actor.uid:
                raise PermissionDeniedError(
                    "You can only delete your own characters",
                    user_id=actor.uid,
                    resource=character_id,
                )
            if confirm_name is not None and confirm_name != character.character_name:
                raise ValidationError(
                    "Character name does not match",
                    field_name="confirm_name",
                    invalid_value=confirm_name,
                )

            report = CascadeDeleteReport(character_id=character_id)
            campaign_ids = list(character.campaign_ids)
            logger.info("Deleting character", character_id=character_id, campaigns=len(campaign_ids))

            outcomes = await asyncio.gather(
                *(self._cleanup_campaign(cid, character) for cid in campaign_ids),
                return_exceptions=True,
            )
            for cid, outcome in zip(campaign_ids, outcomes):
                if isinstance(outcome, BaseException):
                    logger.warning(
                        "Campaign cleanup failed",
                        character_id=character_id,
                        campaign_id=cid,
                        error=str(outcome),
                    )
                    report.failed[cid] = str(outcome)
                elif outcome:
                    report.cleaned.append(cid)
                else:
                    report.skipped.append(cid)

            if character.image_url:
                await self._delete_portrait(character.image_url, report)

            await self.store.delete(CHARACTERS_COLLECTION, character_id)
            logger.info(
                "Character deleted",
                character_id=character_id,
                cleaned=len(report.cleaned),
                failed=len(report.failed),
            )
            return report

    async def _delete_portrait(self, image_url: str, report: CascadeDeleteReport) -> None:
        if self.assets is None:
            logger.debug("No asset store configured, keeping portrait", image_url=image_url)
            return
        try:
            await self.assets.delete(asset_path_from_url(image_url))
        except AssetStorageError as exc:
            logger.warning("Portrait deletion failed", image_url=image_url, error=str(exc))
            report.asset_deleted = False
            report.asset_error = str(exc)
        else:
            report.asset_deleted = True

    # =========================================================================
    # Create / Update
    # =========================================================================

    async def create_character(
        self,
        data: Mapping[str, Any],
        user: AuthUser | None,
        *,
        campaign_ids: Iterable[str] = (),
    ) -> CharacterCreation:
        """Store a new character and link it to the requested campaigns.

        Relationship fields in ``data`` are ignored; the character always
        starts unlinked and owned by the acting user.

        Raises:
            PermissionDeniedError: If nobody is signed in.
            ValidationError: If the character data is invalid.
        """
        actor = _require_user(user)
        fields = _normalize_changes(Character, data, RELATIONSHIP_FIELDS)
        character = _validate(Character, {**fields, "user_id": actor.uid, "campaign_ids": []})

        now = _timestamp()
        document = {**character.to_document(), "createdAt": now, "updatedAt": now}
        character_id = await self.store.create(CHARACTERS_COLLECTION, document)
        logger.info("Character created", character_id=character_id, user_id=actor.uid)

        requested = [cid.strip() for cid in dict.fromkeys(campaign_ids) if cid.strip()]
        outcomes = await asyncio.gather(
            *(self.link(character_id, cid, actor) for cid in requested),
            return_exceptions=True,
        )
        links: dict[str, LinkResult] = {}
        failed: dict[str, str] = {}
        for cid, outcome in zip(requested, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Initial campaign link failed", campaign_id=cid, error=str(outcome))
                failed[cid] = str(outcome)
            else:
                links[cid] = outcome
        return CharacterCreation(character_id=character_id, links=links, failed_links=failed)

    async def create_campaign(self, data: Mapping[str, Any], user: AuthUser | None) -> str:
        """Store a new campaign owned by the acting user.

        Returns:
            The campaign id, which doubles as the share code.
        """
        actor = _require_user(user)
        fields = _normalize_changes(Campaign, data, PROTECTED_CAMPAIGN_FIELDS)
        campaign = _validate(Campaign, {**fields, "user_id": actor.uid, "players": []})

        now = _timestamp()
        document = {**campaign.to_document(), "createdAt": now, "updatedAt": now}
        campaign_id = await self.store.create(CAMPAIGNS_COLLECTION, document)
        logger.info("Campaign created", campaign_id=campaign_id, user_id=actor.uid)
        return campaign_id

    async def update_character(
        self,
        character_id: str,
        changes: Mapping[str, Any],
        user: AuthUser | None,
    ) -> Character:
        """Apply owner edits to a character.

        ``userId``, ``campaignIds`` and timestamps are ignored here; links
        only change through link and unlink.

        Raises:
            NotFoundError: If the character does not exist.
            PermissionDeniedError: If the user does not own the character.
            ValidationError: If the result would be invalid.
        """
        actor = _require_user(user)
        character = await self._load_character(character_id)
        if character.user_id != actor.uid:
            raise PermissionDeniedError(
                "You can only edit your own characters",
                user_id=actor.uid,
                resource=character_id,
            )
        fields = _normalize_changes(Character, changes, RELATIONSHIP_FIELDS)
        updated = _validate(Character, {**character.model_dump(), **fields})
        await self._write_fields(CHARACTERS_COLLECTION, character_id, updated, fields)
        return updated

    async def update_campaign(
        self,
        campaign_id: str,
        changes: Mapping[str, Any],
        user: AuthUser | None,
    ) -> Campaign:
        """Apply DM edits to a campaign. ``players`` cannot be edited here.

        Raises:
            NotFoundError: If the campaign does not exist.
            PermissionDeniedError: If the user does not own the campaign.
            ValidationError: If the result would be invalid.
        """
        actor = _require_user(user)
        campaign = await self._load_campaign(campaign_id)
        if campaign.user_id != actor.uid:
            raise PermissionDeniedError(
                "Only the Dungeon Master can edit this campaign",
                user_id=actor.uid,
                resource=campaign_id,
            )
        fields = _normalize_changes(Campaign, changes, PROTECTED_CAMPAIGN_FIELDS)
        updated = _validate(Campaign, {**campaign.model_dump(), **fields})
        await self._write_fields(CAMPAIGNS_COLLECTION, campaign_id, updated, fields)
        return updated

    async def _write_fields(
        self,
        collection: str,
        document_id: str,
        model: Character | Campaign,
        fields: Mapping[str, Any],
    ) -> None:
        document = model.to_document()
        aliases = {name: type(model).model_fields[name].alias or name for name in fields}
        changes = {alias: document[alias] for alias in aliases.values()}
        changes["updatedAt"] = _timestamp()
        await self.store.update(collection, document_id, changes)
        logger.info("Document updated", collection=collection, document_id=document_id, fields=sorted(aliases.values()))

    # =========================================================================
    # Views & queries
    # =========================================================================

    async def get_character_view(self, character_id: str, user: AuthUser | None) -> CharacterView:
        """Load a character for display with the viewer's role.

        Linked campaigns are fetched concurrently; a failed fetch only
        affects that campaign's summary.

        Raises:
            NotFoundError: If the character does not exist.
            PermissionDeniedError: If the viewer is neither owner nor DM of
                a linked campaign.
        """
        character = await self._load_character(character_id)
        campaigns = await self._fetch_campaigns(character.campaign_ids)
        access = require_character_access(
            user.uid if user else None,
            character,
            campaigns.values(),
        )
        summaries = []
        for cid in character.campaign_ids:
            campaign = campaigns.get(cid)
            if campaign is None:
                summaries.append(LinkedCampaignSummary(id=cid, name=CAMPAIGN_NOT_FOUND, found=False))
            else:
                summaries.append(
                    LinkedCampaignSummary(id=cid, name=campaign.campaign_name or UNNAMED_CAMPAIGN)
                )
        return CharacterView(
            character=character,
            role=access.role,
            capabilities=access.capabilities,
            linked_campaigns=summaries,
        )

    async def get_campaign_view(self, campaign_id: str, user: AuthUser | None) -> CampaignView:
        """Load a campaign for display, filtered by the viewer's role.

        Player rows whose character is gone or no longer lists the campaign
        are flagged ``dangling``.

        Raises:
            NotFoundError: If the campaign does not exist.
            PermissionDeniedError: If the viewer is neither owner nor player.
        """
        campaign = await self._load_campaign(campaign_id)
        viewer_id = user.uid if user else None
        # Authorize before touching any character document.
        campaign_view_for(viewer_id, campaign)

        character_ids = list(dict.fromkeys(p.character_id for p in campaign.players))
        results = await asyncio.gather(
            *(self.store.get(CHARACTERS_COLLECTION, cid) for cid in character_ids),
            return_exceptions=True,
        )
        dangling: set[str] = set()
        for cid, result in zip(character_ids, results):
            if isinstance(result, BaseException):
                logger.warning("Player character fetch failed", character_id=cid, error=str(result))
            elif result is None or campaign_id not in (result.get("campaignIds") or []):
                dangling.add(cid)
        if dangling:
            logger.info("Dangling player links", campaign_id=campaign_id, character_ids=sorted(dangling))
        return campaign_view_for(viewer_id, campaign, dangling_character_ids=dangling)

    async def list_characters(
        self,
        user: AuthUser | None,
        *,
        order_by: str | None = "updatedAt",
        descending: bool = True,
    ) -> list[Character]:
        """List the user's characters.

        Raises:
            IndexRequiredError: If sorting needs an undeclared composite index.
        """
        actor = _require_user(user)
        documents = await self.store.query(
            CHARACTERS_COLLECTION,
            [Filter("userId", "==", actor.uid)],
            order_by=order_by,
            descending=descending,
        )
        return _parse_rows(Character, CHARACTERS_COLLECTION, documents)

    async def list_campaigns(
        self,
        user: AuthUser | None,
        *,
        order_by: str | None = "updatedAt",
        descending: bool = True,
    ) -> list[Campaign]:
        """List the campaigns the user runs as Dungeon Master.

        Raises:
            IndexRequiredError: If sorting needs an undeclared composite index.
        """
        actor = _require_user(user)
        documents = await self.store.query(
            CAMPAIGNS_COLLECTION,
            [Filter("userId", "==", actor.uid)],
            order_by=order_by,
            descending=descending,
        )
        return _parse_rows(Campaign, CAMPAIGNS_COLLECTION, documents)

    async def list_joined_campaigns(self, user: AuthUser | None) -> list[CampaignView]:
        """Campaigns the user plays in through one of their characters.

        Campaigns that cannot be fetched or no longer list the user are
        left out.
        """
        actor = _require_user(user)
        characters = await self.list_characters(actor, order_by=None)
        campaign_ids = [cid for character in characters for cid in character.campaign_ids]
        campaigns = await self._fetch_campaigns(campaign_ids)

        views: list[CampaignView] = []
        for campaign in campaigns.values():
            if campaign is None or not campaign.is_player(actor.uid):
                continue
            views.append(campaign_view_for(actor.uid, campaign))
        return views


__all__ = [
    "PROTECTED_CAMPAIGN_FIELDS",
    "RelationshipManager",
]
