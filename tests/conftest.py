"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the D&D Companion test suite. Async code is driven with asyncio.run
through the ``run`` fixture.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path

    from dnd_companion.auth.session import AuthUser
    from dnd_companion.core.config import LinkingSettings
    from dnd_companion.linking.manager import RelationshipManager
    from dnd_companion.storage.memory import MemoryDocumentStore


T = TypeVar("T")


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from dnd_companion.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def isolated_workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test from a temporary directory so default paths stay local."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def linking_settings() -> LinkingSettings:
    """Cleanup retries without backoff, so failing tests stay fast."""
    from dnd_companion.core.config import LinkingSettings

    return LinkingSettings(
        cleanup_max_attempts=3,
        cleanup_backoff_seconds=0,
        cleanup_backoff_max_seconds=0,
    )


# =============================================================================
# Async Helper
# =============================================================================


@pytest.fixture
def run() -> Callable[[Awaitable[T]], T]:
    """Run a coroutine to completion on a fresh event loop."""

    def _run(awaitable: Awaitable[T]) -> T:
        async def _wrapper() -> T:
            return await awaitable

        return asyncio.run(_wrapper())

    return _run


# =============================================================================
# Identity Fixtures
# =============================================================================


@pytest.fixture
def dm_user() -> AuthUser:
    """Dungeon Master account."""
    from dnd_companion.auth.session import AuthUser

    return AuthUser(uid="dm-uid", display_name="Mira", email="mira@example.com")


@pytest.fixture
def player_user() -> AuthUser:
    """Player account."""
    from dnd_companion.auth.session import AuthUser

    return AuthUser(uid="player-uid", display_name="Ada", email="ada@example.com")


@pytest.fixture
def stranger_user() -> AuthUser:
    """Account with no relation to any test document."""
    from dnd_companion.auth.session import AuthUser

    return AuthUser(uid="stranger-uid", display_name=None, email="stranger@example.com")


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def sample_character_data() -> dict[str, Any]:
    """Provide sample character data as the create form submits it.

    Returns:
        Dictionary of camelCase character fields.
    """
    return {
        "characterName": "Thorin",
        "class": "Fighter",
        "level": 5,
        "background": "Soldier",
        "playerName": "",
        "race": "Dwarf",
        "alignment": "Lawful Good",
        "experiencePoints": 6500,
        "strength": 16,
        "dexterity": 14,
        "constitution": 15,
        "intelligence": 10,
        "wisdom": 12,
        "charisma": 8,
        "armorClass": 18,
        "initiative": 2,
        "speed": 25,
        "maxHitPoints": 44,
        "currentHitPoints": 44,
        "temporaryHitPoints": 0,
        "hitDice": "5d10",
        "proficiencyBonus": 3,
        "savingThrowProficiencies": ["STR", "CON"],
        "skillProficiencies": ["Athletics", "Perception"],
        "personalityTraits": "Stubborn",
        "equipment": "Battleaxe, chain mail",
    }


@pytest.fixture
def sample_campaign_data() -> dict[str, Any]:
    """Provide sample campaign data as the create form submits it."""
    return {
        "campaignName": "Lost Mine of Phandelver",
        "description": "A classic adventure for levels 1-5.",
        "setting": "Forgotten Realms",
        "world": "Faerun",
        "dungeonMaster": "Mira",
        "currentLevel": 3,
        "status": "Active",
        "notes": "The wizard is secretly the villain.",
    }


@pytest.fixture
def sample_character(sample_character_data: dict[str, Any]) -> Any:
    """Create a stored-looking Character owned by the player."""
    from dnd_companion.models.character import Character

    return Character.model_validate({
        **sample_character_data,
        "id": "char-1",
        "userId": "player-uid",
    })


# =============================================================================
# Store Fixtures
# =============================================================================


class FlakyStore:
    """DocumentStore wrapper that injects failures.

    ``fail(method, collection, document_id, times=None)`` makes the matching
    call raise DocumentStoreError; ``times=None`` fails forever.
    """

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.calls: list[tuple[str, str, str | None]] = []
        self._failures: dict[tuple[str, str, str | None], int | None] = {}

    def fail(
        self,
        method: str,
        collection: str,
        document_id: str | None = None,
        *,
        times: int | None = None,
    ) -> None:
        self._failures[(method, collection, document_id)] = times

    def _check(self, method: str, collection: str, document_id: str | None) -> None:
        from dnd_companion.core.exceptions import DocumentStoreError

        self.calls.append((method, collection, document_id))
        for key in ((method, collection, document_id), (method, collection, None)):
            if key not in self._failures:
                continue
            remaining = self._failures[key]
            if remaining is not None:
                if remaining <= 0:
                    continue
                self._failures[key] = remaining - 1
            raise DocumentStoreError(
                f"Injected {method} failure",
                collection=collection,
                document_id=document_id,
            )

    def count(self, method: str, collection: str, document_id: str | None = None) -> int:
        return sum(
            1
            for call in self.calls
            if call[0] == method and call[1] == collection and (document_id is None or call[2] == document_id)
        )

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        self._check("get", collection, document_id)
        return await self.inner.get(collection, document_id)

    async def query(
        self,
        collection: str,
        filters: Sequence[Any] = (),
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        self._check("query", collection, None)
        return await self.inner.query(collection, filters, order_by=order_by, descending=descending)

    async def create(self, collection: str, data: Mapping[str, Any]) -> str:
        self._check("create", collection, None)
        return await self.inner.create(collection, data)

    async def set(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        self._check("set", collection, document_id)
        await self.inner.set(collection, document_id, data)

    async def update(self, collection: str, document_id: str, changes: Mapping[str, Any]) -> None:
        self._check("update", collection, document_id)
        await self.inner.update(collection, document_id, changes)

    async def delete(self, collection: str, document_id: str) -> None:
        self._check("delete", collection, document_id)
        await self.inner.delete(collection, document_id)


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    """In-memory store with the default composite indexes declared."""
    from dnd_companion.storage.base import IndexRegistry
    from dnd_companion.storage.memory import MemoryDocumentStore

    return MemoryDocumentStore(
        IndexRegistry({
            ("characters", ("userId", "updatedAt")),
            ("campaigns", ("userId", "updatedAt")),
        })
    )


@pytest.fixture
def flaky_store(memory_store: MemoryDocumentStore) -> FlakyStore:
    """Fault-injecting wrapper around the memory store."""
    return FlakyStore(memory_store)


@pytest.fixture
def manager(flaky_store: FlakyStore, linking_settings: LinkingSettings) -> RelationshipManager:
    """RelationshipManager on the fault-injecting store."""
    from dnd_companion.linking.manager import RelationshipManager

    return RelationshipManager(flaky_store, settings=linking_settings)


@pytest.fixture
def campaign_id(
    run: Callable[[Awaitable[Any]], Any],
    manager: RelationshipManager,
    dm_user: AuthUser,
    sample_campaign_data: dict[str, Any],
) -> str:
    """A campaign run by the DM."""
    return run(manager.create_campaign(sample_campaign_data, dm_user))


@pytest.fixture
def character_id(
    run: Callable[[Awaitable[Any]], Any],
    manager: RelationshipManager,
    player_user: AuthUser,
    sample_character_data: dict[str, Any],
) -> str:
    """An unlinked character owned by the player."""
    return run(manager.create_character(sample_character_data, player_user)).character_id


# =============================================================================
# PDF Fixtures
# =============================================================================


@pytest.fixture
def make_template() -> Callable[..., bytes]:
    """Factory building a fillable PDF with the given field names."""
    import fitz

    def _make(text_fields: Iterable[str] = (), checkbox_fields: Iterable[str] = ()) -> bytes:
        doc = fitz.open()
        page = doc.new_page()
        y = 20.0
        for name, field_type in [
            *((name, fitz.PDF_WIDGET_TYPE_TEXT) for name in text_fields),
            *((name, fitz.PDF_WIDGET_TYPE_CHECKBOX) for name in checkbox_fields),
        ]:
            if y > 800:
                page = doc.new_page()
                y = 20.0
            widget = fitz.Widget()
            widget.field_name = name
            widget.field_type = field_type
            if field_type == fitz.PDF_WIDGET_TYPE_CHECKBOX:
                widget.rect = fitz.Rect(20, y, 32, y + 12)
                widget.field_value = False
            else:
                widget.rect = fitz.Rect(20, y, 220, y + 12)
                widget.field_value = ""
            page.add_widget(widget)
            y += 14
        content = doc.tobytes()
        doc.close()
        return content

    return _make


@pytest.fixture
def read_fields() -> Callable[[bytes], dict[str, Any]]:
    """Read back form field values from PDF bytes."""
    import fitz

    def _read(content: bytes) -> dict[str, Any]:
        values: dict[str, Any] = {}
        with fitz.open(stream=content, filetype="pdf") as doc:
            for page in doc:
                for widget in page.widgets():
                    values[widget.field_name] = widget.field_value
        return values

    return _read


@pytest.fixture
def sheet_template(make_template: Callable[..., bytes]) -> bytes:
    """A template shaped like the bundled 5E sheet (subset of fields)."""
    return make_template(
        text_fields=[
            "CharacterName",
            "ClassLevel",
            "PlayerName",
            "Race",
            "STR",
            "STRmod",
            "DEX",
            "DEXmod",
            "CHA",
            "CHamod",
            "Athletics",
            "Perception",
            "Stealth",
            "AC",
            "Initiative",
            "HPMax",
            "HitDice",
            "ProficiencyBonus",
            "PersonalityTraits",
            "Equipment",
        ],
        checkbox_fields=["StrengthST", "DexteritySave", "AthleticsProf", "StealthProf"],
    )
