"""Memory-resident marketplace store.

:class:`MemoryStore` is the only storage backend.  It composes one store per
entity family over a shared :class:`~classifieds.storage.tables.EntityTables`
and exposes the full :class:`~classifieds.storage.base.MarketplaceStore`
operation set.  Nothing survives :meth:`MemoryStore.close` or a process
restart.

There is no module-level instance: construct one per application (or per
test) and pass it to whatever needs it.

Typical usage::

    from classifieds.storage import open_store

    async with open_store(seed=True) as store:
        listings = await store.get_all_listings()

    # or, managing the lifecycle by hand:
    store = MemoryStore()
    await store.open(seed=False)
    ...
    await store.close()
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Any

from classifieds.core.ids import MonotonicClock
from classifieds.core.models import (
    Conversation,
    ConversationCreate,
    ConversationSummary,
    Favorite,
    FavoriteWithListing,
    Listing,
    ListingCreate,
    ListingUpdate,
    Message,
    MessageCreate,
    User,
    UserCreate,
)
from classifieds.storage.conversations import ConversationStore
from classifieds.storage.favorites import FavoriteStore
from classifieds.storage.listings import ListingStore
from classifieds.storage.seed import seed_store
from classifieds.storage.tables import EntityTables
from classifieds.storage.users import UserStore

__all__ = ["MemoryStore", "open_store"]

logger = logging.getLogger(__name__)


class MemoryStore:
    """In-memory implementation of :class:`~classifieds.storage.base.MarketplaceStore`.

    A freshly constructed store is empty and usable.  :meth:`open` loads the
    demo data (at most once); :meth:`close` discards everything, after which
    every operation raises
    :exc:`~classifieds.core.exceptions.StoreClosedError`.

    Args:
        clock: Timestamp source for ``created_at`` / ``last_message_at``.
            Defaults to a wall-clock :class:`MonotonicClock`.
    """

    def __init__(self, clock: MonotonicClock | None = None) -> None:
        self._tables = EntityTables(clock=clock or MonotonicClock())
        self._opened = False
        self.users = UserStore(self._tables)
        self.listings = ListingStore(self._tables)
        self.conversations = ConversationStore(self._tables)
        self.favorites = FavoriteStore(self._tables)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._tables.closed

    async def open(self, *, seed: bool = True) -> None:
        """Prepare the store for use, loading demo data when *seed* is set."""
        if self._opened:
            return
        self._opened = True
        if seed:
            await seed_store(self)
        logger.info("Memory store opened (seed=%s)", seed)

    async def close(self) -> None:
        """Discard all state.  Safe to call more than once."""
        if self._tables.closed:
            return
        async with self._tables.lock:
            self._tables.close()
        logger.info("Memory store closed")

    async def __aenter__(self) -> MemoryStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user(self, user_id: int) -> User | None:
        return await self.users.get_user(user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        return await self.users.get_user_by_username(username)

    async def create_user(self, data: UserCreate | Mapping[str, Any]) -> User:
        return await self.users.create_user(data)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def get_all_listings(self) -> list[Listing]:
        return await self.listings.get_all_listings()

    async def get_listing(self, listing_id: int) -> Listing | None:
        return await self.listings.get_listing(listing_id)

    async def get_user_listings(self, owner_id: int) -> list[Listing]:
        return await self.listings.get_user_listings(owner_id)

    async def create_listing(self, data: ListingCreate | Mapping[str, Any]) -> Listing:
        return await self.listings.create_listing(data)

    async def update_listing(
        self, listing_id: int, data: ListingUpdate | Mapping[str, Any]
    ) -> Listing | None:
        return await self.listings.update_listing(listing_id, data)

    async def delete_listing(self, listing_id: int) -> bool:
        return await self.listings.delete_listing(listing_id)

    async def search_listings(self, query: str, category: str | None = None) -> list[Listing]:
        return await self.listings.search_listings(query, category)

    async def increment_views(self, listing_id: int) -> None:
        await self.listings.increment_views(listing_id)

    # ------------------------------------------------------------------
    # Conversations and messages
    # ------------------------------------------------------------------

    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        return await self.conversations.get_conversation(conversation_id)

    async def get_conversation_messages(self, conversation_id: int) -> list[Message]:
        return await self.conversations.get_conversation_messages(conversation_id)

    async def get_user_conversations(self, user_id: int) -> list[ConversationSummary]:
        return await self.conversations.get_user_conversations(user_id)

    async def create_conversation(
        self, data: ConversationCreate | Mapping[str, Any]
    ) -> Conversation:
        return await self.conversations.create_conversation(data)

    async def send_message(self, data: MessageCreate | Mapping[str, Any]) -> Message:
        return await self.conversations.send_message(data)

    async def mark_messages_as_read(self, conversation_id: int, user_id: int) -> None:
        await self.conversations.mark_messages_as_read(conversation_id, user_id)

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    async def get_user_favorites(self, user_id: int) -> list[FavoriteWithListing]:
        return await self.favorites.get_user_favorites(user_id)

    async def add_to_favorites(self, user_id: int, listing_id: int) -> Favorite:
        return await self.favorites.add_to_favorites(user_id, listing_id)

    async def remove_from_favorites(self, user_id: int, listing_id: int) -> bool:
        return await self.favorites.remove_from_favorites(user_id, listing_id)

    async def is_favorite(self, user_id: int, listing_id: int) -> bool:
        return await self.favorites.is_favorite(user_id, listing_id)


@asynccontextmanager
async def open_store(
    *, seed: bool = True, clock: MonotonicClock | None = None
) -> AsyncIterator[MemoryStore]:
    """Open a :class:`MemoryStore` for the duration of an ``async with`` block."""
    store = MemoryStore(clock=clock)
    await store.open(seed=seed)
    try:
        yield store
    finally:
        await store.close()
