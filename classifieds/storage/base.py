"""Capability interface every marketplace storage backend satisfies.

:class:`MarketplaceStore` is a :class:`typing.Protocol`, not a base class:
the in-memory :class:`~classifieds.storage.memory.MemoryStore` satisfies it
structurally, and a persistent backend can do the same without inheriting
anything.  The request layer depends only on this protocol.

Contract shared by all implementations
--------------------------------------
* Every operation is a coroutine and runs to completion atomically with
  respect to every other operation on the same store.
* Reads of unknown ids return ``None`` (single record) or ``False``
  (delete / remove); they never raise for missing data.
* Create / update operations accept either the input model or a plain
  mapping.  A mapping that fails validation raises
  :exc:`~classifieds.core.exceptions.InputValidationError` before anything
  is written.
* Nothing is retried internally.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

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

__all__ = ["MarketplaceStore"]


@runtime_checkable
class MarketplaceStore(Protocol):
    """Operations the request layer may invoke on a store."""

    # Lifecycle -------------------------------------------------------

    async def open(self, *, seed: bool = True) -> None: ...

    async def close(self) -> None: ...

    # Users -----------------------------------------------------------

    async def get_user(self, user_id: int) -> User | None: ...

    async def get_user_by_username(self, username: str) -> User | None: ...

    async def create_user(self, data: UserCreate | Mapping[str, Any]) -> User: ...

    # Listings --------------------------------------------------------

    async def get_all_listings(self) -> list[Listing]: ...

    async def get_listing(self, listing_id: int) -> Listing | None: ...

    async def get_user_listings(self, owner_id: int) -> list[Listing]: ...

    async def create_listing(self, data: ListingCreate | Mapping[str, Any]) -> Listing: ...

    async def update_listing(
        self, listing_id: int, data: ListingUpdate | Mapping[str, Any]
    ) -> Listing | None: ...

    async def delete_listing(self, listing_id: int) -> bool: ...

    async def search_listings(self, query: str, category: str | None = None) -> list[Listing]: ...

    async def increment_views(self, listing_id: int) -> None: ...

    # Conversations and messages -------------------------------------

    async def get_conversation(self, conversation_id: int) -> Conversation | None: ...

    async def get_conversation_messages(self, conversation_id: int) -> list[Message]: ...

    async def get_user_conversations(self, user_id: int) -> list[ConversationSummary]: ...

    async def create_conversation(
        self, data: ConversationCreate | Mapping[str, Any]
    ) -> Conversation: ...

    async def send_message(self, data: MessageCreate | Mapping[str, Any]) -> Message: ...

    async def mark_messages_as_read(self, conversation_id: int, user_id: int) -> None: ...

    # Favorites -------------------------------------------------------

    async def get_user_favorites(self, user_id: int) -> list[FavoriteWithListing]: ...

    async def add_to_favorites(self, user_id: int, listing_id: int) -> Favorite: ...

    async def remove_from_favorites(self, user_id: int, listing_id: int) -> bool: ...

    async def is_favorite(self, user_id: int, listing_id: int) -> bool: ...
