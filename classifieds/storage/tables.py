"""In-memory entity tables shared by the per-entity stores.

:class:`EntityTables` is the single owner of marketplace state for a
:class:`~classifieds.storage.memory.MemoryStore`.  It holds:

* one ``dict[id, record]`` per entity kind,
* secondary indexes used for the uniqueness rules (one conversation per
  ``(listing, buyer, seller)``, one favorite per ``(user, listing)``, unique
  usernames) and for per-conversation message order,
* the unread ledger ``(conversation_id, user_id) → count``,
* the :class:`~classifieds.core.ids.IdAllocator` and
  :class:`~classifieds.core.ids.MonotonicClock`,
* one :class:`asyncio.Lock` that every operation holds for its whole
  duration, so composite updates (message + conversation + ledger, favorite
  + listing counter) are never observed half-applied.

The stores never hand out anything mutable: records are frozen pydantic
models and list results are fresh lists.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from classifieds.core.exceptions import InternalError, StoreClosedError
from classifieds.core.ids import IdAllocator, MonotonicClock
from classifieds.core.models import Conversation, Favorite, Listing, Message, User

__all__ = ["EntityTables"]

logger = logging.getLogger(__name__)

#: Key of the unread ledger: ``(conversation_id, user_id)``.
LedgerKey = tuple[int, int]


@dataclass
class EntityTables:
    """Mutable state bag for one in-memory store.

    Attributes:
        users: ``user.id → User``.
        listings: ``listing.id → Listing``.
        conversations: ``conversation.id → Conversation``.
        messages: ``message.id → Message``.
        favorites: ``favorite.id → Favorite``.
        usernames: ``username → user.id``.
        conversation_keys: ``(listing_id, buyer_id, seller_id) → conversation.id``.
        conversation_messages: ``conversation_id → [message.id, …]`` in
            creation order.  Also holds entries for conversation ids that do
            not (or no longer) exist.
        favorite_keys: ``(user_id, listing_id) → favorite.id``.
        unread: The unread ledger.  Missing keys read as ``0``.
        ids: Identifier allocator.
        clock: Strictly increasing timestamp source.
        lock: Guards every read and write.
        closed: Set by :meth:`close`; every later :meth:`guard` raises.
    """

    users: dict[int, User] = field(default_factory=dict)
    listings: dict[int, Listing] = field(default_factory=dict)
    conversations: dict[int, Conversation] = field(default_factory=dict)
    messages: dict[int, Message] = field(default_factory=dict)
    favorites: dict[int, Favorite] = field(default_factory=dict)

    usernames: dict[str, int] = field(default_factory=dict)
    conversation_keys: dict[tuple[int, int, int], int] = field(default_factory=dict)
    conversation_messages: dict[int, list[int]] = field(default_factory=dict)
    favorite_keys: dict[tuple[int, int], int] = field(default_factory=dict)
    unread: dict[LedgerKey, int] = field(default_factory=dict)

    ids: IdAllocator = field(default_factory=IdAllocator)
    clock: MonotonicClock = field(default_factory=MonotonicClock)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    closed: bool = False

    @asynccontextmanager
    async def guard(self) -> AsyncIterator[EntityTables]:
        """Hold the store lock for the duration of one operation.

        Raises:
            :exc:`~classifieds.core.exceptions.StoreClosedError`: If the
                store has been shut down.
        """
        if self.closed:
            raise StoreClosedError()
        async with self.lock:
            if self.closed:
                raise StoreClosedError()
            yield self

    def close(self) -> None:
        """Drop every record and refuse further operations."""
        self.closed = True
        for table in (
            self.users,
            self.listings,
            self.conversations,
            self.messages,
            self.favorites,
            self.usernames,
            self.conversation_keys,
            self.conversation_messages,
            self.favorite_keys,
            self.unread,
        ):
            table.clear()

    @staticmethod
    def check_vacant(table: Mapping[int, object], record_id: int, kind: str) -> None:
        """Refuse to overwrite an existing row with a freshly allocated id.

        Called before any write of a composite operation, so a failure here
        leaves every table untouched.

        Raises:
            :exc:`~classifieds.core.exceptions.InternalError`: If *record_id*
                is already present in *table*.
        """
        if record_id in table:
            logger.error("Allocated %s id %d is already in use", kind, record_id)
            raise InternalError(f"{kind} id {record_id} allocated twice")

    def unread_count(self, conversation_id: int, user_id: int) -> int:
        return self.unread.get((conversation_id, user_id), 0)
