"""Listing operations: CRUD, owner listings, search and view counting.

Ordering rule for every multi-listing result: ``created_at`` descending
(newest first).  Python's sort is stable, so listings sharing a timestamp
keep their insertion order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from classifieds.core.ids import EntityKind
from classifieds.core.models import (
    Listing,
    ListingCreate,
    ListingStatus,
    ListingUpdate,
    validate_input,
)
from classifieds.storage.tables import EntityTables

__all__ = ["ListingStore", "newest_first"]

logger = logging.getLogger(__name__)


def newest_first(listings: Iterable[Listing]) -> list[Listing]:
    """Return *listings* sorted by ``created_at`` descending."""
    return sorted(listings, key=lambda listing: listing.created_at, reverse=True)


class ListingStore:
    """Listing half of the marketplace contract.

    Lookups on unknown ids return ``None`` / ``False`` rather than raising.
    """

    def __init__(self, tables: EntityTables) -> None:
        self._tables = tables

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_all_listings(self) -> list[Listing]:
        """Active listings, newest first."""
        async with self._tables.guard() as t:
            return newest_first(lst for lst in t.listings.values() if lst.is_active)

    async def get_listing(self, listing_id: int) -> Listing | None:
        """The listing regardless of status, or ``None``."""
        async with self._tables.guard() as t:
            return t.listings.get(listing_id)

    async def get_user_listings(self, owner_id: int) -> list[Listing]:
        """Every listing owned by *owner_id*, any status, newest first."""
        async with self._tables.guard() as t:
            return newest_first(lst for lst in t.listings.values() if lst.owner_id == owner_id)

    async def search_listings(self, query: str, category: str | None = None) -> list[Listing]:
        """Active listings matching *query* and *category*, newest first.

        Args:
            query: Case-insensitive substring looked for in the title or the
                description.  ``""`` matches everything.
            category: Exact category, compared ignoring case.  ``None``,
                ``""`` and ``"all"`` disable the category filter.
        """
        async with self._tables.guard() as t:
            hits = [
                lst
                for lst in t.listings.values()
                if lst.is_active and lst.matches(query) and lst.in_category(category)
            ]
        logger.debug("search %r in %r → %d listing(s)", query, category, len(hits))
        return newest_first(hits)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_listing(self, data: ListingCreate | Mapping[str, Any]) -> Listing:
        """Insert a new active listing with zero views.

        ``favorites_count`` starts at the number of favorites already pointing
        at the new id, since a favorite may be recorded for an id before the
        listing exists.

        Raises:
            :exc:`~classifieds.core.exceptions.InputValidationError`: If a
                required field is missing or malformed.
        """
        payload = validate_input(ListingCreate, data, "Invalid listing data")
        async with self._tables.guard() as t:
            listing_id = t.ids.next(EntityKind.LISTING)
            t.check_vacant(t.listings, listing_id, EntityKind.LISTING)
            listing = Listing(
                id=listing_id,
                status=ListingStatus.ACTIVE,
                views=0,
                favorites_count=sum(
                    1 for _, favorited in t.favorite_keys if favorited == listing_id
                ),
                created_at=t.clock.now(),
                **payload.model_dump(),
            )
            t.listings[listing_id] = listing

        logger.debug("Created listing %d %r (owner=%d)", listing_id, listing.title, listing.owner_id)
        return listing

    async def update_listing(
        self, listing_id: int, data: ListingUpdate | Mapping[str, Any]
    ) -> Listing | None:
        """Shallow-merge the supplied fields into the listing.

        Omitted fields keep their value.  Any status may follow any status.

        Returns:
            The updated listing, or ``None`` if *listing_id* is unknown.
        """
        changes = validate_input(ListingUpdate, data, "Invalid listing data").changes()
        async with self._tables.guard() as t:
            current = t.listings.get(listing_id)
            if current is None:
                return None
            updated = current.model_copy(update=changes)
            t.listings[listing_id] = updated

        logger.debug("Updated listing %d fields=%s", listing_id, sorted(changes))
        return updated

    async def delete_listing(self, listing_id: int) -> bool:
        """Remove the listing.  Conversations and favorites are left in place."""
        async with self._tables.guard() as t:
            removed = t.listings.pop(listing_id, None)
        if removed is not None:
            logger.debug("Deleted listing %d", listing_id)
        return removed is not None

    async def increment_views(self, listing_id: int) -> None:
        """Add one view.  Unknown ids are ignored."""
        async with self._tables.guard() as t:
            current = t.listings.get(listing_id)
            if current is None:
                return
            t.listings[listing_id] = current.model_copy(update={"views": current.views + 1})
