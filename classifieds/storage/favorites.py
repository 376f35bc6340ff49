"""Favorite operations with the denormalised ``favorites_count`` counter.

Invariant: ``listing.favorites_count`` equals the number of favorites that
reference the listing.  Only a *real* insert increments it and only a *real*
removal decrements it; the idempotent paths (adding an existing favorite,
removing an absent one) leave it alone.  The decrement is floored at zero.
"""

from __future__ import annotations

import logging

from classifieds.core.ids import EntityKind
from classifieds.core.models import Favorite, FavoriteWithListing
from classifieds.storage.tables import EntityTables

__all__ = ["FavoriteStore"]

logger = logging.getLogger(__name__)


class FavoriteStore:
    """Favorite half of the marketplace contract."""

    def __init__(self, tables: EntityTables) -> None:
        self._tables = tables

    async def get_user_favorites(self, user_id: int) -> list[FavoriteWithListing]:
        """Favorites of *user_id* joined with their listing.

        Favorites whose listing has been deleted are left out.
        """
        async with self._tables.guard() as t:
            result: list[FavoriteWithListing] = []
            for favorite in t.favorites.values():
                if favorite.user_id != user_id:
                    continue
                listing = t.listings.get(favorite.listing_id)
                if listing is None:
                    continue
                result.append(FavoriteWithListing(**favorite.model_dump(), listing=listing))
            return result

    async def add_to_favorites(self, user_id: int, listing_id: int) -> Favorite:
        """Bookmark *listing_id* for *user_id*; idempotent.

        Returns:
            The new favorite, or the existing one if the pair was already
            bookmarked (in which case nothing changes).
        """
        async with self._tables.guard() as t:
            existing_id = t.favorite_keys.get((user_id, listing_id))
            if existing_id is not None:
                return t.favorites[existing_id]

            favorite_id = t.ids.next(EntityKind.FAVORITE)
            t.check_vacant(t.favorites, favorite_id, EntityKind.FAVORITE)
            favorite = Favorite(id=favorite_id, user_id=user_id, listing_id=listing_id)

            listing = t.listings.get(listing_id)
            bumped = (
                None
                if listing is None
                else listing.model_copy(update={"favorites_count": listing.favorites_count + 1})
            )

            # Commit.
            t.favorites[favorite_id] = favorite
            t.favorite_keys[(user_id, listing_id)] = favorite_id
            if bumped is not None:
                t.listings[listing_id] = bumped

        if bumped is None:
            logger.warning("Favorite %d references unknown listing %d", favorite_id, listing_id)
        else:
            logger.debug(
                "User %d favorited listing %d (count=%d)",
                user_id,
                listing_id,
                bumped.favorites_count,
            )
        return favorite

    async def remove_from_favorites(self, user_id: int, listing_id: int) -> bool:
        """Remove the bookmark.  Returns ``False`` if there was none."""
        async with self._tables.guard() as t:
            favorite_id = t.favorite_keys.get((user_id, listing_id))
            if favorite_id is None:
                return False

            listing = t.listings.get(listing_id)
            lowered = (
                None
                if listing is None
                else listing.model_copy(
                    update={"favorites_count": max(listing.favorites_count - 1, 0)}
                )
            )

            # Commit.
            del t.favorites[favorite_id]
            del t.favorite_keys[(user_id, listing_id)]
            if lowered is not None:
                t.listings[listing_id] = lowered

        logger.debug("User %d unfavorited listing %d", user_id, listing_id)
        return True

    async def is_favorite(self, user_id: int, listing_id: int) -> bool:
        async with self._tables.guard() as t:
            return (user_id, listing_id) in t.favorite_keys
