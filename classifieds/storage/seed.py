"""Demo data loaded into a fresh store.

The app has no sign-up flow: the client acts as a single demo user, and a
handful of listings give the catalogue something to show.  Listings are
created in the order below, so the last one is the newest.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from classifieds.core.models import ListingCreate, UserCreate

if TYPE_CHECKING:
    from classifieds.storage.base import MarketplaceStore

__all__ = ["DEMO_USER", "DEMO_LISTINGS", "seed_store"]

logger = logging.getLogger(__name__)

DEMO_USER: Final[UserCreate] = UserCreate(
    username="Filipdudzik",
    password="1234",
    name="Filip Dudzik",
    location="Kraków",
)

#: Listing fields without ``owner_id``, which is filled in from the demo user.
DEMO_LISTINGS: Final[tuple[dict[str, object], ...]] = (
    {
        "title": "AUTO",
        "description": "AUTOAUTOAUTOAUTOAUTO",
        "price": "299",
        "category": "akcesoria",
        "images": (
            "https://images.unsplash.com/photo-1503376780353-7e6692767b70?w=600&auto=format&fit=crop",
        ),
        "negotiable": True,
    },
    {
        "title": "Buty",
        "description": "Nowe buty 123123123123.",
        "price": "999",
        "category": "obuwie",
        "images": (
            "https://images.unsplash.com/photo-1595950653106-6c9ebd614d3a?w=600&auto=format&fit=crop",
        ),
        "negotiable": False,
    },
    {
        "title": "ŁADOWARKA TURBO",
        "description": "Ładowarka do laptopa",
        "price": "1",
        "category": "akcesoria",
        "images": (
            "https://images.unsplash.com/photo-1583863788434-e58a36330cf0?w=600&auto=format&fit=crop",
        ),
        "negotiable": True,
    },
    {
        "title": "Samochód elektroniczny",
        "description": "Tesla samochoód elektroniczny",
        "price": "1200",
        "category": "elektronika",
        "images": (
            "https://images.unsplash.com/photo-1585011664466-b7bbe92f34ef?w=600&auto=format&fit=crop",
        ),
        "negotiable": True,
    },
)


async def seed_store(store: MarketplaceStore) -> None:
    """Create the demo user and the demo listings in *store*.

    Listings take their location from the demo user.
    """
    user = await store.create_user(DEMO_USER)
    for fields in DEMO_LISTINGS:
        await store.create_listing(
            ListingCreate.model_validate(
                {**fields, "location": user.location, "owner_id": user.id}
            )
        )
    logger.info("Seeded demo user %r with %d listings", user.username, len(DEMO_LISTINGS))
