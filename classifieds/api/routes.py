"""HTTP routes: thin translations from requests to store operations.

Handlers validate the request shape (FastAPI does this from the pydantic
input models), call exactly the store operations listed in the table below
and turn a ``None`` / ``False`` "not found" signal into
:exc:`~classifieds.core.exceptions.NotFoundError`.

=====================================================  ==========================
Route                                                  Store operation
=====================================================  ==========================
``GET    /api/listings``                               search / get_all_listings
``GET    /api/listings/{id}``                          get_listing + increment_views
``POST   /api/listings``                               create_listing
``PATCH  /api/listings/{id}``                          update_listing
``DELETE /api/listings/{id}``                          delete_listing
``GET    /api/me``                                     get_user (demo user)
``POST   /api/users``                                  create_user
``GET    /api/users/{id}``                             get_user
``GET    /api/users/{id}/listings``                    get_user_listings
``GET    /api/users/{id}/conversations``               get_user_conversations
``GET    /api/conversations/{id}/messages``            get_conversation_messages
``POST   /api/conversations/{id}/read``                mark_messages_as_read
``POST   /api/conversations``                          create_conversation
``POST   /api/messages``                               send_message
``GET    /api/users/{id}/favorites``                   get_user_favorites
``POST   /api/users/{id}/favorites/{listing}``         add_to_favorites
``DELETE /api/users/{id}/favorites/{listing}``         remove_from_favorites
``GET    /api/users/{id}/favorites/{listing}/check``   is_favorite
=====================================================  ==========================
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from classifieds.core.exceptions import InternalError, NotFoundError
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
    UserCreate,
    UserProfile,
)
from classifieds.core.settings import Settings
from classifieds.storage.base import MarketplaceStore

__all__ = ["router", "get_store", "get_settings"]

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_store(request: Request) -> MarketplaceStore:
    """Return the store attached to the running application."""
    store: MarketplaceStore | None = getattr(request.app.state, "store", None)
    if store is None:
        raise InternalError("Store is not initialised")
    return store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


StoreDep = Annotated[MarketplaceStore, Depends(get_store)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


# ---------------------------------------------------------------------------
# Small request / response bodies
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReadReceipt(_CamelModel):
    user_id: int = Field(..., ge=1)


class FavoriteStatus(_CamelModel):
    is_favorite: bool


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


@router.get("/listings", response_model=list[Listing])
async def list_listings(
    store: StoreDep,
    search: str | None = None,
    category: str | None = None,
) -> list[Listing]:
    """Active listings, optionally filtered by text and category."""
    if search or category:
        return await store.search_listings(search or "", category)
    return await store.get_all_listings()


@router.get("/listings/{listing_id}", response_model=Listing)
async def get_listing(listing_id: int, store: StoreDep) -> Listing:
    """Fetch one listing and count the view."""
    listing = await store.get_listing(listing_id)
    if listing is None:
        raise NotFoundError("listing", listing_id)
    await store.increment_views(listing_id)
    return await store.get_listing(listing_id) or listing


@router.post("/listings", response_model=Listing, status_code=status.HTTP_201_CREATED)
async def create_listing(body: ListingCreate, store: StoreDep) -> Listing:
    listing = await store.create_listing(body)
    logger.info("Listing %d created by user %d", listing.id, listing.owner_id)
    return listing


@router.patch("/listings/{listing_id}", response_model=Listing)
async def update_listing(listing_id: int, body: ListingUpdate, store: StoreDep) -> Listing:
    listing = await store.update_listing(listing_id, body)
    if listing is None:
        raise NotFoundError("listing", listing_id)
    return listing


@router.delete("/listings/{listing_id}", response_model=MessageResponse)
async def delete_listing(listing_id: int, store: StoreDep) -> MessageResponse:
    if not await store.delete_listing(listing_id):
        raise NotFoundError("listing", listing_id)
    logger.info("Listing %d deleted", listing_id)
    return MessageResponse(message="Listing deleted successfully")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserProfile)
async def get_current_user(store: StoreDep, settings: SettingsDep) -> UserProfile:
    """The hardcoded demo user the client acts as."""
    user = await store.get_user(settings.demo_user_id)
    if user is None:
        raise NotFoundError("user", settings.demo_user_id)
    return user.profile()


@router.post("/users", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, store: StoreDep) -> UserProfile:
    user = await store.create_user(body)
    logger.info("User %d (%s) created", user.id, user.username)
    return user.profile()


@router.get("/users/{user_id}", response_model=UserProfile)
async def get_user(user_id: int, store: StoreDep) -> UserProfile:
    user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    return user.profile()


@router.get("/users/{user_id}/listings", response_model=list[Listing])
async def get_user_listings(user_id: int, store: StoreDep) -> list[Listing]:
    return await store.get_user_listings(user_id)


# ---------------------------------------------------------------------------
# Conversations and messages
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}/conversations", response_model=list[ConversationSummary])
async def get_user_conversations(user_id: int, store: StoreDep) -> list[ConversationSummary]:
    return await store.get_user_conversations(user_id)


@router.get("/conversations/{conversation_id}/messages", response_model=list[Message])
async def get_conversation_messages(conversation_id: int, store: StoreDep) -> list[Message]:
    return await store.get_conversation_messages(conversation_id)


@router.post(
    "/conversations/{conversation_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def mark_conversation_read(
    conversation_id: int, body: ReadReceipt, store: StoreDep
) -> Response:
    await store.mark_messages_as_read(conversation_id, body.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/conversations", response_model=Conversation, status_code=status.HTTP_201_CREATED
)
async def create_conversation(body: ConversationCreate, store: StoreDep) -> Conversation:
    return await store.create_conversation(body)


@router.post("/messages", response_model=Message, status_code=status.HTTP_201_CREATED)
async def send_message(body: MessageCreate, store: StoreDep) -> Message:
    return await store.send_message(body)


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}/favorites", response_model=list[FavoriteWithListing])
async def get_user_favorites(user_id: int, store: StoreDep) -> list[FavoriteWithListing]:
    return await store.get_user_favorites(user_id)


@router.post(
    "/users/{user_id}/favorites/{listing_id}",
    response_model=Favorite,
    status_code=status.HTTP_201_CREATED,
)
async def add_favorite(user_id: int, listing_id: int, store: StoreDep) -> Favorite:
    return await store.add_to_favorites(user_id, listing_id)


@router.delete("/users/{user_id}/favorites/{listing_id}", response_model=MessageResponse)
async def remove_favorite(user_id: int, listing_id: int, store: StoreDep) -> MessageResponse:
    if not await store.remove_from_favorites(user_id, listing_id):
        raise NotFoundError("favorite", listing_id)
    return MessageResponse(message="Removed from favorites")


@router.get("/users/{user_id}/favorites/{listing_id}/check", response_model=FavoriteStatus)
async def check_favorite(user_id: int, listing_id: int, store: StoreDep) -> FavoriteStatus:
    return FavoriteStatus(is_favorite=await store.is_favorite(user_id, listing_id))
