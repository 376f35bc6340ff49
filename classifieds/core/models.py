"""Classifieds domain models.

Two families of pydantic models live here:

* **Records** (:class:`User`, :class:`Listing`, :class:`Conversation`,
  :class:`Message`, :class:`Favorite`): what the store holds and hands out.
  They are **frozen**: callers can read them freely but the only way to
  change state is through a store operation, which swaps in a new copy via
  ``model_copy(update=...)``.
* **Inputs** (:class:`UserCreate`, :class:`ListingCreate`,
  :class:`ListingUpdate`, :class:`ConversationCreate`,
  :class:`MessageCreate`): request shapes validated before anything reaches
  the store.

Field names are snake_case in Python and camelCase on the wire
(``ownerId``, ``favoritesCount``, ``createdAt``, …).  Both spellings are
accepted on input.

Typical usage::

    from classifieds.core.models import ListingCreate, validate_input

    data = validate_input(ListingCreate, request_json, "Invalid listing data")
    listing = await store.create_listing(data)
    listing.model_dump(mode="json", by_alias=True)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from classifieds.core.exceptions import InputValidationError

__all__ = [
    "ListingStatus",
    "User",
    "UserCreate",
    "UserProfile",
    "Listing",
    "ListingCreate",
    "ListingUpdate",
    "Conversation",
    "ConversationCreate",
    "Message",
    "MessageCreate",
    "Favorite",
    "ConversationSummary",
    "FavoriteWithListing",
    "normalise_price",
    "validate_input",
]

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

#: ``decimal(10, 2)``: at most 8 integer digits and 2 fractional digits.
_PRICE_MAX_INTEGER_DIGITS = 8
_PRICE_MAX_FRACTION_DIGITS = 2
_PRICE_RE = re.compile(r"(\d+)(?:\.(\d+))?")

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ListingStatus(StrEnum):
    """Lifecycle state of a listing.

    No transition table is enforced: any status may follow any other.
    """

    ACTIVE = "active"
    SOLD = "sold"
    PAUSED = "paused"


# ---------------------------------------------------------------------------
# Shared configuration and helpers
# ---------------------------------------------------------------------------

_RECORD_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)
_INPUT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)


def normalise_price(value: object) -> str:
    """Return *value* as an exact decimal string, or raise ``ValueError``.

    Accepts strings such as ``"299"`` or ``"12.50"`` and integers.  Floats
    are rejected because they may already have lost precision.  The returned
    string is the input text itself (stripped), never a re-rendered number,
    so ``"1200"`` stays ``"1200"`` and ``"1.50"`` stays ``"1.50"``.
    """
    if isinstance(value, (bool, float)):
        raise ValueError("price must be a decimal string, not a float")
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        raise ValueError("price must be a decimal string")

    text = value.strip()
    match = _PRICE_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"price is not a non-negative decimal number: {value!r}")

    integer_part, fraction_part = match.group(1), match.group(2) or ""
    if len(integer_part.lstrip("0")) > _PRICE_MAX_INTEGER_DIGITS:
        raise ValueError(f"price allows at most {_PRICE_MAX_INTEGER_DIGITS} integer digits")
    if len(fraction_part) > _PRICE_MAX_FRACTION_DIGITS:
        raise ValueError(f"price allows at most {_PRICE_MAX_FRACTION_DIGITS} decimal places")
    return text


def _require_text(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        raise ValueError("must not be blank")
    return value


def validate_input(
    model_cls: type[_ModelT],
    payload: _ModelT | Mapping[str, Any],
    message: str = "Invalid input",
) -> _ModelT:
    """Coerce *payload* into *model_cls*, raising :class:`InputValidationError`.

    An instance of *model_cls* is returned unchanged.  A mapping is validated
    and any pydantic error is re-raised with field-level detail (``loc``,
    ``msg``, ``type``) so the request layer can answer 400.
    """
    if isinstance(payload, model_cls):
        return payload
    try:
        return model_cls.model_validate(payload)
    except ValidationError as exc:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        logger.debug("%s: %d field error(s)", message, len(errors))
        raise InputValidationError(message, errors) from exc


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Input shape for :meth:`MarketplaceStore.create_user`."""

    model_config = _INPUT_CONFIG

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    avatar: str | None = None

    @field_validator("username", "password", "name", "location", mode="before")
    @classmethod
    def _non_blank(cls, v: object) -> object:
        return _require_text(v)


class UserProfile(BaseModel):
    """Public view of a user: everything except the password."""

    model_config = _RECORD_CONFIG

    id: int
    username: str
    name: str
    location: str
    avatar: str | None = None


class User(UserProfile):
    """A marketplace user record.  Only :meth:`profile` is ever sent to clients."""

    password: str = Field(..., repr=False)

    def profile(self) -> UserProfile:
        return UserProfile.model_validate(self.model_dump(exclude={"password"}))


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class ListingCreate(BaseModel):
    """Input shape for :meth:`MarketplaceStore.create_listing`.

    Everything except ``id``, ``status``, ``views``, ``favoritesCount`` and
    ``createdAt``, which the store assigns.
    """

    model_config = _INPUT_CONFIG

    title: str
    description: str
    price: str
    category: str
    location: str
    owner_id: int = Field(..., ge=1)
    images: tuple[str, ...] = ()
    negotiable: bool = False

    @field_validator("price", mode="before")
    @classmethod
    def _check_price(cls, v: object) -> str:
        return normalise_price(v)

    @field_validator("title", "description", "category", "location", mode="before")
    @classmethod
    def _non_blank(cls, v: object) -> object:
        return _require_text(v)

    @field_validator("images", mode="before")
    @classmethod
    def _none_to_empty(cls, v: object) -> object:
        """``images: null`` means no images."""
        return () if v is None else v


class ListingUpdate(BaseModel):
    """Partial update for a listing.  Only fields explicitly sent are merged.

    Store-owned fields (``id``, ``views``, ``favoritesCount``, ``createdAt``)
    are not part of this shape and are silently ignored if present.
    """

    model_config = _INPUT_CONFIG

    title: str | None = None
    description: str | None = None
    price: str | None = None
    category: str | None = None
    location: str | None = None
    owner_id: int | None = Field(None, ge=1)
    images: tuple[str, ...] | None = None
    negotiable: bool | None = None
    status: ListingStatus | None = None

    @field_validator("price", mode="before")
    @classmethod
    def _check_price(cls, v: object) -> object:
        return None if v is None else normalise_price(v)

    @field_validator("title", "description", "category", "location", mode="before")
    @classmethod
    def _non_blank(cls, v: object) -> object:
        return _require_text(v)

    @model_validator(mode="after")
    def _no_explicit_nulls(self) -> ListingUpdate:
        """Reject ``null`` for fields that are required on the record."""
        nulled = sorted(
            name for name in self.model_fields_set if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"fields may be omitted but not set to null: {', '.join(nulled)}")
        return self

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)


class Listing(BaseModel):
    """A for-sale item post.

    ``favorites_count`` always equals the number of live favorites that
    reference this listing; only the favorite operations change it.
    """

    model_config = _RECORD_CONFIG

    id: int
    title: str
    description: str
    price: str
    category: str
    location: str
    owner_id: int
    images: tuple[str, ...] = ()
    negotiable: bool = False
    status: ListingStatus = ListingStatus.ACTIVE
    views: int = Field(0, ge=0)
    favorites_count: int = Field(0, ge=0)
    created_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status == ListingStatus.ACTIVE

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on title or description."""
        if not query:
            return True
        needle = query.casefold()
        return needle in self.title.casefold() or needle in self.description.casefold()

    def in_category(self, category: str | None) -> bool:
        """``True`` when *category* is unset, the ``"all"`` sentinel, or equal ignoring case."""
        if not category or category.casefold() == "all":
            return True
        return self.category.casefold() == category.casefold()


# ---------------------------------------------------------------------------
# Conversations and messages
# ---------------------------------------------------------------------------


class ConversationCreate(BaseModel):
    """Input shape for :meth:`MarketplaceStore.create_conversation`."""

    model_config = _INPUT_CONFIG

    listing_id: int = Field(..., ge=1)
    buyer_id: int = Field(..., ge=1)
    seller_id: int = Field(..., ge=1)

    @model_validator(mode="after")
    def _distinct_participants(self) -> ConversationCreate:
        if self.buyer_id == self.seller_id:
            raise ValueError("buyerId and sellerId must differ")
        return self


class Conversation(BaseModel):
    """A buyer/seller thread scoped to one listing."""

    model_config = _RECORD_CONFIG

    id: int
    listing_id: int
    buyer_id: int
    seller_id: int
    last_message_at: datetime

    def involves(self, user_id: int) -> bool:
        return user_id in (self.buyer_id, self.seller_id)

    def other_participant(self, user_id: int) -> int:
        """Return the participant that is not *user_id*."""
        return self.seller_id if user_id == self.buyer_id else self.buyer_id


class MessageCreate(BaseModel):
    """Input shape for :meth:`MarketplaceStore.send_message`."""

    model_config = _INPUT_CONFIG

    conversation_id: int = Field(..., ge=1)
    sender_id: int = Field(..., ge=1)
    content: str = Field(..., min_length=1)

    @field_validator("content", mode="before")
    @classmethod
    def _non_blank(cls, v: object) -> object:
        """Reject whitespace-only content; anything else is stored as sent."""
        return _require_text(v)


class Message(BaseModel):
    """One chat message.  Immutable once created."""

    model_config = _RECORD_CONFIG

    id: int
    conversation_id: int
    sender_id: int
    content: str
    created_at: datetime


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------


class Favorite(BaseModel):
    """A user's bookmark of a listing."""

    model_config = _RECORD_CONFIG

    id: int
    user_id: int
    listing_id: int


# ---------------------------------------------------------------------------
# Joined read models
# ---------------------------------------------------------------------------


class ConversationSummary(Conversation):
    """A conversation as seen by one participant in their inbox."""

    listing: Listing
    other_user: UserProfile
    last_message: Message | None = None
    unread_count: int = Field(0, ge=0)


class FavoriteWithListing(Favorite):
    """A favorite joined with the listing it points at."""

    listing: Listing
