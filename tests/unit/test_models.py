"""Unit tests for the domain models in :mod:`classifieds.core.models`.

Covers:
- price normalisation (exact decimal strings, ``decimal(10, 2)`` bounds),
- :class:`ListingCreate` defaults and required fields,
- :class:`ListingUpdate` partial semantics,
- conversation / message input rules,
- :func:`validate_input` error translation,
- record immutability and the public user profile.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from classifieds.core.exceptions import InputValidationError
from classifieds.core.models import (
    ConversationCreate,
    Listing,
    ListingCreate,
    ListingStatus,
    ListingUpdate,
    MessageCreate,
    User,
    UserCreate,
    normalise_price,
    validate_input,
)

logger = logging.getLogger(__name__)

_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Factories / helpers
# ---------------------------------------------------------------------------


def _listing_payload(**overrides: object) -> dict[str, object]:
    """Return a valid camelCase listing payload with overridable fields."""
    payload: dict[str, object] = {
        "title": "Rower miejski",
        "description": "Prawie nowy, mało jeżdżony.",
        "price": "450.00",
        "category": "sport",
        "location": "Kraków",
        "ownerId": 1,
    }
    payload.update(overrides)
    return payload


def _make_listing(**overrides: object) -> Listing:
    fields: dict[str, object] = {
        "id": 1,
        "title": "Rower miejski",
        "description": "Prawie nowy, mało jeżdżony.",
        "price": "450.00",
        "category": "sport",
        "location": "Kraków",
        "owner_id": 1,
        "created_at": _NOW,
    }
    fields.update(overrides)
    return Listing(**fields)


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------


class TestNormalisePrice:
    @pytest.mark.parametrize("value", ["0", "299", "12.5", "12.50", "99999999.99", " 1200 "])
    def test_accepts_decimal_strings(self, value: str) -> None:
        assert normalise_price(value) == value.strip()

    def test_integer_becomes_string(self) -> None:
        assert normalise_price(299) == "299"

    def test_input_text_is_kept(self) -> None:
        assert normalise_price("1.50") == "1.50"

    @pytest.mark.parametrize("value", ["", "abc", "-5", "1e3", "1,50", "12.", ".5"])
    def test_rejects_non_decimal_text(self, value: str) -> None:
        with pytest.raises(ValueError, match="not a non-negative decimal"):
            normalise_price(value)

    def test_rejects_too_many_integer_digits(self) -> None:
        with pytest.raises(ValueError, match="integer digits"):
            normalise_price("123456789")

    def test_leading_zeros_do_not_count_as_digits(self) -> None:
        assert normalise_price("0012345678") == "0012345678"

    def test_rejects_too_many_fraction_digits(self) -> None:
        with pytest.raises(ValueError, match="decimal places"):
            normalise_price("1.234")

    @pytest.mark.parametrize("value", [1.5, True, None, ["1"]])
    def test_rejects_non_string_types(self, value: object) -> None:
        with pytest.raises(ValueError):
            normalise_price(value)


# ---------------------------------------------------------------------------
# ListingCreate
# ---------------------------------------------------------------------------


class TestListingCreate:
    def test_camel_case_payload_accepted(self) -> None:
        data = ListingCreate.model_validate(_listing_payload())
        assert data.owner_id == 1
        assert data.price == "450.00"

    def test_snake_case_names_accepted(self) -> None:
        payload = _listing_payload()
        payload["owner_id"] = payload.pop("ownerId")
        assert ListingCreate.model_validate(payload).owner_id == 1

    def test_defaults(self) -> None:
        data = ListingCreate.model_validate(_listing_payload())
        assert data.images == ()
        assert data.negotiable is False

    def test_null_images_means_none(self) -> None:
        data = ListingCreate.model_validate(_listing_payload(images=None))
        assert data.images == ()

    def test_images_list_becomes_tuple(self) -> None:
        data = ListingCreate.model_validate(_listing_payload(images=["a.jpg", "b.jpg"]))
        assert data.images == ("a.jpg", "b.jpg")

    @pytest.mark.parametrize("field", ["title", "description", "price", "category", "location", "ownerId"])
    def test_required_fields(self, field: str) -> None:
        payload = _listing_payload()
        del payload[field]
        with pytest.raises(ValidationError):
            ListingCreate.model_validate(payload)

    def test_blank_title_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must not be blank"):
            ListingCreate.model_validate(_listing_payload(title="   "))

    def test_float_price_rejected(self) -> None:
        with pytest.raises(ValidationError, match="not a float"):
            ListingCreate.model_validate(_listing_payload(price=12.5))

    def test_store_owned_fields_ignored(self) -> None:
        data = ListingCreate.model_validate(_listing_payload(views=99, id=7, status="sold"))
        assert "views" not in data.model_dump()
        assert "status" not in data.model_dump()


# ---------------------------------------------------------------------------
# ListingUpdate
# ---------------------------------------------------------------------------


class TestListingUpdate:
    def test_only_supplied_fields_are_changes(self) -> None:
        update = ListingUpdate.model_validate({"price": "500"})
        assert update.changes() == {"price": "500"}

    def test_empty_update_has_no_changes(self) -> None:
        assert ListingUpdate.model_validate({}).changes() == {}

    def test_status_parsed(self) -> None:
        update = ListingUpdate.model_validate({"status": "sold"})
        assert update.changes() == {"status": ListingStatus.SOLD}

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ListingUpdate.model_validate({"status": "archived"})

    def test_explicit_null_rejected(self) -> None:
        with pytest.raises(ValidationError, match="not set to null: title"):
            ListingUpdate.model_validate({"title": None})

    def test_store_owned_fields_ignored(self) -> None:
        update = ListingUpdate.model_validate({"views": 1000, "favoritesCount": 5})
        assert update.changes() == {}

    def test_invalid_price_rejected(self) -> None:
        with pytest.raises(ValidationError, match="decimal places"):
            ListingUpdate.model_validate({"price": "1.999"})


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class TestRecords:
    def test_listing_is_frozen(self) -> None:
        listing = _make_listing()
        with pytest.raises(ValidationError):
            listing.views = 10  # type: ignore[misc]

    def test_listing_serialises_camel_case(self) -> None:
        dumped = _make_listing().model_dump(mode="json", by_alias=True)
        assert {"ownerId", "favoritesCount", "createdAt"} <= dumped.keys()
        assert dumped["status"] == "active"

    def test_listing_matches_case_insensitively(self) -> None:
        listing = _make_listing(title="Tesla Model 3", description="Samochód")
        assert listing.matches("tesla")
        assert listing.matches("SAMOCHÓD")
        assert listing.matches("")
        assert not listing.matches("rower")

    @pytest.mark.parametrize("category", [None, "", "all", "ALL", "Sport"])
    def test_in_category_passes(self, category: str | None) -> None:
        assert _make_listing(category="sport").in_category(category)

    def test_in_category_blocks_other(self) -> None:
        assert not _make_listing(category="sport").in_category("obuwie")

    def test_is_active(self) -> None:
        assert _make_listing().is_active
        assert not _make_listing(status=ListingStatus.PAUSED).is_active

    def test_user_profile_drops_password(self) -> None:
        user = User(id=1, username="jan", password="secret", name="Jan", location="Gdańsk")
        profile = user.profile()
        assert "password" not in profile.model_dump()
        assert profile.username == "jan"
        assert "secret" not in repr(user)


# ---------------------------------------------------------------------------
# Conversations and messages
# ---------------------------------------------------------------------------


class TestConversationInputs:
    def test_buyer_and_seller_must_differ(self) -> None:
        with pytest.raises(ValidationError, match="must differ"):
            ConversationCreate.model_validate({"listingId": 1, "buyerId": 2, "sellerId": 2})

    def test_valid_conversation(self) -> None:
        data = ConversationCreate.model_validate({"listingId": 1, "buyerId": 2, "sellerId": 1})
        assert (data.listing_id, data.buyer_id, data.seller_id) == (1, 2, 1)

    def test_empty_message_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MessageCreate.model_validate({"conversationId": 1, "senderId": 2, "content": ""})

    def test_message_content_not_stripped(self) -> None:
        data = MessageCreate.model_validate({"conversationId": 1, "senderId": 2, "content": "  hi\n"})
        assert data.content == "  hi\n"

    def test_blank_username_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must not be blank"):
            UserCreate.model_validate(
                {"username": "  ", "password": "pw", "name": "Jan", "location": "Gdańsk"}
            )

    def test_password_kept_verbatim(self) -> None:
        data = UserCreate.model_validate(
            {"username": "jan", "password": " pw ", "name": "Jan", "location": "Gdańsk"}
        )
        assert data.password == " pw "

    def test_listing_description_kept_verbatim(self) -> None:
        data = ListingCreate.model_validate(_listing_payload(description="  Opis\n"))
        assert data.description == "  Opis\n"

    def test_whitespace_message_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MessageCreate.model_validate({"conversationId": 1, "senderId": 2, "content": "   "})


# ---------------------------------------------------------------------------
# validate_input
# ---------------------------------------------------------------------------


class TestValidateInput:
    def test_instance_passes_through(self) -> None:
        data = ListingCreate.model_validate(_listing_payload())
        assert validate_input(ListingCreate, data) is data

    def test_mapping_is_validated(self) -> None:
        data = validate_input(ListingCreate, _listing_payload())
        assert isinstance(data, ListingCreate)

    def test_errors_carry_field_detail(self) -> None:
        payload = _listing_payload()
        del payload["title"]
        with pytest.raises(InputValidationError, match="Invalid listing data") as excinfo:
            validate_input(ListingCreate, payload, "Invalid listing data")
        assert excinfo.value.errors[0]["loc"] == ["title"]
        assert excinfo.value.errors[0]["type"] == "missing"
