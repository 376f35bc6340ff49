"""Unit tests for conversations, messages and the unread ledger."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pytest

from classifieds.core.exceptions import InputValidationError
from classifieds.core.models import Listing, User
from classifieds.storage import MemoryStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Factories / helpers
# ---------------------------------------------------------------------------


@dataclass
class _Market:
    seller: User
    buyer: User
    listing: Listing


async def _make_user(store: MemoryStore, username: str) -> User:
    return await store.create_user(
        {"username": username, "password": "pw", "name": username.title(), "location": "Kraków"}
    )


async def _make_listing(store: MemoryStore, owner: User, title: str = "Rower") -> Listing:
    return await store.create_listing(
        {
            "title": title,
            "description": "Opis",
            "price": "100",
            "category": "sport",
            "location": owner.location,
            "ownerId": owner.id,
        }
    )


@pytest.fixture()
async def market(store: MemoryStore) -> _Market:
    seller = await _make_user(store, "seller")
    buyer = await _make_user(store, "buyer")
    listing = await _make_listing(store, seller)
    return _Market(seller=seller, buyer=buyer, listing=listing)


async def _open_thread(store: MemoryStore, market: _Market) -> int:
    conversation = await store.create_conversation(
        {"listingId": market.listing.id, "buyerId": market.buyer.id, "sellerId": market.seller.id}
    )
    return conversation.id


# ---------------------------------------------------------------------------
# create_conversation
# ---------------------------------------------------------------------------


class TestCreateConversation:
    async def test_creates_thread(self, store: MemoryStore, market: _Market) -> None:
        conversation_id = await _open_thread(store, market)
        conversation = await store.get_conversation(conversation_id)
        assert conversation is not None
        assert conversation.listing_id == market.listing.id
        assert conversation.buyer_id == market.buyer.id
        assert conversation.seller_id == market.seller.id

    async def test_idempotent_per_triple(self, store: MemoryStore, market: _Market) -> None:
        first = await _open_thread(store, market)
        second = await _open_thread(store, market)
        assert first == second
        assert len(await store.get_user_conversations(market.buyer.id)) == 1

    async def test_different_buyer_gets_new_thread(
        self, store: MemoryStore, market: _Market
    ) -> None:
        other = await _make_user(store, "other")
        first = await _open_thread(store, market)
        second = await store.create_conversation(
            {"listingId": market.listing.id, "buyerId": other.id, "sellerId": market.seller.id}
        )
        assert second.id != first

    async def test_same_buyer_and_seller_rejected(self, store: MemoryStore) -> None:
        with pytest.raises(InputValidationError):
            await store.create_conversation({"listingId": 1, "buyerId": 2, "sellerId": 2})

    async def test_unknown_conversation_is_none(self, store: MemoryStore) -> None:
        assert await store.get_conversation(404) is None


# ---------------------------------------------------------------------------
# send_message / get_conversation_messages
# ---------------------------------------------------------------------------


class TestMessages:
    async def test_messages_oldest_first(self, store: MemoryStore, market: _Market) -> None:
        cid = await _open_thread(store, market)
        for sender, text in ((market.buyer, "Dzień dobry"), (market.seller, "Witam"), (market.buyer, "Aktualne?")):
            await store.send_message({"conversationId": cid, "senderId": sender.id, "content": text})

        messages = await store.get_conversation_messages(cid)
        assert [m.content for m in messages] == ["Dzień dobry", "Witam", "Aktualne?"]
        assert messages[0].created_at < messages[1].created_at < messages[2].created_at

    async def test_send_bumps_last_message_at(self, store: MemoryStore, market: _Market) -> None:
        cid = await _open_thread(store, market)
        message = await store.send_message(
            {"conversationId": cid, "senderId": market.buyer.id, "content": "Hej"}
        )
        conversation = await store.get_conversation(cid)
        assert conversation is not None
        assert conversation.last_message_at == message.created_at

    async def test_empty_content_rejected(self, store: MemoryStore, market: _Market) -> None:
        cid = await _open_thread(store, market)
        with pytest.raises(InputValidationError):
            await store.send_message({"conversationId": cid, "senderId": market.buyer.id, "content": ""})
        assert await store.get_conversation_messages(cid) == []

    async def test_content_stored_exactly_as_sent(self, store: MemoryStore, market: _Market) -> None:
        cid = await _open_thread(store, market)
        sent = await store.send_message(
            {"conversationId": cid, "senderId": market.buyer.id, "content": "  hi\n"}
        )
        assert sent.content == "  hi\n"
        (stored,) = await store.get_conversation_messages(cid)
        assert stored.content == "  hi\n"

    async def test_unknown_conversation_stores_message(self, store: MemoryStore) -> None:
        message = await store.send_message({"conversationId": 99, "senderId": 1, "content": "Halo"})
        assert [m.id for m in await store.get_conversation_messages(99)] == [message.id]

    async def test_no_messages_is_empty(self, store: MemoryStore, market: _Market) -> None:
        cid = await _open_thread(store, market)
        assert await store.get_conversation_messages(cid) == []


# ---------------------------------------------------------------------------
# Inbox and unread ledger
# ---------------------------------------------------------------------------


class TestInbox:
    async def test_summary_joins(self, store: MemoryStore, market: _Market) -> None:
        cid = await _open_thread(store, market)
        await store.send_message({"conversationId": cid, "senderId": market.buyer.id, "content": "Hej"})

        (summary,) = await store.get_user_conversations(market.seller.id)
        assert summary.id == cid
        assert summary.listing.id == market.listing.id
        assert summary.other_user.id == market.buyer.id
        assert not hasattr(summary.other_user, "password")
        assert summary.last_message is not None
        assert summary.last_message.content == "Hej"

    async def test_no_messages_summary(self, store: MemoryStore, market: _Market) -> None:
        await _open_thread(store, market)
        (summary,) = await store.get_user_conversations(market.buyer.id)
        assert summary.last_message is None
        assert summary.unread_count == 0

    async def test_unread_counts_recipient_only(self, store: MemoryStore, market: _Market) -> None:
        cid = await _open_thread(store, market)
        for _ in range(3):
            await store.send_message({"conversationId": cid, "senderId": market.buyer.id, "content": "?"})

        (seller_view,) = await store.get_user_conversations(market.seller.id)
        (buyer_view,) = await store.get_user_conversations(market.buyer.id)
        assert seller_view.unread_count == 3
        assert buyer_view.unread_count == 0

    async def test_mark_read_resets(self, store: MemoryStore, market: _Market) -> None:
        cid = await _open_thread(store, market)
        await store.send_message({"conversationId": cid, "senderId": market.buyer.id, "content": "?"})
        await store.mark_messages_as_read(cid, market.seller.id)

        (seller_view,) = await store.get_user_conversations(market.seller.id)
        assert seller_view.unread_count == 0

        await store.send_message({"conversationId": cid, "senderId": market.buyer.id, "content": "!"})
        (seller_view,) = await store.get_user_conversations(market.seller.id)
        assert seller_view.unread_count == 1

    async def test_mark_read_without_unread_is_harmless(
        self, store: MemoryStore, market: _Market
    ) -> None:
        cid = await _open_thread(store, market)
        await store.mark_messages_as_read(cid, market.buyer.id)
        (buyer_view,) = await store.get_user_conversations(market.buyer.id)
        assert buyer_view.unread_count == 0

    async def test_most_recent_activity_first(self, store: MemoryStore, market: _Market) -> None:
        second_listing = await _make_listing(store, market.seller, title="Buty")
        first = await _open_thread(store, market)
        second = (
            await store.create_conversation(
                {"listingId": second_listing.id, "buyerId": market.buyer.id, "sellerId": market.seller.id}
            )
        ).id
        assert [s.id for s in await store.get_user_conversations(market.buyer.id)] == [second, first]

        await store.send_message({"conversationId": first, "senderId": market.buyer.id, "content": "Hej"})
        assert [s.id for s in await store.get_user_conversations(market.buyer.id)] == [first, second]

    async def test_dangling_listing_skipped(self, store: MemoryStore, market: _Market) -> None:
        await _open_thread(store, market)
        await store.delete_listing(market.listing.id)
        assert await store.get_user_conversations(market.buyer.id) == []

    async def test_unknown_user_empty(self, store: MemoryStore, market: _Market) -> None:
        await _open_thread(store, market)
        assert await store.get_user_conversations(999) == []
