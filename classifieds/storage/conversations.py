"""Conversation and message operations with unread bookkeeping.

Rules enforced here
-------------------
* **One thread per triple.**  :meth:`ConversationStore.create_conversation`
  returns the existing conversation for an identical
  ``(listing_id, buyer_id, seller_id)`` instead of creating a second one.
* **Activity ordering.**  Sending a message moves the conversation's
  ``last_message_at`` to the message's ``created_at``; inboxes are sorted on
  it, most recent first.
* **Unread ledger.**  Each delivered message adds one to the
  ``(conversation, recipient)`` counter, where the recipient is whichever
  participant did not send it.  The sender's counter is untouched.
  :meth:`ConversationStore.mark_messages_as_read` resets a counter to zero.
  The ledger counts messages; it does not remember *which* ones were unread.

A message sent to an unknown conversation id is still stored (it has nowhere
to bubble up to, so no timestamp or ledger update happens) and a warning is
logged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from classifieds.core.ids import EntityKind
from classifieds.core.models import (
    Conversation,
    ConversationCreate,
    ConversationSummary,
    Message,
    MessageCreate,
    validate_input,
)
from classifieds.storage.tables import EntityTables

__all__ = ["ConversationStore"]

logger = logging.getLogger(__name__)


class ConversationStore:
    """Conversation/message half of the marketplace contract."""

    def __init__(self, tables: EntityTables) -> None:
        self._tables = tables

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        async with self._tables.guard() as t:
            return t.conversations.get(conversation_id)

    async def get_conversation_messages(self, conversation_id: int) -> list[Message]:
        """Messages of one conversation, oldest first (chat display order)."""
        async with self._tables.guard() as t:
            return self._messages_of(t, conversation_id)

    async def get_user_conversations(self, user_id: int) -> list[ConversationSummary]:
        """The inbox of *user_id*, most recently active first.

        Each conversation in which the user is buyer or seller is joined
        with its listing, the other participant, the newest message (if any)
        and the user's unread count.  Conversations whose listing or other
        participant no longer resolves are left out.
        """
        async with self._tables.guard() as t:
            summaries: list[ConversationSummary] = []
            for conversation in t.conversations.values():
                if not conversation.involves(user_id):
                    continue

                listing = t.listings.get(conversation.listing_id)
                other_user = t.users.get(conversation.other_participant(user_id))
                if listing is None or other_user is None:
                    logger.debug(
                        "Skipping conversation %d for user %d: dangling %s",
                        conversation.id,
                        user_id,
                        "listing" if listing is None else "participant",
                    )
                    continue

                messages = self._messages_of(t, conversation.id)
                summaries.append(
                    ConversationSummary(
                        **conversation.model_dump(),
                        listing=listing,
                        other_user=other_user.profile(),
                        last_message=messages[-1] if messages else None,
                        unread_count=t.unread_count(conversation.id, user_id),
                    )
                )

        summaries.sort(key=lambda summary: summary.last_message_at, reverse=True)
        return summaries

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_conversation(
        self, data: ConversationCreate | Mapping[str, Any]
    ) -> Conversation:
        """Return the conversation for the triple, creating it if absent.

        Idempotent: a second call with the same ``(listing_id, buyer_id,
        seller_id)`` returns the first conversation unchanged.
        """
        payload = validate_input(ConversationCreate, data, "Invalid conversation data")
        key = (payload.listing_id, payload.buyer_id, payload.seller_id)

        async with self._tables.guard() as t:
            existing_id = t.conversation_keys.get(key)
            if existing_id is not None:
                return t.conversations[existing_id]

            conversation_id = t.ids.next(EntityKind.CONVERSATION)
            t.check_vacant(t.conversations, conversation_id, EntityKind.CONVERSATION)
            conversation = Conversation(
                id=conversation_id,
                last_message_at=t.clock.now(),
                **payload.model_dump(),
            )

            t.conversations[conversation_id] = conversation
            t.conversation_keys[key] = conversation_id

        logger.debug(
            "Created conversation %d (listing=%d buyer=%d seller=%d)",
            conversation_id,
            *key,
        )
        return conversation

    async def send_message(self, data: MessageCreate | Mapping[str, Any]) -> Message:
        """Append a message and update the thread's activity and unread ledger.

        All three writes (message, conversation timestamp, ledger entry) are
        computed first and committed together under the store lock.
        """
        payload = validate_input(MessageCreate, data, "Invalid message data")

        async with self._tables.guard() as t:
            message_id = t.ids.next(EntityKind.MESSAGE)
            t.check_vacant(t.messages, message_id, EntityKind.MESSAGE)
            message = Message(id=message_id, created_at=t.clock.now(), **payload.model_dump())

            conversation = t.conversations.get(payload.conversation_id)
            touched: Conversation | None = None
            ledger_key: tuple[int, int] | None = None
            if conversation is not None:
                touched = conversation.model_copy(
                    update={"last_message_at": message.created_at}
                )
                ledger_key = (conversation.id, conversation.other_participant(payload.sender_id))

            # Commit.
            t.messages[message_id] = message
            t.conversation_messages.setdefault(payload.conversation_id, []).append(message_id)
            if touched is not None and ledger_key is not None:
                t.conversations[touched.id] = touched
                t.unread[ledger_key] = t.unread.get(ledger_key, 0) + 1

        if conversation is None:
            logger.warning(
                "Message %d stored for unknown conversation %d; no unread update",
                message_id,
                payload.conversation_id,
            )
        else:
            logger.debug(
                "Message %d in conversation %d from user %d",
                message_id,
                payload.conversation_id,
                payload.sender_id,
            )
        return message

    async def mark_messages_as_read(self, conversation_id: int, user_id: int) -> None:
        """Reset the unread counter of *user_id* in *conversation_id* to zero."""
        async with self._tables.guard() as t:
            t.unread[(conversation_id, user_id)] = 0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _messages_of(t: EntityTables, conversation_id: int) -> list[Message]:
        messages = [
            t.messages[message_id]
            for message_id in t.conversation_messages.get(conversation_id, ())
            if message_id in t.messages
        ]
        messages.sort(key=lambda message: message.created_at)
        return messages
