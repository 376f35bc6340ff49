"""User operations over :class:`~classifieds.storage.tables.EntityTables`."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from classifieds.core.exceptions import DuplicateUsernameError
from classifieds.core.ids import EntityKind
from classifieds.core.models import User, UserCreate, validate_input
from classifieds.storage.tables import EntityTables

__all__ = ["UserStore"]

logger = logging.getLogger(__name__)


class UserStore:
    """Create and look up users.  Usernames are unique and case-sensitive."""

    def __init__(self, tables: EntityTables) -> None:
        self._tables = tables

    async def get_user(self, user_id: int) -> User | None:
        async with self._tables.guard() as t:
            return t.users.get(user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        async with self._tables.guard() as t:
            user_id = t.usernames.get(username)
            return None if user_id is None else t.users.get(user_id)

    async def create_user(self, data: UserCreate | Mapping[str, Any]) -> User:
        """Insert a new user.

        Raises:
            :exc:`~classifieds.core.exceptions.InputValidationError`: If
                *data* is a mapping that fails :class:`UserCreate`.
            :exc:`~classifieds.core.exceptions.DuplicateUsernameError`: If
                the username is taken.
        """
        payload = validate_input(UserCreate, data, "Invalid user data")
        async with self._tables.guard() as t:
            if payload.username in t.usernames:
                raise DuplicateUsernameError(payload.username)

            user_id = t.ids.next(EntityKind.USER)
            t.check_vacant(t.users, user_id, EntityKind.USER)
            user = User(id=user_id, **payload.model_dump())

            t.users[user_id] = user
            t.usernames[user.username] = user_id

        logger.debug("Created user %d (%s)", user_id, user.username)
        return user
