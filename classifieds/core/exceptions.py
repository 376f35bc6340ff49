"""Classifieds exception taxonomy.

Every custom exception inherits from :class:`ClassifiedsError`.  Exceptions
are organised by the kind of failure so the request layer can translate each
one to a single HTTP status without inspecting messages:

    Layer hierarchy
    ---------------
    ClassifiedsError
    ├── ConfigError
    ├── InputValidationError        → 400
    ├── StorageError
    │   ├── NotFoundError           → 404
    │   ├── DuplicateUsernameError  → 409
    │   └── StoreClosedError        → 503
    └── InternalError               → 500

Store *reads* never raise for missing data; they return ``None`` / ``False``
and the caller decides whether that is a :class:`NotFoundError`.

Usage:

    from classifieds.core.exceptions import NotFoundError

    listing = await store.get_listing(listing_id)
    if listing is None:
        raise NotFoundError("listing", listing_id)
"""

from __future__ import annotations

import logging
from typing import Any

__all__ = [
    "ClassifiedsError",
    # Config
    "ConfigError",
    # Input
    "InputValidationError",
    # Storage
    "StorageError",
    "NotFoundError",
    "DuplicateUsernameError",
    "StoreClosedError",
    # Unexpected
    "InternalError",
]

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class ClassifiedsError(Exception):
    """Root exception for all classifieds errors.

    Catch this to handle any application-level error uniformly.  Prefer
    catching the specific subclasses wherever possible.
    """


# ---------------------------------------------------------------------------
# Config layer
# ---------------------------------------------------------------------------


class ConfigError(ClassifiedsError):
    """Raised when the application configuration is invalid or incomplete.

    Examples:
        - ``API_PORT`` is outside 1–65535.
        - ``LOG_FORMAT`` is neither ``text`` nor ``json``.
    """


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputValidationError(ClassifiedsError):
    """Raised when input fails shape or required-field constraints.

    Distinct from :class:`NotFoundError`: the request itself is malformed,
    regardless of what the store contains.

    Args:
        message: Human-readable summary (e.g. ``"Invalid listing data"``).
        errors: Field-level detail, one dict per violation with at least
            ``loc`` and ``msg`` keys.
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)


# ---------------------------------------------------------------------------
# Storage layer
# ---------------------------------------------------------------------------


class StorageError(ClassifiedsError):
    """Base class for errors raised by a marketplace store."""


class NotFoundError(StorageError):
    """Raised when a referenced entity does not exist.

    Args:
        entity: Entity kind (``"listing"``, ``"user"``, ``"favorite"``, …).
        entity_id: The identifier that failed to resolve.
    """

    def __init__(self, entity: str, entity_id: int) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} not found: {entity_id!r}")


class DuplicateUsernameError(StorageError):
    """Raised when creating a user whose username is already taken.

    Args:
        username: The conflicting username.
    """

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username already exists: {username!r}")


class StoreClosedError(StorageError):
    """Raised when an operation is attempted on a store after shutdown."""

    def __init__(self) -> None:
        super().__init__("Store has been closed")


# ---------------------------------------------------------------------------
# Unexpected failures
# ---------------------------------------------------------------------------


class InternalError(ClassifiedsError):
    """Raised for unexpected failures that are neither bad input nor missing data.

    The request layer logs these with a traceback and answers with a generic
    500 so internals are not leaked to clients.
    """
