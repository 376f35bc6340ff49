"""Core domain models, settings, logging configuration, and shared utilities."""

from classifieds.core.exceptions import (
    ClassifiedsError,
    ConfigError,
    DuplicateUsernameError,
    InputValidationError,
    InternalError,
    NotFoundError,
    StorageError,
    StoreClosedError,
)
from classifieds.core.logging_config import JsonFormatter, configure_logging
from classifieds.core.models import (
    Conversation,
    ConversationSummary,
    Favorite,
    FavoriteWithListing,
    Listing,
    ListingStatus,
    Message,
    User,
    UserProfile,
)
from classifieds.core.settings import Settings

__all__ = [
    # Logging
    "configure_logging",
    "JsonFormatter",
    # Domain models
    "User",
    "UserProfile",
    "Listing",
    "ListingStatus",
    "Conversation",
    "ConversationSummary",
    "Message",
    "Favorite",
    "FavoriteWithListing",
    # Settings
    "Settings",
    # Exceptions: base
    "ClassifiedsError",
    # Exceptions: config / input
    "ConfigError",
    "InputValidationError",
    # Exceptions: storage
    "StorageError",
    "NotFoundError",
    "DuplicateUsernameError",
    "StoreClosedError",
    # Exceptions: unexpected
    "InternalError",
]
