"""Classifieds marketplace: listings, search, buyer/seller messaging and favorites."""

__version__ = "0.1.0"
