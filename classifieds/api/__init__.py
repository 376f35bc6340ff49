"""HTTP surface of the marketplace: the FastAPI app factory and its routes."""

from classifieds.api.app import create_app

__all__ = ["create_app"]
