"""Upstream API clients."""
from app.api.affluences_client import AffluencesAPIClient, DEFAULT_HEADERS

__all__ = ["AffluencesAPIClient", "DEFAULT_HEADERS"]
