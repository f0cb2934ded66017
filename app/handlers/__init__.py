"""Handlers package."""
from app.handlers.library_handler import LibraryHandler

__all__ = ["LibraryHandler"]
