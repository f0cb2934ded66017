"""Routers package."""
from app.routers.library_router import router as library_router, set_library_handler

__all__ = ["library_router", "set_library_handler"]
