"""Utility helpers."""
from app.utils.field_chain import FieldChain, MISSING
from app.utils.geo import haversine_km

__all__ = ["FieldChain", "MISSING", "haversine_km"]
