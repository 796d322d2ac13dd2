"""
API route modules for the string sizing application.

This package organizes FastAPI route handlers by domain:
- sizing: String sizing, PDF reports and built-in module presets
- catalog: Module and inverter catalog management
- history: Stored sizing runs
- extraction: Datasheet text parsing

All routers are prefixed with /api when included in the main application.
"""

from __future__ import annotations

from .catalog import router as catalog_router
from .extraction import router as extraction_router
from .history import router as history_router
from .sizing import router as sizing_router

__all__ = [
    "sizing_router",
    "catalog_router",
    "history_router",
    "extraction_router",
]
