from __future__ import annotations

from functools import lru_cache

from ..application import SizingApplication
from ..db.session import init_db
from ..persistence import PersistenceService


@lru_cache()
def get_persistence_service() -> PersistenceService:
    """
    Provide a cached PersistenceService instance for API routes.
    """
    init_db()
    return PersistenceService()


def get_application_service() -> SizingApplication:
    """
    Provide a SizingApplication configured for API usage.
    """
    persistence = get_persistence_service()
    # Reports are streamed back by /api/sizing/report, never written to disk here
    return SizingApplication(persistence=persistence, save_reports=False)
