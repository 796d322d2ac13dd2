"""
Sizing history API endpoints.

The history keeps the most recent sizing runs (20 by default, see
``SOLAR_SIZER_HISTORY_LIMIT``), newest first.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from ...persistence import PersistenceService
from .. import dependencies
from ..schemas import history as history_schemas

router = APIRouter(prefix="/api", tags=["history"])


@router.get("/history", response_model=list[history_schemas.HistoryEntryResponse])
def list_history(
    limit: int | None = None,
    persistence: PersistenceService = Depends(dependencies.get_persistence_service),
) -> list[history_schemas.HistoryEntryResponse]:
    """
    List stored sizing runs, newest first.

    Args:
        limit: Optional maximum number of entries to return.
    """
    return persistence.list_history(limit=limit)


@router.get("/history/{entry_id}", response_model=history_schemas.HistoryEntryResponse)
def get_history_entry(
    entry_id: int,
    persistence: PersistenceService = Depends(dependencies.get_persistence_service),
) -> history_schemas.HistoryEntryResponse:
    """
    Retrieve one stored run with its full inputs and result.

    Raises:
        HTTPException 404: If the entry does not exist (or was trimmed).
    """
    entry = persistence.get_history_entry(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"History entry {entry_id} not found")
    return entry


@router.delete("/history/{entry_id}", status_code=204)
def delete_history_entry(
    entry_id: int,
    persistence: PersistenceService = Depends(dependencies.get_persistence_service),
) -> Response:
    if not persistence.delete_history_entry(entry_id):
        raise HTTPException(status_code=404, detail=f"History entry {entry_id} not found")
    return Response(status_code=204)


@router.delete("/history", response_model=history_schemas.HistoryClearResponse)
def clear_history(
    persistence: PersistenceService = Depends(dependencies.get_persistence_service),
) -> history_schemas.HistoryClearResponse:
    """Delete every stored run."""
    return history_schemas.HistoryClearResponse(deleted=persistence.clear_history())
