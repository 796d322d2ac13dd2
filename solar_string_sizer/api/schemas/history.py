from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class HistoryEntryResponse(BaseModel):
    """Serialized representation of a stored sizing run."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    label: str
    is_compatible: bool
    inputs: Dict[str, Any]
    result: Dict[str, Any]
    created_at: datetime


class HistoryClearResponse(BaseModel):
    deleted: int
