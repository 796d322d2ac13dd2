"""
Pydantic schemas for the string sizing API.

Organized by domain:
- sizing: sizing requests/results, presets and datasheet extraction
- catalog: module and inverter catalog entries
- history: stored sizing runs
"""

from __future__ import annotations

from .catalog import InverterCreate, InverterResponse, ModuleCreate, ModuleResponse
from .history import HistoryClearResponse, HistoryEntryResponse
from .sizing import (
    ExtractionRequest,
    ExtractionResponse,
    InverterSpecsPayload,
    ModulePresetResponse,
    ModuleSpecsPayload,
    ReportRequest,
    SiteConditionsPayload,
    SizingIssueResponse,
    SizingRequest,
    SizingResponse,
    SizingResultResponse,
)

__all__ = [
    "ModuleCreate",
    "ModuleResponse",
    "InverterCreate",
    "InverterResponse",
    "HistoryEntryResponse",
    "HistoryClearResponse",
    "ModuleSpecsPayload",
    "InverterSpecsPayload",
    "SiteConditionsPayload",
    "SizingRequest",
    "ReportRequest",
    "SizingIssueResponse",
    "SizingResultResponse",
    "SizingResponse",
    "ModulePresetResponse",
    "ExtractionRequest",
    "ExtractionResponse",
]
