"""
Datasheet extraction API endpoints.

Turns datasheet text (OCR output or a PDF text layer) into spec values and
merges them into the current form values. Fields the parser cannot find keep
their previous value and are listed in ``missing_fields``.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException

from ...application import InvalidSizingInput, SizingApplication
from .. import dependencies
from ..schemas import sizing as sizing_schemas

router = APIRouter(prefix="/api", tags=["extraction"])


@router.post("/extract/{kind}", response_model=sizing_schemas.ExtractionResponse)
def extract_datasheet(
    kind: Literal["module", "inverter"],
    payload: sizing_schemas.ExtractionRequest,
    app_service: SizingApplication = Depends(dependencies.get_application_service),
) -> sizing_schemas.ExtractionResponse:
    """
    Extract module or inverter specs from datasheet text.

    Example:
        ```python
        # POST /api/extract/module
        {"text": "Voc 49.60 V  Vmp 41.70 V  Isc 14.00 A  Imp 13.20 A ..."}

        # Response (excerpt)
        {"extracted": {"voc": 49.6, "vmp": 41.7, ...}, "missing_fields": ["power"], ...}
        ```

    Raises:
        HTTPException 400: If ``base`` holds non-numeric values.
    """
    try:
        summary = app_service.extract(kind, payload.text, payload.base)
    except InvalidSizingInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return sizing_schemas.ExtractionResponse(**summary)
