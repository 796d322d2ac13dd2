"""
String sizing API endpoints.

Runs the sizing calculation on inline specs or on equipment referenced by
name (catalog entries, or built-in presets for modules), and renders the
technical PDF report. Out-of-range electrical values are never rejected
here: they come back as diagnostics in the result.
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from ...application import InvalidSizingInput, SizingApplication, UnknownEquipmentError
from ...presets import list_module_presets
from ...reporting import slugify
from .. import dependencies
from ..schemas import sizing as sizing_schemas

router = APIRouter(prefix="/api", tags=["sizing"])


@router.post("/sizing", response_model=sizing_schemas.SizingResponse)
def size_string(
    payload: sizing_schemas.SizingRequest,
    app_service: SizingApplication = Depends(dependencies.get_application_service),
) -> sizing_schemas.SizingResponse:
    """
    Compute the admissible series string length for a module/inverter pair.

    Args:
        payload: Inline specs and/or equipment names, site temperatures,
            optional label and history flag.
        app_service: Sizing application service (dependency injected).

    Returns:
        SizingResponse with the resolved inputs, the sizing result (bounds,
        corrected voltages, compatibility, warnings and field highlights), the
        suggested string length and the history id when recorded.

    Raises:
        HTTPException 404: If a referenced module or inverter is unknown.
        HTTPException 400: If a named record cannot be turned into specs.

    Example:
        ```python
        # POST /api/sizing
        {
            "module_name": "Canadian Solar HiKu6 CS6W-550MS",
            "inverter": {
                "max_input_voltage": 1000, "min_mppt_voltage": 200,
                "max_mppt_voltage": 850, "max_input_current": 15
            },
            "site": {"min_temp": -10, "max_temp": 40}
        }

        # Response (excerpt)
        {"result": {"min_modules": 6, "max_modules": 18, "is_compatible": true, ...}}
        ```
    """
    try:
        summary = app_service.size_payload(payload.to_payload())
    except UnknownEquipmentError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidSizingInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return sizing_schemas.SizingResponse(**summary)


@router.post("/sizing/report", response_class=Response)
def size_string_report(
    payload: sizing_schemas.ReportRequest,
    app_service: SizingApplication = Depends(dependencies.get_application_service),
) -> Response:
    """
    Render the technical PDF report for a sizing request.

    The PDF is generated in memory and streamed back; nothing is written to
    disk. When ``record`` is true the run is also stored in the history.

    Returns:
        ``application/pdf`` response with a download filename derived from
        the display name.
    """
    try:
        module, inverter, site = app_service.build_inputs(payload.to_payload())
    except UnknownEquipmentError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidSizingInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    display_name = payload.display_name or payload.label
    result, pdf_bytes = app_service.render_report(module, inverter, site, display_name=display_name)
    if payload.record and app_service.persistence:
        app_service.persistence.record_history(
            display_name or module.name or "Custom Module", module, inverter, site, result
        )

    slug = slugify(display_name or module.name or "report") or "report"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="Report_{slug}.pdf"'},
    )


@router.get("/presets/modules", response_model=list[sizing_schemas.ModulePresetResponse])
def list_presets(manufacturer: str | None = None) -> list[sizing_schemas.ModulePresetResponse]:
    """
    List built-in module presets, optionally filtered by manufacturer.

    Presets are always available, even when the catalog is empty, and can be
    referenced by name through ``module_name`` in sizing requests.
    """
    return [
        sizing_schemas.ModulePresetResponse(
            manufacturer=preset.manufacturer,
            name=preset.name,
            specs=sizing_schemas.ModuleSpecsPayload(**asdict(preset.specs)),
        )
        for preset in list_module_presets(manufacturer)
    ]
