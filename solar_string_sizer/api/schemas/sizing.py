"""
Sizing request/response schemas.

Input schemas accept any float (including out-of-range values): validating the
electrical plausibility of the inputs is the job of the sizing calculation,
which reports problems as diagnostics instead of rejecting the request. This
lets a form post half-edited values and still get field highlights back.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class ModuleSpecsPayload(BaseModel):
    """Module electrical specs at STC."""

    name: Optional[str] = Field(default=None, description="Module model name")
    power: float = Field(..., description="Rated power (W)")
    voc: float = Field(..., description="Open-circuit voltage (V)")
    vmp: float = Field(..., description="Voltage at maximum power (V)")
    isc: float = Field(..., description="Short-circuit current (A)")
    imp: float = Field(..., description="Current at maximum power (A)")
    temp_coeff_voc: float = Field(..., description="Voc temperature coefficient (%/°C)")
    temp_coeff_vmp: float = Field(..., description="Vmp temperature coefficient (%/°C)")


class InverterSpecsPayload(BaseModel):
    """Inverter MPPT input limits."""

    name: Optional[str] = Field(default=None, description="Inverter model name")
    max_input_voltage: float = Field(..., description="Absolute DC input voltage ceiling (V)")
    min_mppt_voltage: float = Field(..., description="MPPT window lower bound (V)")
    max_mppt_voltage: float = Field(..., description="MPPT window upper bound (V)")
    max_input_current: float = Field(..., description="Rated DC input current (A)")


class SiteConditionsPayload(BaseModel):
    """Site ambient temperature extremes."""

    min_temp: float = Field(..., description="Minimum temperature (°C)")
    max_temp: float = Field(..., description="Maximum temperature (°C)")


class SizingRequest(BaseModel):
    """
    Payload for POST /api/sizing.

    Either an inline ``module`` or a ``module_name`` (catalog entry or built-in
    preset) must be given; likewise for the inverter (catalog only). The site
    is always inline.
    """

    module: Optional[ModuleSpecsPayload] = None
    module_name: Optional[str] = None
    inverter: Optional[InverterSpecsPayload] = None
    inverter_name: Optional[str] = None
    site: SiteConditionsPayload
    label: Optional[str] = Field(default=None, description="History/report display name")
    record: bool = Field(default=True, description="Store the run in the history")

    @model_validator(mode="after")
    def require_equipment(self) -> "SizingRequest":
        if self.module is None and not self.module_name:
            raise ValueError("Provide either 'module' or 'module_name'.")
        if self.inverter is None and not self.inverter_name:
            raise ValueError("Provide either 'inverter' or 'inverter_name'.")
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Convert to the mapping accepted by SizingApplication.size_payload."""
        return self.model_dump(exclude_none=True)


class ReportRequest(SizingRequest):
    """Payload for POST /api/sizing/report."""

    display_name: Optional[str] = Field(default=None, description="Module name printed on the report")
    record: bool = Field(default=False, description="Store the run in the history")


class SizingIssueResponse(BaseModel):
    code: str
    severity: str
    message: str
    fields: List[str]


class SizingResultResponse(BaseModel):
    """Serialized SizingResult."""

    min_modules: int
    max_modules: int
    voc_max: float
    vmp_min: float
    is_compatible: bool
    warnings: List[str]
    error_fields: List[str]
    warning_fields: List[str]
    issues: List[SizingIssueResponse]


class SizingResponse(BaseModel):
    """Response body of POST /api/sizing."""

    label: str
    module: ModuleSpecsPayload
    inverter: InverterSpecsPayload
    site: SiteConditionsPayload
    result: SizingResultResponse
    suggested_string_length: Optional[int] = None
    history_id: Optional[int] = None
    report_path: Optional[str] = None


class ModulePresetResponse(BaseModel):
    manufacturer: str
    name: str
    specs: ModuleSpecsPayload


class ExtractionRequest(BaseModel):
    """Datasheet text plus the current form values to merge into."""

    text: str = Field(..., description="Datasheet text (OCR or PDF text layer)")
    base: Optional[Dict[str, Any]] = Field(default=None, description="Current form values")


class ExtractionResponse(BaseModel):
    extracted: Dict[str, float]
    missing_fields: List[str]
    specs: Dict[str, Any]
