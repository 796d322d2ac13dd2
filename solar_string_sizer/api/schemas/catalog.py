"""
Equipment catalog schemas for API validation.

Catalog records keep their electrical values in a JSON ``specs`` column; the
response schemas lift those values to top-level fields so clients see a flat
record. Create schemas enforce plausible values because, unlike the sizing
form, a catalog entry is meant to be reused.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _lift_specs(values: Any, fields: tuple[str, ...]) -> Any:
    """
    Copy values from the ``specs`` JSON blob into top-level fields.

    Accepts plain dicts as well as ORM instances (read through attributes).
    Explicit top-level values win over the blob.
    """
    if isinstance(values, Mapping):
        data = dict(values)
    else:
        data = {
            "id": getattr(values, "id", None),
            "name": getattr(values, "name", None),
            "manufacturer": getattr(values, "manufacturer", None),
            "specs": getattr(values, "specs", None),
        }
    specs = data.get("specs")
    if isinstance(specs, Mapping):
        for field in fields:
            if data.get(field) is None and field in specs:
                data[field] = specs[field]
    return data


class ModuleCreate(BaseModel):
    """
    Schema for creating or updating a catalog module (upsert by name).

    Example:
        ```python
        {
            "name": "Longi Hi-MO 6 LR5-72HTH 580M",
            "manufacturer": "Longi Solar",
            "power": 580, "voc": 52.21, "vmp": 44.06,
            "isc": 14.2, "imp": 13.17,
            "temp_coeff_voc": -0.23, "temp_coeff_vmp": -0.29
        }
        ```
    """

    name: str = Field(..., min_length=1)
    manufacturer: Optional[str] = None
    power: float = Field(..., gt=0)
    voc: float = Field(..., gt=0)
    vmp: float = Field(..., gt=0)
    isc: float = Field(..., gt=0)
    imp: float = Field(..., gt=0)
    temp_coeff_voc: float
    temp_coeff_vmp: float

    @model_validator(mode="after")
    def check_operating_point(self) -> "ModuleCreate":
        if self.vmp >= self.voc:
            raise ValueError("vmp must be lower than voc")
        if self.imp >= self.isc:
            raise ValueError("imp must be lower than isc")
        return self


class ModuleResponse(BaseModel):
    """Catalog module with its specs lifted to top-level fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    manufacturer: Optional[str] = None
    power: Optional[float] = None
    voc: Optional[float] = None
    vmp: Optional[float] = None
    isc: Optional[float] = None
    imp: Optional[float] = None
    temp_coeff_voc: Optional[float] = None
    temp_coeff_vmp: Optional[float] = None
    specs: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def populate_from_specs(cls, values: Any) -> Any:
        return _lift_specs(
            values,
            ("power", "voc", "vmp", "isc", "imp", "temp_coeff_voc", "temp_coeff_vmp"),
        )


class InverterCreate(BaseModel):
    """Schema for creating or updating a catalog inverter (upsert by name)."""

    name: str = Field(..., min_length=1)
    manufacturer: Optional[str] = None
    max_input_voltage: float = Field(..., gt=0)
    min_mppt_voltage: float = Field(..., ge=0)
    max_mppt_voltage: float = Field(..., gt=0)
    max_input_current: float = Field(..., gt=0)

    @model_validator(mode="after")
    def check_mppt_window(self) -> "InverterCreate":
        if self.max_mppt_voltage <= self.min_mppt_voltage:
            raise ValueError("max_mppt_voltage must be greater than min_mppt_voltage")
        return self


class InverterResponse(BaseModel):
    """Catalog inverter with its specs lifted to top-level fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    manufacturer: Optional[str] = None
    max_input_voltage: Optional[float] = None
    min_mppt_voltage: Optional[float] = None
    max_mppt_voltage: Optional[float] = None
    max_input_current: Optional[float] = None
    specs: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def populate_from_specs(cls, values: Any) -> Any:
        return _lift_specs(
            values,
            ("max_input_voltage", "min_mppt_voltage", "max_mppt_voltage", "max_input_current"),
        )
