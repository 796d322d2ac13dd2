"""
Equipment catalog API endpoints.

Modules and inverters are upserted by name and stored with their electrical
values in a JSON ``specs`` field. Sizing requests can then reference them
through ``module_name``/``inverter_name``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...persistence import PersistenceService
from .. import dependencies
from ..schemas import catalog as catalog_schemas

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/modules", response_model=list[catalog_schemas.ModuleResponse])
def list_modules(
    persistence: PersistenceService = Depends(dependencies.get_persistence_service),
) -> list[catalog_schemas.ModuleResponse]:
    """List catalog modules sorted by name."""
    return persistence.list_modules()


@router.post("/modules", response_model=catalog_schemas.ModuleResponse)
def create_module(
    payload: catalog_schemas.ModuleCreate,
    persistence: PersistenceService = Depends(dependencies.get_persistence_service),
) -> catalog_schemas.ModuleResponse:
    """
    Create or update a module in the catalog.

    Upsert is based on exact name matching. Updating a module changes the
    specs used by every later sizing request that references it by name;
    history entries keep the values they were computed with.
    """
    return persistence.upsert_module(payload.model_dump())


@router.get("/inverters", response_model=list[catalog_schemas.InverterResponse])
def list_inverters(
    persistence: PersistenceService = Depends(dependencies.get_persistence_service),
) -> list[catalog_schemas.InverterResponse]:
    """List catalog inverters sorted by name."""
    return persistence.list_inverters()


@router.post("/inverters", response_model=catalog_schemas.InverterResponse)
def create_inverter(
    payload: catalog_schemas.InverterCreate,
    persistence: PersistenceService = Depends(dependencies.get_persistence_service),
) -> catalog_schemas.InverterResponse:
    """
    Create or update an inverter in the catalog.

    Example:
        ```python
        # POST /api/inverters
        {
            "name": "Huawei SUN2000-10KTL-M1",
            "manufacturer": "Huawei",
            "max_input_voltage": 1100,
            "min_mppt_voltage": 140,
            "max_mppt_voltage": 980,
            "max_input_current": 11
        }
        ```
    """
    return persistence.upsert_inverter(payload.model_dump())
