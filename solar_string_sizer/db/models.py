"""
SQLAlchemy database models for the equipment catalog and sizing history.

The catalog stores module and inverter datasheets that can be referenced by
name when sizing; the history keeps snapshots of past sizing runs (inputs plus
result) for the most recent runs only. All models inherit automatic timestamp
tracking via TimestampMixin.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    func,
)

from .session import Base


class TimestampMixin:
    """
    Mixin adding automatic created_at and updated_at timestamps.

    Notes:
        - Timestamps managed by database (server_default, onupdate)
        - created_at immutable after insert
        - updated_at changes on every UPDATE
    """
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ModuleModel(Base, TimestampMixin):
    """
    Catalog entry for a PV module datasheet.

    Attributes:
        id: Primary key (auto-increment).
        name: Unique module identifier (e.g., "Longi Hi-MO 6 LR5-72HTH 580M").
        manufacturer: Manufacturer name.
        power_w: Rated power at STC (W), duplicated from specs for listing.
        specs: Full electrical specs (power, voc, vmp, isc, imp, temp_coeff_voc,
            temp_coeff_vmp) as JSON.

    Example:
        ```python
        module = ModuleModel(
            name="Jinko Tiger Pro 72HC 545W",
            manufacturer="Jinko Solar",
            power_w=545.0,
            specs={
                "power": 545.0, "voc": 49.52, "vmp": 40.8,
                "isc": 13.94, "imp": 13.36,
                "temp_coeff_voc": -0.28, "temp_coeff_vmp": -0.35,
            },
        )
        ```

    Notes:
        - name is unique constraint (upsert key)
    """
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False)
    manufacturer = Column(String(255), nullable=True)
    power_w = Column(Float, nullable=True)
    specs = Column(JSON, nullable=False)


class InverterModel(Base, TimestampMixin):
    """
    Catalog entry for an inverter MPPT input.

    Attributes:
        id: Primary key (auto-increment).
        name: Unique inverter identifier.
        manufacturer: Manufacturer name.
        max_input_voltage: Absolute DC voltage ceiling (V), duplicated from specs.
        specs: Input limits (max_input_voltage, min_mppt_voltage,
            max_mppt_voltage, max_input_current) as JSON.

    Notes:
        - name is unique constraint (upsert key)
    """
    __tablename__ = "inverters"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False)
    manufacturer = Column(String(255), nullable=True)
    max_input_voltage = Column(Float, nullable=True)
    specs = Column(JSON, nullable=False)


class HistoryEntryModel(Base, TimestampMixin):
    """
    Snapshot of one sizing run.

    Attributes:
        id: Primary key, increasing with insertion order.
        label: Display name chosen by the user (usually the module model).
        inputs: ``{"module": {...}, "inverter": {...}, "site": {...}}``.
        result: Serialized SizingResult (see ``SizingResult.to_dict``).
        is_compatible: Copy of the verdict for quick filtering.

    Notes:
        - Only the most recent entries are kept; older ones are trimmed on insert
    """
    __tablename__ = "history_entries"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True)
    label = Column(String(255), nullable=False)
    inputs = Column(JSON, nullable=False)
    result = Column(JSON, nullable=False)
    is_compatible = Column(Boolean, nullable=False, default=False)
