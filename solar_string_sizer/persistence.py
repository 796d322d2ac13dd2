"""
Database persistence layer for the equipment catalog and sizing history.

Provides CRUD operations for module and inverter datasheets and keeps a capped,
most-recent-first history of sizing runs. Records are stored as JSON snapshots
so later changes to the catalog never alter what a past run reported.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterable, Mapping

from sqlalchemy import delete, desc, func, select
from sqlalchemy.orm import Session

from .config import get_history_limit
from .db.models import HistoryEntryModel, InverterModel, ModuleModel
from .db.session import SessionLocal
from .presets import MODULE_PRESETS, ModulePreset
from .sizing import InverterSpecs, ModuleSpecs, SiteConditions, SizingResult

logger = logging.getLogger(__name__)


def _asdict_safe(obj: Any) -> Dict[str, Any]:
    """
    Convert Python objects to plain dictionaries for JSON storage.

    Handles dataclasses, Pydantic models (``model_dump``), mappings and None
    (returns an empty dict).

    Raises:
        TypeError: If obj type is not supported.
    """
    if obj is None:
        return {}
    if is_dataclass(obj):
        return asdict(obj)
    if isinstance(obj, Mapping):
        return dict(obj)
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    raise TypeError(f"Unsupported object type for serialization: {type(obj)!r}")


def _pick_specs(payload: Mapping[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    return {key: payload[key] for key in keys if payload.get(key) is not None}


MODULE_SPEC_KEYS = ("power", "voc", "vmp", "isc", "imp", "temp_coeff_voc", "temp_coeff_vmp")
INVERTER_SPEC_KEYS = ("max_input_voltage", "min_mppt_voltage", "max_mppt_voltage", "max_input_current")


class PersistenceService:
    """
    Database persistence service for the sizing tool.

    Provides:
    - Module and inverter catalog upserts keyed by name
    - Capped history of sizing runs (inputs and result snapshots)

    Every operation runs in its own transactional session: commit on success,
    rollback and re-raise on error.

    Example:
        ```python
        service = PersistenceService()
        service.upsert_inverter({
            "name": "Fronius Symo 10.0-3-M",
            "max_input_voltage": 1000,
            "min_mppt_voltage": 270,
            "max_mppt_voltage": 800,
            "max_input_current": 27,
        })
        entry = service.record_history("Roof A", module, inverter, site, result)
        latest = service.list_history()
        ```
    """

    def __init__(self, session_factory: type[Session] | None = None) -> None:
        """
        Args:
            session_factory: SQLAlchemy session factory. Defaults to SessionLocal;
                tests pass one bound to an in-memory database.
        """
        self._session_factory = session_factory or SessionLocal

    @contextmanager
    def session(self) -> Iterable[Session]:
        """
        Context manager providing a transactional database session.

        Commits on successful completion, rolls back and re-raises on
        exception, and always closes the session.
        """
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # --- Equipment catalog ---

    def upsert_module(self, module_data: Any) -> ModuleModel | None:
        """
        Insert or update a module record based on its name.

        Args:
            module_data: ModuleSpecs, ModulePreset, Pydantic model or mapping.
                Must provide a name.

        Returns:
            Persisted ModuleModel or None if data is missing.
        """
        if module_data is None:
            return None
        if isinstance(module_data, ModulePreset):
            payload = {"manufacturer": module_data.manufacturer, **asdict(module_data.specs)}
        else:
            payload = _asdict_safe(module_data)
        name = payload.get("name")
        if not name:
            raise ValueError("Module catalog entries require a name.")
        specs = _pick_specs(payload, MODULE_SPEC_KEYS)
        with self.session() as session:
            stmt = select(ModuleModel).where(ModuleModel.name == name)
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                record = ModuleModel(
                    name=name,
                    manufacturer=payload.get("manufacturer"),
                    power_w=specs.get("power"),
                    specs=specs,
                )
                session.add(record)
                logger.info("Added module '%s' to catalog", name)
            else:
                record.manufacturer = payload.get("manufacturer") or record.manufacturer
                record.power_w = specs.get("power")
                record.specs = specs
                logger.info("Updated module '%s' in catalog", name)
            session.flush()
            return record

    def upsert_inverter(self, inverter_data: Any) -> InverterModel | None:
        """
        Insert or update an inverter record based on its name.

        Args:
            inverter_data: InverterSpecs, Pydantic model or mapping with a name.

        Returns:
            Persisted InverterModel or None if data is missing.
        """
        if inverter_data is None:
            return None
        payload = _asdict_safe(inverter_data)
        name = payload.get("name")
        if not name:
            raise ValueError("Inverter catalog entries require a name.")
        specs = _pick_specs(payload, INVERTER_SPEC_KEYS)
        with self.session() as session:
            stmt = select(InverterModel).where(InverterModel.name == name)
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                record = InverterModel(
                    name=name,
                    manufacturer=payload.get("manufacturer"),
                    max_input_voltage=specs.get("max_input_voltage"),
                    specs=specs,
                )
                session.add(record)
                logger.info("Added inverter '%s' to catalog", name)
            else:
                record.manufacturer = payload.get("manufacturer") or record.manufacturer
                record.max_input_voltage = specs.get("max_input_voltage")
                record.specs = specs
                logger.info("Updated inverter '%s' in catalog", name)
            session.flush()
            return record

    def list_modules(self) -> list[ModuleModel]:
        """List all catalog modules."""
        with self.session() as session:
            stmt = select(ModuleModel).order_by(ModuleModel.name)
            return list(session.execute(stmt).scalars().all())

    def list_inverters(self) -> list[InverterModel]:
        """List all catalog inverters."""
        with self.session() as session:
            stmt = select(InverterModel).order_by(InverterModel.name)
            return list(session.execute(stmt).scalars().all())

    def get_module(self, name: str) -> ModuleModel | None:
        with self.session() as session:
            stmt = select(ModuleModel).where(func.lower(ModuleModel.name) == name.strip().lower())
            return session.execute(stmt).scalar_one_or_none()

    def get_inverter(self, name: str) -> InverterModel | None:
        with self.session() as session:
            stmt = select(InverterModel).where(func.lower(InverterModel.name) == name.strip().lower())
            return session.execute(stmt).scalar_one_or_none()

    def seed_module_presets(self, presets: Iterable[ModulePreset] | None = None) -> int:
        """
        Copy built-in module presets into the catalog.

        Args:
            presets: Presets to store (defaults to every built-in preset).

        Returns:
            Number of presets written.
        """
        count = 0
        for preset in presets if presets is not None else MODULE_PRESETS:
            self.upsert_module(preset)
            count += 1
        logger.info("Seeded %d module presets", count)
        return count

    # --- History ---

    def record_history(
        self,
        label: str,
        module: ModuleSpecs,
        inverter: InverterSpecs,
        site: SiteConditions,
        result: SizingResult,
        *,
        limit: int | None = None,
    ) -> HistoryEntryModel:
        """
        Store a sizing run and trim the history to the most recent entries.

        Args:
            label: Display name of the run.
            module: Module specs used.
            inverter: Inverter limits used.
            site: Site temperatures used.
            result: Result produced by calculate_string_sizing.
            limit: Number of entries to keep (defaults to config, 20).

        Returns:
            The stored HistoryEntryModel.
        """
        keep = max(1, limit if limit is not None else get_history_limit())
        with self.session() as session:
            record = HistoryEntryModel(
                label=label,
                inputs={
                    "module": asdict(module),
                    "inverter": asdict(inverter),
                    "site": asdict(site),
                },
                result=result.to_dict(),
                is_compatible=result.is_compatible,
            )
            session.add(record)
            session.flush()

            stale_ids = select(HistoryEntryModel.id).order_by(desc(HistoryEntryModel.id)).offset(keep)
            stale = list(session.execute(stale_ids).scalars().all())
            if stale:
                session.execute(delete(HistoryEntryModel).where(HistoryEntryModel.id.in_(stale)))
                logger.debug("Trimmed %d history entries", len(stale))
            return record

    def list_history(self, limit: int | None = None) -> list[HistoryEntryModel]:
        """
        Fetch history entries, newest first.

        Args:
            limit: Maximum number of entries to return (all kept entries when None).
        """
        with self.session() as session:
            stmt = select(HistoryEntryModel).order_by(desc(HistoryEntryModel.id))
            if limit is not None:
                stmt = stmt.limit(limit)
            return list(session.execute(stmt).scalars().all())

    def get_history_entry(self, entry_id: int) -> HistoryEntryModel | None:
        with self.session() as session:
            return session.get(HistoryEntryModel, entry_id)

    def delete_history_entry(self, entry_id: int) -> bool:
        """Delete one history entry. Returns False when it does not exist."""
        with self.session() as session:
            record = session.get(HistoryEntryModel, entry_id)
            if record is None:
                return False
            session.delete(record)
            return True

    def clear_history(self) -> int:
        """Delete every history entry and return how many were removed."""
        with self.session() as session:
            count = session.execute(select(func.count(HistoryEntryModel.id))).scalar_one()
            session.execute(delete(HistoryEntryModel))
            logger.info("Cleared %d history entries", count)
            return int(count)
