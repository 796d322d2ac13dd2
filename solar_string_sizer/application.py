from __future__ import annotations

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Type, TypeVar

from .config import get_report_dir
from .extraction import extract_inverter_specs, extract_module_specs, merge_specs
from .persistence import PersistenceService
from .presets import DEFAULT_INVERTER, DEFAULT_MODULE, DEFAULT_SITE, find_module_preset
from .reporting import generate_report, render_report
from .sizing import (
    InverterSpecs,
    ModuleSpecs,
    SiteConditions,
    SizingResult,
    calculate_string_sizing,
)
from .string_layout import build_string_table, suggest_string_length

logger = logging.getLogger(__name__)

SizingData = Mapping[str, Any] | str | Path

T = TypeVar("T")


class UnknownEquipmentError(LookupError):
    """Raised when a module or inverter name matches no catalog entry or preset."""


class InvalidSizingInput(ValueError):
    """Raised when a sizing payload lacks a required field or holds a non-numeric value."""


def load_sizing_data(source: SizingData) -> dict[str, Any]:
    """
    Load a sizing payload from a JSON file or return the provided mapping.

    Args:
        source: Path to a JSON file or a mapping.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        return json.loads(path.read_text(encoding="utf-8"))
    return dict(source)


def record_from_mapping(record_type: Type[T], data: Mapping[str, Any]) -> T:
    """
    Build a ModuleSpecs/InverterSpecs/SiteConditions from a mapping.

    Unknown keys are ignored. Numeric fields are coerced with ``float``.

    Raises:
        InvalidSizingInput: When a required field is missing or not numeric.
    """
    values: Dict[str, Any] = {}
    for f in fields(record_type):
        if f.name == "name":
            if data.get("name") is not None:
                values["name"] = str(data["name"])
            continue
        if data.get(f.name) is None:
            raise InvalidSizingInput(f"Missing field '{f.name}' for {record_type.__name__}.")
        try:
            values[f.name] = float(data[f.name])
        except (TypeError, ValueError) as exc:
            raise InvalidSizingInput(
                f"Field '{f.name}' of {record_type.__name__} must be a number, got {data[f.name]!r}."
            ) from exc
    return record_type(**values)


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def parse_flag(value: Any, name: str) -> bool:
    """
    Read a boolean payload option.

    Accepts booleans, 0/1 and the strings true/false, yes/no, on/off, 1/0
    (case-insensitive).

    Raises:
        InvalidSizingInput: For any other value.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise InvalidSizingInput(f"Option '{name}' must be a boolean, got {value!r}.")


class SizingApplication:
    """
    High-level orchestrator used by the CLI and the FastAPI surface.

    Runs the sizing calculation, resolves equipment names against the catalog
    and the built-in presets, records history and produces reports.
    """

    def __init__(
        self,
        *,
        persistence: PersistenceService | None = None,
        save_reports: bool = False,
        report_root: Path | None = None,
    ) -> None:
        """
        Args:
            persistence: Optional PersistenceService for catalog and history.
            save_reports: When True, every sizing run writes a PDF report.
            report_root: Directory for reports (defaults to config).
        """
        self.persistence = persistence
        self.save_reports = save_reports
        self.report_root = Path(report_root) if report_root is not None else get_report_dir()

    # --- Equipment resolution ---

    def resolve_module(self, name: str) -> ModuleSpecs:
        """
        Find module specs by name: catalog first, then built-in presets.

        Raises:
            UnknownEquipmentError: When neither source knows the name.
        """
        if self.persistence:
            record = self.persistence.get_module(name)
            if record is not None:
                return record_from_mapping(ModuleSpecs, {**record.specs, "name": record.name})
        preset = find_module_preset(name)
        if preset is not None:
            return preset.specs
        raise UnknownEquipmentError(f"Module '{name}' not found in catalog or presets.")

    def resolve_inverter(self, name: str) -> InverterSpecs:
        """
        Find inverter limits by name in the catalog.

        Raises:
            UnknownEquipmentError: When the catalog does not know the name.
        """
        if self.persistence:
            record = self.persistence.get_inverter(name)
            if record is not None:
                return record_from_mapping(InverterSpecs, {**record.specs, "name": record.name})
        raise UnknownEquipmentError(f"Inverter '{name}' not found in catalog.")

    # --- Sizing ---

    def size(
        self,
        module: ModuleSpecs,
        inverter: InverterSpecs,
        site: SiteConditions,
        *,
        label: str | None = None,
        record: bool = True,
        save_report: bool | None = None,
    ) -> Dict[str, Any]:
        """
        Run the sizing calculation and its side effects.

        Args:
            module: Module specs.
            inverter: Inverter limits.
            site: Site temperatures.
            label: Display name (defaults to the module name).
            record: Store the run in the history when persistence is set.
            save_report: Write a PDF report (defaults to ``save_reports``).

        Returns:
            Summary with inputs, serialized result, suggested string length,
            history id and report path.
        """
        result = calculate_string_sizing(module, inverter, site)
        label = label or module.name or "Custom Module"
        table = build_string_table(module, inverter, site, result)
        suggested = suggest_string_length(table)

        logger.info(
            "Sized '%s': %d-%d modules, compatible=%s, %d warnings",
            label,
            result.min_modules,
            result.max_modules,
            result.is_compatible,
            len(result.warnings),
        )

        history_id = None
        if record and self.persistence:
            entry = self.persistence.record_history(label, module, inverter, site, result)
            history_id = entry.id

        if save_report is None:
            save_report = self.save_reports
        report_path = None
        if save_report:
            report_path = generate_report(
                result,
                module,
                inverter,
                site,
                output_root=self.report_root,
                display_name=label,
            )

        return {
            "label": label,
            "module": asdict(module),
            "inverter": asdict(inverter),
            "site": asdict(site),
            "result": result.to_dict(),
            "suggested_string_length": suggested,
            "history_id": history_id,
            "report_path": str(report_path) if report_path else None,
        }

    def build_inputs(self, payload: SizingData) -> tuple[ModuleSpecs, InverterSpecs, SiteConditions]:
        """
        Turn a payload into the three sizing records.

        The payload may carry inline ``module``/``inverter``/``site`` mappings
        or ``module_name``/``inverter_name`` references. Missing sections fall
        back to the form defaults; an inline section is merged over a named one.
        """
        data = load_sizing_data(payload)

        module = DEFAULT_MODULE
        if data.get("module_name"):
            module = self.resolve_module(str(data["module_name"]))
        if data.get("module"):
            module = record_from_mapping(ModuleSpecs, {**asdict(module), **data["module"]})

        inverter = DEFAULT_INVERTER
        if data.get("inverter_name"):
            inverter = self.resolve_inverter(str(data["inverter_name"]))
        if data.get("inverter"):
            inverter = record_from_mapping(InverterSpecs, {**asdict(inverter), **data["inverter"]})

        site = DEFAULT_SITE
        if data.get("site"):
            site = record_from_mapping(SiteConditions, {**asdict(site), **data["site"]})

        return module, inverter, site

    def size_payload(self, payload: SizingData) -> Dict[str, Any]:
        """
        Size from a JSON-like payload (see :meth:`build_inputs`).

        Recognized options besides the inputs: ``label``, ``record`` and
        ``save_report``.
        """
        data = load_sizing_data(payload)
        module, inverter, site = self.build_inputs(data)
        save_report = data.get("save_report")
        return self.size(
            module,
            inverter,
            site,
            label=data.get("label"),
            record=parse_flag(data.get("record", True), "record"),
            save_report=None if save_report is None else parse_flag(save_report, "save_report"),
        )

    def render_report(
        self,
        module: ModuleSpecs,
        inverter: InverterSpecs,
        site: SiteConditions,
        *,
        display_name: str | None = None,
    ) -> tuple[SizingResult, bytes]:
        """Compute the result and render the PDF in memory without touching history."""
        result = calculate_string_sizing(module, inverter, site)
        name = display_name or module.name or "Custom Module"
        return result, render_report(result, module, inverter, site, display_name=name)

    # --- Extraction ---

    def extract(
        self,
        kind: str,
        text: str,
        base: Mapping[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """
        Parse datasheet text and merge it into a working record.

        Args:
            kind: ``"module"`` or ``"inverter"``.
            text: Datasheet text.
            base: Current form values (defaults to the form defaults).

        Returns:
            ``{"extracted": {...}, "missing_fields": [...], "specs": {...}}``.
        """
        if kind == "module":
            extracted = extract_module_specs(text)
            record_type, default = ModuleSpecs, DEFAULT_MODULE
        elif kind == "inverter":
            extracted = extract_inverter_specs(text)
            record_type, default = InverterSpecs, DEFAULT_INVERTER
        else:
            raise InvalidSizingInput(f"Unknown datasheet kind '{kind}', expected module or inverter.")

        working = record_from_mapping(record_type, {**asdict(default), **(base or {})})
        merged = merge_specs(working, extracted)
        missing = [f.name for f in fields(record_type) if f.name != "name" and f.name not in extracted]
        logger.info("Extracted %d/%d %s fields", len(extracted), len(extracted) + len(missing), kind)
        return {
            "extracted": extracted,
            "missing_fields": missing,
            "specs": asdict(merged),
        }
