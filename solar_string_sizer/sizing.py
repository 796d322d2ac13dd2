"""
String sizing calculation for PV modules against inverter input limits.

The single entry point is :func:`calculate_string_sizing`, a pure function that
validates the three input records, applies the linear temperature-coefficient
model around STC (25 °C) and derives the admissible number of modules per
series string. Every failure mode is returned as data on the
:class:`SizingResult`; the function never raises.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

STC_TEMPERATURE_C = 25.0
# Reported for a count with no finite bound: a zero corrected voltage or a
# quotient beyond the float range.
UNBOUNDED_SERIES_COUNT = sys.maxsize


@dataclass(frozen=True)
class ModuleSpecs:
    """
    Electrical characteristics of one PV module at STC.

    Attributes:
        power: Rated power (W).
        voc: Open-circuit voltage (V).
        vmp: Voltage at the maximum power point (V).
        isc: Short-circuit current (A).
        imp: Current at the maximum power point (A).
        temp_coeff_voc: Voc temperature coefficient (%/°C), usually negative.
        temp_coeff_vmp: Vmp temperature coefficient (%/°C), usually negative.
        name: Optional model name, used for display only.
    """

    power: float
    voc: float
    vmp: float
    isc: float
    imp: float
    temp_coeff_voc: float
    temp_coeff_vmp: float
    name: str | None = None


@dataclass(frozen=True)
class InverterSpecs:
    """
    Input limits of one inverter MPPT channel.

    Attributes:
        max_input_voltage: Absolute DC input voltage ceiling (V).
        min_mppt_voltage: Lower bound of the MPPT window (V).
        max_mppt_voltage: Upper bound of the MPPT window (V).
        max_input_current: Rated DC input current (A).
        name: Optional model name, used for display only.
    """

    max_input_voltage: float
    min_mppt_voltage: float
    max_mppt_voltage: float
    max_input_current: float
    name: str | None = None


@dataclass(frozen=True)
class SiteConditions:
    """Ambient temperature extremes at the installation site (°C)."""

    min_temp: float
    max_temp: float


class FieldId(str, Enum):
    """Identifier of every input field that validation can flag."""

    MODULE_POWER = "module.power"
    MODULE_VOC = "module.voc"
    MODULE_VMP = "module.vmp"
    MODULE_ISC = "module.isc"
    MODULE_IMP = "module.imp"
    MODULE_TEMP_COEFF_VOC = "module.temp_coeff_voc"
    MODULE_TEMP_COEFF_VMP = "module.temp_coeff_vmp"
    INVERTER_MAX_INPUT_VOLTAGE = "inverter.max_input_voltage"
    INVERTER_MIN_MPPT_VOLTAGE = "inverter.min_mppt_voltage"
    INVERTER_MAX_MPPT_VOLTAGE = "inverter.max_mppt_voltage"
    INVERTER_MAX_INPUT_CURRENT = "inverter.max_input_current"
    SITE_MIN_TEMP = "site.min_temp"
    SITE_MAX_TEMP = "site.max_temp"

    @property
    def attribute(self) -> str:
        """Attribute name on the owning record (e.g. ``voc`` for ``module.voc``)."""
        return self.value.split(".", 1)[1]


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueCode(str, Enum):
    """Closed set of diagnostics produced by the sizing calculation."""

    NOT_FINITE = "not_finite"
    NOT_POSITIVE = "not_positive"
    VMP_NOT_BELOW_VOC = "vmp_not_below_voc"
    IMP_NOT_BELOW_ISC = "imp_not_below_isc"
    POSITIVE_TEMP_COEFF_VOC = "positive_temp_coeff_voc"
    POSITIVE_TEMP_COEFF_VMP = "positive_temp_coeff_vmp"
    MAX_INPUT_VOLTAGE_NOT_POSITIVE = "max_input_voltage_not_positive"
    MIN_MPPT_NEGATIVE = "min_mppt_negative"
    MPPT_WINDOW_INVERTED = "mppt_window_inverted"
    MPPT_ABOVE_INPUT_LIMIT = "mppt_above_input_limit"
    MAX_INPUT_CURRENT_NOT_POSITIVE = "max_input_current_not_positive"
    TEMPERATURE_RANGE_INVERTED = "temperature_range_inverted"
    SINGLE_MODULE_OVERVOLTAGE = "single_module_overvoltage"
    EMPTY_STRING_WINDOW = "empty_string_window"
    CURRENT_CLIPPING = "current_clipping"


@dataclass(frozen=True)
class SizingIssue:
    """One diagnostic: what went wrong, how serious it is and which fields caused it."""

    code: IssueCode
    severity: Severity
    message: str
    fields: Tuple[FieldId, ...]


@dataclass(frozen=True)
class SizingResult:
    """
    Outcome of a string sizing calculation.

    ``warnings``, ``error_fields`` and ``warning_fields`` are derived from the
    ordered ``issues`` so the three views can never disagree.
    """

    min_modules: int
    max_modules: int
    voc_max: float
    vmp_min: float
    is_compatible: bool
    issues: Tuple[SizingIssue, ...] = ()
    warnings: Tuple[str, ...] = field(init=False)
    error_fields: frozenset[FieldId] = field(init=False)
    warning_fields: frozenset[FieldId] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "warnings", tuple(issue.message for issue in self.issues))
        object.__setattr__(self, "error_fields", _collect_fields(self.issues, Severity.ERROR))
        object.__setattr__(self, "warning_fields", _collect_fields(self.issues, Severity.WARNING))

    @property
    def has_errors(self) -> bool:
        return bool(self.error_fields)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to JSON-compatible types.

        Field sets are emitted in :class:`FieldId` declaration order so the
        output is stable across runs.
        """
        return {
            "min_modules": self.min_modules,
            "max_modules": self.max_modules,
            "voc_max": self.voc_max,
            "vmp_min": self.vmp_min,
            "is_compatible": self.is_compatible,
            "warnings": list(self.warnings),
            "error_fields": _ordered_values(self.error_fields),
            "warning_fields": _ordered_values(self.warning_fields),
            "issues": [
                {
                    "code": issue.code.value,
                    "severity": issue.severity.value,
                    "message": issue.message,
                    "fields": [f.value for f in issue.fields],
                }
                for issue in self.issues
            ],
        }


def _collect_fields(issues: Tuple[SizingIssue, ...], severity: Severity) -> frozenset[FieldId]:
    return frozenset(f for issue in issues if issue.severity is severity for f in issue.fields)


def _ordered_values(fields: frozenset[FieldId]) -> List[str]:
    return [f.value for f in FieldId if f in fields]


_FIELD_LABELS = {
    FieldId.MODULE_POWER: "Module power",
    FieldId.MODULE_VOC: "Module open-circuit voltage (Voc)",
    FieldId.MODULE_VMP: "Module maximum power voltage (Vmp)",
    FieldId.MODULE_ISC: "Module short-circuit current (Isc)",
    FieldId.MODULE_IMP: "Module maximum power current (Imp)",
    FieldId.MODULE_TEMP_COEFF_VOC: "Voc temperature coefficient",
    FieldId.MODULE_TEMP_COEFF_VMP: "Vmp temperature coefficient",
    FieldId.INVERTER_MAX_INPUT_VOLTAGE: "Inverter maximum input voltage",
    FieldId.INVERTER_MIN_MPPT_VOLTAGE: "Inverter minimum MPPT voltage",
    FieldId.INVERTER_MAX_MPPT_VOLTAGE: "Inverter maximum MPPT voltage",
    FieldId.INVERTER_MAX_INPUT_CURRENT: "Inverter maximum input current",
    FieldId.SITE_MIN_TEMP: "Site minimum temperature",
    FieldId.SITE_MAX_TEMP: "Site maximum temperature",
}

_MODULE_POSITIVE_FIELDS = (
    FieldId.MODULE_POWER,
    FieldId.MODULE_VOC,
    FieldId.MODULE_VMP,
    FieldId.MODULE_ISC,
    FieldId.MODULE_IMP,
)

_OWNER_PREFIX = {"module": 0, "inverter": 1, "site": 2}


def _field_value(field_id: FieldId, records: Tuple[Any, Any, Any]) -> float:
    owner = field_id.value.split(".", 1)[0]
    return getattr(records[_OWNER_PREFIX[owner]], field_id.attribute)


def _format_number(value: float) -> str:
    return f"{value:g}"


class _IssueCollector:
    def __init__(self) -> None:
        self.issues: List[SizingIssue] = []

    def error(self, code: IssueCode, message: str, *fields: FieldId) -> None:
        self.issues.append(SizingIssue(code, Severity.ERROR, message, tuple(fields)))

    def warning(self, code: IssueCode, message: str, *fields: FieldId) -> None:
        self.issues.append(SizingIssue(code, Severity.WARNING, message, tuple(fields)))

    @property
    def has_errors(self) -> bool:
        return any(issue.severity is Severity.ERROR for issue in self.issues)


def _validate_inputs(
    module: ModuleSpecs,
    inverter: InverterSpecs,
    site: SiteConditions,
    collector: _IssueCollector,
) -> None:
    records = (module, inverter, site)

    non_finite = set()
    for field_id in FieldId:
        value = _field_value(field_id, records)
        if not math.isfinite(value):
            non_finite.add(field_id)
            collector.error(
                IssueCode.NOT_FINITE,
                f"{_FIELD_LABELS[field_id]} must be a finite number.",
                field_id,
            )

    # Comparisons below are skipped for fields already reported as non-finite.
    def ok(*fields: FieldId) -> bool:
        return not non_finite.intersection(fields)

    for field_id in _MODULE_POSITIVE_FIELDS:
        if ok(field_id) and _field_value(field_id, records) <= 0:
            collector.error(
                IssueCode.NOT_POSITIVE,
                f"{_FIELD_LABELS[field_id]} must be greater than 0.",
                field_id,
            )

    if ok(FieldId.MODULE_VMP, FieldId.MODULE_VOC) and module.voc > 0 and module.vmp >= module.voc:
        collector.error(
            IssueCode.VMP_NOT_BELOW_VOC,
            "Module Vmp must be lower than Voc.",
            FieldId.MODULE_VMP,
            FieldId.MODULE_VOC,
        )
    if ok(FieldId.MODULE_IMP, FieldId.MODULE_ISC) and module.isc > 0 and module.imp >= module.isc:
        collector.error(
            IssueCode.IMP_NOT_BELOW_ISC,
            "Module Imp must be lower than Isc.",
            FieldId.MODULE_IMP,
            FieldId.MODULE_ISC,
        )
    if ok(FieldId.MODULE_TEMP_COEFF_VOC) and module.temp_coeff_voc > 0:
        collector.warning(
            IssueCode.POSITIVE_TEMP_COEFF_VOC,
            "The Voc temperature coefficient is usually negative.",
            FieldId.MODULE_TEMP_COEFF_VOC,
        )
    if ok(FieldId.MODULE_TEMP_COEFF_VMP) and module.temp_coeff_vmp > 0:
        collector.warning(
            IssueCode.POSITIVE_TEMP_COEFF_VMP,
            "The Vmp (Pmax) temperature coefficient is usually negative.",
            FieldId.MODULE_TEMP_COEFF_VMP,
        )

    if ok(FieldId.INVERTER_MAX_INPUT_VOLTAGE) and inverter.max_input_voltage <= 0:
        collector.error(
            IssueCode.MAX_INPUT_VOLTAGE_NOT_POSITIVE,
            "Inverter maximum input voltage must be greater than 0.",
            FieldId.INVERTER_MAX_INPUT_VOLTAGE,
        )
    if ok(FieldId.INVERTER_MIN_MPPT_VOLTAGE) and inverter.min_mppt_voltage < 0:
        collector.error(
            IssueCode.MIN_MPPT_NEGATIVE,
            "Inverter minimum MPPT voltage cannot be negative.",
            FieldId.INVERTER_MIN_MPPT_VOLTAGE,
        )
    if (
        ok(FieldId.INVERTER_MAX_MPPT_VOLTAGE, FieldId.INVERTER_MIN_MPPT_VOLTAGE)
        and inverter.max_mppt_voltage <= inverter.min_mppt_voltage
    ):
        collector.error(
            IssueCode.MPPT_WINDOW_INVERTED,
            "Inverter maximum MPPT voltage must be greater than the minimum.",
            FieldId.INVERTER_MAX_MPPT_VOLTAGE,
            FieldId.INVERTER_MIN_MPPT_VOLTAGE,
        )
    if (
        ok(FieldId.INVERTER_MAX_MPPT_VOLTAGE, FieldId.INVERTER_MAX_INPUT_VOLTAGE)
        and inverter.max_mppt_voltage > inverter.max_input_voltage
    ):
        collector.warning(
            IssueCode.MPPT_ABOVE_INPUT_LIMIT,
            "Inverter maximum MPPT voltage should not exceed the maximum input voltage.",
            FieldId.INVERTER_MAX_MPPT_VOLTAGE,
            FieldId.INVERTER_MAX_INPUT_VOLTAGE,
        )
    if ok(FieldId.INVERTER_MAX_INPUT_CURRENT) and inverter.max_input_current <= 0:
        collector.error(
            IssueCode.MAX_INPUT_CURRENT_NOT_POSITIVE,
            "Inverter maximum input current must be greater than 0.",
            FieldId.INVERTER_MAX_INPUT_CURRENT,
        )

    if ok(FieldId.SITE_MIN_TEMP, FieldId.SITE_MAX_TEMP) and site.min_temp > site.max_temp:
        collector.error(
            IssueCode.TEMPERATURE_RANGE_INVERTED,
            "Site minimum temperature cannot be higher than the maximum.",
            FieldId.SITE_MIN_TEMP,
            FieldId.SITE_MAX_TEMP,
        )


def temperature_corrected_voltage(v_stc: float, temp_coeff_pct: float, temperature_c: float) -> float:
    """
    Apply the linear temperature coefficient model around STC.

    Args:
        v_stc: Voltage at 25 °C (V).
        temp_coeff_pct: Temperature coefficient (%/°C).
        temperature_c: Cell temperature to correct to (°C).

    Returns:
        Corrected voltage (V).
    """
    return v_stc * (1 + (temperature_c - STC_TEMPERATURE_C) * (temp_coeff_pct / 100))


def _max_series_count(max_input_voltage: float, voc_max: float) -> int:
    if voc_max < 0:
        return 0
    if voc_max == 0:
        return UNBOUNDED_SERIES_COUNT
    quotient = max_input_voltage / voc_max
    if not math.isfinite(quotient):
        return UNBOUNDED_SERIES_COUNT
    return min(math.floor(quotient), UNBOUNDED_SERIES_COUNT)


def _min_series_count(min_mppt_voltage: float, vmp_min: float) -> int:
    if vmp_min < 0:
        return 0
    if vmp_min == 0:
        # No number of modules reaches a positive MPPT floor.
        return UNBOUNDED_SERIES_COUNT if min_mppt_voltage > 0 else 0
    quotient = min_mppt_voltage / vmp_min
    if not math.isfinite(quotient):
        return UNBOUNDED_SERIES_COUNT
    return min(math.ceil(quotient), UNBOUNDED_SERIES_COUNT)


def _is_compatible(issues: List[SizingIssue]) -> bool:
    if not issues:
        return True
    return len(issues) == 1 and issues[0].code is IssueCode.CURRENT_CLIPPING


def calculate_string_sizing(
    module: ModuleSpecs,
    inverter: InverterSpecs,
    site: SiteConditions,
) -> SizingResult:
    """
    Size a series string of ``module`` for ``inverter`` at ``site``.

    Args:
        module: Module electrical specs at STC.
        inverter: Inverter MPPT input limits.
        site: Site temperature extremes.

    Returns:
        SizingResult with the admissible module count window, the worst-case
        corrected voltages, the compatibility verdict and ordered diagnostics.
        When any input is structurally invalid the counts and voltages are all
        zero and ``is_compatible`` is False.
    """
    collector = _IssueCollector()
    _validate_inputs(module, inverter, site, collector)

    if collector.has_errors:
        return SizingResult(
            min_modules=0,
            max_modules=0,
            voc_max=0.0,
            vmp_min=0.0,
            is_compatible=False,
            issues=tuple(collector.issues),
        )

    # Voc peaks at the coldest temperature, Vmp bottoms out at the hottest.
    voc_max = temperature_corrected_voltage(module.voc, module.temp_coeff_voc, site.min_temp)
    vmp_min = temperature_corrected_voltage(module.vmp, module.temp_coeff_vmp, site.max_temp)

    max_modules = _max_series_count(inverter.max_input_voltage, voc_max)
    min_modules = _min_series_count(inverter.min_mppt_voltage, vmp_min)

    if voc_max > inverter.max_input_voltage:
        collector.error(
            IssueCode.SINGLE_MODULE_OVERVOLTAGE,
            "The open-circuit voltage (Voc) of a single module exceeds the inverter "
            "maximum input voltage at low temperature!",
            FieldId.MODULE_VOC,
            FieldId.SITE_MIN_TEMP,
            FieldId.INVERTER_MAX_INPUT_VOLTAGE,
        )

    if min_modules > max_modules:
        collector.error(
            IssueCode.EMPTY_STRING_WINDOW,
            "Incompatible: the minimum number of modules exceeds the maximum allowed.",
            FieldId.INVERTER_MIN_MPPT_VOLTAGE,
            FieldId.INVERTER_MAX_INPUT_VOLTAGE,
            FieldId.MODULE_VOC,
            FieldId.MODULE_VMP,
        )

    if module.imp > inverter.max_input_current:
        collector.warning(
            IssueCode.CURRENT_CLIPPING,
            f"Module current ({_format_number(module.imp)}A) exceeds the inverter maximum "
            f"input current ({_format_number(inverter.max_input_current)}A). "
            "The inverter will limit output power (clipping).",
            FieldId.MODULE_IMP,
            FieldId.INVERTER_MAX_INPUT_CURRENT,
        )

    return SizingResult(
        min_modules=max(0, min_modules),
        max_modules=max(0, max_modules),
        voc_max=voc_max,
        vmp_min=vmp_min,
        is_compatible=_is_compatible(collector.issues),
        issues=tuple(collector.issues),
    )
