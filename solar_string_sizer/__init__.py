from .sizing import (
    FieldId,
    InverterSpecs,
    IssueCode,
    ModuleSpecs,
    Severity,
    SiteConditions,
    SizingIssue,
    SizingResult,
    calculate_string_sizing,
    temperature_corrected_voltage,
)
from .string_layout import build_string_table, suggest_string_length
from .presets import (
    DEFAULT_INVERTER,
    DEFAULT_MODULE,
    DEFAULT_SITE,
    MODULE_PRESETS,
    ModulePreset,
    find_module_preset,
    list_module_presets,
)
from .extraction import extract_inverter_specs, extract_module_specs, merge_specs
from .reporting import generate_report, render_report
from .application import SizingApplication

__all__ = [
    "FieldId",
    "IssueCode",
    "Severity",
    "ModuleSpecs",
    "InverterSpecs",
    "SiteConditions",
    "SizingIssue",
    "SizingResult",
    "calculate_string_sizing",
    "temperature_corrected_voltage",
    "build_string_table",
    "suggest_string_length",
    "ModulePreset",
    "MODULE_PRESETS",
    "DEFAULT_MODULE",
    "DEFAULT_INVERTER",
    "DEFAULT_SITE",
    "list_module_presets",
    "find_module_preset",
    "extract_module_specs",
    "extract_inverter_specs",
    "merge_specs",
    "render_report",
    "generate_report",
    "SizingApplication",
]
