from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .sizing import InverterSpecs, ModuleSpecs, SiteConditions


@dataclass(frozen=True)
class ModulePreset:
    """Datasheet values of a commercially available module."""

    manufacturer: str
    name: str
    specs: ModuleSpecs


def _preset(manufacturer: str, name: str, **values: float) -> ModulePreset:
    return ModulePreset(manufacturer=manufacturer, name=name, specs=ModuleSpecs(name=name, **values))


MODULE_PRESETS: tuple[ModulePreset, ...] = (
    _preset(
        "Canadian Solar", "Canadian Solar HiKu6 CS6W-550MS",
        power=550, voc=49.6, vmp=41.7, isc=14.0, imp=13.2, temp_coeff_voc=-0.27, temp_coeff_vmp=-0.34,
    ),
    _preset(
        "Canadian Solar", "Canadian Solar BiHiKu7 CS7N-660MB-AG",
        power=660, voc=45.6, vmp=38.3, isc=18.47, imp=17.24, temp_coeff_voc=-0.27, temp_coeff_vmp=-0.34,
    ),
    _preset(
        "Canadian Solar", "Canadian Solar HiKu7 CS7L-600MS",
        power=600, voc=41.3, vmp=34.7, isc=18.42, imp=17.30, temp_coeff_voc=-0.27, temp_coeff_vmp=-0.34,
    ),
    _preset(
        "Jinko Solar", "Jinko Tiger Neo N-Type 72HL4-BDV 570W",
        power=570, voc=50.74, vmp=42.07, isc=14.31, imp=13.55, temp_coeff_voc=-0.25, temp_coeff_vmp=-0.29,
    ),
    _preset(
        "Jinko Solar", "Jinko Tiger Pro 72HC 545W",
        power=545, voc=49.52, vmp=40.80, isc=13.94, imp=13.36, temp_coeff_voc=-0.28, temp_coeff_vmp=-0.35,
    ),
    _preset(
        "Jinko Solar", "Jinko Tiger Neo 78HL4-BDV 620W",
        power=620, voc=55.65, vmp=46.10, isc=14.13, imp=13.45, temp_coeff_voc=-0.25, temp_coeff_vmp=-0.29,
    ),
    _preset(
        "Trina Solar", "Trina Vertex DE19 550W",
        power=550, voc=37.9, vmp=31.6, isc=18.52, imp=17.40, temp_coeff_voc=-0.25, temp_coeff_vmp=-0.34,
    ),
    _preset(
        "Trina Solar", "Trina Vertex DE21 660W",
        power=660, voc=45.7, vmp=38.3, isc=18.53, imp=17.24, temp_coeff_voc=-0.25, temp_coeff_vmp=-0.34,
    ),
    _preset(
        "Trina Solar", "Trina Vertex S+ 440W (NEG9R.28)",
        power=440, voc=52.2, vmp=44.0, isc=10.67, imp=10.0, temp_coeff_voc=-0.24, temp_coeff_vmp=-0.30,
    ),
    _preset(
        "Longi Solar", "Longi Hi-MO 5 LR5-72HPH 550M",
        power=550, voc=49.80, vmp=41.95, isc=13.98, imp=13.12, temp_coeff_voc=-0.265, temp_coeff_vmp=-0.34,
    ),
    _preset(
        "Longi Solar", "Longi Hi-MO 6 LR5-72HTH 580M",
        power=580, voc=52.21, vmp=44.06, isc=14.20, imp=13.17, temp_coeff_voc=-0.23, temp_coeff_vmp=-0.29,
    ),
    _preset(
        "JA Solar", "JA Solar DeepBlue 3.0 JAM72S30-550/MR",
        power=550, voc=49.90, vmp=41.96, isc=14.00, imp=13.11, temp_coeff_voc=-0.275, temp_coeff_vmp=-0.35,
    ),
    _preset(
        "JA Solar", "JA Solar JAM78S30-600/MR",
        power=600, voc=53.65, vmp=45.15, isc=14.25, imp=13.29, temp_coeff_voc=-0.275, temp_coeff_vmp=-0.35,
    ),
    _preset(
        "Risen Energy", "Risen Titan S RSM110-8-550M",
        power=550, voc=38.02, vmp=31.66, isc=18.16, imp=17.40, temp_coeff_voc=-0.25, temp_coeff_vmp=-0.34,
    ),
    _preset(
        "SunPower", "SunPower Maxeon 6 AC 425W",
        power=425, voc=75.6, vmp=63.8, isc=6.75, imp=6.67, temp_coeff_voc=-0.27, temp_coeff_vmp=-0.29,
    ),
)

# Initial values of the sizing form.
DEFAULT_MODULE = ModuleSpecs(
    power=550,
    voc=49.6,
    vmp=41.7,
    isc=14.0,
    imp=13.2,
    temp_coeff_voc=-0.27,
    temp_coeff_vmp=-0.35,
)
DEFAULT_INVERTER = InverterSpecs(
    max_input_voltage=1000,
    min_mppt_voltage=200,
    max_mppt_voltage=850,
    max_input_current=15,
)
DEFAULT_SITE = SiteConditions(min_temp=-10, max_temp=40)


def list_module_presets(manufacturer: str | None = None) -> List[ModulePreset]:
    """
    Return built-in module presets, optionally filtered by manufacturer.

    Args:
        manufacturer: Case-insensitive manufacturer filter.
    """
    if manufacturer is None:
        return list(MODULE_PRESETS)
    wanted = manufacturer.strip().lower()
    return [preset for preset in MODULE_PRESETS if preset.manufacturer.lower() == wanted]


def find_module_preset(name: str) -> ModulePreset | None:
    """Look up a preset by exact name, ignoring case and surrounding whitespace."""
    wanted = name.strip().lower()
    for preset in MODULE_PRESETS:
        if preset.name.lower() == wanted:
            return preset
    return None
