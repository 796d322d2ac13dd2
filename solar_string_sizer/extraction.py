"""
Best-effort extraction of electrical specs from datasheet text.

The text is expected to come from an OCR engine or a PDF text layer, both of
which live outside this package. Patterns are deliberately loose: a field that
cannot be found is omitted from the returned mapping rather than guessed, and
the caller merges what was found into its working record with
:func:`merge_specs`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import fields, replace
from typing import Any, Dict, Mapping, Pattern, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NUMBER = r"(\d{2,3}[.,]\d{1,2})"
_SMALL_NUMBER = r"(\d{1,2}[.,]\d{1,2})"
_COEFFICIENT = r"(-0[.,]\d{2,4})"

_MODULE_PATTERNS: Dict[str, Sequence[Pattern[str]]] = {
    "power": (re.compile(r"(\d{3})\s*W", re.IGNORECASE),),
    "voc": (
        re.compile(r"Voc.*?" + _NUMBER, re.IGNORECASE),
        re.compile(r"Open.*?Voltage.*?" + _NUMBER, re.IGNORECASE),
    ),
    "vmp": (
        re.compile(r"Vmp.*?" + _NUMBER, re.IGNORECASE),
        re.compile(r"Voltage.*?Pmax.*?" + _NUMBER, re.IGNORECASE),
    ),
    "isc": (
        re.compile(r"Isc.*?" + _SMALL_NUMBER, re.IGNORECASE),
        re.compile(r"Short.*?Current.*?" + _SMALL_NUMBER, re.IGNORECASE),
    ),
    "imp": (
        re.compile(r"Imp.*?" + _SMALL_NUMBER, re.IGNORECASE),
        re.compile(r"Current.*?Pmax.*?" + _SMALL_NUMBER, re.IGNORECASE),
    ),
    "temp_coeff_voc": (re.compile(r"Temperature.*?Voc.*?" + _COEFFICIENT, re.IGNORECASE),),
    # Datasheets rarely publish a Vmp coefficient; the Pmax one is the usual stand-in.
    "temp_coeff_vmp": (re.compile(r"Temperature.*?Pmax.*?" + _COEFFICIENT, re.IGNORECASE),),
}

_MAX_INPUT_VOLTAGE = re.compile(r"(1000|1100|1200|1500)")
_MPPT_RANGE = re.compile(r"(\d{3})\s*-\s*(\d{3})")
_MAX_INPUT_CURRENT = re.compile(r"(\d{1,2})A")


def _parse_number(raw: str) -> float:
    return float(raw.replace(",", "."))


def _first_match(text: str, patterns: Sequence[Pattern[str]]) -> re.Match[str] | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def extract_module_specs(text: str) -> Dict[str, float]:
    """
    Extract module values from datasheet text.

    Args:
        text: Raw text of a module datasheet.

    Returns:
        Mapping with any of ``power``, ``voc``, ``vmp``, ``isc``, ``imp``,
        ``temp_coeff_voc`` and ``temp_coeff_vmp``. Missing values are omitted.
    """
    specs: Dict[str, float] = {}
    for key, patterns in _MODULE_PATTERNS.items():
        match = _first_match(text, patterns)
        if match:
            specs[key] = _parse_number(match.group(1))
    logger.debug("Extracted %d module fields: %s", len(specs), sorted(specs))
    return specs


def extract_inverter_specs(text: str) -> Dict[str, float]:
    """
    Extract inverter input limits from datasheet text.

    Args:
        text: Raw text of an inverter datasheet.

    Returns:
        Mapping with any of ``max_input_voltage``, ``min_mppt_voltage``,
        ``max_mppt_voltage`` and ``max_input_current``.
    """
    specs: Dict[str, float] = {}

    vmax = _MAX_INPUT_VOLTAGE.search(text)
    if vmax:
        specs["max_input_voltage"] = float(int(vmax.group(0)))

    mppt = _MPPT_RANGE.search(text)
    if mppt:
        specs["min_mppt_voltage"] = float(int(mppt.group(1)))
        specs["max_mppt_voltage"] = float(int(mppt.group(2)))

    current = _MAX_INPUT_CURRENT.search(text)
    if current:
        specs["max_input_current"] = float(int(current.group(1)))

    logger.debug("Extracted %d inverter fields: %s", len(specs), sorted(specs))
    return specs


def merge_specs(base: T, partial: Mapping[str, Any]) -> T:
    """
    Return a copy of ``base`` with the values found in ``partial`` applied.

    Keys that are not fields of ``base`` and ``None`` values are ignored, so
    extraction output can be merged without filtering.
    """
    names = {f.name for f in fields(base)}
    updates = {key: value for key, value in partial.items() if key in names and value is not None}
    return replace(base, **updates)
