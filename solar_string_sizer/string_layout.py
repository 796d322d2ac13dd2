from __future__ import annotations

import numpy as np
import pandas as pd

from .sizing import (
    InverterSpecs,
    ModuleSpecs,
    SiteConditions,
    UNBOUNDED_SERIES_COUNT,
    SizingResult,
    calculate_string_sizing,
    temperature_corrected_voltage,
)

STRING_TABLE_COLUMNS = [
    "modules",
    "voc_cold_v",
    "vmp_hot_v",
    "vmp_stc_v",
    "power_kw",
    "below_voltage_limit",
    "reaches_mppt_floor",
    "within_mppt_window",
    "feasible",
]

MAX_TABLE_ROWS = 100


def build_string_table(
    module: ModuleSpecs,
    inverter: InverterSpecs,
    site: SiteConditions,
    result: SizingResult | None = None,
    extra_modules: int = 2,
    max_rows: int = MAX_TABLE_ROWS,
) -> pd.DataFrame:
    """
    Tabulate string voltages for each candidate series count.

    Rows cover ``1 .. max(max_modules, min_modules) + extra_modules`` so the
    first infeasible lengths beyond the window are visible as well. A range
    longer than ``max_rows`` is cut to ``max_rows`` lengths starting just
    below the smaller bound.

    Args:
        module: Module specs at STC.
        inverter: Inverter input limits.
        site: Site temperature extremes.
        result: Precomputed sizing result (recomputed when omitted).
        extra_modules: Number of rows beyond the upper bound of the window.
        max_rows: Upper limit on the number of rows.

    Returns:
        DataFrame with ``STRING_TABLE_COLUMNS``. Empty when the inputs carry
        error-level issues that prevented the calculation.
    """
    if result is None:
        result = calculate_string_sizing(module, inverter, site)
    if result.has_errors and result.voc_max == 0.0 and result.vmp_min == 0.0:
        return pd.DataFrame(columns=STRING_TABLE_COLUMNS)

    extra = max(0, extra_modules)
    rows = max(1, max_rows)
    lower = 1
    upper = max(result.max_modules, result.min_modules) + extra
    if upper < 1:
        return pd.DataFrame(columns=STRING_TABLE_COLUMNS)
    if upper > rows:
        lower = max(1, min(result.min_modules, result.max_modules) - extra)
        lower = min(lower, UNBOUNDED_SERIES_COUNT - rows)
        upper = min(upper, lower + rows - 1)

    counts = np.arange(lower, upper + 1, dtype=np.int64)
    voc_cold = counts * result.voc_max
    vmp_hot = counts * result.vmp_min
    vmp_stc = counts * module.vmp
    # Vmp is highest at the coldest site temperature.
    vmp_cold = counts * temperature_corrected_voltage(module.vmp, module.temp_coeff_vmp, site.min_temp)

    below_limit = voc_cold <= inverter.max_input_voltage
    reaches_floor = vmp_hot >= inverter.min_mppt_voltage
    within_window = reaches_floor & (vmp_cold <= inverter.max_mppt_voltage)

    return pd.DataFrame(
        {
            "modules": counts,
            "voc_cold_v": voc_cold,
            "vmp_hot_v": vmp_hot,
            "vmp_stc_v": vmp_stc,
            "power_kw": counts * module.power / 1000.0,
            "below_voltage_limit": below_limit,
            "reaches_mppt_floor": reaches_floor,
            "within_mppt_window": within_window,
            "feasible": below_limit & reaches_floor,
        },
        columns=STRING_TABLE_COLUMNS,
    )


def suggest_string_length(table: pd.DataFrame) -> int | None:
    """
    Pick the longest feasible string, preferring lengths that track within the MPPT window.

    Returns:
        Suggested module count, or None when no length is feasible.
    """
    if table.empty:
        return None
    feasible = table[table["feasible"].astype(bool)]
    if feasible.empty:
        return None
    tracking = feasible[feasible["within_mppt_window"].astype(bool)]
    chosen = tracking if not tracking.empty else feasible
    return int(chosen["modules"].max())
