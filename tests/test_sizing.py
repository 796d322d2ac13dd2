from __future__ import annotations

import math
from dataclasses import replace

import pytest

from solar_string_sizer.sizing import (
    FieldId,
    IssueCode,
    Severity,
    UNBOUNDED_SERIES_COUNT,
    SiteConditions,
    calculate_string_sizing,
    temperature_corrected_voltage,
)


def test_reference_installation_is_compatible(module, inverter, site):
    """Default form values: 6 to 18 modules, no diagnostics."""
    result = calculate_string_sizing(module, inverter, site)

    assert result.voc_max == pytest.approx(54.2872, rel=1e-4)
    assert result.vmp_min == pytest.approx(39.5108, rel=1e-4)
    assert result.max_modules == 18
    assert result.min_modules == 6
    assert result.is_compatible is True
    assert result.warnings == ()
    assert result.error_fields == frozenset()
    assert result.warning_fields == frozenset()


def test_lower_voltage_ceiling_keeps_window_open(module, inverter, site):
    low_voltage = replace(inverter, max_input_voltage=400, max_mppt_voltage=380)
    result = calculate_string_sizing(module, low_voltage, site)

    assert result.max_modules == 7
    assert result.min_modules == 6
    assert result.is_compatible is True


def test_empty_window_is_incompatible(module, inverter, site):
    narrow = replace(inverter, max_input_voltage=300, max_mppt_voltage=280)
    result = calculate_string_sizing(module, narrow, site)

    assert result.max_modules == 5
    assert result.min_modules == 6
    assert result.is_compatible is False
    codes = [issue.code for issue in result.issues]
    assert codes == [IssueCode.EMPTY_STRING_WINDOW]
    assert result.warnings == ("Incompatible: the minimum number of modules exceeds the maximum allowed.",)
    assert result.error_fields == {
        FieldId.INVERTER_MIN_MPPT_VOLTAGE,
        FieldId.INVERTER_MAX_INPUT_VOLTAGE,
        FieldId.MODULE_VOC,
        FieldId.MODULE_VMP,
    }


def test_clipping_alone_stays_compatible(module, inverter, site):
    high_current = replace(module, imp=16, isc=17)
    result = calculate_string_sizing(high_current, inverter, site)

    assert result.is_compatible is True
    assert len(result.warnings) == 1
    assert "(16A)" in result.warnings[0]
    assert "(15A)" in result.warnings[0]
    assert result.warning_fields == {FieldId.MODULE_IMP, FieldId.INVERTER_MAX_INPUT_CURRENT}
    assert result.error_fields == frozenset()


def test_clipping_plus_another_warning_is_incompatible(module, inverter, site):
    suspicious = replace(module, imp=16, isc=17, temp_coeff_voc=0.1)
    result = calculate_string_sizing(suspicious, inverter, site)

    codes = [issue.code for issue in result.issues]
    assert codes == [IssueCode.POSITIVE_TEMP_COEFF_VOC, IssueCode.CURRENT_CLIPPING]
    assert result.is_compatible is False


def test_zero_voc_short_circuits(module, inverter, site):
    result = calculate_string_sizing(replace(module, voc=0), inverter, site)

    assert (result.min_modules, result.max_modules) == (0, 0)
    assert (result.voc_max, result.vmp_min) == (0.0, 0.0)
    assert result.is_compatible is False
    assert FieldId.MODULE_VOC in result.error_fields
    assert result.warnings[0] == "Module open-circuit voltage (Voc) must be greater than 0."


def test_inverted_temperature_range_short_circuits(module, inverter):
    result = calculate_string_sizing(module, inverter, SiteConditions(min_temp=40, max_temp=10))

    assert result.error_fields == {FieldId.SITE_MIN_TEMP, FieldId.SITE_MAX_TEMP}
    assert result.max_modules == 0
    assert result.is_compatible is False


def test_validation_rules_fire_independently_in_order(module, inverter, site):
    bad_module = replace(module, vmp=50, imp=15, temp_coeff_vmp=0.2)
    bad_inverter = replace(inverter, min_mppt_voltage=-5, max_input_current=0)
    result = calculate_string_sizing(bad_module, bad_inverter, site)

    assert [issue.code for issue in result.issues] == [
        IssueCode.VMP_NOT_BELOW_VOC,
        IssueCode.IMP_NOT_BELOW_ISC,
        IssueCode.POSITIVE_TEMP_COEFF_VMP,
        IssueCode.MIN_MPPT_NEGATIVE,
        IssueCode.MAX_INPUT_CURRENT_NOT_POSITIVE,
    ]
    assert result.warning_fields == {FieldId.MODULE_TEMP_COEFF_VMP}
    assert result.has_errors


def test_mppt_above_input_limit_is_only_a_warning(module, inverter, site):
    result = calculate_string_sizing(module, replace(inverter, max_mppt_voltage=1100), site)

    issue = result.issues[0]
    assert issue.code is IssueCode.MPPT_ABOVE_INPUT_LIMIT
    assert issue.severity is Severity.WARNING
    assert result.max_modules == 18
    assert result.is_compatible is False


def test_single_module_overvoltage(module, inverter, site):
    tiny = replace(inverter, max_input_voltage=50, min_mppt_voltage=10, max_mppt_voltage=45)
    result = calculate_string_sizing(module, tiny, site)

    codes = [issue.code for issue in result.issues]
    assert codes[0] is IssueCode.SINGLE_MODULE_OVERVOLTAGE
    assert IssueCode.EMPTY_STRING_WINDOW in codes
    assert result.max_modules == 0
    assert result.min_modules >= 0
    assert {FieldId.MODULE_VOC, FieldId.SITE_MIN_TEMP} <= result.error_fields


def test_non_finite_input_is_reported_not_raised(module, inverter, site):
    result = calculate_string_sizing(replace(module, voc=math.nan), inverter, site)

    assert result.issues[0].code is IssueCode.NOT_FINITE
    assert result.error_fields == {FieldId.MODULE_VOC}
    assert result.is_compatible is False


def test_extreme_coefficient_clamps_counts_to_zero(module, inverter):
    # Vmp collapses to a negative value at 40 °C with a -10 %/°C coefficient.
    steep = replace(module, temp_coeff_vmp=-10.0)
    result = calculate_string_sizing(steep, inverter, SiteConditions(min_temp=25, max_temp=40))

    assert result.vmp_min < 0
    assert result.min_modules == 0
    assert result.max_modules >= 0


def test_result_is_deterministic(module, inverter, site):
    assert calculate_string_sizing(module, inverter, site) == calculate_string_sizing(module, inverter, site)


def test_bounds_are_monotonic_in_inverter_limits(module, inverter, site):
    previous_max = -1
    for max_input_voltage in (600, 800, 1000, 1500):
        result = calculate_string_sizing(
            module,
            replace(inverter, max_input_voltage=max_input_voltage, max_mppt_voltage=550),
            site,
        )
        assert result.max_modules >= previous_max
        previous_max = result.max_modules

    previous_min = -1
    for min_mppt_voltage in (100, 200, 300, 400):
        result = calculate_string_sizing(module, replace(inverter, min_mppt_voltage=min_mppt_voltage), site)
        assert result.min_modules >= previous_min
        previous_min = result.min_modules


def test_colder_site_never_allows_longer_strings(module, inverter):
    warm = calculate_string_sizing(module, inverter, SiteConditions(min_temp=0, max_temp=40))
    cold = calculate_string_sizing(module, inverter, SiteConditions(min_temp=-25, max_temp=40))
    assert cold.voc_max > warm.voc_max
    assert cold.max_modules <= warm.max_modules


def test_temperature_correction_is_identity_at_stc():
    assert temperature_corrected_voltage(49.6, -0.27, 25) == pytest.approx(49.6)
    assert temperature_corrected_voltage(49.6, -0.27, -10) > 49.6


def test_to_dict_is_json_ready(module, inverter, site):
    data = calculate_string_sizing(replace(module, imp=16, isc=17), inverter, site).to_dict()

    assert data["min_modules"] == 6
    assert data["warning_fields"] == ["module.imp", "inverter.max_input_current"]
    assert data["issues"][0]["code"] == "current_clipping"
    assert data["issues"][0]["severity"] == "warning"


@pytest.mark.parametrize(
    ("module_changes", "inverter_changes", "code", "fields"),
    [
        ({"power": 0}, {}, IssueCode.NOT_POSITIVE, {FieldId.MODULE_POWER}),
        ({"isc": 0}, {}, IssueCode.NOT_POSITIVE, {FieldId.MODULE_ISC}),
        ({"imp": -1}, {}, IssueCode.NOT_POSITIVE, {FieldId.MODULE_IMP}),
        ({}, {"max_input_voltage": 0}, IssueCode.MAX_INPUT_VOLTAGE_NOT_POSITIVE, {FieldId.INVERTER_MAX_INPUT_VOLTAGE}),
        (
            {},
            {"max_mppt_voltage": 150},
            IssueCode.MPPT_WINDOW_INVERTED,
            {FieldId.INVERTER_MIN_MPPT_VOLTAGE, FieldId.INVERTER_MAX_MPPT_VOLTAGE},
        ),
    ],
)
def test_invalid_field_short_circuits(module, inverter, site, module_changes, inverter_changes, code, fields):
    result = calculate_string_sizing(replace(module, **module_changes), replace(inverter, **inverter_changes), site)

    assert result.issues[0].code is code
    assert result.issues[0].severity is Severity.ERROR
    assert fields <= result.error_fields
    assert (result.min_modules, result.max_modules) == (0, 0)
    assert (result.voc_max, result.vmp_min) == (0.0, 0.0)
    assert result.is_compatible is False


def test_hotter_site_never_raises_vmp_min(module, inverter):
    previous = math.inf
    for max_temp in (25, 40, 60, 75):
        result = calculate_string_sizing(module, inverter, SiteConditions(min_temp=-10, max_temp=max_temp))
        assert result.vmp_min <= previous
        previous = result.vmp_min


def test_zero_vmp_at_max_temperature_empties_the_window(module, inverter):
    # -2 %/°C over 50 °C above STC brings Vmp down to exactly 0 V.
    result = calculate_string_sizing(
        replace(module, temp_coeff_vmp=-2.0),
        inverter,
        SiteConditions(min_temp=-10, max_temp=75),
    )

    assert result.vmp_min == 0.0
    assert result.min_modules == UNBOUNDED_SERIES_COUNT
    assert result.max_modules == 18
    assert [issue.code for issue in result.issues] == [IssueCode.EMPTY_STRING_WINDOW]
    assert result.is_compatible is False


def test_zero_vmp_without_mppt_floor_stays_open(module, inverter):
    result = calculate_string_sizing(
        replace(module, temp_coeff_vmp=-2.0),
        replace(inverter, min_mppt_voltage=0),
        SiteConditions(min_temp=-10, max_temp=75),
    )

    assert result.min_modules == 0
    assert result.is_compatible is True


def test_overflowing_quotient_is_reported_as_unbounded(module, inverter, site):
    tiny_module = replace(module, voc=1e-3, vmp=5e-4)

    result = calculate_string_sizing(tiny_module, replace(inverter, max_input_voltage=1e308), site)
    assert result.max_modules == UNBOUNDED_SERIES_COUNT
    assert result.min_modules == math.ceil(200 / result.vmp_min)
    assert result.is_compatible is True

    huge_floor = replace(inverter, max_input_voltage=1e308, min_mppt_voltage=1e307, max_mppt_voltage=1e308)
    result = calculate_string_sizing(tiny_module, huge_floor, site)
    assert result.min_modules == UNBOUNDED_SERIES_COUNT
    assert result.max_modules == UNBOUNDED_SERIES_COUNT
    assert not result.has_errors
