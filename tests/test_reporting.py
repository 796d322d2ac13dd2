from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from solar_string_sizer.reporting import generate_report, render_report, slugify
from solar_string_sizer.sizing import SiteConditions, calculate_string_sizing


def test_render_report_returns_pdf(module, inverter, site):
    result = calculate_string_sizing(module, inverter, site)
    pdf = render_report(result, module, inverter, site, display_name="Roof A")

    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_render_report_for_invalid_inputs(module, inverter, site):
    """Reports are produced even when the calculation short-circuits."""
    bad_module = replace(module, voc=0)
    result = calculate_string_sizing(bad_module, inverter, site)

    assert render_report(result, bad_module, inverter, site).startswith(b"%PDF")


def test_generate_report_writes_timestamped_file(tmp_path: Path, module, inverter, site):
    result = calculate_string_sizing(module, inverter, site)
    path = generate_report(
        result,
        module,
        inverter,
        site,
        output_root=tmp_path / "reports",
        display_name="Canadian Solar HiKu6",
    )

    assert path.exists()
    assert path.parent == tmp_path / "reports"
    assert path.name.endswith("_Canadian_Solar_HiKu6.pdf")


def test_slugify():
    assert slugify(" Jinko Tiger/Pro 545W ") == "Jinko_Tiger_Pro_545W"
    assert slugify("***") == ""


def test_render_report_with_unbounded_minimum(module, inverter):
    hot_site = SiteConditions(min_temp=-10, max_temp=75)
    steep = replace(module, temp_coeff_vmp=-2.0)
    result = calculate_string_sizing(steep, inverter, hot_site)

    assert render_report(result, steep, inverter, hot_site).startswith(b"%PDF")
